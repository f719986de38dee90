"""Persisted ingestion progress (the checkpoint file)."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_serializer

from prior_art_app.config.logging import get_logger

LOGGER = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IngestionState(BaseModel):
    processed_files: set[str] = Field(default_factory=set)
    last_processed_file: str | None = None
    total_records_processed: int = 0
    collection_initialized: bool = False
    start_time: datetime | None = None
    last_checkpoint_time: datetime | None = None

    @field_serializer("processed_files")
    def _sorted_files(self, files: set[str]) -> list[str]:
        return sorted(files)

    def is_processed(self, relative_path: str) -> bool:
        return relative_path in self.processed_files

    def mark_processed(self, relative_path: str, record_count: int) -> None:
        """Record a fully upserted file. Call only after the last batch succeeded."""
        self.processed_files.add(relative_path)
        self.last_processed_file = relative_path
        self.total_records_processed += record_count


class StateStore:
    """Load and atomically save :class:`IngestionState` as JSON."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> IngestionState:
        if not self.path.exists():
            LOGGER.info("No ingestion state found, starting fresh", extra={"path": str(self.path)})
            return IngestionState(start_time=_utcnow())

        try:
            state = IngestionState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as exc:
            LOGGER.warning(
                "Ingestion state unreadable, starting fresh",
                extra={"path": str(self.path), "error": str(exc)},
            )
            return IngestionState(start_time=_utcnow())

        if state.start_time is None:
            state.start_time = _utcnow()
        LOGGER.info(
            "Loaded ingestion state",
            extra={
                "path": str(self.path),
                "processed_files": len(state.processed_files),
                "total_records": state.total_records_processed,
            },
        )
        return state

    def save(self, state: IngestionState) -> None:
        state.last_checkpoint_time = _utcnow()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = state.model_dump_json(indent=2)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        LOGGER.info(
            "Checkpoint saved",
            extra={
                "path": str(self.path),
                "processed_files": len(state.processed_files),
                "total_records": state.total_records_processed,
            },
        )

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
