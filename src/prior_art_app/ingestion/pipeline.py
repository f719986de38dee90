"""Resumable ingestion of a patent XML corpus into Qdrant.

Workflow
--------
1. Load the checkpoint file from the corpus root (fresh state if missing or
   corrupt).
2. Create the collection on a fresh run only; a resumed run keeps every
   point that earlier runs upserted.
3. Walk the corpus recursively, keep files with the configured extension
   (case-insensitive) and sort them by relative path.
4. For each file not yet checkpointed: extract records, embed them and upsert
   them in fixed-size batches, then mark the file processed.
5. Save the checkpoint every ``checkpoint_interval`` files, at the end of the
   run, and on SIGINT/SIGTERM.

A file that fails at any point stays unmarked and is retried next run.
Upserts are keyed by patent id, so re-processing a file never duplicates
points.
"""

from __future__ import annotations

import signal
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from pydantic import BaseModel, Field

from prior_art_app.config.logging import get_logger
from prior_art_app.context import IndexContext
from prior_art_app.errors import EmbeddingError
from prior_art_app.ingestion.extractor import extract_records
from prior_art_app.ingestion.schemas import PatentRecord
from prior_art_app.ingestion.state import IngestionState, StateStore

LOGGER = get_logger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class IngestionSummary(BaseModel):
    files_found: int = 0
    files_skipped: int = 0
    files_processed: int = 0
    files_failed: int = 0
    records_upserted: int = 0
    records_skipped: int = 0
    duration_seconds: float = 0.0
    failed_files: list[str] = Field(default_factory=list)


class IngestionPipeline:
    """Drive extraction, embedding and upserts over a corpus directory."""

    def __init__(
        self,
        context: IndexContext,
        *,
        corpus_dir: Path | None = None,
        state_store: StateStore | None = None,
    ) -> None:
        self.context = context
        self.settings = context.settings
        self.corpus_dir = Path(corpus_dir or self.settings.corpus_dir)
        self.state_store = state_store or StateStore(self.settings.state_path(self.corpus_dir))
        self.state = IngestionState()
        self._files_since_checkpoint = 0

    def discover_files(self) -> list[Path]:
        extension = self.settings.corpus_extension.lower()
        files = [
            path
            for path in self.corpus_dir.rglob("*")
            if path.is_file() and path.suffix.lower() == extension
        ]
        return sorted(files, key=self._relative_key)

    def _relative_key(self, path: Path) -> str:
        return path.relative_to(self.corpus_dir).as_posix()

    def initialize_collection(self) -> None:
        vector_size = self.context.embedder.vector_size()
        if self.state.collection_initialized:
            # Resumed run: the collection holds earlier upserts and must survive.
            self.context.store.ensure_collection(vector_size)
            return

        self.context.store.recreate_collection(vector_size)
        self.state.collection_initialized = True
        self.checkpoint()

    def checkpoint(self) -> None:
        self.state_store.save(self.state)
        self._files_since_checkpoint = 0

    def ingest_file(self, path: Path) -> tuple[int, int]:
        """Upsert every record in ``path``; returns (upserted, skipped)."""
        extraction = extract_records(path.read_bytes(), source=str(path))
        records = extraction.records
        batch_size = self.settings.upsert_batch_size

        for start in range(0, len(records), batch_size):
            self._upsert_batch(records[start : start + batch_size])

        return len(records), extraction.skipped

    def _upsert_batch(self, batch: list[PatentRecord]) -> None:
        vectors = self.context.embedder.embed_many([record.embedding_text() for record in batch])
        self.context.store.upsert(batch, vectors)

    def run(self, *, limit: int | None = None) -> IngestionSummary:
        started = time.monotonic()
        summary = IngestionSummary()
        self.state = self.state_store.load()

        with self._checkpoint_on_signal():
            self.initialize_collection()

            files = self.discover_files()
            summary.files_found = len(files)
            pending = [path for path in files if not self.state.is_processed(self._relative_key(path))]
            summary.files_skipped = len(files) - len(pending)
            if limit is not None:
                pending = pending[:limit]

            LOGGER.info(
                "Starting ingestion",
                extra={
                    "corpus": str(self.corpus_dir),
                    "files_found": summary.files_found,
                    "already_processed": summary.files_skipped,
                    "pending": len(pending),
                },
            )

            for path in pending:
                relative = self._relative_key(path)
                try:
                    upserted, skipped = self.ingest_file(path)
                except EmbeddingError as exc:
                    summary.files_failed += 1
                    summary.failed_files.append(relative)
                    LOGGER.error("Embedding failed, file left for retry", extra={"file": relative, "error": str(exc)})
                    continue
                except Exception as exc:
                    summary.files_failed += 1
                    summary.failed_files.append(relative)
                    LOGGER.error("Failed to ingest file, left for retry", extra={"file": relative, "error": str(exc)})
                    continue

                self.state.mark_processed(relative, upserted)
                summary.files_processed += 1
                summary.records_upserted += upserted
                summary.records_skipped += skipped
                self._files_since_checkpoint += 1
                LOGGER.info(
                    "Ingested file",
                    extra={
                        "file": relative,
                        "records": upserted,
                        "skipped": skipped,
                        "total_records": self.state.total_records_processed,
                    },
                )

                if self._files_since_checkpoint >= self.settings.checkpoint_interval:
                    self.checkpoint()

            self.checkpoint()

        summary.duration_seconds = round(time.monotonic() - started, 3)
        LOGGER.info("Ingestion complete", extra=summary.model_dump(exclude={"failed_files"}))
        return summary

    @contextmanager
    def _checkpoint_on_signal(self) -> Iterator[None]:
        """Flush state before exiting on SIGINT/SIGTERM (main thread only)."""
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def handler(signum: int, _frame: object) -> None:
            LOGGER.warning("Interrupted, saving checkpoint", extra={"signal": signal.Signals(signum).name})
            try:
                self.checkpoint()
            except Exception as exc:
                LOGGER.error("Final checkpoint failed", extra={"error": str(exc)})
            raise SystemExit(128 + signum)

        previous = {sig: signal.signal(sig, handler) for sig in HANDLED_SIGNALS}
        try:
            yield
        finally:
            for sig, old_handler in previous.items():
                signal.signal(sig, old_handler)
