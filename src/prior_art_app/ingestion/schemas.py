"""Schemas for ingestion pipeline."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class PatentRecord(BaseModel):
    id: str = Field(min_length=1)
    title: str = ""
    abstract: str = ""
    claims: str = ""
    filing_date: str = ""

    @property
    def point_id(self) -> str:
        """Deterministic Qdrant point id; Qdrant only accepts UUIDs or integers."""
        return patent_point_id(self.id)

    def embedding_text(self) -> str:
        return f"{self.title} {self.abstract} {self.claims}"


class ExtractionResult(BaseModel):
    records: list[PatentRecord] = Field(default_factory=list)
    skipped: int = 0


def patent_point_id(patent_id: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"patent_{patent_id}"))
