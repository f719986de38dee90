"""Search result models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field


class RiskLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    UNKNOWN = "Unknown"


class ScoredCandidate(BaseModel):
    id: str
    title: str = ""
    abstract: str = ""
    filing_date: str = ""
    score: float | None = None
    level: RiskLevel = RiskLevel.UNKNOWN
    reason: str = ""
    similarity: float | None = Field(default=None, description="Cosine similarity from the vector index")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], similarity: float | None = None) -> "ScoredCandidate":
        return cls(
            id=str(payload.get("id", "")),
            title=payload.get("title") or "",
            abstract=payload.get("abstract") or "",
            filing_date=payload.get("filing_date") or "",
            similarity=similarity,
        )


class SearchOutcome(BaseModel):
    results: list[ScoredCandidate]
    count: int
    duration_ms: int
