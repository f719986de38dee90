"""Internal search endpoint triggered by the job orchestrator."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from prior_art_app.api.dependencies import get_search_service, require_internal_token
from prior_art_app.config.logging import get_logger
from prior_art_app.retrieval.model import RiskLevel, ScoredCandidate
from prior_art_app.retrieval.service import RiskSearchService

LOGGER = get_logger(__name__)

router = APIRouter(prefix="/search", tags=["search"], dependencies=[Depends(require_internal_token)])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchRequest(CamelModel):
    user_description: str = Field(min_length=1, description="Free-text invention description")
    top_k: int | None = Field(default=None, ge=1, le=1000, description="Number of patents to score")
    job_id: uuid.UUID | None = Field(default=None, description="Write the CSV report for this job")

    @field_validator("user_description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("userDescription must not be blank")
        return value


class CandidateItem(CamelModel):
    id: str
    title: str
    abstract: str
    filing_date: str
    score: float | None
    level: RiskLevel
    reason: str

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> "CandidateItem":
        return cls(
            id=candidate.id,
            title=candidate.title,
            abstract=candidate.abstract,
            filing_date=candidate.filing_date,
            score=candidate.score,
            level=candidate.level,
            reason=candidate.reason,
        )


class SearchResponse(CamelModel):
    success: bool = True
    job_id: uuid.UUID | None = None
    count: int
    duration_ms: int
    results: list[CandidateItem]


@router.post("", response_model=SearchResponse)
def run_search(
    payload: SearchRequest,
    service: RiskSearchService = Depends(get_search_service),
) -> SearchResponse:
    if payload.job_id is None:
        outcome = service.search(payload.user_description, payload.top_k)
    else:
        LOGGER.info("Running search job", extra={"job_id": str(payload.job_id)})
        outcome = service.run_job(str(payload.job_id), payload.user_description, payload.top_k)

    return SearchResponse(
        job_id=payload.job_id,
        count=outcome.count,
        duration_ms=outcome.duration_ms,
        results=[CandidateItem.from_candidate(candidate) for candidate in outcome.results],
    )
