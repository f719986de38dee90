"""Job creation and status polling endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator

from prior_art_app.api.dependencies import get_orchestrator
from prior_art_app.api.routers.search import CamelModel
from prior_art_app.jobs.orchestrator import JobOrchestrator

router = APIRouter(tags=["jobs"])


class CreateJobRequest(CamelModel):
    user_description: str = Field(min_length=1)
    top_k: int | None = Field(default=None, ge=1, le=1000)

    @field_validator("user_description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("userDescription must not be blank")
        return value


class CreateJobResponse(CamelModel):
    success: bool = True
    job_id: uuid.UUID


class StatusResponse(CamelModel):
    status: str
    file_name: str
    download_url: str | None = None
    file_size: int | None = None
    message: str


@router.post("/jobs", response_model=CreateJobResponse, status_code=202)
def create_job(
    payload: CreateJobRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> CreateJobResponse:
    job = orchestrator.create_job(payload.user_description, payload.top_k)
    return CreateJobResponse(job_id=job.job_id)


@router.get("/status", response_model=StatusResponse, response_model_exclude_none=True)
def get_status(
    job_id: uuid.UUID = Query(alias="jobId"),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> StatusResponse:
    status = orchestrator.get_status(str(job_id))
    return StatusResponse(**status.model_dump())
