"""Asynchronous search jobs tracked purely through the report bucket."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings
from prior_art_app.jobs.dispatcher import JobDispatcher
from prior_art_app.reports.csv_report import report_key
from prior_art_app.reports.report_store import ReportStore

LOGGER = get_logger(__name__)


class SearchJob(BaseModel):
    job_id: uuid.UUID
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    user_description: str


class JobStatus(BaseModel):
    status: Literal["pending", "completed"]
    file_name: str
    download_url: str | None = None
    file_size: int | None = None
    message: str


class JobOrchestrator:
    """Create jobs without waiting on them and answer status polls.

    Pending means the report object does not exist yet; completed means it
    does. Nothing else is stored, so status checks are safe to repeat.
    """

    def __init__(
        self,
        reports: ReportStore,
        dispatcher: JobDispatcher,
        settings: AppSettings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.reports = reports
        self.dispatcher = dispatcher

    def create_job(self, user_description: str, top_k: int | None = None) -> SearchJob:
        job = SearchJob(job_id=uuid.uuid4(), user_description=user_description)
        self.dispatcher.dispatch(str(job.job_id), user_description, top_k or self.settings.default_top_k)
        LOGGER.info("Created search job", extra={"job_id": str(job.job_id)})
        return job

    def get_status(self, job_id: str) -> JobStatus:
        report = self.reports.find_report(job_id)
        if report is None:
            return JobStatus(
                status="pending",
                file_name=report_key(job_id),
                message="Patent search is still in progress",
            )

        return JobStatus(
            status="completed",
            file_name=report.key,
            download_url=self.reports.signed_url(report.key),
            file_size=report.size,
            message="Patent search completed successfully",
        )
