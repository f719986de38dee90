"""FastAPI dependency providers."""

from __future__ import annotations

import hmac
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status

from prior_art_app.config.settings import AppSettings, get_settings
from prior_art_app.context import ServiceContext, build_service_context
from prior_art_app.jobs.dispatcher import AUTH_HEADER, JobDispatcher
from prior_art_app.jobs.orchestrator import JobOrchestrator
from prior_art_app.reports.report_store import ReportStore
from prior_art_app.retrieval.service import RiskSearchService


@lru_cache(maxsize=1)
def get_service_context() -> ServiceContext:
    return build_service_context(get_settings())


def get_search_service() -> RiskSearchService:
    return RiskSearchService(get_service_context())


@lru_cache(maxsize=1)
def get_orchestrator() -> JobOrchestrator:
    settings = get_settings()
    return JobOrchestrator(ReportStore(settings=settings), JobDispatcher(settings), settings)


def require_internal_token(
    token: str | None = Header(default=None, alias=AUTH_HEADER),
    settings: AppSettings = Depends(get_settings),
) -> None:
    if token is None or not hmac.compare_digest(token, settings.internal_auth_secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid internal auth token")
