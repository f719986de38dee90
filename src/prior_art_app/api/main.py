"""FastAPI application setup."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from prior_art_app.api.dependencies import get_orchestrator, get_service_context
from prior_art_app.api.routers import health, jobs, search
from prior_art_app.config.logging import build_logging_config, configure_logging, get_logger
from prior_art_app.config.settings import AppSettings, get_settings
from prior_art_app.errors import ReportStoreError, SearchBackendError

LOGGER = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    if settings.preload_search_context:
        # Embedder or index failures abort startup instead of the first request.
        get_service_context()
    yield
    if get_orchestrator.cache_info().currsize:
        get_orchestrator().dispatcher.shutdown(wait=False)


def create_app() -> FastAPI:
    """Application factory to wire routes and dependencies."""
    settings: AppSettings = get_settings()
    configure_logging(build_logging_config(settings.log_format, settings.log_level))

    app = FastAPI(
        title="Prior Art Search Service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(jobs.router)
    app.include_router(search.router)

    @app.exception_handler(SearchBackendError)
    async def handle_search_backend_error(request: Request, exc: SearchBackendError) -> JSONResponse:
        LOGGER.error("Search backend unavailable", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse(status_code=502, content={"error": "Search backend unavailable"})

    @app.exception_handler(ReportStoreError)
    async def handle_report_store_error(request: Request, exc: ReportStoreError) -> JSONResponse:
        LOGGER.error("Report storage unavailable", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse(status_code=502, content={"error": "Report storage unavailable"})

    @app.get("/config", include_in_schema=False)
    def show_runtime_configuration() -> dict[str, str | int | bool]:
        """Return non-sensitive runtime settings for smoke testing."""
        return settings.snapshot()

    return app


app = create_app()
