"""Liveness and readiness probes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from prior_art_app.api.dependencies import get_service_context
from prior_art_app.config.settings import get_settings
from prior_art_app.context import ServiceContext


router = APIRouter(tags=["health"])


@router.get("/healthz", summary="Liveness probe")
async def healthcheck() -> dict[str, str]:
    """Answer without touching Qdrant, the model or the bucket."""
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.environment,
        "collection": settings.collection_name,
    }


@router.get("/readyz", summary="Readiness probe")
def readiness(context: ServiceContext = Depends(get_service_context)) -> JSONResponse:
    store = context.store
    if not store.collection_exists():
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "collection": store.collection, "reason": "collection missing"},
        )
    return JSONResponse(content={"status": "ready", "collection": store.collection, "points": store.count()})
