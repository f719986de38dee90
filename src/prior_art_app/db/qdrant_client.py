"""Qdrant client utilities."""

from __future__ import annotations

from functools import lru_cache

from qdrant_client import QdrantClient

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings

LOGGER = get_logger(__name__)

IN_MEMORY_LOCATION = ":memory:"


def _build_client(url: str, api_key: str | None) -> QdrantClient:
    if url == IN_MEMORY_LOCATION:
        return QdrantClient(location=IN_MEMORY_LOCATION)
    if api_key:
        return QdrantClient(url=url, api_key=api_key)
    return QdrantClient(url=url)


@lru_cache(maxsize=1)
def _cached_qdrant_client(url: str, api_key: str | None) -> QdrantClient:
    return _build_client(url, api_key)


def get_qdrant_client(settings: AppSettings | None = None) -> QdrantClient:
    cfg = settings or get_settings()
    api_key = cfg.qdrant_api_key if cfg.use_qdrant_cloud else None

    if cfg.qdrant_url == IN_MEMORY_LOCATION:
        LOGGER.info("Using in-memory Qdrant")
    elif cfg.use_qdrant_cloud:
        LOGGER.info("Connecting to Qdrant Cloud", extra={"url": cfg.sanitize_uri(cfg.qdrant_url)})
    else:
        LOGGER.info("Connecting to local Qdrant", extra={"url": cfg.qdrant_url})

    if settings is None:
        return _cached_qdrant_client(cfg.qdrant_url, api_key)
    return _build_client(cfg.qdrant_url, api_key)
