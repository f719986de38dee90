"""Process-scoped handles built once at startup and passed explicitly."""

from __future__ import annotations

from dataclasses import dataclass

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings
from prior_art_app.llm.embeddings import Embedder
from prior_art_app.llm.generator import build_generator
from prior_art_app.llm.risk_scorer import RiskScorer
from prior_art_app.reports.report_store import ReportStore
from prior_art_app.retrieval.qdrant_store import QdrantStore

LOGGER = get_logger(__name__)


@dataclass
class IndexContext:
    """What ingestion needs: the embedder and the vector index."""

    settings: AppSettings
    embedder: Embedder
    store: QdrantStore


@dataclass
class ServiceContext(IndexContext):
    """What the search service adds on top: a scorer and the report bucket."""

    scorer: RiskScorer
    reports: ReportStore


def build_index_context(settings: AppSettings | None = None) -> IndexContext:
    cfg = settings or get_settings()
    embedder = Embedder(cfg)
    store = QdrantStore(settings=cfg)
    return IndexContext(settings=cfg, embedder=embedder, store=store)


def build_service_context(settings: AppSettings | None = None) -> ServiceContext:
    cfg = settings or get_settings()
    base = build_index_context(cfg)
    context = ServiceContext(
        settings=cfg,
        embedder=base.embedder,
        store=base.store,
        scorer=RiskScorer(build_generator(cfg), cfg),
        reports=ReportStore(settings=cfg),
    )
    LOGGER.info("Service context ready", extra=cfg.snapshot())
    return context
