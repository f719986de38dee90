"""Retrieval and risk scoring for invention descriptions."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import List

from prior_art_app.config.logging import get_logger
from prior_art_app.context import ServiceContext
from prior_art_app.errors import SearchBackendError
from prior_art_app.reports.csv_report import candidates_to_csv
from prior_art_app.retrieval.model import ScoredCandidate, SearchOutcome

LOGGER = get_logger(__name__)


def rank_candidates(candidates: List[ScoredCandidate]) -> List[ScoredCandidate]:
    """Highest score first; unscored candidates keep their order at the end."""
    scored = [candidate for candidate in candidates if candidate.score is not None]
    unscored = [candidate for candidate in candidates if candidate.score is None]
    scored.sort(key=lambda candidate: candidate.score, reverse=True)
    return scored + unscored


class RiskSearchService:
    """Embed a description, fetch the nearest patents and score each one."""

    def __init__(self, context: ServiceContext) -> None:
        self.context = context
        self.settings = context.settings

    def retrieve(self, user_description: str, top_k: int) -> List[ScoredCandidate]:
        try:
            vector = self.context.embedder.embed(user_description)
            hits = self.context.store.search(vector, top_k=top_k)
        except Exception as exc:
            LOGGER.error("Search backend failure", extra={"error": str(exc)})
            raise SearchBackendError(f"Vector search unavailable: {exc}") from exc

        return [ScoredCandidate.from_payload(hit.payload or {}, similarity=hit.score) for hit in hits]

    def score_candidates(self, user_description: str, candidates: List[ScoredCandidate]) -> List[ScoredCandidate]:
        if not candidates:
            return []
        workers = min(self.settings.scorer_max_workers, len(candidates))
        scorer = self.context.scorer
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="risk-scorer") as pool:
            return list(pool.map(lambda candidate: scorer.score(user_description, candidate), candidates))

    def search(self, user_description: str, top_k: int | None = None) -> SearchOutcome:
        limit = top_k or self.settings.default_top_k
        started = time.monotonic()
        LOGGER.info("Starting search", extra={"top_k": limit})

        candidates = self.retrieve(user_description, limit)
        LOGGER.info(
            "Retrieved candidates",
            extra={"count": len(candidates), "elapsed_ms": int((time.monotonic() - started) * 1000)},
        )

        ranked = rank_candidates(self.score_candidates(user_description, candidates))
        duration_ms = int((time.monotonic() - started) * 1000)
        failed = sum(1 for candidate in ranked if candidate.score is None)
        LOGGER.info(
            "Search complete",
            extra={"count": len(ranked), "unscored": failed, "duration_ms": duration_ms},
        )
        return SearchOutcome(results=ranked, count=len(ranked), duration_ms=duration_ms)

    def run_job(self, job_id: str, user_description: str, top_k: int | None = None) -> SearchOutcome:
        """Search and publish the CSV report; the upload completes the job."""
        outcome = self.search(user_description, top_k)
        self.context.reports.put_report(job_id, candidates_to_csv(outcome.results))
        LOGGER.info("Search job finished", extra={"job_id": job_id, "count": outcome.count})
        return outcome
