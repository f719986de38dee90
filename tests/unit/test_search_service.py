from __future__ import annotations

import threading
import time

import pytest

from prior_art_app.errors import SearchBackendError
from prior_art_app.ingestion.schemas import PatentRecord
from prior_art_app.reports.csv_report import parse_report_csv, report_key
from prior_art_app.retrieval.model import RiskLevel, ScoredCandidate
from prior_art_app.retrieval.service import RiskSearchService, rank_candidates

PATENTS = [
    PatentRecord(id="US100", title="Solar roof shingle", abstract="Roof shingle with photovoltaic cell"),
    PatentRecord(id="US200", title="Bicycle lock", abstract="Lock with hardened shackle"),
    PatentRecord(id="US300", title="Solar water heater", abstract="Roof mounted solar collector"),
    PatentRecord(id="US400", title="Coffee grinder", abstract="Burr grinder with timer"),
]


@pytest.fixture
def indexed_context(service_context):
    store = service_context.store
    store.recreate_collection(service_context.embedder.vector_size())
    store.upsert(PATENTS, service_context.embedder.embed_many([p.embedding_text() for p in PATENTS]))
    return service_context


def test_results_are_sorted_by_score_with_failures_last(indexed_context, generator) -> None:
    generator.replies = {
        "PATENT: Solar roof shingle": '{"score": 91, "level": "High", "reason": "Same shingle"}',
        "PATENT: Bicycle lock": "not json",
        "PATENT: Solar water heater": '```json\n{"score": 35, "level": "Low", "reason": "Different use"}\n```',
        "PATENT: Coffee grinder": '{"score": 5, "level": "Low", "reason": "Unrelated"}',
    }

    outcome = RiskSearchService(indexed_context).search("Roof shingle that generates solar power", top_k=4)

    assert outcome.count == 4
    assert [result.id for result in outcome.results] == ["US100", "US300", "US400", "US200"]
    assert [result.score for result in outcome.results] == [91, 35, 5, None]
    assert outcome.duration_ms >= 0


def test_one_scorer_failure_keeps_the_batch(indexed_context, generator) -> None:
    generator.replies = {"PATENT: Coffee grinder": TimeoutError("provider throttled")}

    outcome = RiskSearchService(indexed_context).search("solar roof", top_k=4)

    assert outcome.count == 4
    failed = [result for result in outcome.results if result.score is None]
    assert len(failed) == 1
    assert (failed[0].id, failed[0].level, failed[0].reason) == ("US400", RiskLevel.UNKNOWN, "Failed")
    assert outcome.results[-1].id == "US400"


def test_retrieval_returns_nearest_payloads(indexed_context) -> None:
    candidates = RiskSearchService(indexed_context).retrieve("bicycle lock shackle", top_k=1)

    assert [candidate.id for candidate in candidates] == ["US200"]
    assert candidates[0].title == "Bicycle lock"
    assert candidates[0].similarity is not None


def test_scoring_concurrency_is_bounded(indexed_context, settings) -> None:
    active = 0
    peak = 0
    lock = threading.Lock()

    class SlowGenerator:
        def generate(self, prompt: str) -> str:
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.05)
            with lock:
                active -= 1
            return '{"score": 10, "level": "Low", "reason": "ok"}'

    settings.scorer_max_workers = 2
    indexed_context.scorer.generator = SlowGenerator()

    RiskSearchService(indexed_context).search("solar", top_k=4)

    assert peak <= 2


def test_backend_failure_is_fatal_for_the_request(service_context) -> None:
    # Collection was never created, so the vector query fails.
    with pytest.raises(SearchBackendError):
        RiskSearchService(service_context).search("anything", top_k=3)


def test_run_job_publishes_report(indexed_context, s3, settings) -> None:
    outcome = RiskSearchService(indexed_context).run_job("job-123", "solar roof", top_k=2)

    stored = s3.objects[(settings.report_bucket, report_key("job-123"))]
    assert stored["ContentType"] == "text/csv"
    rows = parse_report_csv(stored["Body"].decode("utf-8"))
    assert len(rows) == outcome.count == 2
    assert rows[0]["Title"] == outcome.results[0].title


def test_rank_candidates_is_stable_for_ties() -> None:
    candidates = [
        ScoredCandidate(id="a", score=None),
        ScoredCandidate(id="b", score=50),
        ScoredCandidate(id="c", score=80),
        ScoredCandidate(id="d", score=50),
        ScoredCandidate(id="e", score=None),
    ]

    assert [candidate.id for candidate in rank_candidates(candidates)] == ["c", "b", "d", "a", "e"]
