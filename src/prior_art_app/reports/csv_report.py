"""CSV serialization of scored search results."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from prior_art_app.retrieval.model import ScoredCandidate

REPORT_HEADERS = ["Risk Score", "Risk Level", "Title", "Abstract", "Filing Date", "Reasoning"]
REPORT_CONTENT_TYPE = "text/csv"


def report_key(job_id: str) -> str:
    return f"{job_id}_report.csv"


def _format_score(score: float | None) -> str:
    if score is None:
        return ""
    return str(int(score)) if float(score).is_integer() else str(score)


def candidates_to_csv(candidates: Sequence[ScoredCandidate]) -> str:
    """Render one fully quoted row per candidate under a fixed header."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(REPORT_HEADERS)
    for candidate in candidates:
        writer.writerow(
            [
                _format_score(candidate.score),
                candidate.level.value,
                candidate.title,
                candidate.abstract,
                candidate.filing_date,
                candidate.reason,
            ]
        )
    return buffer.getvalue()


def parse_report_csv(text: str) -> list[dict[str, str]]:
    reader = csv.DictReader(io.StringIO(text, newline=""))
    if reader.fieldnames != REPORT_HEADERS:
        raise ValueError(f"Unexpected report header: {reader.fieldnames}")
    return [dict(row) for row in reader]
