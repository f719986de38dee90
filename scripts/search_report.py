"""Run a prior-art search locally and write the CSV report to disk."""

from __future__ import annotations

import argparse
from pathlib import Path
from textwrap import shorten

from prior_art_app.config.logging import configure_logging, get_logger
from prior_art_app.context import build_service_context
from prior_art_app.reports.csv_report import candidates_to_csv
from prior_art_app.retrieval.service import RiskSearchService

configure_logging()
LOGGER = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("description", help="Invention description, or @path to read it from a file")
    parser.add_argument("--top-k", type=int, default=10, help="Number of patents to score")
    parser.add_argument("--output", type=Path, default=Path("report.csv"), help="CSV destination")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    description = args.description
    if description.startswith("@"):
        description = Path(description[1:]).read_text(encoding="utf-8")

    service = RiskSearchService(build_service_context())
    outcome = service.search(description, args.top_k)

    args.output.write_text(candidates_to_csv(outcome.results), encoding="utf-8")
    for idx, result in enumerate(outcome.results, start=1):
        score = "n/a" if result.score is None else f"{result.score:g}"
        print(f"  {idx:02d}. [{score:>4} {result.level.value:<7}] {shorten(result.title, width=90, placeholder='...')}")
    print(f"\n{outcome.count} results in {outcome.duration_ms} ms -> {args.output}")


if __name__ == "__main__":
    main()
