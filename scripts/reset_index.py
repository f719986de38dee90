"""Utility to drop the Qdrant collection and the ingestion checkpoint."""

from __future__ import annotations

import argparse
from pathlib import Path

from prior_art_app.config.logging import configure_logging, get_logger
from prior_art_app.config.settings import get_settings
from prior_art_app.ingestion.state import StateStore
from prior_art_app.retrieval.qdrant_store import QdrantStore

configure_logging()
LOGGER = get_logger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Reset the patent index")
    parser.add_argument("--corpus", type=Path, default=None, help="Corpus directory holding the checkpoint")
    parser.add_argument("--force", action="store_true", help="Skip confirmation prompt")
    args = parser.parse_args()

    settings = get_settings()
    state_store = StateStore(settings.state_path(args.corpus))
    store = QdrantStore(settings=settings)

    if not args.force:
        message = (
            f"This will drop collection '{store.collection}' and delete {state_store.path}. Proceed? [y/N] "
        )
        if input(message).strip().lower() not in {"y", "yes"}:
            print("Aborted.")
            return

    if store.collection_exists():
        store.delete_collection()
    state_store.clear()
    LOGGER.warning(
        "Index reset",
        extra={"collection": store.collection, "state_file": str(state_store.path)},
    )
    print("Collection dropped and checkpoint cleared; the next ingestion run starts fresh.")


if __name__ == "__main__":
    main()
