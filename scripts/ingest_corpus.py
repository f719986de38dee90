"""CLI entrypoint for indexing a USPTO XML corpus into Qdrant."""

from __future__ import annotations

from pathlib import Path

import click

from prior_art_app.config.logging import build_logging_config, configure_logging, get_logger
from prior_art_app.config.settings import get_settings
from prior_art_app.context import build_index_context
from prior_art_app.ingestion.pipeline import IngestionPipeline

LOGGER = get_logger(__name__)


@click.command()
@click.argument("corpus", type=click.Path(path_type=Path, file_okay=False), required=False)
@click.option("--limit", type=int, default=None, help="Limit number of new files processed this run")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
def ingest_corpus(corpus: Path | None, limit: int | None, json_logs: bool) -> None:
    """Embed and index every patent XML file under CORPUS (resumable)."""
    settings = get_settings()
    configure_logging(build_logging_config("json" if json_logs else settings.log_format, settings.log_level))

    corpus_dir = corpus or settings.corpus_dir
    if not corpus_dir.is_dir():
        raise click.BadParameter(f"Corpus directory not found: {corpus_dir}")

    context = build_index_context(settings)
    pipeline = IngestionPipeline(context, corpus_dir=corpus_dir)
    summary = pipeline.run(limit=limit)

    click.echo(
        f"Processed {summary.files_processed} / {summary.files_found} files "
        f"({summary.files_skipped} already done), upserted {summary.records_upserted} patents."
    )
    for failed in summary.failed_files:
        click.echo(f"Warning: failed to ingest {failed}; it will be retried next run", err=True)


if __name__ == "__main__":
    ingest_corpus()
