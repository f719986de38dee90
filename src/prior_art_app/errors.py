"""Exception hierarchy shared by ingestion, search and job handling."""

from __future__ import annotations


class PriorArtError(Exception):
    """Base class for application errors."""


class EmbedderUnavailableError(PriorArtError):
    """The embedding model could not be loaded; nothing can be embedded."""


class EmbeddingError(PriorArtError):
    """Encoding failed for a loaded model (steady-state failure)."""


class SearchBackendError(PriorArtError):
    """The embedder or the vector index failed while serving a search."""


class ReportStoreError(PriorArtError):
    """The object store rejected a read or write other than a missing key."""
