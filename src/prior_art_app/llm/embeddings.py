"""Embedding utilities."""

from __future__ import annotations

from typing import Any, Sequence

from sentence_transformers import SentenceTransformer

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings
from prior_art_app.errors import EmbedderUnavailableError, EmbeddingError

LOGGER = get_logger(__name__)


class Embedder:
    """Wraps a sentence-transformers model for patent and query embedding.

    Ingestion and search must share one instance (or at least one model name
    and truncation rule) so that stored and query vectors live in the same
    space.
    """

    def __init__(self, settings: AppSettings | None = None, *, model: Any | None = None) -> None:
        self.settings = settings or get_settings()
        self.max_chars = self.settings.embedding_max_chars
        self.model = model if model is not None else _load_model(self.settings.embedding_model)

        dimension = self.vector_size()
        if dimension != self.settings.embedding_dimension:
            raise EmbedderUnavailableError(
                f"Model {self.settings.embedding_model} produces {dimension}-d vectors, "
                f"expected {self.settings.embedding_dimension}"
            )
        LOGGER.info(
            "Embedder ready",
            extra={"model": self.settings.embedding_model, "dimension": dimension},
        )

    def truncate(self, text: str) -> str:
        return text[: self.max_chars]

    def embed(self, text: str) -> list[float]:
        return self.embed_many([text])[0]

    def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """Encode a batch in a single model call; vectors are L2-normalised."""
        if not texts:
            return []
        truncated = [self.truncate(text) for text in texts]
        try:
            vectors = self.model.encode(
                truncated,
                batch_size=self.settings.embedding_batch_size,
                convert_to_numpy=True,
                normalize_embeddings=True,
            )
        except Exception as exc:
            raise EmbeddingError(f"Failed to encode batch of {len(texts)} texts: {exc}") from exc
        LOGGER.debug("Encoded batch", extra={"size": len(texts)})
        return [vector.tolist() for vector in vectors]

    def vector_size(self) -> int:
        """Get the dimensionality of the embedding vectors."""
        return int(self.model.get_sentence_embedding_dimension())


def _load_model(model_name: str) -> SentenceTransformer:
    LOGGER.info("Loading embedding model", extra={"model": model_name})
    try:
        return SentenceTransformer(model_name)
    except Exception as exc:
        raise EmbedderUnavailableError(f"Unable to load embedding model {model_name}: {exc}") from exc
