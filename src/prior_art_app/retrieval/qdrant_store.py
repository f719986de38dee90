"""Qdrant storage helpers."""

from __future__ import annotations

import logging
from typing import Sequence

from qdrant_client import QdrantClient
from qdrant_client.http import models as qmodels
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings
from prior_art_app.db.qdrant_client import get_qdrant_client
from prior_art_app.ingestion.schemas import PatentRecord

LOGGER = get_logger(__name__)

TRANSIENT_ERRORS = (UnexpectedResponse, ResponseHandlingException, ConnectionError, TimeoutError)


class QdrantStore:
    """Wrapper around Qdrant client for patent indexing and search."""

    def __init__(self, *, settings: AppSettings | None = None, client: QdrantClient | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = client or get_qdrant_client(self.settings)
        self.collection = self.settings.collection_name

    def collection_exists(self) -> bool:
        return self.client.collection_exists(collection_name=self.collection)

    def create_collection(self, vector_size: int) -> None:
        LOGGER.info(
            "Creating Qdrant collection",
            extra={"collection": self.collection, "vector_size": vector_size},
        )
        self.client.create_collection(
            collection_name=self.collection,
            vectors_config=qmodels.VectorParams(size=vector_size, distance=qmodels.Distance.COSINE),
        )

    def delete_collection(self) -> None:
        LOGGER.warning("Deleting Qdrant collection", extra={"collection": self.collection})
        self.client.delete_collection(collection_name=self.collection)

    def recreate_collection(self, vector_size: int) -> None:
        """Drop and create the collection. Only safe on a fresh ingestion run."""
        if self.collection_exists():
            self.delete_collection()
        self.create_collection(vector_size)

    def ensure_collection(self, vector_size: int) -> None:
        if not self.collection_exists():
            self.create_collection(vector_size)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=before_sleep_log(LOGGER, logging.WARNING),
        reraise=True,
    )
    def upsert(self, records: Sequence[PatentRecord], vectors: Sequence[Sequence[float]]) -> None:
        if not records:
            return
        if len(records) != len(vectors):
            raise ValueError(f"Got {len(records)} records but {len(vectors)} vectors")
        points = [
            qmodels.PointStruct(
                id=record.point_id,
                vector=list(vector),
                payload=record.model_dump(),
            )
            for record, vector in zip(records, vectors)
        ]
        LOGGER.debug(
            "Upserting points in Qdrant",
            extra={"collection": self.collection, "points": len(points)},
        )
        self.client.upsert(collection_name=self.collection, points=points, wait=True)

    def search(self, query_vector: Sequence[float], *, top_k: int = 5) -> list[qmodels.ScoredPoint]:
        response = self.client.query_points(
            collection_name=self.collection,
            query=list(query_vector),
            limit=top_k,
            with_vectors=False,
            with_payload=True,
        )
        return response.points

    def count(self) -> int:
        return self.client.count(collection_name=self.collection, exact=True).count
