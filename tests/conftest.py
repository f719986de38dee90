"""Shared fixtures: in-memory Qdrant, deterministic embedder, fake S3 and LLM."""

from __future__ import annotations

import hashlib
import os
from typing import Callable

# Required settings must exist before the API module builds its app at import time.
os.environ.setdefault("REPORT_BUCKET", "test-reports")
os.environ.setdefault("INTERNAL_AUTH_SECRET", "test-secret")
os.environ.setdefault("QDRANT_URL", ":memory:")
os.environ.setdefault("PRELOAD_SEARCH_CONTEXT", "false")

import numpy as np
import pytest
from botocore.exceptions import ClientError
from qdrant_client import QdrantClient

from prior_art_app.config.settings import AppSettings
from prior_art_app.context import IndexContext, ServiceContext
from prior_art_app.llm.embeddings import Embedder
from prior_art_app.llm.risk_scorer import RiskScorer
from prior_art_app.reports.report_store import ReportStore
from prior_art_app.retrieval.qdrant_store import QdrantStore

DIMENSION = 384


class HashingSentenceModel:
    """Bag-of-words hashing stand-in for a sentence-transformers model."""

    def __init__(self, dimension: int = DIMENSION) -> None:
        self.dimension = dimension
        self.calls: list[list[str]] = []

    def get_sentence_embedding_dimension(self) -> int:
        return self.dimension

    def encode(self, texts, batch_size=32, convert_to_numpy=True, normalize_embeddings=False):
        self.calls.append(list(texts))
        matrix = np.zeros((len(texts), self.dimension), dtype=np.float32)
        for row, text in enumerate(texts):
            for token in text.lower().split():
                bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % self.dimension
                matrix[row, bucket] += 1.0
            if not matrix[row].any():
                matrix[row, 0] = 1.0
        if normalize_embeddings:
            matrix /= np.linalg.norm(matrix, axis=1, keepdims=True)
        return matrix


class ScriptedGenerator:
    """Returns canned replies keyed by a substring of the prompt."""

    def __init__(self, replies: dict[str, str | Exception] | None = None, default: str | None = None) -> None:
        self.replies = replies or {}
        self.default = default if default is not None else '{"score": 50, "level": "Medium", "reason": "Partial overlap"}'
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for marker, reply in self.replies.items():
            if marker in prompt:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        return self.default


class InMemoryS3:
    """The three S3 calls the report store makes, backed by a dict."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], dict] = {}
        self.head_calls = 0

    def put_object(self, Bucket, Key, Body, ContentType, CacheControl=None):
        self.objects[(Bucket, Key)] = {"Body": Body, "ContentType": ContentType, "CacheControl": CacheControl}
        return {"ETag": '"etag"'}

    def head_object(self, Bucket, Key):
        self.head_calls += 1
        stored = self.objects.get((Bucket, Key))
        if stored is None:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {"ContentLength": len(stored["Body"]), "ContentType": stored["ContentType"]}

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn):
        return f"https://{Params['Bucket']}.s3.test/{Params['Key']}?X-Amz-Expires={ExpiresIn}"


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        report_bucket="test-reports",
        internal_auth_secret="test-secret",
        qdrant_url=":memory:",
        collection_name="test_patents",
        corpus_dir=tmp_path / "corpus",
        scorer_max_workers=3,
    )


@pytest.fixture
def sentence_model() -> HashingSentenceModel:
    return HashingSentenceModel()


@pytest.fixture
def embedder(settings, sentence_model) -> Embedder:
    return Embedder(settings, model=sentence_model)


@pytest.fixture
def qdrant_client() -> QdrantClient:
    client = QdrantClient(location=":memory:")
    yield client
    client.close()


@pytest.fixture
def store(settings, qdrant_client) -> QdrantStore:
    return QdrantStore(settings=settings, client=qdrant_client)


@pytest.fixture
def index_context(settings, embedder, store) -> IndexContext:
    return IndexContext(settings=settings, embedder=embedder, store=store)


@pytest.fixture
def s3() -> InMemoryS3:
    return InMemoryS3()


@pytest.fixture
def report_store(settings, s3) -> ReportStore:
    return ReportStore(settings=settings, client=s3)


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def service_context(settings, embedder, store, generator, report_store) -> ServiceContext:
    return ServiceContext(
        settings=settings,
        embedder=embedder,
        store=store,
        scorer=RiskScorer(generator, settings),
        reports=report_store,
    )


@pytest.fixture
def patent_xml() -> Callable[..., str]:
    def build(
        doc_number: str,
        title: str = "Widget",
        abstract: str = "A widget.",
        claims: str = "<claim id=\"CLM-00001\" num=\"00001\"><claim-text>A widget.</claim-text></claim>",
        filing_date: str = "20200101",
        root: str = "us-patent-grant",
    ) -> str:
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<!DOCTYPE {root} SYSTEM "{root}-v45.dtd" [ ]>\n'
            f"<{root} lang=\"EN\">\n"
            "<us-bibliographic-data-grant>\n"
            "<publication-reference><document-id><country>US</country>"
            f"<doc-number>{doc_number}</doc-number><kind>B2</kind></document-id></publication-reference>\n"
            "<application-reference appl-type=\"utility\"><document-id><country>US</country>"
            f"<doc-number>APP{doc_number}</doc-number><date>{filing_date}</date></document-id></application-reference>\n"
            f"<invention-title id=\"d2e43\">{title}</invention-title>\n"
            "</us-bibliographic-data-grant>\n"
            f"<abstract id=\"abstract\"><p id=\"p-0001\">{abstract}</p></abstract>\n"
            f"<claims id=\"claims\">{claims}</claims>\n"
            f"</{root}>\n"
        )

    return build
