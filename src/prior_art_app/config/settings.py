"""Application configuration via Pydantic settings."""

from functools import lru_cache
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parents[3]
ENV_FILE = ROOT_DIR / ".env"


class AppSettings(BaseSettings):
    """Global application configuration."""

    environment: str = Field(default="development")
    log_format: str = Field(alias="LOG_FORMAT", default="console")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    llm_provider: str = Field(alias="LLM_PROVIDER", default="ollama")
    ollama_model: str = Field(alias="OLLAMA_MODEL", default="llama3.2")
    ollama_url: str = Field(alias="OLLAMA_URL", default="http://localhost:11434")
    openai_api_key: str | None = Field(alias="OPENAI_API_KEY", default=None)
    openai_model_id: str = Field(alias="OPENAI_MODEL_ID", default="gpt-4o-mini")

    qdrant_url: str = Field(alias="QDRANT_URL", default="http://localhost:6333")
    qdrant_api_key: str | None = Field(alias="QDRANT_APIKEY", default=None)
    use_qdrant_cloud: bool = Field(alias="USE_QDRANT_CLOUD", default=False)
    collection_name: str = Field(alias="COLLECTION_NAME", default="uspto_patents")

    embedding_model: str = Field(alias="EMBEDDING_MODEL", default="sentence-transformers/all-MiniLM-L6-v2")
    embedding_dimension: int = Field(alias="EMBEDDING_DIMENSION", default=384)
    embedding_max_chars: int = Field(alias="EMBEDDING_MAX_CHARS", default=5000)
    embedding_batch_size: int = Field(default=16)

    corpus_dir: Path = Field(alias="CORPUS_DIR", default=Path("uspto-data"))
    corpus_extension: str = Field(alias="CORPUS_EXTENSION", default=".xml")
    state_file_name: str = Field(alias="STATE_FILE_NAME", default=".ingestion_state.json")
    upsert_batch_size: int = Field(alias="UPSERT_BATCH_SIZE", default=50, ge=1)
    checkpoint_interval: int = Field(alias="CHECKPOINT_INTERVAL", default=100, ge=1)

    scorer_max_workers: int = Field(alias="SCORER_MAX_WORKERS", default=4, ge=1)
    scorer_description_chars: int = Field(alias="SCORER_DESCRIPTION_CHARS", default=1000)
    default_top_k: int = Field(alias="DEFAULT_TOP_K", default=100, ge=1)

    report_bucket: str = Field(alias="REPORT_BUCKET")
    aws_region: str = Field(alias="AWS_REGION", default="us-east-1")
    s3_endpoint_url: str | None = Field(alias="S3_ENDPOINT_URL", default=None)
    signed_url_ttl_seconds: int = Field(alias="SIGNED_URL_TTL_SECONDS", default=3600)

    search_service_url: str = Field(alias="SEARCH_SERVICE_URL", default="http://localhost:8080")
    internal_auth_secret: str = Field(alias="INTERNAL_AUTH_SECRET")
    dispatch_timeout_seconds: float = Field(alias="DISPATCH_TIMEOUT_SECONDS", default=300.0)
    preload_search_context: bool = Field(alias="PRELOAD_SEARCH_CONTEXT", default=True)

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        extra="ignore",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    def state_path(self, corpus_dir: Path | None = None) -> Path:
        """Checkpoint file location for ``corpus_dir`` (the configured corpus by default)."""
        return Path(corpus_dir or self.corpus_dir) / self.state_file_name

    def snapshot(self) -> dict[str, Any]:
        """Return a sanitized dictionary of public settings."""
        return {
            "environment": self.environment,
            "llm_provider": self.llm_provider,
            "qdrant_url": self.sanitize_uri(self.qdrant_url),
            "collection_name": self.collection_name,
            "embedding_model": self.embedding_model,
            "embedding_dimension": self.embedding_dimension,
            "report_bucket": self.report_bucket,
            "search_service_url": self.sanitize_uri(self.search_service_url),
            "scorer_max_workers": self.scorer_max_workers,
        }

    @staticmethod
    def sanitize_uri(uri: str) -> str:
        """Remove credentials from connection URIs for public display."""
        parsed = urlparse(uri)
        netloc = parsed.netloc.split("@")[-1] if parsed.netloc else uri
        return f"{parsed.scheme}://{netloc}" if parsed.scheme else netloc


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Load settings once per process."""
    return AppSettings()
