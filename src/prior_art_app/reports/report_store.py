"""S3-backed storage for search reports.

The bucket doubles as the job ledger: a job is complete exactly when its
report object exists, so every method here is either a single write or a
side-effect-free read.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings
from prior_art_app.errors import ReportStoreError
from prior_art_app.reports.csv_report import REPORT_CONTENT_TYPE, report_key

LOGGER = get_logger(__name__)

MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass(frozen=True)
class ReportObject:
    key: str
    size: int


def build_s3_client(settings: AppSettings) -> Any:
    kwargs: dict[str, Any] = {"region_name": settings.aws_region}
    if settings.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.s3_endpoint_url
    return boto3.client("s3", **kwargs)


class ReportStore:
    """Write and look up ``{job_id}_report.csv`` objects."""

    def __init__(self, *, settings: AppSettings | None = None, client: Any | None = None) -> None:
        self.settings = settings or get_settings()
        self.bucket = self.settings.report_bucket
        self.client = client or build_s3_client(self.settings)

    def put_report(self, job_id: str, body: str) -> ReportObject:
        key = report_key(job_id)
        data = body.encode("utf-8")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=REPORT_CONTENT_TYPE,
                CacheControl="no-cache",
            )
        except (ClientError, BotoCoreError) as exc:
            raise ReportStoreError(f"Failed to upload s3://{self.bucket}/{key}: {exc}") from exc

        LOGGER.info(
            "Report uploaded",
            extra={"job_id": job_id, "bucket": self.bucket, "key": key, "bytes": len(data)},
        )
        return ReportObject(key=key, size=len(data))

    def find_report(self, job_id: str) -> ReportObject | None:
        """Return object metadata, or ``None`` while the job is still pending."""
        key = report_key(job_id)
        try:
            response = self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in MISSING_CODES:
                return None
            raise ReportStoreError(f"Failed to inspect s3://{self.bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise ReportStoreError(f"Failed to inspect s3://{self.bucket}/{key}: {exc}") from exc
        return ReportObject(key=key, size=int(response.get("ContentLength", 0)))

    def signed_url(self, key: str) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.settings.signed_url_ttl_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise ReportStoreError(f"Failed to sign s3://{self.bucket}/{key}: {exc}") from exc
