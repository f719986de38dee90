"""Fire-and-forget trigger for the internal search endpoint."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any

import httpx

from prior_art_app.config.logging import get_logger
from prior_art_app.config.settings import AppSettings, get_settings

LOGGER = get_logger(__name__)

AUTH_HEADER = "X-Internal-Auth-Token"
DISPATCH_WORKERS = 8


class JobDispatcher:
    """Post search jobs from a background pool; failures are only logged.

    The caller never learns whether dispatch worked. A job whose trigger
    failed stays pending forever from the status endpoint's point of view.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.Client | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or httpx.Client(timeout=self.settings.dispatch_timeout_seconds)
        self.executor = executor or ThreadPoolExecutor(
            max_workers=DISPATCH_WORKERS, thread_name_prefix="job-dispatch"
        )
        self.search_url = self.settings.search_service_url.rstrip("/") + "/search"

    def dispatch(self, job_id: str, user_description: str, top_k: int) -> Future:
        payload = {"userDescription": user_description, "topK": top_k, "jobId": job_id}
        future = self.executor.submit(self._post, payload)
        future.add_done_callback(partial(self._log_outcome, job_id))
        return future

    def _post(self, payload: dict[str, Any]) -> int:
        response = self.client.post(
            self.search_url,
            json=payload,
            headers={AUTH_HEADER: self.settings.internal_auth_secret},
            timeout=self.settings.dispatch_timeout_seconds,
        )
        response.raise_for_status()
        return response.status_code

    @staticmethod
    def _log_outcome(job_id: str, future: Future) -> None:
        exc = future.exception()
        if exc is None:
            LOGGER.info("Search job dispatched", extra={"job_id": job_id, "status_code": future.result()})
        elif isinstance(exc, httpx.TimeoutException):
            LOGGER.warning(
                "Search trigger timed out; the job may still complete",
                extra={"job_id": job_id, "error": str(exc)},
            )
        else:
            LOGGER.error("Failed to trigger search job", extra={"job_id": job_id, "error": str(exc)})

    def shutdown(self, wait: bool = False) -> None:
        self.executor.shutdown(wait=wait)
        self.client.close()
