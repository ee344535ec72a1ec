"""Async client for the fal.ai queue and storage APIs"""
import asyncio
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from config import (
    FAL_KEY,
    FAL_QUEUE_URL,
    FAL_STORAGE_URL,
    FAL_REQUEST_TIMEOUT,
    FAL_POLL_INTERVAL,
    FAL_MAX_WAIT,
)
from imagegen.error_mapping import GENERATION_FAILED, UPLOAD_FAILED, normalize_error
from imagegen.exceptions.generation_exceptions import ProviderError, UploadError
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Queue statuses reported by the status endpoint
IN_QUEUE = "IN_QUEUE"
IN_PROGRESS = "IN_PROGRESS"
COMPLETED = "COMPLETED"

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class ProviderResponse:
    """Raw result of a completed queue job"""
    data: Dict[str, Any]
    request_id: Optional[str]


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class AsyncFalClient:
    def __init__(
        self,
        api_key: Optional[str] = FAL_KEY,
        queue_url: str = FAL_QUEUE_URL,
        storage_url: str = FAL_STORAGE_URL,
        timeout: float = FAL_REQUEST_TIMEOUT,
        poll_interval: float = FAL_POLL_INTERVAL,
        max_wait: float = FAL_MAX_WAIT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.queue_url = queue_url.rstrip("/")
        self.storage_url = storage_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_wait = max_wait

        # HTTP client
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ProviderError("FAL_KEY is not configured", 500)
        return {
            "Authorization": f"Key {self.api_key}",
            "Accept": "application/json",
        }

    async def _request(self, method: str, url: str, default: str, error_cls, **kwargs) -> httpx.Response:
        """Send one request; transport failures and non-2xx responses raise `error_cls`."""
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            err = normalize_error(None, None, e, default=default)
            raise error_cls(err.error, err.status_code) from e

        if response.is_error:
            err = normalize_error(response.status_code, _json_or_text(response), default=default)
            logger.error(f"{method} {url} returned HTTP {response.status_code}: {err.error}")
            raise error_cls(err.error, err.status_code)
        return response

    async def subscribe(self, endpoint: str, payload: Dict[str, Any]) -> ProviderResponse:
        """
        Submit a job to the queue, wait for it to complete and return its output.

        Provider log lines are relayed at DEBUG while polling. A failed
        submission is surfaced immediately; there are no retries.
        """
        headers = self._headers()
        submit = await self._request(
            "POST", f"{self.queue_url}/{endpoint}", GENERATION_FAILED, ProviderError,
            headers=headers, json=payload,
        )
        job = _json_or_text(submit)
        if not isinstance(job, dict):
            logger.error(f"Unreadable submit response for {endpoint}: {str(job)[:200]}")
            raise ProviderError("Provider returned a malformed response", 502)
        request_id = job.get("request_id")
        if not request_id:
            raise ProviderError("Provider did not return a request id", 502)

        base = f"{self.queue_url}/{endpoint}/requests/{request_id}"
        status_url = job.get("status_url") or f"{base}/status"
        response_url = job.get("response_url") or base
        logger.info(f"Submitted {endpoint} job {request_id}")

        await self._wait_for_completion(status_url, request_id, headers)

        result = await self._request("GET", response_url, GENERATION_FAILED, ProviderError, headers=headers)
        data = _json_or_text(result)
        if not isinstance(data, dict):
            raise ProviderError("Provider returned a malformed result", 502)
        logger.info(f"Job {request_id} completed")
        return ProviderResponse(data=data, request_id=request_id)

    async def _wait_for_completion(self, status_url: str, request_id: str, headers: Dict[str, str]) -> None:
        start_time = time.monotonic()
        logs_seen = 0

        while True:
            response = await self._request(
                "GET", status_url, GENERATION_FAILED, ProviderError,
                headers=headers, params={"logs": "1"},
            )
            status_data = _json_or_text(response)
            if not isinstance(status_data, dict):
                logger.error(f"Unreadable status response for {request_id}: {str(status_data)[:200]}")
                raise ProviderError("Provider returned a malformed status", 502)
            status = str(status_data.get("status", "")).upper()

            logs = status_data.get("logs")
            if not isinstance(logs, list):
                logs = []
            for entry in logs[logs_seen:]:
                message = entry.get("message") if isinstance(entry, dict) else entry
                logger.debug(f"[{request_id}] {message}")
            logs_seen = max(logs_seen, len(logs))

            if status == COMPLETED:
                if status_data.get("error"):
                    err = normalize_error(status_data.get("status_code"), {"detail": status_data["error"]})
                    raise ProviderError(err.error, err.status_code)
                return

            if status == IN_QUEUE:
                logger.info(f"Job {request_id} queued at position {status_data.get('queue_position')}")
            elif status != IN_PROGRESS:
                logger.warning(f"Unknown job status for {request_id}: {status}")

            if time.monotonic() - start_time >= self.max_wait:
                logger.error(f"Job {request_id} timed out after {self.max_wait}s")
                raise ProviderError("Generation timed out", 504)

            await asyncio.sleep(self.poll_interval)

    async def upload(self, data: bytes, content_type: str, file_name: Optional[str] = None) -> str:
        """
        Upload bytes to fal storage and return their CDN URL.

        Every call stores a new object, identical bytes included.
        """
        try:
            headers = self._headers()
        except ProviderError as e:
            raise UploadError(e.message, e.status_code) from e

        if file_name is None:
            extension = MIME_EXTENSIONS.get(content_type, "bin")
            file_name = f"{uuid.uuid4().hex}.{extension}"

        initiate = await self._request(
            "POST", f"{self.storage_url}/storage/upload/initiate", UPLOAD_FAILED, UploadError,
            headers=headers, json={"content_type": content_type, "file_name": file_name},
        )
        target = _json_or_text(initiate)
        if not isinstance(target, dict) or not target.get("upload_url") or not target.get("file_url"):
            raise UploadError("Storage service returned no upload target", 502)

        await self._request(
            "PUT", target["upload_url"], UPLOAD_FAILED, UploadError,
            headers={"Content-Type": content_type}, content=data,
        )
        logger.info(f"Uploaded {len(data)} bytes ({content_type}) to {target['file_url']}")
        return target["file_url"]
