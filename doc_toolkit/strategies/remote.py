"""
PDF->Office conversion through a remote ONLYOFFICE Document Server.

One attempt uploads the PDF, asks the server to convert it synchronously and
downloads the result. The attempt is tracked by a small state machine so the
logs show exactly which step failed.
"""

from __future__ import annotations

import asyncio
import logging
import re
import secrets
import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

import httpx
import jwt

from .. import config
from ..config import Settings
from ..errors import RemoteServiceError
from ..models import StrategyKind
from ..output_validator import zip_signature_ok
from .base import Strategy, StrategyContext

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
JWT_EXPIRES_IN = timedelta(hours=1)

FORMAT_OPTIONS: dict[str, dict[str, Any]] = {
    "docx": {
        "region": "US",
        "delimiter": {"paragraph": True, "column": False},
    },
    "xlsx": {
        "region": "US",
        "codePage": 65001,
        "delimiter": {"paragraph": False, "column": True, "row": True, "tab": True},
    },
    "pptx": {
        "region": "US",
        "codePage": 65001,
        "delimiter": {"paragraph": True, "column": True},
    },
}
"""Per-target options merged into the conversion request."""


class RemoteState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    CONVERTING = "converting"
    DOWNLOADING = "downloading"
    DONE = "done"
    FAILED = "failed"


_NEXT_STATE = {
    RemoteState.IDLE: RemoteState.UPLOADING,
    RemoteState.UPLOADING: RemoteState.CONVERTING,
    RemoteState.CONVERTING: RemoteState.DOWNLOADING,
    RemoteState.DOWNLOADING: RemoteState.DONE,
}


def conversion_key(filename: str) -> str:
    """Unique document key: `<ms>_<random>_<filename with non-alphanumerics as _>`."""
    safe_name = re.sub(r"[^a-zA-Z0-9]", "_", filename)
    return f"{int(time.time() * 1000)}_{secrets.token_hex(5)}_{safe_name}"


class RemoteConversionJob:
    """State of one remote conversion attempt."""

    def __init__(self, filename: str, target_format: str):
        self.filename = filename
        self.target_format = target_format
        self.key = conversion_key(filename)
        self.state = RemoteState.IDLE
        self.history = [RemoteState.IDLE]
        self.error: str | None = None

    def advance(self, state: RemoteState) -> None:
        """Move to the next state; only the forward path is allowed."""
        if _NEXT_STATE.get(self.state) is not state:
            raise RuntimeError(f"Invalid remote job transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, reason: str) -> None:
        if self.state in (RemoteState.DONE, RemoteState.FAILED):
            return
        self.error = reason
        self.state = RemoteState.FAILED
        self.history.append(RemoteState.FAILED)

    @property
    def finished(self) -> bool:
        return self.state in (RemoteState.DONE, RemoteState.FAILED)


class DocumentServerClient:
    """Async client for the ONLYOFFICE upload, conversion and health endpoints."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        retries: int = config.DOWNLOAD_RETRIES,
        backoff: float = config.DOWNLOAD_BACKOFF,
    ):
        self.settings = settings
        self.base_url = settings.document_server_url.rstrip("/")
        self.timeout = settings.remote_timeout
        self.retries = max(retries, 1)
        self.backoff = backoff
        self._transport = transport
        self._sleep = sleep
        self.logger = logging.getLogger(__name__)

    @property
    def available(self) -> bool:
        return bool(self.base_url)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    def sign(self, payload: dict[str, Any]) -> str:
        """Sign a conversion request body with the configured secret."""
        claims = dict(payload)
        claims["exp"] = datetime.now(timezone.utc) + JWT_EXPIRES_IN
        return jwt.encode(claims, self.settings.jwt_secret, algorithm=JWT_ALGORITHM)

    def callback_url(self, filename: str) -> str:
        """URL under which this service would expose the source file itself."""
        return f"{self.settings.server_url.rstrip('/')}/temp/temp_{int(time.time() * 1000)}_{filename}"

    async def convert(self, data: bytes, filename: str, target_format: str) -> bytes:
        """
        Run one full upload/convert/download cycle.

        Raises:
            RemoteServiceError: If the server rejects the request or returns nothing
            httpx.TimeoutException: If a request timed out
        """
        if not self.available:
            raise RemoteServiceError("Document server URL is not configured")

        job = RemoteConversionJob(filename, target_format)
        self.logger.info(f"Remote conversion {job.key}: PDF -> {target_format.upper()}")
        try:
            async with self._client() as client:
                job.advance(RemoteState.UPLOADING)
                source_url = await self._upload(client, data, filename)

                job.advance(RemoteState.CONVERTING)
                file_url = await self._request_conversion(client, job, source_url)

                job.advance(RemoteState.DOWNLOADING)
                result = await self._download(client, file_url)

                job.advance(RemoteState.DONE)
        except httpx.TimeoutException as e:
            failed_in = job.state.value
            job.fail(f"timed out while {failed_in}")
            self.logger.warning(f"Remote conversion {job.key} timed out while {failed_in}: {e}")
            raise
        except httpx.HTTPError as e:
            failed_in = job.state.value
            job.fail(str(e))
            raise RemoteServiceError(f"Document server request failed while {failed_in}: {e}") from e
        except RemoteServiceError as e:
            job.fail(str(e))
            raise

        self.logger.info(f"Remote conversion {job.key} finished: {len(result)} bytes")
        return result

    async def _upload(self, client: httpx.AsyncClient, data: bytes, filename: str) -> str:
        try:
            response = await client.post(
                f"{self.base_url}/upload",
                files={"file": (filename, data, "application/pdf")},
                timeout=self.timeout / 2,
            )
            response.raise_for_status()
            url = response.json().get("url")
            if url:
                return url
            self.logger.warning("Document server upload returned no URL")
        except httpx.TimeoutException as e:
            self.logger.warning(f"Document server upload timed out: {e}")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            self.logger.warning(f"Document server upload failed: {e}")
        return self.callback_url(filename)

    async def _request_conversion(self, client: httpx.AsyncClient, job: RemoteConversionJob, source_url: str) -> str:
        payload: dict[str, Any] = {
            "async": False,
            "filetype": "pdf",
            "key": job.key,
            "outputtype": job.target_format,
            "title": job.filename,
            "url": source_url,
        }
        payload.update(FORMAT_OPTIONS.get(job.target_format, {}))
        if self.settings.jwt_secret:
            payload["token"] = self.sign(payload)

        response = await client.post(
            f"{self.base_url}/ConvertService.ashx",
            json=payload,
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        try:
            body = response.json()
        except ValueError:
            raise RemoteServiceError("Document server returned a non-JSON conversion response") from None

        if not isinstance(body, dict):
            raise RemoteServiceError("Document server returned an unexpected conversion response")
        if body.get("error"):
            raise RemoteServiceError(f"Document server conversion error: {body['error']}")
        file_url = body.get("fileUrl")
        if not file_url:
            raise RemoteServiceError("Document server returned no file URL")
        return file_url

    async def _download(self, client: httpx.AsyncClient, file_url: str) -> bytes:
        for attempt in range(1, self.retries + 1):
            try:
                response = await client.get(file_url, headers={"Accept": "*/*"})
                response.raise_for_status()
                break
            except httpx.HTTPError as e:
                if attempt == self.retries:
                    raise
                self.logger.warning(f"Download attempt {attempt}/{self.retries} failed, retrying: {e}")
                await self._sleep(self.backoff)

        content = response.content
        if not content:
            raise RemoteServiceError("Downloaded file is empty")
        return content

    async def health_check(self) -> bool:
        """Try `/healthcheck`, falling back to the server root."""
        if not self.available:
            return False
        async with httpx.AsyncClient(transport=self._transport, timeout=config.HEALTH_CHECK_TIMEOUT) as client:
            for path in ("/healthcheck", "/"):
                try:
                    response = await client.get(f"{self.base_url}{path}")
                except httpx.HTTPError as e:
                    self.logger.debug(f"Health check {path} failed: {e}")
                    continue
                if response.status_code == 200:
                    return True
        self.logger.error(f"Document server health check failed for {self.base_url}")
        return False

    async def server_info(self) -> dict[str, Any]:
        if not self.available:
            return {"available": False, "reason": "Document server URL not configured"}
        return {
            "available": True,
            "healthy": await self.health_check(),
            "url": self.base_url,
            "jwt_enabled": bool(self.settings.jwt_secret),
        }


class RemoteConversionStrategy(Strategy):
    """Strategy wrapper around :class:`DocumentServerClient`."""

    kind = StrategyKind.REMOTE_SERVICE

    def __init__(self, client: DocumentServerClient, *, timeout: float | None = None):
        super().__init__(
            "remote-document-server",
            timeout=timeout if timeout is not None else client.timeout,
            min_output_size=config.MIN_OFFICE_OUTPUT_SIZE,
            check_signature=False,
        )
        self.client = client

    async def invoke(self, context: StrategyContext) -> bytes | None:
        request = context.request
        return await self.client.convert(request.source_bytes, request.original_filename, context.target)

    def accept(self, data: bytes, context: StrategyContext) -> str | None:
        if not zip_signature_ok(data):
            logger.warning(
                f"Document server output for {context.request.original_filename} has no ZIP signature; "
                "accepting it anyway"
            )
        return None
