from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any
from urllib.parse import quote

import httpx

from app.analyzer.errors import AnalyzerError, SubmissionCancelled
from app.analyzer.types import CancelSignal
from app.upload.validator import UploadCandidate

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze"
ANALYSIS_PATH = "/api/analysis/{resume_id}"
UPLOAD_FIELD = "resume"

_CANCELLED_MESSAGE = "Upload cancelled."


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return ""
    if not isinstance(payload, dict):
        return ""
    for key in ("detail", "message", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


class HttpAnalyzerClient:
    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout_s: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = client is None
        headers = {"X-API-Key": api_key} if api_key else {}
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_s,
            headers=headers,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise AnalyzerError("The analyzer took too long to respond. Please try again.") from exc
        except httpx.HTTPError as exc:
            raise AnalyzerError("Could not reach the analyzer. Please try again.") from exc

        if response.status_code >= 400:
            logger.warning("analyzer_http_error method=%s url=%s status=%s", method, url, response.status_code)
            raise AnalyzerError(
                _error_detail(response) or f"Analyzer returned HTTP {response.status_code}.",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise AnalyzerError("Analyzer returned a malformed response.") from exc

    async def submit_for_analysis(self, candidate: UploadCandidate, *, cancel_signal: CancelSignal) -> Any:
        if cancel_signal.cancelled:
            raise SubmissionCancelled(_CANCELLED_MESSAGE)

        files = {UPLOAD_FIELD: (candidate.name, candidate.content, candidate.mime_type)}
        request = asyncio.ensure_future(self._request("POST", ANALYZE_PATH, files=files))
        waiter = asyncio.ensure_future(cancel_signal.wait())
        try:
            done, _pending = await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            request.cancel()
            waiter.cancel()
            raise
        waiter.cancel()

        if waiter in done or cancel_signal.cancelled:
            request.cancel()
            with contextlib.suppress(asyncio.CancelledError, AnalyzerError):
                await request
            logger.info("analyzer_request_aborted reason=%s", cancel_signal.reason)
            raise SubmissionCancelled(_CANCELLED_MESSAGE)
        return request.result()

    async def fetch_analysis(self, resume_id: str) -> Any:
        return await self._request("GET", ANALYSIS_PATH.format(resume_id=quote(resume_id, safe="")))
