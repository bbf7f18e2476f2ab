from __future__ import annotations

import asyncio
from typing import Any, Protocol

from app.upload.validator import UploadCandidate


class CancelSignal:
    """One-shot cancellation flag handed to a transport call when it is issued."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class AnalyzerTransport(Protocol):
    async def submit_for_analysis(
        self, candidate: UploadCandidate, *, cancel_signal: CancelSignal
    ) -> Any: ...
