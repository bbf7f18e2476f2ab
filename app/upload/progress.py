from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

EASE_DURATION_S = 1.8
PROGRESS_CEILING = 90.0
TICK_INTERVAL_S = 0.016
REDUCED_MOTION_PROGRESS = 50.0


class Scheduler(Protocol):
    def schedule(self, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class AsyncioScheduler:
    """Fixed-tick scheduler backed by the running event loop."""

    def __init__(self, interval_s: float = TICK_INTERVAL_S, loop: asyncio.AbstractEventLoop | None = None):
        self._interval_s = interval_s
        self._loop = loop

    def schedule(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self._interval_s, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


def ease_out_cubic(fraction: float) -> float:
    t = min(max(fraction, 0.0), 1.0)
    return 1 - (1 - t) ** 3


def eased_progress(
    elapsed_s: float,
    *,
    start: float = 0.0,
    ceiling: float = PROGRESS_CEILING,
    duration_s: float = EASE_DURATION_S,
) -> float:
    fraction = 1.0 if duration_s <= 0 else elapsed_s / duration_s
    return start + (ceiling - start) * ease_out_cubic(fraction)


class SyntheticProgressDriver:
    """Eases a progress value from ``start`` toward ``ceiling`` on a scheduler.

    The value never reaches 100 on its own; the owner snaps it to the real
    terminal value once the submission settles.
    """

    def __init__(
        self,
        on_progress: Callable[[float], None],
        *,
        scheduler: Scheduler,
        clock: Callable[[], float] = time.monotonic,
        start: float = 0.0,
        ceiling: float = PROGRESS_CEILING,
        duration_s: float = EASE_DURATION_S,
    ):
        self._on_progress = on_progress
        self._scheduler = scheduler
        self._clock = clock
        self._start = start
        self._ceiling = ceiling
        self._duration_s = duration_s
        self._started_at: float | None = None
        self._handle: Any = None
        self._stopped = True

    @property
    def running(self) -> bool:
        return not self._stopped

    def start(self) -> None:
        self.stop()
        self._stopped = False
        self._started_at = self._clock()
        self._handle = self._scheduler.schedule(self._tick)

    def stop(self) -> None:
        self._stopped = True
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._scheduler.cancel(handle)

    def _tick(self) -> None:
        self._handle = None
        if self._stopped or self._started_at is None:
            return
        elapsed = self._clock() - self._started_at
        value = eased_progress(
            elapsed,
            start=self._start,
            ceiling=self._ceiling,
            duration_s=self._duration_s,
        )
        self._on_progress(value)
        if self._stopped:
            return
        if elapsed < self._duration_s:
            self._handle = self._scheduler.schedule(self._tick)
        else:
            # Holding at the ceiling until the owner stops us.
            self._stopped = True
            logger.debug("synthetic_progress_settled value=%.1f", value)
