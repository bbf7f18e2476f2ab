from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from app.upload.validator import UploadCandidate, ValidationVerdict, validate

logger = logging.getLogger(__name__)


@dataclass
class DragEvent:
    files: Sequence[UploadCandidate] = ()
    default_prevented: bool = field(default=False, init=False)
    propagation_stopped: bool = field(default=False, init=False)

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class FileSink(Protocol):
    def select_file(self, candidate: UploadCandidate) -> ValidationVerdict: ...

    def surface_rejection(self, verdict: ValidationVerdict) -> None: ...

    def clear_error(self) -> None: ...


class DragCaptureSurface:
    """Tracks whether a file hovers over the drop target and forwards drops."""

    def __init__(self, sink: FileSink):
        self._sink = sink
        self.hovering = False

    @staticmethod
    def _swallow(event: DragEvent) -> None:
        # The host would otherwise navigate to the dropped file.
        event.prevent_default()
        event.stop_propagation()

    def on_drag_enter(self, event: DragEvent) -> None:
        self._swallow(event)
        self.hovering = True

    def on_drag_over(self, event: DragEvent) -> None:
        self._swallow(event)
        self.hovering = True

    def on_drag_leave(self, event: DragEvent) -> None:
        self._swallow(event)
        self.hovering = False

    def on_drop(self, event: DragEvent) -> ValidationVerdict | None:
        self._swallow(event)
        self.hovering = False
        self._sink.clear_error()
        if not event.files:
            return None
        if len(event.files) > 1:
            logger.debug("drop_extra_files_ignored count=%s", len(event.files) - 1)
        candidate = event.files[0]
        verdict = validate(candidate)
        if verdict.accepted:
            return self._sink.select_file(candidate)
        self._sink.surface_rejection(verdict)
        return verdict
