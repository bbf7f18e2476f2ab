from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

from app.analyzer.types import CancelSignal
from app.schemas.normalized.report import ReportViewModel
from app.upload.validator import UploadCandidate


@dataclass(frozen=True)
class Idle:
    phase: ClassVar[str] = "idle"


@dataclass(frozen=True)
class FileSelected:
    candidate: UploadCandidate
    phase: ClassVar[str] = "file_selected"


@dataclass(frozen=True)
class Submitting:
    candidate: UploadCandidate
    cancel_signal: CancelSignal
    sequence: int
    progress_percent: float = 0.0
    phase: ClassVar[str] = "submitting"


@dataclass(frozen=True)
class Succeeded:
    raw_response: Any
    report: ReportViewModel
    phase: ClassVar[str] = "succeeded"


@dataclass(frozen=True)
class Failed:
    error_message: str
    phase: ClassVar[str] = "failed"


@dataclass(frozen=True)
class Cancelled:
    phase: ClassVar[str] = "cancelled"


SubmissionState = Union[Idle, FileSelected, Submitting, Succeeded, Failed, Cancelled]

TERMINAL_STATES = (Succeeded, Failed, Cancelled)


def is_terminal(state: SubmissionState) -> bool:
    return isinstance(state, TERMINAL_STATES)
