from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable

from app.analyzer.errors import SubmissionCancelled
from app.analyzer.types import AnalyzerTransport, CancelSignal
from app.normalize.normalize_analysis import build_report
from app.schemas.normalized import ReportViewModel
from app.upload.progress import (
    REDUCED_MOTION_PROGRESS,
    AsyncioScheduler,
    Scheduler,
    SyntheticProgressDriver,
)
from app.upload.state import (
    Cancelled,
    Failed,
    FileSelected,
    Idle,
    SubmissionState,
    Submitting,
    Succeeded,
    is_terminal,
)
from app.upload.validator import UploadCandidate, ValidationVerdict, validate

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to upload resume. Please try again."
CANCELLED_MESSAGE = "Upload cancelled."

StateListener = Callable[[SubmissionState], None]


class SubmissionRejected(RuntimeError):
    pass


def _failure_message(error: BaseException) -> str:
    message = str(error).strip()
    return message or GENERIC_FAILURE_MESSAGE


class SubmissionController:
    """Owns the upload lifecycle for one résumé picker.

    Every asynchronous callback (progress tick, transport settlement) is tagged
    with the sequence number of the submission that issued it and is dropped
    unless that submission is still the active one.
    """

    def __init__(
        self,
        transport: AnalyzerTransport,
        *,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        reduced_motion: bool = False,
    ):
        self._transport = transport
        self._scheduler = scheduler or AsyncioScheduler()
        self._clock = clock
        self._reduced_motion = reduced_motion
        self._state: SubmissionState = Idle()
        self._progress_percent = 0.0
        self._error_message: str | None = None
        self._sequence = 0
        self._driver: SyntheticProgressDriver | None = None
        self._driver_sequence = 0
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def progress_percent(self) -> float:
        return self._progress_percent

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def candidate(self) -> UploadCandidate | None:
        if isinstance(self._state, (FileSelected, Submitting)):
            return self._state.candidate
        return None

    @property
    def report(self) -> ReportViewModel | None:
        if isinstance(self._state, Succeeded):
            return self._state.report
        return None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)

    def _transition(self, state: SubmissionState) -> None:
        self._state = state
        self._notify()

    def _is_current(self, sequence: int) -> bool:
        state = self._state
        return isinstance(state, Submitting) and state.sequence == sequence

    # -- file choice -------------------------------------------------------

    def select_file(self, candidate: UploadCandidate) -> ValidationVerdict:
        verdict = validate(candidate)
        if isinstance(self._state, Submitting):
            logger.info("upload_select_ignored phase=submitting")
            return verdict
        if not verdict.accepted:
            self.surface_rejection(verdict)
            return verdict
        self._error_message = None
        self._progress_percent = 0.0
        self._transition(FileSelected(candidate=candidate))
        logger.info("upload_file_selected size_bytes=%s mime_type=%s", candidate.size_bytes, candidate.mime_type)
        return verdict

    def surface_rejection(self, verdict: ValidationVerdict) -> None:
        if verdict.accepted:
            return
        self._error_message = verdict.message
        logger.info("upload_file_rejected reason=%s", verdict.reason_code.value)
        self._notify()

    def clear_error(self) -> None:
        if self._error_message is None:
            return
        self._error_message = None
        self._notify()

    def remove_file(self) -> None:
        if not isinstance(self._state, FileSelected):
            return
        self._error_message = None
        self._transition(Idle())

    def reset(self) -> None:
        if not is_terminal(self._state):
            return
        self._error_message = None
        self._progress_percent = 0.0
        self._transition(Idle())

    # -- submission --------------------------------------------------------

    async def start_submission(self) -> SubmissionState:
        state = self._state
        if not isinstance(state, FileSelected):
            raise SubmissionRejected(f"Cannot start a submission while {state.phase}.")

        self._sequence += 1
        sequence = self._sequence
        cancel_signal = CancelSignal()
        self._error_message = None
        self._progress_percent = 0.0
        self._transition(Submitting(candidate=state.candidate, cancel_signal=cancel_signal, sequence=sequence))
        logger.info("upload_submission_started sequence=%s size_bytes=%s", sequence, state.candidate.size_bytes)
        self._start_progress(sequence)

        try:
            response = await self._transport.submit_for_analysis(state.candidate, cancel_signal=cancel_signal)
        except asyncio.CancelledError:
            cancel_signal.cancel("task")
            self.remote_failed(sequence, SubmissionCancelled(CANCELLED_MESSAGE))
            raise
        except Exception as exc:
            self.remote_failed(sequence, exc)
        else:
            self.remote_resolved(sequence, response)
        finally:
            self._stop_progress(sequence)
        return self._state

    def progress_tick(self, sequence: int, percent: float) -> None:
        state = self._state
        if not isinstance(state, Submitting) or state.sequence != sequence:
            logger.debug("upload_progress_tick_discarded sequence=%s", sequence)
            return
        percent = min(max(percent, 0.0), 100.0)
        if percent < state.progress_percent:
            return
        self._progress_percent = percent
        self._transition(replace(state, progress_percent=percent))

    def remote_resolved(self, sequence: int, response: object) -> None:
        if not self._is_current(sequence):
            logger.info("upload_response_discarded sequence=%s", sequence)
            return
        self._stop_progress()
        self._progress_percent = 100.0
        report = build_report(response)
        self._transition(Succeeded(raw_response=response, report=report))
        logger.info("upload_submission_succeeded sequence=%s records=%s", sequence, len(report))

    def remote_failed(self, sequence: int, error: BaseException) -> None:
        if not self._is_current(sequence):
            logger.info("upload_failure_discarded sequence=%s error=%s", sequence, type(error).__name__)
            return
        self._stop_progress()
        self._progress_percent = 0.0
        if isinstance(error, SubmissionCancelled):
            self._error_message = CANCELLED_MESSAGE
            self._transition(Cancelled())
            logger.info("upload_submission_cancelled sequence=%s", sequence)
            return
        message = _failure_message(error)
        self._error_message = message
        self._transition(Failed(error_message=message))
        logger.warning("upload_submission_failed sequence=%s error=%s", sequence, type(error).__name__)

    def cancel(self) -> None:
        state = self._state
        if not isinstance(state, Submitting):
            return
        state.cancel_signal.cancel("user")
        self._stop_progress()
        self._progress_percent = 0.0
        self._error_message = CANCELLED_MESSAGE
        self._transition(Cancelled())
        logger.info("upload_submission_cancelled sequence=%s", state.sequence)

    def close(self) -> None:
        self.cancel()
        self._listeners.clear()

    # -- synthetic progress ------------------------------------------------

    def _start_progress(self, sequence: int) -> None:
        if self._reduced_motion:
            self.progress_tick(sequence, REDUCED_MOTION_PROGRESS)
            return
        driver = SyntheticProgressDriver(
            lambda value: self.progress_tick(sequence, value),
            scheduler=self._scheduler,
            clock=self._clock,
            start=self._progress_percent,
        )
        self._driver = driver
        self._driver_sequence = sequence
        driver.start()

    def _stop_progress(self, sequence: int | None = None) -> None:
        driver = self._driver
        if driver is None:
            return
        if sequence is not None and sequence != self._driver_sequence:
            return
        self._driver = None
        driver.stop()
