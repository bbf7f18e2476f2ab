import asyncio
import contextlib
import json
from datetime import datetime, timezone
from typing import Any, AsyncGenerator

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse

from app.analyzer.http_client import HttpAnalyzerClient
from app.api.dependencies import get_analyzer
from app.core.rate_limit import rate_limit
from app.schemas.uploads import (
    AnalyzeResponse,
    CandidateDescriptor,
    SubmissionSnapshot,
    ValidationResponse,
)
from app.upload.controller import GENERIC_FAILURE_MESSAGE, SubmissionController
from app.upload.state import Failed, SubmissionState, Submitting, Succeeded, is_terminal
from app.upload.validator import (
    MAX_UPLOAD_BYTES,
    ReasonCode,
    UploadCandidate,
    ValidationVerdict,
    validate,
)

router = APIRouter()

_REJECTION_STATUS = {
    ReasonCode.UNSUPPORTED_TYPE: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    ReasonCode.TOO_LARGE: status.HTTP_413_CONTENT_TOO_LARGE,
}


def _sse_event(event: str, payload: dict[str, Any]) -> str:
    data = json.dumps(payload, ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


def _verdict_response(verdict: ValidationVerdict) -> ValidationResponse:
    return ValidationResponse(
        accepted=verdict.accepted,
        reason_code=verdict.reason_code.value,
        message=verdict.message,
    )


def _raise_rejection(verdict: ValidationVerdict) -> None:
    raise HTTPException(status_code=_REJECTION_STATUS[verdict.reason_code], detail=verdict.message)


def _snapshot(controller: SubmissionController, state: SubmissionState) -> dict[str, Any]:
    # Queued states are reported with their own progress, not the live value.
    if isinstance(state, Submitting):
        progress = state.progress_percent
    elif isinstance(state, Succeeded):
        progress = 100.0
    else:
        progress = controller.progress_percent
    return SubmissionSnapshot(
        phase=state.phase,
        progress_percent=progress,
        error_message=controller.error_message,
    ).model_dump()


async def _read_candidate(file: UploadFile) -> UploadCandidate:
    name = file.filename or "resume"
    # One byte past the limit is enough to classify the file as too large.
    content = await file.read(MAX_UPLOAD_BYTES + 1)
    await file.close()
    size = file.size if file.size is not None else len(content)
    return UploadCandidate(
        name=name,
        size_bytes=size,
        mime_type=file.content_type or "",
        content=content,
    )


async def _stream_submission(controller: SubmissionController) -> AsyncGenerator[str, None]:
    states: asyncio.Queue[SubmissionState] = asyncio.Queue()
    unsubscribe = controller.subscribe(states.put_nowait)
    task = asyncio.create_task(controller.start_submission())
    try:
        while True:
            state = await states.get()
            yield _sse_event("state", _snapshot(controller, state))
            if is_terminal(state):
                break
        final = await task
        if isinstance(final, Succeeded):
            yield _sse_event("report", final.report.model_dump(mode="json"))
        else:
            yield _sse_event(
                "error",
                {"phase": final.phase, "message": controller.error_message or GENERIC_FAILURE_MESSAGE},
            )
    finally:
        unsubscribe()
        if not task.done():
            # Client went away mid-submission.
            controller.cancel()
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


@router.post("/uploads/validate", response_model=ValidationResponse)
async def uploads_validate(payload: CandidateDescriptor):
    candidate = UploadCandidate(
        name=payload.name,
        size_bytes=payload.size_bytes,
        mime_type=payload.mime_type,
    )
    return _verdict_response(validate(candidate))


@router.post("/uploads/analyze", response_model=AnalyzeResponse)
@rate_limit()
async def uploads_analyze(
    request: Request,
    file: UploadFile = File(...),
    analyzer: HttpAnalyzerClient = Depends(get_analyzer),
):
    _ = request
    candidate = await _read_candidate(file)
    controller = SubmissionController(analyzer, reduced_motion=True)
    verdict = controller.select_file(candidate)
    if not verdict.accepted:
        _raise_rejection(verdict)

    state = await controller.start_submission()
    if isinstance(state, Succeeded):
        return AnalyzeResponse(
            filename=candidate.name,
            report=state.report,
            generated_at=datetime.now(timezone.utc),
        )
    if isinstance(state, Failed):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=state.error_message)
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=controller.error_message or GENERIC_FAILURE_MESSAGE)


@router.post("/uploads/analyze/stream")
@rate_limit()
async def uploads_analyze_stream(
    request: Request,
    file: UploadFile = File(...),
    analyzer: HttpAnalyzerClient = Depends(get_analyzer),
):
    _ = request
    candidate = await _read_candidate(file)
    controller = SubmissionController(analyzer)
    verdict = controller.select_file(candidate)
    if not verdict.accepted:
        _raise_rejection(verdict)

    return StreamingResponse(
        _stream_submission(controller),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
