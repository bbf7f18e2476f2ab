from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.normalized import ReportViewModel

SubmissionPhase = Literal["idle", "file_selected", "submitting", "succeeded", "failed", "cancelled"]
RejectionReason = Literal["NONE", "UNSUPPORTED_TYPE", "TOO_LARGE"]


class CandidateDescriptor(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    size_bytes: int = Field(ge=0)
    mime_type: str = Field(default="", max_length=200)


class ValidationResponse(BaseModel):
    accepted: bool
    reason_code: RejectionReason
    message: str = ""


class SubmissionSnapshot(BaseModel):
    phase: SubmissionPhase
    progress_percent: float = Field(ge=0.0, le=100.0)
    error_message: str | None = None


class AnalyzeResponse(BaseModel):
    filename: str
    report: ReportViewModel
    generated_at: datetime
