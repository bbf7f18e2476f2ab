from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

PDF_MIME_TYPE = "application/pdf"
DOC_MIME_TYPE = "application/msword"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ALLOWED_MIME_TYPES = frozenset({PDF_MIME_TYPE, DOC_MIME_TYPE, DOCX_MIME_TYPE})

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB

_EXTENSION_MIME_HINTS = {
    "pdf": PDF_MIME_TYPE,
    "doc": DOC_MIME_TYPE,
    "docx": DOCX_MIME_TYPE,
}


class ReasonCode(str, Enum):
    NONE = "NONE"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    TOO_LARGE = "TOO_LARGE"


_REASON_MESSAGES = {
    ReasonCode.NONE: "",
    ReasonCode.UNSUPPORTED_TYPE: "Please upload a PDF, DOC, or DOCX file.",
    ReasonCode.TOO_LARGE: "File is too large. Max 10MB.",
}


@dataclass(frozen=True)
class UploadCandidate:
    name: str
    size_bytes: int
    mime_type: str
    content: bytes = field(default=b"", repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError("size_bytes must be >= 0")

    @classmethod
    def from_bytes(cls, name: str, content: bytes, mime_type: str | None = None) -> "UploadCandidate":
        return cls(
            name=name,
            size_bytes=len(content),
            mime_type=mime_type if mime_type is not None else guess_mime_type(name),
            content=content,
        )

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadCandidate":
        file_path = Path(path)
        return cls.from_bytes(file_path.name, file_path.read_bytes())


@dataclass(frozen=True)
class ValidationVerdict:
    accepted: bool
    reason_code: ReasonCode = ReasonCode.NONE

    @property
    def message(self) -> str:
        return _REASON_MESSAGES[self.reason_code]


ACCEPTED = ValidationVerdict(accepted=True)


def guess_mime_type(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    explicit = _EXTENSION_MIME_HINTS.get(ext)
    if explicit:
        return explicit
    guessed, _encoding = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def validate(candidate: UploadCandidate) -> ValidationVerdict:
    """Check a candidate against the fixed upload policy.

    The MIME type must match the allow-list exactly; a renamed file whose
    declared type disagrees with its extension is rejected. Type is checked
    before size.
    """
    if candidate.mime_type not in ALLOWED_MIME_TYPES:
        return ValidationVerdict(accepted=False, reason_code=ReasonCode.UNSUPPORTED_TYPE)
    if candidate.size_bytes > MAX_UPLOAD_BYTES:
        return ValidationVerdict(accepted=False, reason_code=ReasonCode.TOO_LARGE)
    return ACCEPTED
