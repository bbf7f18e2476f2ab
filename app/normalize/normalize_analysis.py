from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from app.schemas.normalized import AnalysisRecord, ReportViewModel

from .utils import first_present, to_list, to_percent, to_text

logger = logging.getLogger(__name__)

NORMALIZATION_VERSION = 1

# Field name -> accepted spellings in the analyzer payload, in priority order.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "jobTitle", "job_title"),
    "company": ("company", "companyName", "company_name"),
    "location": ("location",),
    "match_score": ("matchScore", "match_score"),
    "overall": ("overall",),
    "skills_match": ("skillsMatch", "skills_match"),
    "matched_skills": ("matchingSkills", "matchedSkills", "matching_skills", "matched_skills"),
    "missing_skills": ("missingSkills", "missing_skills"),
    "growth_areas": ("growthAreas", "growth_areas"),
    "strengths": ("strengths",),
}


def _field(record: Mapping[str, Any], name: str) -> Any:
    return first_present(record, FIELD_ALIASES[name])


def _as_records(raw: Any) -> list[Mapping[str, Any]]:
    if isinstance(raw, Mapping):
        return [raw]
    if isinstance(raw, list):
        records = [item for item in raw if isinstance(item, Mapping)]
        skipped = len(raw) - len(records)
        if skipped:
            logger.info("analysis_normalize_skipped_entries count=%s", skipped)
        return records
    if raw is not None:
        logger.info("analysis_normalize_unrecognized_shape type=%s", type(raw).__name__)
    return []


def normalize_record(record: Mapping[str, Any]) -> AnalysisRecord:
    match_score = _field(record, "match_score")
    if not isinstance(match_score, Mapping):
        match_score = {}

    return AnalysisRecord(
        title=to_text(_field(record, "title")) or "",
        company=to_text(_field(record, "company")),
        location=to_text(_field(record, "location")),
        overall_score_percent=to_percent(_field(match_score, "overall")),
        skills_score_percent=to_percent(_field(match_score, "skills_match")),
        matched_skills=tuple(to_list(_field(record, "matched_skills"))),
        missing_skills=tuple(to_list(_field(record, "missing_skills"))),
        growth_areas=tuple(to_list(_field(record, "growth_areas"))),
        strengths=tuple(to_list(_field(record, "strengths"))),
    )


def normalize(raw: Any) -> list[AnalysisRecord]:
    """Turn an analyzer response of any shape into ranked analysis records.

    A single object is treated as a one-element list. Records are ordered by
    overall score, highest first; ``sorted`` is stable so ties keep their
    source order. Unknown or malformed fields fall back to defaults.
    """
    records = [normalize_record(record) for record in _as_records(raw)]
    return sorted(records, key=lambda record: record.overall_score_percent, reverse=True)


def build_report(raw: Any) -> ReportViewModel:
    return ReportViewModel(records=tuple(normalize(raw)))
