from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, field_validator

from .analysis import AnalysisRecord


class ReportViewModel(BaseModel):
    """Ranked, read-only report; index 0 is the best-fit role."""

    model_config = ConfigDict(frozen=True)

    records: tuple[AnalysisRecord, ...] = ()

    @field_validator("records")
    @classmethod
    def _validate_ranking(cls, value: tuple[AnalysisRecord, ...]) -> tuple[AnalysisRecord, ...]:
        scores = [record.overall_score_percent for record in value]
        if any(earlier < later for earlier, later in zip(scores, scores[1:])):
            raise ValueError("records must be sorted by overall_score_percent descending")
        return value

    @property
    def best_fit(self) -> AnalysisRecord | None:
        return self.records[0] if self.records else None

    @property
    def is_empty(self) -> bool:
        return not self.records

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        # An empty report is still a report; use ``is_empty`` for emptiness.
        return True

    def __getitem__(self, index: int) -> AnalysisRecord:
        return self.records[index]


def split_matched_skills(record: AnalysisRecord) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split matched skills into two display buckets by count, keeping order."""
    cut = math.ceil(len(record.matched_skills) / 2)
    return record.matched_skills[:cut], record.matched_skills[cut:]
