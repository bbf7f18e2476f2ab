from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AnalysisRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    company: str | None = None
    location: str | None = None
    overall_score_percent: int = Field(default=0, ge=0, le=100)
    skills_score_percent: int = Field(default=0, ge=0, le=100)
    matched_skills: tuple[str, ...] = ()
    missing_skills: tuple[str, ...] = ()
    growth_areas: tuple[str, ...] = ()
    strengths: tuple[str, ...] = ()
