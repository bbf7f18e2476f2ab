from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from app.analyzer.errors import AnalyzerError
from app.analyzer.http_client import HttpAnalyzerClient
from app.api.dependencies import get_analyzer
from app.normalize.normalize_analysis import build_report
from app.schemas.normalized import ReportViewModel

router = APIRouter()


@router.post("/report/normalize", response_model=ReportViewModel)
async def report_normalize(payload: Any = Body(default=None)):
    return build_report(payload)


@router.get("/report/{resume_id}", response_model=ReportViewModel)
async def report_fetch(
    resume_id: str = Path(min_length=1, max_length=200),
    analyzer: HttpAnalyzerClient = Depends(get_analyzer),
):
    try:
        raw = await analyzer.fetch_analysis(resume_id)
    except AnalyzerError as exc:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No analysis found for this resume.") from exc
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return build_report(raw)
