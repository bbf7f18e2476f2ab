from fastapi import HTTPException, Request, status

from app.analyzer.http_client import HttpAnalyzerClient


def get_analyzer(request: Request) -> HttpAnalyzerClient:
    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analyzer client is not ready.",
        )
    return analyzer
