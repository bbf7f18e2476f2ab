from fastapi import APIRouter, Request

from app.normalize.normalize_analysis import NORMALIZATION_VERSION

router = APIRouter()


@router.get("/health", summary="Health Check", description="Report service health and analyzer client readiness.")
async def health_check(request: Request):
    analyzer_ready = getattr(request.app.state, "analyzer", None) is not None
    return {
        "status": "healthy",
        "analyzer": "ready" if analyzer_ready else "unavailable",
        "normalization_version": NORMALIZATION_VERSION,
    }
