from app.analyzer.http_client import HttpAnalyzerClient
from app.core.config import settings


def get_analyzer_client() -> HttpAnalyzerClient:
    if not settings.analyzer_base_url.startswith(("http://", "https://")):
        raise ValueError(f"Unsupported ANALYZER_BASE_URL='{settings.analyzer_base_url}'")

    return HttpAnalyzerClient(
        settings.analyzer_base_url,
        api_key=settings.analyzer_api_key,
        timeout_s=settings.analyzer_timeout_s,
    )
