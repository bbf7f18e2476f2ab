from contextlib import asynccontextmanager
import logging

from app.analyzer.factory import get_analyzer_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    analyzer = get_analyzer_client()
    app.state.analyzer = analyzer
    logger.info("analyzer_client_ready")
    try:
        yield
    finally:
        app.state.analyzer = None
        await analyzer.aclose()
        logger.info("analyzer_client_closed")
