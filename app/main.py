import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from app.api.v1.health import router as health_router
from app.api.v1.report import router as report_router
from app.api.v1.uploads import router as uploads_router
from app.core.config import settings
from app.core.cors import cors_middleware_options
from app.core.lifespan import lifespan
from app.core.rate_limit import limiter

logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="Resume Analysis Upload API", version="0.1.0", lifespan=lifespan)

app.add_middleware(CORSMiddleware, **cors_middleware_options())
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(uploads_router, prefix="/v1", tags=["Uploads"])
app.include_router(report_router, prefix="/v1", tags=["Report"])
