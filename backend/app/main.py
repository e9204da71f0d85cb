"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis  # type: ignore[import-untyped]
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_limiter import FastAPILimiter
from secure import Secure

from app.api import api_router
from app.core.config import Settings, get_settings
from app.db.session import dispose_engine
from app.security.logging_filters import SensitiveFilter

logger = logging.getLogger(__name__)

_FILTERED_LOGGERS = ("", "uvicorn", "uvicorn.access", "uvicorn.error")


async def _start_rate_limiter(settings: Settings):
    if not settings.redis_url:
        logger.info("REDIS_URL not set; rate limiting disabled")
        return None
    try:
        pool = redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        await FastAPILimiter.init(pool)
    except Exception:  # pragma: no cover - limiter startup is best effort
        logger.exception("Failed to initialize rate limiter")
        return None
    return pool


async def _stop_rate_limiter(pool) -> None:
    try:
        await FastAPILimiter.close()
    except Exception:  # pragma: no cover - limiter shutdown
        logger.exception("Failed to close rate limiter")
    finally:
        await pool.aclose()


@asynccontextmanager
async def lifespan(_: FastAPI):
    pool = await _start_rate_limiter(get_settings())
    try:
        yield
    finally:
        if pool is not None:
            await _stop_rate_limiter(pool)
        await dispose_engine()


def _install_log_filters() -> None:
    for name in _FILTERED_LOGGERS:
        target = logging.getLogger(name)
        if not any(isinstance(flt, SensitiveFilter) for flt in target.filters):
            target.addFilter(SensitiveFilter())


def create_app() -> FastAPI:
    """Build the API with its middleware stack and routes."""
    settings = get_settings()
    application = FastAPI(title=settings.app_name, lifespan=lifespan)

    origins = [origin for origin in settings.cors_allowlist if origin]
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["http://localhost:5173"],
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    application.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

    secure_headers = Secure()

    @application.middleware("http")
    async def _apply_security_headers(request, call_next):
        response = await call_next(request)
        secure_headers.set_headers(response)
        return response

    application.include_router(api_router)

    @application.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"message": settings.app_name}

    _install_log_filters()
    return application


app = create_app()
