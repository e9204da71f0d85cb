"""Liveness and database readiness probe."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import SessionDep
from app.core.config import get_settings
from app.db.retry import retry_read

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Service health status")
async def healthcheck(session: SessionDep, response: Response) -> dict[str, str]:
    """Report service metadata; 503 when the database probe fails."""
    settings = get_settings()

    async def _probe() -> None:
        await session.execute(text("SELECT 1"))

    try:
        await retry_read(_probe, session=session)
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Database health probe failed")
        database = "unavailable"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "ok" if database == "ok" else "degraded",
        "service": settings.app_name,
        "database": database,
        "environment": settings.app_env,
        "timestamp": datetime.now(UTC).isoformat(),
    }
