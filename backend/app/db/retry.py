"""Backoff retries for idempotent reads."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_ERRORS = (OperationalError, InterfaceError)


async def retry_read(
    operation: Callable[[], Awaitable[T]],
    *,
    session: AsyncSession | None = None,
    attempts: int | None = None,
    base_delay: float | None = None,
) -> T:
    """Run a read-only ``operation`` retrying transient storage failures.

    Only pass callables that do not mutate state. State-machine writes must
    never go through here; callers re-check current state instead.
    """
    settings = get_settings()
    max_attempts = max(1, attempts or settings.read_retry_attempts)
    delay = settings.read_retry_base_delay if base_delay is None else base_delay

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except _TRANSIENT_ERRORS as exc:
            if attempt >= max_attempts:
                logger.error("Read failed after %s attempts: %s", attempt, exc)
                raise
            wait = delay * (2 ** (attempt - 1))
            logger.warning(
                "Transient storage error on attempt %s/%s; retrying in %.2fs",
                attempt,
                max_attempts,
                wait,
            )
            if session is not None:
                await session.rollback()
            await asyncio.sleep(wait)
    raise RuntimeError("retry_read exhausted without result")  # pragma: no cover
