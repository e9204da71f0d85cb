"""Redis-backed request throttling via fastapi-limiter."""

from __future__ import annotations

from fastapi import Depends, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

_WINDOW_SECONDS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
}


def parse_rate(value: str, *, fallback: tuple[int, int] = (100, 60)) -> tuple[int, int]:
    """Turn ``"10/minute"`` into ``(10, 60)``; malformed values use ``fallback``."""
    count_part, _, window_part = value.partition("/")
    try:
        count = int(count_part.strip())
    except ValueError:
        return fallback
    window = window_part.strip().lower().rstrip("s")
    seconds = _WINDOW_SECONDS.get(window)
    if count < 1 or seconds is None:
        return fallback
    return count, seconds


def rate_limit(value: str):
    """Dependency enforcing ``value``; a no-op until the limiter is initialised."""
    times, seconds = parse_rate(value)
    limiter = RateLimiter(times=times, seconds=seconds)

    async def _dependency(request: Request, response: Response) -> None:
        if FastAPILimiter.redis is None:
            return
        await limiter(request, response)

    return Depends(_dependency)


__all__ = ["parse_rate", "rate_limit"]
