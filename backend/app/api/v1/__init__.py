"""Version 1 routes."""

from fastapi import APIRouter

from app.core.config import get_settings
from app.security.rate_limit import rate_limit

from . import (
    auth,
    bookings,
    escrow,
    favorites,
    health,
    properties,
    quota,
    reservations,
    users,
)

_throttled = [rate_limit(get_settings().rate_limit_default)]

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
for module, prefix in (
    (reservations, "/reservations"),
    (bookings, "/bookings"),
    (escrow, "/escrow"),
    (favorites, "/favorites"),
    (quota, "/quota"),
    (properties, "/properties"),
):
    router.include_router(
        module.router, prefix=prefix, tags=[prefix.strip("/")], dependencies=_throttled
    )

__all__ = ["router"]
