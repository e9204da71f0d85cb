"""HTTP surface of the booking core."""

from fastapi import APIRouter

from app.api.v1 import router as v1_router
from app.core.config import get_settings


def build_api_router() -> APIRouter:
    """Mount each API version under its configured prefix."""
    router = APIRouter()
    router.include_router(v1_router, prefix=get_settings().api_v1_prefix)
    return router


api_router = build_api_router()

__all__ = ["api_router", "build_api_router"]
