"""Quota snapshot schema."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from app.models.user import SubscriptionTier


class QuotaSnapshotRead(BaseModel):
    """Server-side usage counts; clients treat these as display hints only."""

    tier: SubscriptionTier
    active_reservation_count: int
    favorite_count: int
    reservation_limit: int | None = None
    favorite_limit: int | None = None
    reservations_remaining: int | None = None
    favorites_remaining: int | None = None

    model_config = ConfigDict(from_attributes=True)
