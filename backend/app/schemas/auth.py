"""Authentication schemas."""
from __future__ import annotations

import uuid

from pydantic import BaseModel

from app.models.user import SubscriptionTier, UserRole


class Token(BaseModel):
    """Bearer token issued at login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenClaims(BaseModel):
    """Decoded JWT payload.

    ``role`` and ``tier`` are hints for clients; authorization always uses
    the stored user.
    """

    sub: uuid.UUID
    role: UserRole | None = None
    tier: SubscriptionTier | None = None
