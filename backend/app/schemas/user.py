"""User-related schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr

from app.models.user import SubscriptionTier, UserRole


class UserRead(BaseModel):
    """Public representation of a user."""

    id: uuid.UUID
    email: EmailStr
    full_name: str
    role: UserRole
    subscription_tier: SubscriptionTier
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
