"""User model for tenant, landlord and admin identities."""
from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import TimestampMixin, enum_column


class UserRole(str, enum.Enum):
    """Role enumeration for marketplace permissions."""

    STUDENT = "student"
    LANDLORD = "landlord"
    ADMIN = "admin"


class SubscriptionTier(str, enum.Enum):
    """Subscription levels gating favorites and holds."""

    FREE = "free"
    PREMIUM = "premium"


class User(TimestampMixin, Base):
    """Identity record mirrored from the auth provider."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(240), nullable=False)
    role: Mapped[UserRole] = mapped_column(enum_column(UserRole), nullable=False)
    subscription_tier: Mapped[SubscriptionTier] = mapped_column(
        enum_column(SubscriptionTier), default=SubscriptionTier.FREE, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
