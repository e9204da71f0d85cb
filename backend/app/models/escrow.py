"""Escrow transaction model for funds collected at booking time."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin, enum_column

if TYPE_CHECKING:
    from app.models import Booking


class EscrowStatus(str, enum.Enum):
    """Fund states; ``released`` and ``refunded`` are terminal."""

    HELD = "held"
    RELEASED = "released"
    REFUNDED = "refunded"


class EscrowTransaction(TimestampMixin, Base):
    """Money held by the platform pending the landlord's decision."""

    __tablename__ = "escrow_transactions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    landlord_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[EscrowStatus] = mapped_column(
        enum_column(EscrowStatus), default=EscrowStatus.HELD, nullable=False
    )
    held_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    released_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    refunded_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    refund_reason: Mapped[str | None] = mapped_column(String(1024))

    booking: Mapped["Booking"] = relationship("Booking", back_populates="escrow")
