"""Booking model."""
from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin, enum_column

if TYPE_CHECKING:  # pragma: no cover
    from app.models.escrow import EscrowTransaction
    from app.models.property import Property


class BookingStatus(str, enum.Enum):
    """Lifecycle states for a funded booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentType(str, enum.Enum):
    """Payment plan committed at booking time."""

    FULL = "full"
    DOWNPAYMENT = "downpayment"


OPEN_BOOKING_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.ACTIVE}
)

# Bookings that currently occupy the property.
OCCUPYING_BOOKING_STATUSES = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.ACTIVE}
)

# Bookings that mark a matching reservation as completed for display.
FUNDED_BOOKING_STATUSES = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.ACTIVE, BookingStatus.COMPLETED}
)

_OPEN_PAIR_PREDICATE = text("status IN ('pending', 'confirmed', 'active')")


class Booking(TimestampMixin, Base):
    """A tenant's committed, paid-into-escrow tenancy."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index(
            "uq_bookings_open_pair",
            "tenant_id",
            "property_id",
            unique=True,
            sqlite_where=_OPEN_PAIR_PREDICATE,
            postgresql_where=_OPEN_PAIR_PREDICATE,
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    landlord_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reservation_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("reservations.id", ondelete="SET NULL")
    )
    status: Mapped[BookingStatus] = mapped_column(
        enum_column(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False
    )
    payment_type: Mapped[PaymentType] = mapped_column(
        enum_column(PaymentType), nullable=False
    )
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    remaining_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    move_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration_months: Mapped[int] = mapped_column(Integer, nullable=False)
    tenant_message: Mapped[str | None] = mapped_column(Text)

    property: Mapped["Property"] = relationship("Property")
    escrow: Mapped["EscrowTransaction | None"] = relationship(
        "EscrowTransaction", back_populates="booking", uselist=False
    )
