"""Reservation (time-boxed hold) model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin, enum_column

if TYPE_CHECKING:  # pragma: no cover
    from app.models.property import Property


class ReservationStatus(str, enum.Enum):
    """Stored lifecycle states for a hold.

    ``completed`` is a display-only status derived from bookings and is
    never written to this column.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


ACTIVE_RESERVATION_STATUSES = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.APPROVED}
)

_ACTIVE_PAIR_PREDICATE = text("status IN ('pending', 'approved')")


class Reservation(TimestampMixin, Base):
    """A tenant's hold on a property awaiting landlord action."""

    __tablename__ = "reservations"
    __table_args__ = (
        Index(
            "uq_reservations_active_pair",
            "tenant_id",
            "property_id",
            unique=True,
            sqlite_where=_ACTIVE_PAIR_PREDICATE,
            postgresql_where=_ACTIVE_PAIR_PREDICATE,
        ),
        Index("ix_reservations_status_expiry", "status", "expiry_date"),
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
    status: Mapped[ReservationStatus] = mapped_column(
        enum_column(ReservationStatus),
        default=ReservationStatus.PENDING,
        nullable=False,
    )
    message: Mapped[str | None] = mapped_column(Text)
    rejection_reason: Mapped[str | None] = mapped_column(String(1024))
    expiry_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    property: Mapped["Property"] = relationship("Property")
