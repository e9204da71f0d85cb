"""Pydantic schemas for reservations."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from app.models.reservation import ReservationStatus

if TYPE_CHECKING:  # pragma: no cover
    from app.services.reservation_service import ReservationView


class ReservationCreate(BaseModel):
    """Payload for placing a hold on a property."""

    property_id: uuid.UUID
    message: str | None = Field(default=None, max_length=2000)


class ReservationRejectRequest(BaseModel):
    """Payload for a landlord rejecting a hold."""

    reason: str = Field(min_length=1, max_length=1024)


class ReservationRead(BaseModel):
    """Serialized reservation representation."""

    id: uuid.UUID
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    status: ReservationStatus
    display_status: str
    message: str | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime
    expiry_date: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_view(cls, view: ReservationView) -> "ReservationRead":
        reservation = view.reservation
        return cls(
            id=reservation.id,
            property_id=reservation.property_id,
            tenant_id=reservation.tenant_id,
            landlord_id=reservation.landlord_id,
            status=reservation.status,
            display_status=view.display_status,
            message=reservation.message,
            rejection_reason=reservation.rejection_reason,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
            expiry_date=reservation.expiry_date,
        )


class ReservationCheckRead(BaseModel):
    """Whether a property currently has a pending or approved hold."""

    property_id: uuid.UUID
    has_active_reservation: bool


class ReservationSweepRead(BaseModel):
    """Result of an expiry sweep."""

    expired_count: int
    expired_ids: list[uuid.UUID] = Field(default_factory=list)
