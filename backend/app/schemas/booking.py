"""Pydantic schemas for bookings."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.booking import BookingStatus, PaymentType
from app.schemas.escrow import EscrowRead


class BookingCreate(BaseModel):
    """Payload for booking a property, with or without a prior hold."""

    property_id: uuid.UUID
    payment_type: PaymentType = PaymentType.FULL
    move_in_date: date
    duration_months: int = Field(ge=1, le=120)
    reservation_id: uuid.UUID | None = None
    message: str | None = Field(default=None, max_length=2000)


class BookingCancelRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1024)


class BookingCheckRead(BaseModel):
    """Whether a property is currently booked."""

    property_id: uuid.UUID
    has_active_booking: bool


class BookingRead(BaseModel):
    """Serialized booking representation."""

    id: uuid.UUID
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    reservation_id: uuid.UUID | None = None
    status: BookingStatus
    payment_type: PaymentType
    amount_paid: Decimal
    remaining_balance: Decimal
    move_in_date: date
    duration_months: int
    tenant_message: str | None = None
    created_at: datetime
    updated_at: datetime
    escrow: EscrowRead | None = None

    model_config = ConfigDict(from_attributes=True)
