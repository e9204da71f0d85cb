"""Pydantic schemas for escrow transactions."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.models.escrow import EscrowStatus
from app.services import escrow_service


class EscrowTimelineEntry(BaseModel):
    status: EscrowStatus
    timestamp: datetime
    label: str

    model_config = ConfigDict(from_attributes=True)


class EscrowDeclineRequest(BaseModel):
    """Payload for a landlord declining held funds."""

    reason: str = Field(min_length=1, max_length=1024)


class EscrowRead(BaseModel):
    """Serialized escrow transaction with its derived timeline."""

    id: uuid.UUID
    booking_id: uuid.UUID
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    landlord_id: uuid.UUID
    amount: Decimal
    status: EscrowStatus
    held_date: datetime
    released_date: datetime | None = None
    refunded_date: datetime | None = None
    refund_reason: str | None = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def timeline(self) -> list[EscrowTimelineEntry]:
        return [
            EscrowTimelineEntry.model_validate(entry)
            for entry in escrow_service.timeline(self)
        ]
