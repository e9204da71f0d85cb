"""Helpers for recording lifecycle events for downstream notification."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.domain_event import DomainEvent

logger = logging.getLogger(__name__)

RESERVATION_CREATED = "reservation.created"
RESERVATION_APPROVED = "reservation.approved"
RESERVATION_REJECTED = "reservation.rejected"
RESERVATION_EXPIRED = "reservation.expired"
BOOKING_CREATED = "booking.created"
ESCROW_RELEASED = "escrow.released"
ESCROW_REFUNDED = "escrow.refunded"


def emit(
    session: AsyncSession,
    *,
    event_type: str,
    entity_id: uuid.UUID,
    actor_id: uuid.UUID | None,
    recipient_id: uuid.UUID | None,
    payload: dict[str, Any] | None = None,
) -> DomainEvent:
    """Stage an event in the caller's unit of work.

    Does not flush or commit; the event becomes visible together with the
    state change that produced it.
    """
    event = DomainEvent(
        event_type=event_type,
        entity_id=entity_id,
        actor_id=actor_id,
        recipient_id=recipient_id,
        payload=payload,
    )
    session.add(event)
    logger.info("Staged %s for %s", event_type, entity_id)
    return event


async def list_events(
    session: AsyncSession,
    *,
    entity_id: uuid.UUID | None = None,
    event_type: str | None = None,
) -> Sequence[DomainEvent]:
    stmt = select(DomainEvent).order_by(DomainEvent.created_at, DomainEvent.id)
    if entity_id is not None:
        stmt = stmt.where(DomainEvent.entity_id == entity_id)
    if event_type is not None:
        stmt = stmt.where(DomainEvent.event_type == event_type)
    result = await session.execute(stmt)
    return result.scalars().all()
