"""Booking orchestration: payment plan, booking row and its escrow."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import NoReturn

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db.retry import retry_read
from app.models.booking import (
    OCCUPYING_BOOKING_STATUSES,
    OPEN_BOOKING_STATUSES,
    Booking,
    BookingStatus,
    PaymentType,
)
from app.models.escrow import EscrowStatus, EscrowTransaction
from app.models.user import User, UserRole
from app.services import (
    escrow_service,
    event_service,
    payment_plan,
    property_service,
    reservation_service,
)
from app.services.errors import (
    DuplicateBooking,
    InvalidTransition,
    NotAuthorized,
    NotFound,
    PropertyUnavailable,
)

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "Cancelled by tenant"


def _coerce_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _resolve_now(now: datetime | None) -> datetime:
    return _coerce_utc(now) if now is not None else datetime.now(UTC)


def _validate_terms(move_in_date: date, duration_months: int, now: datetime) -> None:
    if move_in_date <= now.date():
        raise ValueError("Move-in date must be in the future")
    if duration_months < 1:
        raise ValueError("Duration must be at least one month")


def _base_booking_query():
    return select(Booking).options(selectinload(Booking.escrow))


async def _ensure_no_open_booking(
    session: AsyncSession, *, tenant_id: uuid.UUID, property_id: uuid.UUID
) -> None:
    result = await session.execute(
        select(Booking.id).where(
            Booking.tenant_id == tenant_id,
            Booking.property_id == property_id,
            Booking.status.in_(OPEN_BOOKING_STATUSES),
        )
    )
    if result.first() is not None:
        raise DuplicateBooking("You already have an active booking for this property")


async def create_booking(
    session: AsyncSession,
    *,
    tenant: User,
    property_id: uuid.UUID,
    plan: PaymentType,
    move_in_date: date,
    duration_months: int,
    reservation_id: uuid.UUID | None = None,
    message: str | None = None,
    now: datetime | None = None,
) -> Booking:
    """Open a confirmed booking and hold the collected amount in escrow.

    The booking, its escrow transaction and the ``booking.created`` event are
    committed together or not at all. ``reservation_id`` is optional; a
    booking never requires a prior hold.
    """
    now = _resolve_now(now)
    tenant_id = tenant.id
    if tenant.role != UserRole.STUDENT:
        raise NotAuthorized("Only students can book properties")
    _validate_terms(move_in_date, duration_months, now)

    property = await property_service.get_property(session, property_id)
    if not property.is_available:
        raise PropertyUnavailable("Property is not available")
    quote = payment_plan.compute(property, plan)
    landlord_id = property.landlord_id

    if reservation_id is not None:
        await reservation_service.get_approved_reservation(
            session,
            reservation_id=reservation_id,
            tenant_id=tenant_id,
            property_id=property_id,
        )
    await _ensure_no_open_booking(
        session, tenant_id=tenant_id, property_id=property_id
    )

    booking = Booking(
        property_id=property_id,
        tenant_id=tenant_id,
        landlord_id=landlord_id,
        reservation_id=reservation_id,
        status=BookingStatus.CONFIRMED,
        payment_type=quote.plan_used,
        amount_paid=quote.amount_now,
        remaining_balance=quote.remaining_balance,
        move_in_date=move_in_date,
        duration_months=duration_months,
        tenant_message=message,
        created_at=now,
        updated_at=now,
    )
    booking.escrow = EscrowTransaction(
        property_id=property_id,
        tenant_id=tenant_id,
        landlord_id=landlord_id,
        amount=quote.amount_now,
        status=EscrowStatus.HELD,
        held_date=now,
        created_at=now,
        updated_at=now,
    )
    session.add(booking)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateBooking(
            "You already have an active booking for this property"
        ) from exc

    event_service.emit(
        session,
        event_type=event_service.BOOKING_CREATED,
        entity_id=booking.id,
        actor_id=tenant_id,
        recipient_id=landlord_id,
        payload={
            "booking_id": str(booking.id),
            "escrow_id": str(booking.escrow.id),
            "property_id": str(property_id),
            "tenant_id": str(tenant_id),
            "landlord_id": str(landlord_id),
            "payment_type": quote.plan_used.value,
            "amount_paid": str(quote.amount_now),
        },
    )
    await session.commit()
    logger.info(
        "Booking %s created for property %s with %s escrowed",
        booking.id,
        property_id,
        quote.amount_now,
    )
    return booking


async def cancel_booking(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    tenant: User,
    reason: str | None = None,
    now: datetime | None = None,
) -> Booking:
    """Withdraw a confirmed booking, refunding its held escrow."""
    await escrow_service.refund_for_cancellation(
        session,
        booking_id=booking_id,
        tenant=tenant,
        reason=reason or DEFAULT_CANCELLATION_REASON,
        now=now,
    )
    return await _load_booking(session, booking_id)


async def _diagnose_completion_miss(
    session: AsyncSession, *, booking_id: uuid.UUID, landlord_id: uuid.UUID
) -> NoReturn:
    booking = await session.get(Booking, booking_id, populate_existing=True)
    owner_id = booking.landlord_id if booking is not None else None
    current = booking.status if booking is not None else None
    await session.rollback()
    if booking is None:
        raise NotFound("Booking not found")
    if owner_id != landlord_id:
        raise NotAuthorized("Only the property's landlord can complete a booking")
    raise InvalidTransition(
        f"Only active bookings can be completed, booking is {current.value}",
        current=current.value,
        target=BookingStatus.COMPLETED.value,
    )


async def complete_booking(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    landlord: User,
    now: datetime | None = None,
) -> Booking:
    """Close out an active tenancy."""
    now = _resolve_now(now)
    landlord_id = landlord.id
    result = await session.execute(
        update(Booking)
        .where(
            Booking.id == booking_id,
            Booking.landlord_id == landlord_id,
            Booking.status == BookingStatus.ACTIVE,
        )
        .values(status=BookingStatus.COMPLETED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await _diagnose_completion_miss(
            session, booking_id=booking_id, landlord_id=landlord_id
        )
    await session.commit()
    logger.info("Booking %s completed by landlord %s", booking_id, landlord_id)
    return await _load_booking(session, booking_id)


async def _load_booking(session: AsyncSession, booking_id: uuid.UUID) -> Booking:
    result = await session.execute(
        _base_booking_query()
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFound("Booking not found")
    return booking


async def get_booking(
    session: AsyncSession, *, user: User, booking_id: uuid.UUID
) -> Booking:
    user_id, role = user.id, user.role

    async def _load() -> Booking | None:
        result = await session.execute(
            _base_booking_query()
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    booking = await retry_read(_load, session=session)
    if booking is None:
        raise NotFound("Booking not found")
    if role != UserRole.ADMIN and user_id not in (
        booking.tenant_id,
        booking.landlord_id,
    ):
        raise NotAuthorized("You do not have access to this booking")
    return booking


async def list_bookings(
    session: AsyncSession,
    *,
    user: User,
    status: BookingStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Booking]:
    """Return bookings visible to ``user``, newest first."""
    stmt = _base_booking_query().order_by(Booking.created_at.desc())
    if user.role == UserRole.LANDLORD:
        stmt = stmt.where(Booking.landlord_id == user.id)
    elif user.role != UserRole.ADMIN:
        stmt = stmt.where(Booking.tenant_id == user.id)
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    stmt = stmt.offset(skip).limit(limit).execution_options(populate_existing=True)

    async def _load() -> Sequence[Booking]:
        result = await session.execute(stmt)
        return result.scalars().unique().all()

    return await retry_read(_load, session=session)


async def has_active_booking(
    session: AsyncSession, *, property_id: uuid.UUID
) -> bool:
    """Whether ``property_id`` has a confirmed or active booking from anyone."""

    async def _load() -> bool:
        result = await session.execute(
            select(Booking.id)
            .where(
                Booking.property_id == property_id,
                Booking.status.in_(OCCUPYING_BOOKING_STATUSES),
            )
            .limit(1)
        )
        return result.first() is not None

    return await retry_read(_load, session=session)
