"""Reservation (48 hour hold) lifecycle service helpers."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import NoReturn

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.retry import retry_read
from app.models.booking import FUNDED_BOOKING_STATUSES, Booking
from app.models.reservation import (
    ACTIVE_RESERVATION_STATUSES,
    Reservation,
    ReservationStatus,
)
from app.models.user import User, UserRole
from app.services import event_service, property_service, quota_service, user_service
from app.services.errors import (
    DuplicateReservation,
    InvalidTransition,
    LimitReached,
    NotAuthorized,
    NotFound,
    PropertyUnavailable,
)
from app.services.quota_service import QuotaKind

logger = logging.getLogger(__name__)

COMPLETED_DISPLAY_STATUS = "completed"

_ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {
        ReservationStatus.APPROVED,
        ReservationStatus.REJECTED,
        ReservationStatus.CANCELLED,
        ReservationStatus.EXPIRED,
    },
    ReservationStatus.APPROVED: {ReservationStatus.CANCELLED},
    ReservationStatus.REJECTED: set(),
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.EXPIRED: set(),
}


@dataclass(frozen=True)
class ReservationView:
    """A stored reservation plus its derived display status."""

    reservation: Reservation
    has_funded_booking: bool = False

    @property
    def display_status(self) -> str:
        if (
            self.reservation.status == ReservationStatus.APPROVED
            and self.has_funded_booking
        ):
            return COMPLETED_DISPLAY_STATUS
        return self.reservation.status.value


def _coerce_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _resolve_now(now: datetime | None) -> datetime:
    return _coerce_utc(now) if now is not None else datetime.now(UTC)


def hold_duration() -> timedelta:
    return timedelta(hours=get_settings().reservation_hold_hours)


def _validate_status_transition(
    current: ReservationStatus, target: ReservationStatus
) -> None:
    allowed = _ALLOWED_STATUS_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidTransition(
            f"Invalid status transition from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )


def _event_payload(reservation: Reservation) -> dict[str, str]:
    return {
        "reservation_id": str(reservation.id),
        "property_id": str(reservation.property_id),
        "tenant_id": str(reservation.tenant_id),
        "landlord_id": str(reservation.landlord_id),
    }


def _funded_booking_exists():
    return (
        exists()
        .where(
            Booking.tenant_id == Reservation.tenant_id,
            Booking.property_id == Reservation.property_id,
            Booking.status.in_(FUNDED_BOOKING_STATUSES),
        )
        .label("has_funded_booking")
    )


async def _reload(session: AsyncSession, reservation_id: uuid.UUID) -> Reservation:
    reservation = await session.get(
        Reservation, reservation_id, populate_existing=True
    )
    if reservation is None:  # pragma: no cover - row was just updated
        raise NotFound("Reservation not found")
    return reservation


async def expire_overdue_reservations(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID | None = None,
    landlord_id: uuid.UUID | None = None,
    reservation_id: uuid.UUID | None = None,
    property_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> list[uuid.UUID]:
    """Mark pending holds past their expiry as ``expired`` and commit.

    The optional filters narrow the sweep to the scope a read is about to
    return. Returns the ids that changed.
    """
    now = _resolve_now(now)
    stmt = (
        update(Reservation)
        .where(
            Reservation.status == ReservationStatus.PENDING,
            Reservation.expiry_date < now,
        )
        .values(status=ReservationStatus.EXPIRED, updated_at=now)
        .returning(
            Reservation.id,
            Reservation.property_id,
            Reservation.tenant_id,
            Reservation.landlord_id,
        )
        .execution_options(synchronize_session=False)
    )
    if tenant_id is not None:
        stmt = stmt.where(Reservation.tenant_id == tenant_id)
    if landlord_id is not None:
        stmt = stmt.where(Reservation.landlord_id == landlord_id)
    if reservation_id is not None:
        stmt = stmt.where(Reservation.id == reservation_id)
    if property_id is not None:
        stmt = stmt.where(Reservation.property_id == property_id)

    rows = (await session.execute(stmt)).all()
    if not rows:
        await session.commit()
        return []
    for row in rows:
        event_service.emit(
            session,
            event_type=event_service.RESERVATION_EXPIRED,
            entity_id=row.id,
            actor_id=None,
            recipient_id=row.tenant_id,
            payload={
                "reservation_id": str(row.id),
                "property_id": str(row.property_id),
                "tenant_id": str(row.tenant_id),
                "landlord_id": str(row.landlord_id),
            },
        )
    await session.commit()
    expired_ids = [row.id for row in rows]
    logger.info("Expired %s overdue reservation(s)", len(expired_ids))
    return expired_ids


async def create_reservation(
    session: AsyncSession,
    *,
    tenant: User,
    property_id: uuid.UUID,
    message: str | None = None,
    now: datetime | None = None,
) -> Reservation:
    """Place a 48 hour hold on ``property_id`` for ``tenant``."""
    now = _resolve_now(now)
    tenant_id = tenant.id
    tier = tenant.subscription_tier
    if tenant.role != UserRole.STUDENT:
        raise NotAuthorized("Only students can reserve properties")

    property = await property_service.get_property(session, property_id)
    if not property.allow_reservations:
        raise PropertyUnavailable("This property does not accept reservations")
    if not property.is_available:
        raise PropertyUnavailable("Property is not available")
    landlord_id = property.landlord_id

    await expire_overdue_reservations(session, tenant_id=tenant_id, now=now)

    # Serialize quota-gated creates for this tenant until commit.
    await user_service.lock_user(session, tenant_id)
    duplicate = await session.execute(
        select(Reservation.id).where(
            Reservation.tenant_id == tenant_id,
            Reservation.property_id == property_id,
            Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
        )
    )
    if duplicate.first() is not None:
        await session.rollback()
        raise DuplicateReservation(
            "You already have an active reservation for this property"
        )

    current = await quota_service.count_active_reservations(
        session, tenant_id=tenant_id, now=now
    )
    try:
        quota_service.enforce(tier, QuotaKind.RESERVATION, current)
    except LimitReached:
        await session.rollback()
        raise

    reservation = Reservation(
        property_id=property_id,
        tenant_id=tenant_id,
        landlord_id=landlord_id,
        status=ReservationStatus.PENDING,
        message=message,
        created_at=now,
        updated_at=now,
        expiry_date=now + hold_duration(),
    )
    session.add(reservation)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateReservation(
            "You already have an active reservation for this property"
        ) from exc

    event_service.emit(
        session,
        event_type=event_service.RESERVATION_CREATED,
        entity_id=reservation.id,
        actor_id=tenant_id,
        recipient_id=landlord_id,
        payload=_event_payload(reservation),
    )
    await session.commit()
    logger.info("Reservation %s created by tenant %s", reservation.id, tenant_id)
    return reservation


async def _diagnose_miss(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    actor_id: uuid.UUID,
    party: str,
    target: ReservationStatus,
) -> NoReturn:
    reservation = await session.get(
        Reservation, reservation_id, populate_existing=True
    )
    owner_id = getattr(reservation, f"{party}_id", None)
    current = reservation.status if reservation is not None else None
    await session.rollback()
    if reservation is None:
        raise NotFound("Reservation not found")
    if owner_id != actor_id:
        raise NotAuthorized(f"Only the reservation's {party} can do this")
    _validate_status_transition(current, target)
    # The row was in an allowed state but changed under us.
    raise InvalidTransition(
        f"Reservation is no longer {current.value}",
        current=current.value,
        target=target.value,
    )


async def _transition(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    actor: User,
    party: str,
    from_statuses: set[ReservationStatus],
    target: ReservationStatus,
    now: datetime,
    values: dict[str, object] | None = None,
    event_type: str | None = None,
) -> Reservation:
    actor_id = actor.id
    await expire_overdue_reservations(session, reservation_id=reservation_id, now=now)

    party_column = getattr(Reservation, f"{party}_id")
    stmt = (
        update(Reservation)
        .where(
            Reservation.id == reservation_id,
            party_column == actor_id,
            Reservation.status.in_(from_statuses),
        )
        .values(status=target, updated_at=now, **(values or {}))
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount != 1:
        await _diagnose_miss(
            session,
            reservation_id=reservation_id,
            actor_id=actor_id,
            party=party,
            target=target,
        )

    reservation = await _reload(session, reservation_id)
    if event_type is not None:
        counterparty = (
            reservation.tenant_id if party == "landlord" else reservation.landlord_id
        )
        event_service.emit(
            session,
            event_type=event_type,
            entity_id=reservation.id,
            actor_id=actor_id,
            recipient_id=counterparty,
            payload=_event_payload(reservation),
        )
    await session.commit()
    logger.info(
        "Reservation %s moved to %s by %s %s",
        reservation_id,
        target.value,
        party,
        actor_id,
    )
    return reservation


async def approve_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    landlord: User,
    now: datetime | None = None,
) -> Reservation:
    return await _transition(
        session,
        reservation_id=reservation_id,
        actor=landlord,
        party="landlord",
        from_statuses={ReservationStatus.PENDING},
        target=ReservationStatus.APPROVED,
        now=_resolve_now(now),
        event_type=event_service.RESERVATION_APPROVED,
    )


async def reject_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    landlord: User,
    reason: str,
    now: datetime | None = None,
) -> Reservation:
    """Reject a pending hold, storing ``reason`` verbatim."""
    if not reason or not reason.strip():
        raise ValueError("A rejection reason is required")
    return await _transition(
        session,
        reservation_id=reservation_id,
        actor=landlord,
        party="landlord",
        from_statuses={ReservationStatus.PENDING},
        target=ReservationStatus.REJECTED,
        now=_resolve_now(now),
        values={"rejection_reason": reason},
        event_type=event_service.RESERVATION_REJECTED,
    )


async def cancel_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    tenant: User,
    now: datetime | None = None,
) -> Reservation:
    return await _transition(
        session,
        reservation_id=reservation_id,
        actor=tenant,
        party="tenant",
        from_statuses={ReservationStatus.PENDING, ReservationStatus.APPROVED},
        target=ReservationStatus.CANCELLED,
        now=_resolve_now(now),
    )


async def expire_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    user: User | None = None,
    now: datetime | None = None,
) -> Reservation:
    """Expire a single pending hold whose deadline has passed.

    When ``user`` is given the reservation must be visible to them.
    """
    now = _resolve_now(now)
    if user is not None:
        user_id, role = user.id, user.role
        existing = await session.get(Reservation, reservation_id)
        if existing is None:
            raise NotFound("Reservation not found")
        _ensure_visible(existing, user_id, role)
    expired = await expire_overdue_reservations(
        session, reservation_id=reservation_id, now=now
    )
    reservation = await session.get(
        Reservation, reservation_id, populate_existing=True
    )
    if reservation is None:
        raise NotFound("Reservation not found")
    if expired:
        return reservation
    if reservation.status == ReservationStatus.PENDING:
        message = "Reservation has not reached its expiry date"
    else:
        message = f"Cannot expire a {reservation.status.value} reservation"
    raise InvalidTransition(
        message,
        current=reservation.status.value,
        target=ReservationStatus.EXPIRED.value,
    )


def _ensure_visible(
    reservation: Reservation, user_id: uuid.UUID, role: UserRole
) -> None:
    if role == UserRole.ADMIN:
        return
    if user_id not in (reservation.tenant_id, reservation.landlord_id):
        raise NotAuthorized("You do not have access to this reservation")


def _scope_filters(user: User) -> dict[str, uuid.UUID]:
    """Columns restricting what ``user`` may see, keyed by sweep argument."""
    if user.role == UserRole.ADMIN:
        return {}
    if user.role == UserRole.LANDLORD:
        return {"landlord_id": user.id}
    return {"tenant_id": user.id}


async def list_reservations(
    session: AsyncSession,
    *,
    user: User,
    status: ReservationStatus | None = None,
    skip: int = 0,
    limit: int = 50,
    now: datetime | None = None,
) -> list[ReservationView]:
    """Return reservations visible to ``user`` with derived display status."""
    now = _resolve_now(now)
    scope = _scope_filters(user)
    await expire_overdue_reservations(session, now=now, **scope)

    stmt = select(Reservation, _funded_booking_exists()).order_by(
        Reservation.created_at.desc()
    )
    for column, value in scope.items():
        stmt = stmt.where(getattr(Reservation, column) == value)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    stmt = stmt.offset(skip).limit(limit).execution_options(populate_existing=True)

    async def _load() -> Sequence:
        result = await session.execute(stmt)
        return result.all()

    rows = await retry_read(_load, session=session)
    return [
        ReservationView(reservation=row[0], has_funded_booking=bool(row[1]))
        for row in rows
    ]


async def get_reservation(
    session: AsyncSession,
    *,
    user: User,
    reservation_id: uuid.UUID,
    now: datetime | None = None,
) -> ReservationView:
    now = _resolve_now(now)
    user_id = user.id
    role = user.role
    await expire_overdue_reservations(session, reservation_id=reservation_id, now=now)

    stmt = select(Reservation, _funded_booking_exists()).where(
        Reservation.id == reservation_id
    )

    async def _load():
        result = await session.execute(stmt.execution_options(populate_existing=True))
        return result.one_or_none()

    row = await retry_read(_load, session=session)
    if row is None:
        raise NotFound("Reservation not found")
    reservation = row[0]
    _ensure_visible(reservation, user_id, role)
    return ReservationView(reservation=reservation, has_funded_booking=bool(row[1]))


async def has_active_reservation(
    session: AsyncSession,
    *,
    property_id: uuid.UUID,
    now: datetime | None = None,
) -> bool:
    """Whether any tenant has a pending or approved hold on ``property_id``."""
    now = _resolve_now(now)
    await expire_overdue_reservations(session, property_id=property_id, now=now)

    async def _load() -> bool:
        result = await session.execute(
            select(Reservation.id).where(
                Reservation.property_id == property_id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            )
        )
        return result.first() is not None

    return await retry_read(_load, session=session)


async def get_approved_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    tenant_id: uuid.UUID,
    property_id: uuid.UUID,
) -> Reservation:
    """Return the tenant's approved hold on ``property_id`` used to book."""
    reservation = await session.get(
        Reservation, reservation_id, populate_existing=True
    )
    if reservation is None:
        raise NotFound("Reservation not found")
    if reservation.tenant_id != tenant_id:
        raise NotAuthorized("Reservation belongs to another tenant")
    if reservation.property_id != property_id:
        raise InvalidTransition("Reservation is for a different property")
    if reservation.status != ReservationStatus.APPROVED:
        raise InvalidTransition(
            "Only approved reservations can be converted to a booking",
            current=reservation.status.value,
        )
    return reservation
