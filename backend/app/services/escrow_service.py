"""Escrow ledger: held funds and their one-way release or refund."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, NoReturn

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.db.retry import retry_read
from app.models.booking import Booking, BookingStatus
from app.models.escrow import EscrowStatus, EscrowTransaction
from app.models.user import User, UserRole
from app.services import event_service
from app.services.errors import (
    AlreadyFinalized,
    InvalidTransition,
    NotAuthorized,
    NotFound,
)

logger = logging.getLogger(__name__)

TIMELINE_LABELS: dict[EscrowStatus, str] = {
    EscrowStatus.HELD: "Payment held in escrow",
    EscrowStatus.RELEASED: "Payment released to landlord",
    EscrowStatus.REFUNDED: "Payment refunded to tenant",
}

_TERMINAL_STATUSES = frozenset({EscrowStatus.RELEASED, EscrowStatus.REFUNDED})


@dataclass(frozen=True)
class TimelineEntry:
    status: EscrowStatus
    timestamp: datetime
    label: str


def _coerce_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _resolve_now(now: datetime | None) -> datetime:
    return _coerce_utc(now) if now is not None else datetime.now(UTC)


def _require_reason(reason: str | None) -> str:
    if reason is None or not reason.strip():
        raise ValueError("A reason is required to refund escrow")
    return reason


def timeline(escrow: EscrowTransaction) -> list[TimelineEntry]:
    """Derive the chronological fund history from the stored timestamps."""
    entries = [
        TimelineEntry(
            status=EscrowStatus.HELD,
            timestamp=_coerce_utc(escrow.held_date),
            label=TIMELINE_LABELS[EscrowStatus.HELD],
        )
    ]
    for status, stamp in (
        (EscrowStatus.RELEASED, escrow.released_date),
        (EscrowStatus.REFUNDED, escrow.refunded_date),
    ):
        if stamp is not None:
            entries.append(
                TimelineEntry(
                    status=status,
                    timestamp=_coerce_utc(stamp),
                    label=TIMELINE_LABELS[status],
                )
            )
    return sorted(entries, key=lambda entry: entry.timestamp)


async def _diagnose_miss(
    session: AsyncSession,
    *,
    criterion: ColumnElement[bool],
    actor_id: uuid.UUID,
    party: str,
) -> NoReturn:
    result = await session.execute(
        select(EscrowTransaction)
        .where(criterion)
        .execution_options(populate_existing=True)
    )
    escrow = result.scalar_one_or_none()
    owner_id = getattr(escrow, f"{party}_id", None)
    current = escrow.status if escrow is not None else None
    await session.rollback()
    if escrow is None:
        raise NotFound("Escrow transaction not found")
    if owner_id != actor_id:
        raise NotAuthorized(f"Only the transaction's {party} can do this")
    if current in _TERMINAL_STATUSES:
        raise AlreadyFinalized(
            f"Escrow transaction is already {current.value}",
            current=current.value,
        )
    raise InvalidTransition(  # pragma: no cover - held rows always match
        "Escrow transaction changed concurrently", current=current.value
    )


async def _finalize(
    session: AsyncSession,
    *,
    criterion: ColumnElement[bool],
    actor_id: uuid.UUID,
    party: str,
    target: EscrowStatus,
    booking_status: BookingStatus,
    values: dict[str, Any],
    event_type: str,
    now: datetime,
) -> EscrowTransaction:
    """Move a held escrow to ``target`` and advance its booking in one commit."""
    party_column = getattr(EscrowTransaction, f"{party}_id")
    stmt = (
        update(EscrowTransaction)
        .where(
            criterion,
            party_column == actor_id,
            EscrowTransaction.status == EscrowStatus.HELD,
        )
        .values(status=target, updated_at=now, **values)
        .returning(EscrowTransaction.id, EscrowTransaction.booking_id)
        .execution_options(synchronize_session=False)
    )
    row = (await session.execute(stmt)).one_or_none()
    if row is None:
        await _diagnose_miss(
            session, criterion=criterion, actor_id=actor_id, party=party
        )
    escrow_id, booking_id = row

    booking_result = await session.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == BookingStatus.CONFIRMED)
        .values(status=booking_status, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if booking_result.rowcount != 1:
        await session.rollback()
        raise InvalidTransition(
            "Booking is not awaiting an escrow decision",
            target=booking_status.value,
        )

    escrow = await session.get(EscrowTransaction, escrow_id, populate_existing=True)
    counterparty = escrow.tenant_id if party == "landlord" else escrow.landlord_id
    event_service.emit(
        session,
        event_type=event_type,
        entity_id=escrow.id,
        actor_id=actor_id,
        recipient_id=counterparty,
        payload={
            "escrow_id": str(escrow.id),
            "booking_id": str(booking_id),
            "tenant_id": str(escrow.tenant_id),
            "landlord_id": str(escrow.landlord_id),
            "amount": str(escrow.amount),
        },
    )
    await session.commit()
    # Refresh a booking already in the identity map so callers see its new status.
    await session.get(Booking, booking_id, populate_existing=True)
    logger.info(
        "Escrow %s %s by %s %s; booking %s now %s",
        escrow_id,
        target.value,
        party,
        actor_id,
        booking_id,
        booking_status.value,
    )
    return escrow


async def accept_escrow(
    session: AsyncSession,
    *,
    escrow_id: uuid.UUID,
    landlord: User,
    now: datetime | None = None,
) -> EscrowTransaction:
    """Release held funds to the landlord; the booking becomes active."""
    now = _resolve_now(now)
    return await _finalize(
        session,
        criterion=EscrowTransaction.id == escrow_id,
        actor_id=landlord.id,
        party="landlord",
        target=EscrowStatus.RELEASED,
        booking_status=BookingStatus.ACTIVE,
        values={"released_date": now},
        event_type=event_service.ESCROW_RELEASED,
        now=now,
    )


async def decline_escrow(
    session: AsyncSession,
    *,
    escrow_id: uuid.UUID,
    landlord: User,
    reason: str,
    now: datetime | None = None,
) -> EscrowTransaction:
    """Refund held funds to the tenant; the booking becomes rejected."""
    reason = _require_reason(reason)
    now = _resolve_now(now)
    return await _finalize(
        session,
        criterion=EscrowTransaction.id == escrow_id,
        actor_id=landlord.id,
        party="landlord",
        target=EscrowStatus.REFUNDED,
        booking_status=BookingStatus.REJECTED,
        values={"refunded_date": now, "refund_reason": reason},
        event_type=event_service.ESCROW_REFUNDED,
        now=now,
    )


async def refund_for_cancellation(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    tenant: User,
    reason: str,
    now: datetime | None = None,
) -> EscrowTransaction:
    """Refund held funds when the tenant withdraws; the booking is cancelled."""
    reason = _require_reason(reason)
    now = _resolve_now(now)
    return await _finalize(
        session,
        criterion=EscrowTransaction.booking_id == booking_id,
        actor_id=tenant.id,
        party="tenant",
        target=EscrowStatus.REFUNDED,
        booking_status=BookingStatus.CANCELLED,
        values={"refunded_date": now, "refund_reason": reason},
        event_type=event_service.ESCROW_REFUNDED,
        now=now,
    )


def _ensure_visible(escrow: EscrowTransaction, user_id: uuid.UUID, role: UserRole) -> None:
    if role == UserRole.ADMIN:
        return
    if user_id not in (escrow.tenant_id, escrow.landlord_id):
        raise NotAuthorized("You do not have access to this escrow transaction")


async def _get_one(
    session: AsyncSession, *, user: User, criterion: ColumnElement[bool]
) -> EscrowTransaction:
    user_id, role = user.id, user.role

    async def _load() -> EscrowTransaction | None:
        result = await session.execute(
            select(EscrowTransaction)
            .where(criterion)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    escrow = await retry_read(_load, session=session)
    if escrow is None:
        raise NotFound("Escrow transaction not found")
    _ensure_visible(escrow, user_id, role)
    return escrow


async def get_escrow(
    session: AsyncSession, *, user: User, escrow_id: uuid.UUID
) -> EscrowTransaction:
    return await _get_one(
        session, user=user, criterion=EscrowTransaction.id == escrow_id
    )


async def get_escrow_for_booking(
    session: AsyncSession, *, user: User, booking_id: uuid.UUID
) -> EscrowTransaction:
    return await _get_one(
        session, user=user, criterion=EscrowTransaction.booking_id == booking_id
    )


async def list_escrow(
    session: AsyncSession,
    *,
    user: User,
    status: EscrowStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[EscrowTransaction]:
    """Return escrow transactions visible to ``user``, newest first."""
    stmt = select(EscrowTransaction).order_by(EscrowTransaction.held_date.desc())
    if user.role == UserRole.LANDLORD:
        stmt = stmt.where(EscrowTransaction.landlord_id == user.id)
    elif user.role != UserRole.ADMIN:
        stmt = stmt.where(EscrowTransaction.tenant_id == user.id)
    if status is not None:
        stmt = stmt.where(EscrowTransaction.status == status)
    stmt = stmt.offset(skip).limit(limit).execution_options(populate_existing=True)

    async def _load() -> list[EscrowTransaction]:
        result = await session.execute(stmt)
        return list(result.scalars().all())

    return await retry_read(_load, session=session)
