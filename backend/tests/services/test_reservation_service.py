"""Tests for the reservation hold lifecycle."""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select

from app.db.session import get_sessionmaker
from app.models import PaymentType, Reservation, ReservationStatus, User
from app.services import (
    booking_service,
    event_service,
    quota_service,
    reservation_service,
)
from app.services.errors import (
    DuplicateReservation,
    InvalidTransition,
    LimitReached,
    NotAuthorized,
    PropertyUnavailable,
)

pytestmark = pytest.mark.asyncio


async def _user(session, user_id: uuid.UUID) -> User:
    return await session.get(User, user_id, populate_existing=True)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


async def test_new_hold_expires_after_48_hours(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["free_student_id"]),
            property_id=marketplace["property_downpayment_id"],
            message="Is the unit near the shuttle stop?",
            now=start,
        )
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.landlord_id == marketplace["landlord_id"]
        assert _as_utc(reservation.expiry_date) - _as_utc(
            reservation.created_at
        ) == timedelta(hours=48)

        events = await event_service.list_events(
            session,
            entity_id=reservation.id,
            event_type=event_service.RESERVATION_CREATED,
        )
        assert len(events) == 1
        assert events[0].recipient_id == marketplace["landlord_id"]


async def test_free_tier_reservation_limit(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    tenant_id = marketplace["free_student_id"]
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        for key in ("extra_one", "extra_two"):
            await reservation_service.create_reservation(
                session,
                tenant=await _user(session, tenant_id),
                property_id=marketplace[f"property_{key}_id"],
                now=start,
            )

        with pytest.raises(LimitReached) as exc_info:
            await reservation_service.create_reservation(
                session,
                tenant=await _user(session, tenant_id),
                property_id=marketplace["property_downpayment_id"],
                now=start,
            )
        assert exc_info.value.kind == "reservation"
        assert exc_info.value.limit == 2

        count = await quota_service.count_active_reservations(
            session, tenant_id=tenant_id, now=start
        )
        assert count == 2


async def test_premium_tenant_is_not_capped(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    tenant_id = marketplace["premium_student_id"]
    async with sessionmaker() as session:
        for key in ("extra_one", "extra_two", "downpayment", "full_only"):
            await reservation_service.create_reservation(
                session,
                tenant=await _user(session, tenant_id),
                property_id=marketplace[f"property_{key}_id"],
            )
        count = await quota_service.count_active_reservations(
            session, tenant_id=tenant_id
        )
    assert count == 4


async def test_expired_hold_frees_quota(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    tenant_id = marketplace["free_student_id"]
    start = datetime.now(UTC)
    later = start + timedelta(hours=49)
    async with sessionmaker() as session:
        first = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, tenant_id),
            property_id=marketplace["property_extra_one_id"],
            now=start,
        )
        await reservation_service.create_reservation(
            session,
            tenant=await _user(session, tenant_id),
            property_id=marketplace["property_extra_two_id"],
            now=start,
        )

        view = await reservation_service.get_reservation(
            session,
            user=await _user(session, tenant_id),
            reservation_id=first.id,
            now=later,
        )
        assert view.reservation.status == ReservationStatus.EXPIRED
        assert view.display_status == "expired"

        replacement = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, tenant_id),
            property_id=marketplace["property_downpayment_id"],
            now=later,
        )
        assert replacement.status == ReservationStatus.PENDING

        expired_events = await event_service.list_events(
            session, event_type=event_service.RESERVATION_EXPIRED
        )
        assert len(expired_events) == 2
        assert {event.recipient_id for event in expired_events} == {tenant_id}


async def test_hold_is_still_active_at_deadline(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    tenant_id = marketplace["free_student_id"]
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, tenant_id),
            property_id=marketplace["property_extra_one_id"],
            now=start,
        )
        view = await reservation_service.get_reservation(
            session,
            user=await _user(session, tenant_id),
            reservation_id=reservation.id,
            now=start + timedelta(hours=47),
        )
    assert view.reservation.status == ReservationStatus.PENDING


async def test_duplicate_hold_is_rejected_until_cancelled(
    marketplace, db_url: str
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    tenant_id = marketplace["premium_student_id"]
    property_id = marketplace["property_full_only_id"]
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session, tenant=await _user(session, tenant_id), property_id=property_id
        )
        reservation_id = reservation.id
        with pytest.raises(DuplicateReservation):
            await reservation_service.create_reservation(
                session,
                tenant=await _user(session, tenant_id),
                property_id=property_id,
            )

        cancelled = await reservation_service.cancel_reservation(
            session,
            reservation_id=reservation_id,
            tenant=await _user(session, tenant_id),
        )
        assert cancelled.status == ReservationStatus.CANCELLED

        again = await reservation_service.create_reservation(
            session, tenant=await _user(session, tenant_id), property_id=property_id
        )
        assert again.id != reservation_id


async def test_only_students_reserve_open_properties(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        with pytest.raises(NotAuthorized):
            await reservation_service.create_reservation(
                session,
                tenant=await _user(session, marketplace["landlord_id"]),
                property_id=marketplace["property_full_only_id"],
            )
        for key in ("no_reservations", "unavailable"):
            with pytest.raises(PropertyUnavailable):
                await reservation_service.create_reservation(
                    session,
                    tenant=await _user(session, marketplace["free_student_id"]),
                    property_id=marketplace[f"property_{key}_id"],
                )


async def test_landlord_approves_and_rejects(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    tenant_id = marketplace["premium_student_id"]
    async with sessionmaker() as session:
        first = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, tenant_id),
            property_id=marketplace["property_extra_one_id"],
        )
        second = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, tenant_id),
            property_id=marketplace["property_extra_two_id"],
        )
        first_id, second_id = first.id, second.id

        with pytest.raises(NotAuthorized):
            await reservation_service.approve_reservation(
                session,
                reservation_id=first_id,
                landlord=await _user(session, marketplace["other_landlord_id"]),
            )

        approved = await reservation_service.approve_reservation(
            session,
            reservation_id=first_id,
            landlord=await _user(session, marketplace["landlord_id"]),
        )
        assert approved.status == ReservationStatus.APPROVED

        with pytest.raises(InvalidTransition):
            await reservation_service.approve_reservation(
                session,
                reservation_id=first_id,
                landlord=await _user(session, marketplace["landlord_id"]),
            )

        with pytest.raises(ValueError):
            await reservation_service.reject_reservation(
                session,
                reservation_id=second_id,
                landlord=await _user(session, marketplace["landlord_id"]),
                reason="   ",
            )

        rejected = await reservation_service.reject_reservation(
            session,
            reservation_id=second_id,
            landlord=await _user(session, marketplace["landlord_id"]),
            reason="Unit already promised to a returning tenant",
        )
        assert rejected.status == ReservationStatus.REJECTED
        assert rejected.rejection_reason == "Unit already promised to a returning tenant"

        events = await event_service.list_events(session, entity_id=second_id)
        assert [event.event_type for event in events] == [
            event_service.RESERVATION_CREATED,
            event_service.RESERVATION_REJECTED,
        ]


async def test_overdue_hold_cannot_be_approved(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["free_student_id"]),
            property_id=marketplace["property_extra_one_id"],
            now=start,
        )
        with pytest.raises(InvalidTransition) as exc_info:
            await reservation_service.approve_reservation(
                session,
                reservation_id=reservation.id,
                landlord=await _user(session, marketplace["landlord_id"]),
                now=start + timedelta(hours=49),
            )
    assert exc_info.value.current == "expired"


async def test_overdue_hold_cannot_be_rejected(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["free_student_id"]),
            property_id=marketplace["property_extra_one_id"],
            now=start,
        )
        reservation_id = reservation.id
        with pytest.raises(InvalidTransition) as exc_info:
            await reservation_service.reject_reservation(
                session,
                reservation_id=reservation_id,
                landlord=await _user(session, marketplace["landlord_id"]),
                reason="Too late",
                now=start + timedelta(hours=49),
            )
        assert exc_info.value.current == "expired"

        stored = await session.get(Reservation, reservation_id, populate_existing=True)
        assert stored.status == ReservationStatus.EXPIRED
        assert stored.rejection_reason is None


async def test_hold_is_visible_to_other_tenants(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    property_id = marketplace["property_extra_one_id"]
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        assert not await reservation_service.has_active_reservation(
            session, property_id=property_id, now=start
        )
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["free_student_id"]),
            property_id=property_id,
            now=start,
        )
        reservation_id = reservation.id

        # Not scoped to the tenant who placed the hold.
        assert await reservation_service.has_active_reservation(
            session, property_id=property_id, now=start
        )
        assert not await reservation_service.has_active_reservation(
            session,
            property_id=marketplace["property_extra_two_id"],
            now=start,
        )
        assert not await reservation_service.has_active_reservation(
            session, property_id=property_id, now=start + timedelta(hours=49)
        )
        stored = await session.get(Reservation, reservation_id, populate_existing=True)
        assert stored.status == ReservationStatus.EXPIRED


async def test_released_hold_is_no_longer_active(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    property_id = marketplace["property_extra_two_id"]
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["premium_student_id"]),
            property_id=property_id,
        )
        await reservation_service.cancel_reservation(
            session,
            reservation_id=reservation.id,
            tenant=await _user(session, marketplace["premium_student_id"]),
        )
        assert not await reservation_service.has_active_reservation(
            session, property_id=property_id
        )


async def test_concurrent_creates_respect_free_limit(
    marketplace, db_url: str
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    tenant_id = marketplace["free_student_id"]
    property_ids = [
        marketplace["property_downpayment_id"],
        marketplace["property_extra_one_id"],
        marketplace["property_extra_two_id"],
    ]

    async def _attempt(property_id: uuid.UUID) -> str:
        async with sessionmaker() as session:
            tenant = await _user(session, tenant_id)
            try:
                await reservation_service.create_reservation(
                    session, tenant=tenant, property_id=property_id
                )
            except LimitReached:
                return "limit"
            return "ok"

    outcomes = await asyncio.gather(*(_attempt(pid) for pid in property_ids))
    assert sorted(outcomes) == ["limit", "ok", "ok"]

    async with sessionmaker() as session:
        stored = await session.scalar(
            select(func.count())
            .select_from(Reservation)
            .where(Reservation.tenant_id == tenant_id)
        )
        assert stored == 2
        assert (
            await quota_service.count_active_reservations(session, tenant_id=tenant_id)
            == 2
        )


async def test_expire_single_reservation(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["free_student_id"]),
            property_id=marketplace["property_extra_one_id"],
            now=start,
        )
        reservation_id = reservation.id
        with pytest.raises(InvalidTransition):
            await reservation_service.expire_reservation(
                session, reservation_id=reservation_id, now=start + timedelta(hours=1)
            )

        with pytest.raises(NotAuthorized):
            await reservation_service.expire_reservation(
                session,
                reservation_id=reservation_id,
                user=await _user(session, marketplace["other_landlord_id"]),
                now=start + timedelta(hours=49),
            )

        expired = await reservation_service.expire_reservation(
            session,
            reservation_id=reservation_id,
            user=await _user(session, marketplace["landlord_id"]),
            now=start + timedelta(hours=49),
        )
        assert expired.status == ReservationStatus.EXPIRED

        with pytest.raises(InvalidTransition):
            await reservation_service.expire_reservation(
                session, reservation_id=reservation_id, now=start + timedelta(hours=50)
            )


async def test_sweep_reports_expired_ids(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        stale = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["free_student_id"]),
            property_id=marketplace["property_extra_one_id"],
            now=start - timedelta(hours=72),
        )
        fresh = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["premium_student_id"]),
            property_id=marketplace["property_extra_one_id"],
            now=start,
        )

        expired_ids = await reservation_service.expire_overdue_reservations(
            session, now=start
        )
        assert expired_ids == [stale.id]
        assert await reservation_service.expire_overdue_reservations(
            session, now=start
        ) == []

        views = await reservation_service.list_reservations(
            session, user=await _user(session, marketplace["landlord_id"]), now=start
        )
        statuses = {view.reservation.id: view.display_status for view in views}
        assert statuses == {stale.id: "expired", fresh.id: "pending"}


async def test_approved_hold_with_booking_displays_completed(
    marketplace, db_url: str
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    tenant_id = marketplace["free_student_id"]
    property_id = marketplace["property_downpayment_id"]
    start = datetime.now(UTC)
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, tenant_id),
            property_id=property_id,
            now=start,
        )
        await reservation_service.approve_reservation(
            session,
            reservation_id=reservation.id,
            landlord=await _user(session, marketplace["landlord_id"]),
            now=start,
        )

        held = await reservation_service.has_active_reservation(
            session, property_id=property_id, now=start
        )
        assert held is True

        await booking_service.create_booking(
            session,
            tenant=await _user(session, tenant_id),
            property_id=property_id,
            plan=PaymentType.DOWNPAYMENT,
            move_in_date=(start + timedelta(days=30)).date(),
            duration_months=6,
            reservation_id=reservation.id,
            now=start,
        )

        view = await reservation_service.get_reservation(
            session,
            user=await _user(session, tenant_id),
            reservation_id=reservation.id,
            now=start,
        )
        assert view.reservation.status == ReservationStatus.APPROVED
        assert view.display_status == "completed"


async def test_tenants_only_see_their_own_holds(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=await _user(session, marketplace["free_student_id"]),
            property_id=marketplace["property_extra_one_id"],
        )
        with pytest.raises(NotAuthorized):
            await reservation_service.get_reservation(
                session,
                user=await _user(session, marketplace["premium_student_id"]),
                reservation_id=reservation.id,
            )

        admin_view = await reservation_service.get_reservation(
            session,
            user=await _user(session, marketplace["admin_id"]),
            reservation_id=reservation.id,
        )
        assert admin_view.reservation.id == reservation.id

        other_views = await reservation_service.list_reservations(
            session, user=await _user(session, marketplace["premium_student_id"])
        )
        assert other_views == []
