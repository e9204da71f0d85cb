"""Reservation (hold) API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, SessionDep
from app.api.errors import to_http
from app.models.reservation import ReservationStatus
from app.models.user import User
from app.schemas.reservation import (
    ReservationCheckRead,
    ReservationCreate,
    ReservationRead,
    ReservationRejectRequest,
    ReservationSweepRead,
)
from app.security.permissions import require_admin
from app.services import reservation_service
from app.services.reservation_service import ReservationView

router = APIRouter()


@router.get("", response_model=list[ReservationRead], summary="List reservations")
async def list_reservations(
    session: SessionDep,
    current_user: CurrentUser,
    status_filter: Annotated[ReservationStatus | None, Query(alias="status")] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[ReservationRead]:
    views = await reservation_service.list_reservations(
        session, user=current_user, status=status_filter, skip=skip, limit=limit
    )
    return [ReservationRead.from_view(view) for view in views]


@router.post(
    "",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Place a 48 hour hold",
)
async def create_reservation(
    payload: ReservationCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> ReservationRead:
    try:
        reservation = await reservation_service.create_reservation(
            session,
            tenant=current_user,
            property_id=payload.property_id,
            message=payload.message,
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return ReservationRead.from_view(ReservationView(reservation=reservation))


@router.post(
    "/expire",
    response_model=ReservationSweepRead,
    summary="Expire every overdue pending hold",
    dependencies=[require_admin],
)
async def expire_overdue_reservations(session: SessionDep) -> ReservationSweepRead:
    expired_ids = await reservation_service.expire_overdue_reservations(session)
    return ReservationSweepRead(expired_count=len(expired_ids), expired_ids=expired_ids)


@router.get(
    "/check/{property_id}",
    response_model=ReservationCheckRead,
    summary="Whether any tenant holds a property",
)
async def check_reservation(
    property_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> ReservationCheckRead:
    held = await reservation_service.has_active_reservation(
        session, property_id=property_id
    )
    return ReservationCheckRead(property_id=property_id, has_active_reservation=held)


@router.get(
    "/{reservation_id}", response_model=ReservationRead, summary="Get reservation"
)
async def get_reservation(
    reservation_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> ReservationRead:
    try:
        view = await reservation_service.get_reservation(
            session, user=current_user, reservation_id=reservation_id
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return ReservationRead.from_view(view)


async def _respond(
    session: AsyncSession, user: User, reservation_id: uuid.UUID
) -> ReservationRead:
    view = await reservation_service.get_reservation(
        session, user=user, reservation_id=reservation_id
    )
    return ReservationRead.from_view(view)


@router.post(
    "/{reservation_id}/approve",
    response_model=ReservationRead,
    summary="Landlord approves a pending hold",
)
async def approve_reservation(
    reservation_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> ReservationRead:
    try:
        await reservation_service.approve_reservation(
            session, reservation_id=reservation_id, landlord=current_user
        )
        return await _respond(session, current_user, reservation_id)
    except ValueError as exc:
        raise to_http(exc) from exc


@router.post(
    "/{reservation_id}/reject",
    response_model=ReservationRead,
    summary="Landlord rejects a pending hold",
)
async def reject_reservation(
    reservation_id: uuid.UUID,
    payload: ReservationRejectRequest,
    session: SessionDep,
    current_user: CurrentUser,
) -> ReservationRead:
    try:
        await reservation_service.reject_reservation(
            session,
            reservation_id=reservation_id,
            landlord=current_user,
            reason=payload.reason,
        )
        return await _respond(session, current_user, reservation_id)
    except ValueError as exc:
        raise to_http(exc) from exc


@router.post(
    "/{reservation_id}/cancel",
    response_model=ReservationRead,
    summary="Tenant cancels a hold",
)
async def cancel_reservation(
    reservation_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> ReservationRead:
    try:
        await reservation_service.cancel_reservation(
            session, reservation_id=reservation_id, tenant=current_user
        )
        return await _respond(session, current_user, reservation_id)
    except ValueError as exc:
        raise to_http(exc) from exc


@router.post(
    "/{reservation_id}/expire",
    response_model=ReservationRead,
    summary="Expire a single overdue hold",
)
async def expire_reservation(
    reservation_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> ReservationRead:
    try:
        await reservation_service.expire_reservation(
            session, reservation_id=reservation_id, user=current_user
        )
        return await _respond(session, current_user, reservation_id)
    except ValueError as exc:
        raise to_http(exc) from exc
