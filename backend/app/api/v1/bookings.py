"""Booking API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Body, Query, status

from app.api.deps import CurrentUser, SessionDep
from app.api.errors import to_http
from app.models.booking import BookingStatus
from app.schemas.booking import (
    BookingCancelRequest,
    BookingCheckRead,
    BookingCreate,
    BookingRead,
)
from app.services import booking_service

router = APIRouter()


@router.get("", response_model=list[BookingRead], summary="List bookings")
async def list_bookings(
    session: SessionDep,
    current_user: CurrentUser,
    status_filter: Annotated[BookingStatus | None, Query(alias="status")] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[BookingRead]:
    bookings = await booking_service.list_bookings(
        session, user=current_user, status=status_filter, skip=skip, limit=limit
    )
    return [BookingRead.model_validate(booking) for booking in bookings]


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book a property and hold the payment in escrow",
)
async def create_booking(
    payload: BookingCreate, session: SessionDep, current_user: CurrentUser
) -> BookingRead:
    try:
        booking = await booking_service.create_booking(
            session,
            tenant=current_user,
            property_id=payload.property_id,
            plan=payload.payment_type,
            move_in_date=payload.move_in_date,
            duration_months=payload.duration_months,
            reservation_id=payload.reservation_id,
            message=payload.message,
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return BookingRead.model_validate(booking)


@router.get(
    "/check/{property_id}",
    response_model=BookingCheckRead,
    summary="Whether a property is currently booked",
)
async def check_booking(
    property_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> BookingCheckRead:
    booked = await booking_service.has_active_booking(session, property_id=property_id)
    return BookingCheckRead(property_id=property_id, has_active_booking=booked)


@router.get("/{booking_id}", response_model=BookingRead, summary="Get booking")
async def get_booking(
    booking_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> BookingRead:
    try:
        booking = await booking_service.get_booking(
            session, user=current_user, booking_id=booking_id
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingRead,
    summary="Tenant withdraws a confirmed booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    payload: Annotated[BookingCancelRequest | None, Body()] = None,
) -> BookingRead:
    try:
        booking = await booking_service.cancel_booking(
            session,
            booking_id=booking_id,
            tenant=current_user,
            reason=payload.reason if payload else None,
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/complete",
    response_model=BookingRead,
    summary="Landlord closes an active tenancy",
)
async def complete_booking(
    booking_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> BookingRead:
    try:
        booking = await booking_service.complete_booking(
            session, booking_id=booking_id, landlord=current_user
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return BookingRead.model_validate(booking)
