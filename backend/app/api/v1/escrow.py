"""Escrow ledger API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, SessionDep
from app.api.errors import to_http
from app.models.escrow import EscrowStatus
from app.schemas.escrow import EscrowDeclineRequest, EscrowRead
from app.services import escrow_service

router = APIRouter()


@router.get("", response_model=list[EscrowRead], summary="List escrow transactions")
async def list_escrow(
    session: SessionDep,
    current_user: CurrentUser,
    status_filter: Annotated[EscrowStatus | None, Query(alias="status")] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[EscrowRead]:
    transactions = await escrow_service.list_escrow(
        session, user=current_user, status=status_filter, skip=skip, limit=limit
    )
    return [EscrowRead.model_validate(escrow) for escrow in transactions]


@router.get(
    "/booking/{booking_id}",
    response_model=EscrowRead,
    summary="Escrow transaction for a booking",
)
async def get_escrow_for_booking(
    booking_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> EscrowRead:
    try:
        escrow = await escrow_service.get_escrow_for_booking(
            session, user=current_user, booking_id=booking_id
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return EscrowRead.model_validate(escrow)


@router.get("/{escrow_id}", response_model=EscrowRead, summary="Get escrow transaction")
async def get_escrow(
    escrow_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> EscrowRead:
    try:
        escrow = await escrow_service.get_escrow(
            session, user=current_user, escrow_id=escrow_id
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return EscrowRead.model_validate(escrow)


@router.post(
    "/{escrow_id}/accept",
    response_model=EscrowRead,
    summary="Landlord accepts held funds",
)
async def accept_escrow(
    escrow_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> EscrowRead:
    try:
        escrow = await escrow_service.accept_escrow(
            session, escrow_id=escrow_id, landlord=current_user
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return EscrowRead.model_validate(escrow)


@router.post(
    "/{escrow_id}/decline",
    response_model=EscrowRead,
    summary="Landlord declines held funds with a reason",
)
async def decline_escrow(
    escrow_id: uuid.UUID,
    payload: EscrowDeclineRequest,
    session: SessionDep,
    current_user: CurrentUser,
) -> EscrowRead:
    try:
        escrow = await escrow_service.decline_escrow(
            session,
            escrow_id=escrow_id,
            landlord=current_user,
            reason=payload.reason,
        )
    except ValueError as exc:
        raise to_http(exc) from exc
    return EscrowRead.model_validate(escrow)
