"""Property read endpoints owned by the booking core."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, SessionDep
from app.api.errors import to_http
from app.models.booking import PaymentType
from app.schemas.payment_plan import PaymentPlanRead
from app.services import payment_plan, property_service

router = APIRouter()


@router.get(
    "/{property_id}/payment-plan",
    response_model=PaymentPlanRead,
    summary="Preview the payment split for a property",
)
async def preview_payment_plan(
    property_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    plan: Annotated[PaymentType, Query()] = PaymentType.FULL,
) -> PaymentPlanRead:
    try:
        property = await property_service.get_property(session, property_id)
        quote = payment_plan.compute(property, plan)
    except ValueError as exc:
        raise to_http(exc) from exc
    return PaymentPlanRead(
        property_id=property_id,
        requested_plan=plan,
        plan_used=quote.plan_used,
        amount_now=quote.amount_now,
        remaining_balance=quote.remaining_balance,
        total=quote.total,
    )
