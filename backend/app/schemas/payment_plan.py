"""Payment plan quote schema."""
from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from app.models.booking import PaymentType


class PaymentPlanRead(BaseModel):
    property_id: uuid.UUID
    requested_plan: PaymentType
    plan_used: PaymentType
    amount_now: Decimal
    remaining_balance: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)
