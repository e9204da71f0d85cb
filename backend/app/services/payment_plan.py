"""Payment plan math: what to collect now and what remains."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final, Protocol

from app.models.booking import PaymentType
from app.services.errors import InvalidConfiguration

_MONEY_PLACES: Final = Decimal("0.01")
_ZERO: Final = Decimal("0.00")


class PaymentRules(Protocol):
    rent_amount: Decimal
    enable_downpayment: bool
    downpayment_amount: Decimal


@dataclass(frozen=True)
class PaymentPlanQuote:
    amount_now: Decimal
    remaining_balance: Decimal
    plan_used: PaymentType

    @property
    def total(self) -> Decimal:
        return self.amount_now + self.remaining_balance


def to_money(value: Decimal | float | int | str) -> Decimal:
    """Normalize numbers to a fixed-point currency representation."""

    return Decimal(str(value)).quantize(_MONEY_PLACES, rounding=ROUND_HALF_UP)


def compute(property: PaymentRules, requested_plan: PaymentType) -> PaymentPlanQuote:
    """Split the property's rent according to ``requested_plan``.

    A downpayment request on a property without downpayments enabled falls
    back to a full payment.
    """
    rent = to_money(property.rent_amount)
    if rent <= _ZERO:
        raise InvalidConfiguration("Property rent must be positive")

    plan = PaymentType(requested_plan)
    if plan == PaymentType.DOWNPAYMENT and not property.enable_downpayment:
        plan = PaymentType.FULL

    if plan == PaymentType.FULL:
        return PaymentPlanQuote(
            amount_now=rent, remaining_balance=_ZERO, plan_used=PaymentType.FULL
        )

    downpayment = to_money(property.downpayment_amount or 0)
    if downpayment <= _ZERO or downpayment >= rent:
        raise InvalidConfiguration(
            f"Downpayment {downpayment} must be greater than 0 and less than rent {rent}"
        )
    return PaymentPlanQuote(
        amount_now=downpayment,
        remaining_balance=rent - downpayment,
        plan_used=PaymentType.DOWNPAYMENT,
    )
