"""Tests for payment plan math."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.models.booking import PaymentType
from app.services import payment_plan
from app.services.errors import InvalidConfiguration


def _property(rent: str, *, downpayment: str | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        rent_amount=Decimal(rent),
        enable_downpayment=downpayment is not None,
        downpayment_amount=Decimal(downpayment or "0"),
    )


def test_downpayment_plan_splits_rent() -> None:
    quote = payment_plan.compute(
        _property("10000", downpayment="3000"), PaymentType.DOWNPAYMENT
    )
    assert quote.plan_used == PaymentType.DOWNPAYMENT
    assert quote.amount_now == Decimal("3000.00")
    assert quote.remaining_balance == Decimal("7000.00")
    assert quote.total == Decimal("10000.00")


def test_downpayment_request_falls_back_to_full() -> None:
    quote = payment_plan.compute(_property("8000"), PaymentType.DOWNPAYMENT)
    assert quote.plan_used == PaymentType.FULL
    assert quote.amount_now == Decimal("8000.00")
    assert quote.remaining_balance == Decimal("0.00")


def test_full_plan_ignores_enabled_downpayment() -> None:
    quote = payment_plan.compute(
        _property("10000", downpayment="3000"), PaymentType.FULL
    )
    assert quote.plan_used == PaymentType.FULL
    assert quote.amount_now == Decimal("10000.00")
    assert quote.remaining_balance == Decimal("0.00")


def test_plan_accepts_raw_string_values() -> None:
    quote = payment_plan.compute(_property("4500.50", downpayment="500"), "downpayment")
    assert quote.amount_now + quote.remaining_balance == Decimal("4500.50")


@pytest.mark.parametrize("downpayment", ["0", "10000", "12000"])
def test_downpayment_outside_open_range_is_rejected(downpayment: str) -> None:
    with pytest.raises(InvalidConfiguration):
        payment_plan.compute(
            _property("10000", downpayment=downpayment), PaymentType.DOWNPAYMENT
        )


@pytest.mark.parametrize("rent", ["0", "-1"])
def test_non_positive_rent_is_rejected(rent: str) -> None:
    with pytest.raises(InvalidConfiguration):
        payment_plan.compute(_property(rent), PaymentType.FULL)


def test_to_money_rounds_half_up() -> None:
    assert payment_plan.to_money("10.005") == Decimal("10.01")
    assert payment_plan.to_money(7) == Decimal("7.00")
