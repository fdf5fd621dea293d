# tests/unit/domain/services/test_money_format.py
from __future__ import annotations

from decimal import Decimal

import pytest

from dart_insight.domain.entities.financial_statement import MoneyMeta
from dart_insight.domain.enums.period import Currency, MoneyUnit
from dart_insight.domain.services.money_format import (
    format_fixed,
    format_krw_amount,
    format_money,
    to_base_units,
)


@pytest.mark.parametrize(
    ("amount", "expected"),
    [
        (Decimal("3670350000000"), "3.67조 (36,703.5억)"),
        (Decimal("2187000000"), "21.87억"),
        (Decimal("-2187000000"), "-21.87억"),
        (Decimal("0"), "0원"),
        (None, "0원"),
    ],
)
def test_format_krw_amount(amount: Decimal | None, expected: str) -> None:
    assert format_krw_amount(amount) == expected


def test_format_krw_amount_options() -> None:
    amount = Decimal("3670350000000")
    assert format_krw_amount(amount, show_dual=False) == "3.67조"
    assert format_krw_amount(amount, force_eok=True) == "36703.50억"


def test_format_fixed_rounds_half_away_from_zero() -> None:
    assert format_fixed(Decimal("2.345"), 2) == "2.35"
    assert format_fixed(Decimal("-2.345"), 2) == "-2.35"
    assert format_fixed(Decimal("10"), 1) == "10.0"


def test_format_money_scales_reported_units() -> None:
    million_won = MoneyMeta(unit=MoneyUnit.MILLION_WON)

    assert to_base_units(Decimal("3670350"), million_won) == Decimal("3670350000000")
    assert format_money(Decimal("3670350"), million_won) == "3.67조 (36,703.5억)"
    assert format_money(None, million_won) == "N/A"


def test_format_money_usd() -> None:
    meta = MoneyMeta(currency=Currency.USD, unit=MoneyUnit.MILLION_USD)
    assert format_money(Decimal("1234.5"), meta) == "1235 millionUSD"
