# src/dart_insight/domain/services/money_format.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Money display formatting.

Purpose:
    Render as-reported Decimal amounts for report text: KRW amounts in
    조/억 notation and fixed-point numbers with half-up rounding.

Layer:
    domain/services

Notes:
    Formatting only; the analysis core never rescales stored values.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal

from dart_insight.domain.entities.financial_statement import MoneyMeta
from dart_insight.domain.enums.period import MoneyUnit

ONE_HUNDRED_MILLION = Decimal("100000000")
ONE_TRILLION = Decimal("1000000000000")

UNIT_SCALE: Mapping[MoneyUnit, Decimal] = {
    MoneyUnit.WON: Decimal("1"),
    MoneyUnit.MILLION_WON: Decimal("1000000"),
    MoneyUnit.HUNDRED_MILLION_WON: ONE_HUNDRED_MILLION,
    MoneyUnit.USD: Decimal("1"),
    MoneyUnit.THOUSAND_USD: Decimal("1000"),
    MoneyUnit.MILLION_USD: Decimal("1000000"),
}


def format_fixed(value: Decimal, places: int) -> str:
    """Format ``value`` with ``places`` decimals, rounding half away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return f"{value.quantize(quantum, rounding=ROUND_HALF_UP):f}"


def _group_thousands(text: str) -> str:
    whole, _, fraction = text.partition(".")
    grouped = f"{int(whole):,}"
    return f"{grouped}.{fraction}" if fraction else grouped


def format_krw_amount(
    amount: Decimal | None,
    *,
    decimals: int = 2,
    force_eok: bool = False,
    show_dual: bool = True,
) -> str:
    """Format a won amount as ``65.35조 (653,487.3억)`` or ``21.87억``.

    Args:
        amount: Amount in won.
        decimals: Decimals of the leading figure.
        force_eok: Always use 억 notation.
        show_dual: Append the 억 figure in parentheses for 조 amounts.

    Returns:
        The formatted string; ``0원`` for zero or missing amounts.
    """
    if amount is None or amount.is_nan() or amount == 0:
        return "0원"

    sign = "-" if amount < 0 else ""
    magnitude = abs(amount)

    if not force_eok and magnitude >= ONE_TRILLION:
        trillions = format_fixed(magnitude / ONE_TRILLION, decimals)
        if not show_dual:
            return f"{sign}{trillions}조"
        eok = _group_thousands(format_fixed(magnitude / ONE_HUNDRED_MILLION, 1))
        return f"{sign}{trillions}조 ({eok}억)"

    return f"{sign}{format_fixed(magnitude / ONE_HUNDRED_MILLION, decimals)}억"


def to_base_units(value: Decimal, meta: MoneyMeta) -> Decimal:
    """Scale an as-reported value to won (or dollars) for display."""
    return value * UNIT_SCALE.get(meta.unit, Decimal("1"))


def format_money(value: Decimal | None, meta: MoneyMeta) -> str:
    """Format an as-reported value for a summary card."""
    if value is None:
        return "N/A"
    if meta.unit in (MoneyUnit.USD, MoneyUnit.THOUSAND_USD, MoneyUnit.MILLION_USD):
        return f"{format_fixed(value, 0)} {meta.unit.value}"
    return format_krw_amount(to_base_units(value, meta))


__all__ = [
    "ONE_HUNDRED_MILLION",
    "ONE_TRILLION",
    "UNIT_SCALE",
    "format_fixed",
    "format_krw_amount",
    "to_base_units",
    "format_money",
]
