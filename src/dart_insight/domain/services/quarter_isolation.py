# src/dart_insight/domain/services/quarter_isolation.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Quarter isolation engine.

Purpose:
    Derive standalone-quarter flow values from two cumulative YTD anchors of
    the same fiscal year (e.g. Q3 = 9M - 6M).

Layer:
    domain/services

Notes:
    - Pure domain logic: no logging, no I/O.
    - Isolated quarters are ephemeral: they are used to decide QoQ
      eligibility and are never written back into the statement list.
    - A value is isolated only when both anchors report it in the same
      currency and unit; otherwise it is ``None``, never zero.
    - A QoQ pair needs three YTD anchors. Two anchors prove the current
      isolated quarter but not a comparable prior one.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from dart_insight.domain.entities.financial_statement import (
    BundleFinancialItem,
    BundleFinancialStatement,
)
from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.enums.period import PeriodType


@dataclass(frozen=True, slots=True)
class IsolatedQuarter:
    """Standalone-quarter flow values derived from two YTD anchors.

    Attributes:
        fiscal_year: Fiscal year of both anchors.
        quarter: Quarter the values belong to (the later anchor's quarter).
        values: Flow item name to isolated value, ``None`` when not derivable.
    """

    fiscal_year: int
    quarter: int
    values: Mapping[str, Decimal | None]

    def value(self, key: LineItem | str) -> Decimal | None:
        """Return the isolated value of ``key``, or ``None``."""
        name = key.value if isinstance(key, LineItem) else key
        return self.values.get(name)


@dataclass(frozen=True, slots=True)
class IsolatedQuarterPair:
    """The current isolated quarter and the immediately preceding one."""

    current: IsolatedQuarter
    previous: IsolatedQuarter


def _is_ytd_anchor(statement: BundleFinancialStatement) -> bool:
    period = statement.period
    return (
        period.period_type is PeriodType.YTD
        and period.fiscal_year is not None
        and period.quarter is not None
    )


def _isolate_item(
    later: BundleFinancialItem | None,
    earlier: BundleFinancialItem | None,
) -> Decimal | None:
    if later is None or earlier is None:
        return None
    if later.value is None or earlier.value is None:
        return None
    if later.meta.unit != earlier.meta.unit or later.meta.currency != earlier.meta.currency:
        return None
    return later.value - earlier.value


def _flow_items(statement: BundleFinancialStatement) -> dict[str, BundleFinancialItem]:
    return {**statement.income, **statement.cashflow}


def isolate_quarter(
    later: BundleFinancialStatement,
    earlier: BundleFinancialStatement,
) -> IsolatedQuarter | None:
    """Derive the standalone quarter ending at ``later``.

    Args:
        later: YTD anchor with the higher quarter.
        earlier: YTD anchor of the same fiscal year, exactly one quarter
            before ``later``.

    Returns:
        The isolated quarter, or ``None`` when the anchors are not isolable.
    """
    if not (_is_ytd_anchor(later) and _is_ytd_anchor(earlier)):
        return None
    if later.period.fiscal_year != earlier.period.fiscal_year:
        return None

    assert later.period.quarter is not None and earlier.period.quarter is not None
    if later.period.quarter - earlier.period.quarter != 1:
        return None

    later_items = _flow_items(later)
    earlier_items = _flow_items(earlier)
    names = sorted(set(later_items) | set(earlier_items))
    values = {
        name: _isolate_item(later_items.get(name), earlier_items.get(name)) for name in names
    }

    assert later.period.fiscal_year is not None
    return IsolatedQuarter(
        fiscal_year=later.period.fiscal_year,
        quarter=later.period.quarter,
        values=values,
    )


def _anchor_for(
    statements: Sequence[BundleFinancialStatement],
    fiscal_year: int,
    quarter: int,
) -> BundleFinancialStatement | None:
    for candidate in statements:
        if (
            _is_ytd_anchor(candidate)
            and candidate.period.fiscal_year == fiscal_year
            and candidate.period.quarter == quarter
        ):
            return candidate
    return None


def isolated_quarter_pair(
    statement: BundleFinancialStatement,
    statements: Sequence[BundleFinancialStatement],
) -> IsolatedQuarterPair | None:
    """Return the current and preceding isolated quarters of ``statement``.

    Requires three YTD anchors of the same fiscal year at quarters ``q``,
    ``q-1`` and ``q-2`` (``statement`` being the ``q`` anchor).
    """
    if not _is_ytd_anchor(statement):
        return None

    period = statement.period
    assert period.fiscal_year is not None and period.quarter is not None
    if period.quarter < 3:
        return None

    middle = _anchor_for(statements, period.fiscal_year, period.quarter - 1)
    first = _anchor_for(statements, period.fiscal_year, period.quarter - 2)
    if middle is None or first is None:
        return None

    current = isolate_quarter(statement, middle)
    previous = isolate_quarter(middle, first)
    if current is None or previous is None:
        return None
    return IsolatedQuarterPair(current=current, previous=previous)


__all__ = [
    "IsolatedQuarter",
    "IsolatedQuarterPair",
    "isolate_quarter",
    "isolated_quarter_pair",
]
