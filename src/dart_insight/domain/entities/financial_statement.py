# src/dart_insight/domain/entities/financial_statement.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Raw and normalized financial statements.

Purpose:
    Define the legacy parse-result records the normalizer consumes and the
    canonical ``BundleFinancialStatement`` every downstream component reads.

Layer:
    domain/entities

Notes:
    - Missing data is ``None``; a ``Decimal("0")`` is always a reported zero.
    - Normalized statements are never mutated. Comparison results are
      attached by building a new object with :meth:`with_compare`.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.key_metric_compare import KeyMetricCompare
from dart_insight.domain.entities.period import PeriodKey
from dart_insight.domain.enums.compare import KeyMetric
from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.enums.period import (
    Currency,
    MoneyUnit,
    PeriodType,
    SignConvention,
    StatementScope,
)

# --------------------------------------------------------------------------- #
# Legacy parse-result records                                                 #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RawFinancialItem:
    """A line item as produced by the upstream XBRL parser.

    Attributes:
        name: Display name (Korean or English).
        value: Reported value; ``None`` when the parser produced NaN.
        unit: Free-form unit string such as ``KRW`` or ``백만원``.
        original_name: Original element name in the filing.
    """

    name: str
    value: Decimal | None
    unit: str = "KRW"
    original_name: str | None = None


@dataclass(frozen=True, slots=True)
class RawFinancialStatement:
    """A statement as produced by the upstream XBRL parser.

    ``quarter == 0`` means an annual statement. Section maps are keyed by
    the legacy camelCase item names (see :class:`LineItem`).
    """

    company_name: str = ""
    ticker: str = ""
    country: str = "KR"
    fiscal_year: int | None = None
    quarter: int = 0
    period_type: PeriodType | None = None
    period_type_label: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    income_statement: Mapping[str, RawFinancialItem] = field(default_factory=dict)
    balance_sheet: Mapping[str, RawFinancialItem] = field(default_factory=dict)
    cash_flow_statement: Mapping[str, RawFinancialItem] = field(default_factory=dict)
    scope: StatementScope = StatementScope.CONSOLIDATED


@dataclass(frozen=True, slots=True)
class UploadedFileRef:
    """Uploaded file identity, used for file-type tagging and file ids."""

    file_name: str
    index: int
    file_type: str = "xbrl"

    @property
    def file_id(self) -> str:
        """Return a stable, ASCII-safe identifier for evidence references."""
        safe = "".join(ch if ch.isascii() and ch.isalnum() else "-" for ch in self.file_name)
        return f"file-{self.index}-{safe}"


# --------------------------------------------------------------------------- #
# Normalized statement                                                        #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class MoneyMeta:
    """How a monetary value was reported."""

    currency: Currency = Currency.KRW
    unit: MoneyUnit = MoneyUnit.WON
    sign_convention: SignConvention = SignConvention.AS_REPORTED


@dataclass(frozen=True, slots=True)
class BundleFinancialItem:
    """A normalized line item.

    Attributes:
        name: Display name carried over from the filing.
        value: Reported value, or ``None`` when absent.
        meta: Money metadata.
        evidence: Citations for the value.
    """

    name: str
    value: Decimal | None
    meta: MoneyMeta = MoneyMeta()
    evidence: tuple[EvidenceRef, ...] = ()


@dataclass(frozen=True, slots=True)
class BundleFinancialStatement:
    """One period's normalized income, cash-flow and balance-sheet maps.

    Attributes:
        period: Canonical period key.
        income: Income-statement items keyed by line-item name.
        cashflow: Cash-flow items keyed by line-item name.
        balance: Balance-sheet items keyed by line-item name.
        scope: Consolidation scope.
        file_id: Identifier of the uploaded file the statement came from.
        period_label: Display label such as ``9M(YTD)``.
        key_metrics_compare: Attached comparison results, if computed.
    """

    period: PeriodKey
    income: Mapping[str, BundleFinancialItem] = field(default_factory=dict)
    cashflow: Mapping[str, BundleFinancialItem] = field(default_factory=dict)
    balance: Mapping[str, BundleFinancialItem] = field(default_factory=dict)
    scope: StatementScope = StatementScope.CONSOLIDATED
    file_id: str = ""
    period_label: str = ""
    key_metrics_compare: Mapping[KeyMetric, KeyMetricCompare] | None = None

    def item(self, key: LineItem | str) -> BundleFinancialItem | None:
        """Return the item stored under ``key`` in any section."""
        name = key.value if isinstance(key, LineItem) else key
        for section in (self.income, self.cashflow, self.balance):
            found = section.get(name)
            if found is not None:
                return found
        return None

    def value(self, key: LineItem | str) -> Decimal | None:
        """Return the value stored under ``key``, or ``None`` when absent."""
        found = self.item(key)
        return found.value if found is not None else None

    def evidence(self, key: LineItem | str) -> tuple[EvidenceRef, ...]:
        """Return the evidence attached to ``key``, or an empty tuple."""
        found = self.item(key)
        return found.evidence if found is not None else ()

    def with_compare(
        self,
        compare: Mapping[KeyMetric, KeyMetricCompare],
    ) -> BundleFinancialStatement:
        """Return a copy of this statement carrying ``compare``."""
        return dataclasses.replace(self, key_metrics_compare=dict(compare))


__all__ = [
    "RawFinancialItem",
    "RawFinancialStatement",
    "UploadedFileRef",
    "MoneyMeta",
    "BundleFinancialItem",
    "BundleFinancialStatement",
]
