# src/dart_insight/domain/entities/period.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Canonical period keys.

Purpose:
    Provide the immutable period identity every normalized statement is
    keyed by, plus the "same-criteria" tuple used to decide whether two
    statements may be subtracted (quarter isolation) or charted as a trend.

Layer:
    domain/entities

Notes:
    - Flow statements (FY/YTD/Q) carry both ``start_date`` and ``end_date``.
    - Balance-sheet instants only need ``end_date``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from dart_insight.domain.enums.period import Currency, MoneyUnit, PeriodType


@dataclass(frozen=True, slots=True)
class PeriodKey:
    """Canonical reporting period of a statement.

    Attributes:
        period_type:
            FY, Q (standalone quarter) or YTD (cumulative year-to-date).
        fiscal_year:
            Fiscal year, when resolvable.
        quarter:
            Quarter in ``1..4``, when resolvable. FY statements report 4.
        start_date:
            First day of the period, when known.
        end_date:
            Last day of the period. Statements without an end date are
            dropped by the normalizer.
    """

    period_type: PeriodType
    fiscal_year: int | None = None
    quarter: int | None = None
    start_date: date | None = None
    end_date: date | None = None

    def __post_init__(self) -> None:
        if self.quarter is not None and not 1 <= self.quarter <= 4:
            raise ValueError(f"quarter must be within 1..4, got {self.quarter}")
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise ValueError("start_date must not be after end_date")

    @property
    def is_cumulative(self) -> bool:
        """Return True for year-to-date cumulative periods."""
        return self.period_type is PeriodType.YTD


@dataclass(frozen=True, slots=True)
class PeriodCriteria:
    """Equality key for "same-criteria" statements.

    Two statements are comparable for quarter isolation and trend charts
    only when all four attributes match.
    """

    period_type: PeriodType
    is_cumulative: bool
    currency: Currency
    unit: MoneyUnit


__all__ = ["PeriodKey", "PeriodCriteria"]
