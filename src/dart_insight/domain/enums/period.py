# src/dart_insight/domain/enums/period.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Period and money-metadata enums.

Purpose:
    Define the closed vocabularies used to key normalized statements by
    reporting period and to describe how monetary values were reported.

Layer:
    domain/enums

Notes:
    - Pure domain types:
        * No logging.
        * No I/O.
"""

from __future__ import annotations

from enum import Enum


class PeriodType(str, Enum):
    """Reporting period type of a statement."""

    FY = "FY"
    Q = "Q"
    YTD = "YTD"


class Currency(str, Enum):
    """Reporting currency."""

    KRW = "KRW"
    USD = "USD"


class MoneyUnit(str, Enum):
    """Scale unit in which a monetary value was reported."""

    WON = "원"
    MILLION_WON = "백만원"
    HUNDRED_MILLION_WON = "억원"
    USD = "USD"
    THOUSAND_USD = "thousandUSD"
    MILLION_USD = "millionUSD"


class SignConvention(str, Enum):
    """Sign convention of a reported value."""

    AS_REPORTED = "asReported"


class StatementScope(str, Enum):
    """Consolidation scope of a statement."""

    CONSOLIDATED = "CONSOLIDATED"
    SEPARATE = "SEPARATE"


__all__ = [
    "PeriodType",
    "Currency",
    "MoneyUnit",
    "SignConvention",
    "StatementScope",
]
