# src/dart_insight/domain/enums/compare.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Key-metric comparison enums.

Purpose:
    Closed vocabularies for the compare-basis resolver: the tracked key
    metrics, the comparison bases, trends and the reason codes that explain
    every unavailable comparison.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class KeyMetric(str, Enum):
    """The twelve key metrics tracked per statement."""

    REVENUE = "revenue"
    OPERATING_MARGIN = "operatingMargin"
    NET_MARGIN = "netMargin"
    ROE = "roe"
    OCF = "ocf"
    CAPEX = "capex"
    FCF = "fcf"
    EQUITY = "equity"
    CASH = "cash"
    NET_CASH = "netCash"
    REVENUE_YOY = "revenueYoY"
    DEBT_RATIO = "debtRatio"


class MetricKind(str, Enum):
    """Whether a metric measures a flow over a period or a point-in-time balance."""

    FLOW = "FLOW"
    INSTANT = "INSTANT"


class CompareBasis(str, Enum):
    """Reference point a metric is compared against."""

    YOY = "YOY"
    VS_PRIOR_END = "VS_PRIOR_END"
    QOQ = "QOQ"
    NONE = "NONE"


class Trend(str, Enum):
    """Direction of a metric relative to its comparison value."""

    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class CompareReasonCode(str, Enum):
    """Closed set of reasons for an unavailable comparison."""

    MISSING_PREV_YEAR_VALUE = "MISSING_PREV_YEAR_VALUE"
    MISSING_PRIOR_END_INSTANT = "MISSING_PRIOR_END_INSTANT"
    MISSING_CURRENT_VALUE = "MISSING_CURRENT_VALUE"
    SCOPE_MISMATCH = "SCOPE_MISMATCH"
    UNIT_MISMATCH = "UNIT_MISMATCH"
    PERIOD_MISMATCH = "PERIOD_MISMATCH"
    MULTIPLE_CANDIDATES = "MULTIPLE_CANDIDATES"
    PARSER_ERROR = "PARSER_ERROR"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class CompareBasisBadge(str, Enum):
    """Display badge derived from a compare basis."""

    YOY = "YOY"
    PRIOR_END = "PRIOR_END"
    QOQ = "QOQ"
    UNAVAILABLE = "UNAVAILABLE"


__all__ = [
    "KeyMetric",
    "MetricKind",
    "CompareBasis",
    "Trend",
    "CompareReasonCode",
    "CompareBasisBadge",
]
