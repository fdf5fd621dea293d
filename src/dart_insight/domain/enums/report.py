# src/dart_insight/domain/enums/report.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Report-surface enums (findings, checkpoints, charts).

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class FindingCategory(str, Enum):
    """Analytical category of a finding."""

    CASH_FLOW = "CashFlow"
    EARNINGS_QUALITY = "EarningsQuality"
    BALANCE_SHEET = "BalanceSheet"
    GUIDANCE = "Guidance"
    RISK = "Risk"
    GOVERNANCE = "Governance"
    VALUATION = "Valuation"
    MARKET_OVERLAY = "MarketOverlay"


class Severity(str, Enum):
    """Severity of a finding."""

    INFO = "info"
    WARN = "warn"
    RISK = "risk"


class EvidencePolicy(str, Enum):
    """What to do when a finding or checkpoint has no evidence."""

    SKIP = "skip"
    WARN = "warn"


class ChartType(str, Enum):
    """Chart kinds a chart plan may request."""

    LINE = "line"
    BAR = "bar"
    SNAPSHOT = "snapshot"
    GAUGE = "gauge"
    WATERFALL = "waterfall"


class IndustryType(str, Enum):
    """Industry groups accepted as explicit company metadata."""

    MANUFACTURING = "manufacturing"
    IT = "it"
    FINANCE = "finance"
    BIO = "bio"
    RETAIL = "retail"
    ENERGY = "energy"
    CONSTRUCTION = "construction"
    SERVICE = "service"
    OTHER = "other"


__all__ = [
    "FindingCategory",
    "Severity",
    "EvidencePolicy",
    "ChartType",
    "IndustryType",
]
