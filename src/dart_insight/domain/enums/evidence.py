# src/dart_insight/domain/enums/evidence.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Evidence and industry-trait enums.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class EvidenceSourceType(str, Enum):
    """Kind of source document an evidence reference points into."""

    XBRL = "XBRL"
    PDF = "PDF"


class Trait(str, Enum):
    """Industry-characteristic dimension evaluated in step 1.

    Declaration order is the fixed rendering order of step-1 findings.
    """

    CYCLICAL = "cyclical"
    COMPETITION = "competition"
    PRICING_POWER = "pricingPower"
    REGULATION = "regulation"


class Topic(str, Enum):
    """Topic bucket assigned to a PDF paragraph."""

    BUSINESS_STRUCTURE = "사업구조"
    MARKET_DEMAND = "시장/수요"
    COMPETITION = "경쟁"
    PRICE_COST = "가격/원가"
    REGULATION_RISK = "규제/리스크"
    SUPPLY_CHAIN = "생산/공급망"
    OTHER = "기타"


class IndustryEvidenceSource(str, Enum):
    """Origin of an industry-classification evidence item."""

    PDF = "PDF"
    METADATA = "METADATA"
    INFERRED = "INFERRED"


class SelectionReasonCode(str, Enum):
    """Structured reason for a withheld evidence selection."""

    EVIDENCE_INSUFFICIENT = "EVIDENCE_INSUFFICIENT"
    EVIDENCE_LOW_QUALITY = "EVIDENCE_LOW_QUALITY"
    TOPIC_MISMATCH = "TOPIC_MISMATCH"


class SelectionPool(str, Enum):
    """Candidate pool an evidence selection was drawn from."""

    PRIMARY = "primary"
    OVERALL = "overall"


__all__ = [
    "EvidenceSourceType",
    "Trait",
    "Topic",
    "IndustryEvidenceSource",
    "SelectionReasonCode",
    "SelectionPool",
]
