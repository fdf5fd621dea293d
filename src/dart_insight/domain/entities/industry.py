# src/dart_insight/domain/entities/industry.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Industry classification result.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from dart_insight.domain.entities.evidence import EvidenceCandidate

UNKNOWN_INDUSTRY_LABEL = "산업 미확인"


@dataclass(frozen=True, slots=True)
class IndustryClassification:
    """Industry label with confidence and supporting evidence.

    Attributes:
        label: Display label such as ``제조업(반도체/메모리)``.
        confidence: Confidence in ``0.0..1.0``.
        evidence: Supporting PDF paragraphs or a metadata note.
        core_categories: Core manufacturing sub-category (at most one).
        adjacent_categories: Adjacent sub-categories (at most three).
        reason_code: Set when the sub-category signal was too weak.
    """

    label: str
    confidence: float
    evidence: tuple[EvidenceCandidate, ...] = ()
    core_categories: tuple[str, ...] | None = None
    adjacent_categories: tuple[str, ...] | None = None
    reason_code: str | None = None

    @property
    def is_unknown(self) -> bool:
        """Return True when no industry could be determined."""
        return self.label == UNKNOWN_INDUSTRY_LABEL


__all__ = ["IndustryClassification", "UNKNOWN_INDUSTRY_LABEL"]
