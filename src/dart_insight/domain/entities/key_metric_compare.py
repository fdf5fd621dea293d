# src/dart_insight/domain/entities/key_metric_compare.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Per-metric comparison outcome.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from dart_insight.domain.enums.compare import CompareBasis, CompareReasonCode, Trend


@dataclass(frozen=True, slots=True)
class KeyMetricCompare:
    """Comparison of one key metric against its resolved basis.

    Attributes:
        compare_basis:
            YOY, VS_PRIOR_END, QOQ or NONE.
        prev_value:
            Comparison value, or ``None`` when the basis is NONE.
        delta:
            ``current - prev_value``.
        delta_pct:
            ``delta / |prev_value| * 100``; ``None`` when ``prev_value`` is 0.
        trend:
            Direction of ``delta``.
        reason_code:
            Closed reason code; present if and only if the basis is NONE.
        reason_detail:
            Optional human-readable detail.
    """

    compare_basis: CompareBasis
    prev_value: Decimal | None = None
    delta: Decimal | None = None
    delta_pct: Decimal | None = None
    trend: Trend = Trend.NEUTRAL
    reason_code: CompareReasonCode | None = None
    reason_detail: str | None = None

    def __post_init__(self) -> None:
        if self.compare_basis is CompareBasis.NONE and self.reason_code is None:
            raise ValueError("compare_basis NONE requires a reason_code")
        if self.compare_basis is not CompareBasis.NONE and self.reason_code is not None:
            raise ValueError("reason_code is only allowed with compare_basis NONE")

    @classmethod
    def unavailable(
        cls,
        reason_code: CompareReasonCode,
        reason_detail: str | None = None,
    ) -> KeyMetricCompare:
        """Build a NONE comparison carrying ``reason_code``."""
        return cls(
            compare_basis=CompareBasis.NONE,
            reason_code=reason_code,
            reason_detail=reason_detail,
        )

    @property
    def is_available(self) -> bool:
        """Return True when a comparison basis was resolved."""
        return self.compare_basis is not CompareBasis.NONE


__all__ = ["KeyMetricCompare"]
