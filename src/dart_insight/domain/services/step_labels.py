# src/dart_insight/domain/services/step_labels.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Korean titles of the analysis steps.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Mapping

STEP_TITLES: Mapping[int, str] = {
    1: "산업 및 경쟁환경",
    2: "비즈니스 모델과 해자",
    3: "실적과 기대",
    4: "수익성 및 ROIC",
    5: "현금흐름",
    6: "재무안정 및 부채",
    7: "자본배분",
    8: "가치평가(DCF/S-RIM/SOTP)",
    9: "리스크 및 포렌식",
    10: "시장 오버레이 및 촉매",
    11: "최종 판정",
}


def step_title(step: int) -> str:
    """Return the title of ``step`` (``Step N`` for unknown steps)."""
    return STEP_TITLES.get(step, f"Step {step}")


__all__ = ["STEP_TITLES", "step_title"]
