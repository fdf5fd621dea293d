# src/dart_insight/domain/services/derived_metrics.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Derived metrics of a normalized statement.

Purpose:
    Compute operating margin, FCF margin and a simplified ROIC for one
    statement, rejecting implausible values instead of reporting them.

Layer:
    domain/services

Design:
    - OPM is accepted within -50..50 %, FCF margin within -100..100 %.
    - ROIC = operating income x (1 - 25 %) / invested capital, where
      invested capital = equity + interest-bearing debt - cash. It requires
      0 < invested capital < 1e15 and is accepted within -100..200 %.
    - Every rejection adds a Korean warning; ROIC rejections also record
      the blocked metric names and the missing input concepts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from dart_insight.domain.entities.analysis_bundle import DerivedMetrics
from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.financial_statement import BundleFinancialStatement
from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.services.metric_math import DECIMAL_ONE, DECIMAL_ZERO, percent
from dart_insight.domain.services.money_format import format_fixed

OPM_RANGE = (Decimal("-50"), Decimal("50"))
FCF_MARGIN_RANGE = (Decimal("-100"), Decimal("100"))
ROIC_RANGE = (Decimal("-100"), Decimal("200"))
DEFAULT_TAX_RATE = Decimal("0.25")
MAX_INVESTED_CAPITAL = Decimal("1e15")


@dataclass(frozen=True, slots=True)
class DerivedMetricsResult:
    """Derived metrics plus the data-quality notes gathered on the way."""

    metrics: DerivedMetrics
    warnings: tuple[str, ...] = ()
    missing_concepts: tuple[str, ...] = ()
    blocked_metrics: tuple[str, ...] = ()


def _within(value: Decimal, bounds: tuple[Decimal, Decimal]) -> bool:
    low, high = bounds
    return low <= value <= high


def _operating_margin(
    revenue: Decimal | None,
    operating_income: Decimal | None,
    warnings: list[str],
) -> Decimal | None:
    if revenue is None or operating_income is None or revenue == 0:
        if revenue is None:
            warnings.append("영업이익률 계산 불가: 매출액이 없습니다 (null/undefined)")
        if operating_income is None:
            warnings.append("영업이익률 계산 불가: 영업이익 값이 없습니다 (null/undefined)")
        return None

    opm = percent(operating_income, revenue)
    if _within(opm, OPM_RANGE):
        return opm
    warnings.append(
        f"영업이익률 계산 불가: 비정상 수치 감지 ({format_fixed(opm, 2)}%). 기간 혼입 가능성."
    )
    return None


def _fcf_margin(
    statement: BundleFinancialStatement,
    revenue: Decimal | None,
    fcf: Decimal | None,
    warnings: list[str],
) -> Decimal | None:
    if revenue is None or fcf is None or revenue == 0:
        if revenue is None:
            warnings.append("FCF 마진 계산 불가: 매출액이 없습니다 (null/undefined)")
        if fcf is None:
            if statement.value(LineItem.CAPITAL_EXPENDITURE) is None:
                warnings.append(
                    "FCF 마진 계산 불가: CAPEX(자본적 지출)가 없어서 이로 인해 FCF 계산 불가"
                )
            else:
                warnings.append("FCF 마진 계산 불가: FCF 값이 없습니다 (null/undefined)")
        return None

    margin = percent(fcf, revenue)
    if _within(margin, FCF_MARGIN_RANGE):
        return margin
    warnings.append(f"FCF 마진 계산 불가: 비정상 수치 감지 ({format_fixed(margin, 2)}%)")
    return None


def compute_derived_metrics(statement: BundleFinancialStatement) -> DerivedMetricsResult:
    """Compute the derived metrics of ``statement``.

    Args:
        statement: A normalized statement.

    Returns:
        DerivedMetricsResult. Metrics that could not be computed are ``None``
        and explained in ``warnings``.
    """
    warnings: list[str] = []
    missing: list[str] = []
    blocked: list[str] = []

    revenue = statement.value(LineItem.REVENUE)
    operating_income = statement.value(LineItem.OPERATING_INCOME)
    ocf = statement.value(LineItem.OPERATING_CASH_FLOW)
    capex = statement.value(LineItem.CAPITAL_EXPENDITURE)
    fcf = statement.value(LineItem.FREE_CASH_FLOW)

    opm = _operating_margin(revenue, operating_income, warnings)
    fcf_margin = _fcf_margin(statement, revenue, fcf, warnings)

    equity = statement.value(LineItem.TOTAL_EQUITY)
    debt = statement.value(LineItem.INTEREST_BEARING_DEBT)
    cash = statement.value(LineItem.CASH)
    for concept, value in (("Equity", equity), ("InterestBearingDebt", debt), ("Cash", cash)):
        if value is None:
            missing.append(concept)

    roic: Decimal | None = None
    invested_capital: Decimal | None = None
    evidence: tuple[EvidenceRef, ...] = ()

    if equity is not None and debt is not None and cash is not None and operating_income is not None:
        capital = equity + debt - cash
        if capital <= DECIMAL_ZERO:
            warnings.append("ROIC 계산 불가: 투하자본이 0 이하입니다.")
            blocked.extend(("ROIC", "InvestedCapital"))
        elif capital >= MAX_INVESTED_CAPITAL:
            warnings.append("ROIC 계산 불가: 투하자본 값이 비정상적으로 큽니다(컨텍스트 선택 오류 가능성)")
            blocked.extend(("ROIC", "InvestedCapital"))
        else:
            nopat = operating_income * (DECIMAL_ONE - DEFAULT_TAX_RATE)
            candidate = percent(nopat, capital)
            if _within(candidate, ROIC_RANGE):
                roic = candidate
                invested_capital = capital
                evidence = tuple(
                    ref
                    for item in (
                        LineItem.OPERATING_INCOME,
                        LineItem.TOTAL_EQUITY,
                        LineItem.INTEREST_BEARING_DEBT,
                        LineItem.CASH,
                    )
                    for ref in statement.evidence(item)
                )
            else:
                warnings.append(
                    f"ROIC 계산 불가: 비정상 수치 감지 ({format_fixed(candidate, 2)}%). "
                    "컨텍스트 선택 오류 가능성."
                )
                blocked.append("ROIC")
    else:
        blocked.extend(("ROIC", "InvestedCapital"))
        if operating_income is None:
            warnings.append("ROIC 계산 불가: 영업이익 값이 없습니다")
            missing.append("OperatingIncome")

    metrics = DerivedMetrics(
        revenue=revenue,
        operating_income=operating_income,
        ocf=ocf,
        capex=capex,
        fcf=fcf,
        opm=opm,
        fcf_margin=fcf_margin,
        roic=roic,
        invested_capital=invested_capital,
        evidence=evidence,
    )
    return DerivedMetricsResult(
        metrics=metrics,
        warnings=tuple(warnings),
        missing_concepts=tuple(missing),
        blocked_metrics=tuple(blocked),
    )


__all__ = [
    "OPM_RANGE",
    "FCF_MARGIN_RANGE",
    "ROIC_RANGE",
    "DEFAULT_TAX_RATE",
    "DerivedMetricsResult",
    "compute_derived_metrics",
]
