# src/dart_insight/domain/services/chart_availability.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Chart availability resolver.

Purpose:
    Decide which charts steps 3 to 6 can draw from the normalized
    statements.

Layer:
    domain/services

Notes:
    - A trend (line) chart needs at least two statements with the same
      criteria (period type, cumulative flag, currency, unit). A single
      observation falls back to a snapshot.
    - Statements of different criteria are never joined in one line.
    - When only YTD statements exist, YTD charts get the
      ``분기 분해 불가`` badge.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

from dart_insight.domain.entities.analysis_bundle import DerivedMetrics
from dart_insight.domain.entities.financial_statement import BundleFinancialStatement
from dart_insight.domain.entities.period import PeriodCriteria
from dart_insight.domain.entities.report import ChartPlan, ChartPlanItem
from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.enums.period import PeriodType
from dart_insight.domain.enums.report import ChartType
from dart_insight.domain.services.period_normalizer import criteria_of

NO_STATEMENTS_REASON = "재무제표 데이터 없음"
QUARTER_SPLIT_UNAVAILABLE_BADGE = "분기 분해 불가"

_INCOME_KEYS = (LineItem.REVENUE, LineItem.OPERATING_INCOME, LineItem.NET_INCOME)
_CASHFLOW_KEYS = (
    LineItem.OPERATING_CASH_FLOW,
    LineItem.CAPITAL_EXPENDITURE,
    LineItem.FREE_CASH_FLOW,
)
_BALANCE_KEYS = (LineItem.TOTAL_ASSETS, LineItem.TOTAL_LIABILITIES, LineItem.TOTAL_EQUITY)


def criteria_key(criteria: PeriodCriteria) -> str:
    """Return a stable identifier fragment such as ``YTD-KRW-백만원``."""
    return f"{criteria.period_type.value}-{criteria.currency.value}-{criteria.unit.value}"


def group_by_criteria(
    statements: Sequence[BundleFinancialStatement],
) -> dict[PeriodCriteria, list[BundleFinancialStatement]]:
    """Group statements by criteria, keeping first-seen order."""
    groups: dict[PeriodCriteria, list[BundleFinancialStatement]] = {}
    for statement in statements:
        groups.setdefault(criteria_of(statement), []).append(statement)
    return groups


def _present_keys(statement: BundleFinancialStatement, keys: Sequence[LineItem]) -> tuple[str, ...]:
    return tuple(k.value for k in keys if statement.value(k) is not None)


def _unavailable(chart_id: str, chart_type: ChartType, reason: str) -> ChartPlanItem:
    return ChartPlanItem(
        chart_id=chart_id,
        chart_type=chart_type,
        period_label="N/A",
        data_keys=(),
        available=False,
        reason=reason,
    )


def _yoy_chart(
    statements: Sequence[BundleFinancialStatement],
    latest: BundleFinancialStatement,
    criteria: PeriodCriteria,
    key: str,
    data_keys: tuple[str, ...],
) -> ChartPlanItem | None:
    year = latest.period.fiscal_year
    if not year:
        return None

    has_prior_year = any(
        s.period.fiscal_year == year - 1
        and s.period.period_type is criteria.period_type
        and s.period.quarter == latest.period.quarter
        for s in statements
    )
    if has_prior_year:
        return ChartPlanItem(
            chart_id=f"step03-income-yoy-{key}",
            chart_type=ChartType.BAR,
            period_label="YoY 비교",
            data_keys=data_keys,
            available=True,
        )

    scope = "동기 분기" if criteria.period_type is PeriodType.Q else "연간"
    return ChartPlanItem(
        chart_id=f"step03-income-yoy-{key}",
        chart_type=ChartType.BAR,
        period_label="YoY 비교",
        data_keys=data_keys,
        available=False,
        reason="전년동기 데이터 없음",
        required_reports=f"전년 {scope} 보고서 1개",
    )


def resolve_step03_charts(statements: Sequence[BundleFinancialStatement]) -> ChartPlan:
    """Income trend, snapshot and YoY chart plans."""
    if not statements:
        return ChartPlan(
            step=3,
            charts=(_unavailable("step03-income-snapshot", ChartType.SNAPSHOT, NO_STATEMENTS_REASON),),
        )

    charts: list[ChartPlanItem] = []
    for criteria, group in group_by_criteria(statements).items():
        key = criteria_key(criteria)
        latest = group[0]
        data_keys = _present_keys(latest, _INCOME_KEYS)
        period_type = criteria.period_type.value

        if not data_keys:
            charts.append(
                ChartPlanItem(
                    chart_id=f"step03-income-{key}",
                    chart_type=ChartType.SNAPSHOT,
                    period_label=period_type,
                    data_keys=(),
                    available=False,
                    reason="손익계산서 데이터 부족",
                )
            )
            continue

        if len(group) >= 2:
            charts.append(
                ChartPlanItem(
                    chart_id=f"step03-income-trend-{key}",
                    chart_type=ChartType.LINE,
                    period_label=f"{period_type} 추세",
                    data_keys=data_keys,
                    available=True,
                )
            )
            continue

        charts.append(
            ChartPlanItem(
                chart_id=f"step03-income-snapshot-{key}",
                chart_type=ChartType.SNAPSHOT,
                period_label=f"{period_type} 스냅샷",
                data_keys=data_keys,
                available=True,
            )
        )
        yoy = _yoy_chart(statements, latest, criteria, key, data_keys)
        if yoy is not None:
            charts.append(yoy)

    only_ytd = any(s.period.period_type is PeriodType.YTD for s in statements) and not any(
        s.period.period_type is PeriodType.Q for s in statements
    )
    if only_ytd:
        charts = [
            dataclasses.replace(chart, badge=QUARTER_SPLIT_UNAVAILABLE_BADGE)
            if PeriodType.YTD.value in chart.period_label
            else chart
            for chart in charts
        ]

    return ChartPlan(step=3, charts=tuple(charts))


def resolve_step04_charts(
    statements: Sequence[BundleFinancialStatement],
    derived: Sequence[DerivedMetrics],
) -> ChartPlan:
    """Margin gauge plan."""
    if not statements:
        return ChartPlan(
            step=4,
            charts=(_unavailable("step04-margin-gauge", ChartType.GAUGE, NO_STATEMENTS_REASON),),
        )

    latest = derived[0] if derived else None
    data_keys: list[str] = []
    if latest is not None and latest.opm is not None:
        data_keys.append("opm")
    if latest is not None and latest.fcf_margin is not None:
        data_keys.append("fcfMargin")

    if not data_keys:
        return ChartPlan(
            step=4,
            charts=(_unavailable("step04-margin-gauge", ChartType.GAUGE, "마진 지표 계산 불가"),),
        )

    gauge = ChartPlanItem(
        chart_id="step04-margin-gauge",
        chart_type=ChartType.GAUGE,
        period_label="마진 지표",
        data_keys=tuple(data_keys),
        available=True,
    )
    return ChartPlan(step=4, charts=(gauge,))


def resolve_step05_charts(statements: Sequence[BundleFinancialStatement]) -> ChartPlan:
    """Cash-flow waterfall plus per-criteria trend plans."""
    chart_id = "step05-cashflow-waterfall"
    if not statements:
        return ChartPlan(step=5, charts=(_unavailable(chart_id, ChartType.WATERFALL, NO_STATEMENTS_REASON),))

    data_keys = _present_keys(statements[0], _CASHFLOW_KEYS)
    if not data_keys:
        return ChartPlan(
            step=5,
            charts=(_unavailable(chart_id, ChartType.WATERFALL, "현금흐름표 데이터 부족"),),
        )

    charts = [
        ChartPlanItem(
            chart_id=chart_id,
            chart_type=ChartType.WATERFALL,
            period_label="현금흐름 구조",
            data_keys=data_keys,
            available=True,
        )
    ]
    for criteria, group in group_by_criteria(statements).items():
        if len(group) < 2:
            continue
        charts.append(
            ChartPlanItem(
                chart_id=f"step05-cashflow-trend-{criteria_key(criteria)}",
                chart_type=ChartType.LINE,
                period_label=f"{criteria.period_type.value} 추세",
                data_keys=data_keys,
                available=True,
            )
        )
    return ChartPlan(step=5, charts=tuple(charts))


def resolve_step06_charts(statements: Sequence[BundleFinancialStatement]) -> ChartPlan:
    """Balance-sheet trend or snapshot plans."""
    if not statements:
        return ChartPlan(
            step=6,
            charts=(_unavailable("step06-balance-snapshot", ChartType.SNAPSHOT, NO_STATEMENTS_REASON),),
        )

    data_keys = _present_keys(statements[0], _BALANCE_KEYS)
    if not data_keys:
        return ChartPlan(
            step=6,
            charts=(_unavailable("step06-balance-snapshot", ChartType.SNAPSHOT, "재무상태표 데이터 부족"),),
        )

    charts: list[ChartPlanItem] = []
    for criteria, group in group_by_criteria(statements).items():
        key = criteria_key(criteria)
        period_type = criteria.period_type.value
        if len(group) >= 2:
            charts.append(
                ChartPlanItem(
                    chart_id=f"step06-balance-trend-{key}",
                    chart_type=ChartType.LINE,
                    period_label=f"{period_type} 추세",
                    data_keys=data_keys,
                    available=True,
                )
            )
        else:
            charts.append(
                ChartPlanItem(
                    chart_id=f"step06-balance-snapshot-{key}",
                    chart_type=ChartType.SNAPSHOT,
                    period_label=f"{period_type} 스냅샷",
                    data_keys=data_keys,
                    available=True,
                )
            )
    return ChartPlan(step=6, charts=tuple(charts))


def resolve_chart_availability(
    statements: Sequence[BundleFinancialStatement],
    derived: Sequence[DerivedMetrics],
) -> list[ChartPlan]:
    """Return chart plans for steps 3, 4, 5 and 6 in that order."""
    return [
        resolve_step03_charts(statements),
        resolve_step04_charts(statements, derived),
        resolve_step05_charts(statements),
        resolve_step06_charts(statements),
    ]


__all__ = [
    "NO_STATEMENTS_REASON",
    "QUARTER_SPLIT_UNAVAILABLE_BADGE",
    "criteria_key",
    "group_by_criteria",
    "resolve_step03_charts",
    "resolve_step04_charts",
    "resolve_step05_charts",
    "resolve_step06_charts",
    "resolve_chart_availability",
]
