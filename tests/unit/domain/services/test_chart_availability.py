# tests/unit/domain/services/test_chart_availability.py
from __future__ import annotations

from decimal import Decimal

from dart_insight.domain.entities.analysis_bundle import DerivedMetrics
from dart_insight.domain.enums.period import PeriodType
from dart_insight.domain.enums.report import ChartType
from dart_insight.domain.services.chart_availability import (
    QUARTER_SPLIT_UNAVAILABLE_BADGE,
    resolve_chart_availability,
    resolve_step03_charts,
    resolve_step04_charts,
    resolve_step05_charts,
    resolve_step06_charts,
)


def test_no_statements_yields_unavailable_snapshots() -> None:
    plans = resolve_chart_availability([], [])

    assert [plan.step for plan in plans] == [3, 4, 5, 6]
    for plan in plans:
        (chart,) = plan.charts
        assert not chart.available
        assert chart.reason == "재무제표 데이터 없음"
    assert plans[0].charts[0].chart_id == "step03-income-snapshot"


def test_single_ytd_statement_gets_snapshot_and_missing_yoy(make_statement) -> None:
    statement = make_statement(income={"revenue": 100, "operatingIncome": 10})

    plan = resolve_step03_charts([statement])

    snapshot, yoy = plan.charts
    assert snapshot.chart_id == "step03-income-snapshot-YTD-KRW-원"
    assert snapshot.chart_type is ChartType.SNAPSHOT
    assert snapshot.data_keys == ("revenue", "operatingIncome")
    assert snapshot.badge == QUARTER_SPLIT_UNAVAILABLE_BADGE

    assert yoy.chart_id == "step03-income-yoy-YTD-KRW-원"
    assert not yoy.available
    assert yoy.reason == "전년동기 데이터 없음"
    assert yoy.required_reports == "전년 연간 보고서 1개"
    assert yoy.badge is None


def test_same_criteria_statements_form_a_trend(make_statement) -> None:
    current = make_statement(index=0, fiscal_year=2025, income={"revenue": 120})
    prior = make_statement(index=1, fiscal_year=2024, income={"revenue": 100})

    (trend,) = resolve_step03_charts([current, prior]).charts

    assert trend.chart_id == "step03-income-trend-YTD-KRW-원"
    assert trend.chart_type is ChartType.LINE
    assert trend.period_label == "YTD 추세"
    assert trend.available


def test_different_units_are_never_joined(make_statement) -> None:
    current = make_statement(
        index=0, fiscal_year=2025, quarter=2, period_type=PeriodType.Q, income={"revenue": 120}
    )
    prior = make_statement(
        index=1,
        fiscal_year=2024,
        quarter=2,
        period_type=PeriodType.Q,
        income={"revenue": 1},
        unit="백만원",
    )

    charts = resolve_step03_charts([current, prior]).charts

    assert [c.chart_id for c in charts] == [
        "step03-income-snapshot-Q-KRW-원",
        "step03-income-yoy-Q-KRW-원",
        "step03-income-snapshot-Q-KRW-백만원",
        "step03-income-yoy-Q-KRW-백만원",
    ]
    assert charts[1].available
    assert not charts[3].available
    assert charts[3].required_reports == "전년 동기 분기 보고서 1개"
    assert all(c.badge is None for c in charts)


def test_margin_gauge(make_statement) -> None:
    statement = make_statement(income={"revenue": 100})

    gauge = resolve_step04_charts(
        [statement], [DerivedMetrics(opm=Decimal("10"), fcf_margin=Decimal("5"))]
    ).charts[0]
    assert gauge.available
    assert gauge.data_keys == ("opm", "fcfMargin")

    missing = resolve_step04_charts([statement], [DerivedMetrics()]).charts[0]
    assert not missing.available
    assert missing.reason == "마진 지표 계산 불가"


def test_cashflow_waterfall_and_trend(make_statement) -> None:
    cashflow = {"operatingCashFlow": 300, "capitalExpenditure": 100}
    current = make_statement(index=0, quarter=3, cashflow=cashflow)
    earlier = make_statement(index=1, quarter=2, cashflow=cashflow)

    charts = resolve_step05_charts([current, earlier]).charts

    assert [c.chart_id for c in charts] == [
        "step05-cashflow-waterfall",
        "step05-cashflow-trend-YTD-KRW-원",
    ]
    assert charts[0].data_keys == ("operatingCashFlow", "capitalExpenditure", "freeCashFlow")


def test_balance_snapshot(make_statement) -> None:
    statement = make_statement(balance={"totalAssets": 1000, "totalEquity": 400})

    (chart,) = resolve_step06_charts([statement]).charts

    assert chart.chart_id == "step06-balance-snapshot-YTD-KRW-원"
    assert chart.data_keys == ("totalAssets", "totalEquity")

    (empty,) = resolve_step06_charts([make_statement(income={"revenue": 1})]).charts
    assert not empty.available
    assert empty.reason == "재무상태표 데이터 부족"
