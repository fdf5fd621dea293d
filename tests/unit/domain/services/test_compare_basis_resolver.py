# tests/unit/domain/services/test_compare_basis_resolver.py
from __future__ import annotations

from decimal import Decimal

import pytest

from dart_insight.domain.entities.key_metric_compare import KeyMetricCompare
from dart_insight.domain.enums.compare import CompareBasis, CompareReasonCode, KeyMetric, Trend
from dart_insight.domain.enums.period import PeriodType, StatementScope
from dart_insight.domain.services.compare_basis_resolver import (
    METRIC_SPECS,
    attach_key_metrics,
    build_compare,
    resolve_key_metrics,
)


def test_every_metric_resolves_and_none_carries_a_reason(make_statement) -> None:
    statement = make_statement(income={"revenue": 100}, balance={"totalEquity": 50})

    results = resolve_key_metrics(statement, [statement])

    assert list(results) == list(KeyMetric)
    for compare in results.values():
        assert (compare.compare_basis is CompareBasis.NONE) == (compare.reason_code is not None)


def test_single_ytd_statement_has_no_prior_year(make_statement) -> None:
    statement = make_statement(quarter=3, income={"revenue": 160_000_000_000})

    revenue = resolve_key_metrics(statement, [statement])[KeyMetric.REVENUE]

    assert revenue.compare_basis is CompareBasis.NONE
    assert revenue.reason_code is CompareReasonCode.MISSING_PREV_YEAR_VALUE
    assert revenue.prev_value is None


def test_qoq_from_three_ytd_anchors(make_statement) -> None:
    q1 = make_statement(index=0, quarter=1, income={"revenue": 50_000_000_000})
    q2 = make_statement(index=1, quarter=2, income={"revenue": 100_000_000_000})
    q3 = make_statement(index=2, quarter=3, income={"revenue": 160_000_000_000})

    results = resolve_key_metrics(q3, [q3, q2, q1])

    revenue = results[KeyMetric.REVENUE]
    assert revenue.compare_basis is CompareBasis.QOQ
    assert revenue.prev_value == Decimal("50000000000")
    assert revenue.delta == Decimal("10000000000")
    assert revenue.delta_pct == Decimal("20")
    assert revenue.trend is Trend.UP

    # revenueYoY is never compared quarter over quarter.
    assert results[KeyMetric.REVENUE_YOY].compare_basis is CompareBasis.NONE


def test_two_ytd_anchors_never_compare_quarter_over_quarter(make_statement) -> None:
    balance = {"totalEquity": 500, "totalLiabilities": 300, "cash": 80, "interestBearingDebt": 40}
    nine_months = make_statement(
        index=0,
        quarter=3,
        income={"revenue": 160, "operatingIncome": 18, "netIncome": 14},
        cashflow={"operatingCashFlow": 50, "capitalExpenditure": 15},
        balance=balance,
    )
    half_year = make_statement(
        index=1,
        quarter=2,
        income={"revenue": 100, "operatingIncome": 10, "netIncome": 8},
        cashflow={"operatingCashFlow": 30, "capitalExpenditure": 10},
        balance=balance,
    )

    results = resolve_key_metrics(nine_months, [nine_months, half_year])

    assert set(results) == set(KeyMetric)
    assert all(compare.compare_basis is not CompareBasis.QOQ for compare in results.values())
    revenue = results[KeyMetric.REVENUE]
    assert revenue.compare_basis is CompareBasis.NONE
    assert revenue.reason_code is CompareReasonCode.MISSING_PREV_YEAR_VALUE


def test_yoy_against_prior_fiscal_year_statement(make_statement) -> None:
    current = make_statement(index=0, fiscal_year=2025, income={"revenue": 120})
    prior = make_statement(index=1, fiscal_year=2024, income={"revenue": 100})

    revenue = resolve_key_metrics(current, [current, prior])[KeyMetric.REVENUE]

    assert revenue.compare_basis is CompareBasis.YOY
    assert revenue.prev_value == Decimal("100")
    assert revenue.delta == Decimal("20")
    assert revenue.delta_pct == Decimal("20")
    assert revenue.trend is Trend.UP
    assert revenue.reason_code is None


def test_yoy_falls_back_to_prev_year_items(make_statement) -> None:
    current = make_statement(income={"revenue": 90, "revenuePrevYear": 100})

    revenue = resolve_key_metrics(current, [current])[KeyMetric.REVENUE]

    assert revenue.compare_basis is CompareBasis.YOY
    assert revenue.delta == Decimal("-10")
    assert revenue.trend is Trend.DOWN


def test_zero_prev_value_has_no_delta_pct(make_statement) -> None:
    current = make_statement(income={"revenue": 10, "revenuePrevYear": 0})

    revenue = resolve_key_metrics(current, [current])[KeyMetric.REVENUE]

    assert revenue.compare_basis is CompareBasis.YOY
    assert revenue.delta == Decimal("10")
    assert revenue.delta_pct is None


@pytest.mark.parametrize(
    ("prior_kwargs", "reason"),
    [
        ({"period_type": PeriodType.Q}, CompareReasonCode.PERIOD_MISMATCH),
        ({"scope": StatementScope.SEPARATE}, CompareReasonCode.SCOPE_MISMATCH),
        ({"unit": "백만원"}, CompareReasonCode.UNIT_MISMATCH),
    ],
)
def test_blocked_yoy_reports_first_blocking_reason(
    make_statement, prior_kwargs: dict, reason: CompareReasonCode
) -> None:
    current = make_statement(index=0, fiscal_year=2025, income={"revenue": 120})
    prior = make_statement(index=1, fiscal_year=2024, income={"revenue": 100}, **prior_kwargs)

    revenue = resolve_key_metrics(current, [current, prior])[KeyMetric.REVENUE]

    assert revenue.compare_basis is CompareBasis.NONE
    assert revenue.reason_code is reason


def test_conflicting_prior_year_candidates(make_statement) -> None:
    current = make_statement(index=0, fiscal_year=2025, income={"revenue": 120})
    first = make_statement(index=1, fiscal_year=2024, income={"revenue": 100})
    second = make_statement(index=2, fiscal_year=2024, income={"revenue": 90})

    revenue = resolve_key_metrics(current, [current, first, second])[KeyMetric.REVENUE]

    assert revenue.reason_code is CompareReasonCode.MULTIPLE_CANDIDATES


def test_instant_compares_against_nearest_earlier_statement(make_statement) -> None:
    q3 = make_statement(index=0, quarter=3, balance={"totalEquity": 500})
    q2 = make_statement(index=1, quarter=2, balance={"totalEquity": 400})
    q1 = make_statement(index=2, quarter=1, balance={"totalEquity": 300})

    equity = resolve_key_metrics(q3, [q3, q2, q1])[KeyMetric.EQUITY]

    assert equity.compare_basis is CompareBasis.VS_PRIOR_END
    assert equity.prev_value == Decimal("400")
    assert equity.delta_pct == Decimal("25")


def test_instant_falls_back_to_prior_end_items(make_statement) -> None:
    statement = make_statement(balance={"totalEquity": 500, "equityPriorEnd": 500})

    equity = resolve_key_metrics(statement, [statement])[KeyMetric.EQUITY]

    assert equity.compare_basis is CompareBasis.VS_PRIOR_END
    assert equity.delta == Decimal("0")
    assert equity.trend is Trend.NEUTRAL


def test_net_cash_uses_reported_prior_end_net_cash(make_statement) -> None:
    statement = make_statement(
        balance={"cash": 100, "interestBearingDebt": 30, "netCashPriorEnd": 50},
    )

    net_cash = resolve_key_metrics(statement, [statement])[KeyMetric.NET_CASH]

    assert net_cash.compare_basis is CompareBasis.VS_PRIOR_END
    assert net_cash.prev_value == Decimal("50")
    assert net_cash.delta == Decimal("20")


def test_missing_prior_end_detail_lists_missing_inputs(make_statement) -> None:
    statement = make_statement(balance={"totalLiabilities": 200, "totalEquity": 100})

    results = resolve_key_metrics(statement, [statement])

    debt_ratio = results[KeyMetric.DEBT_RATIO]
    assert debt_ratio.reason_code is CompareReasonCode.MISSING_PRIOR_END_INSTANT
    assert debt_ratio.reason_detail == "Missing: priorEnd liabilities, priorEnd equity"

    equity = results[KeyMetric.EQUITY]
    assert equity.reason_code is CompareReasonCode.MISSING_PRIOR_END_INSTANT
    assert equity.reason_detail is None


def test_missing_current_and_zero_denominator(make_statement) -> None:
    statement = make_statement(income={"revenue": 0, "operatingIncome": 10})

    results = resolve_key_metrics(statement, [statement])

    assert results[KeyMetric.OPERATING_MARGIN].reason_code is CompareReasonCode.NOT_APPLICABLE
    assert results[KeyMetric.NET_MARGIN].reason_code is CompareReasonCode.MISSING_CURRENT_VALUE
    assert results[KeyMetric.CASH].reason_code is CompareReasonCode.MISSING_CURRENT_VALUE


def test_attach_key_metrics_returns_new_statements(make_statement) -> None:
    statement = make_statement(income={"revenue": 100})

    (attached,) = attach_key_metrics([statement])

    assert statement.key_metrics_compare is None
    assert attached.key_metrics_compare is not None
    assert set(attached.key_metrics_compare) == set(KeyMetric)


def test_qoq_eligibility_registry() -> None:
    eligible = {metric for metric, spec in METRIC_SPECS.items() if spec.qoq_eligible}
    assert eligible == {
        KeyMetric.REVENUE,
        KeyMetric.OPERATING_MARGIN,
        KeyMetric.NET_MARGIN,
        KeyMetric.OCF,
        KeyMetric.CAPEX,
        KeyMetric.FCF,
    }


def test_build_compare_trend_epsilon() -> None:
    compare = build_compare(CompareBasis.YOY, Decimal("1.0000000001"), Decimal("1"))
    assert compare.trend is Trend.NEUTRAL


def test_none_basis_requires_reason_code() -> None:
    with pytest.raises(ValueError):
        KeyMetricCompare(compare_basis=CompareBasis.NONE)
    with pytest.raises(ValueError):
        KeyMetricCompare(
            compare_basis=CompareBasis.YOY,
            reason_code=CompareReasonCode.NOT_APPLICABLE,
        )

    unavailable = KeyMetricCompare.unavailable(CompareReasonCode.PARSER_ERROR, "boom")
    assert not unavailable.is_available
    assert unavailable.reason_detail == "boom"
