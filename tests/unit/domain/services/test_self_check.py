# tests/unit/domain/services/test_self_check.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

from dart_insight.domain.entities.analysis_bundle import DerivedMetrics
from dart_insight.domain.entities.period import PeriodKey
from dart_insight.domain.enums.period import PeriodType
from dart_insight.domain.services.self_check import (
    check_fcf_arithmetic,
    check_period_integrity,
    run_self_check,
)


def test_missing_period_fails() -> None:
    assert check_period_integrity(None) == ["기간 무결성: endDate가 존재하지 않습니다"]
    assert check_period_integrity(PeriodKey(period_type=PeriodType.FY)) == [
        "기간 무결성: endDate가 존재하지 않습니다"
    ]


def test_out_of_range_fiscal_year_fails() -> None:
    period = PeriodKey(period_type=PeriodType.FY, fiscal_year=1999, end_date=date(2025, 12, 31))

    (failure,) = check_period_integrity(period)

    assert failure.startswith("기간 무결성: fiscalYear(1999)")


def test_fcf_arithmetic_tolerance() -> None:
    consistent = DerivedMetrics(ocf=Decimal("100000"), capex=Decimal("20000"), fcf=Decimal("80500"))
    broken = DerivedMetrics(ocf=Decimal("100000"), capex=Decimal("-20000"), fcf=Decimal("50000"))

    assert check_fcf_arithmetic([consistent]) == []
    assert check_fcf_arithmetic([consistent, broken]) == [
        "산술 무결성 (derived[1]): FCF(50000) != OCF(100000) - |CAPEX|(20000) = 80000 (차이: 30000.00)"
    ]


def test_run_self_check_pass(make_statement) -> None:
    statement = make_statement(cashflow={"operatingCashFlow": 300, "capitalExpenditure": 100})
    derived = DerivedMetrics(ocf=Decimal("300"), capex=Decimal("100"), fcf=Decimal("200"))

    result = run_self_check(statement.period, [statement], [derived])

    assert result.passed
    assert result.summary == "Self-Check PASS (1 statements, 1 derived metrics)"
    assert result.failures == ()


def test_statement_period_problems_are_warnings(make_statement) -> None:
    good = make_statement(index=0)
    old = make_statement(
        index=1,
        fiscal_year=None,
        start_date=date(1999, 1, 1),
        end_date=date(1999, 12, 31),
    )

    result = run_self_check(None, [good, old], [])

    assert not result.passed
    assert result.summary == "Self-Check FAIL: 1 failure(s), 1 warning(s)"
    assert result.warnings == (
        "Statement[1].period: 기간 무결성: endDate의 연도(1999)가 허용 범위(2000~2100)를 벗어났습니다",
    )
