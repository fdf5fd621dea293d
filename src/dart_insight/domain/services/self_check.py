# src/dart_insight/domain/services/self_check.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Bundle self-check.

Purpose:
    Verify the integrity of an assembled bundle: the representative period
    must be well formed, and every derived FCF must equal OCF minus
    absolute CAPEX within tolerance.

Layer:
    domain/services

Notes:
    Statement-level period problems are warnings; only the representative
    period and the FCF arithmetic can fail the check.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from dart_insight.domain.entities.analysis_bundle import DerivedMetrics, SelfCheckResult
from dart_insight.domain.entities.financial_statement import BundleFinancialStatement
from dart_insight.domain.entities.period import PeriodKey
from dart_insight.domain.services.money_format import format_fixed
from dart_insight.domain.services.period_normalizer import MAX_VALID_YEAR, MIN_VALID_YEAR

FCF_RELATIVE_TOLERANCE = Decimal("0.0001")
FCF_ABSOLUTE_TOLERANCE = Decimal("1000")


def check_period_integrity(period: PeriodKey | None) -> list[str]:
    """Return failure messages for ``period`` (empty when it is sound)."""
    failures: list[str] = []
    if period is None or period.end_date is None:
        failures.append("기간 무결성: endDate가 존재하지 않습니다")
        return failures

    if period.start_date is not None and period.start_date > period.end_date:
        failures.append(
            f"기간 무결성: startDate({period.start_date.isoformat()})가 "
            f"endDate({period.end_date.isoformat()})보다 늦습니다"
        )

    if period.fiscal_year is not None and not (
        MIN_VALID_YEAR <= period.fiscal_year <= MAX_VALID_YEAR
    ):
        failures.append(
            f"기간 무결성: fiscalYear({period.fiscal_year})가 허용 범위"
            f"({MIN_VALID_YEAR}~{MAX_VALID_YEAR})를 벗어났습니다"
        )

    end_year = period.end_date.year
    if not MIN_VALID_YEAR <= end_year <= MAX_VALID_YEAR:
        failures.append(
            f"기간 무결성: endDate의 연도({end_year})가 허용 범위"
            f"({MIN_VALID_YEAR}~{MAX_VALID_YEAR})를 벗어났습니다"
        )
    return failures


def check_fcf_arithmetic(derived: Sequence[DerivedMetrics]) -> list[str]:
    """Return a failure per derived entry whose FCF differs from OCF - |CAPEX|."""
    failures: list[str] = []
    for index, metrics in enumerate(derived):
        if metrics.ocf is None or metrics.capex is None or metrics.fcf is None:
            continue
        expected = metrics.ocf - abs(metrics.capex)
        tolerance = max(abs(expected) * FCF_RELATIVE_TOLERANCE, FCF_ABSOLUTE_TOLERANCE)
        diff = abs(metrics.fcf - expected)
        if diff > tolerance:
            failures.append(
                f"산술 무결성 (derived[{index}]): FCF({metrics.fcf}) != "
                f"OCF({metrics.ocf}) - |CAPEX|({abs(metrics.capex)}) = {expected} "
                f"(차이: {format_fixed(diff, 2)})"
            )
    return failures


def run_self_check(
    period: PeriodKey | None,
    statements: Sequence[BundleFinancialStatement],
    derived: Sequence[DerivedMetrics],
) -> SelfCheckResult:
    """Run the period and arithmetic checks.

    Args:
        period: Representative period of the bundle.
        statements: Normalized statements, latest first.
        derived: Derived metrics aligned with ``statements``.

    Returns:
        SelfCheckResult with a one-line PASS/FAIL summary.
    """
    failures = check_period_integrity(period)
    warnings: list[str] = []

    for index, statement in enumerate(statements):
        statement_failures = check_period_integrity(statement.period)
        if statement_failures:
            warnings.append(f"Statement[{index}].period: {', '.join(statement_failures)}")

    failures.extend(check_fcf_arithmetic(derived))

    passed = not failures
    if passed:
        summary = f"Self-Check PASS ({len(statements)} statements, {len(derived)} derived metrics)"
    else:
        summary = f"Self-Check FAIL: {len(failures)} failure(s), {len(warnings)} warning(s)"

    return SelfCheckResult(
        passed=passed,
        summary=summary,
        failures=tuple(failures),
        warnings=tuple(warnings),
    )


__all__ = [
    "check_period_integrity",
    "check_fcf_arithmetic",
    "run_self_check",
]
