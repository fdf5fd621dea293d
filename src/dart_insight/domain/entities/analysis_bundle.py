# src/dart_insight/domain/entities/analysis_bundle.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""The assembled analysis bundle.

Purpose:
    Single output model of one analysis run: normalized statements with
    attached comparisons, derived metrics, step outputs, the deduplicated
    evidence pool, warnings and data-quality metadata.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.financial_statement import BundleFinancialStatement
from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.period import PeriodKey
from dart_insight.domain.entities.report import ChartPlan, StepOutput


@dataclass(frozen=True, slots=True)
class DerivedMetrics:
    """Ratios derived from one normalized statement.

    Attributes:
        revenue: Reported revenue.
        operating_income: Reported operating income.
        ocf: Operating cash flow.
        capex: Capital expenditure as reported.
        fcf: Free cash flow (OCF minus absolute CAPEX).
        opm: Operating margin in percent, when plausible.
        fcf_margin: FCF margin in percent, when plausible.
        roic: Simplified ROIC in percent, when plausible.
        invested_capital: Equity plus interest-bearing debt minus cash.
        evidence: Citations of the inputs behind the ROIC figure.
    """

    revenue: Decimal | None = None
    operating_income: Decimal | None = None
    ocf: Decimal | None = None
    capex: Decimal | None = None
    fcf: Decimal | None = None
    opm: Decimal | None = None
    fcf_margin: Decimal | None = None
    roic: Decimal | None = None
    invested_capital: Decimal | None = None
    evidence: tuple[EvidenceRef, ...] = ()


@dataclass(frozen=True, slots=True)
class DataQuality:
    """Missing concepts and blocked metrics of the latest statement."""

    missing_concepts: tuple[str, ...] = ()
    blocked_metrics: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CalculationPolicy:
    """Calculation definitions recorded for reproducibility."""

    capex_policy: str = "PPE_ONLY"
    eps_scope: str = "TOTAL"
    roe_definition: str = "CUMULATIVE_END_EQUITY"
    fcf_definition: str = "OCF_MINUS_CAPEX"
    capex_ppe_included: bool = False
    capex_intangible_included: bool = False


@dataclass(frozen=True, slots=True)
class CompanyInfo:
    """Company identity and industry classification."""

    name: str
    ticker: str | None = None
    market: str = "KR"
    industry: IndustryClassification | None = None


@dataclass(frozen=True, slots=True)
class SelfCheckResult:
    """Outcome of the bundle consistency checks.

    Attributes:
        passed: True when no check failed.
        summary: One-line PASS/FAIL summary.
        failures: Failed check messages.
        warnings: Non-fatal check messages.
    """

    passed: bool
    summary: str
    failures: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AnalysisBundle:
    """Result of one analysis run.

    ``statements`` is sorted by end date descending; ``statements[0]`` is the
    latest statement and ``derived`` is index-aligned with ``statements``.
    """

    run_id: str
    company: CompanyInfo
    period: PeriodKey | None
    period_label: str | None
    statements: tuple[BundleFinancialStatement, ...]
    derived: tuple[DerivedMetrics, ...]
    step_outputs: tuple[StepOutput, ...]
    chart_plans: tuple[ChartPlan, ...]
    all_evidence: tuple[EvidenceRef, ...]
    warnings: tuple[str, ...]
    data_quality: DataQuality
    calculation_policy: CalculationPolicy
    self_check: SelfCheckResult | None = None

    @property
    def latest(self) -> BundleFinancialStatement | None:
        """Return the most recent statement, if any."""
        return self.statements[0] if self.statements else None

    def step(self, number: int) -> StepOutput | None:
        """Return the output of step ``number``, if produced."""
        for output in self.step_outputs:
            if output.step == number:
                return output
        return None


__all__ = [
    "DerivedMetrics",
    "DataQuality",
    "CalculationPolicy",
    "CompanyInfo",
    "SelfCheckResult",
    "AnalysisBundle",
]
