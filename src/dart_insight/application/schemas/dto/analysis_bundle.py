# src/dart_insight/application/schemas/dto/analysis_bundle.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application DTOs for the analysis bundle.

Purpose:
    Transport-agnostic projection of :class:`AnalysisBundle` for JSON
    output, plus the ingestion DTO for stored key-metric comparisons.

Layer:
    application/schemas/dto

Notes:
    - Decimal values are carried as strings to avoid float drift.
    - ``KeyMetricCompareDTO`` migrates legacy ``COMPARE_*`` reason strings
      into :class:`CompareReasonCode` once, at validation time.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import Field, field_validator, model_validator

from dart_insight.application.schemas.dto.base import BaseDTO
from dart_insight.domain.entities.key_metric_compare import KeyMetricCompare
from dart_insight.domain.enums.compare import CompareBasis, CompareReasonCode, Trend
from dart_insight.domain.enums.evidence import EvidenceSourceType, IndustryEvidenceSource, Topic
from dart_insight.domain.enums.period import PeriodType, StatementScope
from dart_insight.domain.enums.report import ChartType, FindingCategory, Severity
from dart_insight.domain.services.reason_codes import (
    default_reason_code,
    migrate_legacy_reason_code,
)

# --------------------------------------------------------------------------- #
# Evidence                                                                    #
# --------------------------------------------------------------------------- #


class EvidenceLocatorDTO(BaseDTO):
    """Position of a quote inside a source file."""

    page: int | None = None
    tag: str | None = None
    context_ref: str | None = None
    section: str | None = None
    heading: str | None = None
    line_hint: str | None = None


class EvidenceRefDTO(BaseDTO):
    """Citation of a quote in an uploaded file."""

    source_type: EvidenceSourceType
    file_id: str
    locator: EvidenceLocatorDTO = Field(default_factory=EvidenceLocatorDTO)
    quote: str | None = None


# --------------------------------------------------------------------------- #
# Comparisons                                                                 #
# --------------------------------------------------------------------------- #


class KeyMetricCompareDTO(BaseDTO):
    """Stored or presented key-metric comparison.

    Attributes:
        compare_basis: YOY, QOQ, VS_PRIOR_END or NONE.
        prev_value: Comparison value as a decimal string.
        delta: ``current - prev`` as a decimal string.
        delta_pct: Percent change as a decimal string.
        trend: up, down or neutral.
        reason_code: Why no comparison is available (NONE only).
        reason_detail: Free-form detail for the reason.
        current_value: Current value, when the stored payload carries it.
    """

    compare_basis: CompareBasis = Field(alias="compareBasis")
    prev_value: str | None = Field(default=None, alias="prevValue")
    delta: str | None = None
    delta_pct: str | None = Field(default=None, alias="deltaPct")
    trend: Trend = Trend.NEUTRAL
    reason_code: CompareReasonCode | None = Field(default=None, alias="reasonCode")
    reason_detail: str | None = Field(default=None, alias="reasonDetail")
    current_value: str | None = Field(default=None, alias="currentValue")

    @model_validator(mode="before")
    @classmethod
    def _migrate_reason_code(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        payload = dict(data)
        reason_key = "reasonCode" if "reasonCode" in payload else "reason_code"
        basis = payload.get("compareBasis", payload.get("compare_basis"))
        current_key = "currentValue" if "currentValue" in payload else "current_value"
        current_missing = current_key in payload and payload[current_key] is None

        if basis not in (CompareBasis.NONE, CompareBasis.NONE.value):
            payload.pop(reason_key, None)
            return payload

        reason = migrate_legacy_reason_code(payload.get(reason_key), current_missing=current_missing)
        if reason is None:
            reason = default_reason_code(current_missing=current_missing)
        payload[reason_key] = reason
        return payload

    @field_validator("prev_value", "delta", "delta_pct", "current_value", mode="before")
    @classmethod
    def _number_to_str(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, int | float | Decimal):
            return str(value)
        return value

    def to_domain(self) -> KeyMetricCompare:
        """Convert to :class:`KeyMetricCompare`."""

        def _dec(value: str | None) -> Decimal | None:
            return Decimal(value) if value is not None else None

        return KeyMetricCompare(
            compare_basis=self.compare_basis,
            prev_value=_dec(self.prev_value),
            delta=_dec(self.delta),
            delta_pct=_dec(self.delta_pct),
            trend=self.trend,
            reason_code=self.reason_code,
            reason_detail=self.reason_detail,
        )


# --------------------------------------------------------------------------- #
# Statements                                                                  #
# --------------------------------------------------------------------------- #


class PeriodKeyDTO(BaseDTO):
    """Canonical reporting period."""

    period_type: PeriodType
    fiscal_year: int | None = None
    quarter: int | None = None
    start_date: date | None = None
    end_date: date | None = None


class BundleFinancialItemDTO(BaseDTO):
    """Normalized line item."""

    name: str
    value: str | None = None
    currency: str
    unit: str
    sign_convention: str
    evidence: list[EvidenceRefDTO] = Field(default_factory=list)


class BundleFinancialStatementDTO(BaseDTO):
    """One normalized statement with its comparisons."""

    period: PeriodKeyDTO
    period_label: str
    scope: StatementScope
    file_id: str
    income: dict[str, BundleFinancialItemDTO] = Field(default_factory=dict)
    cashflow: dict[str, BundleFinancialItemDTO] = Field(default_factory=dict)
    balance: dict[str, BundleFinancialItemDTO] = Field(default_factory=dict)
    key_metrics_compare: dict[str, KeyMetricCompareDTO] | None = None


class DerivedMetricsDTO(BaseDTO):
    """Derived ratios of one statement, as decimal strings."""

    revenue: str | None = None
    operating_income: str | None = None
    ocf: str | None = None
    capex: str | None = None
    fcf: str | None = None
    opm: str | None = None
    fcf_margin: str | None = None
    roic: str | None = None
    invested_capital: str | None = None
    evidence: list[EvidenceRefDTO] = Field(default_factory=list)


# --------------------------------------------------------------------------- #
# Report artifacts                                                            #
# --------------------------------------------------------------------------- #


class FindingDTO(BaseDTO):
    """Evidence-backed observation."""

    id: str
    category: FindingCategory
    severity: Severity
    text: str
    evidence: list[EvidenceRefDTO] = Field(default_factory=list)
    reason_code: str | None = None


class CheckpointDTO(BaseDTO):
    """Next-quarter checkpoint."""

    id: str
    title: str
    what_to_watch: str
    why_it_matters: str
    next_quarter_action: str
    evidence: list[EvidenceRefDTO] = Field(default_factory=list)
    confirm_question: str | None = None


class SummaryCardDTO(BaseDTO):
    """Headline card."""

    label: str
    value: str | None = None
    note: str | None = None
    evidence: list[EvidenceRefDTO] = Field(default_factory=list)


class ChartPlanItemDTO(BaseDTO):
    """One planned chart."""

    chart_id: str
    chart_type: ChartType
    period_label: str
    data_keys: list[str] = Field(default_factory=list)
    available: bool
    reason: str | None = None
    required_reports: str | None = None
    badge: str | None = None


class ChartPlanDTO(BaseDTO):
    """Chart plan of one step."""

    step: int
    charts: list[ChartPlanItemDTO] = Field(default_factory=list)


class StepOutputDTO(BaseDTO):
    """Output of one analysis step."""

    step: int
    title: str
    summary_cards: list[SummaryCardDTO] = Field(default_factory=list)
    findings: list[FindingDTO] = Field(default_factory=list)
    checkpoints: list[CheckpointDTO] = Field(default_factory=list)
    chart_plan: ChartPlanDTO | None = None


# --------------------------------------------------------------------------- #
# Bundle                                                                      #
# --------------------------------------------------------------------------- #


class IndustryEvidenceDTO(BaseDTO):
    """Evidence paragraph backing an industry classification."""

    source: IndustryEvidenceSource
    excerpt: str = ""
    text: str = ""
    topic: Topic | None = None
    page: int | None = None
    section: str | None = None
    heading: str | None = None
    id: str | None = None
    title: str | None = None
    location_hint: str | None = None


class IndustryClassificationDTO(BaseDTO):
    """Industry label, confidence and evidence."""

    label: str
    confidence: float
    evidence: list[IndustryEvidenceDTO] = Field(default_factory=list)
    core_categories: list[str] | None = None
    adjacent_categories: list[str] | None = None
    reason_code: str | None = None


class CompanyDTO(BaseDTO):
    """Company identity."""

    name: str
    ticker: str | None = None
    market: str = "KR"
    industry: IndustryClassificationDTO | None = None


class DataQualityDTO(BaseDTO):
    """Missing concepts and blocked metrics of the latest statement."""

    missing_concepts: list[str] = Field(default_factory=list)
    blocked_metrics: list[str] = Field(default_factory=list)


class CalculationPolicyDTO(BaseDTO):
    """Calculation definitions used for the run."""

    capex_policy: str
    eps_scope: str
    roe_definition: str
    fcf_definition: str
    capex_ppe_included: bool
    capex_intangible_included: bool


class SelfCheckDTO(BaseDTO):
    """Self-check outcome."""

    passed: bool
    summary: str
    failures: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class AnalysisBundleDTO(BaseDTO):
    """JSON projection of one analysis run."""

    run_id: str
    company: CompanyDTO
    period: PeriodKeyDTO | None = None
    period_label: str | None = None
    statements: list[BundleFinancialStatementDTO] = Field(default_factory=list)
    derived: list[DerivedMetricsDTO] = Field(default_factory=list)
    step_outputs: list[StepOutputDTO] = Field(default_factory=list)
    chart_plans: list[ChartPlanDTO] = Field(default_factory=list)
    all_evidence: list[EvidenceRefDTO] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    data_quality: DataQualityDTO
    calculation_policy: CalculationPolicyDTO
    self_check: SelfCheckDTO | None = None
    step1_report_text: str | None = None


__all__ = [
    "EvidenceLocatorDTO",
    "EvidenceRefDTO",
    "KeyMetricCompareDTO",
    "PeriodKeyDTO",
    "BundleFinancialItemDTO",
    "BundleFinancialStatementDTO",
    "DerivedMetricsDTO",
    "FindingDTO",
    "CheckpointDTO",
    "SummaryCardDTO",
    "ChartPlanItemDTO",
    "ChartPlanDTO",
    "StepOutputDTO",
    "IndustryEvidenceDTO",
    "IndustryClassificationDTO",
    "CompanyDTO",
    "DataQualityDTO",
    "CalculationPolicyDTO",
    "SelfCheckDTO",
    "AnalysisBundleDTO",
]
