# src/dart_insight/application/use_cases/analysis/bundle_mapping.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Domain → DTO mapping for the analysis bundle.

Purpose:
    Project the immutable :class:`AnalysisBundle` and its parts into the
    presentation DTOs. Decimals become strings; tuples become lists.

Layer:
    application/use_cases
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from dart_insight.application.schemas.dto.analysis_bundle import (
    AnalysisBundleDTO,
    BundleFinancialItemDTO,
    BundleFinancialStatementDTO,
    CalculationPolicyDTO,
    ChartPlanDTO,
    ChartPlanItemDTO,
    CheckpointDTO,
    CompanyDTO,
    DataQualityDTO,
    DerivedMetricsDTO,
    EvidenceLocatorDTO,
    EvidenceRefDTO,
    FindingDTO,
    IndustryClassificationDTO,
    IndustryEvidenceDTO,
    KeyMetricCompareDTO,
    PeriodKeyDTO,
    SelfCheckDTO,
    StepOutputDTO,
    SummaryCardDTO,
)
from dart_insight.domain.entities.analysis_bundle import AnalysisBundle, DerivedMetrics
from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.financial_statement import (
    BundleFinancialItem,
    BundleFinancialStatement,
)
from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.key_metric_compare import KeyMetricCompare
from dart_insight.domain.entities.period import PeriodKey
from dart_insight.domain.entities.report import ChartPlan, StepOutput


def _dec(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def evidence_to_dto(ref: EvidenceRef) -> EvidenceRefDTO:
    """Map an :class:`EvidenceRef` to its DTO."""
    locator = ref.locator
    return EvidenceRefDTO(
        source_type=ref.source_type,
        file_id=ref.file_id,
        locator=EvidenceLocatorDTO(
            page=locator.page,
            tag=locator.tag,
            context_ref=locator.context_ref,
            section=locator.section,
            heading=locator.heading,
            line_hint=locator.line_hint,
        ),
        quote=ref.quote,
    )


def _evidence_list(refs: Iterable[EvidenceRef]) -> list[EvidenceRefDTO]:
    return [evidence_to_dto(ref) for ref in refs]


def compare_to_dto(compare: KeyMetricCompare) -> KeyMetricCompareDTO:
    """Map a :class:`KeyMetricCompare` to its DTO."""
    return KeyMetricCompareDTO(
        compare_basis=compare.compare_basis,
        prev_value=_dec(compare.prev_value),
        delta=_dec(compare.delta),
        delta_pct=_dec(compare.delta_pct),
        trend=compare.trend,
        reason_code=compare.reason_code,
        reason_detail=compare.reason_detail,
    )


def period_to_dto(period: PeriodKey) -> PeriodKeyDTO:
    """Map a :class:`PeriodKey` to its DTO."""
    return PeriodKeyDTO(
        period_type=period.period_type,
        fiscal_year=period.fiscal_year,
        quarter=period.quarter,
        start_date=period.start_date,
        end_date=period.end_date,
    )


def _item_to_dto(item: BundleFinancialItem) -> BundleFinancialItemDTO:
    return BundleFinancialItemDTO(
        name=item.name,
        value=_dec(item.value),
        currency=item.meta.currency.value,
        unit=item.meta.unit.value,
        sign_convention=item.meta.sign_convention.value,
        evidence=_evidence_list(item.evidence),
    )


def _section(items: Mapping[str, BundleFinancialItem]) -> dict[str, BundleFinancialItemDTO]:
    return {key: _item_to_dto(item) for key, item in items.items()}


def statement_to_dto(statement: BundleFinancialStatement) -> BundleFinancialStatementDTO:
    """Map a normalized statement (with any attached comparisons) to its DTO."""
    compare = statement.key_metrics_compare
    return BundleFinancialStatementDTO(
        period=period_to_dto(statement.period),
        period_label=statement.period_label,
        scope=statement.scope,
        file_id=statement.file_id,
        income=_section(statement.income),
        cashflow=_section(statement.cashflow),
        balance=_section(statement.balance),
        key_metrics_compare=(
            {metric.value: compare_to_dto(value) for metric, value in compare.items()}
            if compare is not None
            else None
        ),
    )


def derived_to_dto(metrics: DerivedMetrics) -> DerivedMetricsDTO:
    """Map :class:`DerivedMetrics` to its DTO."""
    return DerivedMetricsDTO(
        revenue=_dec(metrics.revenue),
        operating_income=_dec(metrics.operating_income),
        ocf=_dec(metrics.ocf),
        capex=_dec(metrics.capex),
        fcf=_dec(metrics.fcf),
        opm=_dec(metrics.opm),
        fcf_margin=_dec(metrics.fcf_margin),
        roic=_dec(metrics.roic),
        invested_capital=_dec(metrics.invested_capital),
        evidence=_evidence_list(metrics.evidence),
    )


def chart_plan_to_dto(plan: ChartPlan) -> ChartPlanDTO:
    """Map a :class:`ChartPlan` to its DTO."""
    return ChartPlanDTO(
        step=plan.step,
        charts=[
            ChartPlanItemDTO(
                chart_id=chart.chart_id,
                chart_type=chart.chart_type,
                period_label=chart.period_label,
                data_keys=list(chart.data_keys),
                available=chart.available,
                reason=chart.reason,
                required_reports=chart.required_reports,
                badge=chart.badge,
            )
            for chart in plan.charts
        ],
    )


def step_to_dto(step: StepOutput) -> StepOutputDTO:
    """Map a :class:`StepOutput` to its DTO."""
    return StepOutputDTO(
        step=step.step,
        title=step.title,
        summary_cards=[
            SummaryCardDTO(
                label=card.label,
                value=card.value,
                note=card.note,
                evidence=_evidence_list(card.evidence),
            )
            for card in step.summary_cards
        ],
        findings=[
            FindingDTO(
                id=finding.id,
                category=finding.category,
                severity=finding.severity,
                text=finding.text,
                evidence=_evidence_list(finding.evidence),
                reason_code=finding.reason_code,
            )
            for finding in step.findings
        ],
        checkpoints=[
            CheckpointDTO(
                id=checkpoint.id,
                title=checkpoint.title,
                what_to_watch=checkpoint.what_to_watch,
                why_it_matters=checkpoint.why_it_matters,
                next_quarter_action=checkpoint.next_quarter_action,
                evidence=_evidence_list(checkpoint.evidence),
                confirm_question=checkpoint.confirm_question,
            )
            for checkpoint in step.checkpoints
        ],
        chart_plan=chart_plan_to_dto(step.chart_plan) if step.chart_plan is not None else None,
    )


def industry_to_dto(industry: IndustryClassification) -> IndustryClassificationDTO:
    """Map an :class:`IndustryClassification` to its DTO."""
    return IndustryClassificationDTO(
        label=industry.label,
        confidence=industry.confidence,
        evidence=[
            IndustryEvidenceDTO(
                source=item.source,
                excerpt=item.excerpt,
                text=item.text,
                topic=item.topic,
                page=item.page,
                section=item.section,
                heading=item.heading,
                id=item.id,
                title=item.title,
                location_hint=item.location_hint,
            )
            for item in industry.evidence
        ],
        core_categories=(
            list(industry.core_categories) if industry.core_categories is not None else None
        ),
        adjacent_categories=(
            list(industry.adjacent_categories)
            if industry.adjacent_categories is not None
            else None
        ),
        reason_code=industry.reason_code,
    )


def bundle_to_dto(bundle: AnalysisBundle, *, step1_report_text: str | None = None) -> AnalysisBundleDTO:
    """Map a whole :class:`AnalysisBundle` to :class:`AnalysisBundleDTO`.

    Args:
        bundle: Assembled bundle.
        step1_report_text: Rendered step-1 report, when available.

    Returns:
        AnalysisBundleDTO ready for JSON serialization.
    """
    company = bundle.company
    policy = bundle.calculation_policy
    check = bundle.self_check
    return AnalysisBundleDTO(
        run_id=bundle.run_id,
        company=CompanyDTO(
            name=company.name,
            ticker=company.ticker,
            market=company.market,
            industry=industry_to_dto(company.industry) if company.industry is not None else None,
        ),
        period=period_to_dto(bundle.period) if bundle.period is not None else None,
        period_label=bundle.period_label,
        statements=[statement_to_dto(statement) for statement in bundle.statements],
        derived=[derived_to_dto(metrics) for metrics in bundle.derived],
        step_outputs=[step_to_dto(step) for step in bundle.step_outputs],
        chart_plans=[chart_plan_to_dto(plan) for plan in bundle.chart_plans],
        all_evidence=_evidence_list(bundle.all_evidence),
        warnings=list(bundle.warnings),
        data_quality=DataQualityDTO(
            missing_concepts=list(bundle.data_quality.missing_concepts),
            blocked_metrics=list(bundle.data_quality.blocked_metrics),
        ),
        calculation_policy=CalculationPolicyDTO(
            capex_policy=policy.capex_policy,
            eps_scope=policy.eps_scope,
            roe_definition=policy.roe_definition,
            fcf_definition=policy.fcf_definition,
            capex_ppe_included=policy.capex_ppe_included,
            capex_intangible_included=policy.capex_intangible_included,
        ),
        self_check=(
            SelfCheckDTO(
                passed=check.passed,
                summary=check.summary,
                failures=list(check.failures),
                warnings=list(check.warnings),
            )
            if check is not None
            else None
        ),
        step1_report_text=step1_report_text,
    )


__all__ = [
    "evidence_to_dto",
    "compare_to_dto",
    "period_to_dto",
    "statement_to_dto",
    "derived_to_dto",
    "chart_plan_to_dto",
    "step_to_dto",
    "industry_to_dto",
    "bundle_to_dto",
]
