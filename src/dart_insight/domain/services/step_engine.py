# src/dart_insight/domain/services/step_engine.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Step engine.

Purpose:
    Build the quantitative step outputs (4: profitability, 5: cash flow,
    9: risk and forensics) and run them together with step 1, attaching
    each chart plan to the step it belongs to.

Layer:
    domain/services

Notes:
    - Every finding and checkpoint cites evidence or is dropped under the
      ``skip`` policy. Cards without evidence show ``계산 불가``.
    - EWS checkpoints are computed once and split by identifier: FCF and
      CAPEX rules go to step 5, inventory, DSO and quality rules to step 9.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from dart_insight.domain.entities.analysis_bundle import DerivedMetrics
from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.financial_statement import BundleFinancialStatement
from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.report import (
    ChartPlan,
    Checkpoint,
    Finding,
    StepOutput,
    SummaryCard,
)
from dart_insight.domain.enums.evidence import EvidenceSourceType, Trait
from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.enums.report import EvidencePolicy, FindingCategory, Severity
from dart_insight.domain.services.evidence_assertions import create_checkpoint, create_finding
from dart_insight.domain.services.evidence_selector import SelectionAudit
from dart_insight.domain.services.ews_rules import generate_ews_checkpoints
from dart_insight.domain.services.money_format import format_fixed, format_money
from dart_insight.domain.services.step01_industry import run_step01
from dart_insight.domain.services.step_labels import step_title

NOT_COMPUTABLE = "계산 불가"
MISSING_EVIDENCE_NOTE = "근거 부족"

ROIC_HEALTHY_PCT = Decimal("10")
DSO_WARN_DAYS = Decimal("90")
INVENTORY_TURNOVER_WARN = Decimal("4")
DAYS_PER_YEAR = Decimal("365")

PROVISION_KEYWORDS = ("충당금", "준비금")
ACCOUNTING_CHANGE_KEYWORDS = ("회계정책", "회계처리", "회계기준")

STEP05_EWS_MARKERS = ("fcf", "capex")
STEP09_EWS_MARKERS = ("inventory", "dso", "quality")


@dataclass(frozen=True, slots=True)
class StepRunResult:
    """Step outputs in step order plus the step-1 selection audits."""

    outputs: tuple[StepOutput, ...]
    trait_audits: dict[Trait, SelectionAudit] = field(default_factory=dict)


def _not_computable(label: str) -> SummaryCard:
    return SummaryCard(label=label, value=NOT_COMPUTABLE, note=MISSING_EVIDENCE_NOTE)


def _pdf_quotes_containing(
    all_evidence: Sequence[EvidenceRef],
    keywords: Sequence[str],
) -> list[EvidenceRef]:
    return [
        ref
        for ref in all_evidence
        if ref.source_type is EvidenceSourceType.PDF
        and ref.quote
        and any(keyword in ref.quote for keyword in keywords)
    ]


def _ews_for(checkpoints: Sequence[Checkpoint], markers: Sequence[str]) -> list[Checkpoint]:
    return [c for c in checkpoints if any(marker in c.id for marker in markers)]


# --------------------------------------------------------------------------- #
# Step 4: profitability                                                       #
# --------------------------------------------------------------------------- #


def run_step04(
    statements: Sequence[BundleFinancialStatement],
    derived: Sequence[DerivedMetrics],
) -> StepOutput:
    """ROIC and operating margin of the latest statement."""
    latest = statements[0] if statements else None
    metrics = derived[0] if derived else None
    cards: list[SummaryCard] = []
    findings: list[Finding] = []

    if metrics is not None and metrics.roic is not None and metrics.evidence:
        roic_label = f"{format_fixed(metrics.roic, 1)}%"
        cards.append(SummaryCard(label="ROIC", value=roic_label, evidence=metrics.evidence))
        finding = create_finding(
            "step04-roic",
            FindingCategory.VALUATION,
            Severity.INFO if metrics.roic > ROIC_HEALTHY_PCT else Severity.WARN,
            f"ROIC: {roic_label}",
            metrics.evidence,
            EvidencePolicy.SKIP,
        )
        if finding is not None:
            findings.append(finding)
    else:
        cards.append(_not_computable("ROIC"))

    if metrics is not None and metrics.opm is not None and latest is not None:
        opm_evidence = (
            *latest.evidence(LineItem.REVENUE),
            *latest.evidence(LineItem.OPERATING_INCOME),
        )
        if opm_evidence:
            cards.append(
                SummaryCard(
                    label="영업이익률",
                    value=f"{format_fixed(metrics.opm, 1)}%",
                    evidence=opm_evidence,
                )
            )

    return StepOutput(
        step=4,
        title=step_title(4),
        summary_cards=tuple(cards),
        findings=tuple(findings),
    )


# --------------------------------------------------------------------------- #
# Step 5: cash flow                                                           #
# --------------------------------------------------------------------------- #


def _money_card(
    statement: BundleFinancialStatement | None,
    key: LineItem,
    label: str,
) -> SummaryCard:
    item = statement.item(key) if statement is not None else None
    if item is None or not item.evidence or not item.value:
        return _not_computable(label)
    return SummaryCard(label=label, value=format_money(item.value, item.meta), evidence=item.evidence)


def run_step05(
    statements: Sequence[BundleFinancialStatement],
    all_evidence: Sequence[EvidenceRef],
    ews: Sequence[Checkpoint],
) -> StepOutput:
    """OCF, CAPEX and FCF cards, the FCF finding and cash-flow checkpoints."""
    latest = statements[0] if statements else None
    cards = [
        _money_card(latest, LineItem.OPERATING_CASH_FLOW, "영업현금흐름"),
        _money_card(latest, LineItem.CAPITAL_EXPENDITURE, "CAPEX"),
        _money_card(latest, LineItem.FREE_CASH_FLOW, "FCF"),
    ]

    findings: list[Finding] = []
    fcf = latest.item(LineItem.FREE_CASH_FLOW) if latest is not None else None
    if fcf is not None and fcf.evidence and fcf.value:
        finding = create_finding(
            "step05-fcf",
            FindingCategory.CASH_FLOW,
            Severity.INFO if fcf.value > 0 else Severity.WARN,
            f"FCF: {format_money(fcf.value, fcf.meta)}",
            fcf.evidence,
            EvidencePolicy.SKIP,
        )
        if finding is not None:
            findings.append(finding)

    checkpoints: list[Checkpoint] = []
    ocf_evidence = latest.evidence(LineItem.OPERATING_CASH_FLOW) if latest is not None else ()
    has_text_evidence = any(
        ref.source_type is EvidenceSourceType.PDF and ref.quote for ref in all_evidence
    )
    if has_text_evidence and ocf_evidence:
        trend = create_checkpoint(
            "step05-cashflow-trend",
            "현금흐름 변동 모니터링",
            "OCF 변동 원인 분석",
            "현금흐름 품질 평가에 중요",
            "분기별 현금흐름 구조 변화 확인",
            ocf_evidence,
            EvidencePolicy.WARN,
        )
        if trend is not None:
            checkpoints.append(trend)
    checkpoints.extend(_ews_for(ews, STEP05_EWS_MARKERS))

    return StepOutput(
        step=5,
        title=step_title(5),
        summary_cards=tuple(cards),
        findings=tuple(findings),
        checkpoints=tuple(checkpoints),
    )


# --------------------------------------------------------------------------- #
# Step 9: risk and forensics                                                  #
# --------------------------------------------------------------------------- #


def _dso_finding(latest: BundleFinancialStatement | None) -> Finding | None:
    receivables = latest.item(LineItem.ACCOUNTS_RECEIVABLE) if latest is not None else None
    revenue = latest.value(LineItem.REVENUE) if latest is not None else None
    if receivables is None or not receivables.evidence or not receivables.value or not revenue:
        return create_finding(
            "step09-dso",
            FindingCategory.EARNINGS_QUALITY,
            Severity.WARN,
            "DSO 계산 불가 (근거 부족)",
            (),
            EvidencePolicy.WARN,
        )

    dso = receivables.value / revenue * DAYS_PER_YEAR if revenue > 0 else Decimal("0")
    return create_finding(
        "step09-dso",
        FindingCategory.EARNINGS_QUALITY,
        Severity.WARN if dso > DSO_WARN_DAYS else Severity.INFO,
        f"DSO: {format_fixed(dso, 0)}일",
        receivables.evidence,
        EvidencePolicy.SKIP,
    )


def _inventory_finding(latest: BundleFinancialStatement | None) -> Finding | None:
    inventory = latest.item(LineItem.INVENTORY) if latest is not None else None
    revenue = latest.value(LineItem.REVENUE) if latest is not None else None
    if inventory is None or not inventory.evidence or not inventory.value or not revenue:
        return create_finding(
            "step09-inventory",
            FindingCategory.EARNINGS_QUALITY,
            Severity.WARN,
            "재고 회전율 계산 불가 (근거 부족)",
            (),
            EvidencePolicy.WARN,
        )

    turnover = revenue / inventory.value if inventory.value > 0 else Decimal("0")
    return create_finding(
        "step09-inventory",
        FindingCategory.EARNINGS_QUALITY,
        Severity.WARN if turnover < INVENTORY_TURNOVER_WARN else Severity.INFO,
        f"재고 회전율: {format_fixed(turnover, 1)}회",
        inventory.evidence,
        EvidencePolicy.SKIP,
    )


def run_step09(
    statements: Sequence[BundleFinancialStatement],
    all_evidence: Sequence[EvidenceRef],
    ews: Sequence[Checkpoint],
) -> StepOutput:
    """DSO, inventory turnover, provision and accounting-change findings."""
    latest = statements[0] if statements else None
    candidates = [
        _dso_finding(latest),
        _inventory_finding(latest),
    ]

    provision = _pdf_quotes_containing(all_evidence, PROVISION_KEYWORDS)
    if provision:
        candidates.append(
            create_finding(
                "step09-provision",
                FindingCategory.RISK,
                Severity.INFO,
                "충당금 관련 정보 발견",
                provision,
                EvidencePolicy.SKIP,
            )
        )

    accounting = _pdf_quotes_containing(all_evidence, ACCOUNTING_CHANGE_KEYWORDS)
    if accounting:
        candidates.append(
            create_finding(
                "step09-accounting-change",
                FindingCategory.RISK,
                Severity.WARN,
                "회계정책 변경 관련 정보 발견",
                accounting,
                EvidencePolicy.SKIP,
            )
        )

    return StepOutput(
        step=9,
        title=step_title(9),
        findings=tuple(f for f in candidates if f is not None),
        checkpoints=tuple(_ews_for(ews, STEP09_EWS_MARKERS)),
    )


# --------------------------------------------------------------------------- #
# Entry point                                                                 #
# --------------------------------------------------------------------------- #


def attach_chart_plans(
    outputs: Sequence[StepOutput],
    plans: Sequence[ChartPlan],
) -> tuple[StepOutput, ...]:
    """Return ``outputs`` with each plan attached to the step it names."""
    by_step = {plan.step: plan for plan in plans}
    return tuple(
        dataclasses.replace(output, chart_plan=by_step[output.step])
        if output.step in by_step
        else output
        for output in outputs
    )


def run_steps(
    *,
    statements: Sequence[BundleFinancialStatement],
    derived: Sequence[DerivedMetrics],
    all_evidence: Sequence[EvidenceRef],
    industry: IndustryClassification | None,
    chart_plans: Sequence[ChartPlan] = (),
    audit: bool = False,
) -> StepRunResult:
    """Run steps 1, 4, 5 and 9 and attach the chart plans.

    Args:
        statements: Normalized statements, latest first.
        derived: Derived metrics aligned with ``statements``.
        all_evidence: Bundle-wide evidence pool.
        industry: Industry classification for step 1.
        chart_plans: Plans produced by the chart availability resolver.
        audit: Whether to collect step-1 selection audits.

    Returns:
        StepRunResult with outputs ordered by step number.
    """
    step01 = run_step01(industry, all_evidence, audit=audit)
    ews = generate_ews_checkpoints(statements, all_evidence)

    outputs = (
        step01.output,
        run_step04(statements, derived),
        run_step05(statements, all_evidence, ews),
        run_step09(statements, all_evidence, ews),
    )
    return StepRunResult(
        outputs=attach_chart_plans(outputs, chart_plans),
        trait_audits=dict(step01.trait_audits),
    )


__all__ = [
    "NOT_COMPUTABLE",
    "MISSING_EVIDENCE_NOTE",
    "StepRunResult",
    "run_step04",
    "run_step05",
    "run_step09",
    "attach_chart_plans",
    "run_steps",
]
