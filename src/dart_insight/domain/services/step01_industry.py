# src/dart_insight/domain/services/step01_industry.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Step 1: industry and competitive environment.

Purpose:
    Build the step-1 output from the industry classification: summary
    cards, a low-confidence warning, one finding per trait (selected
    evidence or an explicit hold), and one checkpoint per withheld trait.

Layer:
    domain/services

Notes:
    - Traits are always rendered in ``Trait`` declaration order.
    - A held finding always carries a ``FINDING_<REASON>_<TRAIT>`` reason
      code; a selected finding carries one only when the evidence came
      from outside the trait's topic priority.
    - Selection audits are returned, never logged, so callers decide
      whether to emit them.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from dart_insight.domain.entities.evidence import EvidenceCandidate, EvidenceLocator, EvidenceRef
from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.report import Checkpoint, Finding, StepOutput, SummaryCard
from dart_insight.domain.enums.evidence import EvidenceSourceType, Trait
from dart_insight.domain.enums.report import EvidencePolicy, FindingCategory, Severity
from dart_insight.domain.services.evidence_assertions import create_checkpoint, create_finding
from dart_insight.domain.services.evidence_rules import MIN_SELECTION_SCORE, rules_for
from dart_insight.domain.services.evidence_selector import (
    SelectionAudit,
    pick_best_paragraph,
    sanitize_text,
    summarize_deterministic,
)
from dart_insight.domain.services.step_labels import step_title

PDF_FILE_ID = "pdf"
LOW_CONFIDENCE_THRESHOLD = 0.6
MAX_STEP_EVIDENCE = 3
MAX_CHECKPOINTS = 4
MAX_FINDING_LENGTH = 500

OBSERVATION_LABEL = "관찰"
EVIDENCE_LABEL = "근거"
IMPLICATION_LABEL = "시사점"
EVIDENCE_PLACEHOLDER = "근거 목록 참조"
HOLD_PREFIX = "판단 보류(근거 부족)"
HOLD_EVIDENCE = "데이터 부족"
HOLD_OBSERVATION_SUFFIX = "평가를 위한 공시 근거 부족"
HOLD_IMPLICATION = "다음 단계에서 확인 필요"
LOW_CONFIDENCE_TEXT = "산업 분류 확신도 낮음 → 사업 내용/세그먼트로 재검증 필요"


@dataclass(frozen=True, slots=True)
class CheckpointTemplate:
    """Standard wording of a withheld-trait checkpoint."""

    what_to_watch: str
    check_location: str
    confirm_question: str


def _template(what: str, where: str, question: str) -> CheckpointTemplate:
    return CheckpointTemplate(what_to_watch=what, check_location=where, confirm_question=question)


DEFAULT_TEMPLATE_KEY = "default"

CHECKPOINT_TEMPLATES: Mapping[str, Mapping[Trait, CheckpointTemplate]] = {
    "가전/전자제품": {
        Trait.CYCLICAL: _template(
            "수요(소비/주택/금리)",
            "사업의 내용 / 시장의 특성",
            "소비자 구매력 및 주택 시장 동향이 제품 수요에 미치는 영향은?",
        ),
        Trait.COMPETITION: _template(
            "채널/판촉",
            "주요 제품 및 서비스 / 경쟁현황",
            "채널별 판촉 비용 및 경쟁사 대비 가격 정책은?",
        ),
        Trait.PRICING_POWER: _template(
            "원가/부품",
            "사업의 내용 / 주요 제품 및 서비스",
            "부품 원가 변동 및 공급망 안정성이 마진에 미치는 영향은?",
        ),
        Trait.REGULATION: _template(
            "규제/인증",
            "사업의 내용 / 경쟁현황",
            "환경 규제 및 제품 인증 요건 변화가 비용에 미치는 영향은?",
        ),
    },
    "반도체/메모리": {
        Trait.CYCLICAL: _template(
            "사이클(DRAM/NAND)",
            "사업의 내용 / 시장의 특성",
            "메모리 가격 사이클 전환 시점 및 고객 수요 전망은?",
        ),
        Trait.COMPETITION: _template(
            "경쟁/점유율",
            "경쟁현황 / 시장의 특성",
            "중국 업체 추격 및 시장 점유율 변화 전망은?",
        ),
        Trait.PRICING_POWER: _template(
            "고객/ASP",
            "주요 제품 및 서비스 / 경쟁현황",
            "주요 고객사별 ASP 협상력 및 계약 조건 변화는?",
        ),
        Trait.REGULATION: _template(
            "CAPEX/가동률",
            "사업의 내용 / 주요 제품 및 서비스",
            "신규 라인 증설 계획 및 가동률 전망이 수익성에 미치는 영향은?",
        ),
    },
    "디스플레이": {
        Trait.CYCLICAL: _template(
            "고객사/세트 수요",
            "주요 제품 및 서비스 / 시장의 특성",
            "주요 고객사(세트업체)의 수요 전망 및 신규 모델 출시 일정은?",
        ),
        Trait.COMPETITION: _template(
            "중국 경쟁",
            "경쟁현황 / 시장의 특성",
            "중국 업체의 가격 경쟁 및 시장 점유율 변화는?",
        ),
        Trait.PRICING_POWER: _template(
            "패널가/가동률",
            "사업의 내용 / 주요 제품 및 서비스",
            "패널 가격 전망 및 공급 과잉/부족 상황은?",
        ),
        Trait.REGULATION: _template(
            "규제/인증",
            "사업의 내용 / 경쟁현황",
            "환경 규제 및 에너지 효율 인증 요건 변화가 비용에 미치는 영향은?",
        ),
    },
    DEFAULT_TEMPLATE_KEY: {
        Trait.CYCLICAL: _template(
            "수요/경기 지표",
            "사업의 내용 / 시장의 특성",
            "경기 변동이 수요에 미치는 영향 및 주요 수요 지표는?",
        ),
        Trait.COMPETITION: _template(
            "경쟁/점유율",
            "경쟁현황 / 시장의 특성",
            "경쟁 강도 및 시장 점유율 변화 전망은?",
        ),
        Trait.PRICING_POWER: _template(
            "가격/원가",
            "주요 제품 및 서비스 / 경쟁현황",
            "가격 결정력 및 원가 변동성이 마진에 미치는 영향은?",
        ),
        Trait.REGULATION: _template(
            "규제/인증",
            "사업의 내용 / 경쟁현황",
            "규제 환경 변화가 비즈니스에 미치는 영향은?",
        ),
    },
}

_TRAIT_SUFFIX = re.compile(r"_(CYCLICAL|COMPETITION|PRICINGPOWER|REGULATION)$")
_FINDING_ID_TRAIT = re.compile(r"step01-finding-(cyclical|competition|pricingPower|regulation)")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class Step01Result:
    """Step-1 output plus the per-trait selection audits (when requested)."""

    output: StepOutput
    trait_audits: Mapping[Trait, SelectionAudit] = field(default_factory=dict)


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #


def finding_reason_code(reason: str, trait: Trait) -> str:
    """Return ``FINDING_<REASON>_<TRAIT>`` (trait upper-cased without separators)."""
    return f"FINDING_{reason}_{trait.value.upper()}"


def trait_from_reason_code(reason_code: str | None) -> Trait | None:
    """Recover the trait encoded at the end of a finding reason code."""
    if not reason_code:
        return None
    match = _TRAIT_SUFFIX.search(reason_code)
    if match is None:
        return None
    return next(t for t in Trait if t.value.upper() == match.group(1))


def trait_from_finding_id(finding_id: str) -> Trait | None:
    """Recover the trait of a ``step01-finding-<trait>[...]`` identifier."""
    match = _FINDING_ID_TRAIT.search(finding_id)
    return Trait(match.group(1)) if match else None


def _percent_label(confidence: float) -> str:
    return f"{math.floor(confidence * 100 + 0.5)}%"


def _industry_evidence_refs(industry: IndustryClassification | None) -> list[EvidenceRef]:
    if industry is None:
        return []
    refs: list[EvidenceRef] = []
    for candidate in industry.evidence:
        if not (candidate.excerpt or candidate.text):
            continue
        quote = candidate.raw_text
        refs.append(
            EvidenceRef(
                source_type=EvidenceSourceType.PDF,
                file_id=PDF_FILE_ID,
                locator=EvidenceLocator(page=candidate.page, line_hint=quote),
                quote=quote,
            )
        )
    return refs[:MAX_STEP_EVIDENCE]


def _selected_evidence_ref(candidate: EvidenceCandidate) -> EvidenceRef:
    section = candidate.section or ""
    heading = candidate.heading or ""
    line_hint = None
    if section or heading:
        line_hint = f"{section} | {heading}" if heading else section
    return EvidenceRef(
        source_type=EvidenceSourceType.PDF,
        file_id=PDF_FILE_ID,
        locator=EvidenceLocator(
            page=candidate.page,
            section=candidate.section,
            heading=candidate.heading,
            line_hint=line_hint,
        ),
        quote=candidate.raw_text,
    )


def _collapse(text: str, limit: int | None = None) -> str:
    collapsed = _WHITESPACE.sub(" ", text).strip()
    if limit is not None and len(collapsed) > limit:
        collapsed = collapsed[: limit - 3] + "..."
    return collapsed


def _summary_cards(
    industry: IndustryClassification | None,
    evidence: Sequence[EvidenceRef],
) -> list[SummaryCard]:
    if industry is None:
        return [SummaryCard(label="산업 분류", value="미확인", note="근거 필요")]
    return [
        SummaryCard(label="산업 분류", value=industry.label, evidence=tuple(evidence)),
        SummaryCard(
            label="확신도",
            value=_percent_label(industry.confidence),
            evidence=tuple(evidence),
        ),
    ]


def _trait_finding(
    trait: Trait,
    candidates: Sequence[EvidenceCandidate],
    default_evidence: Sequence[EvidenceRef],
    *,
    audit: bool,
) -> tuple[Finding | None, SelectionAudit | None]:
    rules = rules_for(trait)
    selection = pick_best_paragraph(trait, candidates, audit=audit)

    if selection.best is not None and selection.score >= MIN_SELECTION_SCORE:
        observation = summarize_deterministic(sanitize_text(selection.best.raw_text))
        text = _collapse(
            f"{OBSERVATION_LABEL}: {observation} "
            f"{EVIDENCE_LABEL}: {EVIDENCE_PLACEHOLDER} "
            f"{IMPLICATION_LABEL}: {rules.implication}",
            MAX_FINDING_LENGTH,
        )
        reason_code = (
            finding_reason_code(selection.reason_code.value, trait)
            if selection.reason_code is not None
            else None
        )
        finding = create_finding(
            f"step01-finding-{trait.value}",
            FindingCategory.RISK,
            Severity.INFO,
            text,
            [_selected_evidence_ref(selection.best)],
            EvidencePolicy.SKIP,
            reason_code=reason_code,
        )
        return finding, selection.audit

    reason = selection.reason_code.value if selection.reason_code else "INSUFFICIENT_EVIDENCE"
    hold_text = _collapse(
        f"{OBSERVATION_LABEL}: {HOLD_PREFIX} - {rules.label} {HOLD_OBSERVATION_SUFFIX} "
        f"{EVIDENCE_LABEL}: {HOLD_EVIDENCE} "
        f"{IMPLICATION_LABEL}: {HOLD_IMPLICATION}"
    )
    hold_evidence = list(default_evidence) or [
        EvidenceRef(source_type=EvidenceSourceType.PDF, file_id=PDF_FILE_ID, quote="")
    ]
    finding = create_finding(
        f"step01-finding-{trait.value}-hold",
        FindingCategory.RISK,
        Severity.WARN,
        hold_text,
        hold_evidence,
        EvidencePolicy.WARN,
        reason_code=finding_reason_code(reason, trait),
    )
    return finding, selection.audit


def _withheld_checkpoints(
    findings: Sequence[Finding],
    industry: IndustryClassification | None,
    default_evidence: Sequence[EvidenceRef],
) -> list[Checkpoint]:
    core = ""
    if industry is not None and industry.core_categories:
        core = industry.core_categories[0]
    templates = CHECKPOINT_TEMPLATES.get(core) or CHECKPOINT_TEMPLATES[DEFAULT_TEMPLATE_KEY]

    checkpoints: list[Checkpoint] = []
    seen: set[Trait] = set()
    for finding in findings:
        trait = trait_from_reason_code(finding.reason_code)
        if trait is None or trait in seen or trait not in templates:
            continue
        seen.add(trait)

        template = templates[trait]
        checkpoint = create_checkpoint(
            f"step01-checkpoint-{trait.value}-{len(seen)}",
            "",
            template.what_to_watch,
            "",
            template.check_location,
            finding.evidence or default_evidence,
            EvidencePolicy.WARN,
            confirm_question=template.confirm_question,
        )
        if checkpoint is not None:
            checkpoints.append(checkpoint)
        if len(checkpoints) >= MAX_CHECKPOINTS:
            break
    return checkpoints


# --------------------------------------------------------------------------- #
# Entry point                                                                 #
# --------------------------------------------------------------------------- #


def run_step01(
    industry: IndustryClassification | None,
    all_evidence: Sequence[EvidenceRef] = (),
    *,
    audit: bool = False,
) -> Step01Result:
    """Build the step-1 output.

    Args:
        industry: Industry classification, if one was produced.
        all_evidence: Bundle-wide evidence, used when the classification
            carries no usable evidence.
        audit: Whether to collect per-trait selection audits.

    Returns:
        The step output and the collected audits.
    """
    default_evidence = _industry_evidence_refs(industry)
    if not default_evidence and all_evidence:
        default_evidence = [all_evidence[0]]

    findings: list[Finding] = []
    if industry is not None and industry.confidence < LOW_CONFIDENCE_THRESHOLD:
        low_confidence = create_finding(
            "step01-low-confidence",
            FindingCategory.RISK,
            Severity.WARN,
            LOW_CONFIDENCE_TEXT,
            default_evidence,
            EvidencePolicy.WARN,
        )
        if low_confidence is not None:
            findings.append(low_confidence)

    candidates = industry.evidence if industry is not None else ()
    audits: dict[Trait, SelectionAudit] = {}
    for trait in Trait:
        finding, trait_audit = _trait_finding(trait, candidates, default_evidence, audit=audit)
        if finding is not None:
            findings.append(finding)
        if trait_audit is not None:
            audits[trait] = trait_audit

    output = StepOutput(
        step=1,
        title=step_title(1),
        summary_cards=tuple(_summary_cards(industry, default_evidence)),
        findings=tuple(findings),
        checkpoints=tuple(_withheld_checkpoints(findings, industry, default_evidence)),
    )
    return Step01Result(output=output, trait_audits=audits)


__all__ = [
    "CHECKPOINT_TEMPLATES",
    "CheckpointTemplate",
    "Step01Result",
    "finding_reason_code",
    "trait_from_reason_code",
    "trait_from_finding_id",
    "run_step01",
]
