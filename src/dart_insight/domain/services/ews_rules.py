# src/dart_insight/domain/services/ews_rules.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Early-warning checkpoint rules.

Purpose:
    Derive next-quarter checkpoints from quantitative signals in the two
    latest statements and from keywords in PDF evidence quotes.

Layer:
    domain/services

Notes:
    - ``statements`` are ordered latest first.
    - A rule fires only with evidence; every checkpoint is built under the
      ``skip`` policy, so a rule without citations yields nothing.
    - A zero comparison denominator disables the rule for that pair.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.financial_statement import BundleFinancialStatement
from dart_insight.domain.entities.report import Checkpoint
from dart_insight.domain.enums.evidence import EvidenceSourceType
from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.enums.report import EvidencePolicy
from dart_insight.domain.services.evidence_assertions import create_checkpoint
from dart_insight.domain.services.metric_math import (
    DECIMAL_ZERO,
    MetricComputationError,
    percent,
)
from dart_insight.domain.services.money_format import format_fixed

FCF_MARGIN_DROP_PP = Decimal("5")
CAPEX_SPIKE_PCT = Decimal("50")
INVENTORY_EXCESS_PP = Decimal("10")
INVENTORY_MIN_GROWTH_PCT = Decimal("20")
DSO_INCREASE_DAYS = Decimal("10")
DAYS_PER_YEAR = Decimal("365")

QUALITY_KEYWORDS: tuple[str, ...] = (
    "구조조정",
    "리스트럭처링",
    "restructuring",
    "손상차손",
    "손상",
    "impairment",
    "충당부채",
    "충당",
    "provision",
    "회계정책 변경",
    "회계처리 변경",
    "accounting policy change",
    "일회성 비용",
    "특별 손실",
    "extraordinary",
)

GUIDANCE_KEYWORDS: tuple[str, ...] = (
    "outlook",
    "guidance",
    "전망",
    "예상",
    "불확실",
    "uncertainty",
    "예측",
    "forecast",
    "기대",
    "expectation",
)


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #


def dedupe_by_tag(refs: Iterable[EvidenceRef]) -> list[EvidenceRef]:
    """Keep the first reference per ``(file_id, locator.tag)``."""
    seen: set[tuple[str, str | None]] = set()
    unique: list[EvidenceRef] = []
    for ref in refs:
        key = (ref.file_id, ref.locator.tag)
        if key in seen:
            continue
        seen.add(key)
        unique.append(ref)
    return unique


def dedupe_by_quote(refs: Iterable[EvidenceRef]) -> list[EvidenceRef]:
    """Keep the first reference per ``(file_id, page, quote)``."""
    seen: set[tuple[str, int | None, str | None]] = set()
    unique: list[EvidenceRef] = []
    for ref in refs:
        key = (ref.file_id, ref.locator.page, ref.quote)
        if key in seen:
            continue
        seen.add(key)
        unique.append(ref)
    return unique


def _change_pct(current: Decimal, previous: Decimal) -> Decimal | None:
    try:
        return percent(current - previous, abs(previous))
    except MetricComputationError:
        return None


def _pdf_quotes_matching(
    all_evidence: Sequence[EvidenceRef],
    keywords: Sequence[str],
) -> list[tuple[EvidenceRef, str]]:
    matched: list[tuple[EvidenceRef, str]] = []
    for ref in all_evidence:
        if ref.source_type is not EvidenceSourceType.PDF or not ref.quote:
            continue
        quote = ref.quote.lower()
        keyword = next((k for k in keywords if k.lower() in quote), None)
        if keyword is not None:
            matched.append((ref, keyword))
    return matched


# --------------------------------------------------------------------------- #
# Rules                                                                       #
# --------------------------------------------------------------------------- #


def check_fcf_pressure(statements: Sequence[BundleFinancialStatement]) -> Checkpoint | None:
    """Flag negative FCF, or an FCF margin that fell by 5pp or more."""
    if not statements:
        return None

    latest = statements[0]
    fcf = latest.item(LineItem.FREE_CASH_FLOW)
    revenue = latest.value(LineItem.REVENUE)

    if fcf is not None and fcf.value is not None and fcf.value < 0 and fcf.evidence:
        return create_checkpoint(
            "ews-fcf-negative",
            "현금창출력 점검",
            "FCF가 음수로 전환되었습니다. 영업현금흐름과 CAPEX 구조를 확인하세요.",
            "FCF 음수는 현금 창출 능력 저하 신호로, 지속되면 자금 조달 압박으로 이어질 수 있습니다.",
            "다음 분기 FCF 전환 여부 및 영업현금흐름 회복 여부 확인",
            fcf.evidence,
            EvidencePolicy.SKIP,
        )

    if len(statements) < 2 or fcf is None or fcf.value is None or revenue is None:
        return None

    previous = statements[1]
    prev_fcf = previous.item(LineItem.FREE_CASH_FLOW)
    prev_revenue = previous.value(LineItem.REVENUE)
    if prev_fcf is None or prev_fcf.value is None or prev_revenue is None:
        return None

    try:
        current_margin = percent(fcf.value, revenue)
        previous_margin = percent(prev_fcf.value, prev_revenue)
    except MetricComputationError:
        return None

    if previous_margin - current_margin < FCF_MARGIN_DROP_PP or not fcf.evidence:
        return None

    evidence = dedupe_by_tag([*fcf.evidence, *prev_fcf.evidence])
    return create_checkpoint(
        "ews-fcf-margin-drop",
        "현금창출력 점검",
        f"FCF 마진이 {format_fixed(previous_margin, 1)}%에서 "
        f"{format_fixed(current_margin, 1)}%로 급락했습니다.",
        "FCF 마진 급락은 현금 창출 효율성 저하를 의미하며, 영업 모델의 지속 가능성에 영향을 줄 수 있습니다.",
        "다음 분기 FCF 마진 회복 여부 및 원인 분석",
        evidence,
        EvidencePolicy.SKIP,
    )


def check_capex_spike(statements: Sequence[BundleFinancialStatement]) -> Checkpoint | None:
    """Flag CAPEX up 50% or more while OCF is flat or falling."""
    if len(statements) < 2:
        return None

    latest, previous = statements[0], statements[1]
    capex = latest.value(LineItem.CAPITAL_EXPENDITURE)
    ocf = latest.value(LineItem.OPERATING_CASH_FLOW)
    prev_capex = previous.value(LineItem.CAPITAL_EXPENDITURE)
    prev_ocf = previous.value(LineItem.OPERATING_CASH_FLOW)
    if capex is None or ocf is None or prev_capex is None or prev_ocf is None:
        return None

    capex_increase = _change_pct(capex, prev_capex)
    ocf_change = _change_pct(ocf, prev_ocf)
    if capex_increase is None or ocf_change is None:
        return None
    if capex_increase < CAPEX_SPIKE_PCT or ocf_change > 0:
        return None

    evidence = dedupe_by_tag(
        [
            *latest.evidence(LineItem.CAPITAL_EXPENDITURE),
            *latest.evidence(LineItem.OPERATING_CASH_FLOW),
            *previous.evidence(LineItem.CAPITAL_EXPENDITURE),
            *previous.evidence(LineItem.OPERATING_CASH_FLOW),
        ]
    )
    ocf_word = "정체" if ocf_change >= 0 else "감소"
    return create_checkpoint(
        "ews-capex-spike",
        "투자 vs 회수 구조 점검",
        f"CAPEX가 {format_fixed(capex_increase, 0)}% 증가했으나 OCF는 {ocf_word}했습니다.",
        "투자 확대에도 불구하고 현금 창출이 둔화되면 투자 회수 기간이 길어질 수 있습니다.",
        "다음 분기 OCF 회복 여부 및 신규 투자 수익성 확인",
        evidence,
        EvidencePolicy.SKIP,
    )


def check_inventory_build(statements: Sequence[BundleFinancialStatement]) -> Checkpoint | None:
    """Flag inventory growing faster than revenue by more than 10pp and over 20%."""
    if len(statements) < 2:
        return None

    latest, previous = statements[0], statements[1]
    inventory = latest.value(LineItem.INVENTORY)
    prev_inventory = previous.value(LineItem.INVENTORY)
    revenue = latest.value(LineItem.REVENUE)
    prev_revenue = previous.value(LineItem.REVENUE)
    if inventory is None or prev_inventory is None or revenue is None or prev_revenue is None:
        return None

    inventory_increase = _change_pct(inventory, prev_inventory)
    revenue_change = _change_pct(revenue, prev_revenue)
    if inventory_increase is None or revenue_change is None:
        return None
    if not (
        inventory_increase > revenue_change + INVENTORY_EXCESS_PP
        and inventory_increase > INVENTORY_MIN_GROWTH_PCT
    ):
        return None

    evidence = dedupe_by_tag(
        [
            *latest.evidence(LineItem.INVENTORY),
            *previous.evidence(LineItem.INVENTORY),
            *latest.evidence(LineItem.REVENUE),
        ]
    )
    return create_checkpoint(
        "ews-inventory-increase",
        "수요/채널 리스크",
        f"재고가 {format_fixed(inventory_increase, 0)}% 증가했으나 "
        f"매출 증가율({format_fixed(revenue_change, 0)}%)보다 빠릅니다.",
        "재고 회전율 악화는 수요 둔화나 채널 문제를 시사할 수 있습니다.",
        "다음 분기 재고 회전율 개선 여부 및 판매 채널 점검",
        evidence,
        EvidencePolicy.SKIP,
    )


def _dso(receivables: Decimal, revenue: Decimal) -> Decimal:
    if revenue <= 0:
        return DECIMAL_ZERO
    return receivables / revenue * DAYS_PER_YEAR


def check_dso_increase(statements: Sequence[BundleFinancialStatement]) -> Checkpoint | None:
    """Flag days-sales-outstanding up by 10 days or more."""
    if len(statements) < 2:
        return None

    latest, previous = statements[0], statements[1]
    receivables = latest.value(LineItem.ACCOUNTS_RECEIVABLE)
    prev_receivables = previous.value(LineItem.ACCOUNTS_RECEIVABLE)
    revenue = latest.value(LineItem.REVENUE)
    prev_revenue = previous.value(LineItem.REVENUE)
    if receivables is None or prev_receivables is None or revenue is None or prev_revenue is None:
        return None

    current_dso = _dso(receivables, revenue)
    previous_dso = _dso(prev_receivables, prev_revenue)
    increase = current_dso - previous_dso
    if increase < DSO_INCREASE_DAYS:
        return None

    evidence = dedupe_by_tag(
        [
            *latest.evidence(LineItem.ACCOUNTS_RECEIVABLE),
            *previous.evidence(LineItem.ACCOUNTS_RECEIVABLE),
            *latest.evidence(LineItem.REVENUE),
        ]
    )
    return create_checkpoint(
        "ews-dso-increase",
        "수요/채널 리스크",
        f"DSO가 {format_fixed(previous_dso, 0)}일에서 {format_fixed(current_dso, 0)}일로 "
        f"{format_fixed(increase, 0)}일 증가했습니다.",
        "DSO 상승은 매출채권 회수 지연을 의미하며, 현금흐름에 부정적 영향을 줄 수 있습니다.",
        "다음 분기 매출채권 회수 개선 여부 및 고객 신용도 점검",
        evidence,
        EvidencePolicy.SKIP,
    )


def check_working_capital(statements: Sequence[BundleFinancialStatement]) -> list[Checkpoint]:
    """Run the inventory and DSO rules."""
    found = (check_inventory_build(statements), check_dso_increase(statements))
    return [c for c in found if c is not None]


def check_quality_warnings(all_evidence: Sequence[EvidenceRef]) -> list[Checkpoint]:
    """One checkpoint per quality keyword found in PDF quotes.

    Each quote is grouped under the first keyword of the list it contains.
    """
    groups: dict[str, list[EvidenceRef]] = {}
    for ref, keyword in _pdf_quotes_matching(all_evidence, QUALITY_KEYWORDS):
        groups.setdefault(keyword, []).append(ref)

    checkpoints: list[Checkpoint] = []
    for keyword, refs in groups.items():
        checkpoint = create_checkpoint(
            f"ews-quality-{'-'.join(keyword.split())}",
            "정상화 필요",
            f'"{keyword}" 관련 내용이 보고서에서 발견되었습니다.',
            "일회성 비용이나 회계정책 변경은 수익 품질에 영향을 줄 수 있으며, 정상화 여부를 확인해야 합니다.",
            "다음 분기 해당 항목의 정상화 여부 및 재발 방지 대책 확인",
            dedupe_by_quote(refs),
            EvidencePolicy.SKIP,
        )
        if checkpoint is not None:
            checkpoints.append(checkpoint)
    return checkpoints


def check_guidance(all_evidence: Sequence[EvidenceRef]) -> list[Checkpoint]:
    """A single checkpoint citing every PDF quote that mentions outlook or guidance."""
    refs = dedupe_by_quote(ref for ref, _ in _pdf_quotes_matching(all_evidence, GUIDANCE_KEYWORDS))
    checkpoint = create_checkpoint(
        "ews-guidance",
        "다음 분기 확인 포인트",
        "경영진의 전망/가이던스 관련 언급이 발견되었습니다.",
        "경영진의 전망은 향후 실적 방향성을 파악하는 중요한 단서입니다.",
        "다음 분기 실적이 전망과 일치하는지 확인",
        refs,
        EvidencePolicy.SKIP,
    )
    return [checkpoint] if checkpoint is not None else []


def generate_ews_checkpoints(
    statements: Sequence[BundleFinancialStatement],
    all_evidence: Sequence[EvidenceRef],
) -> list[Checkpoint]:
    """Run every rule in order: FCF, CAPEX, working capital, quality, guidance."""
    checkpoints: list[Checkpoint] = []
    for single in (check_fcf_pressure(statements), check_capex_spike(statements)):
        if single is not None:
            checkpoints.append(single)
    checkpoints.extend(check_working_capital(statements))
    checkpoints.extend(check_quality_warnings(all_evidence))
    checkpoints.extend(check_guidance(all_evidence))
    return checkpoints


__all__ = [
    "QUALITY_KEYWORDS",
    "GUIDANCE_KEYWORDS",
    "dedupe_by_tag",
    "dedupe_by_quote",
    "check_fcf_pressure",
    "check_capex_spike",
    "check_inventory_build",
    "check_dso_increase",
    "check_working_capital",
    "check_quality_warnings",
    "check_guidance",
    "generate_ews_checkpoints",
]
