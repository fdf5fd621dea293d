# tests/unit/domain/services/test_evidence_selector.py
from __future__ import annotations

import pytest

from dart_insight.domain.enums.evidence import SelectionPool, SelectionReasonCode, Topic, Trait
from dart_insight.domain.services.evidence_rules import MIN_SELECTION_SCORE
from dart_insight.domain.services.evidence_selector import (
    is_accounting_disclosure,
    is_junk_fragment,
    is_relevant_for_trait,
    is_table_like,
    normalize_topic,
    pick_best_paragraph,
    sanitize_text,
    score_evidence,
    split_ko_sentences,
    summarize_deterministic,
)


# --------------------------------------------------------------------------- #
# Filters                                                                     #
# --------------------------------------------------------------------------- #


def test_sanitize_text_strips_urls_markers_and_tags() -> None:
    raw = "[경쟁] 본문 (p.12 사업) https://example.com/a  끝"
    assert sanitize_text(raw) == "본문 끝"
    assert sanitize_text(None) == ""


@pytest.mark.parametrize(
    "text",
    [
        None,
        "목차",
        "시장 동향에 관한 설명",
        # long enough but never ends a sentence
        "당사 주요 제품 시장 현황 및 판매 경로 그리고 향후 사업 계획 관련 세부 항목 정리 "
        "국내 및 해외 시장 구분 제품군별 매출 비중 생산 능력 및 가동 현황 요약 자료",
    ],
)
def test_junk_fragments(text: str | None) -> None:
    assert is_junk_fragment(text)


def test_header_pattern_marks_junk(paragraphs) -> None:
    assert not is_junk_fragment(paragraphs["cyclical"])
    assert is_junk_fragment(paragraphs["cyclical"] + " 자세한 내용은 www.example.co.kr 참조.")


def test_accounting_disclosures_are_detected(paragraphs) -> None:
    assert is_accounting_disclosure(paragraphs["accounting"])
    assert not is_accounting_disclosure(paragraphs["pricingPower"])
    assert not is_accounting_disclosure(None)


def test_table_like_text() -> None:
    assert is_table_like("1,234 | 5,678 | 9,012 | 3,456 | 7,890")
    assert not is_table_like("짧은 문장")


@pytest.mark.parametrize(
    ("label", "topic"),
    [
        ("시장/수요", Topic.MARKET_DEMAND),
        ("사업구조", Topic.BUSINESS_STRUCTURE),
        ("가격/원가", Topic.PRICE_COST),
        ("규제/리스크", Topic.REGULATION_RISK),
        ("생산/공급망", Topic.SUPPLY_CHAIN),
        (None, Topic.OTHER),
        ("재무", Topic.OTHER),
    ],
)
def test_normalize_topic(label: str | None, topic: Topic) -> None:
    assert normalize_topic(label) is topic


def test_split_ko_sentences() -> None:
    assert split_ko_sentences("매출이 증가했다. 이익도 증가함 그리고 끝") == [
        "매출이 증가했다",
        "이익도 증가함",
        "그리고 끝",
    ]
    assert split_ko_sentences("") == []


# --------------------------------------------------------------------------- #
# Relevance                                                                   #
# --------------------------------------------------------------------------- #


def test_each_trait_paragraph_is_relevant_to_its_trait(paragraphs) -> None:
    for trait in Trait:
        assert is_relevant_for_trait(trait, paragraphs[trait.value]), trait


def test_bare_market_word_is_not_cyclical(paragraphs) -> None:
    assert not is_relevant_for_trait(Trait.CYCLICAL, paragraphs["competition"])


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("관세 부과로 수출 비용이 증가할 수 있습니다.", False),
        ("당사는 관련 규제를 모니터링합니다.", False),
        ("당사는 관련 규제 변경에 대응하고 있습니다.", True),
        ("특허 관련 소송이 진행 중입니다.", True),
    ],
)
def test_regulation_requires_anchor_in_context(text: str, expected: bool) -> None:
    assert is_relevant_for_trait(Trait.REGULATION, text) is expected


# --------------------------------------------------------------------------- #
# Scoring and selection                                                       #
# --------------------------------------------------------------------------- #


def test_primary_topic_outscores_other_topic(make_candidate, paragraphs) -> None:
    text = paragraphs["pricingPower"]

    primary = score_evidence(Trait.PRICING_POWER, make_candidate(text, topic=Topic.PRICE_COST))
    other = score_evidence(Trait.PRICING_POWER, make_candidate(text, topic=Topic.OTHER))

    assert primary == 24
    assert other == 14


def test_picks_primary_pool_candidate(trait_candidates) -> None:
    for trait in Trait:
        result = pick_best_paragraph(trait, trait_candidates)

        assert result.best is not None, trait
        assert result.pool is SelectionPool.PRIMARY
        assert result.reason_code is None
        assert result.score >= MIN_SELECTION_SCORE
        assert result.audit is None

    cyclical = pick_best_paragraph(Trait.CYCLICAL, trait_candidates)
    assert cyclical.best is not None
    assert cyclical.best.topic is Topic.MARKET_DEMAND


def test_accounting_only_pool_is_withheld(make_candidate, paragraphs) -> None:
    pool = [make_candidate(paragraphs["accounting"], topic=Topic.PRICE_COST)]

    result = pick_best_paragraph(Trait.PRICING_POWER, pool, audit=True)

    assert result.best is None
    assert result.score == 0
    assert result.reason_code is SelectionReasonCode.EVIDENCE_INSUFFICIENT
    assert result.audit is not None
    assert result.audit.filtered_accounting == 1
    assert result.audit.candidates_final == 0


def test_empty_pool_is_insufficient() -> None:
    result = pick_best_paragraph(Trait.CYCLICAL, [])
    assert result.best is None
    assert result.reason_code is SelectionReasonCode.EVIDENCE_INSUFFICIENT


def test_low_scoring_pool_is_low_quality(make_candidate, paragraphs) -> None:
    pool = [make_candidate(paragraphs["pricingPower"], topic=Topic.OTHER)]

    result = pick_best_paragraph(Trait.PRICING_POWER, pool)

    assert result.best is None
    assert result.score == 14
    assert result.reason_code is SelectionReasonCode.EVIDENCE_LOW_QUALITY


def test_off_topic_winner_is_flagged_topic_mismatch(make_candidate, paragraphs) -> None:
    pool = [make_candidate(paragraphs["pricingPower"], topic=Topic.OTHER, heading="가격 정책")]

    result = pick_best_paragraph(Trait.PRICING_POWER, pool)

    assert result.best is not None
    assert result.pool is SelectionPool.OVERALL
    assert result.reason_code is SelectionReasonCode.TOPIC_MISMATCH
    assert result.score == 32


def test_regulation_audit_counts_and_anchors(trait_candidates, make_candidate, paragraphs) -> None:
    pool = [*trait_candidates, make_candidate(paragraphs["accounting"], page=20)]

    result = pick_best_paragraph(Trait.REGULATION, pool, audit=True)

    assert result.best is not None
    assert result.best.topic is Topic.REGULATION_RISK
    audit = result.audit
    assert audit is not None
    assert audit.input_total == 5
    assert audit.filtered_junk == 0
    assert audit.filtered_accounting == 1
    assert audit.filtered_irrelevant == 3
    assert audit.candidates_before_low_score == 1
    assert audit.candidates_final == 1
    assert audit.filtered_low_score == 0
    assert audit.pool_matched_anchors == ("규제", "법규", "준수")
    assert audit.best_summary is not None
    assert audit.best_summary.page == 13
    assert audit.best_summary.matched_anchors == ("규제", "법규", "준수")
    assert audit.best_summary.text_preview.startswith("각국의 환경 규제가")


def test_audit_does_not_change_selection(trait_candidates) -> None:
    plain = pick_best_paragraph(Trait.COMPETITION, trait_candidates)
    audited = pick_best_paragraph(Trait.COMPETITION, trait_candidates, audit=True)

    assert plain.best == audited.best
    assert plain.score == audited.score


def test_summarize_deterministic_keeps_leading_sentence(paragraphs) -> None:
    summary = summarize_deterministic(paragraphs["cyclical"])
    assert summary == "가전 제품의 수요는 소비심리와 금리, 주택 경기 등 거시 경제 변수에 크게 영향을 받습니다."
    assert summarize_deterministic("그리고 당사는 주요 제품의 판가를 단계적으로 인상하였습니다.") == (
        "당사는 주요 제품의 판가를 단계적으로 인상하였습니다."
    )
