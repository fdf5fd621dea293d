# src/dart_insight/domain/services/evidence_rules.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Per-trait evidence rule tables.

Purpose:
    Hold the explicit, per-trait configuration consumed by the evidence
    selector and the step-1 renderers: display label, implication sentence,
    topic priority, relevance words and phrases, weighted section-alignment
    and heading-boost rules, and source-display suppression keywords.
    Trait-independent tables (regulation anchors, accounting vocabulary,
    junk patterns) live here as module constants.

Layer:
    domain/services

Notes:
    - Weighted rules are evaluated in declaration order; the first rule
      whose keywords hit decides the weight.
    - All keyword matching is lowercase substring matching, since word
      boundaries do not work for Korean text.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from dart_insight.domain.enums.evidence import Topic, Trait

# --------------------------------------------------------------------------- #
# Rule records                                                                #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class WeightedKeywordRule:
    """A keyword group worth ``weight`` points when any keyword is present.

    Attributes:
        keywords: Lowercase substrings to look for.
        weight: Points awarded (may be negative).
    """

    keywords: tuple[str, ...]
    weight: int

    def matches(self, text: str) -> bool:
        """Return True when any keyword occurs in ``text``."""
        return any(keyword in text for keyword in self.keywords)


@dataclass(frozen=True, slots=True)
class TraitRuleSet:
    """Complete rule record for one industry trait.

    Attributes:
        trait: The trait this record configures.
        label: Korean display label (e.g. ``경기민감도``).
        implication: Implication sentence rendered with selected evidence.
        topic_priority: Topics that form the primary candidate pool, best first.
        required_words: Single-word relevance signals.
        required_phrases: Multi-word relevance signals.
        bare_word_rejects: Words that reject a paragraph unless a required
            phrase is also present.
        section_alignment: Section/heading alignment rules used in scoring.
        heading_boost: Section/heading boost rules added to the final score.
        display_suppression: Section/heading keywords hidden when the
            evidence is listed under this trait.
    """

    trait: Trait
    label: str
    implication: str
    topic_priority: tuple[Topic, ...]
    required_words: tuple[str, ...]
    required_phrases: tuple[str, ...] = ()
    bare_word_rejects: tuple[str, ...] = ()
    section_alignment: tuple[WeightedKeywordRule, ...] = ()
    heading_boost: tuple[WeightedKeywordRule, ...] = ()
    display_suppression: tuple[str, ...] = ()


def first_rule_weight(rules: Sequence[WeightedKeywordRule], text: str) -> int:
    """Return the weight of the first rule matching ``text`` (0 when none)."""
    if not text:
        return 0
    for rule in rules:
        if rule.matches(text):
            return rule.weight
    return 0


# --------------------------------------------------------------------------- #
# Trait-independent tables                                                    #
# --------------------------------------------------------------------------- #

REGULATION_CORE_ANCHORS: tuple[str, ...] = (
    "규제",
    "법규",
    "규정",
    "인허가",
    "허가",
    "제재",
    "리콜",
    "소송",
    "공정거래",
    "개인정보",
    "보안",
    "컴플라이언스",
    "준수",
    "인증",
)

# 관세 never qualifies a paragraph on its own.
REGULATION_AUX_ANCHORS: tuple[str, ...] = ("관세",)

REGULATION_SELF_SUFFICIENT_ANCHORS: tuple[str, ...] = (
    "제재",
    "리콜",
    "소송",
    "과징금",
    "벌금",
    "공정거래",
    "개인정보",
    "보안",
    "인허가",
    "허가",
    "컴플라이언스",
)

REGULATION_CONTEXT_TERMS: tuple[str, ...] = (
    "강화",
    "완화",
    "변경",
    "개정",
    "도입",
    "시행",
    "위반",
    "조사",
    "점검",
    "비용",
    "부과",
    "과징금",
    "벌금",
    "제재",
    "리콜",
    "소송",
    "인허가",
    "허가",
    "관세율",
    "관세",
)

ACCOUNTING_KEYWORDS: tuple[str, ...] = (
    "기업회계기준서",
    "ifrs",
    "재무제표",
    "주석",
    "공시",
    "금융상품",
    "제1107호",
    "제1109호",
    "회계정책",
    "회계기준",
    "공정가치",
    "손상",
    "리스부채",
    "파생상품",
    "측정",
    "인식",
)

JUNK_HEADER_PATTERN = re.compile(r"(http|www\.|darts?\.fss\.or\.kr|목차|페이지|page|표\s*\d|그림\s*\d)", re.IGNORECASE)
SENTENCE_ENDING_PATTERN = re.compile(r"[다니습함임][.?!]|\.|\?|!")

MIN_SELECTION_SCORE = 20
JUNK_MIN_LENGTH = 80
JUNK_UNTERMINATED_MIN_LENGTH = 160
JUNK_MIN_HANGUL = 20

# --------------------------------------------------------------------------- #
# Trait records                                                               #
# --------------------------------------------------------------------------- #

CYCLICAL_RULES = TraitRuleSet(
    trait=Trait.CYCLICAL,
    label="경기민감도",
    implication="매크로(경기·금리) 변화에 따라 수요 변동 가능성이 높아 경기 민감도가 높을 가능성이 큼",
    topic_priority=(Topic.MARKET_DEMAND, Topic.BUSINESS_STRUCTURE),
    required_words=(
        "경기",
        "거시",
        "매크로",
        "금리",
        "소비",
        "수요",
        "주택",
        "판매",
        "출하",
        "재고",
        "구매",
        "가처분",
        "침체",
        "회복",
        "수주",
        "발주",
        "주문",
        "가동률",
        "프로모션",
        "할인",
        "업황",
        "경영환경",
        "소비심리",
        "구매력",
        "경기변동",
        "경기둔화",
        "경기회복",
        "수요둔화",
        "수요부진",
        "수요회복",
        "수요감소",
        "수요증가",
        "교체수요",
        "내구재",
        "전방산업",
        "주택경기",
        "실물경제",
    ),
    required_phrases=(
        "시장 환경",
        "경영 환경",
        "거시 환경",
        "금리 변동",
        "환율 변동",
        "소비 둔화",
        "수요 둔화",
        "수요 부진",
        "수요 회복",
        "구매력 약화",
        "주택 경기",
    ),
    bare_word_rejects=("시장",),
    section_alignment=(
        WeightedKeywordRule(("시장", "수요", "경기", "거시", "산업", "판매", "주요제품", "전방"), 8),
        WeightedKeywordRule(("경쟁", "시장점유율", "경쟁구도"), -10),
    ),
    heading_boost=(
        WeightedKeywordRule(("시장", "수요", "전망", "업황", "경영환경", "위험", "리스크"), 10),
        WeightedKeywordRule(("주요 제품", "제품", "r&d", "연구", "디자인", "브랜드"), -8),
    ),
    display_suppression=("경쟁",),
)

COMPETITION_RULES = TraitRuleSet(
    trait=Trait.COMPETITION,
    label="경쟁강도",
    implication="경쟁 강도가 높고 가격·점유율 압박 가능성이 있어 경쟁 강도가 높을 가능성이 큼",
    topic_priority=(Topic.COMPETITION, Topic.MARKET_DEMAND),
    required_words=(
        "경쟁",
        "경쟁사",
        "업체",
        "점유율",
        "시장점유율",
        "m/s",
        "ms",
        "경쟁구도",
        "가격경쟁",
        "진입",
        "대체",
        "라인업",
    ),
    section_alignment=(
        WeightedKeywordRule(("경쟁", "시장점유율", "경쟁구도", "업계", "경쟁사"), 10),
        WeightedKeywordRule(("환경", "규제", "준법"), -6),
    ),
    heading_boost=(WeightedKeywordRule(("경쟁", "시장", "점유율", "m/s", "ms", "경쟁구도"), 8),),
    display_suppression=("환경", "규제", "준법"),
)

# 마진, 원가, 전가 are supporting signals only and are not relevance words.
PRICING_POWER_RULES = TraitRuleSet(
    trait=Trait.PRICING_POWER,
    label="가격결정력",
    implication="판가 방어 및 원가 전가 여부가 마진 핵심 변수로 가격결정력이 핵심 변수로 작용할 가능성이 큼",
    topic_priority=(Topic.PRICE_COST, Topic.COMPETITION, Topic.BUSINESS_STRUCTURE),
    required_words=(
        "가격",
        "판가",
        "asp",
        "단가",
        "요금",
        "수수료",
        "가격인상",
        "인상",
        "가격인하",
        "인하",
        "할인",
        "프로모션",
    ),
    section_alignment=(
        WeightedKeywordRule(("가격", "판가", "asp", "마진", "원가", "단가", "프리미엄"), 10),
        WeightedKeywordRule(("환경", "규제"), -6),
    ),
    heading_boost=(
        WeightedKeywordRule(("가격", "판가", "asp", "단가", "요금", "수수료", "마진", "원가"), 8),
    ),
    display_suppression=("환경", "규제"),
)

REGULATION_RULES = TraitRuleSet(
    trait=Trait.REGULATION,
    label="규제강도",
    implication="규제 변화가 비용·판매 조건에 영향을 줄 가능성이 있어 규제 민감도가 높을 가능성이 큼",
    topic_priority=(Topic.REGULATION_RISK,),
    required_words=REGULATION_CORE_ANCHORS,
    section_alignment=(
        WeightedKeywordRule(("환경", "규제", "준법", "인허가", "공정", "품질", "안전", "esg"), 10),
        WeightedKeywordRule(("가격", "asp", "판가"), -6),
    ),
    heading_boost=(
        WeightedKeywordRule(
            ("위험", "리스크", "환경", "규제", "인증", "준법", "컴플라이언스", "법규"), 12
        ),
        WeightedKeywordRule(("주요 제품", "제품"), -6),
    ),
    display_suppression=("가격", "asp", "판가"),
)

TRAIT_RULES: Mapping[Trait, TraitRuleSet] = {
    Trait.CYCLICAL: CYCLICAL_RULES,
    Trait.COMPETITION: COMPETITION_RULES,
    Trait.PRICING_POWER: PRICING_POWER_RULES,
    Trait.REGULATION: REGULATION_RULES,
}


def rules_for(trait: Trait) -> TraitRuleSet:
    """Return the rule record of ``trait``."""
    return TRAIT_RULES[trait]


__all__ = [
    "WeightedKeywordRule",
    "TraitRuleSet",
    "first_rule_weight",
    "REGULATION_CORE_ANCHORS",
    "REGULATION_AUX_ANCHORS",
    "REGULATION_SELF_SUFFICIENT_ANCHORS",
    "REGULATION_CONTEXT_TERMS",
    "ACCOUNTING_KEYWORDS",
    "JUNK_HEADER_PATTERN",
    "SENTENCE_ENDING_PATTERN",
    "MIN_SELECTION_SCORE",
    "JUNK_MIN_LENGTH",
    "JUNK_UNTERMINATED_MIN_LENGTH",
    "JUNK_MIN_HANGUL",
    "TRAIT_RULES",
    "rules_for",
]
