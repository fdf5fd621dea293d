# src/dart_insight/domain/services/industry_classifier.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Deterministic industry classification.

Purpose:
    Classify a company into an industry from PDF business-section text by
    weighted keyword scoring, or directly from an industry metadata key.

Layer:
    domain/services

Notes:
    - Same input, same output: scoring is order-independent and sorting is
      stable.
    - Keyword hits on business-description pages count double.
    - Confidence below 0.5 yields ``산업 미확인``; the confidence and the
      evidence are still reported.
    - Manufacturing is refined into one core and up to three adjacent
      sub-categories.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from dart_insight.domain.entities.evidence import EvidenceCandidate
from dart_insight.domain.entities.industry import UNKNOWN_INDUSTRY_LABEL, IndustryClassification
from dart_insight.domain.enums.evidence import IndustryEvidenceSource, Topic
from dart_insight.domain.enums.report import IndustryType
from dart_insight.domain.services.pdf_evidence_extractor import extract_pdf_evidence

INDUSTRY_KEYWORDS: Mapping[IndustryType, tuple[tuple[str, float], ...]] = {
    IndustryType.MANUFACTURING: (
        ("반도체", 1.0),
        ("메모리", 1.0),
        ("DRAM", 1.0),
        ("NAND", 1.0),
        ("HBM", 1.0),
        ("파운드리", 1.0),
        ("스마트폰", 1.0),
        ("모바일", 1.0),
        ("디스플레이", 1.0),
        ("OLED", 1.0),
        ("가전", 1.0),
        ("전자제품", 1.0),
        ("TV", 1.0),
        ("냉장고", 1.0),
        ("세탁기", 1.0),
        ("에어컨", 1.0),
        ("생활가전", 1.0),
        ("제조", 0.5),
        ("제조업", 0.5),
        ("제조사", 0.5),
    ),
    IndustryType.IT: (
        ("소프트웨어", 1.0),
        ("플랫폼", 0.8),
        ("클라우드", 1.0),
        ("IT서비스", 1.0),
        ("정보통신", 0.8),
        ("정보기술", 0.8),
    ),
    IndustryType.FINANCE: (
        ("은행", 1.0),
        ("금융", 1.0),
        ("보험", 1.0),
        ("증권", 1.0),
        ("카드", 0.8),
        ("리스", 0.8),
    ),
    IndustryType.BIO: (
        ("바이오", 1.0),
        ("제약", 1.0),
        ("의약", 1.0),
        ("생명과학", 1.0),
        ("백신", 1.0),
        ("의료기기", 0.8),
    ),
    IndustryType.RETAIL: (
        ("유통", 1.0),
        ("소매", 1.0),
        ("백화점", 1.0),
        ("마트", 1.0),
        ("편의점", 1.0),
        ("온라인몰", 0.8),
    ),
    IndustryType.ENERGY: (
        ("에너지", 1.0),
        ("전력", 1.0),
        ("가스", 1.0),
        ("석유", 1.0),
        ("정유", 1.0),
        ("화학", 0.8),
    ),
    IndustryType.CONSTRUCTION: (
        ("건설", 1.0),
        ("건축", 0.8),
        ("토목", 0.8),
        ("인프라", 0.8),
        ("부동산개발", 0.8),
    ),
    IndustryType.SERVICE: (
        ("서비스", 0.5),
        ("운송", 0.8),
        ("물류", 0.8),
        ("여행", 0.8),
        ("호텔", 0.8),
    ),
    IndustryType.OTHER: (),
}

INDUSTRY_LABELS: Mapping[IndustryType, str] = {
    IndustryType.MANUFACTURING: "제조업",
    IndustryType.IT: "IT/소프트웨어",
    IndustryType.FINANCE: "금융",
    IndustryType.BIO: "바이오/제약",
    IndustryType.RETAIL: "유통/소매",
    IndustryType.ENERGY: "에너지/화학",
    IndustryType.CONSTRUCTION: "건설",
    IndustryType.SERVICE: "서비스",
    IndustryType.OTHER: "기타",
}

MANUFACTURING_SUBCATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("반도체/메모리", ("반도체", "메모리", "DRAM", "NAND", "HBM", "파운드리")),
    ("모바일", ("스마트폰", "모바일")),
    ("디스플레이", ("디스플레이", "OLED")),
    ("가전/전자제품", ("가전", "전자제품", "TV", "냉장고", "세탁기", "에어컨", "생활가전")),
)

LOW_SIGNAL_CORE_CATEGORY = "전자제품"
INDUSTRY_LOW_SIGNAL = "INDUSTRY_LOW_SIGNAL"
UNKNOWN_CONFIDENCE_THRESHOLD = 0.5
_SUBCATEGORY_MIN_SCORE = 1.0
_ADJACENT_RATIO = 0.3
_MAX_ADJACENT = 3


@dataclass(frozen=True, slots=True)
class _KeywordHit:
    keyword: str
    score: float


@dataclass(frozen=True, slots=True)
class _IndustryScore:
    industry: IndustryType
    score: float
    hits: tuple[_KeywordHit, ...]


# --------------------------------------------------------------------------- #
# Scoring                                                                     #
# --------------------------------------------------------------------------- #


def _page_spans(pdf_text: str, page_map: Mapping[int, str]) -> list[tuple[int, int, int]]:
    spans: list[tuple[int, int, int]] = []
    for page, page_text in page_map.items():
        start = pdf_text.find(page_text) if page_text else -1
        if start != -1:
            spans.append((page, start, start + len(page_text)))
    return spans


def _score_industries(
    pdf_text: str,
    page_map: Mapping[int, str],
    business_pages: Sequence[int],
) -> list[_IndustryScore]:
    lowered = pdf_text.lower()
    business = set(business_pages)
    spans = _page_spans(pdf_text, page_map) if business else []

    def in_business_page(index: int) -> bool:
        for page, start, end in spans:
            if start <= index < end:
                return page in business
        return False

    scores: list[_IndustryScore] = []
    for industry, keywords in INDUSTRY_KEYWORDS.items():
        total = 0.0
        hits: dict[str, _KeywordHit] = {}
        for keyword, weight in keywords:
            needle = keyword.lower()
            index = lowered.find(needle)
            while index != -1:
                adjusted = weight * 2 if in_business_page(index) else weight
                total += adjusted
                hits.setdefault(keyword, _KeywordHit(keyword, adjusted))
                index = lowered.find(needle, index + 1)
        if total > 0:
            scores.append(_IndustryScore(industry, total, tuple(hits.values())))

    return sorted(scores, key=lambda s: -s.score)


def _base_confidence(top: float, second: float) -> float:
    if top >= 3.0:
        confidence = 0.9
    elif top >= 2.0:
        confidence = 0.7
    elif top >= 1.0:
        confidence = 0.5
    else:
        confidence = 0.3
    if second > 0 and top - second < 1.0:
        confidence = max(0.3, confidence - 0.2)
    return confidence


def _classification_evidence(candidates: Sequence[EvidenceCandidate]) -> list[EvidenceCandidate]:
    return [
        replace(candidate, excerpt=f"{candidate.title} {candidate.excerpt}")
        for candidate in candidates
    ]


def _default_evidence(top: _IndustryScore) -> EvidenceCandidate:
    keywords = ", ".join(hit.keyword for hit in top.hits[:3])
    message = f'PDF 텍스트에서 "{keywords}" 키워드가 발견되었습니다.'
    return EvidenceCandidate(
        id="step01-excerpt-default",
        topic=Topic.OTHER,
        title="[기타]",
        text=message,
        excerpt=f"[기타] {message}",
        source=IndustryEvidenceSource.PDF,
    )


def _manufacturing_categories(
    top: _IndustryScore,
) -> tuple[tuple[str, ...], tuple[str, ...], str | None]:
    ranked: list[tuple[str, float]] = []
    for category, keywords in MANUFACTURING_SUBCATEGORIES:
        score = sum(hit.score for hit in top.hits if hit.keyword in keywords)
        if score > 0:
            ranked.append((category, score))
    ranked.sort(key=lambda item: -item[1])

    top_score = ranked[0][1] if ranked else 0.0
    if top_score < _SUBCATEGORY_MIN_SCORE:
        return (LOW_SIGNAL_CORE_CATEGORY,), (), INDUSTRY_LOW_SIGNAL

    threshold = _ADJACENT_RATIO * top_score
    adjacent = [category for category, score in ranked[1:5] if score >= threshold]
    return (ranked[0][0],), tuple(adjacent[:_MAX_ADJACENT]), None


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def classify_industry_from_pdf(
    pdf_text: str,
    *,
    page_map: Mapping[int, str] | None = None,
    business_pages: Sequence[int] = (),
    section_map: Mapping[int, str] | None = None,
    heading_map: Mapping[int, str] | None = None,
) -> IndustryClassification:
    """Classify an industry from PDF business-section text.

    Args:
        pdf_text: Business-section text to score.
        page_map: Page map used to locate keyword hits and extract evidence.
        business_pages: Pages whose keyword hits count double.
        section_map: Page number to section title, for evidence extraction.
        heading_map: Page number to heading, for evidence extraction.

    Returns:
        The classification. Missing text or keywords yield ``산업 미확인``
        with confidence 0.0.
    """
    if not pdf_text or not pdf_text.strip():
        return IndustryClassification(
            label=UNKNOWN_INDUSTRY_LABEL,
            confidence=0.0,
            evidence=(EvidenceCandidate(excerpt="PDF 텍스트가 없습니다."),),
        )

    pages = page_map or {}
    scores = _score_industries(pdf_text, pages, business_pages)
    if not scores:
        return IndustryClassification(
            label=UNKNOWN_INDUSTRY_LABEL,
            confidence=0.0,
            evidence=(
                EvidenceCandidate(excerpt="PDF 텍스트에서 산업 관련 키워드를 찾을 수 없습니다."),
            ),
        )

    top = scores[0]
    second = scores[1].score if len(scores) > 1 else 0.0
    confidence = _base_confidence(top.score, second)

    evidence: list[EvidenceCandidate] = []
    if pages:
        evidence = _classification_evidence(
            extract_pdf_evidence(
                pages,
                section_map=section_map,
                heading_map=heading_map,
                business_pages=business_pages,
            )
        )
        topic_count = len({candidate.topic for candidate in evidence})
        if topic_count >= 3:
            confidence = min(1.0, confidence + 0.1)
        elif topic_count >= 2:
            confidence = min(1.0, confidence + 0.05)

    if not evidence:
        evidence = [_default_evidence(top)]

    if confidence < UNKNOWN_CONFIDENCE_THRESHOLD:
        return IndustryClassification(
            label=UNKNOWN_INDUSTRY_LABEL,
            confidence=confidence,
            evidence=tuple(evidence),
        )

    if top.industry is IndustryType.MANUFACTURING and top.hits:
        core, adjacent, reason_code = _manufacturing_categories(top)
        return IndustryClassification(
            label=f"{INDUSTRY_LABELS[IndustryType.MANUFACTURING]}({core[0]})",
            confidence=confidence,
            evidence=tuple(evidence),
            core_categories=core,
            adjacent_categories=adjacent,
            reason_code=reason_code,
        )

    return IndustryClassification(
        label=INDUSTRY_LABELS[top.industry],
        confidence=confidence,
        evidence=tuple(evidence),
    )


def classify_industry_from_metadata(
    industry_type: IndustryType | str | None,
) -> IndustryClassification | None:
    """Classify from an industry metadata key; ``None`` for unknown keys."""
    if not industry_type:
        return None
    key = industry_type.value if isinstance(industry_type, IndustryType) else industry_type
    if key not in {member.value for member in IndustryType}:
        return None

    industry = IndustryType(key)
    return IndustryClassification(
        label=INDUSTRY_LABELS[industry],
        confidence=1.0,
        evidence=(
            EvidenceCandidate(
                excerpt=f'회사 메타데이터에서 "{key}" 산업군으로 분류되었습니다.',
                source=IndustryEvidenceSource.METADATA,
            ),
        ),
    )


__all__ = [
    "INDUSTRY_KEYWORDS",
    "INDUSTRY_LABELS",
    "MANUFACTURING_SUBCATEGORIES",
    "INDUSTRY_LOW_SIGNAL",
    "classify_industry_from_pdf",
    "classify_industry_from_metadata",
]
