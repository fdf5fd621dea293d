# src/dart_insight/domain/services/pdf_evidence_extractor.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""PDF paragraph evidence extraction.

Purpose:
    Turn a PDF page map into a bounded, topic-diverse list of paragraph
    candidates (with page, section and heading) for industry classification
    and trait evidence selection.

Layer:
    domain/services

Notes:
    - Paragraphs are split on blank lines, short fragments are merged into
      their predecessor, and short paragraphs are merged forward.
    - Candidates are taken round-robin across topics (at most 8 per topic
      and 40 in total) so no single topic crowds out the others.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from dart_insight.domain.entities.evidence import EvidenceCandidate
from dart_insight.domain.enums.evidence import IndustryEvidenceSource, Topic

TOPIC_KEYWORDS: Mapping[Topic, tuple[str, ...]] = {
    Topic.BUSINESS_STRUCTURE: (
        "사업",
        "부문",
        "제품",
        "솔루션",
        "고객",
        "매출",
        "segment",
        "DX",
        "DS",
        "사업의 내용",
        "주요 제품",
        "제품 및 서비스",
        "영업의 개황",
        "부문 정보",
        "세그먼트",
        "매출 구성",
    ),
    Topic.MARKET_DEMAND: (
        "시장",
        "수요",
        "성장",
        "정체",
        "둔화",
        "전망",
        "교체",
        "투자",
        "시장의 특성",
        "시장 환경",
        "시장 전망",
        "수요 전망",
        "성장 전망",
    ),
    Topic.COMPETITION: (
        "경쟁",
        "점유율",
        "중국",
        "업체",
        "추격",
        "가격 경쟁",
        "차별화",
        "경쟁현황",
        "경쟁 환경",
        "경쟁사",
        "시장 점유율",
        "경쟁력",
    ),
    Topic.PRICE_COST: (
        "가격",
        "판가",
        "ASP",
        "인상",
        "하락",
        "원가",
        "마진",
        "비용",
        "가격 정책",
        "가격 인상",
        "가격 하락",
        "원가 절감",
        "마진 개선",
    ),
    Topic.REGULATION_RISK: (
        "규제",
        "환경",
        "인증",
        "관세",
        "정책",
        "리스크",
        "환율",
        "규제 환경",
        "환경 규제",
        "인증 절차",
        "관세 정책",
        "리스크 관리",
    ),
    Topic.SUPPLY_CHAIN: (
        "공장",
        "생산능력",
        "공급",
        "부품",
        "물류",
        "조달",
        "생산 현황",
        "생산 능력",
        "공급망",
        "부품 조달",
        "물류 체계",
    ),
    Topic.OTHER: (),
}

STEP1_SECTION_KEYWORDS: tuple[str, ...] = (
    "시장",
    "수요",
    "경쟁",
    "점유율",
    "가격",
    "판가",
    "원가",
    "마진",
    "비용",
    "환율",
    "금리",
    "규제",
    "환경",
    "인증",
    "관세",
    "정책",
    "리스크",
    "위험",
    "소송",
    "제재",
    "공급",
    "생산",
    "조달",
    "원자재",
    "물류",
    "재고",
    "고객",
    "전망",
)

BUSINESS_PAGE_PATTERN = re.compile(
    r"사업의\s*내용|주요\s*제품|제품\s*및\s*서비스|영업의\s*개황|부문\s*정보|세그먼트|매출\s*구성",
    re.IGNORECASE,
)
_TOC_PATTERN = re.compile(r"목차|차례|Contents|Table\s+of\s+Contents", re.IGNORECASE)
_BUSINESS_SECTION = re.compile(r"사업|제품|영업|부문|세그먼트", re.IGNORECASE)
_BLANK_LINES = re.compile(r"\n\n+")
_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[.,()\-–—:;\"'`~!@#$%^&*_+=<>?/\\\[\]{}|]")
_HANGUL = re.compile(r"[가-힣]")

MAX_PER_TOPIC = 8
MAX_TOTAL = 40
_FRAGMENT_LENGTH = 40
_MEANINGFUL_LENGTH = 20
_MERGE_MIN_LENGTH = 140
_MERGE_MAX_LENGTH = 420
_PREVIEW_LENGTH = 150
_FALLBACK_FRONT_PAGES = 8


@dataclass(frozen=True, slots=True)
class _Paragraph:
    page: int
    text: str
    topic: Topic
    section: str | None
    heading: str | None
    score: int


# --------------------------------------------------------------------------- #
# Business pages                                                              #
# --------------------------------------------------------------------------- #


def detect_business_pages(page_map: Mapping[int, str]) -> list[int]:
    """Return the pages whose text names a business-description section."""
    return sorted(page for page, text in page_map.items() if BUSINESS_PAGE_PATTERN.search(text or ""))


def business_section_text(page_map: Mapping[int, str]) -> str:
    """Return the text of the business-description pages.

    Business pages are widened by one page on each side. Without any
    business page, the first eight pages plus the three pages after a table
    of contents are used instead.
    """
    business_pages = detect_business_pages(page_map)
    pages: set[int] = set()
    if business_pages:
        page_count = len(page_map)
        for page in business_pages:
            pages.add(page)
            if page > 1:
                pages.add(page - 1)
            if page < page_count:
                pages.add(page + 1)
    else:
        ordered = sorted(page_map)
        pages.update(ordered[:_FALLBACK_FRONT_PAGES])
        toc_page = next((p for p in page_map if _TOC_PATTERN.search(page_map[p] or "")), None)
        if toc_page is not None:
            pages.update(p for p in range(toc_page + 1, toc_page + 4) if p in page_map)

    texts = [page_map.get(page, "") for page in sorted(pages)]
    return "\n\n".join(text for text in texts if text.strip())


# --------------------------------------------------------------------------- #
# Paragraph handling                                                          #
# --------------------------------------------------------------------------- #


def _meaningful_length(text: str) -> int:
    return len(_PUNCTUATION.sub("", _WHITESPACE.sub("", text)))


def split_paragraphs(text: str) -> list[str]:
    """Split page text on blank lines, dropping empty paragraphs."""
    return [p.strip() for p in _BLANK_LINES.split(text) if p.strip()]


def normalize_paragraphs(paragraphs: Sequence[str]) -> list[str]:
    """Fold short fragments into the preceding paragraph."""
    out: list[str] = []
    for raw in paragraphs:
        paragraph = _WHITESPACE.sub(" ", raw).strip()
        if not paragraph:
            continue
        is_fragment = (
            len(paragraph) < _FRAGMENT_LENGTH or _meaningful_length(paragraph) < _MEANINGFUL_LENGTH
        )
        if is_fragment and out:
            out[-1] = f"{out[-1]} {paragraph}".strip()
            continue
        out.append(paragraph)
    return [p for p in out if _meaningful_length(p) >= _MEANINGFUL_LENGTH]


def merge_short_paragraphs(paragraphs: Sequence[str]) -> list[str]:
    """Merge paragraphs under 140 chars forward while staying within 420."""
    merged: list[str] = []
    index = 0
    while index < len(paragraphs):
        paragraph = paragraphs[index].strip()
        while len(paragraph) < _MERGE_MIN_LENGTH and index + 1 < len(paragraphs):
            following = paragraphs[index + 1].strip()
            if not following:
                break
            candidate = f"{paragraph} {following}"
            if len(candidate) > _MERGE_MAX_LENGTH:
                break
            paragraph = candidate
            index += 1
        merged.append(paragraph)
        index += 1
    return merged


def preview_sentences(text: str, max_length: int = _PREVIEW_LENGTH) -> str:
    """Return a preview of ``text`` cut at a sentence boundary when possible."""
    flat = _WHITESPACE.sub(" ", text).strip()
    if len(flat) <= max_length:
        return flat

    head = flat[:max_length]
    cut_at = max(head.rfind(marker) for marker in (".", "다.", "니다.", "합니다.", "임."))
    cut = head[: cut_at + 1] if cut_at > max_length * 0.6 else head
    return f"{cut}..."


def classify_topic(text: str) -> Topic:
    """Return the topic whose keywords occur most often (first wins ties)."""
    lowered = text.lower()
    best_topic = Topic.OTHER
    best_score = 0
    for topic, keywords in TOPIC_KEYWORDS.items():
        score = sum(1 for keyword in keywords if keyword.lower() in lowered)
        if score > best_score:
            best_topic, best_score = topic, score
    return best_topic


def score_paragraph(text: str, topic: Topic, section: str | None, heading: str | None) -> int:
    """Score a paragraph for extraction (kept only when positive)."""
    lowered = text.lower()
    score = 2 * sum(1 for keyword in TOPIC_KEYWORDS[topic] if keyword.lower() in lowered)

    if section and _BUSINESS_SECTION.search(section):
        score += 3
    if heading:
        score += 2

    length = len(text)
    if length < 50:
        score -= 2
    elif length > 500:
        score -= 1
    elif 100 <= length <= 300:
        score += 1

    if length and len(_HANGUL.findall(text)) / length < 0.3:
        score -= 2
    return score


def _is_step1_section(section: str | None, heading: str | None) -> bool:
    if not section and not heading:
        return False
    combined = f"{section or ''} {heading or ''}".lower()
    return any(keyword in combined for keyword in STEP1_SECTION_KEYWORDS)


def _pages_to_process(
    page_map: Mapping[int, str],
    section_map: Mapping[int, str],
    heading_map: Mapping[int, str],
    business_pages: Sequence[int],
) -> list[int]:
    pages = set(business_pages)
    pages.update(
        page for page in page_map if _is_step1_section(section_map.get(page), heading_map.get(page))
    )
    return sorted(pages) if pages else sorted(page_map)


def location_hint(page: int | None, section: str | None, heading: str | None) -> str | None:
    """Render ``p.N (section - heading)`` style location hints."""
    if not page:
        return None
    if section and heading:
        return f"p.{page} ({section} - {heading})"
    if section:
        return f"p.{page} ({section})"
    return f"p.{page}"


# --------------------------------------------------------------------------- #
# Extraction                                                                  #
# --------------------------------------------------------------------------- #


def extract_pdf_evidence(
    page_map: Mapping[int, str],
    *,
    section_map: Mapping[int, str] | None = None,
    heading_map: Mapping[int, str] | None = None,
    business_pages: Sequence[int] = (),
) -> list[EvidenceCandidate]:
    """Extract paragraph evidence candidates from a PDF page map.

    Args:
        page_map: Page number to page text.
        section_map: Page number to section title.
        heading_map: Page number to heading.
        business_pages: Pages detected as business-description pages.

    Returns:
        Up to 40 candidates with ids ``pdf-evidence-N``, topic titles such as
        ``[경쟁]``, the full paragraph text and a 150-char excerpt.
    """
    sections = section_map or {}
    headings = heading_map or {}

    groups: dict[Topic, list[_Paragraph]] = {}
    for page in _pages_to_process(page_map, sections, headings, business_pages):
        page_text = page_map.get(page)
        if not page_text:
            continue
        section = sections.get(page)
        heading = headings.get(page)

        paragraphs = merge_short_paragraphs(normalize_paragraphs(split_paragraphs(page_text)))
        for text in paragraphs:
            topic = classify_topic(text)
            score = score_paragraph(text, topic, section, heading)
            if score > 0:
                groups.setdefault(topic, []).append(
                    _Paragraph(page, text, topic, section, heading, score)
                )

    ranked = {topic: sorted(group, key=lambda p: -p.score) for topic, group in groups.items()}

    selected: list[_Paragraph] = []
    for round_index in range(MAX_PER_TOPIC):
        for topic in Topic:
            if len(selected) >= MAX_TOTAL:
                break
            group = ranked.get(topic, [])
            if round_index < len(group):
                selected.append(group[round_index])
        if len(selected) >= MAX_TOTAL:
            break

    return [
        EvidenceCandidate(
            id=f"pdf-evidence-{index}",
            topic=paragraph.topic,
            title=f"[{paragraph.topic.value}]",
            text=paragraph.text,
            excerpt=preview_sentences(paragraph.text),
            page=paragraph.page,
            section=paragraph.section,
            heading=paragraph.heading,
            source=IndustryEvidenceSource.PDF,
            location_hint=location_hint(paragraph.page, paragraph.section, paragraph.heading),
        )
        for index, paragraph in enumerate(selected, start=1)
    ]


__all__ = [
    "TOPIC_KEYWORDS",
    "STEP1_SECTION_KEYWORDS",
    "BUSINESS_PAGE_PATTERN",
    "MAX_PER_TOPIC",
    "MAX_TOTAL",
    "detect_business_pages",
    "business_section_text",
    "split_paragraphs",
    "normalize_paragraphs",
    "merge_short_paragraphs",
    "preview_sentences",
    "classify_topic",
    "score_paragraph",
    "location_hint",
    "extract_pdf_evidence",
]
