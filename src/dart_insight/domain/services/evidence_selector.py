# src/dart_insight/domain/services/evidence_selector.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Evidence candidate scorer and selector.

Purpose:
    Pick, for each industry trait, the single PDF paragraph that best
    supports a finding, or report a structured reason for withholding it.

Layer:
    domain/services

Design:
    Every candidate runs the same monotonic pipeline:

        junk filter -> accounting filter -> trait relevance -> scoring

    A candidate rejected by an earlier stage never reaches a later one.
    Relevance is a hard gate, so no score can promote an irrelevant
    paragraph. Scoring is deterministic integer arithmetic and ties keep
    input order.

Notes:
    - ``pick_best_paragraph`` never raises; an empty or fully rejected pool
      yields ``best=None`` with a reason code.
    - The optional audit only counts and summarizes; it never changes the
      selection.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from dart_insight.domain.entities.evidence import EvidenceCandidate
from dart_insight.domain.enums.evidence import SelectionPool, SelectionReasonCode, Topic, Trait
from dart_insight.domain.services.evidence_rules import (
    ACCOUNTING_KEYWORDS,
    JUNK_HEADER_PATTERN,
    JUNK_MIN_HANGUL,
    JUNK_MIN_LENGTH,
    JUNK_UNTERMINATED_MIN_LENGTH,
    MIN_SELECTION_SCORE,
    REGULATION_AUX_ANCHORS,
    REGULATION_CONTEXT_TERMS,
    REGULATION_CORE_ANCHORS,
    REGULATION_SELF_SUFFICIENT_ANCHORS,
    SENTENCE_ENDING_PATTERN,
    first_rule_weight,
    rules_for,
)

_URL = re.compile(r"https?://\S+", re.IGNORECASE)
_PAGE_MARKER = re.compile(r"\(p\.\d+[^)]*\)", re.IGNORECASE)
_LEADING_TAG = re.compile(r"^\[[^\]]+\]\s*")
_WHITESPACE = re.compile(r"\s+")
_HANGUL = re.compile(r"[가-힣]")
_NON_HANGUL = re.compile(r"[^가-힣]")
_TABLE_SEPARATORS = re.compile(r"[|│─━…]")
_DIGITS_AND_SYMBOLS = re.compile(r"[\d.,%()\-]")
_PAGE_BOILERPLATE = re.compile(r"(?:page|kr|en)\s*\d+", re.IGNORECASE)
_URL_SCHEME = re.compile(r"https?://", re.IGNORECASE)
_SENTENCE_PUNCTUATION = re.compile(r"[.!?]\s*")
_KO_SENTENCE_ENDING = re.compile(r"(다|니다|습니다|함|임)\s+")
_SUMMARY_SENTENCE_BREAK = re.compile(r"(?<=[.다니합임요])\s+")
_LEADING_CONNECTIVE = re.compile(
    r"^(그리고|또한|또|그러나|하지만|다만|그런데|그런|그래서|따라서|그러므로)\s+"
)

_PREVIEW_LENGTH = 80
_SNIPPET_LENGTH = 220
_SUMMARY_LENGTH = 220

# --------------------------------------------------------------------------- #
# Text helpers                                                                #
# --------------------------------------------------------------------------- #


def normalize_topic(topic: Topic | str | None) -> Topic:
    """Map a free-form topic label onto the canonical topic set."""
    if isinstance(topic, Topic):
        return topic
    if not topic:
        return Topic.OTHER

    label = topic.strip()
    if "사업" in label or "구조" in label:
        return Topic.BUSINESS_STRUCTURE
    if "시장" in label or "수요" in label:
        return Topic.MARKET_DEMAND
    if "경쟁" in label:
        return Topic.COMPETITION
    if "가격" in label or "원가" in label:
        return Topic.PRICE_COST
    if "규제" in label or "리스크" in label:
        return Topic.REGULATION_RISK
    if "생산" in label or "공급" in label:
        return Topic.SUPPLY_CHAIN
    return Topic.OTHER


def sanitize_text(text: str | None) -> str:
    """Strip URLs, page markers and a leading ``[tag]``; collapse whitespace."""
    if not text:
        return ""
    cleaned = _URL.sub("", text)
    cleaned = _PAGE_MARKER.sub("", cleaned)
    cleaned = _LEADING_TAG.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned.strip()


def is_table_like(text: str | None) -> bool:
    """Return True when ``text`` looks like a table or chart dump."""
    if not text or len(text) < 20:
        return False

    if len(_TABLE_SEPARATORS.findall(text)) > len(text) * 0.1:
        return True
    if len(_DIGITS_AND_SYMBOLS.findall(text)) > len(text) * 0.3:
        return True

    lines = text.split("\n")
    if len(lines) >= 3:
        lengths = [len(line.strip()) for line in lines if line.strip()]
        if len(lengths) >= 3:
            average = sum(lengths) / len(lengths)
            variance = sum((length - average) ** 2 for length in lengths) / len(lengths)
            if variance < average * 0.1 and average > 20:
                return True
    return False


def is_junk_fragment(raw_text: str | None) -> bool:
    """Return True for truncated headers, boilerplate and short fragments."""
    if not raw_text:
        return True

    sanitized = sanitize_text(raw_text)
    length = len(sanitized)
    if length < JUNK_MIN_LENGTH:
        return True
    if not SENTENCE_ENDING_PATTERN.search(sanitized) and length < JUNK_UNTERMINATED_MIN_LENGTH:
        return True
    if JUNK_HEADER_PATTERN.search(sanitized):
        return True
    return len(_NON_HANGUL.sub("", sanitized)) < JUNK_MIN_HANGUL


def is_accounting_disclosure(raw_text: str | None) -> bool:
    """Return True for accounting-standard or disclosure-note paragraphs."""
    if not raw_text:
        return False
    lowered = sanitize_text(raw_text).lower()
    return any(keyword in lowered for keyword in ACCOUNTING_KEYWORDS)


def split_ko_sentences(text: str | None) -> list[str]:
    """Split Korean text into sentences.

    Splits on ``.``/``!``/``?`` and after the declarative endings
    다/니다/습니다/함/임 when followed by whitespace.
    """
    if not text:
        return []

    sentences: list[str] = []
    for part in _SENTENCE_PUNCTUATION.split(text):
        if not part.strip():
            continue
        current = ""
        # Odd indices hold the captured ending of the preceding piece.
        for index, piece in enumerate(_KO_SENTENCE_ENDING.split(part)):
            current += piece
            if index % 2 == 1:
                if current.strip():
                    sentences.append(current.strip())
                current = ""
        if current.strip():
            sentences.append(current.strip())
    return sentences


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword.lower() in text for keyword in keywords)


# --------------------------------------------------------------------------- #
# Relevance gate                                                              #
# --------------------------------------------------------------------------- #


def _regulation_is_relevant(raw_text: str, lowered: str) -> bool:
    if not _contains_any(lowered, REGULATION_CORE_ANCHORS):
        return False
    if _contains_any(lowered, REGULATION_SELF_SUFFICIENT_ANCHORS):
        return True

    for sentence in split_ko_sentences(raw_text):
        clean = sanitize_text(sentence).lower()
        if _contains_any(clean, REGULATION_CORE_ANCHORS) and _contains_any(
            clean, REGULATION_CONTEXT_TERMS
        ):
            return True
    return False


def is_relevant_for_trait(trait: Trait, raw_text: str | None) -> bool:
    """Return True when ``raw_text`` actually speaks to ``trait``.

    Args:
        trait: Trait being evidenced.
        raw_text: Unsanitized paragraph text.

    Returns:
        True when the paragraph carries the trait's required signals.
    """
    if not raw_text:
        return False

    lowered = sanitize_text(raw_text).lower()
    if trait is Trait.REGULATION:
        return _regulation_is_relevant(raw_text, lowered)

    rules = rules_for(trait)
    has_word = _contains_any(lowered, rules.required_words)
    has_phrase = _contains_any(lowered, rules.required_phrases)

    if not has_phrase and _contains_any(lowered, rules.bare_word_rejects):
        return False
    return has_word or has_phrase


# --------------------------------------------------------------------------- #
# Scoring                                                                     #
# --------------------------------------------------------------------------- #


def _source_text(section: str | None, heading: str | None) -> str:
    return f"{section or ''} {heading or ''}".strip().lower()


def score_section_alignment(trait: Trait, section: str | None, heading: str | None) -> int:
    """Return the section/heading alignment points of ``trait`` (-10..+12)."""
    return first_rule_weight(rules_for(trait).section_alignment, _source_text(section, heading))


def section_heading_boost(trait: Trait, section: str | None, heading: str | None) -> int:
    """Return the boost added on top of the base evidence score."""
    return first_rule_weight(rules_for(trait).heading_boost, _source_text(section, heading))


def score_evidence(trait: Trait, candidate: EvidenceCandidate) -> int:
    """Score ``candidate`` for ``trait`` (base 10 plus bonuses and penalties)."""
    score = 10

    priority = rules_for(trait).topic_priority
    topic = normalize_topic(candidate.topic)
    if topic in priority:
        score += (8, 5, 2)[min(priority.index(topic), 2)]
    else:
        score -= 2

    score += min(score_section_alignment(trait, candidate.section, candidate.heading), 12)

    if candidate.page and (candidate.section or candidate.heading):
        score += 2

    raw_text = candidate.raw_text
    sanitized = sanitize_text(raw_text)
    length = len(sanitized)
    if 120 <= length <= 360:
        score += 4
    elif 80 <= length <= 500:
        score += 2
    elif length < 40:
        score -= 2
    elif length > 800:
        score -= 2

    if is_table_like(raw_text):
        score -= 8
    if _URL_SCHEME.search(sanitized):
        score -= 6
    if _PAGE_BOILERPLATE.search(sanitized):
        score -= 4

    if length > 50 and len(_HANGUL.findall(sanitized)) / length < 0.25:
        score -= 2
    return score


# --------------------------------------------------------------------------- #
# Selection results                                                           #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class BestCandidateSummary:
    """Short description of the selected candidate for audits.

    Attributes:
        page: Source page.
        section: Source section.
        heading: Source heading.
        final_score: Score including the heading boost.
        text_preview: 80-char preview, or an anchor-centred snippet for
            regulation.
        matched_anchors: Regulation anchors found in the candidate (max 3).
    """

    page: int | None
    section: str | None
    heading: str | None
    final_score: int
    text_preview: str
    matched_anchors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SelectionAudit:
    """Counters describing how a candidate pool was filtered."""

    input_total: int
    filtered_junk: int
    filtered_accounting: int
    filtered_irrelevant: int
    filtered_low_score: int
    candidates_before_low_score: int
    candidates_final: int
    best_summary: BestCandidateSummary | None = None
    pool_matched_anchors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """Outcome of selecting evidence for one trait.

    Attributes:
        best: The selected candidate, or ``None`` when withheld.
        score: Final score of the selected (or best rejected) candidate.
        reason_code: Set for every withheld selection and for selections
            drawn outside the trait's topic priority.
        pool: Pool the winner came from.
        audit: Filtering counters, present only when requested.
    """

    best: EvidenceCandidate | None
    score: int
    reason_code: SelectionReasonCode | None = None
    pool: SelectionPool | None = None
    audit: SelectionAudit | None = None


@dataclass(frozen=True, slots=True)
class _Scored:
    candidate: EvidenceCandidate
    score: int
    primary: bool


# --------------------------------------------------------------------------- #
# Selection                                                                   #
# --------------------------------------------------------------------------- #


def pick_best_paragraph(
    trait: Trait,
    candidates: Sequence[EvidenceCandidate],
    *,
    audit: bool = False,
) -> SelectionResult:
    """Select the best evidence paragraph for ``trait``.

    Args:
        trait: Trait being evidenced.
        candidates: Candidate paragraphs in extractor order.
        audit: Whether to attach a ``SelectionAudit``.

    Returns:
        A ``SelectionResult``. The primary pool (topics in the trait's
        priority) wins when its best score reaches the threshold; otherwise
        the overall best is used with ``TOPIC_MISMATCH``; otherwise the
        selection is withheld.
    """
    priority = rules_for(trait).topic_priority
    filtered_junk = 0
    filtered_accounting = 0
    filtered_irrelevant = 0
    pool_anchors: list[str] = []
    scored: list[_Scored] = []

    for candidate in candidates:
        raw_text = candidate.raw_text
        if is_junk_fragment(raw_text):
            filtered_junk += 1
            continue
        if is_accounting_disclosure(raw_text):
            filtered_accounting += 1
            continue

        if trait is Trait.REGULATION:
            for anchor in _matched_regulation_anchors(raw_text, limit=None):
                if anchor not in pool_anchors:
                    pool_anchors.append(anchor)

        if not is_relevant_for_trait(trait, raw_text):
            filtered_irrelevant += 1
            continue

        final_score = score_evidence(trait, candidate) + section_heading_boost(
            trait, candidate.section, candidate.heading
        )
        scored.append(
            _Scored(
                candidate=candidate,
                score=final_score,
                primary=normalize_topic(candidate.topic) in priority,
            )
        )

    def finish(
        best: _Scored | None,
        score: int,
        reason_code: SelectionReasonCode | None,
        pool: SelectionPool | None,
    ) -> SelectionResult:
        report = None
        if audit:
            report = SelectionAudit(
                input_total=len(candidates),
                filtered_junk=filtered_junk,
                filtered_accounting=filtered_accounting,
                filtered_irrelevant=filtered_irrelevant,
                filtered_low_score=sum(1 for s in scored if s.score < MIN_SELECTION_SCORE),
                candidates_before_low_score=len(scored),
                candidates_final=sum(1 for s in scored if s.score >= MIN_SELECTION_SCORE),
                best_summary=_summarize_best(trait, best),
                pool_matched_anchors=tuple(pool_anchors[:3]),
            )
        return SelectionResult(
            best=best.candidate if best is not None else None,
            score=score,
            reason_code=reason_code,
            pool=pool,
            audit=report,
        )

    if not scored:
        return finish(None, 0, SelectionReasonCode.EVIDENCE_INSUFFICIENT, None)

    ranked = sorted(scored, key=lambda s: -s.score)
    primary = [s for s in ranked if s.primary]
    best_overall = ranked[0]

    if primary:
        best_primary = primary[0]
        if best_primary.score >= MIN_SELECTION_SCORE:
            return finish(best_primary, best_primary.score, None, SelectionPool.PRIMARY)
        if best_overall.score >= MIN_SELECTION_SCORE:
            return finish(
                best_overall,
                best_overall.score,
                SelectionReasonCode.TOPIC_MISMATCH,
                SelectionPool.OVERALL,
            )
        return finish(None, best_primary.score, SelectionReasonCode.EVIDENCE_LOW_QUALITY, None)

    if best_overall.score >= MIN_SELECTION_SCORE:
        return finish(
            best_overall,
            best_overall.score,
            SelectionReasonCode.TOPIC_MISMATCH,
            SelectionPool.OVERALL,
        )
    return finish(None, best_overall.score, SelectionReasonCode.EVIDENCE_LOW_QUALITY, None)


# --------------------------------------------------------------------------- #
# Internal helpers                                                            #
# --------------------------------------------------------------------------- #


def _matched_regulation_anchors(text: str, *, limit: int | None = 3) -> list[str]:
    lowered = sanitize_text(text).lower()
    matched: list[str] = []
    for anchor in (*REGULATION_CORE_ANCHORS, *REGULATION_AUX_ANCHORS):
        if anchor.lower() in lowered:
            matched.append(anchor)
            if limit is not None and len(matched) >= limit:
                break
    return matched


def _text_preview(text: str) -> str:
    cleaned = sanitize_text(text)
    if len(cleaned) > _PREVIEW_LENGTH:
        return cleaned[: _PREVIEW_LENGTH - 3] + "..."
    return cleaned


def _anchor_snippet(text: str, anchor: str) -> str:
    cleaned = sanitize_text(text)
    index = cleaned.lower().find(anchor.lower())
    if index == -1:
        return _text_preview(text)

    start = max(0, index - 80)
    end = min(len(cleaned), index + len(anchor) + 140)
    snippet = cleaned[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(cleaned):
        snippet = snippet + "..."
    if len(snippet) > _SNIPPET_LENGTH:
        snippet = snippet[: _SNIPPET_LENGTH - 3] + "..."
    return snippet


def _summarize_best(trait: Trait, best: _Scored | None) -> BestCandidateSummary | None:
    if best is None:
        return None

    candidate = best.candidate
    anchors: list[str] = []
    if trait is Trait.REGULATION:
        anchors = _matched_regulation_anchors(candidate.raw_text)
    preview = (
        _anchor_snippet(candidate.raw_text, anchors[0]) if anchors else _text_preview(candidate.raw_text)
    )
    return BestCandidateSummary(
        page=candidate.page,
        section=candidate.section,
        heading=candidate.heading,
        final_score=best.score,
        text_preview=preview,
        matched_anchors=tuple(anchors),
    )


def summarize_deterministic(text: str | None) -> str:
    """Reduce a paragraph to its leading sentence (at most 220 chars).

    A first sentence shorter than 30 chars is joined with the second one,
    and a leading connective such as 그리고/또한 is dropped.
    """
    if not text:
        return ""

    sanitized = sanitize_text(text)
    sentences = [s for s in _SUMMARY_SENTENCE_BREAK.split(sanitized) if s.strip()]
    if not sentences:
        if len(sanitized) > _SUMMARY_LENGTH:
            return sanitized[: _SUMMARY_LENGTH - 3] + "..."
        return sanitized

    result = sentences[0].strip()
    if len(result) < 30 and len(sentences) > 1:
        result = f"{result} {sentences[1].strip()}".strip()

    result = _LEADING_CONNECTIVE.sub("", result)

    if len(result) > _SUMMARY_LENGTH:
        cut_at = result.rfind(".", 0, _SUMMARY_LENGTH + 1)
        if cut_at > 150:
            result = result[: cut_at + 1]
        else:
            result = result[: _SUMMARY_LENGTH - 3] + "..."
    return result


__all__ = [
    "normalize_topic",
    "sanitize_text",
    "is_table_like",
    "is_junk_fragment",
    "is_accounting_disclosure",
    "split_ko_sentences",
    "is_relevant_for_trait",
    "score_section_alignment",
    "section_heading_boost",
    "score_evidence",
    "BestCandidateSummary",
    "SelectionAudit",
    "SelectionResult",
    "pick_best_paragraph",
    "summarize_deterministic",
]
