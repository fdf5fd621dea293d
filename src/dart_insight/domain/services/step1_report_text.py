# src/dart_insight/domain/services/step1_report_text.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Step-1 report text assembler.

Purpose:
    Render the step-1 output as deterministic, footnoted plain text: an
    industry block, one observation/implication block per trait with
    ``[E#]`` footnote markers, follow-up checks, and the footnote list.

Layer:
    domain/services

Notes:
    - Footnote numbers follow first appearance. Two findings citing
      evidence with the same ``(page, section, heading, quote[:200])`` key
      share one number.
    - A finding with a reason code never gets a number; it renders
      ``근거: 데이터 부족``.
    - Quoted source text is stripped from the body; quotes appear only in
      the footnote list.
    - A footnote hides its section and heading when they contradict the
      trait that cites it.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass

from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.report import Finding, StepOutput
from dart_insight.domain.enums.evidence import Trait
from dart_insight.domain.services.evidence_rules import rules_for
from dart_insight.domain.services.step01_industry import (
    EVIDENCE_LABEL,
    HOLD_EVIDENCE,
    trait_from_finding_id,
)

_FULL_FINDING = re.compile(r"관찰:\s*(.+?)\s+근거:\s*(.+?)\s+시사점:\s*(.+?)$", re.DOTALL)
_NO_EVIDENCE_FINDING = re.compile(r"관찰:\s*(.+?)\s+시사점:\s*(.+?)$", re.DOTALL)
_OBSERVATION_ONLY = re.compile(r"관찰:\s*(.+?)$", re.DOTALL)
_DOUBLE_QUOTED = re.compile(r'"[^"]*"')
_SINGLE_QUOTED = re.compile(r"'[^']*'")
_ZERO_WIDTH = re.compile(r"[\u200B-\u200D\uFEFF]")
_LINE_BREAKS = re.compile(r"[\n\t\r]")
_WHITESPACE = re.compile(r"\s+")
_AND_SPACING = re.compile(r"및\s*(?=[가-힣])")
_PARTICLE_JOIN = re.compile(r"(것|점|등|중|내|후|전)\s+(으로|로|에서|까지|부터|에게)")
_SINGLE_HANGUL = re.compile(r"^[가-힣]$")

_PARTICLES = frozenset({"이", "가", "은", "는", "을", "를", "에", "의", "과", "와", "도", "만", "로", "으로"})
_DISPLAY_LENGTH = 200
_QUOTE_KEY_LENGTH = 200


@dataclass(frozen=True, slots=True)
class ParsedFinding:
    """Observation and implication parts of a finding text."""

    observation: str
    implication: str


def parse_finding_text(text: str) -> ParsedFinding:
    """Split ``관찰: … 근거: … 시사점: …`` text into its parts."""
    match = _FULL_FINDING.search(text)
    if match:
        return ParsedFinding(match.group(1).strip(), match.group(3).strip())
    match = _NO_EVIDENCE_FINDING.search(text)
    if match:
        return ParsedFinding(match.group(1).strip(), match.group(2).strip())
    match = _OBSERVATION_ONLY.search(text)
    if match:
        return ParsedFinding(match.group(1).strip(), "")
    return ParsedFinding(text, "")


def evidence_key(ref: EvidenceRef) -> str:
    """Return the footnote deduplication key of ``ref``."""
    locator = ref.locator
    quote = _WHITESPACE.sub(" ", ref.quote or "").strip()[:_QUOTE_KEY_LENGTH]
    return f"{locator.page or 0}|{locator.section or ''}|{locator.heading or ''}|{quote}"


def should_show_section(trait: Trait | None, section: str | None, heading: str | None) -> bool:
    """Return False when the section/heading contradicts ``trait``."""
    if trait is None or (not section and not heading):
        return True
    text = f"{section or ''} {heading or ''}".strip().lower()
    if not text:
        return True
    return not any(keyword in text for keyword in rules_for(trait).display_suppression)


def remove_quotes(text: str, quotes: Sequence[str] = ()) -> str:
    """Strip quoted spans and embedded evidence quotes from body text."""
    if not text:
        return ""
    cleaned = _DOUBLE_QUOTED.sub("", text)
    cleaned = _SINGLE_QUOTED.sub("", cleaned)
    for quote in quotes:
        if not quote or len(quote) <= 20:
            continue
        index = cleaned.find(quote[:50])
        if index != -1:
            end = min(index + len(quote), len(cleaned))
            cleaned = cleaned[:index] + cleaned[end:]
    return _WHITESPACE.sub(" ", cleaned).strip()


def _join_single_syllables(tokens: list[str]) -> list[str]:
    result: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if not _SINGLE_HANGUL.match(token):
            result.append(token)
            index += 1
            continue

        end = index + 1
        while end < len(tokens) and _SINGLE_HANGUL.match(tokens[end]):
            end += 1
        run = tokens[index:end]
        only_particles = len(run) >= 2 and all(t in _PARTICLES for t in run)
        if len(run) >= 2 and not only_particles:
            result.append("".join(run))
            index = end
        else:
            result.append(token)
            index += 1
    return result


def normalize_for_display(text: str) -> str:
    """Tidy extracted text for display (at most 200 chars).

    Removes zero-width characters, flattens whitespace, repairs a few
    broken-spacing patterns (``가 격`` → ``가격``, ``것 으로`` → ``것으로``)
    without merging runs made only of particles.
    """
    if not text:
        return ""
    normalized = _ZERO_WIDTH.sub("", text)
    normalized = _LINE_BREAKS.sub(" ", normalized)
    normalized = _WHITESPACE.sub(" ", normalized).strip()
    normalized = _AND_SPACING.sub("및 ", normalized)
    normalized = _PARTICLE_JOIN.sub(r"\1\2", normalized)

    normalized = " ".join(_join_single_syllables(normalized.split(" ")))

    normalized = _AND_SPACING.sub("및 ", normalized)
    normalized = _PARTICLE_JOIN.sub(r"\1\2", normalized)
    if len(normalized) > _DISPLAY_LENGTH:
        normalized = normalized[: _DISPLAY_LENGTH - 3] + "..."
    return normalized


def _percent(confidence: float) -> int:
    return math.floor(confidence * 100 + 0.5)


def _industry_block(industry: IndustryClassification) -> list[str]:
    lines = ["[산업 분류]"]
    core = industry.core_categories[0] if industry.core_categories else None
    lines.append(f"핵심: {core}" if core else f"산업: {industry.label}")
    adjacent = "/".join(industry.adjacent_categories or ())
    if adjacent:
        lines.append(f"부수: {adjacent}")
    lines.append(f"확신도: {_percent(industry.confidence)}%")
    if industry.reason_code:
        lines.append(f"[내부코드: {industry.reason_code}]")
    lines.append("")
    return lines


def _find_trait_finding(findings: Sequence[Finding], trait: Trait) -> Finding | None:
    return next((f for f in findings if trait_from_finding_id(f.id) is trait), None)


def build_step1_report_text(step: StepOutput, industry: IndustryClassification | None) -> str:
    """Render the step-1 report text.

    Args:
        step: Step-1 output.
        industry: Industry classification shown in the header block.

    Returns:
        Newline-joined report text. Identical inputs render identically.
    """
    lines = [f"--- {step.title} ---", ""]
    if industry is not None:
        lines.extend(_industry_block(industry))

    footnotes: dict[str, tuple[EvidenceRef, int]] = {}

    lines.append("[핵심 관찰]")
    for trait in Trait:
        finding = _find_trait_finding(step.findings, trait)
        if finding is None:
            continue

        lines.append(f"[{rules_for(trait).label}]")
        parsed = parse_finding_text(finding.text)
        quotes = [ref.quote for ref in finding.evidence if ref.quote and ref.quote.strip()]
        observation = normalize_for_display(remove_quotes(parsed.observation, quotes))
        implication = normalize_for_display(remove_quotes(parsed.implication, quotes))
        lines.append(f"관찰: {observation}")
        lines.append(f"시사점: {implication}")

        number = None
        first = finding.evidence[0] if finding.evidence else None
        if finding.reason_code is None and first is not None and (first.quote or "").strip():
            key = evidence_key(first)
            if key not in footnotes:
                footnotes[key] = (first, len(footnotes) + 1)
            number = footnotes[key][1]

        if number is not None:
            lines.append(f"{EVIDENCE_LABEL}: [E{number}]")
        else:
            lines.append(f"{EVIDENCE_LABEL}: {HOLD_EVIDENCE}")
        lines.append("")

    if step.checkpoints:
        lines.append("[추가 확인]")
        for checkpoint in step.checkpoints:
            parts = [p for p in (checkpoint.what_to_watch, checkpoint.next_quarter_action) if p]
            if checkpoint.confirm_question:
                parts.append(f"질문: {checkpoint.confirm_question}")
            if parts:
                lines.append(f"- {' | '.join(parts)}")
        lines.append("")

    if footnotes:
        lines.append("[근거 목록]")
        for key, (ref, number) in sorted(footnotes.items(), key=lambda item: item[1][1]):
            lines.append(f"[E{number}] {' | '.join(_footnote_parts(step.findings, key, ref))}")
        lines.append("")

    return "\n".join(lines)


def _footnote_parts(findings: Sequence[Finding], key: str, ref: EvidenceRef) -> list[str]:
    parts: list[str] = []
    locator = ref.locator
    if locator.page:
        parts.append(f"p.{locator.page}")

    citing_trait = None
    for finding in findings:
        if any(evidence_key(e) == key for e in finding.evidence):
            citing_trait = trait_from_finding_id(finding.id)
            if citing_trait is not None:
                break

    if should_show_section(citing_trait, locator.section, locator.heading):
        if locator.section:
            parts.append(locator.section)
        if locator.heading and locator.heading != locator.section:
            parts.append(locator.heading)

    if ref.quote:
        parts.append(f'"{normalize_for_display(ref.quote)}"')
    return parts


__all__ = [
    "ParsedFinding",
    "parse_finding_text",
    "evidence_key",
    "should_show_section",
    "remove_quotes",
    "normalize_for_display",
    "build_step1_report_text",
]
