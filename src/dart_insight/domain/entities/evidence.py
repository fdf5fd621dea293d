# src/dart_insight/domain/entities/evidence.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Evidence references and candidate paragraphs.

Purpose:
    Model literal, locatable source citations (XBRL tags or PDF pages) and
    the ephemeral PDF paragraph candidates scored by the evidence selector.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from dart_insight.domain.enums.evidence import EvidenceSourceType, IndustryEvidenceSource, Topic


@dataclass(frozen=True, slots=True)
class EvidenceLocator:
    """Location of a quote inside its source document.

    Attributes:
        page: PDF page number (1-based).
        tag: XBRL element name, e.g. ``ifrs-full:Revenue``.
        context_ref: XBRL context reference.
        section: PDF section title the page belongs to.
        heading: PDF heading closest to the quote.
        line_hint: Free-form position hint.
    """

    page: int | None = None
    tag: str | None = None
    context_ref: str | None = None
    section: str | None = None
    heading: str | None = None
    line_hint: str | None = None


@dataclass(frozen=True, slots=True)
class EvidenceRef:
    """A literal source citation backing a finding, checkpoint or value.

    Attributes:
        source_type: XBRL or PDF.
        file_id: Identifier of the uploaded file the quote comes from.
        locator: Where the quote sits inside the file.
        quote: Literal text (or formatted value) being cited.
    """

    source_type: EvidenceSourceType
    file_id: str
    locator: EvidenceLocator = EvidenceLocator()
    quote: str | None = None


@dataclass(frozen=True, slots=True)
class EvidenceCandidate:
    """A PDF paragraph offered to the evidence selector.

    Also used as the evidence item of an industry classification, where
    ``source`` tells whether it came from the PDF or from metadata.

    Attributes:
        text: Full paragraph text.
        excerpt: Short preview of the paragraph.
        topic: Topic bucket assigned by the extractor, if any.
        page: Source page.
        section: Section title of the source page.
        heading: Heading of the source page.
        id: Stable identifier such as ``pdf-evidence-3``.
        title: Display title such as ``[경쟁]``.
        source: Origin of the item.
        location_hint: Human-readable location such as ``p.12 (사업의 내용)``.
    """

    text: str = ""
    excerpt: str = ""
    topic: Topic | None = None
    page: int | None = None
    section: str | None = None
    heading: str | None = None
    id: str | None = None
    title: str | None = None
    source: IndustryEvidenceSource = IndustryEvidenceSource.PDF
    location_hint: str | None = None

    @property
    def raw_text(self) -> str:
        """Return the full text, falling back to the excerpt."""
        return self.text or self.excerpt


__all__ = ["EvidenceLocator", "EvidenceRef", "EvidenceCandidate"]
