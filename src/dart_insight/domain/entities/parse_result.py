# src/dart_insight/domain/entities/parse_result.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Upstream parse results consumed by the analysis core.

Purpose:
    Represent what the external file pipeline hands over per uploaded file:
    an optional parsed XBRL statement and an optional PDF page/text map.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from dart_insight.domain.entities.financial_statement import RawFinancialStatement


@dataclass(frozen=True, slots=True)
class PdfDocument:
    """Text extracted from a PDF narrative report.

    Attributes:
        text: Full extracted text.
        page_map: Page number to page text.
        section_map: Page number to section title.
        heading_map: Page number to closest heading.
        key_management_language: Management phrases flagged upstream.
        accounting_contradictions: Contradictions flagged upstream.
    """

    text: str = ""
    page_map: Mapping[int, str] = field(default_factory=dict)
    section_map: Mapping[int, str] = field(default_factory=dict)
    heading_map: Mapping[int, str] = field(default_factory=dict)
    key_management_language: tuple[str, ...] = ()
    accounting_contradictions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FileParseResult:
    """Parse outcome of one uploaded file."""

    success: bool = True
    financial_statement: RawFinancialStatement | None = None
    pdf: PdfDocument | None = None
    file_name: str | None = None
    missing_fields: tuple[str, ...] = ()
    error: str | None = None


__all__ = ["PdfDocument", "FileParseResult"]
