# src/dart_insight/application/schemas/dto/file_parse.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application DTOs for legacy parse results.

Purpose:
    Validate the camelCase JSON produced by the upstream XBRL/PDF parsers
    and convert it into domain entities.

Layer:
    application/schemas/dto

Notes:
    - Missing or NaN item values become ``None``; they never become zero.
    - Empty date strings are treated as absent.
    - ``xmlContent`` and ``previousYear`` are accepted for compatibility
      and not carried into the domain.
"""

from __future__ import annotations

import math
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import Field, field_validator

from dart_insight.application.schemas.dto.base import BaseDTO
from dart_insight.domain.entities.financial_statement import (
    RawFinancialItem,
    RawFinancialStatement,
)
from dart_insight.domain.entities.parse_result import FileParseResult, PdfDocument
from dart_insight.domain.enums.period import PeriodType, StatementScope


class FinancialItemDTO(BaseDTO):
    """One legacy line item.

    Attributes:
        name: Display name (Korean or English).
        value: Reported value; ``None`` when missing or NaN.
        unit: Free-form unit string such as ``KRW`` or ``백만원``.
        original_name: Original element name in the filing.
        source: Filing source (``DART``/``SEC``).
        standard: Accounting standard label.
    """

    name: str
    value: Decimal | None = None
    unit: str = "KRW"
    original_name: str | None = Field(default=None, alias="originalName")
    source: str | None = None
    standard: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _nan_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, float) and math.isnan(value):
            return None
        if isinstance(value, str) and value.strip().lower() in {"", "nan", "null"}:
            return None
        return value

    def to_domain(self) -> RawFinancialItem:
        """Convert to :class:`RawFinancialItem`."""
        return RawFinancialItem(
            name=self.name,
            value=self.value,
            unit=self.unit,
            original_name=self.original_name,
        )


class FinancialStatementDTO(BaseDTO):
    """One legacy parsed statement (camelCase JSON)."""

    company_name: str = Field(default="", alias="companyName")
    ticker: str = ""
    country: str = "KR"
    fiscal_year: int | None = Field(default=None, alias="fiscalYear")
    quarter: int = 0
    period_type: PeriodType | None = Field(default=None, alias="periodType")
    period_type_label: str | None = Field(default=None, alias="periodTypeLabel")
    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    income_statement: dict[str, FinancialItemDTO] = Field(
        default_factory=dict, alias="incomeStatement"
    )
    balance_sheet: dict[str, FinancialItemDTO] = Field(default_factory=dict, alias="balanceSheet")
    cash_flow_statement: dict[str, FinancialItemDTO] = Field(
        default_factory=dict, alias="cashFlowStatement"
    )
    scope: StatementScope = StatementScope.CONSOLIDATED
    previous_year: dict[str, Any] | None = Field(default=None, alias="previousYear")

    @field_validator("start_date", "end_date", "period_type", "period_type_label", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_domain(self) -> RawFinancialStatement:
        """Convert to :class:`RawFinancialStatement`."""
        return RawFinancialStatement(
            company_name=self.company_name,
            ticker=self.ticker,
            country=self.country,
            fiscal_year=self.fiscal_year,
            quarter=self.quarter,
            period_type=self.period_type,
            period_type_label=self.period_type_label,
            start_date=self.start_date,
            end_date=self.end_date,
            income_statement={k: v.to_domain() for k, v in self.income_statement.items()},
            balance_sheet={k: v.to_domain() for k, v in self.balance_sheet.items()},
            cash_flow_statement={k: v.to_domain() for k, v in self.cash_flow_statement.items()},
            scope=self.scope,
        )


class PdfResultDTO(BaseDTO):
    """Extracted PDF text with page, section and heading maps."""

    text: str = ""
    page_map: dict[int, str] = Field(default_factory=dict, alias="pageMap")
    section_map: dict[int, str] = Field(default_factory=dict, alias="sectionMap")
    heading_map: dict[int, str] = Field(default_factory=dict, alias="headingMap")
    key_management_language: list[str] = Field(
        default_factory=list, alias="keyManagementLanguage"
    )
    accounting_contradictions: list[str] = Field(
        default_factory=list, alias="accountingContradictions"
    )

    def to_domain(self) -> PdfDocument:
        """Convert to :class:`PdfDocument`."""
        return PdfDocument(
            text=self.text,
            page_map=dict(self.page_map),
            section_map=dict(self.section_map),
            heading_map=dict(self.heading_map),
            key_management_language=tuple(self.key_management_language),
            accounting_contradictions=tuple(self.accounting_contradictions),
        )


class FileParseResultDTO(BaseDTO):
    """Parse outcome of one uploaded file."""

    success: bool = True
    financial_statement: FinancialStatementDTO | None = Field(
        default=None, alias="financialStatement"
    )
    pdf_result: PdfResultDTO | None = Field(default=None, alias="pdfResult")
    xml_content: str | None = Field(default=None, alias="xmlContent")
    file_name: str | None = Field(default=None, alias="fileName")
    missing_fields: list[str] = Field(default_factory=list, alias="missingFields")
    error: str | None = None

    def to_domain(self) -> FileParseResult:
        """Convert to :class:`FileParseResult`."""
        return FileParseResult(
            success=self.success,
            financial_statement=(
                self.financial_statement.to_domain() if self.financial_statement else None
            ),
            pdf=self.pdf_result.to_domain() if self.pdf_result else None,
            file_name=self.file_name,
            missing_fields=tuple(self.missing_fields),
            error=self.error,
        )


__all__ = [
    "FinancialItemDTO",
    "FinancialStatementDTO",
    "PdfResultDTO",
    "FileParseResultDTO",
]
