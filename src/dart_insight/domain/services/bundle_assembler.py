# src/dart_insight/domain/services/bundle_assembler.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Analysis bundle assembler.

Purpose:
    Wire the analysis core together for one run: normalize statements,
    derive metrics, resolve key-metric comparisons, classify the industry
    and extract PDF evidence, run the steps, plan charts and self-check.

Layer:
    domain/services

Notes:
    - Pure apart from generating a run id when none is supplied.
    - Partial input degrades into warnings and ``None`` values; the
      assembler itself raises nothing for missing data.
    - ``data_quality`` and ``calculation_policy`` describe the latest
      statement.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from dart_insight.domain.entities.analysis_bundle import (
    AnalysisBundle,
    CalculationPolicy,
    CompanyInfo,
    DataQuality,
    DerivedMetrics,
)
from dart_insight.domain.entities.evidence import EvidenceLocator, EvidenceRef
from dart_insight.domain.entities.financial_statement import (
    BundleFinancialStatement,
    RawFinancialStatement,
    UploadedFileRef,
)
from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.parse_result import FileParseResult, PdfDocument
from dart_insight.domain.enums.evidence import EvidenceSourceType, Trait
from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.services.chart_availability import resolve_chart_availability
from dart_insight.domain.services.compare_basis_resolver import attach_key_metrics
from dart_insight.domain.services.derived_metrics import compute_derived_metrics
from dart_insight.domain.services.evidence_selector import SelectionAudit
from dart_insight.domain.services.industry_classifier import classify_industry_from_pdf
from dart_insight.domain.services.pdf_evidence_extractor import (
    business_section_text,
    detect_business_pages,
    extract_pdf_evidence,
)
from dart_insight.domain.services.period_normalizer import normalize_statements
from dart_insight.domain.services.self_check import run_self_check
from dart_insight.domain.services.step_engine import run_steps

DEFAULT_COMPANY_NAME = "Unknown Company"
NET_INCOME_DISCONTINUED_KEY = "netIncomeDiscontinued"


@dataclass(frozen=True, slots=True)
class AssemblyResult:
    """Assembled bundle plus the step-1 selection audits (when requested)."""

    bundle: AnalysisBundle
    trait_audits: Mapping[Trait, SelectionAudit] = field(default_factory=dict)


def new_run_id() -> str:
    """Return a fresh run identifier such as ``run-3f2a...``."""
    return f"run-{uuid.uuid4().hex[:12]}"


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #


def _file_ref(result: FileParseResult, files: Sequence[UploadedFileRef], index: int) -> UploadedFileRef:
    if index < len(files):
        return files[index]
    return UploadedFileRef(file_name=result.file_name or f"file-{index}", index=index)


def _statement_evidence(statements: Iterable[BundleFinancialStatement]) -> list[EvidenceRef]:
    refs: list[EvidenceRef] = []
    for statement in statements:
        for section in (statement.income, statement.cashflow, statement.balance):
            for item in section.values():
                refs.extend(item.evidence)
    return refs


def _pdf_evidence(pdf: PdfDocument, file_id: str) -> list[EvidenceRef]:
    refs: list[EvidenceRef] = []
    candidates = extract_pdf_evidence(
        pdf.page_map,
        section_map=pdf.section_map,
        heading_map=pdf.heading_map,
        business_pages=detect_business_pages(pdf.page_map),
    )
    for candidate in candidates:
        refs.append(
            EvidenceRef(
                source_type=EvidenceSourceType.PDF,
                file_id=file_id,
                locator=EvidenceLocator(
                    page=candidate.page,
                    section=candidate.section,
                    heading=candidate.heading,
                    line_hint=candidate.location_hint,
                ),
                quote=candidate.raw_text,
            )
        )
    for phrase in (*pdf.key_management_language, *pdf.accounting_contradictions):
        if phrase.strip():
            refs.append(EvidenceRef(source_type=EvidenceSourceType.PDF, file_id=file_id, quote=phrase))
    return refs


def classify_from_pdfs(pdfs: Sequence[PdfDocument]) -> IndustryClassification | None:
    """Classify the industry from the business sections of ``pdfs``.

    Keyword scoring reads the business-section text of every PDF; evidence
    and page locations come from the PDF with the most pages.
    """
    if not pdfs:
        return None

    texts = [business_section_text(pdf.page_map) or pdf.text for pdf in pdfs]
    best = max(pdfs, key=lambda pdf: len(pdf.page_map))
    return classify_industry_from_pdf(
        "\n\n".join(text for text in texts if text),
        page_map=best.page_map,
        business_pages=detect_business_pages(best.page_map),
        section_map=best.section_map,
        heading_map=best.heading_map,
    )


def _calculation_policy(raw: RawFinancialStatement | None) -> CalculationPolicy:
    if raw is None:
        return CalculationPolicy()
    discontinued = raw.income_statement.get(NET_INCOME_DISCONTINUED_KEY)
    return CalculationPolicy(
        eps_scope="CONTINUING" if discontinued is not None else "TOTAL",
        capex_ppe_included=LineItem.CAPEX_PPE.value in raw.cash_flow_statement,
        capex_intangible_included=LineItem.CAPEX_INTANGIBLE.value in raw.cash_flow_statement,
    )


# --------------------------------------------------------------------------- #
# Entry point                                                                 #
# --------------------------------------------------------------------------- #


def assemble_bundle(
    parse_results: Sequence[FileParseResult],
    uploaded_files: Sequence[UploadedFileRef] = (),
    *,
    company_name: str = DEFAULT_COMPANY_NAME,
    ticker: str | None = None,
    industry: IndustryClassification | None = None,
    run_id: str | None = None,
    audit: bool = False,
) -> AssemblyResult:
    """Assemble the analysis bundle of one run.

    Args:
        parse_results: Parse outcome of every uploaded file.
        uploaded_files: Uploaded file identities, index-aligned with
            ``parse_results``.
        company_name: Display name of the company.
        ticker: Stock code, if known.
        industry: Precomputed classification; classified from the PDFs
            when omitted.
        run_id: Run identifier; generated when omitted.
        audit: Whether to collect step-1 selection audits.

    Returns:
        AssemblyResult with the bundle and any collected audits.
    """
    warnings: list[str] = []
    pairs: list[tuple[RawFinancialStatement, UploadedFileRef]] = []
    pdf_sources: list[tuple[PdfDocument, str]] = []

    for index, result in enumerate(parse_results):
        file_ref = _file_ref(result, uploaded_files, index)
        if result.pdf is not None:
            pdf_sources.append((result.pdf, file_ref.file_id))
        if result.financial_statement is None:
            if result.pdf is None:
                warnings.append(f"파일 {index + 1}: 재무제표가 없습니다")
            continue
        pairs.append((result.financial_statement, file_ref))

    normalized = normalize_statements(pairs)
    warnings.extend(normalized.warnings)

    derived: list[DerivedMetrics] = []
    data_quality = DataQuality()
    for position, statement in enumerate(normalized.statements):
        outcome = compute_derived_metrics(statement)
        warnings.extend(outcome.warnings)
        derived.append(outcome.metrics)
        if position == 0:
            data_quality = DataQuality(
                missing_concepts=outcome.missing_concepts,
                blocked_metrics=outcome.blocked_metrics,
            )

    statements = attach_key_metrics(normalized.statements)

    if industry is None:
        industry = classify_from_pdfs([pdf for pdf, _ in pdf_sources])

    evidence = _statement_evidence(statements)
    for pdf, file_id in pdf_sources:
        evidence.extend(_pdf_evidence(pdf, file_id))
    all_evidence = tuple(dict.fromkeys(evidence))

    chart_plans = resolve_chart_availability(statements, derived)
    steps = run_steps(
        statements=statements,
        derived=derived,
        all_evidence=all_evidence,
        industry=industry,
        chart_plans=chart_plans,
        audit=audit,
    )

    latest = statements[0] if statements else None
    raw_by_file = {ref.file_id: raw for raw, ref in pairs}
    latest_raw = raw_by_file.get(latest.file_id) if latest is not None else None

    bundle = AnalysisBundle(
        run_id=run_id or new_run_id(),
        company=CompanyInfo(name=company_name, ticker=ticker, industry=industry),
        period=latest.period if latest is not None else None,
        period_label=latest.period_label if latest is not None else None,
        statements=statements,
        derived=tuple(derived),
        step_outputs=steps.outputs,
        chart_plans=tuple(chart_plans),
        all_evidence=all_evidence,
        warnings=tuple(warnings),
        data_quality=data_quality,
        calculation_policy=_calculation_policy(latest_raw),
        self_check=run_self_check(
            latest.period if latest is not None else None,
            statements,
            derived,
        ),
    )
    return AssemblyResult(bundle=bundle, trait_audits=steps.trait_audits)


__all__ = [
    "DEFAULT_COMPANY_NAME",
    "AssemblyResult",
    "new_run_id",
    "classify_from_pdfs",
    "assemble_bundle",
]
