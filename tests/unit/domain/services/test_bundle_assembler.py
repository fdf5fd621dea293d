# tests/unit/domain/services/test_bundle_assembler.py
from __future__ import annotations

import re

from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.parse_result import FileParseResult, PdfDocument
from dart_insight.domain.enums.evidence import EvidenceSourceType, Trait
from dart_insight.domain.services.bundle_assembler import (
    DEFAULT_COMPANY_NAME,
    assemble_bundle,
    classify_from_pdfs,
    new_run_id,
)

BILLION = 1_000_000_000


def _xbrl_result(make_raw_statement, **kwargs) -> FileParseResult:
    kwargs.setdefault("income", {"revenue": 1000 * BILLION, "operatingIncome": 100 * BILLION})
    kwargs.setdefault("cashflow", {"operatingCashFlow": 300 * BILLION, "capitalExpenditure": 100 * BILLION})
    return FileParseResult(financial_statement=make_raw_statement(**kwargs), file_name="report-0.xml")


def _pdf_result(trait_page_map) -> FileParseResult:
    pdf = PdfDocument(
        text="\n\n".join(trait_page_map.values()),
        page_map=trait_page_map,
        key_management_language=("수익성 개선에 집중하겠습니다",),
    )
    return FileParseResult(pdf=pdf, file_name="report.pdf")


def test_new_run_id_format() -> None:
    assert re.fullmatch(r"run-[0-9a-f]{12}", new_run_id())
    assert new_run_id() != new_run_id()


def test_empty_input_still_produces_every_step() -> None:
    bundle = assemble_bundle([]).bundle

    assert bundle.run_id.startswith("run-")
    assert bundle.company.name == DEFAULT_COMPANY_NAME
    assert bundle.company.industry is None
    assert bundle.period is None
    assert bundle.statements == ()
    assert [o.step for o in bundle.step_outputs] == [1, 4, 5, 9]
    assert bundle.warnings == ()


def test_assembles_statements_pdf_evidence_and_steps(
    make_raw_statement, make_file_ref, trait_page_map
) -> None:
    results = [
        _xbrl_result(make_raw_statement),
        _pdf_result(trait_page_map),
        FileParseResult(success=False, error="암호화된 파일"),
    ]
    files = [make_file_ref(0), make_file_ref(1, "report.pdf", "pdf")]

    result = assemble_bundle(results, files, company_name="테스트전자", ticker="000000", run_id="run-test")
    bundle = result.bundle

    assert bundle.run_id == "run-test"
    assert (bundle.company.name, bundle.company.ticker) == ("테스트전자", "000000")
    assert bundle.company.industry is not None
    assert bundle.period_label == "9M(YTD)"
    assert len(bundle.statements) == 1
    assert bundle.statements[0].key_metrics_compare is not None
    assert len(bundle.derived) == 1
    assert bundle.warnings == ("파일 3: 재무제표가 없습니다",)
    assert bundle.self_check is not None
    assert result.trait_audits == {}

    pdf_refs = [ref for ref in bundle.all_evidence if ref.source_type is EvidenceSourceType.PDF]
    assert pdf_refs
    assert {ref.file_id for ref in pdf_refs} == {"file-1-report-pdf"}
    assert any(ref.quote == "수익성 개선에 집중하겠습니다" for ref in pdf_refs)
    assert len(set(bundle.all_evidence)) == len(bundle.all_evidence)

    assert bundle.step(1) is not None
    assert bundle.step(4) is not None
    assert bundle.calculation_policy.eps_scope == "TOTAL"
    assert "Equity" in bundle.data_quality.missing_concepts


def test_calculation_policy_reflects_latest_statement(make_raw_statement) -> None:
    result = _xbrl_result(
        make_raw_statement,
        income={"revenue": 100, "netIncomeDiscontinued": 5},
        cashflow={"operatingCashFlow": 50, "capexPPE": 10},
    )

    policy = assemble_bundle([result], run_id="run-policy").bundle.calculation_policy

    assert policy.eps_scope == "CONTINUING"
    assert policy.capex_ppe_included
    assert not policy.capex_intangible_included


def test_supplied_industry_skips_pdf_classification(make_raw_statement, trait_page_map) -> None:
    industry = IndustryClassification(label="금융", confidence=1.0)

    bundle = assemble_bundle(
        [_xbrl_result(make_raw_statement), _pdf_result(trait_page_map)],
        industry=industry,
    ).bundle

    assert bundle.company.industry is industry


def test_audit_flag_collects_trait_audits(make_raw_statement, trait_page_map) -> None:
    result = assemble_bundle(
        [_xbrl_result(make_raw_statement), _pdf_result(trait_page_map)],
        audit=True,
    )

    assert set(result.trait_audits) == set(Trait)


def test_classify_from_pdfs(trait_page_map) -> None:
    assert classify_from_pdfs([]) is None

    industry = classify_from_pdfs([PdfDocument(text="", page_map=trait_page_map)])

    assert industry is not None
    assert industry.label.startswith("제조업")
