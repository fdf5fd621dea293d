# tests/unit/application/use_cases/test_bundle_mapping.py
from __future__ import annotations

from dart_insight.application.use_cases.analysis.bundle_mapping import (
    bundle_to_dto,
    compare_to_dto,
    statement_to_dto,
)
from dart_insight.domain.entities.key_metric_compare import KeyMetricCompare
from dart_insight.domain.entities.parse_result import FileParseResult
from dart_insight.domain.enums.compare import CompareBasis, CompareReasonCode
from dart_insight.domain.services.bundle_assembler import assemble_bundle
from dart_insight.domain.services.compare_basis_resolver import attach_key_metrics


def test_statement_decimals_become_strings(make_statement) -> None:
    (statement,) = attach_key_metrics([make_statement(income={"revenue": 1234.5})])

    dto = statement_to_dto(statement)

    assert dto.period_label == "9M(YTD)"
    revenue = dto.income["revenue"]
    assert revenue.value == "1234.5"
    assert (revenue.currency, revenue.unit) == ("KRW", "원")
    assert revenue.evidence[0].file_id == "file-0-report-0-xml"
    assert dto.key_metrics_compare is not None
    assert dto.key_metrics_compare["revenue"].reason_code is CompareReasonCode.MISSING_PREV_YEAR_VALUE


def test_compare_to_dto_keeps_reason_detail() -> None:
    compare = KeyMetricCompare.unavailable(CompareReasonCode.MISSING_PRIOR_END_INSTANT, "Missing: priorEnd equity")

    dto = compare_to_dto(compare)

    assert dto.compare_basis is CompareBasis.NONE
    assert dto.reason_detail == "Missing: priorEnd equity"
    assert dto.prev_value is None


def test_bundle_dto_serializes_to_json(make_raw_statement) -> None:
    bundle = assemble_bundle(
        [FileParseResult(financial_statement=make_raw_statement(income={"revenue": 100}))],
        run_id="run-json",
    ).bundle

    dto = bundle_to_dto(bundle, step1_report_text="--- 산업 및 경쟁환경 ---")
    payload = dto.model_dump(mode="json")

    assert payload["run_id"] == "run-json"
    assert payload["period"]["end_date"] == "2025-09-30"
    assert [step["step"] for step in payload["step_outputs"]] == [1, 4, 5, 9]
    assert payload["step1_report_text"] == "--- 산업 및 경쟁환경 ---"
    assert payload["calculation_policy"]["fcf_definition"] == "OCF_MINUS_CAPEX"
    assert payload["self_check"]["summary"].startswith("Self-Check")
