# tests/unit/domain/services/test_step_engine.py
from __future__ import annotations

from dart_insight.domain.entities.evidence import EvidenceRef
from dart_insight.domain.entities.industry import IndustryClassification
from dart_insight.domain.entities.report import ChartPlan, Checkpoint
from dart_insight.domain.enums.evidence import EvidenceSourceType, Trait
from dart_insight.domain.enums.report import Severity
from dart_insight.domain.services.derived_metrics import compute_derived_metrics
from dart_insight.domain.services.evidence_assertions import EVIDENCE_REQUIRED_MARKER
from dart_insight.domain.services.step_engine import (
    NOT_COMPUTABLE,
    attach_chart_plans,
    run_step04,
    run_step05,
    run_step09,
    run_steps,
)

BILLION = 1_000_000_000


def _statement(make_statement, **overrides):
    return make_statement(
        income={"revenue": 1000 * BILLION, "operatingIncome": 100 * BILLION},
        cashflow={"operatingCashFlow": 300 * BILLION, "capitalExpenditure": 100 * BILLION},
        balance={
            "totalEquity": 500 * BILLION,
            "interestBearingDebt": 200 * BILLION,
            "cash": 100 * BILLION,
            "accountsReceivable": 200 * BILLION,
            "inventory": 500 * BILLION,
        },
        **overrides,
    )


def _pdf(quote: str) -> EvidenceRef:
    return EvidenceRef(source_type=EvidenceSourceType.PDF, file_id="pdf", quote=quote)


def _ews(checkpoint_id: str) -> Checkpoint:
    return Checkpoint(
        id=checkpoint_id,
        title="점검",
        what_to_watch="무엇",
        why_it_matters="왜",
        next_quarter_action="다음",
        evidence=(_pdf("근거"),),
    )


def test_step04_profitability_cards(make_statement) -> None:
    statement = _statement(make_statement)
    derived = [compute_derived_metrics(statement).metrics]

    output = run_step04([statement], derived)

    assert output.step == 4
    assert [(c.label, c.value) for c in output.summary_cards] == [("ROIC", "12.5%"), ("영업이익률", "10.0%")]
    (finding,) = output.findings
    assert finding.id == "step04-roic"
    assert finding.text == "ROIC: 12.5%"
    assert finding.severity is Severity.INFO


def test_step04_without_data_is_not_computable() -> None:
    output = run_step04([], [])

    (card,) = output.summary_cards
    assert (card.label, card.value, card.note) == ("ROIC", NOT_COMPUTABLE, "근거 부족")
    assert output.findings == ()


def test_step05_cash_flow_cards_and_checkpoints(make_statement) -> None:
    statement = _statement(make_statement)
    ews = [_ews("ews-capex-spike"), _ews("ews-dso-increase"), _ews("ews-guidance")]

    output = run_step05([statement], [_pdf("현금흐름이 개선되었습니다.")], ews)

    assert [(c.label, c.value) for c in output.summary_cards] == [
        ("영업현금흐름", "3000.00억"),
        ("CAPEX", "1000.00억"),
        ("FCF", "2000.00억"),
    ]
    (finding,) = output.findings
    assert (finding.id, finding.text, finding.severity) == ("step05-fcf", "FCF: 2000.00억", Severity.INFO)
    assert [c.id for c in output.checkpoints] == ["step05-cashflow-trend", "ews-capex-spike"]


def test_step05_without_text_evidence_skips_trend_checkpoint(make_statement) -> None:
    output = run_step05([_statement(make_statement)], [], [])
    assert output.checkpoints == ()


def test_step05_without_statements() -> None:
    output = run_step05([], [], [])

    assert [c.value for c in output.summary_cards] == [NOT_COMPUTABLE] * 3
    assert output.findings == ()


def test_step09_forensic_findings(make_statement) -> None:
    evidence = [_pdf("대손충당금을 추가로 적립하였습니다."), _pdf("회계정책 변경에 따른 효과")]
    ews = [_ews("ews-fcf-negative"), _ews("ews-inventory-increase"), _ews("ews-quality-손상차손")]

    output = run_step09([_statement(make_statement)], evidence, ews)

    by_id = {f.id: f for f in output.findings}
    assert list(by_id) == ["step09-dso", "step09-inventory", "step09-provision", "step09-accounting-change"]
    assert by_id["step09-dso"].text == "DSO: 73일"
    assert by_id["step09-dso"].severity is Severity.INFO
    assert by_id["step09-inventory"].text == "재고 회전율: 2.0회"
    assert by_id["step09-inventory"].severity is Severity.WARN
    assert [c.id for c in output.checkpoints] == ["ews-inventory-increase", "ews-quality-손상차손"]


def test_step09_missing_inputs_are_marked(make_statement) -> None:
    statement = make_statement(income={"revenue": 100})

    output = run_step09([statement], [], [])

    dso, inventory = output.findings
    assert dso.text == f"DSO 계산 불가 (근거 부족) {EVIDENCE_REQUIRED_MARKER}"
    assert dso.evidence == ()
    assert dso.severity is Severity.WARN
    assert inventory.text.startswith("재고 회전율 계산 불가")


def test_attach_chart_plans_matches_step_numbers() -> None:
    outputs = (run_step04([], []), run_step05([], [], []))
    plan = ChartPlan(step=5)

    attached = attach_chart_plans(outputs, [plan, ChartPlan(step=3)])

    assert attached[0].chart_plan is None
    assert attached[1].chart_plan is plan


def test_run_steps_orders_outputs_and_collects_audits(make_statement, trait_candidates) -> None:
    statement = _statement(make_statement)
    industry = IndustryClassification(label="제조업", confidence=0.9, evidence=tuple(trait_candidates))

    result = run_steps(
        statements=[statement],
        derived=[compute_derived_metrics(statement).metrics],
        all_evidence=[],
        industry=industry,
        chart_plans=[ChartPlan(step=4)],
        audit=True,
    )

    assert [o.step for o in result.outputs] == [1, 4, 5, 9]
    assert result.outputs[1].chart_plan == ChartPlan(step=4)
    assert set(result.trait_audits) == set(Trait)
