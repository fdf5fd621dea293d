# tests/unit/domain/services/test_evidence_assertions.py
from __future__ import annotations

from dart_insight.domain.entities.evidence import EvidenceLocator, EvidenceRef
from dart_insight.domain.enums.evidence import EvidenceSourceType
from dart_insight.domain.enums.report import EvidencePolicy, FindingCategory, Severity
from dart_insight.domain.services.evidence_assertions import (
    checkpoints_with_evidence,
    create_checkpoint,
    create_finding,
    findings_with_evidence,
)

_REF = EvidenceRef(
    source_type=EvidenceSourceType.XBRL,
    file_id="file-0-report-xml",
    locator=EvidenceLocator(tag="ifrs-full:Revenue"),
    quote="매출: 100",
)


def test_finding_with_evidence_keeps_severity() -> None:
    finding = create_finding("f-1", FindingCategory.CASH_FLOW, Severity.RISK, "FCF 음수", [_REF])

    assert finding is not None
    assert finding.severity is Severity.RISK
    assert finding.text == "FCF 음수"
    assert finding.evidence == (_REF,)


def test_finding_without_evidence_under_skip_is_dropped() -> None:
    assert (
        create_finding("f-1", FindingCategory.RISK, Severity.INFO, "text", [], EvidencePolicy.SKIP)
        is None
    )


def test_finding_without_evidence_under_warn_is_marked() -> None:
    finding = create_finding(
        "f-1",
        FindingCategory.RISK,
        Severity.INFO,
        "재고 증가",
        [],
        reason_code="EVIDENCE_INSUFFICIENT",
    )

    assert finding is not None
    assert finding.severity is Severity.WARN
    assert finding.text == "재고 증가 (근거 필요)"
    assert finding.evidence == ()
    assert finding.reason_code == "EVIDENCE_INSUFFICIENT"


def test_checkpoint_without_evidence_marks_every_field() -> None:
    checkpoint = create_checkpoint("c-1", "제목", "관찰", "이유", "다음", [], confirm_question="질문?")

    assert checkpoint is not None
    assert checkpoint.title == "제목 (근거 필요)"
    assert checkpoint.what_to_watch == "관찰 (근거 필요)"
    assert checkpoint.why_it_matters == "이유 (근거 필요)"
    assert checkpoint.next_quarter_action == "다음 (근거 필요)"
    assert checkpoint.confirm_question == "질문?"

    assert create_checkpoint("c-1", "t", "w", "y", "n", [], EvidencePolicy.SKIP) is None


def test_filters_drop_uncited_artifacts() -> None:
    cited = create_finding("a", FindingCategory.RISK, Severity.INFO, "a", [_REF])
    uncited = create_finding("b", FindingCategory.RISK, Severity.INFO, "b", [])
    assert findings_with_evidence([cited, uncited, None]) == [cited]

    checkpoint = create_checkpoint("c", "t", "w", "y", "n", [_REF])
    assert checkpoints_with_evidence([checkpoint, None]) == [checkpoint]
