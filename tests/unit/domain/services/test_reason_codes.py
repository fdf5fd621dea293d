# tests/unit/domain/services/test_reason_codes.py
from __future__ import annotations

import pytest

from dart_insight.domain.enums.compare import CompareBasis, CompareBasisBadge, CompareReasonCode
from dart_insight.domain.services.reason_codes import (
    REASON_LABELS_KOR,
    format_compare_reason_kor,
    migrate_legacy_reason_code,
    to_compare_basis_badge,
)


def test_every_reason_has_a_korean_label() -> None:
    assert set(REASON_LABELS_KOR) == set(CompareReasonCode)
    assert format_compare_reason_kor(CompareReasonCode.UNIT_MISMATCH) == "단위 불일치"
    assert format_compare_reason_kor(None) == ""


@pytest.mark.parametrize(
    ("basis", "badge"),
    [
        (CompareBasis.YOY, CompareBasisBadge.YOY),
        (CompareBasis.QOQ, CompareBasisBadge.QOQ),
        (CompareBasis.VS_PRIOR_END, CompareBasisBadge.PRIOR_END),
        (CompareBasis.NONE, CompareBasisBadge.UNAVAILABLE),
    ],
)
def test_compare_basis_badge(basis: CompareBasis, badge: CompareBasisBadge) -> None:
    assert to_compare_basis_badge(basis) is badge


@pytest.mark.parametrize(
    ("raw", "current_missing", "expected"),
    [
        (None, False, None),
        ("", False, None),
        (CompareReasonCode.SCOPE_MISMATCH, False, CompareReasonCode.SCOPE_MISMATCH),
        ("PARSER_ERROR", False, CompareReasonCode.PARSER_ERROR),
        (" UNIT_MISMATCH ", False, CompareReasonCode.UNIT_MISMATCH),
        ("COMPARE_MISSING_PRIOR_END", False, CompareReasonCode.MISSING_PRIOR_END_INSTANT),
        ("compare_missing_current", False, CompareReasonCode.MISSING_CURRENT_VALUE),
        ("전년 데이터 없음", False, CompareReasonCode.MISSING_PREV_YEAR_VALUE),
        ("전년 데이터 없음", True, CompareReasonCode.MISSING_CURRENT_VALUE),
    ],
)
def test_migrate_legacy_reason_code(
    raw: str | CompareReasonCode | None,
    current_missing: bool,
    expected: CompareReasonCode | None,
) -> None:
    assert migrate_legacy_reason_code(raw, current_missing=current_missing) is expected
