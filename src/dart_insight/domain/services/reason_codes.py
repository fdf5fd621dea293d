# src/dart_insight/domain/services/reason_codes.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Compare reason-code presentation and legacy migration.

Purpose:
    Map the closed ``CompareReasonCode`` enum to Korean display labels and
    badges, and migrate legacy free-form reason strings into the enum once,
    at the boundary where stored comparison JSON is ingested.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Mapping

from dart_insight.domain.enums.compare import CompareBasis, CompareBasisBadge, CompareReasonCode

REASON_LABELS_KOR: Mapping[CompareReasonCode, str] = {
    CompareReasonCode.MISSING_PREV_YEAR_VALUE: "전년동기 값 미확보",
    CompareReasonCode.MISSING_PRIOR_END_INSTANT: "전기말 잔액 미확보",
    CompareReasonCode.MISSING_CURRENT_VALUE: "현재 값 미확보",
    CompareReasonCode.SCOPE_MISMATCH: "스코프 불일치",
    CompareReasonCode.UNIT_MISMATCH: "단위 불일치",
    CompareReasonCode.PERIOD_MISMATCH: "기간 매칭 실패",
    CompareReasonCode.MULTIPLE_CANDIDATES: "후보가 너무 많음",
    CompareReasonCode.PARSER_ERROR: "파서 오류",
    CompareReasonCode.NOT_APPLICABLE: "해당 없음",
}

LEGACY_REASON_CODES: Mapping[str, CompareReasonCode] = {
    "COMPARE_MISSING_CURRENT": CompareReasonCode.MISSING_CURRENT_VALUE,
    "COMPARE_MISSING_PREV": CompareReasonCode.MISSING_PREV_YEAR_VALUE,
    "COMPARE_MISSING_PREV_YEAR": CompareReasonCode.MISSING_PREV_YEAR_VALUE,
    "COMPARE_MISSING_PRIOR_END": CompareReasonCode.MISSING_PRIOR_END_INSTANT,
}


def format_compare_reason_kor(reason: CompareReasonCode | None) -> str:
    """Return the Korean label of ``reason`` (empty string for ``None``)."""
    if reason is None:
        return ""
    return REASON_LABELS_KOR[reason]


def to_compare_basis_badge(basis: CompareBasis) -> CompareBasisBadge:
    """Map a compare basis to its display badge."""
    if basis is CompareBasis.VS_PRIOR_END:
        return CompareBasisBadge.PRIOR_END
    if basis is CompareBasis.NONE:
        return CompareBasisBadge.UNAVAILABLE
    return CompareBasisBadge(basis.value)


def default_reason_code(*, current_missing: bool) -> CompareReasonCode:
    """Return the reason used when a NONE comparison carries no usable code."""
    if current_missing:
        return CompareReasonCode.MISSING_CURRENT_VALUE
    return CompareReasonCode.MISSING_PREV_YEAR_VALUE


def migrate_legacy_reason_code(
    raw: str | CompareReasonCode | None,
    *,
    current_missing: bool = False,
) -> CompareReasonCode | None:
    """Normalize a stored reason code into the closed enum.

    Args:
        raw: Stored value: an enum member, a current code string, a legacy
            ``COMPARE_*`` string, or ``None``.
        current_missing: Whether the stored comparison lacks a current value;
            decides the code for unrecognized legacy strings.

    Returns:
        The enum member, or ``None`` when ``raw`` is empty.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, CompareReasonCode):
        return raw

    text = raw.strip()
    if text in CompareReasonCode.__members__:
        return CompareReasonCode[text]

    legacy = LEGACY_REASON_CODES.get(text.upper())
    if legacy is not None:
        return legacy
    return default_reason_code(current_missing=current_missing)


__all__ = [
    "REASON_LABELS_KOR",
    "LEGACY_REASON_CODES",
    "format_compare_reason_kor",
    "to_compare_basis_badge",
    "default_reason_code",
    "migrate_legacy_reason_code",
]
