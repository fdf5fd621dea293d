# src/dart_insight/domain/exceptions/analysis.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Analysis pipeline exceptions.

Summary:
    Expected degradations (missing values, unavailable comparisons, withheld
    evidence) are modeled as values. These exceptions cover the remaining
    cases: malformed input and unexpected pipeline failures.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any

from dart_insight.domain.exceptions.base import DomainError

GENERIC_ANALYSIS_ERROR_MESSAGE = "분석 중 오류"


class AnalysisError(DomainError):
    """Base class for analysis-related errors."""

    code = "ANALYSIS_ERROR"


class InvalidParseResultError(AnalysisError):
    """Raised when a parse-result payload cannot be read or validated."""

    code = "INVALID_PARSE_RESULT"


class AnalysisPipelineError(AnalysisError):
    """Raised when bundle assembly fails unexpectedly.

    The message is always the generic Korean error text; internals travel in
    ``details`` only.
    """

    code = "ANALYSIS_PIPELINE_ERROR"

    def __init__(self, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(GENERIC_ANALYSIS_ERROR_MESSAGE, details=details)


__all__ = [
    "GENERIC_ANALYSIS_ERROR_MESSAGE",
    "AnalysisError",
    "InvalidParseResultError",
    "AnalysisPipelineError",
]
