# src/dart_insight/domain/services/metric_math.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Decimal helpers shared by metric computations.

Purpose:
    Provide named numeric constants, guarded division and the internal error
    types metric formulas raise. Callers map these errors to structured
    reason codes instead of letting them escape.

Layer:
    domain/services

Notes:
    - Pure domain logic: no logging, no I/O.
    - All numeric values are :class:`decimal.Decimal`.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, getcontext

# Increase precision slightly over default to reduce cascading rounding issues.
getcontext().prec = max(getcontext().prec, 34)

DECIMAL_ZERO = Decimal("0")
DECIMAL_ONE = Decimal("1")
DECIMAL_HUNDRED = Decimal("100")
DECIMAL_EPSILON = Decimal("1e-9")  # Guard for tiny denominators and trend neutrality.


# --------------------------------------------------------------------------- #
# Internal error types                                                        #
# --------------------------------------------------------------------------- #


class MetricComputationError(Exception):
    """Base class for metric computation errors."""


class MissingInputError(MetricComputationError):
    """Raised when a required input value is missing."""


class ZeroDenominatorError(MetricComputationError):
    """Raised when a ratio denominator is zero or too small to be stable."""


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #


def safe_divide(numerator: Decimal | None, denominator: Decimal | None) -> Decimal:
    """Divide two Decimals, raising on missing inputs or unstable denominators.

    Raises:
        MissingInputError: If either operand is ``None``.
        ZeroDenominatorError: If ``|denominator| <= DECIMAL_EPSILON``.
    """
    if numerator is None or denominator is None:
        raise MissingInputError("numerator and denominator must be present for division")

    if abs(denominator) <= DECIMAL_EPSILON:
        raise ZeroDenominatorError("denominator magnitude too small for stable ratio")

    try:
        return numerator / denominator
    except InvalidOperation as exc:
        raise MissingInputError(f"invalid decimal operation: {exc}") from exc


def percent(numerator: Decimal | None, denominator: Decimal | None) -> Decimal:
    """Return ``numerator / denominator * 100`` via :func:`safe_divide`."""
    return safe_divide(numerator, denominator) * DECIMAL_HUNDRED


__all__ = [
    "DECIMAL_ZERO",
    "DECIMAL_ONE",
    "DECIMAL_HUNDRED",
    "DECIMAL_EPSILON",
    "MetricComputationError",
    "MissingInputError",
    "ZeroDenominatorError",
    "safe_divide",
    "percent",
]
