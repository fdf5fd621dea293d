# tests/unit/domain/services/test_metric_math.py
from __future__ import annotations

from decimal import Decimal

import pytest

from dart_insight.domain.services.metric_math import (
    MetricComputationError,
    MissingInputError,
    ZeroDenominatorError,
    percent,
    safe_divide,
)


def test_percent() -> None:
    assert percent(Decimal("25"), Decimal("200")) == Decimal("12.5")


def test_safe_divide_raises_typed_errors() -> None:
    with pytest.raises(MissingInputError):
        safe_divide(None, Decimal("1"))
    with pytest.raises(ZeroDenominatorError):
        safe_divide(Decimal("1"), Decimal("0"))
    assert issubclass(ZeroDenominatorError, MetricComputationError)
