# tests/unit/domain/services/test_quarter_isolation.py
from __future__ import annotations

from decimal import Decimal

from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.enums.period import PeriodType
from dart_insight.domain.services.quarter_isolation import isolate_quarter, isolated_quarter_pair


def _ytd_anchors(make_statement):
    return {
        q: make_statement(index=q, quarter=q, income={"revenue": revenue})
        for q, revenue in ((1, 50_000_000_000), (2, 100_000_000_000), (3, 160_000_000_000))
    }


def test_isolates_quarter_from_adjacent_ytd_anchors(make_statement) -> None:
    anchors = _ytd_anchors(make_statement)

    isolated = isolate_quarter(anchors[3], anchors[2])

    assert isolated is not None
    assert (isolated.fiscal_year, isolated.quarter) == (2025, 3)
    assert isolated.value(LineItem.REVENUE) == Decimal("60000000000")
    assert isolated.value("operatingIncome") is None


def test_isolation_requires_adjacent_quarters_of_same_year(make_statement) -> None:
    anchors = _ytd_anchors(make_statement)
    last_year = make_statement(fiscal_year=2024, quarter=2, income={"revenue": 1})

    assert isolate_quarter(anchors[3], anchors[1]) is None
    assert isolate_quarter(anchors[3], last_year) is None


def test_isolation_requires_ytd_anchors(make_statement) -> None:
    standalone = make_statement(quarter=3, period_type=PeriodType.Q, income={"revenue": 60})
    ytd = make_statement(quarter=2, income={"revenue": 100})

    assert isolate_quarter(standalone, ytd) is None


def test_unit_mismatch_yields_none_not_zero(make_statement) -> None:
    later = make_statement(quarter=3, income={"revenue": 160}, unit="백만원")
    earlier = make_statement(quarter=2, income={"revenue": 100})

    isolated = isolate_quarter(later, earlier)

    assert isolated is not None
    assert isolated.value(LineItem.REVENUE) is None


def test_pair_needs_three_anchors(make_statement) -> None:
    anchors = _ytd_anchors(make_statement)
    all_three = list(anchors.values())

    pair = isolated_quarter_pair(anchors[3], all_three)

    assert pair is not None
    assert pair.current.value(LineItem.REVENUE) == Decimal("60000000000")
    assert pair.previous.value(LineItem.REVENUE) == Decimal("50000000000")
    assert pair.previous.quarter == 2

    assert isolated_quarter_pair(anchors[3], [anchors[3], anchors[2]]) is None
    assert isolated_quarter_pair(anchors[2], all_three) is None
