# src/dart_insight/domain/services/compare_basis_resolver.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Compare-basis resolver.

Purpose:
    Decide, per key metric and per statement, which comparison basis applies
    (YOY, VS_PRIOR_END, QOQ or NONE) and compute the previous value, delta,
    delta percentage and trend.

Layer:
    domain/services

Notes:
    - Pure domain logic: no logging, no I/O.
    - Resolution is total: every metric on every statement receives exactly
      one basis, and NONE always carries a closed ``CompareReasonCode``.
    - Priority (first match wins):
        1. YOY against a fiscal-year-minus-one statement of the same period
           type and quarter, falling back to the statement's own
           ``*PrevYear`` items.
        2. VS_PRIOR_END for balance-sheet instants, against the nearest
           earlier statement, falling back to the ``*PriorEnd`` items.
        3. QOQ when two adjacent standalone quarters can be isolated from
           three YTD anchors.
        4. NONE with the first blocking reason observed on the way.
    - The ``MetricSpec`` registry is the single source of truth for metric
      inputs, formulas and QoQ eligibility.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from dart_insight.domain.entities.financial_statement import BundleFinancialStatement
from dart_insight.domain.entities.key_metric_compare import KeyMetricCompare
from dart_insight.domain.enums.compare import (
    CompareBasis,
    CompareReasonCode,
    KeyMetric,
    MetricKind,
    Trend,
)
from dart_insight.domain.enums.line_item import LineItem
from dart_insight.domain.services.metric_math import (
    DECIMAL_EPSILON,
    DECIMAL_HUNDRED,
    DECIMAL_ZERO,
    MissingInputError,
    ZeroDenominatorError,
    percent,
)
from dart_insight.domain.services.quarter_isolation import isolated_quarter_pair

ValueGetter = Callable[[LineItem], Decimal | None]

# Same-period prior-year items reported inside the current filing.
PREV_YEAR_ITEMS: Mapping[LineItem, LineItem] = {
    LineItem.REVENUE: LineItem.REVENUE_PREV_YEAR,
    LineItem.OPERATING_INCOME: LineItem.OPERATING_INCOME_PREV_YEAR,
    LineItem.NET_INCOME: LineItem.NET_INCOME_PREV_YEAR,
    LineItem.OPERATING_CASH_FLOW: LineItem.OCF_PREV_YEAR,
    LineItem.CAPITAL_EXPENDITURE: LineItem.CAPITAL_EXPENDITURE_PREV_YEAR,
}

# Prior-period-end balances reported inside the current filing.
PRIOR_END_ITEMS: Mapping[LineItem, LineItem] = {
    LineItem.TOTAL_EQUITY: LineItem.EQUITY_PRIOR_END,
    LineItem.CASH: LineItem.CASH_PRIOR_END,
    LineItem.INTEREST_BEARING_DEBT: LineItem.DEBT_PRIOR_END,
    LineItem.TOTAL_LIABILITIES: LineItem.TOTAL_LIABILITIES_PRIOR_END,
}

_PRIOR_END_LABELS: Mapping[LineItem, str] = {
    LineItem.TOTAL_EQUITY: "priorEnd equity",
    LineItem.CASH: "priorEnd cash",
    LineItem.INTEREST_BEARING_DEBT: "priorEnd debt",
    LineItem.TOTAL_LIABILITIES: "priorEnd liabilities",
}


# --------------------------------------------------------------------------- #
# Metric formulas                                                             #
# --------------------------------------------------------------------------- #


def _require(get: ValueGetter, item: LineItem) -> Decimal:
    value = get(item)
    if value is None:
        raise MissingInputError(f"{item.value} is missing")
    return value


def _revenue(get: ValueGetter) -> Decimal:
    return _require(get, LineItem.REVENUE)


def _operating_margin(get: ValueGetter) -> Decimal:
    return percent(_require(get, LineItem.OPERATING_INCOME), _require(get, LineItem.REVENUE))


def _net_margin(get: ValueGetter) -> Decimal:
    return percent(_require(get, LineItem.NET_INCOME), _require(get, LineItem.REVENUE))


def _roe(get: ValueGetter) -> Decimal:
    return percent(_require(get, LineItem.NET_INCOME), _require(get, LineItem.TOTAL_EQUITY))


def _ocf(get: ValueGetter) -> Decimal:
    return _require(get, LineItem.OPERATING_CASH_FLOW)


def _capex(get: ValueGetter) -> Decimal:
    return _require(get, LineItem.CAPITAL_EXPENDITURE)


def _fcf(get: ValueGetter) -> Decimal:
    fcf = get(LineItem.FREE_CASH_FLOW)
    if fcf is not None:
        return fcf
    ocf = _require(get, LineItem.OPERATING_CASH_FLOW)
    capex = _require(get, LineItem.CAPITAL_EXPENDITURE)
    return ocf - abs(capex)


def _equity(get: ValueGetter) -> Decimal:
    return _require(get, LineItem.TOTAL_EQUITY)


def _cash(get: ValueGetter) -> Decimal:
    return _require(get, LineItem.CASH)


def _net_cash(get: ValueGetter) -> Decimal:
    return _require(get, LineItem.CASH) - _require(get, LineItem.INTEREST_BEARING_DEBT)


def _debt_ratio(get: ValueGetter) -> Decimal:
    return percent(_require(get, LineItem.TOTAL_LIABILITIES), _require(get, LineItem.TOTAL_EQUITY))


# --------------------------------------------------------------------------- #
# Registry                                                                    #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class MetricSpec:
    """Specification of one key metric.

    Attributes:
        metric:
            Key metric identifier.
        kind:
            FLOW (period) or INSTANT (balance-sheet point in time).
        inputs:
            Line items the formula reads.
        formula:
            Pure computation over a value getter. Raises
            ``MissingInputError`` or ``ZeroDenominatorError``.
        qoq_eligible:
            Whether isolated standalone quarters may be compared.
        unit_items:
            Items whose money metadata must match between the current and
            the comparison statement. Empty for unit-free ratios.
        prior_end_direct:
            Item reporting the prior-end value of the metric directly.
    """

    metric: KeyMetric
    kind: MetricKind
    inputs: tuple[LineItem, ...]
    formula: Callable[[ValueGetter], Decimal]
    qoq_eligible: bool
    unit_items: tuple[LineItem, ...] = ()
    prior_end_direct: LineItem | None = None


METRIC_SPECS: Mapping[KeyMetric, MetricSpec] = {
    spec.metric: spec
    for spec in (
        MetricSpec(
            KeyMetric.REVENUE,
            MetricKind.FLOW,
            (LineItem.REVENUE,),
            _revenue,
            qoq_eligible=True,
            unit_items=(LineItem.REVENUE,),
        ),
        MetricSpec(
            KeyMetric.OPERATING_MARGIN,
            MetricKind.FLOW,
            (LineItem.OPERATING_INCOME, LineItem.REVENUE),
            _operating_margin,
            qoq_eligible=True,
        ),
        MetricSpec(
            KeyMetric.NET_MARGIN,
            MetricKind.FLOW,
            (LineItem.NET_INCOME, LineItem.REVENUE),
            _net_margin,
            qoq_eligible=True,
        ),
        MetricSpec(
            KeyMetric.ROE,
            MetricKind.FLOW,
            (LineItem.NET_INCOME, LineItem.TOTAL_EQUITY),
            _roe,
            qoq_eligible=False,
        ),
        MetricSpec(
            KeyMetric.OCF,
            MetricKind.FLOW,
            (LineItem.OPERATING_CASH_FLOW,),
            _ocf,
            qoq_eligible=True,
            unit_items=(LineItem.OPERATING_CASH_FLOW,),
        ),
        MetricSpec(
            KeyMetric.CAPEX,
            MetricKind.FLOW,
            (LineItem.CAPITAL_EXPENDITURE,),
            _capex,
            qoq_eligible=True,
            unit_items=(LineItem.CAPITAL_EXPENDITURE,),
        ),
        MetricSpec(
            KeyMetric.FCF,
            MetricKind.FLOW,
            (LineItem.OPERATING_CASH_FLOW, LineItem.CAPITAL_EXPENDITURE),
            _fcf,
            qoq_eligible=True,
            unit_items=(LineItem.OPERATING_CASH_FLOW,),
        ),
        MetricSpec(
            KeyMetric.EQUITY,
            MetricKind.INSTANT,
            (LineItem.TOTAL_EQUITY,),
            _equity,
            qoq_eligible=False,
            unit_items=(LineItem.TOTAL_EQUITY,),
        ),
        MetricSpec(
            KeyMetric.CASH,
            MetricKind.INSTANT,
            (LineItem.CASH,),
            _cash,
            qoq_eligible=False,
            unit_items=(LineItem.CASH,),
        ),
        MetricSpec(
            KeyMetric.NET_CASH,
            MetricKind.INSTANT,
            (LineItem.CASH, LineItem.INTEREST_BEARING_DEBT),
            _net_cash,
            qoq_eligible=False,
            unit_items=(LineItem.CASH,),
            prior_end_direct=LineItem.NET_CASH_PRIOR_END,
        ),
        MetricSpec(
            KeyMetric.REVENUE_YOY,
            MetricKind.FLOW,
            (LineItem.REVENUE,),
            _revenue,
            qoq_eligible=False,
            unit_items=(LineItem.REVENUE,),
        ),
        MetricSpec(
            KeyMetric.DEBT_RATIO,
            MetricKind.INSTANT,
            (LineItem.TOTAL_LIABILITIES, LineItem.TOTAL_EQUITY),
            _debt_ratio,
            qoq_eligible=False,
        ),
    )
}


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #


def _try_formula(spec: MetricSpec, get: ValueGetter) -> Decimal | None:
    try:
        return spec.formula(get)
    except (MissingInputError, ZeroDenominatorError):
        return None


def _trend(delta: Decimal) -> Trend:
    if abs(delta) <= DECIMAL_EPSILON:
        return Trend.NEUTRAL
    return Trend.UP if delta > DECIMAL_ZERO else Trend.DOWN


def build_compare(basis: CompareBasis, current: Decimal, prev: Decimal) -> KeyMetricCompare:
    """Build an available comparison of ``current`` against ``prev``."""
    delta = current - prev
    delta_pct = None if prev == DECIMAL_ZERO else delta / abs(prev) * DECIMAL_HUNDRED
    return KeyMetricCompare(
        compare_basis=basis,
        prev_value=prev,
        delta=delta,
        delta_pct=delta_pct,
        trend=_trend(delta),
    )


def _units_match(
    spec: MetricSpec,
    current: BundleFinancialStatement,
    other: BundleFinancialStatement,
) -> bool:
    for item in spec.unit_items:
        mine = current.item(item)
        theirs = other.item(item)
        if mine is None or theirs is None:
            continue
        if mine.meta.currency != theirs.meta.currency or mine.meta.unit != theirs.meta.unit:
            return False
    return True


def _prev_year_getter(statement: BundleFinancialStatement) -> ValueGetter:
    def get(item: LineItem) -> Decimal | None:
        mapped = PREV_YEAR_ITEMS.get(item)
        return statement.value(mapped) if mapped is not None else None

    return get


def _prior_end_getter(
    statement: BundleFinancialStatement,
    prior: BundleFinancialStatement | None,
) -> ValueGetter:
    def get(item: LineItem) -> Decimal | None:
        if prior is not None:
            value = prior.value(item)
            if value is not None:
                return value
        mapped = PRIOR_END_ITEMS.get(item)
        return statement.value(mapped) if mapped is not None else None

    return get


def _nearest_earlier(
    statement: BundleFinancialStatement,
    statements: Sequence[BundleFinancialStatement],
) -> BundleFinancialStatement | None:
    end = statement.period.end_date
    if end is None:
        return None
    best: BundleFinancialStatement | None = None
    for other in statements:
        other_end = other.period.end_date
        if other is statement or other_end is None or other_end >= end:
            continue
        if best is None or (best.period.end_date is not None and other_end > best.period.end_date):
            best = other
    return best


# --------------------------------------------------------------------------- #
# Resolution                                                                  #
# --------------------------------------------------------------------------- #


class _Resolution:
    """Per-metric resolution state: blocking reasons seen so far."""

    def __init__(self) -> None:
        self.blocking: list[CompareReasonCode] = []

    def block(self, reason: CompareReasonCode) -> None:
        if reason not in self.blocking:
            self.blocking.append(reason)


def _resolve_yoy(
    spec: MetricSpec,
    statement: BundleFinancialStatement,
    statements: Sequence[BundleFinancialStatement],
    current: Decimal,
    state: _Resolution,
) -> KeyMetricCompare | None:
    period = statement.period
    if period.fiscal_year is not None:
        target_year = period.fiscal_year - 1
        values: list[Decimal] = []
        for other in statements:
            other_period = other.period
            if other is statement or other_period.fiscal_year != target_year:
                continue
            if other_period.quarter != period.quarter:
                continue
            if other_period.period_type is not period.period_type:
                state.block(CompareReasonCode.PERIOD_MISMATCH)
                continue
            if other.scope is not statement.scope:
                state.block(CompareReasonCode.SCOPE_MISMATCH)
                continue
            if not _units_match(spec, statement, other):
                state.block(CompareReasonCode.UNIT_MISMATCH)
                continue
            value = _try_formula(spec, other.value)
            if value is not None and value not in values:
                values.append(value)

        if len(values) == 1:
            return build_compare(CompareBasis.YOY, current, values[0])
        if len(values) > 1:
            state.block(CompareReasonCode.MULTIPLE_CANDIDATES)
            return None

    fallback = _try_formula(spec, _prev_year_getter(statement))
    if fallback is not None:
        return build_compare(CompareBasis.YOY, current, fallback)
    return None


def _resolve_prior_end(
    spec: MetricSpec,
    statement: BundleFinancialStatement,
    statements: Sequence[BundleFinancialStatement],
    current: Decimal,
    state: _Resolution,
) -> KeyMetricCompare | None:
    prior = _nearest_earlier(statement, statements)
    if prior is not None:
        if prior.scope is not statement.scope:
            state.block(CompareReasonCode.SCOPE_MISMATCH)
            prior = None
        elif not _units_match(spec, statement, prior):
            state.block(CompareReasonCode.UNIT_MISMATCH)
            prior = None

    getter = _prior_end_getter(statement, prior)
    value = _try_formula(spec, getter)
    if value is None and spec.prior_end_direct is not None:
        value = statement.value(spec.prior_end_direct)
    if value is None:
        return None
    return build_compare(CompareBasis.VS_PRIOR_END, current, value)


def _resolve_qoq(
    spec: MetricSpec,
    statement: BundleFinancialStatement,
    statements: Sequence[BundleFinancialStatement],
) -> KeyMetricCompare | None:
    if not spec.qoq_eligible:
        return None
    pair = isolated_quarter_pair(statement, statements)
    if pair is None:
        return None
    current = _try_formula(spec, pair.current.value)
    previous = _try_formula(spec, pair.previous.value)
    if current is None or previous is None:
        return None
    return build_compare(CompareBasis.QOQ, current, previous)


def _missing_prior_end_detail(
    spec: MetricSpec,
    statement: BundleFinancialStatement,
    statements: Sequence[BundleFinancialStatement],
) -> str | None:
    getter = _prior_end_getter(statement, _nearest_earlier(statement, statements))
    missing = [
        _PRIOR_END_LABELS[item]
        for item in spec.inputs
        if item in _PRIOR_END_LABELS and getter(item) is None
    ]
    if not missing or len(spec.inputs) < 2:
        return None
    return "Missing: " + ", ".join(missing)


def _resolve_metric(
    spec: MetricSpec,
    statement: BundleFinancialStatement,
    statements: Sequence[BundleFinancialStatement],
) -> KeyMetricCompare:
    try:
        current = spec.formula(statement.value)
    except MissingInputError:
        return KeyMetricCompare.unavailable(CompareReasonCode.MISSING_CURRENT_VALUE)
    except ZeroDenominatorError:
        return KeyMetricCompare.unavailable(CompareReasonCode.NOT_APPLICABLE)

    state = _Resolution()

    yoy = _resolve_yoy(spec, statement, statements, current, state)
    if yoy is not None:
        return yoy

    if spec.kind is MetricKind.INSTANT:
        prior_end = _resolve_prior_end(spec, statement, statements, current, state)
        if prior_end is not None:
            return prior_end

    qoq = _resolve_qoq(spec, statement, statements)
    if qoq is not None:
        return qoq

    if state.blocking:
        return KeyMetricCompare.unavailable(state.blocking[0])
    if spec.kind is MetricKind.INSTANT:
        return KeyMetricCompare.unavailable(
            CompareReasonCode.MISSING_PRIOR_END_INSTANT,
            _missing_prior_end_detail(spec, statement, statements),
        )
    return KeyMetricCompare.unavailable(CompareReasonCode.MISSING_PREV_YEAR_VALUE)


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def resolve_key_metrics(
    statement: BundleFinancialStatement,
    statements: Sequence[BundleFinancialStatement],
) -> dict[KeyMetric, KeyMetricCompare]:
    """Resolve all twelve key-metric comparisons of ``statement``.

    Args:
        statement: Statement whose metrics are compared.
        statements: All normalized statements of the run (may include
            ``statement`` itself).

    Returns:
        Mapping with one entry per :class:`KeyMetric`, in declaration order.
    """
    results: dict[KeyMetric, KeyMetricCompare] = {}
    for metric in KeyMetric:
        spec = METRIC_SPECS[metric]
        try:
            results[metric] = _resolve_metric(spec, statement, statements)
        except ArithmeticError as exc:
            results[metric] = KeyMetricCompare.unavailable(
                CompareReasonCode.PARSER_ERROR,
                f"{type(exc).__name__}: {exc}",
            )
    return results


def attach_key_metrics(
    statements: Sequence[BundleFinancialStatement],
) -> tuple[BundleFinancialStatement, ...]:
    """Return new statements, each carrying its resolved comparisons."""
    return tuple(
        statement.with_compare(resolve_key_metrics(statement, statements))
        for statement in statements
    )


__all__ = [
    "PREV_YEAR_ITEMS",
    "PRIOR_END_ITEMS",
    "MetricSpec",
    "METRIC_SPECS",
    "build_compare",
    "resolve_key_metrics",
    "attach_key_metrics",
]
