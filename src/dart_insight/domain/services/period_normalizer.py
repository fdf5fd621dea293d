# src/dart_insight/domain/services/period_normalizer.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Period & unit normalizer.

Purpose:
    Convert legacy parsed statements into canonical ``BundleFinancialStatement``
    records keyed by a ``PeriodKey`` with uniform money metadata, and return
    them sorted by period end date, latest first.

Layer:
    domain/services

Notes:
    - Pure domain logic: no logging, no I/O.
    - Statements whose end date cannot be resolved are dropped with a
      warning; nothing is raised for partial input.
    - A missing (or NaN) legacy value becomes ``None``. Reported zeros stay
      ``Decimal("0")``.
    - FCF is always ``OCF - |CAPEX|`` when both are present.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from dart_insight.domain.entities.evidence import EvidenceLocator, EvidenceRef
from dart_insight.domain.entities.financial_statement import (
    BundleFinancialItem,
    BundleFinancialStatement,
    MoneyMeta,
    RawFinancialItem,
    RawFinancialStatement,
    UploadedFileRef,
)
from dart_insight.domain.entities.period import PeriodCriteria, PeriodKey
from dart_insight.domain.enums.evidence import EvidenceSourceType
from dart_insight.domain.enums.line_item import LineItem, StatementSection
from dart_insight.domain.enums.period import Currency, MoneyUnit, PeriodType

MIN_VALID_YEAR = 2000
MAX_VALID_YEAR = 2100

# (start month, start day, end month, end day) of each calendar quarter.
_QUARTER_BOUNDS: dict[int, tuple[int, int, int, int]] = {
    1: (1, 1, 3, 31),
    2: (4, 1, 6, 30),
    3: (7, 1, 9, 30),
    4: (10, 1, 12, 31),
}

_YTD_LABEL_RE = re.compile(r"\d+m\s*\(ytd\)", re.IGNORECASE)
_QUARTER_LABEL_RE = re.compile(r"q\d+\(3m\)", re.IGNORECASE)


# --------------------------------------------------------------------------- #
# Item registry                                                               #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class _ItemSpec:
    """How one legacy item maps into a normalized section.

    Attributes:
        section: Target section of the normalized statement.
        item: Canonical line-item key (also the legacy key).
        tag: XBRL element cited in the evidence, if known.
        label: Korean label used in the evidence quote.
    """

    section: StatementSection
    item: LineItem
    tag: str | None
    label: str


_INCOME = StatementSection.INCOME
_CASHFLOW = StatementSection.CASHFLOW
_BALANCE = StatementSection.BALANCE

_ITEM_SPECS: tuple[_ItemSpec, ...] = (
    _ItemSpec(_INCOME, LineItem.REVENUE, "ifrs-full:Revenue", "매출"),
    _ItemSpec(_INCOME, LineItem.REVENUE_PREV_YEAR, "ifrs-full:Revenue", "작년 같은 기간 매출"),
    _ItemSpec(_INCOME, LineItem.OPERATING_INCOME, "ifrs-full:OperatingIncome", "영업이익"),
    _ItemSpec(
        _INCOME,
        LineItem.OPERATING_INCOME_PREV_YEAR,
        "ifrs-full:OperatingIncome",
        "작년 같은 기간 영업이익",
    ),
    _ItemSpec(_INCOME, LineItem.NET_INCOME, "ifrs-full:ProfitLoss", "당기순이익"),
    _ItemSpec(
        _INCOME,
        LineItem.NET_INCOME_PREV_YEAR,
        "ifrs-full:ProfitLoss",
        "작년 같은 기간 당기순이익",
    ),
    _ItemSpec(_INCOME, LineItem.EPS, "ifrs-full:BasicEarningsLossPerShare", "EPS"),
    _ItemSpec(
        _INCOME,
        LineItem.DEPRECIATION_AND_AMORTIZATION,
        "ifrs-full:DepreciationAndAmortisationExpense",
        "감가상각비",
    ),
    _ItemSpec(
        _CASHFLOW,
        LineItem.OPERATING_CASH_FLOW,
        "ifrs-full:CashFlowsFromOperatingActivities",
        "영업현금흐름",
    ),
    _ItemSpec(
        _CASHFLOW,
        LineItem.OCF_PREV_YEAR,
        "ifrs-full:CashFlowsFromOperatingActivities",
        "작년 같은 기간 영업현금흐름",
    ),
    _ItemSpec(
        _CASHFLOW,
        LineItem.CAPITAL_EXPENDITURE,
        "ifrs-full:PaymentsToAcquirePropertyPlantAndEquipment",
        "CAPEX",
    ),
    _ItemSpec(
        _CASHFLOW,
        LineItem.CAPITAL_EXPENDITURE_PREV_YEAR,
        "ifrs-full:PaymentsToAcquirePropertyPlantAndEquipment",
        "작년 같은 기간 CAPEX",
    ),
    _ItemSpec(
        _CASHFLOW,
        LineItem.CAPEX_PPE,
        "ifrs-full:PaymentsToAcquirePropertyPlantAndEquipment",
        "CAPEX PPE",
    ),
    _ItemSpec(
        _CASHFLOW,
        LineItem.CAPEX_INTANGIBLE,
        "ifrs-full:PaymentsToAcquireIntangibleAssets",
        "CAPEX Intangible",
    ),
    _ItemSpec(
        _CASHFLOW,
        LineItem.INVESTING_CASH_FLOW,
        "ifrs-full:CashFlowsFromInvestingActivities",
        "투자현금흐름",
    ),
    _ItemSpec(
        _CASHFLOW,
        LineItem.FINANCING_CASH_FLOW,
        "ifrs-full:CashFlowsFromFinancingActivities",
        "재무현금흐름",
    ),
    _ItemSpec(_BALANCE, LineItem.TOTAL_ASSETS, "ifrs-full:Assets", "자산총계"),
    _ItemSpec(_BALANCE, LineItem.TOTAL_LIABILITIES, "ifrs-full:Liabilities", "부채총계"),
    _ItemSpec(_BALANCE, LineItem.TOTAL_EQUITY, "ifrs-full:Equity", "자본총계"),
    _ItemSpec(_BALANCE, LineItem.OPERATING_ASSETS, None, "영업자산"),
    _ItemSpec(_BALANCE, LineItem.NON_INTEREST_BEARING_LIABILITIES, None, "비이자발생부채"),
    _ItemSpec(_BALANCE, LineItem.ACCOUNTS_RECEIVABLE, "ifrs-full:TradeReceivables", "매출채권"),
    _ItemSpec(_BALANCE, LineItem.INVENTORY, "ifrs-full:Inventories", "재고자산"),
    _ItemSpec(_BALANCE, LineItem.CASH, "ifrs-full:CashAndCashEquivalents", "현금및현금성자산"),
    _ItemSpec(_BALANCE, LineItem.INTEREST_BEARING_DEBT, "ifrs-full:Borrowings", "이자발생부채"),
    _ItemSpec(_BALANCE, LineItem.EQUITY_PRIOR_END, "ifrs-full:Equity", "전기말 자본총계"),
    _ItemSpec(
        _BALANCE,
        LineItem.CASH_PRIOR_END,
        "ifrs-full:CashAndCashEquivalents",
        "전기말 현금및현금성자산",
    ),
    _ItemSpec(_BALANCE, LineItem.DEBT_PRIOR_END, "ifrs-full:Borrowings", "전기말 이자발생부채"),
    _ItemSpec(_BALANCE, LineItem.NET_CASH_PRIOR_END, None, "전기말 순현금/순차입금"),
    _ItemSpec(
        _BALANCE,
        LineItem.TOTAL_LIABILITIES_PRIOR_END,
        "ifrs-full:Liabilities",
        "전기말 부채총계",
    ),
)


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Normalized statements (latest first) and the warnings raised on the way."""

    statements: tuple[BundleFinancialStatement, ...]
    warnings: tuple[str, ...]


# --------------------------------------------------------------------------- #
# Money metadata                                                              #
# --------------------------------------------------------------------------- #


def resolve_money_meta(unit: str | None) -> MoneyMeta:
    """Map a free-form legacy unit string to :class:`MoneyMeta`.

    Unknown units default to KRW / 원.
    """
    raw = (unit or "KRW").strip()
    lowered = raw.lower()
    is_usd = "usd" in lowered or "달러" in raw

    if is_usd:
        if "million" in lowered or "백만" in raw:
            money_unit = MoneyUnit.MILLION_USD
        elif "thousand" in lowered or "천" in raw:
            money_unit = MoneyUnit.THOUSAND_USD
        else:
            money_unit = MoneyUnit.USD
        return MoneyMeta(currency=Currency.USD, unit=money_unit)

    if "million" in lowered or "백만" in raw:
        money_unit = MoneyUnit.MILLION_WON
    elif "억" in raw:
        money_unit = MoneyUnit.HUNDRED_MILLION_WON
    else:
        money_unit = MoneyUnit.WON
    return MoneyMeta(currency=Currency.KRW, unit=money_unit)


# --------------------------------------------------------------------------- #
# Period resolution                                                           #
# --------------------------------------------------------------------------- #


def _is_valid_year(year: int | None) -> bool:
    return year is not None and MIN_VALID_YEAR <= year <= MAX_VALID_YEAR


def _resolve_period_type(raw: RawFinancialStatement) -> PeriodType:
    period_type = raw.period_type or (PeriodType.Q if raw.quarter > 0 else PeriodType.FY)

    label = (raw.period_type_label or "").strip().lower()
    if not label:
        return period_type
    if "ytd" in label or "누적" in label or _YTD_LABEL_RE.search(label):
        return PeriodType.YTD
    if _QUARTER_LABEL_RE.search(label) or raw.quarter > 0:
        return PeriodType.Q
    if label == "fy" or "연간" in label:
        return PeriodType.FY
    return period_type


def _calendar_dates(
    year: int,
    period_type: PeriodType,
    quarter: int,
) -> tuple[date | None, date | None]:
    """Return calendar start/end dates for a fiscal year and period type."""
    if period_type is PeriodType.FY:
        return date(year, 1, 1), date(year, 12, 31)

    bounds = _QUARTER_BOUNDS.get(quarter)
    if bounds is None:
        return None, None
    start_month, start_day, end_month, end_day = bounds
    end = date(year, end_month, end_day)
    if period_type is PeriodType.YTD:
        return date(year, 1, 1), end
    return date(year, start_month, start_day), end


def _quarter_from_month(month: int) -> int:
    return (month - 1) // 3 + 1


def resolve_period_key(raw: RawFinancialStatement) -> PeriodKey | None:
    """Resolve the canonical period key of a legacy statement.

    Explicit dates win. A YTD statement with only an end date starts on
    January 1st of the end year. Without dates, a valid fiscal year yields
    calendar dates for the resolved period type.

    Returns:
        The period key, or ``None`` when no end date can be resolved or the
        explicit dates are inconsistent.
    """
    period_type = _resolve_period_type(raw)

    start_date: date | None = None
    end_date: date | None = None
    if raw.start_date is not None and raw.end_date is not None:
        start_date, end_date = raw.start_date, raw.end_date
    elif raw.end_date is not None:
        end_date = raw.end_date
        if period_type is PeriodType.YTD:
            start_date = date(end_date.year, 1, 1)
    elif _is_valid_year(raw.fiscal_year):
        assert raw.fiscal_year is not None
        start_date, end_date = _calendar_dates(raw.fiscal_year, period_type, raw.quarter)

    if end_date is None:
        return None
    if start_date is not None and start_date > end_date:
        return None

    fiscal_year: int | None = None
    if _is_valid_year(raw.fiscal_year):
        fiscal_year = raw.fiscal_year
    elif _is_valid_year(end_date.year):
        fiscal_year = end_date.year

    quarter = raw.quarter if 1 <= raw.quarter <= 4 else _quarter_from_month(end_date.month)

    return PeriodKey(
        period_type=period_type,
        fiscal_year=fiscal_year,
        quarter=quarter,
        start_date=start_date,
        end_date=end_date,
    )


def period_label(period: PeriodKey, explicit_label: str | None = None) -> str:
    """Return a display label such as ``9M(YTD)``, ``Q3(3M)`` or ``FY``."""
    if explicit_label:
        return explicit_label
    if period.period_type is PeriodType.YTD and period.quarter is not None:
        return f"{period.quarter * 3}M(YTD)"
    if period.period_type is PeriodType.Q and period.quarter is not None:
        return f"Q{period.quarter}(3M)"
    return period.period_type.value


def criteria_of(statement: BundleFinancialStatement) -> PeriodCriteria:
    """Return the same-criteria key of a statement.

    Currency and unit come from the first income item (falling back to the
    first cash-flow item), defaulting to KRW / 원.
    """
    meta = MoneyMeta()
    for section in (statement.income, statement.cashflow):
        first = next(iter(section.values()), None)
        if first is not None:
            meta = first.meta
            break
    return PeriodCriteria(
        period_type=statement.period.period_type,
        is_cumulative=statement.period.is_cumulative,
        currency=meta.currency,
        unit=meta.unit,
    )


# --------------------------------------------------------------------------- #
# Item conversion                                                             #
# --------------------------------------------------------------------------- #


def _raw_section(raw: RawFinancialStatement, spec: _ItemSpec) -> Mapping[str, RawFinancialItem]:
    if spec.section is StatementSection.INCOME:
        return raw.income_statement
    if spec.section is StatementSection.CASHFLOW:
        return raw.cash_flow_statement
    return raw.balance_sheet


def _raw_item(raw: RawFinancialStatement, spec: _ItemSpec) -> RawFinancialItem | None:
    found = _raw_section(raw, spec).get(spec.item.value)
    if found is None and spec.item is LineItem.OPERATING_CASH_FLOW:
        # Older parsers report OCF inside the income statement block.
        found = raw.income_statement.get(spec.item.value)
    return found


def _xbrl_evidence(file_id: str, tag: str | None, quote: str) -> EvidenceRef:
    return EvidenceRef(
        source_type=EvidenceSourceType.XBRL,
        file_id=file_id,
        locator=EvidenceLocator(tag=tag),
        quote=quote,
    )


def _convert_item(legacy: RawFinancialItem, spec: _ItemSpec, file_id: str) -> BundleFinancialItem:
    value = legacy.value
    if value is not None and value.is_nan():
        value = None
    quote = f"{spec.label}: {value if value is not None else 'N/A'}"
    return BundleFinancialItem(
        name=legacy.name,
        value=value,
        meta=resolve_money_meta(legacy.unit),
        evidence=(_xbrl_evidence(file_id, spec.tag, quote),),
    )


def _free_cash_flow(
    cashflow: Mapping[str, BundleFinancialItem],
    reported: RawFinancialItem | None,
    file_id: str,
) -> BundleFinancialItem | None:
    """Compute FCF as ``OCF - |CAPEX|``, else keep a reported FCF."""
    ocf = cashflow.get(LineItem.OPERATING_CASH_FLOW.value)
    capex = cashflow.get(LineItem.CAPITAL_EXPENDITURE.value)
    if (
        ocf is not None
        and capex is not None
        and ocf.value is not None
        and capex.value is not None
        and ocf.meta == capex.meta
    ):
        fcf = ocf.value - abs(capex.value)
        return BundleFinancialItem(
            name="잉여현금흐름",
            value=fcf,
            meta=ocf.meta,
            evidence=(_xbrl_evidence(file_id, None, f"FCF: {fcf} (계산값)"),),
        )

    if reported is None:
        return None
    value = reported.value
    if value is not None and value.is_nan():
        value = None
    return BundleFinancialItem(
        name=reported.name,
        value=value,
        meta=resolve_money_meta(reported.unit),
        evidence=(_xbrl_evidence(file_id, None, f"FCF: {value} (계산값)"),),
    )


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def normalize_statement(
    raw: RawFinancialStatement,
    file_ref: UploadedFileRef,
) -> BundleFinancialStatement | None:
    """Normalize one legacy statement.

    Returns:
        The normalized statement, or ``None`` when its end date cannot be
        resolved.
    """
    period = resolve_period_key(raw)
    if period is None:
        return None

    file_id = file_ref.file_id
    sections: dict[StatementSection, dict[str, BundleFinancialItem]] = {
        StatementSection.INCOME: {},
        StatementSection.CASHFLOW: {},
        StatementSection.BALANCE: {},
    }
    for spec in _ITEM_SPECS:
        legacy = _raw_item(raw, spec)
        if legacy is not None:
            sections[spec.section][spec.item.value] = _convert_item(legacy, spec, file_id)

    cashflow = sections[StatementSection.CASHFLOW]
    fcf = _free_cash_flow(
        cashflow,
        raw.cash_flow_statement.get(LineItem.FREE_CASH_FLOW.value),
        file_id,
    )
    if fcf is not None:
        cashflow[LineItem.FREE_CASH_FLOW.value] = fcf

    return BundleFinancialStatement(
        period=period,
        income=sections[StatementSection.INCOME],
        cashflow=cashflow,
        balance=sections[StatementSection.BALANCE],
        scope=raw.scope,
        file_id=file_id,
        period_label=period_label(period, raw.period_type_label),
    )


def normalize_statements(
    pairs: Iterable[tuple[RawFinancialStatement, UploadedFileRef]],
) -> NormalizationResult:
    """Normalize statements and sort them by end date, latest first.

    Args:
        pairs: ``(raw statement, uploaded file)`` pairs.

    Returns:
        NormalizationResult with ``statements[0]`` being the latest statement.
    """
    statements: list[BundleFinancialStatement] = []
    warnings: list[str] = []

    for raw, file_ref in pairs:
        normalized = normalize_statement(raw, file_ref)
        if normalized is None:
            warnings.append(
                f"파일 {file_ref.index + 1}: 기간 종료일을 확인할 수 없어 재무제표를 제외했습니다"
            )
            continue
        statements.append(normalized)

    statements.sort(key=_end_date_key, reverse=True)
    return NormalizationResult(statements=tuple(statements), warnings=tuple(warnings))


def _end_date_key(statement: BundleFinancialStatement) -> date:
    assert statement.period.end_date is not None
    return statement.period.end_date


__all__ = [
    "MIN_VALID_YEAR",
    "MAX_VALID_YEAR",
    "NormalizationResult",
    "resolve_money_meta",
    "resolve_period_key",
    "period_label",
    "criteria_of",
    "normalize_statement",
    "normalize_statements",
]
