# src/dart_insight/domain/enums/line_item.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Canonical line-item keys of a normalized statement.

Purpose:
    Name every line item the normalizer may place into the income, cash-flow
    or balance-sheet maps of a ``BundleFinancialStatement``. Keys are unique
    across the three sections.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class StatementSection(str, Enum):
    """Section of a normalized statement a line item lives in."""

    INCOME = "income"
    CASHFLOW = "cashflow"
    BALANCE = "balance"


class LineItem(str, Enum):
    """Canonical line-item key."""

    # Income statement
    REVENUE = "revenue"
    REVENUE_PREV_YEAR = "revenuePrevYear"
    OPERATING_INCOME = "operatingIncome"
    OPERATING_INCOME_PREV_YEAR = "operatingIncomePrevYear"
    NET_INCOME = "netIncome"
    NET_INCOME_PREV_YEAR = "netIncomePrevYear"
    EPS = "eps"
    DEPRECIATION_AND_AMORTIZATION = "depreciationAndAmortization"

    # Cash-flow statement
    OPERATING_CASH_FLOW = "operatingCashFlow"
    OCF_PREV_YEAR = "ocfPrevYear"
    CAPITAL_EXPENDITURE = "capitalExpenditure"
    CAPITAL_EXPENDITURE_PREV_YEAR = "capitalExpenditurePrevYear"
    CAPEX_PPE = "capexPPE"
    CAPEX_INTANGIBLE = "capexIntangible"
    FREE_CASH_FLOW = "freeCashFlow"
    INVESTING_CASH_FLOW = "investingCashFlow"
    FINANCING_CASH_FLOW = "financingCashFlow"

    # Balance sheet
    TOTAL_ASSETS = "totalAssets"
    TOTAL_LIABILITIES = "totalLiabilities"
    TOTAL_EQUITY = "totalEquity"
    OPERATING_ASSETS = "operatingAssets"
    NON_INTEREST_BEARING_LIABILITIES = "nonInterestBearingLiabilities"
    ACCOUNTS_RECEIVABLE = "accountsReceivable"
    INVENTORY = "inventory"
    CASH = "cash"
    INTEREST_BEARING_DEBT = "interestBearingDebt"
    EQUITY_PRIOR_END = "equityPriorEnd"
    CASH_PRIOR_END = "cashPriorEnd"
    DEBT_PRIOR_END = "debtPriorEnd"
    NET_CASH_PRIOR_END = "netCashPriorEnd"
    TOTAL_LIABILITIES_PRIOR_END = "totalLiabilitiesPriorEnd"


__all__ = ["StatementSection", "LineItem"]
