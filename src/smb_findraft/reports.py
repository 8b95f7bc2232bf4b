# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Simplified financial statements derived from the bookkeeping ledgers.

These statements are intentionally coarse: they give a small business a
quick view of its position from what was entered in the ledgers, not a
GAAP-compliant set of accounts.

- Profit & loss:
    revenue = total of paid invoices
    cogs    = total budgeted COGS
    opex    = total of non-rejected expenses
    gross   = revenue - cogs
    operating = gross - opex, and net income = operating income
- Balance sheet:
    cash        = projected cash balance + paid invoices
    receivables = unpaid invoices
    payables    = non-rejected expenses
    equity      = cash + receivables - payables
- Cash flow statement:
    operations = net income, no investing or financing flows.

Budget variance compares every budget's net result to the single actual
net income of the P&L (not to a period-matched actual).
"""

import math
from dataclasses import dataclass

import pandas as pd

from .ledgers import Books
from .normalize import format_currency, format_percent

# Static FX table, USD base (units of currency per USD).
FX_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 155.0,
}
CURRENCIES: tuple[str, ...] = tuple(FX_RATES)


@dataclass(frozen=True)
class ProfitAndLoss:
    revenue: float
    cogs: float
    opex: float
    gross: float
    operating: float
    net: float


@dataclass(frozen=True)
class BalanceSheet:
    cash: float
    receivables: float
    payables: float
    equity: float


@dataclass(frozen=True)
class CashFlowStatement:
    operations: float
    investing: float
    financing: float
    net_change: float


def convert(amount: float, from_ccy: str, to_ccy: str) -> float:
    """Convert an amount between currencies through USD (unknown code = 1)."""
    usd = amount / (FX_RATES.get(from_ccy) or 1.0)
    return usd * (FX_RATES.get(to_ccy) or 1.0)


def variance(actual: float, budget: float) -> float:
    """Relative variance of actual vs budget; 0 when the budget is 0 or NaN."""
    if not math.isfinite(budget) or budget == 0:
        return 0.0
    return (actual - budget) / budget


def _paid_invoices_total(books: Books) -> float:
    return sum(inv.total for inv in books.invoices if inv.status == "Paid")


def _unpaid_invoices_total(books: Books) -> float:
    return sum(inv.total for inv in books.invoices if inv.status != "Paid")


def _active_expenses_total(books: Books) -> float:
    return sum(e.amount for e in books.expenses if e.status != "Rejected")


def cash_balance(books: Books) -> float:
    """Sum of projected inflows minus outflows."""
    return sum(p.net for p in books.cash)


def is_low_cash(books: Books) -> bool:
    return cash_balance(books) < 0


def profit_and_loss(books: Books) -> ProfitAndLoss:
    revenue = _paid_invoices_total(books)
    cogs = sum(b.cogs for b in books.budgets)
    opex = _active_expenses_total(books)
    gross = revenue - cogs
    operating = gross - opex
    return ProfitAndLoss(
        revenue=revenue,
        cogs=cogs,
        opex=opex,
        gross=gross,
        operating=operating,
        net=operating,
    )


def balance_sheet(books: Books) -> BalanceSheet:
    cash = cash_balance(books) + _paid_invoices_total(books)
    receivables = _unpaid_invoices_total(books)
    payables = _active_expenses_total(books)
    return BalanceSheet(
        cash=cash,
        receivables=receivables,
        payables=payables,
        equity=cash + receivables - payables,
    )


def cash_flow_statement(pnl: ProfitAndLoss) -> CashFlowStatement:
    operations = pnl.net
    investing = 0.0
    financing = 0.0
    return CashFlowStatement(
        operations=operations,
        investing=investing,
        financing=financing,
        net_change=operations + investing + financing,
    )


def estimated_tax(pnl: ProfitAndLoss, rate: float) -> float:
    """Corporate tax estimate on current net income (never negative)."""
    return max(0.0, pnl.net * rate)


def budget_variance_table(books: Books) -> pd.DataFrame:
    """One row per budget: budget lines, net budget and variance vs actual net."""
    actual_net = profit_and_loss(books).net
    rows = [
        {
            "id": eid,
            "period": b.period,
            "revenue": b.revenue,
            "cogs": b.cogs,
            "opex": b.opex,
            "net_budget": b.net,
            "variance": variance(actual_net, b.net),
        }
        for eid, b in books.budgets.items()
    ]
    return pd.DataFrame(
        rows,
        columns=["id", "period", "revenue", "cogs", "opex", "net_budget", "variance"],
    )


def invoices_table(books: Books) -> pd.DataFrame:
    """Invoices with their total converted to the presentation currency."""
    ccy = books.currency
    rows = [
        {
            "id": eid,
            "client": inv.client,
            "date": inv.date,
            "due": inv.due,
            "currency": inv.currency,
            "total": inv.total,
            f"total_{ccy}": convert(inv.total, inv.currency, ccy),
            "status": inv.status,
        }
        for eid, inv in books.invoices.items()
    ]
    return pd.DataFrame(
        rows,
        columns=["id", "client", "date", "due", "currency", "total", f"total_{ccy}", "status"],
    )


def payroll_table(books: Books) -> pd.DataFrame:
    rows = [
        {
            "id": eid,
            "name": e.name,
            "salary": e.salary,
            "pay_cycle": e.pay_cycle,
            "paycheck": e.paycheck,
        }
        for eid, e in books.employees.items()
    ]
    return pd.DataFrame(rows, columns=["id", "name", "salary", "pay_cycle", "paycheck"])


def depreciation_table(books: Books) -> pd.DataFrame:
    rows = [
        {
            "id": eid,
            "name": a.name,
            "cost": a.cost,
            "life_years": a.life_years,
            "start": a.start,
            "depreciation_per_year": a.depreciation_per_year,
        }
        for eid, a in books.assets.items()
    ]
    return pd.DataFrame(
        rows,
        columns=["id", "name", "cost", "life_years", "start", "depreciation_per_year"],
    )


def statements_summary(books: Books) -> pd.DataFrame:
    """
    Render P&L, balance sheet, cash flow and tax estimate as one table.

    Amounts are formatted with two decimals in the books' presentation
    currency (ledger amounts are entered in that currency).
    """
    ccy = books.currency
    pnl = profit_and_loss(books)
    bs = balance_sheet(books)
    cf = cash_flow_statement(pnl)
    tax_label = format_percent(books.tax_rate)

    lines = [
        ("Profit & Loss", "Revenue", pnl.revenue),
        ("Profit & Loss", "COGS", pnl.cogs),
        ("Profit & Loss", "Gross Profit", pnl.gross),
        ("Profit & Loss", "Operating Expenses", pnl.opex),
        ("Profit & Loss", "Net Income", pnl.net),
        ("Balance Sheet", "Cash", bs.cash),
        ("Balance Sheet", "Accounts Receivable", bs.receivables),
        ("Balance Sheet", "Accounts Payable", bs.payables),
        ("Balance Sheet", "Equity", bs.equity),
        ("Cash Flow", "Cash from Operations", cf.operations),
        ("Cash Flow", "Investing", cf.investing),
        ("Cash Flow", "Financing", cf.financing),
        ("Cash Flow", "Net Change", cf.net_change),
        ("Tax", f"Estimated tax ({tax_label})", estimated_tax(pnl, books.tax_rate)),
    ]

    return pd.DataFrame(
        [
            {
                "statement": statement,
                "line": line,
                "amount": format_currency(amount, ccy, decimals=2),
            }
            for statement, line, amount in lines
        ],
        columns=["statement", "line", "amount"],
    )
