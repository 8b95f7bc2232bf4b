import math

import pytest

from smb_findraft.ledgers import (
    Asset,
    Books,
    Budget,
    CashProjection,
    Employee,
    Expense,
    Invoice,
    InvoiceItem,
)
from smb_findraft.reports import (
    balance_sheet,
    budget_variance_table,
    cash_balance,
    cash_flow_statement,
    convert,
    depreciation_table,
    estimated_tax,
    invoices_table,
    is_low_cash,
    payroll_table,
    profit_and_loss,
    statements_summary,
    variance,
)


@pytest.fixture
def books() -> Books:
    """Small set of books with one paid and one unpaid invoice."""
    b = Books()
    b.invoices.add(
        Invoice(client="Acme", items=(InvoiceItem("Consulting", 10, 150.0),), status="Paid")
    )
    b.invoices.add(Invoice(client="Globex", items=(InvoiceItem("Travel", 1, 300.0),)))
    b.budgets.add(Budget(period="2025-Q1", revenue=2000, cogs=200, opex=500))
    b.expenses.add(Expense(date="2025-01-05", amount=400.0, status="Approved"))
    b.expenses.add(Expense(date="2025-01-06", amount=100.0, status="Rejected"))
    b.expenses.add(Expense(date="2025-01-07", amount=50.0))
    b.cash.add(CashProjection(date="2025-02-01", inflow=1000, outflow=1500))
    return b


def test_profit_and_loss(books) -> None:
    pnl = profit_and_loss(books)

    assert pnl.revenue == 1500
    assert pnl.cogs == 200
    assert pnl.gross == 1300
    assert pnl.opex == 450
    assert pnl.net == 850


def test_balance_sheet(books) -> None:
    bs = balance_sheet(books)

    assert bs.cash == 1000
    assert bs.receivables == 300
    assert bs.payables == 450
    assert bs.equity == 850


def test_cash_flow_and_tax(books) -> None:
    pnl = profit_and_loss(books)
    cf = cash_flow_statement(pnl)

    assert cf.operations == 850
    assert cf.investing == 0 and cf.financing == 0
    assert cf.net_change == 850
    assert estimated_tax(pnl, 0.21) == pytest.approx(178.5)


def test_estimated_tax_is_never_negative() -> None:
    books = Books()
    books.expenses.add(Expense(date="2025-01-05", amount=400.0))

    assert estimated_tax(profit_and_loss(books), 0.21) == 0


def test_low_cash(books) -> None:
    assert cash_balance(books) == -500
    assert is_low_cash(books)
    assert not is_low_cash(Books())


def test_variance() -> None:
    assert variance(110, 100) == pytest.approx(0.1)
    assert variance(50, 0) == 0
    assert variance(50, math.nan) == 0


def test_convert_goes_through_usd() -> None:
    assert convert(100, "USD", "EUR") == pytest.approx(92)
    assert convert(155, "JPY", "USD") == pytest.approx(1)
    assert convert(100, "XYZ", "USD") == 100


def test_budget_variance_table(books) -> None:
    df = budget_variance_table(books)

    assert list(df.columns) == ["id", "period", "revenue", "cogs", "opex", "net_budget", "variance"]
    assert df.loc[0, "net_budget"] == 1300
    assert df.loc[0, "variance"] == pytest.approx((850 - 1300) / 1300)


def test_invoices_table_converts_to_presentation_currency(books) -> None:
    books.currency = "EUR"

    df = invoices_table(books)

    assert "total_EUR" in df.columns
    assert df.loc[0, "total"] == 1500
    assert df.loc[0, "total_EUR"] == pytest.approx(1380)


def test_payroll_and_depreciation_tables() -> None:
    books = Books()
    books.employees.add(Employee(name="Ana", salary=26000, pay_cycle="Bi-Weekly"))
    books.assets.add(Asset(name="Van", cost=30000, life_years=5))

    assert payroll_table(books).loc[0, "paycheck"] == 1000
    assert depreciation_table(books).loc[0, "depreciation_per_year"] == 6000


def test_empty_tables_keep_their_columns() -> None:
    books = Books()

    assert budget_variance_table(books).empty
    assert list(payroll_table(books).columns) == ["id", "name", "salary", "pay_cycle", "paycheck"]


def test_statements_summary(books) -> None:
    df = statements_summary(books)
    lines = df.set_index("line")["amount"]

    assert lines["Revenue"] == "$1,500.00"
    assert lines["Net Income"] == "$850.00"
    assert lines["Cash"] == "$1,000.00"
    assert lines["Estimated tax (21.0%)"] == "$178.50"
    assert set(df["statement"]) == {"Profit & Loss", "Balance Sheet", "Cash Flow", "Tax"}
