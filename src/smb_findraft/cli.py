# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB FinDraft.

The CLI is intentionally thin: it does not implement parsing, KPI or
bookkeeping logic itself. It loads the configuration, opens the key-value
store and orchestrates the underlying modules based on command-line
arguments.


Statements workflow
-------------------

1) Import a statements CSV into the workspace:

    python -m smb_findraft.cli ingest data/input/statements.csv

   The CSV is expected to look like:

    Period,Revenue,COGS,OperatingExpenses,NetIncome
    2024-Q1,100000,40000,30000,20000
    2024-Q2,120000,45000,33000,27000

   Detected columns and their roles are printed. An empty file or a file
   with a header but no rows is rejected and the previously imported table
   is kept.

2) Show the KPI dashboard of the latest period:

    python -m smb_findraft.cli kpis

3) Generate the MD&A draft, optionally export it and copy it:

    python -m smb_findraft.cli draft --output data/output --copy

   When ``--output`` is a directory, the draft is written to
   ``mdna-draft.txt`` inside it. Clipboard failures are reported but do not
   stop the command.


Ledgers
-------

Ledgers are identity-keyed collections (expenses, invoices, budgets, cash,
payables, receivables, goals, employees, assets):

    python -m smb_findraft.cli ledger list expenses
    python -m smb_findraft.cli ledger add expenses date=2025-01-10 amount=120 vendor=Acme
    python -m smb_findraft.cli ledger update expenses 1a2b3c4d amount=130
    python -m smb_findraft.cli ledger remove expenses 1a2b3c4d
    python -m smb_findraft.cli ledger approve 1a2b3c4d
    python -m smb_findraft.cli ledger reject 1a2b3c4d
    python -m smb_findraft.cli ledger pay 9z8y7x6w

Invoices are created with repeated ``--item DESC:QTY:PRICE`` options:

    python -m smb_findraft.cli ledger add invoices client=Globex date=2025-02-01 \\
        --item "Consulting:10:150" --item "Travel:1:300"


Reports and settings
--------------------

    python -m smb_findraft.cli report
    python -m smb_findraft.cli settings --currency EUR --tax-rate 0.25 --done filings


Configuration
-------------

By default the CLI reads ``smb_findraft_config.toml`` in the current
directory (defaults apply when it does not exist). Use ``--config PATH`` to
point to another file. See ``config.py`` for the available settings.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import AppConfig, load_app_config
from .csv_table import IngestionError, read_statements_csv
from .export import copy_to_clipboard, export_draft
from .kpis import kpi_dashboard
from .ledgers import (
    COMPLIANCE_ITEMS,
    CURRENCY_KEY,
    LEDGER_TYPES,
    Books,
    InvoiceItem,
    approve_expense,
    mark_invoice_paid,
    record_from_strings,
    reject_expense,
)
from .mapping import describe_roles, resolve_roles
from .reports import (
    CURRENCIES,
    budget_variance_table,
    depreciation_table,
    invoices_table,
    is_low_cash,
    payroll_table,
    statements_summary,
)
from .storage import SQLiteStore
from .workspace import DataWorkspace

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 5


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_findraft.cli",
        description=(
            "SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs. "
            "Reads a financial statements CSV, computes KPIs, drafts an MD&A "
            "narrative and keeps simple bookkeeping ledgers."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_findraft and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'smb_findraft_config.toml' in the current directory is used "
            "when present."
        ),
    )
    ap.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    # ingest
    ingest = subparsers.add_parser(
        "ingest",
        help="Import a financial statements CSV into the workspace.",
    )
    ingest.add_argument("csv_path", metavar="CSV_PATH", help="Statements CSV file.")

    # kpis
    subparsers.add_parser("kpis", help="Show the KPI dashboard of the latest period.")

    # draft
    draft = subparsers.add_parser("draft", help="Generate the MD&A draft.")
    draft.add_argument(
        "--output",
        dest="output",
        nargs="?",
        const="",
        default=None,
        help=(
            "Export the draft to this file or directory. Without a value, the "
            "configured draft output directory is used."
        ),
    )
    draft.add_argument(
        "--copy",
        action="store_true",
        help="Copy the draft to the system clipboard.",
    )

    # ledger
    ledger = subparsers.add_parser("ledger", help="Manage bookkeeping ledgers.")
    ledger_sub = ledger.add_subparsers(
        dest="ledger_command",
        metavar="ledger-command",
    )

    ledger_list = ledger_sub.add_parser("list", help="List the entries of a ledger.")
    ledger_list.add_argument("name", choices=list(LEDGER_TYPES))

    ledger_add = ledger_sub.add_parser("add", help="Add an entry to a ledger.")
    ledger_add.add_argument("name", choices=list(LEDGER_TYPES))
    ledger_add.add_argument(
        "fields",
        nargs="*",
        metavar="FIELD=VALUE",
        help="Field values of the new entry.",
    )
    ledger_add.add_argument(
        "--item",
        dest="items",
        action="append",
        default=[],
        metavar="DESC:QTY:PRICE",
        help="Invoice line item (invoices only, repeatable).",
    )

    ledger_update = ledger_sub.add_parser("update", help="Update a ledger entry.")
    ledger_update.add_argument("name", choices=list(LEDGER_TYPES))
    ledger_update.add_argument("entry_id", metavar="ID")
    ledger_update.add_argument("fields", nargs="+", metavar="FIELD=VALUE")

    ledger_remove = ledger_sub.add_parser("remove", help="Remove a ledger entry.")
    ledger_remove.add_argument("name", choices=list(LEDGER_TYPES))
    ledger_remove.add_argument("entry_id", metavar="ID")

    for action, help_text in (
        ("approve", "Approve an expense."),
        ("reject", "Reject an expense."),
        ("pay", "Mark an invoice as paid."),
    ):
        p = ledger_sub.add_parser(action, help=help_text)
        p.add_argument("entry_id", metavar="ID")

    # report
    subparsers.add_parser(
        "report",
        help="Show P&L, balance sheet, cash flow, tax and budget variance.",
    )

    # settings
    settings = subparsers.add_parser("settings", help="Show or change settings.")
    settings.add_argument("--currency", choices=list(CURRENCIES))
    settings.add_argument("--tax-rate", dest="tax_rate", type=float)
    settings.add_argument(
        "--done",
        action="append",
        default=[],
        choices=list(COMPLIANCE_ITEMS),
        help="Mark a compliance item as done (repeatable).",
    )
    settings.add_argument(
        "--undone",
        action="append",
        default=[],
        choices=list(COMPLIANCE_ITEMS),
        help="Mark a compliance item as not done (repeatable).",
    )

    return ap


def _parse_assignments(pairs: list[str]) -> dict[str, str]:
    """Parse FIELD=VALUE arguments into a dictionary."""
    out: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Expected FIELD=VALUE, got {pair!r}")
        key, value = pair.split("=", 1)
        out[key.strip()] = value
    return out


def _parse_invoice_item(raw: str) -> InvoiceItem:
    parts = raw.rsplit(":", 2)
    if len(parts) != 3:
        raise ValueError(f"Expected DESC:QTY:PRICE, got {raw!r}")
    desc, qty, price = parts
    return InvoiceItem(desc=desc, qty=float(qty or 1), price=float(price or 0))


def _print_frame(df: pd.DataFrame, empty_message: str) -> None:
    if df.empty:
        print(empty_message)
        return
    print(df.to_string(index=False))


# ---------------------------------------------------------------------------
# Statements commands
# ---------------------------------------------------------------------------


def _handle_ingest(args: argparse.Namespace, workspace: DataWorkspace) -> int:
    """
    Handle the 'ingest' subcommand.

    The file is fully parsed before the workspace is touched, so a rejected
    file leaves the previously imported table in place.
    """
    csv_path = Path(args.csv_path)
    try:
        table = read_statements_csv(csv_path)
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        return 1
    except IngestionError as exc:
        print(f"Error: could not import {csv_path}: {exc}")
        if workspace.has_rows:
            print(f"The previous table ({len(workspace.table)} rows) was kept.")
        return 1

    workspace.ingest_table(table)

    print(f"Imported {len(table)} rows from {csv_path}.")
    print(f"Detected columns: {', '.join(table.columns)}")
    print()
    print(describe_roles(resolve_roles(table.columns)).to_string(index=False))
    print()
    print(f"First rows (up to {PREVIEW_ROWS}):")
    print(table.to_frame().head(PREVIEW_ROWS).to_string(index=False))
    return 0


def _handle_kpis(args: argparse.Namespace, workspace: DataWorkspace) -> int:
    if not workspace.has_rows:
        print("No statements imported yet; use 'ingest CSV_PATH' to load a CSV.")

    result = workspace.kpis()
    print("Key performance indicators (latest two periods)")
    print()
    print(kpi_dashboard(result, workspace.has_rows).to_string(index=False))
    return 0


def _handle_draft(
    args: argparse.Namespace,
    workspace: DataWorkspace,
    config: AppConfig,
) -> int:
    text = workspace.draft()
    if not text:
        print("No statements imported yet; nothing to draft.")
        return 1

    print(text)

    if args.output is not None:
        destination = Path(args.output) if args.output else config.output_dir
        if not args.output:
            destination.mkdir(parents=True, exist_ok=True)
        path = export_draft(text, destination)
        print()
        print(f"Draft written to {path}")

    if args.copy:
        if copy_to_clipboard(text):
            print("Draft copied to the clipboard.")
        else:
            print("Clipboard not available; copy the text above manually.")

    return 0


# ---------------------------------------------------------------------------
# Ledger commands
# ---------------------------------------------------------------------------


def _handle_ledger(args: argparse.Namespace, books: Books, store: SQLiteStore) -> int:
    command = args.ledger_command
    if command is None:
        print("Missing ledger command (list, add, update, remove, approve, reject, pay).")
        return 1

    try:
        if command == "list":
            _list_ledger(books, args.name)
            return 0

        if command == "add":
            ledger = books.ledger(args.name)
            values = record_from_strings(
                ledger.record_type, _parse_assignments(args.fields)
            )
            if args.items:
                if args.name != "invoices":
                    raise ValueError("--item is only valid for invoices.")
                values["items"] = tuple(_parse_invoice_item(i) for i in args.items)
            entry_id = ledger.add(ledger.record_type(**values))
            print(f"Added {args.name} entry {entry_id}.")

        elif command == "update":
            ledger = books.ledger(args.name)
            changes = record_from_strings(
                ledger.record_type, _parse_assignments(args.fields)
            )
            ledger.update(args.entry_id, **changes)
            print(f"Updated {args.name} entry {args.entry_id}.")

        elif command == "remove":
            books.ledger(args.name).remove(args.entry_id)
            print(f"Removed {args.name} entry {args.entry_id}.")

        elif command == "approve":
            approve_expense(books.expenses, args.entry_id)
            print(f"Expense {args.entry_id} approved.")

        elif command == "reject":
            reject_expense(books.expenses, args.entry_id)
            print(f"Expense {args.entry_id} rejected.")

        elif command == "pay":
            invoice = mark_invoice_paid(books.invoices, args.entry_id)
            print(f"Invoice {args.entry_id} marked as paid on {invoice.paid_on}.")

    except (KeyError, TypeError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    books.save(store)
    return 0


def _list_ledger(books: Books, name: str) -> None:
    if name == "invoices":
        df = invoices_table(books)
    elif name == "employees":
        df = payroll_table(books)
    elif name == "assets":
        df = depreciation_table(books)
    elif name == "budgets":
        df = budget_variance_table(books)
    else:
        df = pd.DataFrame(books.ledger(name).to_list())
    _print_frame(df, f"No {name} yet.")


# ---------------------------------------------------------------------------
# Reports & settings
# ---------------------------------------------------------------------------


def _handle_report(args: argparse.Namespace, books: Books) -> int:
    print(statements_summary(books).to_string(index=False))

    if is_low_cash(books):
        print()
        print("Warning: projected cash balance is negative.")

    print()
    print("Budget variance (net, against current net income)")
    _print_frame(budget_variance_table(books), "No budgets yet.")

    print()
    print("Compliance checklist")
    for key, label in COMPLIANCE_ITEMS.items():
        mark = "x" if books.compliance.get(key) else " "
        print(f"  [{mark}] {label}")
    return 0


def _handle_settings(args: argparse.Namespace, books: Books, store: SQLiteStore) -> int:
    changed = False
    if args.currency:
        books.currency = args.currency
        changed = True
    if args.tax_rate is not None:
        if not 0 <= args.tax_rate <= 1:
            print("Error: --tax-rate must be between 0 and 1.")
            return 1
        books.tax_rate = args.tax_rate
        changed = True
    for item in args.done:
        books.set_compliance(item, True)
        changed = True
    for item in args.undone:
        books.set_compliance(item, False)
        changed = True

    if changed:
        books.save(store)

    print(f"Currency: {books.currency}")
    print(f"Tax rate: {books.tax_rate:.2%}")
    for key, label in COMPLIANCE_ITEMS.items():
        print(f"  {key:<10} {'done' if books.compliance.get(key) else 'pending':<8} {label}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the SMB FinDraft CLI.

    Parses command-line arguments, loads the configuration, opens the
    key-value store and dispatches to the selected subcommand. Returns the
    process exit status.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"smb_findraft version {__version__}")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    store = SQLiteStore(config.storage)
    logger.debug("Using storage at %s", config.storage.path)

    if args.command in {"ingest", "kpis", "draft"}:
        books_currency = store.get(CURRENCY_KEY) or config.currency
        workspace = DataWorkspace(store, currency=str(books_currency))
        if args.command == "ingest":
            return _handle_ingest(args, workspace)
        if args.command == "kpis":
            return _handle_kpis(args, workspace)
        return _handle_draft(args, workspace, config)

    books = Books.load(
        store,
        default_currency=config.currency,
        default_tax_rate=config.tax_rate,
    )

    if args.command == "ledger":
        return _handle_ledger(args, books, store)
    if args.command == "report":
        return _handle_report(args, books)
    return _handle_settings(args, books, store)


if __name__ == "__main__":
    sys.exit(main())
