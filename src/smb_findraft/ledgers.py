# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Bookkeeping ledgers for SMB FinDraft.

Each ledger is an ordered collection of records keyed by a generated
identifier, with explicit add / update / remove operations:

- expenses        (with an approval workflow: Pending, Approved, Rejected)
- invoices        (line items, currency, Draft/Paid status)
- budgets         (per-period revenue, COGS and operating expenses)
- cash projections (dated inflows and outflows)
- payables / receivables
- goals           (target amount, due date, progress in percent)
- employees       (salary and pay cycle)
- assets          (cost, useful life, straight-line depreciation)

Records are frozen dataclasses: an update builds a new record with
``dataclasses.replace`` and stores it under the same identifier. Mandatory
fields are validated on creation and on every update.

``Books`` bundles all ledgers with the user settings (presentation
currency, tax rate, compliance checklist) and loads/saves them through a
``KeyValueStore``, one key per ledger.

Derived financial statements built on top of the ledgers live in
``reports.py``.
"""

import logging
import math
import secrets
import string
from collections.abc import Iterator, Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date
from typing import Any, ClassVar, Generic, Optional, TypeVar

from .storage import KeyValueStore

logger = logging.getLogger(__name__)

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 8

EXPENSE_STATUSES: tuple[str, ...] = ("Pending", "Approved", "Rejected")
EXPENSE_CATEGORIES: tuple[str, ...] = (
    "General",
    "Travel",
    "Software",
    "Marketing",
    "Payroll",
    "Facilities",
)
INVOICE_STATUSES: tuple[str, ...] = ("Draft", "Sent", "Paid")
PAY_CYCLES: dict[str, int] = {"Monthly": 12, "Bi-Weekly": 26, "Weekly": 52}

COMPLIANCE_ITEMS: dict[str, str] = {
    "filings": "Annual filings prepared",
    "payroll": "Payroll taxes up to date",
    "sales_tax": "Sales tax registered/remitted",
    "corp_tax": "Corporate tax prepared",
}

DEFAULT_CURRENCY = "USD"
DEFAULT_TAX_RATE = 0.21


def generate_id() -> str:
    """Return a random 8-character base-36 identifier."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def _require(value: Any, name: str, record: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{record}: '{name}' is required.")


def _require_number(value: Any, name: str, record: str) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"{record}: '{name}' must be a finite number.")


class _Record:
    """Shared (de)serialization helpers for ledger records."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


@dataclass(frozen=True)
class Expense(_Record):
    date: str
    amount: float
    category: str = "General"
    vendor: str = ""
    notes: str = ""
    status: str = "Pending"

    def __post_init__(self) -> None:
        _require(self.date, "date", "Expense")
        _require_number(self.amount, "amount", "Expense")
        if self.status not in EXPENSE_STATUSES:
            raise ValueError(f"Expense: unknown status {self.status!r}.")
        if self.category not in EXPENSE_CATEGORIES:
            raise ValueError(
                f"Expense: unknown category {self.category!r}. "
                f"Expected one of: {', '.join(EXPENSE_CATEGORIES)}"
            )


@dataclass(frozen=True)
class InvoiceItem(_Record):
    desc: str = ""
    qty: float = 1
    price: float = 0.0

    @property
    def amount(self) -> float:
        return float(self.qty) * float(self.price or 0)


@dataclass(frozen=True)
class Invoice(_Record):
    date: str = ""
    due: str = ""
    client: str = ""
    items: tuple[InvoiceItem, ...] = ()
    status: str = "Draft"
    currency: str = DEFAULT_CURRENCY
    notes: str = ""
    paid_on: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status not in INVOICE_STATUSES:
            raise ValueError(f"Invoice: unknown status {self.status!r}.")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Invoice":
        payload = dict(data)
        payload["items"] = tuple(
            item if isinstance(item, InvoiceItem) else InvoiceItem.from_dict(item)
            for item in payload.get("items") or ()
        )
        return super().from_dict(payload)

    @property
    def total(self) -> float:
        return sum(item.amount for item in self.items)


@dataclass(frozen=True)
class Budget(_Record):
    period: str
    revenue: float = 0.0
    cogs: float = 0.0
    opex: float = 0.0

    def __post_init__(self) -> None:
        _require(self.period, "period", "Budget")

    @property
    def net(self) -> float:
        return self.revenue - self.cogs - self.opex


@dataclass(frozen=True)
class CashProjection(_Record):
    date: str
    inflow: float = 0.0
    outflow: float = 0.0

    def __post_init__(self) -> None:
        _require(self.date, "date", "CashProjection")

    @property
    def net(self) -> float:
        return self.inflow - self.outflow


@dataclass(frozen=True)
class Payable(_Record):
    vendor: str
    amount: float = 0.0
    due: str = ""

    def __post_init__(self) -> None:
        _require(self.vendor, "vendor", "Payable")


@dataclass(frozen=True)
class Receivable(_Record):
    client: str
    amount: float = 0.0
    due: str = ""

    def __post_init__(self) -> None:
        _require(self.client, "client", "Receivable")


@dataclass(frozen=True)
class Goal(_Record):
    name: str
    target: float = 0.0
    due: str = ""
    progress: int = 0

    def __post_init__(self) -> None:
        _require(self.name, "name", "Goal")
        if not 0 <= self.progress <= 100:
            raise ValueError("Goal: 'progress' must be between 0 and 100.")


@dataclass(frozen=True)
class Employee(_Record):
    name: str
    salary: float = 0.0
    pay_cycle: str = "Monthly"

    def __post_init__(self) -> None:
        _require(self.name, "name", "Employee")

    @property
    def paycheck(self) -> float:
        """Gross pay per pay period (unknown cycles are paid weekly)."""
        return self.salary / PAY_CYCLES.get(self.pay_cycle, 52)


@dataclass(frozen=True)
class Asset(_Record):
    name: str
    cost: float = 0.0
    life_years: float = 3
    start: str = ""

    def __post_init__(self) -> None:
        _require(self.name, "name", "Asset")

    @property
    def depreciation_per_year(self) -> float:
        """Straight-line depreciation; a non-positive life counts as one year."""
        life = self.life_years if self.life_years > 0 else 1
        return self.cost / life


R = TypeVar("R", bound=_Record)


class Ledger(Generic[R]):
    """
    Ordered, identity-keyed collection of records of a single type.

    Identifiers are generated on ``add``; records are replaced (never
    mutated) on ``update``.
    """

    def __init__(self, record_type: type[R]) -> None:
        self.record_type = record_type
        self._entries: dict[str, R] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[R]:
        return iter(self._entries.values())

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def items(self) -> list[tuple[str, R]]:
        return list(self._entries.items())

    def add(self, record: R, entry_id: Optional[str] = None) -> str:
        """Store a record and return its identifier."""
        if not isinstance(record, self.record_type):
            raise TypeError(
                f"Expected {self.record_type.__name__}, got {type(record).__name__}."
            )

        if entry_id is None:
            entry_id = generate_id()
            while entry_id in self._entries:
                entry_id = generate_id()
        elif entry_id in self._entries:
            raise ValueError(f"Duplicate ledger id: {entry_id!r}")

        self._entries[entry_id] = record
        return entry_id

    def get(self, entry_id: str) -> R:
        try:
            return self._entries[entry_id]
        except KeyError:
            raise KeyError(f"No {self.record_type.__name__} with id {entry_id!r}") from None

    def update(self, entry_id: str, **changes: Any) -> R:
        """
        Replace fields of an existing record.

        Raises:
            KeyError: if the id is unknown.
            ValueError: if a field does not exist or the new record is invalid.
        """
        current = self.get(entry_id)
        known = {f.name for f in fields(self.record_type)}  # type: ignore[arg-type]
        unknown = set(changes) - known
        if unknown:
            raise ValueError(
                f"Unknown field(s) for {self.record_type.__name__}: "
                f"{', '.join(sorted(unknown))}"
            )

        updated = replace(current, **changes)  # type: ignore[type-var]
        self._entries[entry_id] = updated
        return updated

    def remove(self, entry_id: str) -> R:
        record = self.get(entry_id)
        del self._entries[entry_id]
        return record

    def to_list(self) -> list[dict[str, Any]]:
        """Serialize to a JSON-friendly list of dicts (with an 'id' key)."""
        return [{"id": eid, **record.to_dict()} for eid, record in self._entries.items()]

    @classmethod
    def from_list(cls, record_type: type[R], rows: Optional[list]) -> "Ledger[R]":
        """
        Rebuild a ledger from ``to_list`` output.

        Rows that are not mappings or fail record validation are skipped
        and logged, so one damaged entry does not make the books unreadable.
        """
        ledger = cls(record_type)
        for row in rows if isinstance(rows, list) else []:
            if not isinstance(row, Mapping):
                logger.warning("Skipping stored %s row: %r", record_type.__name__, row)
                continue
            data = dict(row)
            entry_id = data.pop("id", None)
            try:
                ledger.add(record_type.from_dict(data), entry_id=entry_id)
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping invalid stored %s %r: %s",
                    record_type.__name__,
                    entry_id,
                    exc,
                )
        return ledger


# ---------------------------------------------------------------------------
# Workflow operations
# ---------------------------------------------------------------------------


def approve_expense(expenses: Ledger[Expense], entry_id: str) -> Expense:
    return expenses.update(entry_id, status="Approved")


def reject_expense(expenses: Ledger[Expense], entry_id: str) -> Expense:
    return expenses.update(entry_id, status="Rejected")


def mark_invoice_paid(
    invoices: Ledger[Invoice],
    entry_id: str,
    on: Optional[date] = None,
) -> Invoice:
    """Mark an invoice as paid, stamping the payment date (today by default)."""
    paid_on = (on or date.today()).isoformat()
    return invoices.update(entry_id, status="Paid", paid_on=paid_on)


# ---------------------------------------------------------------------------
# Books: all ledgers + settings, persisted in a key-value store
# ---------------------------------------------------------------------------

LEDGER_TYPES: dict[str, tuple[str, type]] = {
    "expenses": ("fs_expenses", Expense),
    "invoices": ("fs_invoices", Invoice),
    "budgets": ("fs_budgets", Budget),
    "cash": ("fs_cash_proj", CashProjection),
    "payables": ("fs_ap", Payable),
    "receivables": ("fs_ar", Receivable),
    "goals": ("fs_goals", Goal),
    "employees": ("fs_employees", Employee),
    "assets": ("fs_assets", Asset),
}

CURRENCY_KEY = "fs_ccy"
TAX_RATE_KEY = "fs_tax_rate"
COMPLIANCE_KEY = "fs_compliance"


def _default_compliance() -> dict[str, bool]:
    return {key: False for key in COMPLIANCE_ITEMS}


@dataclass
class Books:
    """All bookkeeping ledgers plus user settings."""

    ledgers: dict[str, Ledger] = field(
        default_factory=lambda: {
            name: Ledger(record_type) for name, (_, record_type) in LEDGER_TYPES.items()
        }
    )
    currency: str = DEFAULT_CURRENCY
    tax_rate: float = DEFAULT_TAX_RATE
    compliance: dict[str, bool] = field(default_factory=_default_compliance)

    LEDGER_NAMES: ClassVar[tuple[str, ...]] = tuple(LEDGER_TYPES)

    def ledger(self, name: str) -> Ledger:
        try:
            return self.ledgers[name]
        except KeyError:
            raise ValueError(
                f"Unknown ledger {name!r}. Expected one of: {', '.join(LEDGER_TYPES)}"
            ) from None

    @property
    def expenses(self) -> Ledger[Expense]:
        return self.ledgers["expenses"]

    @property
    def invoices(self) -> Ledger[Invoice]:
        return self.ledgers["invoices"]

    @property
    def budgets(self) -> Ledger[Budget]:
        return self.ledgers["budgets"]

    @property
    def cash(self) -> Ledger[CashProjection]:
        return self.ledgers["cash"]

    @property
    def payables(self) -> Ledger[Payable]:
        return self.ledgers["payables"]

    @property
    def receivables(self) -> Ledger[Receivable]:
        return self.ledgers["receivables"]

    @property
    def goals(self) -> Ledger[Goal]:
        return self.ledgers["goals"]

    @property
    def employees(self) -> Ledger[Employee]:
        return self.ledgers["employees"]

    @property
    def assets(self) -> Ledger[Asset]:
        return self.ledgers["assets"]

    def set_compliance(self, item: str, done: bool) -> None:
        if item not in COMPLIANCE_ITEMS:
            raise ValueError(f"Unknown compliance item: {item!r}")
        self.compliance[item] = bool(done)

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        default_currency: str = DEFAULT_CURRENCY,
        default_tax_rate: float = DEFAULT_TAX_RATE,
    ) -> "Books":
        """Load every ledger and setting; missing keys give the defaults."""
        ledgers = {
            name: Ledger.from_list(record_type, store.get(key))
            for name, (key, record_type) in LEDGER_TYPES.items()
        }

        currency = store.get(CURRENCY_KEY) or default_currency

        tax_rate = store.get(TAX_RATE_KEY)
        if not isinstance(tax_rate, (int, float)):
            tax_rate = default_tax_rate

        compliance = _default_compliance()
        saved = store.get(COMPLIANCE_KEY)
        if isinstance(saved, Mapping):
            for key in compliance:
                compliance[key] = bool(saved.get(key, False))

        return cls(
            ledgers=ledgers,
            currency=str(currency),
            tax_rate=float(tax_rate),
            compliance=compliance,
        )

    def save(self, store: KeyValueStore) -> None:
        for name, (key, _) in LEDGER_TYPES.items():
            store.set(key, self.ledgers[name].to_list())
        store.set(CURRENCY_KEY, self.currency)
        store.set(TAX_RATE_KEY, self.tax_rate)
        store.set(COMPLIANCE_KEY, dict(self.compliance))


def record_from_strings(record_type: type[R], raw: Mapping[str, str]) -> dict[str, Any]:
    """
    Convert ``field=value`` strings (e.g. from the CLI) to typed field values.

    Numeric fields are parsed as floats (ints for integer fields); an empty
    numeric value counts as 0. Invoice items are not supported here.

    Raises:
        ValueError: for unknown fields or non-numeric values.
    """
    types = {f.name: f.type for f in fields(record_type)}  # type: ignore[arg-type]
    out: dict[str, Any] = {}

    for name, value in raw.items():
        if name not in types:
            raise ValueError(f"Unknown field for {record_type.__name__}: {name!r}")

        ftype = types[name]
        if ftype in (float, "float"):
            out[name] = float(value) if value.strip() else 0.0
        elif ftype in (int, "int"):
            out[name] = int(float(value)) if value.strip() else 0
        elif name == "items":
            raise ValueError("Invoice items cannot be set from strings.")
        else:
            out[name] = value

    return out
