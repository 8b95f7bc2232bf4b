# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Statements workspace: the uploaded table, its KPIs and its MD&A draft.

The workspace wires the pure ingestion/KPI/narrative functions to a
key-value store:

- on construction, the last uploaded table is loaded from the store,
- every successful ingestion replaces the table and saves it,
- a failed ingestion (empty input, header without rows) raises and leaves
  the current table untouched.

Two keys are used:

- ``fs_csv_rows``: list of records (dicts of strings),
- ``fs_csv_meta``: ``{"columns": [...]}``.
"""

import logging
from typing import Optional

from .csv_table import Table, tokenize_text
from .kpis import KPIResult, compute_kpis
from .narrative import build_draft
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

ROWS_KEY = "fs_csv_rows"
META_KEY = "fs_csv_meta"


def _load_table(store: KeyValueStore) -> Table:
    rows = store.get(ROWS_KEY)
    meta = store.get(META_KEY)

    if not isinstance(rows, list):
        rows = []
    columns = meta.get("columns") if isinstance(meta, dict) else None
    if not isinstance(columns, list):
        columns = []

    records = [
        {str(k): "" if v is None else str(v) for k, v in row.items()}
        for row in rows
        if isinstance(row, dict)
    ]
    return Table(records=records, columns=[str(c) for c in columns])


class DataWorkspace:
    """
    Holds the current statements table and derives KPIs and drafts from it.

    The store is injected so the workspace can run against an in-memory
    store in tests and a SQLite store in the CLI.
    """

    def __init__(self, store: KeyValueStore, currency: str = "USD") -> None:
        self.store = store
        self.currency = currency
        self._table = _load_table(store)
        self._kpis: Optional[KPIResult] = None
        self._kpis_key: Optional[tuple] = None
        logger.debug("Workspace loaded with %d records", len(self._table))

    @property
    def table(self) -> Table:
        return self._table

    @property
    def columns(self) -> list[str]:
        return list(self._table.columns)

    @property
    def has_rows(self) -> bool:
        return not self._table.is_empty

    def _save(self) -> None:
        self.store.set(ROWS_KEY, self._table.records)
        self.store.set(META_KEY, {"columns": self._table.columns})

    def ingest_text(self, text: Optional[str]) -> Table:
        """
        Parse CSV text and make it the current table.

        Raises:
            EmptyInputError, NoRowsError: the current table is kept.
        """
        return self.ingest_table(tokenize_text(text))

    def ingest_table(self, table: Table) -> Table:
        """Make an already parsed table the current one and save it."""
        self._table = table
        self._save()
        logger.info(
            "Ingested %d records with columns %s", len(table), ", ".join(table.columns)
        )
        return table

    def clear(self) -> None:
        """Forget the current table."""
        self._table = Table()
        self._save()

    def kpis(self) -> KPIResult:
        """Return the KPIs of the current table (memoized on its content)."""
        key = (
            tuple(self._table.columns),
            tuple(tuple(r.items()) for r in self._table.records),
            self.currency,
        )
        if self._kpis is None or self._kpis_key != key:
            self._kpis = compute_kpis(self._table, currency=self.currency)
            self._kpis_key = key
        return self._kpis

    def draft(self) -> str:
        """Return the MD&A draft of the current table ("" when empty)."""
        return build_draft(self.kpis(), self.has_rows, currency=self.currency)
