# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Key-value persistence for SMB FinDraft.

The workspace (uploaded statements table) and the bookkeeping ledgers are
saved on every change and loaded on start through a minimal key-value
interface:

    store.get(key)         -> value or None
    store.set(key, value)  -> None

Values are JSON-serializable Python objects (lists, dicts, strings,
numbers, booleans).

Two implementations are provided:

- ``MemoryStore``: an in-process dictionary, used by tests and for
  throw-away sessions. Values are JSON round-tripped so that callers see
  exactly what a persistent store would give back.

- ``SQLiteStore``: a single SQLite table.

------------------------------------------------------------------------------
Schema
------------------------------------------------------------------------------

    kv_store
    - key         TEXT PRIMARY KEY
    - value       TEXT NOT NULL     -- JSON document
    - updated_at  TEXT NOT NULL     -- UTC timestamp of the last write

The schema is created on first use; creation is idempotent.

A stored value that is not valid JSON is treated as absent (and logged),
so a damaged row never prevents the application from starting.
"""

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal persistence interface used by the workspace and ledgers."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...


@dataclass(frozen=True)
class StorageConfig:
    """
    Storage configuration for SMB FinDraft.

    Attributes
    ----------
    engine:
        Storage engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


class MemoryStore:
    """Dictionary-backed store holding JSON documents."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def keys(self) -> list[str]:
        return list(self._data)


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class SQLiteStore:
    """Key-value store persisted in a SQLite database file."""

    def __init__(self, cfg: StorageConfig) -> None:
        if cfg.engine.lower() != "sqlite":
            msg = (
                f"Unsupported storage engine: {cfg.engine!r}. "
                "Only 'sqlite' is supported for now."
            )
            raise ValueError(msg)

        self.cfg = cfg
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        """
        Open a SQLite connection.

        The caller is responsible for closing the connection.
        """
        return sqlite3.connect(self.cfg.path)

    def _init_schema(self) -> None:
        self.cfg.path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key        TEXT PRIMARY KEY,
                    value      TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get(self, key: str) -> Optional[Any]:
        conn = self._connect()
        try:
            cur = conn.execute("SELECT value FROM kv_store WHERE key = ?;", (key,))
            row = cur.fetchone()
        finally:
            conn.close()

        if row is None:
            return None

        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt value stored under key %r", key)
            return None

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value)

        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at;
                """,
                (key, payload, _now_utc_iso()),
            )
            conn.commit()
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._connect()
        try:
            cur = conn.execute("SELECT key FROM kv_store ORDER BY key;")
            return [row[0] for row in cur.fetchall()]
        finally:
            conn.close()
