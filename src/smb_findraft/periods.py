# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for SMB FinDraft.

This module parses the period labels found in statements CSVs and orders
records chronologically before the KPI engine picks the latest and previous
periods.

Supported period labels
-----------------------
- quarter labels: ``2024-Q1``, ``2024Q1``, ``Q1 2024``, ``Q1-2024``
  (mapped to the first day of the quarter),
- anything ``pandas.Timestamp`` can parse: ``2024-03-31``, ``2024-03``,
  ``March 2024``, ``2024``... except clock-relative words (``now``,
  ``today``...), which are treated as unparseable.

Unparseable labels never raise: the record keeps a positional sort key.
"""

import re
from dataclasses import replace
from typing import Optional

import pandas as pd

from .csv_table import Table

_QUARTER_FIRST_RE = re.compile(r"^(\d{4})\s*[-/ ]?\s*Q([1-4])$", re.IGNORECASE | re.ASCII)
_QUARTER_LAST_RE = re.compile(r"^Q([1-4])\s*[-/ ]?\s*(\d{4})$", re.IGNORECASE | re.ASCII)

# Labels pandas resolves against the current clock.
_RELATIVE_WORDS = frozenset({"now", "today", "tomorrow", "yesterday"})


def parse_period(value: Optional[str]) -> Optional[pd.Timestamp]:
    """
    Parse a period label into a timestamp.

    Returns:
        A timezone-naive timestamp (aware values are converted to UTC), or
        None if the label cannot be parsed.
    """
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    m = _QUARTER_FIRST_RE.match(text)
    if m:
        return pd.Timestamp(year=int(m.group(1)), month=3 * int(m.group(2)) - 2, day=1)

    m = _QUARTER_LAST_RE.match(text)
    if m:
        return pd.Timestamp(year=int(m.group(2)), month=3 * int(m.group(1)) - 2, day=1)

    if text.lower() in _RELATIVE_WORDS:
        return None

    try:
        ts = pd.Timestamp(text)
    except (ValueError, TypeError, OverflowError):
        return None

    if pd.isna(ts):
        return None

    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def period_sort_key(value: Optional[str], index: int) -> float:
    """
    Return the sort key of a record.

    Parsed periods sort by their epoch time in milliseconds; unparseable
    periods fall back to the record's original position.
    """
    ts = parse_period(value)
    if ts is None:
        return float(index)
    return (ts - pd.Timestamp(0)) / pd.Timedelta(milliseconds=1)


def sort_by_period(table: Table, period_column: Optional[str]) -> Table:
    """
    Order the records of a table by period, ascending.

    When ``period_column`` is None the records keep their input order.
    Ties are broken by the original position (stable sort). The input
    table is left untouched and the column list is unchanged.
    """
    if period_column is None:
        return replace(table, records=list(table.records))

    keyed = [
        (period_sort_key(record.get(period_column), i), i, record)
        for i, record in enumerate(table.records)
    ]
    keyed.sort(key=lambda item: (item[0], item[1]))

    return replace(table, records=[record for _, _, record in keyed])
