# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
CSV ingestion for SMB FinDraft.

This module turns the raw text of a financial statements CSV into a
``Table``: an ordered list of records (one per data row) plus the ordered
list of column names taken from the header row.

Expected input
--------------
A comma-delimited text blob, typically with a header such as:

    Period, Revenue, COGS, OperatingExpenses, NetIncome

Column names are NOT enforced here: role inference happens later in
``mapping.py`` and missing columns degrade gracefully in the KPI engine.

Quoting rules
-------------
- A field may be wrapped in double quotes; inside quotes the comma is a
  literal character.
- Two consecutive double quotes inside a quoted field produce one.
- Each field is trimmed of surrounding whitespace after unquoting.
- An unterminated quote consumes the rest of the line (no error).
- Quoted fields spanning several physical lines are NOT supported: the
  text is split into lines before tokenization.

Errors
------
All failures are subclasses of ``IngestionError`` (itself a ``ValueError``):

- ``EmptyInputError``: no non-blank line in the input,
- ``NoRowsError``: a header row but no data row,
- ``DecodingError``: a file that is not valid UTF-8 (``read_statements_csv``).
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import pandas as pd

Record = dict[str, str]


class IngestionError(ValueError):
    """Base class for errors raised while reading a statements CSV."""


class EmptyInputError(IngestionError):
    """Raised when the input text contains no non-blank line."""

    def __init__(self, message: str = "The CSV input is empty.") -> None:
        super().__init__(message)


class NoRowsError(IngestionError):
    """Raised when the CSV has a header row but no data rows."""

    def __init__(self, message: str = "No rows found") -> None:
        super().__init__(message)


class DecodingError(IngestionError):
    """Raised when a CSV file cannot be decoded as UTF-8."""


@dataclass(frozen=True)
class Table:
    """
    Ordered records plus the ordered column list of the source header.

    Attributes:
        records: One mapping per data row, keyed by column name.
        columns: Column names exactly as they appear in the header
            (duplicates included).
    """

    records: list[Record] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def to_frame(self) -> pd.DataFrame:
        """Return the records as a DataFrame of strings (one column per name)."""
        unique_columns = list(dict.fromkeys(self.columns))
        return pd.DataFrame(self.records, columns=unique_columns, dtype=str)

    def to_csv_text(self) -> str:
        """
        Serialize the table back to CSV text.

        Fields containing a comma or a double quote are quoted, and inner
        quotes are doubled, so that ``tokenize_text(table.to_csv_text())``
        yields the same cells. Duplicate header names are written once.
        """
        unique_columns = list(dict.fromkeys(self.columns))
        lines = [",".join(_quote_field(c) for c in unique_columns)]
        for record in self.records:
            lines.append(
                ",".join(_quote_field(record.get(c, "")) for c in unique_columns)
            )
        return "\n".join(lines)


def _quote_field(value: str) -> str:
    if "," in value or '"' in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def tokenize_row(line: str) -> list[str]:
    """
    Split a single CSV line into trimmed fields.

    Args:
        line: One physical line of CSV text (without line break).

    Returns:
        The list of fields, quotes removed and whitespace trimmed.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current))
    return [f.strip() for f in fields]


def _split_lines(text: str) -> list[str]:
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return [line for line in normalized.split("\n") if line.strip()]


def tokenize_text(text: Optional[str]) -> Table:
    """
    Parse a whole CSV document into a Table.

    The first non-blank line is the header. Every following non-blank line
    becomes one record: short rows are padded with empty strings and
    fields beyond the header length are ignored. Duplicate header names are
    kept in ``Table.columns``; in a record, the last duplicate wins.

    Raises:
        EmptyInputError: if no non-blank line remains.
        NoRowsError: if the header is not followed by any data row.
    """
    lines = _split_lines(text or "")
    if not lines:
        raise EmptyInputError()

    columns = tokenize_row(lines[0])
    records: list[Record] = []

    for line in lines[1:]:
        values = tokenize_row(line)
        record: Record = {}
        for j, name in enumerate(columns):
            record[name] = values[j] if j < len(values) else ""
        records.append(record)

    if not records:
        raise NoRowsError()

    return Table(records=records, columns=columns)


def read_statements_csv(path: Union[str, Path]) -> Table:
    """
    Read a financial statements CSV file and tokenize it.

    The file is decoded as UTF-8; a leading byte-order mark is ignored.

    Raises:
        FileNotFoundError: if the file does not exist.
        DecodingError: if the file is not valid UTF-8.
        EmptyInputError / NoRowsError: see ``tokenize_text``.
    """
    csv_path = Path(path)
    if not csv_path.is_file():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    try:
        text = csv_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DecodingError(
            f"{csv_path} is not valid UTF-8 text (byte {exc.start}). "
            "Re-save the file with UTF-8 encoding."
        ) from exc

    return tokenize_text(text)
