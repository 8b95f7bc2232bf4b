# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Numeric normalization and display formatting helpers.

Spreadsheet cells come in as free-form strings ("$1,200", " 45000 ",
"-3.5"). ``to_number`` converts them to floats, using ``math.nan`` as the
"not-a-number" marker instead of raising. The formatters render amounts and
ratios for the dashboard, the MD&A draft and the ledgers, and display the
em-dash placeholder for any non-finite value.
"""

import math
import re
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Optional

PLACEHOLDER = "—"

# Characters removed before parsing: currency symbol, grouping commas and
# any whitespace.
_STRIP_RE = re.compile(r"[$,\s]")

# Plain decimal literal: optional sign, digits with optional fraction (or a
# bare fraction), optional exponent. ASCII digits only.
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)

# Wide enough for any finite float with a few decimals.
_ROUNDING_CONTEXT = Context(prec=400)

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def to_number(cell: Optional[Any]) -> float:
    """
    Convert a cell to a float.

    None, empty strings and any residue that is not a plain decimal number
    after stripping ``$``, ``,`` and whitespace yield ``math.nan``.
    """
    if cell is None:
        return math.nan

    s = _STRIP_RE.sub("", str(cell))
    if not _DECIMAL_RE.match(s):
        return math.nan

    value = float(s)
    return value if math.isfinite(value) else math.nan


def is_finite(value: Optional[float]) -> bool:
    """Return True for finite numbers, False for None and NaN/inf."""
    return value is not None and math.isfinite(value)


def _round_half_up(value: float, decimals: int) -> Decimal:
    """Round half away from zero (2.5 -> 3, -2.5 -> -3)."""
    exponent = Decimal(1).scaleb(-decimals)
    return Decimal(str(value)).quantize(
        exponent, rounding=ROUND_HALF_UP, context=_ROUNDING_CONTEXT
    )


def format_currency(
    value: Optional[float],
    currency: str = "USD",
    decimals: int = 0,
) -> str:
    """
    Format an amount as a currency string.

    Examples: 120000 -> "$120,000", -5000 -> "-$5,000",
    1500 in EUR -> "€1,500". Unknown codes are used as a prefix
    ("CHF 1,500").
    """
    if not is_finite(value):
        return PLACEHOLDER

    code = (currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")

    rounded = _round_half_up(float(value), decimals)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{rounded.copy_abs():,.{decimals}f}"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """Format a ratio as a percentage string (0.2 -> "20.0%")."""
    if not is_finite(value):
        return PLACEHOLDER
    return f"{value * 100:.{decimals}f}%"
