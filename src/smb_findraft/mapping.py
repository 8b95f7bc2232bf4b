# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Column role inference for SMB FinDraft.

A statements CSV may name its columns in many ways ("Revenue", "Sales",
"Total revenue", ...). This module maps the semantic roles used by the KPI
engine to the actual column names of a table:

    revenue, cogs, opex, net_income, period

Matching rules
--------------
- Column names are compared case-insensitively, after trimming whitespace.
- Matching is exact (no substring or fuzzy matching).
- Aliases are tried in declared order: the first alias that matches a
  column wins, whatever the column position in the header.
- A role without any matching column resolves to ``None``.
"""

from collections.abc import Iterable, Mapping
from typing import Optional, Union

import pandas as pd

ROLE_REVENUE = "revenue"
ROLE_COGS = "cogs"
ROLE_OPEX = "opex"
ROLE_NET_INCOME = "net_income"
ROLE_PERIOD = "period"

REVENUE_ALIASES: tuple[str, ...] = ("revenue", "sales", "total revenue")
COGS_ALIASES: tuple[str, ...] = ("cogs", "cost of goods sold", "cost of sales")
OPEX_ALIASES: tuple[str, ...] = ("operatingexpenses", "operating expenses", "opex")
NET_INCOME_ALIASES: tuple[str, ...] = ("netincome", "net income", "profit", "earnings")
PERIOD_ALIASES: tuple[str, ...] = ("period", "date", "quarter", "month", "year")

# Ordered (role, aliases) pairs. Alias order inside each tuple is the
# tie-break when several columns qualify for the same role.
ROLE_ALIASES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (ROLE_REVENUE, REVENUE_ALIASES),
    (ROLE_COGS, COGS_ALIASES),
    (ROLE_OPEX, OPEX_ALIASES),
    (ROLE_NET_INCOME, NET_INCOME_ALIASES),
    (ROLE_PERIOD, PERIOD_ALIASES),
)

RoleMap = dict[str, Optional[str]]


def _normalize_name(name: str) -> str:
    return str(name).strip().lower()


def build_column_index(columns: Iterable[str]) -> dict[str, str]:
    """
    Build a case-insensitive index of column names.

    Returns:
        A mapping normalized name -> actual column name. When two columns
        normalize to the same name, the first one is kept.
    """
    index: dict[str, str] = {}
    for col in columns:
        index.setdefault(_normalize_name(col), col)
    return index


def resolve_roles(source: Union[Mapping[str, str], Iterable[str]]) -> RoleMap:
    """
    Resolve semantic roles to column names.

    Args:
        source: Either a record (its keys are used) or an iterable of
            column names.

    Returns:
        A dictionary with one entry per role in ``ROLE_ALIASES``; the value
        is the matching column name, or None when the role is unresolved.
    """
    columns = source.keys() if isinstance(source, Mapping) else source
    index = build_column_index(columns)

    roles: RoleMap = {}
    for role, aliases in ROLE_ALIASES:
        roles[role] = next((index[a] for a in aliases if a in index), None)
    return roles


def describe_roles(roles: Mapping[str, Optional[str]]) -> pd.DataFrame:
    """Return a (role, column, resolved) DataFrame for console display."""
    rows = [
        {
            "role": role,
            "column": roles.get(role) or "",
            "resolved": roles.get(role) is not None,
        }
        for role, _ in ROLE_ALIASES
    ]
    return pd.DataFrame(rows, columns=["role", "column", "resolved"])
