# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
KPI engine for SMB FinDraft.

Given a statements table, this module selects the latest period and the
immediately preceding one, and computes a fixed set of measures and ratios:

    revenue, net_income, cogs, opex          (raw latest-period measures)
    gross_profit      = revenue - cogs
    operating_income  = revenue - cogs - opex
    gross_margin      = gross_profit / revenue
    operating_margin  = operating_income / revenue
    net_margin        = net_income / revenue
    cogs_ratio        = cogs / revenue
    opex_ratio        = opex / revenue
    revenue_growth    = (revenue - revenue_prev) / revenue_prev

Every metric whose inputs are missing or non-finite, or whose denominator is
zero, is ``math.nan``. The engine never raises on data: unresolved columns,
unparseable numbers and unparseable periods all end up as NaN or as a
positional period order.

The result is a ``KPIResult`` holding raw values, display strings and the
labels of the two periods compared. It is a pure function of the table:
calling ``compute_kpis`` twice on the same input gives equal results.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional, Union

import pandas as pd

from .csv_table import Record, Table
from .mapping import (
    ROLE_COGS,
    ROLE_NET_INCOME,
    ROLE_OPEX,
    ROLE_PERIOD,
    ROLE_REVENUE,
    resolve_roles,
)
from .normalize import PLACEHOLDER, format_currency, format_percent, to_number
from .periods import sort_by_period

CURRENCY_METRICS: tuple[str, ...] = ("revenue", "net_income")
PERCENT_METRICS: tuple[str, ...] = (
    "gross_margin",
    "operating_margin",
    "net_margin",
    "revenue_growth",
    "cogs_ratio",
    "opex_ratio",
)


@dataclass(frozen=True)
class KPIMeta:
    """Labels of the periods compared by the KPI engine."""

    latest_period: str = ""
    prev_period: str = ""


@dataclass(frozen=True)
class KPIResult:
    """
    Output of the KPI engine.

    Attributes:
        values: Raw metric values; ``math.nan`` when not computable.
        formatted: Display strings for the dashboard metrics; the em-dash
            placeholder when the value is not computable.
        meta: Latest and previous period labels.
    """

    values: dict[str, float] = field(default_factory=dict)
    formatted: dict[str, str] = field(default_factory=dict)
    meta: KPIMeta = field(default_factory=KPIMeta)

    @property
    def has_data(self) -> bool:
        return bool(self.values)


@dataclass(frozen=True)
class KPIDefinition:
    """
    Presentation metadata for a dashboard KPI tile.

    Attributes:
        key: Metric key in ``KPIResult.formatted``.
        label: Human-readable label.
        unit: 'amount' or 'percent'.
        note: Optional note template; ``{latest}`` and ``{prev}`` are
            replaced by the period labels.
    """

    key: str
    label: str
    unit: str
    note: str = ""


KPI_DEFINITIONS: tuple[KPIDefinition, ...] = (
    KPIDefinition("revenue", "Revenue (latest)", "amount", "{latest}"),
    KPIDefinition("revenue_growth", "Revenue growth", "percent", "{prev} → {latest}"),
    KPIDefinition("gross_margin", "Gross margin", "percent"),
    KPIDefinition("operating_margin", "Operating margin", "percent"),
    KPIDefinition("net_margin", "Net margin", "percent"),
    KPIDefinition("cogs_ratio", "COGS as % of revenue", "percent"),
    KPIDefinition("opex_ratio", "Operating expenses %", "percent"),
    KPIDefinition("net_income", "Net income (latest)", "amount", "{latest}"),
)


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


def _ratio(numerator: float, denominator: float) -> float:
    if _finite(numerator, denominator) and denominator != 0:
        return numerator / denominator
    return math.nan


def _cell(record: Mapping[str, str], column: Optional[str]) -> float:
    if column is None:
        return math.nan
    return to_number(record.get(column))


def _period_label(record: Mapping[str, str], column: Optional[str]) -> str:
    if column is None:
        return ""
    return str(record.get(column) or "")


def compute_kpis(
    table: Union[Table, Sequence[Record]],
    currency: str = "USD",
) -> KPIResult:
    """
    Compute the KPI set for the latest period of a statements table.

    Args:
        table: A Table, or a plain sequence of records sharing the same keys.
        currency: ISO code used to format currency metrics.

    Returns:
        A KPIResult. An empty table yields empty ``values``/``formatted``
        and empty period labels.
    """
    if not isinstance(table, Table):
        records = list(table or [])
        table = Table(records=records, columns=list(records[0]) if records else [])

    if not table.records:
        return KPIResult()

    roles = resolve_roles(table.records[0])
    ordered = sort_by_period(table, roles[ROLE_PERIOD]).records

    latest = ordered[-1]
    prev: Mapping[str, str] = ordered[-2] if len(ordered) >= 2 else {}

    revenue = _cell(latest, roles[ROLE_REVENUE])
    revenue_prev = _cell(prev, roles[ROLE_REVENUE])
    cogs = _cell(latest, roles[ROLE_COGS])
    opex = _cell(latest, roles[ROLE_OPEX])
    net_income = _cell(latest, roles[ROLE_NET_INCOME])

    gross_profit = revenue - cogs if _finite(revenue, cogs) else math.nan
    operating_income = (
        revenue - cogs - opex if _finite(revenue, cogs, opex) else math.nan
    )

    revenue_growth = math.nan
    if _finite(revenue, revenue_prev) and revenue_prev != 0:
        revenue_growth = (revenue - revenue_prev) / revenue_prev

    values: dict[str, float] = {
        "revenue": revenue,
        "net_income": net_income,
        "gross_profit": gross_profit,
        "gross_margin": _ratio(gross_profit, revenue),
        "operating_income": operating_income,
        "operating_margin": _ratio(operating_income, revenue),
        "net_margin": _ratio(net_income, revenue),
        "revenue_growth": revenue_growth,
        "cogs": cogs,
        "opex": opex,
        "cogs_ratio": _ratio(cogs, revenue),
        "opex_ratio": _ratio(opex, revenue),
    }

    formatted: dict[str, str] = {}
    for key in CURRENCY_METRICS:
        formatted[key] = format_currency(values[key], currency)
    for key in PERCENT_METRICS:
        formatted[key] = format_percent(values[key])

    meta = KPIMeta(
        latest_period=_period_label(latest, roles[ROLE_PERIOD]),
        prev_period=_period_label(prev, roles[ROLE_PERIOD]),
    )

    return KPIResult(values=values, formatted=formatted, meta=meta)


def kpi_dashboard(result: KPIResult, has_data: bool) -> pd.DataFrame:
    """
    Build the dashboard view of a KPI result.

    Returns:
        A DataFrame with columns ``label``, ``value`` and ``note``, one row
        per entry of ``KPI_DEFINITIONS``. Values are placeholders when
        ``has_data`` is False.
    """
    rows = []
    for definition in KPI_DEFINITIONS:
        value = result.formatted.get(definition.key) if has_data else None
        note = ""
        if has_data and definition.note:
            note = definition.note.format(
                latest=result.meta.latest_period,
                prev=result.meta.prev_period,
            )
        rows.append(
            {
                "label": definition.label,
                "value": value or PLACEHOLDER,
                "note": note,
            }
        )
    return pd.DataFrame(rows, columns=["label", "value", "note"])
