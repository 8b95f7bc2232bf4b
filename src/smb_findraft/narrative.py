# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
MD&A draft composer.

Renders a KPI result as a short "Management Discussion and Analysis" text:

    # Management Discussion and Analysis
    Period: <latest period>

    Overview: ...
    Profitability: ...
    Drivers: ...        (only when at least one driver rule fires)
    Outlook: ...

The output is a pure function of its inputs: the same KPI result always
produces the same text, byte for byte.
"""

import math
from collections.abc import Callable

from .kpis import KPIResult
from .normalize import format_currency, format_percent

TITLE = "# Management Discussion and Analysis"

DEFAULT_LATEST_LABEL = "Latest"
DEFAULT_PRIOR_LABEL = "Prior"

OUTLOOK = (
    "Outlook: Management will focus on disciplined execution, improving unit "
    "economics, and efficient allocation of operating expenses while "
    "maintaining growth initiatives."
)

# (metric key, trigger, clause). NaN comparisons are always False, so a
# missing metric never triggers a driver.
DRIVER_RULES: tuple[tuple[str, Callable[[float], bool], str], ...] = (
    ("revenue_growth", lambda v: v > 0.05, "volume growth in core offerings"),
    (
        "opex_ratio",
        lambda v: v > 0.35,
        "higher operating expenses, including investments in growth and G&A",
    ),
    ("gross_margin", lambda v: v < 0.4, "pressure on unit economics and input costs"),
)


def _growth_direction(growth: float) -> str:
    if growth > 0:
        return "increased"
    if growth < 0:
        return "decreased"
    return "was flat"


def driver_clauses(kpi: KPIResult) -> list[str]:
    """Return the driver clauses triggered by the raw KPI values."""
    clauses = []
    for key, trigger, clause in DRIVER_RULES:
        if trigger(kpi.values.get(key, math.nan)):
            clauses.append(clause)
    return clauses


def build_draft(kpi: KPIResult, has_rows: bool, currency: str = "USD") -> str:
    """
    Build the MD&A draft text.

    Args:
        kpi: Result of ``compute_kpis``.
        has_rows: Whether the underlying table has any record. When False
            the draft is the empty string.
        currency: ISO code used for amounts.
    """
    if not has_rows:
        return ""

    values = kpi.values
    latest = kpi.meta.latest_period or DEFAULT_LATEST_LABEL
    prior = kpi.meta.prev_period or DEFAULT_PRIOR_LABEL

    def money(key: str) -> str:
        return format_currency(values.get(key, math.nan), currency)

    def pct(key: str) -> str:
        return format_percent(values.get(key, math.nan))

    growth = values.get("revenue_growth", math.nan)

    paragraphs = [
        f"Overview: For {latest}, the company reported revenue of "
        f"{money('revenue')}. Revenue {_growth_direction(growth)} "
        f"{format_percent(abs(growth))} compared to {prior}.",
        f"Profitability: Gross margin was {pct('gross_margin')}, reflecting "
        f"COGS of {money('cogs')} and gross profit of {money('gross_profit')}. "
        f"Operating margin was {pct('operating_margin')}, with operating "
        f"expenses at {pct('opex_ratio')} of revenue. Net margin was "
        f"{pct('net_margin')} with net income of {money('net_income')}.",
    ]

    drivers = driver_clauses(kpi)
    if drivers:
        paragraphs.append(
            f"Drivers: The period was influenced by {' and '.join(drivers)}."
        )

    paragraphs.append(OUTLOOK)

    return "\n".join([TITLE, f"Period: {latest}", "", *paragraphs])
