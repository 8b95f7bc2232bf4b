# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB FinDraft
------------

A Python-based financial assistant for Small and Medium-sized Businesses
(SMBs). It reads a financial statements CSV, computes the KPIs of the most
recent period and drafts a plain-text Management Discussion & Analysis
(MD&A) narrative from them.

Main capabilities:
- tolerant CSV ingestion (quoted fields, padded short rows),
- column role inference from common header aliases,
- period ordering (dates, quarter labels, positional fallback),
- KPI computation with safe handling of missing values,
- rule-based MD&A drafting, export to a text file and clipboard copy,
- simple bookkeeping ledgers (expenses, invoices, budgets, cash, payroll,
  assets...) with derived statements and a tax estimate,
- persistence of the workspace and ledgers in a SQLite key-value store.


Version: 0.1.0

Usage:
    python -m smb_findraft.cli --help
"""

__all__ = ["csv_table", "mapping", "kpis", "narrative", "ledgers", "reports"]

__version__ = "0.1.0"
