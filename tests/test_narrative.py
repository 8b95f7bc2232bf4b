import math
from dataclasses import replace

from smb_findraft.kpis import KPIResult, compute_kpis
from smb_findraft.narrative import OUTLOOK, TITLE, build_draft, driver_clauses


def test_draft_for_two_quarter_scenario(statements_table) -> None:
    draft = build_draft(compute_kpis(statements_table), has_rows=True)

    assert draft.splitlines()[:3] == [TITLE, "Period: 2024-Q2", ""]
    assert "increased 20.0% compared to 2024-Q1" in draft
    assert "volume growth in core offerings" in draft
    assert draft.endswith(OUTLOOK)


def test_draft_full_text(statements_table) -> None:
    draft = build_draft(compute_kpis(statements_table), has_rows=True)

    expected = "\n".join(
        [
            "# Management Discussion and Analysis",
            "Period: 2024-Q2",
            "",
            "Overview: For 2024-Q2, the company reported revenue of $120,000. "
            "Revenue increased 20.0% compared to 2024-Q1.",
            "Profitability: Gross margin was 62.5%, reflecting COGS of $45,000 "
            "and gross profit of $75,000. Operating margin was 35.0%, with "
            "operating expenses at 27.5% of revenue. Net margin was 22.5% with "
            "net income of $27,000.",
            "Drivers: The period was influenced by volume growth in core offerings.",
            OUTLOOK,
        ]
    )
    assert draft == expected


def test_empty_draft_without_rows() -> None:
    assert build_draft(KPIResult(), has_rows=False) == ""


def test_draft_is_deterministic(statements_table) -> None:
    kpi = compute_kpis(statements_table)

    assert build_draft(kpi, True) == build_draft(kpi, True)


def test_decline_and_defaults_for_missing_labels(statements_table) -> None:
    kpi = compute_kpis(statements_table)
    values = dict(kpi.values, revenue_growth=-0.1)
    kpi = replace(kpi, values=values, meta=replace(kpi.meta, latest_period="", prev_period=""))

    draft = build_draft(kpi, has_rows=True)

    assert "Period: Latest" in draft
    assert "Revenue decreased 10.0% compared to Prior." in draft
    assert "volume growth" not in draft


def test_flat_and_missing_growth(statements_table) -> None:
    kpi = compute_kpis(statements_table)

    flat = replace(kpi, values=dict(kpi.values, revenue_growth=0.0))
    assert "Revenue was flat 0.0% compared to 2024-Q1." in build_draft(flat, True)

    missing = replace(kpi, values=dict(kpi.values, revenue_growth=math.nan))
    assert "Revenue was flat — compared to 2024-Q1." in build_draft(missing, True)


def test_driver_clauses_in_rule_order() -> None:
    kpi = KPIResult(
        values={"revenue_growth": 0.1, "opex_ratio": 0.5, "gross_margin": 0.3}
    )

    assert driver_clauses(kpi) == [
        "volume growth in core offerings",
        "higher operating expenses, including investments in growth and G&A",
        "pressure on unit economics and input costs",
    ]


def test_no_drivers_paragraph_when_no_rule_fires() -> None:
    kpi = KPIResult(values={"revenue_growth": math.nan, "opex_ratio": 0.1, "gross_margin": 0.8})

    draft = build_draft(kpi, has_rows=True)

    assert driver_clauses(kpi) == []
    assert "Drivers:" not in draft
    assert "Profitability: Gross margin was 80.0%" in draft
