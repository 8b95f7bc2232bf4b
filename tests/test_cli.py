import re

import pytest

import smb_findraft.export as export
from smb_findraft import __version__
from smb_findraft.cli import main
from smb_findraft.export import DRAFT_FILENAME
from smb_findraft.storage import SQLiteStore, StorageConfig


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "smb_findraft_config.toml"
    path.write_text(
        '[storage]\npath = "db.sqlite"\n\n[draft]\noutput_dir = "out"\n',
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def csv_path(tmp_path, statements_csv):
    path = tmp_path / "statements.csv"
    path.write_text(statements_csv, encoding="utf-8")
    return str(path)


def run(config_path, *args) -> int:
    return main(["--config", config_path, *args])


def test_version(capsys) -> None:
    assert main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_ingest_kpis_and_draft(tmp_path, config_path, csv_path, capsys) -> None:
    assert run(config_path, "ingest", csv_path) == 0
    out = capsys.readouterr().out
    assert "Imported 2 rows" in out
    assert "OperatingExpenses" in out

    assert run(config_path, "kpis") == 0
    out = capsys.readouterr().out
    assert "$120,000" in out
    assert "20.0%" in out

    assert run(config_path, "draft", "--output") == 0
    out = capsys.readouterr().out
    assert "increased 20.0% compared to 2024-Q1" in out
    exported = tmp_path / "out" / DRAFT_FILENAME
    assert "volume growth in core offerings" in exported.read_text(encoding="utf-8")


def test_rejected_csv_keeps_previous_table(tmp_path, config_path, csv_path, capsys) -> None:
    run(config_path, "ingest", csv_path)
    empty = tmp_path / "empty.csv"
    empty.write_text("Period,Revenue\n", encoding="utf-8")
    capsys.readouterr()

    assert run(config_path, "ingest", str(empty)) == 1
    out = capsys.readouterr().out
    assert "No rows found" in out
    assert "previous table (2 rows) was kept" in out

    run(config_path, "kpis")
    assert "$120,000" in capsys.readouterr().out


def test_draft_without_data(config_path, capsys) -> None:
    assert run(config_path, "draft") == 1
    assert "nothing to draft" in capsys.readouterr().out


def test_draft_copy_failure_does_not_fail(config_path, csv_path, capsys, monkeypatch) -> None:
    def broken(text):
        raise RuntimeError("no clipboard")

    monkeypatch.setattr(export, "clipboard_set", broken)
    run(config_path, "ingest", csv_path)

    assert run(config_path, "draft", "--copy") == 0
    assert "Clipboard not available" in capsys.readouterr().out


def test_ledger_workflow_and_report(config_path, capsys) -> None:
    assert run(config_path, "ledger", "add", "expenses", "date=2025-01-10", "amount=120") == 0
    out = capsys.readouterr().out
    expense_id = re.search(r"entry (\w+)\.", out).group(1)

    assert run(config_path, "ledger", "approve", expense_id) == 0
    assert run(
        config_path,
        "ledger", "add", "invoices", "client=Globex", "--item", "Consulting:10:150",
    ) == 0
    out = capsys.readouterr().out
    invoice_id = re.findall(r"entry (\w+)\.", out)[-1]

    assert run(config_path, "ledger", "pay", invoice_id) == 0
    capsys.readouterr()

    assert run(config_path, "ledger", "list", "expenses") == 0
    out = capsys.readouterr().out
    assert "Approved" in out

    assert run(config_path, "report") == 0
    out = capsys.readouterr().out
    assert "$1,500.00" in out
    assert "$1,380.00" in out


def test_ledger_errors_are_reported(config_path, capsys) -> None:
    assert run(config_path, "ledger", "remove", "goals", "missing") == 1
    assert "Error" in capsys.readouterr().out

    assert run(config_path, "ledger", "add", "goals", "name=Hire", "progress=150") == 1
    assert "between 0 and 100" in capsys.readouterr().out


def test_settings(config_path, capsys) -> None:
    assert run(config_path, "settings", "--currency", "EUR", "--tax-rate", "0.3", "--done", "filings") == 0
    capsys.readouterr()

    assert run(config_path, "settings") == 0
    out = capsys.readouterr().out
    assert "Currency: EUR" in out
    assert "Tax rate: 30.00%" in out
    assert re.search(r"filings\s+done", out)


def test_ingest_non_utf8_file_keeps_previous_table(tmp_path, config_path, csv_path, capsys) -> None:
    run(config_path, "ingest", csv_path)
    latin1 = tmp_path / "latin1.csv"
    latin1.write_bytes("Period,Revenue,Client\n2024-Q3,5,Café\n".encode("latin-1"))
    capsys.readouterr()

    assert run(config_path, "ingest", str(latin1)) == 1
    out = capsys.readouterr().out
    assert "not valid UTF-8" in out
    assert "previous table (2 rows) was kept" in out

    run(config_path, "kpis")
    assert "$120,000" in capsys.readouterr().out


def test_ingest_prints_a_preview_of_the_rows(config_path, csv_path, capsys) -> None:
    assert run(config_path, "ingest", csv_path) == 0

    out = capsys.readouterr().out
    assert "First rows" in out
    assert "2024-Q1" in out and "120000" in out


def test_missing_csv_file(tmp_path, config_path, capsys) -> None:
    assert run(config_path, "ingest", str(tmp_path / "nope.csv")) == 1
    assert "CSV file not found" in capsys.readouterr().out


def test_invalid_stored_ledger_row_does_not_break_commands(tmp_path, config_path, capsys) -> None:
    store = SQLiteStore(StorageConfig(engine="sqlite", path=tmp_path / "db.sqlite"))
    store.set("fs_expenses", [{"id": "x", "date": "", "amount": 5}])

    assert run(config_path, "report") == 0
    assert "Net Income" in capsys.readouterr().out

    assert run(config_path, "ledger", "list", "expenses") == 0
    assert "No expenses yet." in capsys.readouterr().out
