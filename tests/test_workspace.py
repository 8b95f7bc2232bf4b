import pytest

from smb_findraft.csv_table import EmptyInputError, NoRowsError
from smb_findraft.storage import MemoryStore
from smb_findraft.workspace import META_KEY, ROWS_KEY, DataWorkspace


def test_new_workspace_is_empty(memory_store) -> None:
    ws = DataWorkspace(memory_store)

    assert not ws.has_rows
    assert ws.columns == []
    assert ws.draft() == ""
    assert not ws.kpis().has_data


def test_ingest_saves_rows_and_columns(memory_store, statements_csv) -> None:
    ws = DataWorkspace(memory_store)

    table = ws.ingest_text(statements_csv)

    assert len(table) == 2
    assert memory_store.get(ROWS_KEY) == table.records
    assert memory_store.get(META_KEY) == {"columns": table.columns}


def test_workspace_reloads_saved_table(memory_store, statements_csv) -> None:
    DataWorkspace(memory_store).ingest_text(statements_csv)

    ws = DataWorkspace(memory_store)

    assert ws.has_rows
    assert ws.columns[0] == "Period"
    assert ws.kpis().meta.latest_period == "2024-Q2"


@pytest.mark.parametrize(
    "bad_text, error",
    [("", EmptyInputError), ("Period,Revenue\n", NoRowsError)],
)
def test_failed_ingestion_keeps_previous_table(
    memory_store, statements_csv, bad_text, error
) -> None:
    ws = DataWorkspace(memory_store)
    ws.ingest_text(statements_csv)

    with pytest.raises(error):
        ws.ingest_text(bad_text)

    assert len(ws.table) == 2
    assert len(memory_store.get(ROWS_KEY)) == 2


def test_kpis_follow_table_changes(memory_store, statements_csv) -> None:
    ws = DataWorkspace(memory_store)
    ws.ingest_text(statements_csv)
    assert ws.kpis().values["revenue"] == 120000

    ws.ingest_text("Period,Revenue\n2025-Q1,5")

    assert ws.kpis().values["revenue"] == 5


def test_draft_uses_workspace_currency(statements_csv) -> None:
    ws = DataWorkspace(MemoryStore(), currency="GBP")
    ws.ingest_text(statements_csv)

    assert "revenue of £120,000" in ws.draft()


def test_clear_forgets_table(memory_store, statements_csv) -> None:
    ws = DataWorkspace(memory_store)
    ws.ingest_text(statements_csv)

    ws.clear()

    assert not ws.has_rows
    assert memory_store.get(ROWS_KEY) == []


def test_malformed_saved_state_loads_as_empty(memory_store) -> None:
    memory_store.set(ROWS_KEY, "not a list")
    memory_store.set(META_KEY, None)

    ws = DataWorkspace(memory_store)

    assert not ws.has_rows
    assert ws.columns == []


def test_ingest_table_replaces_and_saves(memory_store, statements_table) -> None:
    ws = DataWorkspace(memory_store)

    ws.ingest_table(statements_table)

    assert DataWorkspace(memory_store).kpis().values["revenue"] == 120000
