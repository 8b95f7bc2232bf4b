import pandas as pd
import pytest

from smb_findraft.csv_table import (
    DecodingError,
    EmptyInputError,
    IngestionError,
    NoRowsError,
    Table,
    read_statements_csv,
    tokenize_row,
    tokenize_text,
)


def test_tokenize_row_keeps_commas_inside_quotes() -> None:
    """A quoted field keeps its embedded comma and loses its quotes."""
    assert tokenize_row('"Acme, Inc.",100,"50"') == ["Acme, Inc.", "100", "50"]


def test_tokenize_row_unescapes_doubled_quotes_and_trims() -> None:
    assert tokenize_row(' "say ""hi""" , 2 ,3 ') == ['say "hi"', "2", "3"]


def test_tokenize_row_unterminated_quote_consumes_rest_of_line() -> None:
    assert tokenize_row('a,"b,c') == ["a", "b,c"]


def test_tokenize_row_empty_fields() -> None:
    assert tokenize_row(",,") == ["", "", ""]


def test_tokenize_text_builds_records_keyed_by_header(statements_csv) -> None:
    table = tokenize_text(statements_csv)

    assert table.columns == ["Period", "Revenue", "COGS", "OperatingExpenses", "NetIncome"]
    assert len(table) == 2
    assert table.records[0]["Period"] == "2024-Q1"
    assert table.records[1]["NetIncome"] == "27000"


def test_tokenize_text_accepts_crlf_cr_and_blank_lines() -> None:
    text = "A,B\r\n1,2\r\r\n3,4\r"
    table = tokenize_text(text)

    assert [r["A"] for r in table] == ["1", "3"]
    assert [r["B"] for r in table] == ["2", "4"]


def test_short_rows_are_padded_and_extra_fields_ignored() -> None:
    """Every record has exactly the header's key set."""
    table = tokenize_text("A,B,C\n1\n1,2,3,4")

    assert table.records[0] == {"A": "1", "B": "", "C": ""}
    assert table.records[1] == {"A": "1", "B": "2", "C": "3"}
    for record in table:
        assert list(record) == table.columns


@pytest.mark.parametrize("text", [None, "", "   ", "\n\r\n  \n"])
def test_empty_input_raises_empty_input_error(text) -> None:
    with pytest.raises(EmptyInputError):
        tokenize_text(text)


def test_header_without_rows_raises_no_rows_error() -> None:
    with pytest.raises(NoRowsError, match="No rows found"):
        tokenize_text("Period,Revenue\n\n")


def test_ingestion_errors_are_value_errors() -> None:
    assert issubclass(EmptyInputError, IngestionError)
    assert issubclass(NoRowsError, IngestionError)
    assert issubclass(IngestionError, ValueError)


def test_csv_text_round_trip_preserves_cells() -> None:
    """Rebuilding a table from its own CSV text gives the same cells."""
    original = Table(
        records=[
            {"Client": "Acme, Inc.", "Note": 'He said "ok"', "Amount": "1,200"},
            {"Client": "Globex", "Note": "", "Amount": "300"},
        ],
        columns=["Client", "Note", "Amount"],
    )

    rebuilt = tokenize_text(original.to_csv_text())

    assert rebuilt.columns == original.columns
    assert rebuilt.records == original.records


def test_to_frame_returns_string_dataframe(statements_table) -> None:
    df = statements_table.to_frame()

    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == statements_table.columns
    assert df.loc[1, "Revenue"] == "120000"


def test_read_statements_csv_strips_bom(tmp_path) -> None:
    csv_path = tmp_path / "statements.csv"
    csv_path.write_text("\ufeffPeriod,Revenue\n2024-Q1,10\n", encoding="utf-8")

    table = read_statements_csv(csv_path)

    assert table.columns == ["Period", "Revenue"]


def test_read_statements_csv_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        read_statements_csv(tmp_path / "missing.csv")


def test_read_statements_csv_rejects_non_utf8(tmp_path) -> None:
    """A Latin-1 file is reported as an ingestion error, not a decode crash."""
    csv_path = tmp_path / "latin1.csv"
    csv_path.write_bytes("Period,Client\n2024-Q1,Société Générale\n".encode("latin-1"))

    with pytest.raises(DecodingError, match="not valid UTF-8"):
        read_statements_csv(csv_path)
    assert issubclass(DecodingError, IngestionError)
