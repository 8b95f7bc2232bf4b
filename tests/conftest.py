import pytest

from smb_findraft.csv_table import tokenize_text
from smb_findraft.storage import MemoryStore

STATEMENTS_CSV = (
    "Period,Revenue,COGS,OperatingExpenses,NetIncome\n"
    "2024-Q1,100000,40000,30000,20000\n"
    "2024-Q2,120000,45000,33000,27000"
)


@pytest.fixture
def statements_csv() -> str:
    """Two quarters of a small business income statement."""
    return STATEMENTS_CSV


@pytest.fixture
def statements_table(statements_csv):
    return tokenize_text(statements_csv)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
