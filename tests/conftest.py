import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.config import Settings
from services.repository import RecordRepository

# Five weeks spanning 2023-2024. "Cinema" only exists in the investments
# table and "Promo" only in the contributions table, so neither is a channel.
INVESTMENT_ROWS = [
    {"Date": "2023-12-25", "TV": 1000, "Digital Search": 500, "Radio": 0, "Cinema": 50},
    {"Date": "2024-01-01", "TV": 2000, "Digital Search": 1000, "Radio": 300, "Cinema": 50},
    {"Date": "2024-01-08 00:00:00", "TV": 3000, "Digital Search": None, "Radio": 300, "Cinema": 50},
    {"Date": "2024-06-03", "TV": 1000, "Digital Search": 2000, "Radio": "n/a", "Cinema": 50},
    {"Date": "2024-12-31", "TV": 4000, "Digital Search": 1000, "Radio": 400, "Cinema": 50},
    {"Date": None, "TV": 999999, "Digital Search": 999999, "Radio": 999999},
]

CONTRIBUTION_ROWS = [
    {"Date": "2023-12-25", "TV": 1500, "Digital Search": 1000, "Radio": 0, "Promo": 10, "Base1": 5000, "Sales": 7500},
    {"Date": "2024-01-01", "TV": 3000, "Digital Search": 2500, "Radio": 200, "Promo": 10, "Base1": 6000, "Sales": 11700},
    {"Date": "2024-01-08", "TV": 4000, "Digital Search": 500, "Radio": 250, "Promo": 10, "Base1": 6000, "Sales": 10750},
    {"Date": "2024-06-03", "TV": 1800, "Digital Search": 5000, "Radio": 0, "Promo": 10, "Base1": 5500, "Sales": 12300},
    {"Date": "2024-12-31", "TV": 6000, "Digital Search": 2600, "Radio": 380, "Promo": 10, "Base1": 7000, "Sales": 15980},
]


@pytest.fixture
def investment_rows():
    return [dict(row) for row in INVESTMENT_ROWS]


@pytest.fixture
def contribution_rows():
    return [dict(row) for row in CONTRIBUTION_ROWS]


@pytest.fixture
def repo(investment_rows, contribution_rows):
    repository = RecordRepository()
    repository.load(investment_rows, contribution_rows, source="fixture")
    return repository


@pytest.fixture
def client(repo):
    app = create_app(settings=Settings(), repository=repo)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def empty_client():
    app = create_app(settings=Settings(), repository=RecordRepository())
    with TestClient(app) as test_client:
        yield test_client
