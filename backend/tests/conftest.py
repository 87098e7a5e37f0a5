"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone
import pytest
from fastapi.testclient import TestClient
from unifypay.main import app
from unifypay.models import DepositCreate, TransactionCreate
from unifypay.storage import database
from unifypay.storage.database import DepositStore, TransactionStore


@pytest.fixture(autouse=True)
def stores(tmp_path, monkeypatch):
    """Point the global stores at a fresh database for every test."""
    db_path = str(tmp_path / "unifypay-test.db")
    transaction_store = TransactionStore(db_path)
    deposit_store = DepositStore(db_path)
    monkeypatch.setattr(database, "_transaction_store", transaction_store)
    monkeypatch.setattr(database, "_deposit_store", deposit_store)
    return transaction_store, deposit_store


@pytest.fixture
def transaction_store(stores):
    return stores[0]


@pytest.fixture
def deposit_store(stores):
    return stores[1]


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def clock(monkeypatch):
    """Strictly increasing creation times, one second apart."""
    start = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
    ticks = iter(range(10_000))
    monkeypatch.setattr(database, "utcnow", lambda: start + timedelta(seconds=next(ticks)))
    return start


def make_transaction(**overrides) -> TransactionCreate:
    defaults = dict(
        description="Consulting invoice",
        amount=100.0,
        direction="income",
        currency="USD",
        status="confirmed",
        payment_method="Bank transfer",
    )
    defaults.update(overrides)
    return TransactionCreate(**defaults)


def make_deposit(**overrides) -> DepositCreate:
    defaults = dict(
        amount=20.0,
        currency="USD",
        recipient="ACME Corp",
        deposit_type="Transfer",
        status="confirmed",
        description="Monthly top-up",
    )
    defaults.update(overrides)
    return DepositCreate(**defaults)


def transaction_payload(**overrides) -> dict:
    payload = {
        "description": "Consulting invoice",
        "amount": 100.0,
        "direction": "income",
        "currency": "USD",
        "status": "confirmed",
        "payment_method": "Bank transfer",
    }
    payload.update(overrides)
    return payload


def deposit_payload(**overrides) -> dict:
    payload = {
        "amount": 20.0,
        "currency": "USD",
        "recipient": "ACME Corp",
        "deposit_type": "Transfer",
        "status": "confirmed",
        "description": "Monthly top-up",
    }
    payload.update(overrides)
    return payload
