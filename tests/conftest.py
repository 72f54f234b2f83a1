"""Pytest configuration and shared fixtures for Vaultify tests.

Every test gets its own SQLite file and freshly loaded settings, so nothing
touches the real vaultify.db. External services (LLM, news search, JSONBin)
are replaced with in-process fakes.
"""

from __future__ import annotations

from datetime import date

import pytest
from tenacity import wait_none

import db_engine
from config import reload_settings
from models import AssetType, Transaction, TransactionType
from services.market_data import MarketDataService
from services.sync import SyncService


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temporary database and a test sync credential."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'vaultify_test.db'}")
    monkeypatch.setenv("SYNC_MASTER_KEY", "test-master-key")
    monkeypatch.setenv("SYNC_API_BASE", "https://sync.example.test/v3/b")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("LLM_MODE", "cloud")
    monkeypatch.setenv("PORTFOLIO_ID", "main")
    monkeypatch.setenv("BASE_CURRENCY", "PHP")
    reload_settings()
    db_engine.reset_engine()
    yield
    db_engine.reset_engine()


@pytest.fixture
def db():
    """Create all tables in the per-test database."""
    db_engine.init_db()
    return db_engine.get_engine()


@pytest.fixture
def make_tx():
    """Factory for Transaction objects with sensible defaults."""

    def _make(
        symbol: str = "SM",
        tx_type: TransactionType = TransactionType.BUY,
        price: float = 100.0,
        quantity: float = 10.0,
        day: date = date(2024, 1, 10),
        platform: str = "col",
        asset_type: AssetType = AssetType.STOCK,
        fees: float = 0.0,
        snapshot: float | None = None,
        portfolio_id: str = "main",
    ) -> Transaction:
        return Transaction(
            portfolio_id=portfolio_id,
            symbol=symbol,
            transaction_type=tx_type,
            asset_type=asset_type,
            platform=platform,
            price=price,
            quantity=quantity,
            fees=fees,
            transaction_date=day,
            current_balance_snapshot=snapshot,
        )

    return _make


class FakeLLM:
    """Stands in for LLMClient: returns canned replies or raises."""

    def __init__(self, *replies, error: Exception | None = None):
        self.replies = list(replies)
        self.error = error
        self.prompts: list[str] = []

    def invoke(self, message: str, system_message: str | None = None) -> str:
        self.prompts.append(message)
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]


class FakeResponse:
    """Minimal requests.Response replacement."""

    def __init__(self, status_code: int = 200, json_data=None, text: str = ""):
        self.status_code = status_code
        self._json = json_data
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeSession:
    """Records requests and replays queued responses (or raises)."""

    def __init__(self, *responses, error: Exception | None = None):
        self.responses = list(responses)
        self.error = error
        self.calls: list[dict] = []

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append(
            {"method": method, "url": url, "headers": headers or {}, "json": json, "timeout": timeout}
        )
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


@pytest.fixture
def fake_llm():
    return FakeLLM


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Keep tenacity retries but skip the backoff sleeps."""
    monkeypatch.setattr(MarketDataService._ask.retry, "wait", wait_none())
    monkeypatch.setattr(SyncService._request.retry, "wait", wait_none())
