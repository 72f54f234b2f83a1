"""Tests for the cloud sync client against a fake HTTP session."""

from datetime import date

import pytest
import requests
from pydantic import ValidationError

from config import reload_settings
from models import AssetType, TransactionType
from services.sync import SyncPayload, SyncService, SyncStatus, SyncTransaction

BASE = "https://sync.example.test/v3/b"


def _payload():
    return SyncPayload(
        transactions=[
            SyncTransaction(
                id="tx1",
                portfolio_id="main",
                symbol="BTC",
                type=TransactionType.BUY,
                asset_type=AssetType.CRYPTO,
                platform="bybit",
                price=3500000.0,
                quantity=0.01,
                date=date(2024, 5, 1),
            )
        ],
        platforms=["bybit", "col"],
        last_synced=1714521600000,
    )


def _record():
    return {
        "transactions": [
            {
                "id": "abc",
                "portfolioId": "main",
                "symbol": "MAYA SAVINGS",
                "type": "BUY",
                "assetType": "SAVING",
                "platform": "maya",
                "price": 5000,
                "quantity": 1,
                "date": "2024-04-02",
                "fees": 0,
                "currentBalanceSnapshot": 5120.5,
            }
        ],
        "platforms": ["maya"],
        "lastSynced": 1714521600000,
    }


def test_wire_format_uses_camel_case():
    wire = _payload().to_wire()

    tx = wire["transactions"][0]
    assert wire["lastSynced"] == 1714521600000
    assert tx["portfolioId"] == "main"
    assert tx["assetType"] == "CRYPTO"
    assert tx["type"] == "BUY"
    assert tx["date"] == "2024-05-01"
    assert "currentBalanceSnapshot" in tx


def test_push_without_key_creates_private_record(fake_session, fake_response):
    session = fake_session(fake_response(200, {"record": {}, "metadata": {"id": "bin-123"}}))
    service = SyncService(session=session)

    key = service.push(None, _payload())

    assert key == "bin-123"
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == BASE
    assert call["headers"]["X-Master-Key"] == "test-master-key"
    assert call["headers"]["X-Bin-Private"] == "true"
    assert call["headers"]["X-Bin-Name"].startswith("Vaultify_Backup_")
    assert call["json"]["platforms"] == ["bybit", "col"]


def test_push_with_key_overwrites_record(fake_session, fake_response):
    session = fake_session(fake_response(200, {"record": {}}))
    service = SyncService(session=session)

    assert service.push("bin-123", _payload()) == "bin-123"
    call = session.calls[0]
    assert call["method"] == "PUT"
    assert call["url"] == f"{BASE}/bin-123"
    assert "X-Bin-Name" not in call["headers"]


def test_push_rejected_returns_none(fake_session, fake_response):
    session = fake_session(fake_response(401, text="Invalid X-Master-Key"))

    assert SyncService(session=session).push("bin-123", _payload()) is None


def test_push_transport_error_returns_none(fake_session):
    session = fake_session(error=requests.RequestException("offline"))

    assert SyncService(session=session).push(None, _payload()) is None


def test_push_response_without_id_returns_none(fake_session, fake_response):
    session = fake_session(fake_response(200, {"record": {}}))

    assert SyncService(session=session).push(None, _payload()) is None


def test_pull_success_parses_record(fake_session, fake_response):
    session = fake_session(fake_response(200, {"record": _record(), "metadata": {"id": "bin-123"}}))

    result = SyncService(session=session).pull("bin-123")

    assert result.ok
    assert result.status == SyncStatus.SUCCESS
    assert result.message == "Cloud data restored!"
    assert session.calls[0]["method"] == "GET"
    assert session.calls[0]["url"] == f"{BASE}/bin-123/latest"

    tx = result.payload.transactions[0]
    assert tx.asset_type == AssetType.SAVING
    assert tx.date == date(2024, 4, 2)
    assert tx.current_balance_snapshot == 5120.5
    assert result.payload.platforms == ["maya"]

    model = tx.to_model()
    assert model.transaction_date == date(2024, 4, 2)
    assert model.transaction_type == TransactionType.BUY


def test_pull_unknown_key_is_not_found(fake_session, fake_response):
    session = fake_session(fake_response(404, {"message": "Bin not found"}))

    result = SyncService(session=session).pull("missing")

    assert result.status == SyncStatus.NOT_FOUND
    assert result.payload is None
    assert not result.ok


def test_pull_server_error_is_distinct_from_not_found(fake_session, fake_response):
    session = fake_session(fake_response(500, text="oops"))

    result = SyncService(session=session).pull("bin-123")

    assert result.status == SyncStatus.ERROR
    assert result.message == "Failed to pull data."


def test_pull_transport_error(fake_session):
    session = fake_session(error=requests.RequestException("offline"))

    result = SyncService(session=session).pull("bin-123")

    assert result.status == SyncStatus.ERROR


def test_pull_blank_key_makes_no_request(fake_session):
    session = fake_session()

    result = SyncService(session=session).pull("")

    assert result.status == SyncStatus.ERROR
    assert session.calls == []


def test_pull_malformed_record(fake_session, fake_response):
    session = fake_session(fake_response(200, {"record": {"transactions": [{"id": "x"}]}}))

    result = SyncService(session=session).pull("bin-123")

    assert result.status == SyncStatus.ERROR
    assert result.message == "Cloud record is malformed."


def test_no_master_key_sends_no_credential(fake_session, fake_response, monkeypatch):
    monkeypatch.setenv("SYNC_MASTER_KEY", "")
    reload_settings()
    session = fake_session(fake_response(404))

    SyncService(session=session).pull("bin-123")

    assert "X-Master-Key" not in session.calls[0]["headers"]


def test_connection_errors_are_retried_on_push(fake_session, no_retry_wait):
    session = fake_session(error=requests.ConnectionError("connection reset"))

    assert SyncService(session=session).push("bin-123", _payload()) is None
    assert len(session.calls) == 3


def test_timeouts_are_retried_on_pull(fake_session, no_retry_wait):
    session = fake_session(error=requests.Timeout("read timed out"))

    result = SyncService(session=session).pull("bin-123")

    assert result.status == SyncStatus.ERROR
    assert len(session.calls) == 3


def test_duplicate_ids_are_rejected_as_malformed(fake_session, fake_response):
    record = _record()
    record["transactions"].append(dict(record["transactions"][0]))
    session = fake_session(fake_response(200, {"record": record}))

    result = SyncService(session=session).pull("bin-123")

    assert result.status == SyncStatus.ERROR
    assert result.message == "Cloud record is malformed."
    assert result.payload is None


def test_payload_refuses_duplicate_ids():
    tx = _payload().transactions[0]

    with pytest.raises(ValidationError, match="Duplicate transaction id"):
        SyncPayload(transactions=[tx, tx])
