"""Tests for settings loading."""

from config import DEFAULT_PLATFORMS, Settings, get_settings, reload_settings
from models import Portfolio


def test_defaults(monkeypatch):
    monkeypatch.delenv("SYNC_MASTER_KEY")
    monkeypatch.delenv("SYNC_API_BASE")
    settings = Settings(_env_file=None)

    assert settings.base_currency == "PHP"
    assert settings.exit_fee_rate == 0.00395
    assert settings.low_fee_broker == "col"
    assert settings.default_platforms == DEFAULT_PLATFORMS
    assert settings.sync_api_base == "https://api.jsonbin.io/v3/b"
    assert not settings.is_sync_configured


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("BASE_CURRENCY", "USD")
    monkeypatch.setenv("PORTFOLIO_NAME", "Family Vault")
    reload_settings()

    portfolio = Portfolio.default()

    assert get_settings().is_sync_configured
    assert portfolio.base_currency == "USD"
    assert portfolio.name == "Family Vault"
    assert portfolio.id == "main"


def test_openai_needs_key_and_model(monkeypatch):
    monkeypatch.delenv("OPENAI_MODEL", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert not reload_settings().is_openai_configured

    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
    assert reload_settings().is_openai_configured
