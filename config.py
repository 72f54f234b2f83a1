"""
Configuration management for Vaultify.
Uses pydantic-settings for type-safe, centralized configuration.
"""

import logging
from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PLATFORMS = ['coins.ph', 'col', 'bybit', 'maya', 'all ph banks', 'gcash']


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'  # Allow extra fields in .env for flexibility
    )

    # Database
    database_url: str = "sqlite:///vaultify.db"
    db_echo: bool = False

    # Logging
    log_level: str = "INFO"

    # LLM Configuration
    llm_mode: Literal["cloud", "local"] = "cloud"
    openai_api_key: Optional[str] = None
    openai_model: Optional[str] = None
    openai_base_url: Optional[str] = None
    local_model: str = "qwen2.5:14b"
    local_llm_url: str = "http://localhost:11434/v1"
    llm_temperature: float = 0.2

    # Cloud Sync (JSONBin v3)
    sync_api_base: str = "https://api.jsonbin.io/v3/b"
    sync_master_key: Optional[str] = None
    sync_timeout: float = 15.0

    # Portfolio
    portfolio_id: str = "main"
    portfolio_name: str = "Unified Portfolio"
    base_currency: str = "PHP"
    default_platforms: List[str] = list(DEFAULT_PLATFORMS)

    # Valuation
    low_fee_broker: str = "col"
    exit_fee_rate: float = 0.00395

    # Market intelligence
    news_results_per_symbol: int = 2
    max_insight_sources: int = 3

    @property
    def is_openai_configured(self) -> bool:
        """Check if OpenAI cloud mode is properly configured."""
        return all([
            self.openai_api_key,
            self.openai_model
        ])

    @property
    def is_sync_configured(self) -> bool:
        """Check if the remote sync credential is present."""
        return bool(self.sync_master_key)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the application format."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
