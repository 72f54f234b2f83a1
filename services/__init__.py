"""
Services package for Vaultify.
Provides core business logic separated from presentation and data layers.
"""

from services.common import (
    normalize_symbol,
    normalize_platform,
    format_currency,
    format_percent,
    classify_sentiment,
    extract_json_object,
)
from services.positions import Position, calculate_positions
from services.market_data import MarketDataService, MarketInsight, InsightSource
from services.sync import SyncService, SyncPayload, SyncTransaction, SyncStatus, PullResult
from services.ledger import LedgerService
from services.portfolio import PortfolioService, PortfolioSummary, PlatformGroup

__all__ = [
    # Common utilities
    'normalize_symbol',
    'normalize_platform',
    'format_currency',
    'format_percent',
    'classify_sentiment',
    'extract_json_object',
    # Position engine
    'Position',
    'calculate_positions',
    # Services
    'MarketDataService',
    'MarketInsight',
    'InsightSource',
    'SyncService',
    'SyncPayload',
    'SyncTransaction',
    'SyncStatus',
    'PullResult',
    'LedgerService',
    'PortfolioService',
    'PortfolioSummary',
    'PlatformGroup',
]
