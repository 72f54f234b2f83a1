"""
Portfolio service for deriving positions and dashboard aggregates.
Values everything in the portfolio's base currency using the ephemeral price map.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from config import get_settings
from models import AssetType, Portfolio, Transaction
from services.positions import Position, calculate_positions

logger = logging.getLogger(__name__)


@dataclass
class PortfolioSummary:
    """Headline figures for the dashboard."""
    total_market_value: float
    total_invested: float
    total_gain: float
    total_gain_percent: float
    savings_total: float
    savings_capital: float
    savings_yield: float
    position_count: int


@dataclass
class PlatformGroup:
    """Positions held on one platform."""
    platform: str
    positions: List[Position]

    @property
    def total_capital(self) -> float:
        return sum(p.total_invested for p in self.positions)

    @property
    def total_value(self) -> float:
        return sum(p.display_value for p in self.positions)


class PortfolioService:
    """
    Service for portfolio calculations.
    Wraps the position engine with settings-driven fee rules.
    """

    def __init__(self, portfolio: Optional[Portfolio] = None):
        self.portfolio = portfolio or Portfolio.default()

    def get_positions(
        self,
        transactions: Sequence[Transaction],
        price_map: Optional[Mapping[str, float]] = None,
        as_of: Optional[date] = None
    ) -> List[Position]:
        """Derive open positions for the active portfolio."""
        settings = get_settings()
        return calculate_positions(
            transactions,
            self.portfolio.id,
            price_map=price_map,
            as_of=as_of,
            exit_fee_rate=settings.exit_fee_rate,
            low_fee_broker=settings.low_fee_broker
        )

    @staticmethod
    def priceable_symbols(positions: Sequence[Position]) -> List[str]:
        """Symbols whose prices come from the market (savings excluded), first-seen order."""
        symbols: List[str] = []
        for pos in positions:
            if pos.asset_type != AssetType.SAVING and pos.symbol not in symbols:
                symbols.append(pos.symbol)
        return symbols

    @staticmethod
    def summarize(positions: Sequence[Position]) -> PortfolioSummary:
        """
        Compute dashboard totals.

        Unpriced positions count at their invested capital.

        Args:
            positions: Derived positions

        Returns:
            PortfolioSummary
        """
        total_value = sum(p.display_value for p in positions)
        total_invested = sum(p.total_invested for p in positions)
        total_gain = total_value - total_invested
        total_gain_pct = (total_gain / total_invested * 100) if total_invested > 0 else 0.0

        savings = [p for p in positions if p.asset_type == AssetType.SAVING]
        savings_total = sum(p.display_value for p in savings)
        savings_capital = sum(p.total_invested for p in savings)

        return PortfolioSummary(
            total_market_value=total_value,
            total_invested=total_invested,
            total_gain=total_gain,
            total_gain_percent=total_gain_pct,
            savings_total=savings_total,
            savings_capital=savings_capital,
            savings_yield=savings_total - savings_capital,
            position_count=len(positions)
        )

    @staticmethod
    def platform_allocation(positions: Sequence[Position]) -> pd.DataFrame:
        """
        Value per platform, largest first (for the allocation chart).

        Returns:
            DataFrame with columns 'platform' and 'value'
        """
        if not positions:
            return pd.DataFrame(columns=['platform', 'value'])

        df = pd.DataFrame(
            [{'platform': p.platform, 'value': p.display_value} for p in positions]
        )
        return (
            df.groupby('platform', as_index=False, sort=False)['value'].sum()
            .sort_values('value', ascending=False, kind='stable')
            .reset_index(drop=True)
        )

    @staticmethod
    def group_by_platform(positions: Sequence[Position]) -> List[PlatformGroup]:
        """Positions grouped per platform, platforms in alphabetical order."""
        grouped: Dict[str, List[Position]] = {}
        for pos in positions:
            grouped.setdefault(pos.platform, []).append(pos)
        return [PlatformGroup(platform=name, positions=grouped[name]) for name in sorted(grouped)]

    @staticmethod
    def positions_frame(positions: Sequence[Position]) -> pd.DataFrame:
        """Tabular view of positions for display."""
        rows = [
            {
                'Symbol': p.symbol,
                'Type': p.asset_type.value,
                'Platform': p.platform,
                'Quantity': p.total_quantity,
                'Avg Price': p.average_price,
                'Current Price': p.current_price,
                'Invested': p.total_invested,
                'Market Value': p.market_value,
                'Gain': p.unrealized_gain,
                'Gain %': p.unrealized_gain_percent,
            }
            for p in positions
        ]
        return pd.DataFrame(rows)
