"""
Position engine: folds the transaction log into current holdings.

Cost basis is weighted-average cost (WAC) per (symbol, platform):
every buy blends into one running average, every sell removes invested
capital in proportion to the quantity sold. Fees never enter the cost basis.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from models import AssetType, Transaction, TransactionType

logger = logging.getLogger(__name__)


EXIT_FEE_RATE = 0.00395
LOW_FEE_BROKER = "col"


@dataclass
class Position:
    """Derived holding of one symbol on one platform."""
    symbol: str
    asset_type: AssetType
    platform: str
    total_quantity: float = 0.0
    average_price: float = 0.0
    total_invested: float = 0.0
    current_price: Optional[float] = None
    gross_market_value: Optional[float] = None
    selling_fees: Optional[float] = None
    market_value: Optional[float] = None
    unrealized_gain: Optional[float] = None
    unrealized_gain_percent: Optional[float] = None
    # Savings only
    previous_month_balance: Optional[float] = None
    monthly_gain: Optional[float] = None
    monthly_gain_percent: Optional[float] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.symbol, self.platform)

    @property
    def display_value(self) -> float:
        """Market value when priced, otherwise the invested capital."""
        return self.market_value if self.market_value is not None else self.total_invested

    def _apply_buy(self, price: float, quantity: float) -> None:
        self.total_invested += price * quantity
        self.total_quantity += quantity
        self.average_price = self.total_invested / self.total_quantity if self.total_quantity > 0 else 0.0

    def _apply_sell(self, quantity: float) -> None:
        if self.total_quantity > 0:
            ratio = quantity / self.total_quantity
            self.total_invested -= self.total_invested * ratio
            self.total_quantity -= quantity
            self.average_price = self.total_invested / self.total_quantity if self.total_quantity > 0 else 0.0

        if self.total_quantity <= 0:
            self.total_quantity = 0.0
            self.average_price = 0.0
            self.total_invested = 0.0


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def calculate_positions(
    transactions: Iterable[Transaction],
    portfolio_id: str,
    price_map: Optional[Mapping[str, float]] = None,
    as_of: Optional[date] = None,
    exit_fee_rate: float = EXIT_FEE_RATE,
    low_fee_broker: str = LOW_FEE_BROKER
) -> List[Position]:
    """
    Derive open positions from the transaction log.

    Args:
        transactions: Full transaction log, any order
        portfolio_id: Only transactions of this portfolio are considered
        price_map: Latest price per symbol; savings ignore it and use their balance snapshot
        as_of: Reference day for the month-over-month savings figure (default: today)
        exit_fee_rate: Estimated selling fee applied to stocks and the low-fee broker
        low_fee_broker: Platform alias whose positions always carry the exit-fee estimate

    Returns:
        Positions with positive quantity, in order of first appearance
    """
    price_map = price_map or {}
    month_start = start_of_month(as_of or date.today())

    # sorted() is stable: same-day transactions keep their log order
    ordered = sorted(
        (tx for tx in transactions if tx.portfolio_id == portfolio_id),
        key=lambda tx: tx.transaction_date
    )

    positions: Dict[Tuple[str, str], Position] = {}

    for tx in ordered:
        key = (tx.symbol, tx.platform)
        pos = positions.get(key)
        if pos is None:
            pos = Position(symbol=tx.symbol, asset_type=tx.asset_type, platform=tx.platform)
            positions[key] = pos

        if tx.transaction_type == TransactionType.BUY:
            pos._apply_buy(tx.price, tx.quantity)
        else:
            pos._apply_sell(tx.quantity)

        if tx.asset_type == AssetType.SAVING and tx.current_balance_snapshot is not None:
            if tx.transaction_date < month_start:
                pos.previous_month_balance = tx.current_balance_snapshot
            pos.current_price = tx.current_balance_snapshot

    open_positions = [p for p in positions.values() if p.total_quantity > 0]

    for pos in open_positions:
        if pos.asset_type != AssetType.SAVING and pos.symbol in price_map:
            pos.current_price = price_map[pos.symbol]
        if pos.current_price is not None:
            _value_position(pos, exit_fee_rate, low_fee_broker)

    logger.debug(f"Derived {len(open_positions)} open positions for portfolio {portfolio_id}")
    return open_positions


def _value_position(pos: Position, exit_fee_rate: float, low_fee_broker: str) -> None:
    """Fill market value and gain fields for a position with a known price."""
    if pos.asset_type == AssetType.SAVING:
        # The snapshot already is the account balance
        pos.market_value = pos.current_price
    else:
        gross = pos.total_quantity * pos.current_price
        pos.gross_market_value = gross
        if pos.platform.lower() == low_fee_broker.lower() or pos.asset_type == AssetType.STOCK:
            pos.selling_fees = gross * exit_fee_rate
            pos.market_value = gross - pos.selling_fees
        else:
            pos.market_value = gross

    pos.unrealized_gain = pos.market_value - pos.total_invested
    pos.unrealized_gain_percent = (
        pos.unrealized_gain / pos.total_invested * 100 if pos.total_invested > 0 else 0.0
    )

    if pos.asset_type == AssetType.SAVING and pos.previous_month_balance is not None:
        pos.monthly_gain = pos.market_value - pos.previous_month_balance
        pos.monthly_gain_percent = (
            pos.monthly_gain / pos.previous_month_balance * 100 if pos.previous_month_balance > 0 else 0.0
        )
