"""
Transaction model - an immutable buy/sell record on one platform.
"""

from enum import Enum
from typing import Optional
from datetime import date
from uuid import uuid4
from sqlmodel import SQLModel, Field


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class AssetType(str, Enum):
    STOCK = "STOCK"
    CRYPTO = "CRYPTO"
    SAVING = "SAVING"


class Transaction(SQLModel, table=True):
    """Represents a buy/sell transaction for a symbol on a platform."""
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    portfolio_id: str = Field(index=True)
    symbol: str = Field(index=True)  # e.g., "BTC", "SM", "Maya Savings"
    transaction_type: TransactionType
    asset_type: AssetType
    platform: str = Field(index=True)  # e.g., "col", "coins.ph"
    price: float  # Unit price, or the amount for savings
    quantity: float
    fees: float = Field(default=0.0)
    transaction_date: date = Field(index=True)
    current_balance_snapshot: Optional[float] = Field(default=None)  # Savings only
    sequence: int = Field(default=0, index=True)  # Insertion order, keeps same-day order stable

    @property
    def total_amount(self) -> float:
        """Cash moved by the transaction, fees included."""
        return self.price * self.quantity + self.fees
