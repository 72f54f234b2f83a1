"""
Database models for Vaultify.
All SQLModel definitions are centralized here.
"""

from models.transaction import Transaction, TransactionType, AssetType
from models.portfolio import Portfolio
from models.stored_value import StoredValue

__all__ = [
    'Transaction',
    'TransactionType',
    'AssetType',
    'Portfolio',
    'StoredValue',
]
