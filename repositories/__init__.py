"""
Repositories package for Vaultify.
Provides data access layer for all database operations.
"""

from repositories.transaction_repository import TransactionRepository
from repositories.stored_value_repository import (
    StoredValueRepository,
    PLATFORMS_KEY,
    SYNC_KEY_KEY,
)

__all__ = [
    'TransactionRepository',
    'StoredValueRepository',
    'PLATFORMS_KEY',
    'SYNC_KEY_KEY',
]
