"""
Ledger service: the local transaction log, platform list and sync key.
Builds validated transactions from form input and moves the whole local
state in and out of a SyncPayload.
"""

import logging
from datetime import date
from typing import List, Optional

from config import get_settings
from models import AssetType, Portfolio, Transaction, TransactionType
from repositories import PLATFORMS_KEY, SYNC_KEY_KEY, StoredValueRepository, TransactionRepository
from services.common import normalize_platform, normalize_symbol
from services.sync import SyncPayload, SyncTransaction

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Service for recording and restoring the transaction log.
    Transactions are immutable: they are only ever added or deleted.
    """

    def __init__(self, portfolio: Optional[Portfolio] = None):
        self.portfolio = portfolio or Portfolio.default()

    # ==================== Transactions ====================
    def build_transaction(
        self,
        symbol: str,
        transaction_type: TransactionType,
        asset_type: AssetType,
        platform: str,
        price: Optional[float],
        quantity: Optional[float],
        fees: Optional[float] = 0.0,
        transaction_date: Optional[date] = None,
        balance_snapshot: Optional[float] = None
    ) -> Transaction:
        """
        Validate form input and build a Transaction for the active portfolio.

        Savings entries always carry quantity 1 (the price is the amount) and
        are the only entries that keep a balance snapshot.

        Raises:
            ValueError: if a required field is missing or a number is negative
        """
        symbol = normalize_symbol(symbol)
        platform = normalize_platform(platform)
        is_saving = asset_type == AssetType.SAVING

        if not symbol:
            raise ValueError("Symbol is required.")
        if not platform:
            raise ValueError("Platform is required.")
        if price is None:
            raise ValueError("Price is required.")
        if not is_saving and not quantity:
            raise ValueError("Quantity is required.")
        if price < 0 or (quantity or 0) < 0 or (fees or 0) < 0:
            raise ValueError("Price, quantity and fees cannot be negative.")

        return Transaction(
            portfolio_id=self.portfolio.id,
            symbol=symbol,
            transaction_type=TransactionType(transaction_type),
            asset_type=AssetType(asset_type),
            platform=platform,
            price=float(price),
            quantity=1.0 if is_saving else float(quantity),
            fees=float(fees or 0.0),
            transaction_date=transaction_date or date.today(),
            current_balance_snapshot=float(balance_snapshot) if is_saving and balance_snapshot is not None else None
        )

    def record_transaction(self, **form) -> Transaction:
        """Validate and append a transaction to the log."""
        transaction = TransactionRepository.add(self.build_transaction(**form))
        logger.info(
            f"Recorded {transaction.transaction_type.value} {transaction.symbol} "
            f"on {transaction.platform} ({transaction.quantity} @ {transaction.price})"
        )
        return transaction

    def delete_transaction(self, transaction_id: str) -> bool:
        """Remove a transaction by id."""
        deleted = TransactionRepository.delete(transaction_id)
        if deleted:
            logger.info(f"Deleted transaction {transaction_id}")
        else:
            logger.warning(f"Transaction {transaction_id} not found")
        return deleted

    def list_transactions(self) -> List[Transaction]:
        """All transactions in log order."""
        return TransactionRepository.get_all()

    def history(self) -> List[Transaction]:
        """Transactions of the active portfolio, newest first."""
        transactions = TransactionRepository.get_all(self.portfolio.id)
        return sorted(transactions, key=lambda tx: tx.transaction_date, reverse=True)

    # ==================== Platforms ====================
    def get_platforms(self) -> List[str]:
        """Stored platform list, seeded from defaults on first use."""
        platforms = StoredValueRepository.get(PLATFORMS_KEY)
        if platforms is None:
            platforms = list(get_settings().default_platforms)
            StoredValueRepository.set(PLATFORMS_KEY, platforms)
        return platforms

    def add_platform(self, name: str) -> List[str]:
        """
        Add a platform label (lower-cased); duplicates are ignored.

        Raises:
            ValueError: if the name is blank
        """
        platform = normalize_platform(name)
        if not platform:
            raise ValueError("Platform name is required.")

        platforms = self.get_platforms()
        if platform not in platforms:
            platforms.append(platform)
            StoredValueRepository.set(PLATFORMS_KEY, platforms)
            logger.info(f"Added platform {platform}")
        return platforms

    # ==================== Sync state ====================
    def get_sync_key(self) -> Optional[str]:
        return StoredValueRepository.get(SYNC_KEY_KEY)

    def set_sync_key(self, key: str) -> None:
        StoredValueRepository.set(SYNC_KEY_KEY, key)

    def clear_sync_key(self) -> bool:
        return StoredValueRepository.remove(SYNC_KEY_KEY)

    def export_state(self) -> SyncPayload:
        """Snapshot the whole local state for upload."""
        return SyncPayload(
            transactions=[SyncTransaction.from_model(tx) for tx in self.list_transactions()],
            platforms=self.get_platforms()
        )

    def import_state(self, payload: SyncPayload) -> int:
        """
        Replace local transactions and platforms with a pulled payload.
        Unsynced local edits are discarded.

        Returns:
            Number of transactions now stored
        """
        count = TransactionRepository.replace_all(tx.to_model() for tx in payload.transactions)
        platforms = []
        for name in payload.platforms:
            platform = normalize_platform(name)
            if platform and platform not in platforms:
                platforms.append(platform)
        StoredValueRepository.set(PLATFORMS_KEY, platforms)
        logger.info(f"Restored {count} transactions and {len(platforms)} platforms")
        return count
