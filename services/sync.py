"""
Cloud sync service for pushing/pulling the full local state to JSONBin v3.
The remote record is one JSON blob; last writer wins, there is no merge.
Enhanced with tenacity for retry on connection errors.
"""

import logging
import datetime
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from config import get_settings
from models import AssetType, Transaction, TransactionType

logger = logging.getLogger(__name__)


class SyncTransaction(BaseModel):
    """Wire form of a transaction inside the sync blob (camelCase keys)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    portfolio_id: str
    symbol: str
    type: TransactionType
    asset_type: AssetType
    platform: str
    price: float
    quantity: float
    date: datetime.date
    fees: float = 0.0
    current_balance_snapshot: Optional[float] = None

    @classmethod
    def from_model(cls, tx: Transaction) -> "SyncTransaction":
        return cls(
            id=tx.id,
            portfolio_id=tx.portfolio_id,
            symbol=tx.symbol,
            type=tx.transaction_type,
            asset_type=tx.asset_type,
            platform=tx.platform,
            price=tx.price,
            quantity=tx.quantity,
            date=tx.transaction_date,
            fees=tx.fees,
            current_balance_snapshot=tx.current_balance_snapshot
        )

    def to_model(self) -> Transaction:
        return Transaction(
            id=self.id,
            portfolio_id=self.portfolio_id,
            symbol=self.symbol,
            transaction_type=self.type,
            asset_type=self.asset_type,
            platform=self.platform,
            price=self.price,
            quantity=self.quantity,
            fees=self.fees,
            transaction_date=self.date,
            current_balance_snapshot=self.current_balance_snapshot
        )


class SyncPayload(BaseModel):
    """Full portable state: transactions, platforms and sync timestamp (epoch ms)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transactions: List[SyncTransaction] = Field(default_factory=list)
    platforms: List[str] = Field(default_factory=list)
    last_synced: int = Field(default_factory=lambda: int(time.time() * 1000))

    @field_validator("transactions")
    @classmethod
    def unique_ids(cls, transactions: List[SyncTransaction]) -> List[SyncTransaction]:
        seen = set()
        for tx in transactions:
            if tx.id in seen:
                raise ValueError(f"Duplicate transaction id: {tx.id}")
            seen.add(tx.id)
        return transactions

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class SyncStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class PullResult:
    """Outcome of a pull; payload is set only on success."""
    status: SyncStatus
    payload: Optional[SyncPayload] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.SUCCESS


class SyncService:
    """
    Client for the remote key-value blob store.
    Configuration loaded from centralized config module.
    """

    def __init__(
        self,
        api_base: Optional[str] = None,
        master_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None
    ):
        settings = get_settings()
        self.api_base = (api_base or settings.sync_api_base).rstrip("/")
        self.master_key = master_key if master_key is not None else settings.sync_master_key
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.sync_timeout

    def _headers(self) -> dict:
        headers = {'Content-Type': 'application/json'}
        if self.master_key:
            headers['X-Master-Key'] = self.master_key
        return headers

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True
    )
    def _request(self, method: str, url: str, headers: dict, body: Optional[dict] = None) -> requests.Response:
        """Send one HTTP request with retry on connection errors."""
        return self.session.request(method, url, headers=headers, json=body, timeout=self.timeout)

    def push(self, key: Optional[str], payload: SyncPayload) -> Optional[str]:
        """
        Create or overwrite the remote record.

        Args:
            key: Existing sync key, or None/empty to create a new record
            payload: State to upload

        Returns:
            The record's key (newly assigned when created), or None on failure
        """
        is_new = not key
        url = self.api_base if is_new else f"{self.api_base}/{key}"
        method = 'POST' if is_new else 'PUT'

        headers = self._headers()
        if is_new:
            headers['X-Bin-Private'] = 'true'
            headers['X-Bin-Name'] = f"Vaultify_Backup_{int(time.time() * 1000)}"

        try:
            response = self._request(method, url, headers, payload.to_wire())

            if not response.ok:
                logger.error(f"Sync push failed ({response.status_code}): {response.text}")
                return None

            if is_new:
                new_key = response.json()['metadata']['id']
                logger.info(f"Created remote backup {new_key}")
                return new_key

            logger.info(f"Updated remote backup {key}")
            return key

        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error(f"Sync push failed: {e}")
            return None

    def pull(self, key: Optional[str]) -> PullResult:
        """
        Fetch the latest record stored under a key.

        Args:
            key: Sync key to fetch

        Returns:
            PullResult with status SUCCESS and the payload, NOT_FOUND for an
            unknown key, or ERROR for anything else
        """
        if not key:
            return PullResult(SyncStatus.ERROR, message="Enter a Sync Code.")

        url = f"{self.api_base}/{key}/latest"

        try:
            response = self._request('GET', url, self._headers())
        except requests.RequestException as e:
            logger.error(f"Sync pull failed: {e}")
            return PullResult(SyncStatus.ERROR, message="Failed to pull data.")

        if response.status_code == 404:
            logger.warning(f"Sync key not found: {key}")
            return PullResult(SyncStatus.NOT_FOUND, message="Code not found or invalid.")

        if not response.ok:
            logger.error(f"Sync pull failed ({response.status_code}): {response.text}")
            return PullResult(SyncStatus.ERROR, message="Failed to pull data.")

        try:
            payload = SyncPayload.model_validate(response.json()['record'])
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            logger.error(f"Sync record unreadable: {e}")
            return PullResult(SyncStatus.ERROR, message="Cloud record is malformed.")

        logger.info(f"Pulled {len(payload.transactions)} transactions from {key}")
        return PullResult(SyncStatus.SUCCESS, payload=payload, message="Cloud data restored!")
