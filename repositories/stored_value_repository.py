"""
StoredValue Repository - data access layer for JSON values under fixed keys.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional
from sqlmodel import Session

from db_engine import get_engine
from models import StoredValue

# Fixed storage key names
PLATFORMS_KEY = "vaultify_platforms"
SYNC_KEY_KEY = "vaultify_sync_code"


class StoredValueRepository:
    """Repository for key/value JSON storage (singleton rows per key)."""

    @staticmethod
    def get(key: str, default: Any = None, session: Optional[Session] = None) -> Any:
        """
        Read and decode the JSON value stored under a key.

        Args:
            key: Storage key name
            default: Value returned when the key is absent
            session: Optional existing session for transaction reuse

        Returns:
            Decoded value or default
        """
        def _get(sess: Session) -> Any:
            row = sess.get(StoredValue, key)
            if row is None:
                return default
            return json.loads(row.value)

        if session is not None:
            return _get(session)
        else:
            with Session(get_engine()) as session:
                return _get(session)

    @staticmethod
    def set(key: str, value: Any, session: Optional[Session] = None) -> None:
        """Encode a value as JSON and store it under a key (insert or overwrite)."""
        def _set(sess: Session) -> None:
            row = sess.get(StoredValue, key)
            if row:
                row.value = json.dumps(value)
                row.updated_at = datetime.now(timezone.utc)
            else:
                row = StoredValue(key=key, value=json.dumps(value))
            sess.add(row)
            sess.commit()

        if session is not None:
            _set(session)
        else:
            with Session(get_engine()) as session:
                _set(session)

    @staticmethod
    def remove(key: str, session: Optional[Session] = None) -> bool:
        """Delete the value stored under a key."""
        def _remove(sess: Session) -> bool:
            row = sess.get(StoredValue, key)
            if row:
                sess.delete(row)
                sess.commit()
                return True
            return False

        if session is not None:
            return _remove(session)
        else:
            with Session(get_engine()) as session:
                return _remove(session)
