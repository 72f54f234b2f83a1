"""
StoredValue model - JSON values stored under fixed key names.
"""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class StoredValue(SQLModel, table=True):
    """A JSON-serialized value under a fixed storage key (platform list, sync key)."""
    key: str = Field(primary_key=True)
    value: str  # JSON text
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
