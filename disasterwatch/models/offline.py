"""
Local persistence model for offline-first operation.

The offline store is a namespaced key/value table: every logical key
(cached collections, the pending-action queue, the last-sync marker)
maps to one row whose value is a JSON document.
"""

from sqlmodel import SQLModel, Field, Column, Text
from datetime import datetime, timezone
from enum import Enum


class StorageKey(str, Enum):
    """Fixed logical keys held in the offline store."""
    DISASTERS = "@disasters"
    PENDING_ACTIONS = "@pending_actions"
    LAST_SYNC = "@last_sync"
    USER_DATA = "@user_data"
    EMERGENCY_CONTACTS = "@emergency_contacts"
    FACILITIES = "@facilities"
    GUIDES = "@guides"


class StorageEntry(SQLModel, table=True):
    """
    One key/value pair in the offline store.

    Attributes:
        key: Namespaced logical key (see StorageKey)
        value: JSON-serialized document
        updated_at: When the value was last written
    """
    __tablename__ = "storage_entries"

    key: str = Field(primary_key=True, max_length=100, description="Namespaced storage key")

    value: str = Field(
        sa_column=Column(Text, nullable=False),
        description="JSON-serialized value"
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the value was last written"
    )
