# disasterwatch/services/offline_storage.py
"""
Durable local store for offline operation.

Holds cached snapshots of server collections, the pending-action queue
and the last-sync marker. Every public operation swallows storage
failures: it logs them and returns a safe default, so callers must
tolerate stale or missing data.

SQLite access is blocking, so each public coroutine hands its database
work to a worker thread with asyncio.to_thread and the event loop keeps
running while it waits.
"""
import asyncio
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col

from disasterwatch.core.exceptions import StorageError
from disasterwatch.models.offline import StorageEntry, StorageKey
from disasterwatch.schemas.offline import PendingAction

logger = logging.getLogger(__name__)


class OfflineStorage:
    """Namespaced key/value persistence on top of the local SQLite database."""

    def __init__(self, engine: Engine):
        self.engine = engine
        # One database operation at a time; reentrant for the queue read-modify-write
        self._lock = threading.RLock()

    # ===========================
    # Raw key/value access (blocking, run in worker threads)
    # ===========================

    def _get_item(self, key: StorageKey) -> Any:
        try:
            with self._lock, Session(self.engine) as session:
                entry = session.get(StorageEntry, key.value)
                if entry is None:
                    return None
                return json.loads(entry.value)
        except (SQLAlchemyError, ValueError) as e:
            raise StorageError(f"Failed to read {key.value}") from e

    def _set_item(self, key: StorageKey, value: Any) -> None:
        try:
            serialized = json.dumps(value, default=str)
            with self._lock, Session(self.engine) as session:
                entry = session.get(StorageEntry, key.value)
                if entry is None:
                    entry = StorageEntry(key=key.value, value=serialized)
                else:
                    entry.value = serialized
                    entry.updated_at = datetime.now(timezone.utc)
                session.add(entry)
                session.commit()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {key.value}") from e

    def _delete_all(self) -> None:
        try:
            with self._lock, Session(self.engine) as session:
                session.execute(
                    delete(StorageEntry).where(
                        col(StorageEntry.key).in_([key.value for key in StorageKey])
                    )
                )
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError("Failed to clear offline storage") from e

    def _read_collection(self, key: StorageKey) -> List[Any]:
        value = self._get_item(key)
        return value if value else []

    async def _read(self, key: StorageKey) -> Any:
        return await asyncio.to_thread(self._get_item, key)

    async def _write(self, key: StorageKey, value: Any) -> None:
        await asyncio.to_thread(self._set_item, key, value)

    async def _read_list(self, key: StorageKey) -> List[Any]:
        return await asyncio.to_thread(self._read_collection, key)

    # ===========================
    # Cached collections
    # ===========================

    async def store_disasters(self, disasters: List[Dict[str, Any]]):
        """Replace the cached warnings snapshot and bump the last-sync marker."""
        try:
            await self._write(StorageKey.DISASTERS, disasters)
        except StorageError as e:
            logger.error(f"Error storing disasters: {e}")
            return
        await self.update_last_sync()

    async def get_disasters(self) -> List[Dict[str, Any]]:
        try:
            return await self._read_list(StorageKey.DISASTERS)
        except StorageError as e:
            logger.error(f"Error getting disasters: {e}")
            return []

    async def store_emergency_contacts(self, contacts: List[Dict[str, Any]]):
        try:
            await self._write(StorageKey.EMERGENCY_CONTACTS, contacts)
        except StorageError as e:
            logger.error(f"Error storing emergency contacts: {e}")

    async def get_emergency_contacts(self) -> List[Dict[str, Any]]:
        try:
            return await self._read_list(StorageKey.EMERGENCY_CONTACTS)
        except StorageError as e:
            logger.error(f"Error getting emergency contacts: {e}")
            return []

    async def store_facilities(self, facilities: List[Dict[str, Any]]):
        try:
            await self._write(StorageKey.FACILITIES, facilities)
        except StorageError as e:
            logger.error(f"Error storing facilities: {e}")

    async def get_facilities(self) -> List[Dict[str, Any]]:
        try:
            return await self._read_list(StorageKey.FACILITIES)
        except StorageError as e:
            logger.error(f"Error getting facilities: {e}")
            return []

    async def store_guides(self, guides: List[Dict[str, Any]]):
        try:
            await self._write(StorageKey.GUIDES, guides)
        except StorageError as e:
            logger.error(f"Error storing guides: {e}")

    async def get_guides(self) -> List[Dict[str, Any]]:
        try:
            return await self._read_list(StorageKey.GUIDES)
        except StorageError as e:
            logger.error(f"Error getting guides: {e}")
            return []

    # ===========================
    # User data
    # ===========================

    async def store_user_data(self, user_data: Dict[str, Any]):
        try:
            await self._write(StorageKey.USER_DATA, user_data)
        except StorageError as e:
            logger.error(f"Error storing user data: {e}")

    async def get_user_data(self) -> Optional[Dict[str, Any]]:
        try:
            return await self._read(StorageKey.USER_DATA) or None
        except StorageError as e:
            logger.error(f"Error getting user data: {e}")
            return None

    # ===========================
    # Pending-action queue
    # ===========================

    def _load_pending_actions(self) -> List[PendingAction]:
        raw = self._read_collection(StorageKey.PENDING_ACTIONS)
        try:
            return [PendingAction.model_validate(item) for item in raw]
        except ValidationError as e:
            raise StorageError("Malformed pending-action queue") from e

    def _save_pending_actions(self, actions: List[PendingAction]) -> None:
        self._set_item(
            StorageKey.PENDING_ACTIONS,
            [action.model_dump(mode="json") for action in actions]
        )

    def _append_pending_action(self, action: PendingAction) -> None:
        with self._lock:
            pending_actions = self._load_pending_actions()
            pending_actions.append(action)
            self._save_pending_actions(pending_actions)

    def _remove_pending_action(self, action_id: str) -> None:
        with self._lock:
            pending_actions = self._load_pending_actions()
            updated_actions = [a for a in pending_actions if a.id != action_id]
            if len(updated_actions) == len(pending_actions):
                return
            self._save_pending_actions(updated_actions)

    async def queue_action(self, action: PendingAction):
        """
        Append an action to the end of the pending queue.

        The stored timestamp is always the moment of queueing.
        """
        stamped = action.model_copy(update={"timestamp": datetime.now(timezone.utc).isoformat()})
        try:
            await asyncio.to_thread(self._append_pending_action, stamped)
        except StorageError as e:
            logger.error(f"Error queuing action: {e}")

    async def get_pending_actions(self) -> List[PendingAction]:
        """Return the queue in insertion order."""
        try:
            return await asyncio.to_thread(self._load_pending_actions)
        except StorageError as e:
            logger.error(f"Error getting pending actions: {e}")
            return []

    async def get_pending_count(self) -> int:
        return len(await self.get_pending_actions())

    async def clear_pending_action(self, action_id: str):
        """Remove the action with this id. Unknown ids are ignored."""
        try:
            await asyncio.to_thread(self._remove_pending_action, action_id)
        except StorageError as e:
            logger.error(f"Error clearing pending action: {e}")

    # ===========================
    # Sync marker
    # ===========================

    async def update_last_sync(self):
        try:
            await self._write(StorageKey.LAST_SYNC, datetime.now(timezone.utc).isoformat())
        except StorageError as e:
            logger.error(f"Error updating last sync: {e}")

    async def get_last_sync(self) -> Optional[str]:
        try:
            return await self._read(StorageKey.LAST_SYNC)
        except StorageError as e:
            logger.error(f"Error getting last sync: {e}")
            return None

    # ===========================
    # Reset
    # ===========================

    async def clear_all(self):
        """Remove every namespaced key (logout / reset)."""
        try:
            await asyncio.to_thread(self._delete_all)
        except StorageError as e:
            logger.error(f"Error clearing storage: {e}")
