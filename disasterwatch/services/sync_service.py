# disasterwatch/services/sync_service.py
"""
Sync service for offline-first operation.

Replays the pending-action queue against the remote API when
connectivity comes back, then refreshes the cached collections.
Best-effort and sequential: failed actions stay queued for the next
pass, 409 conflicts adopt the server's copy into the cache.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from disasterwatch.core.exceptions import ApiError
from disasterwatch.schemas.offline import ActionType, NetworkState, PendingAction, SyncResult
from disasterwatch.services.connectivity import ConnectivityMonitor
from disasterwatch.services.event_bus import EventBus, EventType
from disasterwatch.services.offline_storage import OfflineStorage
from disasterwatch.services.resource_api import ResourceApi
from disasterwatch.services.warning_api import WarningApi

logger = logging.getLogger(__name__)

DEFAULT_SYNC_INTERVAL = timedelta(minutes=15)


class SyncService:
    """
    Owns the sync guard and the connectivity subscription.

    Construct one per application and call start(); nothing is
    subscribed until then.
    """

    def __init__(
        self,
        storage: OfflineStorage,
        warning_api: WarningApi,
        resource_api: ResourceApi,
        connectivity: ConnectivityMonitor,
        event_bus: Optional[EventBus] = None,
        sync_interval: timedelta = DEFAULT_SYNC_INTERVAL,
    ):
        self.storage = storage
        self.warning_api = warning_api
        self.resource_api = resource_api
        self.connectivity = connectivity
        self.event_bus = event_bus
        self.sync_interval = sync_interval

        self.is_syncing = False
        self.last_online_status = True
        self.last_result: Optional[SyncResult] = None

        self._unsubscribe: Optional[Callable[[], None]] = None
        self._periodic_task: Optional[asyncio.Task] = None
        self.restore_task: Optional[asyncio.Task] = None

        # Action type -> replay call
        self._replay_handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Any]]] = {
            ActionType.CREATE_DISASTER_REPORT.value: lambda data: self.warning_api.create_warning(data),
            ActionType.UPDATE_DISASTER_STATUS.value: lambda data: self.warning_api.update_warning(data["id"], data),
            ActionType.ADD_EMERGENCY_CONTACT.value: lambda data: self.resource_api.add_emergency_contact(data),
            ActionType.UPDATE_EMERGENCY_CONTACT.value: lambda data: self.resource_api.update_emergency_contact(data["id"], data),
        }

        # Action type -> (fetch server copy, store into cache)
        self._conflict_handlers: Dict[str, tuple] = {
            ActionType.UPDATE_DISASTER_STATUS.value: (
                lambda entity_id: self.warning_api.get_warning(entity_id),
                lambda entity: self.storage.store_disasters([entity]),
            ),
            ActionType.UPDATE_EMERGENCY_CONTACT.value: (
                lambda entity_id: self.resource_api.get_emergency_contact(entity_id),
                lambda entity: self.storage.store_emergency_contacts([entity]),
            ),
        }

    # ===========================
    # Lifecycle
    # ===========================

    def start(self):
        """Subscribe to connectivity changes. Calling twice is harmless."""
        if self._unsubscribe is None:
            self._unsubscribe = self.connectivity.add_listener(self.handle_network_change)
            logger.info("Sync service listening for connectivity changes")

    async def stop(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        if self._periodic_task:
            self._periodic_task.cancel()
            try:
                await self._periodic_task
            except asyncio.CancelledError:
                pass
            self._periodic_task = None

        if self.restore_task and not self.restore_task.done():
            self.restore_task.cancel()
            try:
                await self.restore_task
            except asyncio.CancelledError:
                pass
        self.restore_task = None

        logger.info("Sync service stopped")

    def start_periodic_sync(self, interval_seconds: float):
        """Check every interval_seconds whether a time-based sync is due."""
        if self._periodic_task:
            logger.warning("Periodic sync already running")
            return
        self._periodic_task = asyncio.create_task(self._periodic_sync_task(interval_seconds))

    async def _periodic_sync_task(self, interval_seconds: float):
        while True:
            try:
                await asyncio.sleep(interval_seconds)
                network_state = await self.connectivity.fetch()
                if network_state.is_online and await self.should_sync():
                    await self.sync_data()
            except asyncio.CancelledError:
                logger.info("Periodic sync task cancelled")
                break
            except Exception as e:
                logger.error(f"Error in periodic sync task: {e}")

    # ===========================
    # Connectivity
    # ===========================

    async def handle_network_change(self, state: NetworkState):
        """
        Trigger a sync on the offline -> online edge only.

        The restore runs as a background task (restore_task); the listener
        returns without waiting for the sync pass.
        """
        is_online = state.is_online
        came_online = is_online and not self.last_online_status
        self.last_online_status = is_online

        if self.event_bus:
            await self.event_bus.publish(EventType.CONNECTIVITY_CHANGED, state.model_dump())

        if came_online:
            if self.restore_task and not self.restore_task.done():
                logger.debug("Connection restore already in progress")
                return
            logger.info("Connection restored - starting sync")
            self.restore_task = asyncio.create_task(self.handle_connection_restored())

    async def handle_connection_restored(self):
        try:
            pending_actions = await self.storage.get_pending_actions()

            if pending_actions or await self.should_sync():
                await self.sync_data()
        except Exception as e:
            logger.error(f"Error handling connection restore: {e}")

    # ===========================
    # Sync
    # ===========================

    async def sync_data(self) -> Optional[SyncResult]:
        """
        Replay queued actions, then refresh the caches.

        Returns None without doing anything when a pass is already running.
        """
        if self.is_syncing:
            logger.debug("Sync already in progress, skipping")
            return None

        self.is_syncing = True
        result = SyncResult(started_at=datetime.now(timezone.utc))
        try:
            logger.info("Starting data sync...")
            if self.event_bus:
                await self.event_bus.publish(EventType.SYNC_STARTED, {})

            pending_actions = await self.storage.get_pending_actions()

            for action in pending_actions:
                await self.process_pending_action(action, result)

            await asyncio.gather(
                self.sync_disasters(),
                self.sync_emergency_contacts(),
                self.sync_facilities(),
                self.sync_guides(),
            )

            await self.storage.update_last_sync()
            result.completed_at = datetime.now(timezone.utc)
            logger.info(
                f"Data sync completed: {result.processed} processed, "
                f"{result.failed} failed, {result.conflicts} conflicts"
            )
        except Exception as e:
            logger.error(f"Sync error: {e}")
        finally:
            self.is_syncing = False

        self.last_result = result
        if self.event_bus:
            await self.event_bus.publish(EventType.SYNC_COMPLETED, result.model_dump(mode="json"))
        return result

    async def process_pending_action(self, action: PendingAction, result: Optional[SyncResult] = None):
        """Replay one action; clear it from the queue only on success."""
        handler = self._replay_handlers.get(action.type)
        if handler is None:
            logger.warning(f"Unknown action type: {action.type}")
            if result:
                result.skipped_unknown += 1
            return

        try:
            logger.info(f"Processing pending action: {action.type}")
            await handler(action.data)
        except Exception as e:
            logger.error(f"Error processing action {action.type}: {e}")
            if result:
                result.failed += 1
            if isinstance(e, ApiError) and e.is_conflict:
                if result:
                    result.conflicts += 1
                await self.handle_conflict(action)
            return

        await self.storage.clear_pending_action(action.id)
        if result:
            result.processed += 1
        logger.info(f"Successfully processed action: {action.type}")

    async def handle_conflict(self, action: PendingAction):
        """
        Adopt the server's copy of the conflicting entity into the cache.

        The queued mutation is neither reapplied nor removed.
        """
        handlers = self._conflict_handlers.get(action.type)
        if handlers is None:
            return

        fetch_server_copy, store_server_copy = handlers
        try:
            server_data = await fetch_server_copy(action.data["id"])
            await store_server_copy(server_data)
            logger.info(f"Resolved conflict for {action.type} ({action.id}) with server copy")
            if self.event_bus:
                await self.event_bus.publish(
                    EventType.SYNC_CONFLICT_DETECTED,
                    {"action": action.model_dump(mode="json"), "server_data": server_data}
                )
        except Exception as e:
            logger.error(f"Error handling conflict: {e}")

    async def sync_disasters(self):
        try:
            disasters = await self.warning_api.get_warnings()
            await self.storage.store_disasters(disasters)
        except Exception as e:
            logger.error(f"Error syncing disasters: {e}")

    async def sync_emergency_contacts(self):
        try:
            contacts = await self.resource_api.get_emergency_contacts()
            await self.storage.store_emergency_contacts(contacts)
        except Exception as e:
            logger.error(f"Error syncing emergency contacts: {e}")

    async def sync_facilities(self):
        try:
            facilities = await self.resource_api.get_facilities()
            await self.storage.store_facilities(facilities)
        except Exception as e:
            logger.error(f"Error syncing facilities: {e}")

    async def sync_guides(self):
        try:
            guides = await self.resource_api.get_guides()
            await self.storage.store_guides(guides)
        except Exception as e:
            logger.error(f"Error syncing guides: {e}")

    async def force_sync_data(self) -> Optional[SyncResult]:
        return await self.sync_data()

    async def should_sync(self, now: Optional[datetime] = None) -> bool:
        """True when there is no recorded sync or the last one is older than sync_interval."""
        last_sync = await self.storage.get_last_sync()
        if not last_sync:
            return True

        try:
            last_sync_date = datetime.fromisoformat(last_sync.replace("Z", "+00:00"))
        except (AttributeError, TypeError, ValueError):
            logger.warning(f"Unparsable last sync timestamp: {last_sync!r}")
            return True

        if last_sync_date.tzinfo is None:
            last_sync_date = last_sync_date.replace(tzinfo=timezone.utc)

        now = now or datetime.now(timezone.utc)
        return now - last_sync_date > self.sync_interval
