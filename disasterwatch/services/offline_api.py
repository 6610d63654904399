# disasterwatch/services/offline_api.py
"""
Offline-aware API wrapper.

Wraps a registry of remote operations so that callers keep working when
the network is down or the server call fails:

- reads fall back to the cached snapshot in the offline store
- writes are queued as PendingActions and answered with an optimistic
  placeholder, to be replayed later by the SyncService

Results come back as Confirmed(value) or Pending(value) so callers can
tell server-confirmed outcomes from optimistic ones.
"""
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from disasterwatch.core.exceptions import InvalidActionPayload, OfflineOperationNotSupported
from disasterwatch.schemas.offline import (
    ACTION_PAYLOAD_SCHEMAS,
    ActionType,
    Confirmed,
    OfflineResult,
    OperationKind,
    Pending,
    PendingAction,
)
from disasterwatch.services.connectivity import ConnectivityMonitor
from disasterwatch.services.event_bus import EventBus, EventType
from disasterwatch.services.offline_storage import OfflineStorage
from disasterwatch.services.resource_api import ResourceApi
from disasterwatch.services.warning_api import WarningApi

logger = logging.getLogger(__name__)

OFFLINE_MARKER = "_isOffline"


@dataclass
class Operation:
    """
    One entry of the operation registry.

    Attributes:
        remote: Coroutine function performing the server call
        kind: READ or WRITE
        offline_read: Cache getter used for READs while offline (None = not supported offline)
        action_type: Tag for queued WRITEs (defaults to the upper-cased operation name)
    """
    remote: Callable[..., Awaitable[Any]]
    kind: OperationKind
    offline_read: Optional[Callable[[], Awaitable[Any]]] = None
    action_type: Optional[str] = None


class OfflineAwareAPI:
    """
    Exposes each registered operation as an async method.

    Usage:
        api = OfflineAwareAPI(build_warning_operations(warning_api, storage), storage, connectivity)
        result = await api.create_warning({"title": "Flood", "severity": "high"})
        if result.is_pending:
            ...
    """

    def __init__(
        self,
        operations: Dict[str, Operation],
        storage: OfflineStorage,
        connectivity: ConnectivityMonitor,
        event_bus: Optional[EventBus] = None,
    ):
        self._operations: Dict[str, Operation] = {}
        for name, operation in operations.items():
            if operation.kind == OperationKind.WRITE and not operation.action_type:
                operation = replace(operation, action_type=name.upper())
            self._operations[name] = operation
        self.storage = storage
        self.connectivity = connectivity
        self.event_bus = event_bus

    @property
    def operation_names(self):
        return list(self._operations)

    def __getattr__(self, name: str):
        operations = self.__dict__.get("_operations", {})
        if name not in operations:
            raise AttributeError(f"{type(self).__name__} has no operation {name!r}")

        async def method(*args, **kwargs) -> OfflineResult:
            return await self.call(name, *args, **kwargs)

        method.__name__ = name
        return method

    async def call(self, name: str, *args, **kwargs) -> OfflineResult:
        """
        Invoke an operation, falling back to offline handling when needed.

        Raises:
            AttributeError: Unknown operation name
            OfflineOperationNotSupported: Offline READ without a cached fallback
            InvalidActionPayload: Offline WRITE whose payload fails its schema
        """
        operation = self._operations.get(name)
        if operation is None:
            raise AttributeError(f"{type(self).__name__} has no operation {name!r}")

        network_state = await self.connectivity.fetch()

        if network_state.is_online:
            try:
                result = await operation.remote(*args, **kwargs)
                return Confirmed(value=result)
            except Exception as e:
                logger.warning(f"Online call {name} failed, falling back to offline handling: {e}")

        return await self._handle_offline_operation(name, operation, args)

    async def _handle_offline_operation(self, name: str, operation: Operation, args: tuple) -> OfflineResult:
        if operation.kind == OperationKind.READ:
            return await self._handle_offline_read(name, operation)
        return await self._handle_offline_write(operation, args)

    async def _handle_offline_read(self, name: str, operation: Operation) -> OfflineResult:
        if operation.offline_read is None:
            raise OfflineOperationNotSupported(name)
        return Confirmed(value=await operation.offline_read())

    async def _handle_offline_write(self, operation: Operation, args: tuple) -> OfflineResult:
        action_type = operation.action_type
        data = args[0] if args and args[0] is not None else {}

        schema = ACTION_PAYLOAD_SCHEMAS.get(action_type)
        if schema is not None:
            try:
                schema.model_validate(data)
            except ValidationError as e:
                raise InvalidActionPayload(action_type, e.errors()) from e
        elif not isinstance(data, dict):
            raise InvalidActionPayload(action_type)

        action = PendingAction(
            id=str(uuid.uuid4()),
            type=action_type,
            data=data,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        await self.storage.queue_action(action)
        logger.info(f"Queued offline action {action.type} ({action.id})")

        if self.event_bus:
            await self.event_bus.publish(EventType.ACTION_QUEUED, action.model_dump(mode="json"))

        return Pending(
            value={**data, "id": action.id, "status": "pending", OFFLINE_MARKER: True},
            action_id=action.id,
        )


# ===========================
# Default registries
# ===========================

def build_warning_operations(warning_api: WarningApi, storage: OfflineStorage) -> Dict[str, Operation]:
    async def update_warning(data: Dict[str, Any]):
        return await warning_api.update_warning(data["id"], data)

    return {
        "get_warnings": Operation(
            remote=warning_api.get_warnings,
            kind=OperationKind.READ,
            offline_read=storage.get_disasters,
        ),
        "get_active_warnings": Operation(remote=warning_api.get_active_warnings, kind=OperationKind.READ),
        "get_warning": Operation(remote=warning_api.get_warning, kind=OperationKind.READ),
        "create_warning": Operation(
            remote=warning_api.create_warning,
            kind=OperationKind.WRITE,
            action_type=ActionType.CREATE_DISASTER_REPORT.value,
        ),
        "update_warning": Operation(
            remote=update_warning,
            kind=OperationKind.WRITE,
            action_type=ActionType.UPDATE_DISASTER_STATUS.value,
        ),
    }


def build_resource_operations(resource_api: ResourceApi, storage: OfflineStorage) -> Dict[str, Operation]:
    async def update_emergency_contact(data: Dict[str, Any]):
        return await resource_api.update_emergency_contact(data["id"], data)

    return {
        "get_emergency_contacts": Operation(
            remote=resource_api.get_emergency_contacts,
            kind=OperationKind.READ,
            offline_read=storage.get_emergency_contacts,
        ),
        "get_facilities": Operation(
            remote=resource_api.get_facilities,
            kind=OperationKind.READ,
            offline_read=storage.get_facilities,
        ),
        "get_guides": Operation(
            remote=resource_api.get_guides,
            kind=OperationKind.READ,
            offline_read=storage.get_guides,
        ),
        "add_emergency_contact": Operation(
            remote=resource_api.add_emergency_contact,
            kind=OperationKind.WRITE,
            action_type=ActionType.ADD_EMERGENCY_CONTACT.value,
        ),
        "update_emergency_contact": Operation(
            remote=update_emergency_contact,
            kind=OperationKind.WRITE,
            action_type=ActionType.UPDATE_EMERGENCY_CONTACT.value,
        ),
    }
