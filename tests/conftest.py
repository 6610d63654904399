import pytest
from fastapi.testclient import TestClient
from sqlmodel import create_engine
from sqlmodel.pool import StaticPool

from disasterwatch.core.sse_manager import SSEManager
from disasterwatch.core.exceptions import ApiError
from disasterwatch.database.engine import create_db_and_tables
from disasterwatch.schemas.offline import NetworkState
from disasterwatch.services.connectivity import ConnectivityMonitor
from disasterwatch.services.event_bus import EventBus
from disasterwatch.services.offline_api import (
    OfflineAwareAPI,
    build_resource_operations,
    build_warning_operations,
)
from disasterwatch.services.offline_storage import OfflineStorage
from disasterwatch.services.sync_service import SyncService

ONLINE = NetworkState(is_connected=True, is_internet_reachable=True)
OFFLINE = NetworkState(is_connected=False, is_internet_reachable=False)


class FakeWarningApi:
    """In-memory stand-in for WarningApi recording every call."""

    def __init__(self):
        self.calls = []
        self.warnings = [{"id": "w1", "title": "Flood", "severity": "high"}]
        self.errors = {}  # method name -> exception raised by that method
        self.gate = None  # asyncio.Event awaited by create_warning when set

    def _check(self, name):
        if name in self.errors:
            raise self.errors[name]

    async def get_warnings(self, filters=None):
        self.calls.append(("get_warnings",))
        self._check("get_warnings")
        return list(self.warnings)

    async def get_active_warnings(self):
        self.calls.append(("get_active_warnings",))
        self._check("get_active_warnings")
        return list(self.warnings)

    async def get_warning(self, warning_id):
        self.calls.append(("get_warning", warning_id))
        self._check("get_warning")
        return {"id": warning_id, "title": "Server copy", "status": "resolved"}

    async def create_warning(self, data):
        self.calls.append(("create_warning", data))
        if self.gate is not None:
            await self.gate.wait()
        self._check("create_warning")
        return {**data, "id": f"server-{len(self.calls)}"}

    async def update_warning(self, warning_id, data):
        self.calls.append(("update_warning", warning_id, data))
        self._check("update_warning")
        return {**data, "id": warning_id}


class FakeResourceApi:
    """In-memory stand-in for ResourceApi recording every call."""

    def __init__(self):
        self.calls = []
        self.contacts = [{"id": "c1", "name": "Fire Brigade", "phone": "110"}]
        self.facilities = [{"id": "f1", "name": "General Hospital"}]
        self.guides = [{"id": "g1", "title": "Flood safety"}]
        self.errors = {}

    def _check(self, name):
        if name in self.errors:
            raise self.errors[name]

    async def get_emergency_contacts(self, filters=None):
        self.calls.append(("get_emergency_contacts",))
        self._check("get_emergency_contacts")
        return list(self.contacts)

    async def get_emergency_contact(self, contact_id):
        self.calls.append(("get_emergency_contact", contact_id))
        self._check("get_emergency_contact")
        return {"id": contact_id, "name": "Server contact"}

    async def get_facilities(self, filters=None):
        self.calls.append(("get_facilities",))
        self._check("get_facilities")
        return list(self.facilities)

    async def get_guides(self, filters=None):
        self.calls.append(("get_guides",))
        self._check("get_guides")
        return list(self.guides)

    async def add_emergency_contact(self, data):
        self.calls.append(("add_emergency_contact", data))
        self._check("add_emergency_contact")
        return {**data, "id": "server-contact"}

    async def update_emergency_contact(self, contact_id, data):
        self.calls.append(("update_emergency_contact", contact_id, data))
        self._check("update_emergency_contact")
        return {**data, "id": contact_id}


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    create_db_and_tables(engine)
    return engine

@pytest.fixture(name="storage")
def storage_fixture(engine):
    return OfflineStorage(engine)

@pytest.fixture(name="connectivity")
def connectivity_fixture():
    return ConnectivityMonitor(ONLINE)

@pytest.fixture(name="event_bus")
def event_bus_fixture():
    return EventBus()

@pytest.fixture(name="sse_manager")
def sse_manager_fixture(event_bus):
    manager = SSEManager()
    manager.attach(event_bus)
    return manager

@pytest.fixture(name="warning_api")
def warning_api_fixture():
    return FakeWarningApi()

@pytest.fixture(name="resource_api")
def resource_api_fixture():
    return FakeResourceApi()

@pytest.fixture(name="offline_warning_api")
def offline_warning_api_fixture(warning_api, storage, connectivity, event_bus):
    return OfflineAwareAPI(
        build_warning_operations(warning_api, storage), storage, connectivity, event_bus
    )

@pytest.fixture(name="offline_resource_api")
def offline_resource_api_fixture(resource_api, storage, connectivity, event_bus):
    return OfflineAwareAPI(
        build_resource_operations(resource_api, storage), storage, connectivity, event_bus
    )

@pytest.fixture(name="sync_service")
def sync_service_fixture(storage, warning_api, resource_api, connectivity, event_bus):
    service = SyncService(storage, warning_api, resource_api, connectivity, event_bus=event_bus)
    service.start()
    return service

@pytest.fixture(name="client")
def client_fixture(storage, connectivity, sync_service, offline_warning_api, offline_resource_api, sse_manager):
    from disasterwatch.main import app
    from disasterwatch.core import deps

    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_connectivity] = lambda: connectivity
    app.dependency_overrides[deps.get_sync_service] = lambda: sync_service
    app.dependency_overrides[deps.get_offline_warning_api] = lambda: offline_warning_api
    app.dependency_overrides[deps.get_offline_resource_api] = lambda: offline_resource_api
    app.dependency_overrides[deps.get_sse_manager] = lambda: sse_manager
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()

@pytest.fixture(name="conflict_error")
def conflict_error_fixture():
    return ApiError(409, "Warning was modified on the server")
