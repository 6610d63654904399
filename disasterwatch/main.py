from fastapi import FastAPI
from contextlib import asynccontextmanager
from datetime import timedelta
import logging

from disasterwatch.core.config import settings
from disasterwatch.core.sse_manager import SSEManager
from disasterwatch.database.engine import engine, create_db_and_tables
from disasterwatch.routers import sync, warnings, resources
from disasterwatch.services.api_client import ApiClient
from disasterwatch.services.connectivity import ConnectivityMonitor, HttpConnectivityMonitor
from disasterwatch.services.event_bus import EventBus
from disasterwatch.services.offline_api import (
    OfflineAwareAPI,
    build_resource_operations,
    build_warning_operations,
)
from disasterwatch.services.offline_storage import OfflineStorage
from disasterwatch.services.resource_api import ResourceApi
from disasterwatch.services.sync_service import SyncService
from disasterwatch.services.warning_api import WarningApi

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting DisasterWatch offline sync...")

    create_db_and_tables()
    storage = OfflineStorage(engine)
    event_bus = EventBus()
    logger.info("✓ Offline storage ready")

    sse_manager = SSEManager()
    sse_manager.attach(event_bus)
    await sse_manager.start_heartbeat(settings.SSE_HEARTBEAT_SECONDS)
    logger.info("✓ SSE sync events enabled")

    async def current_token():
        user_data = await storage.get_user_data()
        return user_data.get("token") if user_data else None

    api_client = ApiClient(token_provider=current_token)
    warning_api = WarningApi(api_client)
    resource_api = ResourceApi(api_client)

    if settings.ENABLE_CONNECTIVITY_PROBE:
        connectivity = HttpConnectivityMonitor(
            settings.connectivity_probe_url,
            poll_seconds=settings.CONNECTIVITY_POLL_SECONDS
        )
    else:
        logger.info("Connectivity probe disabled, assuming online")
        connectivity = ConnectivityMonitor()

    sync_service = SyncService(
        storage,
        warning_api,
        resource_api,
        connectivity,
        event_bus=event_bus,
        sync_interval=timedelta(minutes=settings.SYNC_INTERVAL_MINUTES)
    )
    sync_service.start()

    if isinstance(connectivity, HttpConnectivityMonitor):
        await connectivity.start()
        logger.info("✓ Connectivity probe started")

    if settings.PERIODIC_SYNC_SECONDS > 0:
        sync_service.start_periodic_sync(settings.PERIODIC_SYNC_SECONDS)
        logger.info("✓ Periodic sync started")

    app.state.storage = storage
    app.state.event_bus = event_bus
    app.state.sse_manager = sse_manager
    app.state.connectivity = connectivity
    app.state.sync_service = sync_service
    app.state.offline_warning_api = OfflineAwareAPI(
        build_warning_operations(warning_api, storage), storage, connectivity, event_bus
    )
    app.state.offline_resource_api = OfflineAwareAPI(
        build_resource_operations(resource_api, storage), storage, connectivity, event_bus
    )

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown initiated...")

    await sync_service.stop()
    if isinstance(connectivity, HttpConnectivityMonitor):
        await connectivity.stop()
    await api_client.close()
    await sse_manager.stop_heartbeat()
    sse_manager.detach(event_bus)

    logger.info("Application shutdown complete")

app = FastAPI(
    title="DisasterWatch Offline Sync",
    description="Local offline-first gateway for the DisasterWatch API: cached reads, queued writes and replay on reconnect",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(sync.router)       # Sync: /sync/* (status, pending queue, manual sync)
app.include_router(warnings.router)   # Warnings: /warnings/* (offline-aware)
app.include_router(resources.router)  # Resources: /resources/* (offline-aware)

@app.get("/")
def read_root():
    return {
        "message": "DisasterWatch offline sync",
        "version": "1.0.0",
        "modules": {
            "sync": "/sync/* (connectivity, pending actions, manual sync, live events)",
            "warnings": "/warnings/* (cached reads, queued writes)",
            "resources": "/resources/* (emergency contacts, facilities, guides)"
        },
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    return {"status": "healthy"}
