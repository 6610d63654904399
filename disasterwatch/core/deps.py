# disasterwatch/core/deps.py
"""
FastAPI dependencies resolving the services wired up in the app lifespan.
"""
from fastapi import Request

from disasterwatch.core.sse_manager import SSEManager
from disasterwatch.services.connectivity import ConnectivityMonitor
from disasterwatch.services.offline_api import OfflineAwareAPI
from disasterwatch.services.offline_storage import OfflineStorage
from disasterwatch.services.sync_service import SyncService


def get_storage(request: Request) -> OfflineStorage:
    return request.app.state.storage


def get_connectivity(request: Request) -> ConnectivityMonitor:
    return request.app.state.connectivity


def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync_service


def get_offline_warning_api(request: Request) -> OfflineAwareAPI:
    return request.app.state.offline_warning_api


def get_offline_resource_api(request: Request) -> OfflineAwareAPI:
    return request.app.state.offline_resource_api


def get_sse_manager(request: Request) -> SSEManager:
    return request.app.state.sse_manager
