# disasterwatch/routers/warnings.py
from fastapi import APIRouter, Body, Depends
from typing import Any, Dict

from disasterwatch.core.deps import get_offline_warning_api
from disasterwatch.routers.common import call_offline_api
from disasterwatch.schemas.offline import OfflineResult
from disasterwatch.services.offline_api import OfflineAwareAPI

router = APIRouter(
    prefix="/warnings",
    tags=["warnings"],
)

@router.get("/", response_model=OfflineResult)
async def get_warnings(api: OfflineAwareAPI = Depends(get_offline_warning_api)):
    """List warnings, served from the offline cache when the API is unreachable."""
    return await call_offline_api(api, "get_warnings")

@router.get("/active", response_model=OfflineResult)
async def get_active_warnings(api: OfflineAwareAPI = Depends(get_offline_warning_api)):
    """List active warnings. Online only."""
    return await call_offline_api(api, "get_active_warnings")

@router.post("/", response_model=OfflineResult)
async def create_warning(
    warning_data: Dict[str, Any] = Body(...),
    api: OfflineAwareAPI = Depends(get_offline_warning_api)
):
    """Create a warning, queueing it when offline."""
    return await call_offline_api(api, "create_warning", warning_data)

@router.put("/{warning_id}", response_model=OfflineResult)
async def update_warning(
    warning_id: str,
    update_data: Dict[str, Any] = Body(...),
    api: OfflineAwareAPI = Depends(get_offline_warning_api)
):
    """Update a warning, queueing the change when offline."""
    return await call_offline_api(api, "update_warning", {**update_data, "id": warning_id})
