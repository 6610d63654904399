# disasterwatch/routers/resources.py
from fastapi import APIRouter, Body, Depends
from typing import Any, Dict

from disasterwatch.core.deps import get_offline_resource_api
from disasterwatch.routers.common import call_offline_api
from disasterwatch.schemas.offline import OfflineResult
from disasterwatch.services.offline_api import OfflineAwareAPI

router = APIRouter(
    prefix="/resources",
    tags=["resources"],
)

# ========================================
# EMERGENCY CONTACTS
# ========================================

@router.get("/emergency-contacts", response_model=OfflineResult)
async def get_emergency_contacts(api: OfflineAwareAPI = Depends(get_offline_resource_api)):
    return await call_offline_api(api, "get_emergency_contacts")

@router.post("/emergency-contacts", response_model=OfflineResult)
async def add_emergency_contact(
    contact_data: Dict[str, Any] = Body(...),
    api: OfflineAwareAPI = Depends(get_offline_resource_api)
):
    """Add an emergency contact, queueing it when offline."""
    return await call_offline_api(api, "add_emergency_contact", contact_data)

@router.put("/emergency-contacts/{contact_id}", response_model=OfflineResult)
async def update_emergency_contact(
    contact_id: str,
    update_data: Dict[str, Any] = Body(...),
    api: OfflineAwareAPI = Depends(get_offline_resource_api)
):
    return await call_offline_api(api, "update_emergency_contact", {**update_data, "id": contact_id})

# ========================================
# FACILITIES & GUIDES
# ========================================

@router.get("/facilities", response_model=OfflineResult)
async def get_facilities(api: OfflineAwareAPI = Depends(get_offline_resource_api)):
    return await call_offline_api(api, "get_facilities")

@router.get("/guides", response_model=OfflineResult)
async def get_guides(api: OfflineAwareAPI = Depends(get_offline_resource_api)):
    return await call_offline_api(api, "get_guides")
