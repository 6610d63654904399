# disasterwatch/services/resource_api.py
"""
Resource endpoints of the DisasterWatch API.

Facilities, guides and emergency contacts are all resources on the
server. Emergency contacts are written through the generic resource
endpoints, tagged with their `category`.
"""
from typing import Any, Dict, List, Optional

from disasterwatch.services.api_client import ApiClient, unwrap

EMERGENCY_CONTACT = "emergency_contact"


class ResourceApi:
    """Remote calls for emergency resources."""

    def __init__(self, client: ApiClient):
        self._client = client

    async def _list(self, path: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        body = await self._client.get(path, params=filters or {})
        return unwrap(body, "resources") or []

    # Listing

    async def get_facilities(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self._list("/resources/facilities", filters)

    async def get_guides(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self._list("/resources/guides", filters)

    async def get_emergency_contacts(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self._list("/resources/emergency-contacts", filters)

    # Single resources

    async def get_resource(self, resource_id: Any) -> Dict[str, Any]:
        return unwrap(await self._client.get(f"/resources/{resource_id}"))

    async def create_resource(self, resource_data: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap(await self._client.post("/resources", json=resource_data))

    async def update_resource(self, resource_id: Any, update_data: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap(await self._client.put(f"/resources/{resource_id}", json=update_data))

    # Emergency contacts

    async def get_emergency_contact(self, contact_id: Any) -> Dict[str, Any]:
        return await self.get_resource(contact_id)

    async def add_emergency_contact(self, contact_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.create_resource({**contact_data, "category": EMERGENCY_CONTACT})

    async def update_emergency_contact(self, contact_id: Any, update_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.update_resource(contact_id, {**update_data, "category": EMERGENCY_CONTACT})
