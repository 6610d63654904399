# disasterwatch/services/warning_api.py
"""
Warning endpoints of the DisasterWatch API.
"""
from typing import Any, Dict, List, Optional

from disasterwatch.services.api_client import ApiClient, unwrap


class WarningApi:
    """Remote calls for disaster warnings and reports."""

    def __init__(self, client: ApiClient):
        self._client = client

    async def get_active_warnings(self) -> List[Dict[str, Any]]:
        return unwrap(await self._client.get("/warnings/active"))

    async def get_warnings(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return unwrap(await self._client.get("/warnings", params=filters or {}))

    async def get_warning(self, warning_id: Any) -> Dict[str, Any]:
        return unwrap(await self._client.get(f"/warnings/{warning_id}"))

    async def create_warning(self, warning_data: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap(await self._client.post("/warnings", json=warning_data))

    async def update_warning(self, warning_id: Any, update_data: Dict[str, Any]) -> Dict[str, Any]:
        return unwrap(await self._client.put(f"/warnings/{warning_id}", json=update_data))

