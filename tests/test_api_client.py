"""
Tests for the DisasterWatch HTTP client and endpoint wrappers.

Uses pytest-asyncio and respx for async HTTP mocking.
"""

import json
import pytest
import httpx
import respx

from disasterwatch.core.exceptions import ApiError
from disasterwatch.services.api_client import ApiClient, unwrap
from disasterwatch.services.resource_api import ResourceApi
from disasterwatch.services.warning_api import WarningApi

BASE_URL = "http://api.test"

pytestmark = pytest.mark.asyncio


@pytest.fixture
def mock_warning():
    return {
        "id": "w1",
        "title": "Flash flood",
        "severity": "high",
        "status": "active",
        "created_at": "2025-01-15T10:00:00Z",
    }


class TestApiClient:
    async def test_static_token_sent_as_bearer(self):
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/warnings").mock(return_value=httpx.Response(200, json=[]))

            async with ApiClient(base_url=BASE_URL, token="secret") as client:
                await client.get("/warnings")

        assert route.calls.last.request.headers["Authorization"] == "Bearer secret"

    async def test_token_provider_used_without_static_token(self, monkeypatch):
        monkeypatch.setattr("disasterwatch.services.api_client.settings.API_TOKEN", None)

        async def provider():
            return "from-store"

        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/warnings").mock(return_value=httpx.Response(200, json=[]))

            async with ApiClient(base_url=BASE_URL, token_provider=provider) as client:
                await client.get("/warnings")

        assert route.calls.last.request.headers["Authorization"] == "Bearer from-store"

    async def test_no_token_no_header(self, monkeypatch):
        monkeypatch.setattr("disasterwatch.services.api_client.settings.API_TOKEN", None)

        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/warnings").mock(return_value=httpx.Response(200, json=[]))

            async with ApiClient(base_url=BASE_URL) as client:
                await client.get("/warnings")

        assert "Authorization" not in route.calls.last.request.headers

    async def test_error_status_raises_api_error_with_message(self):
        with respx.mock(base_url=BASE_URL) as mock:
            mock.put("/warnings/w1").mock(
                return_value=httpx.Response(409, json={"message": "Warning was modified"})
            )

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                with pytest.raises(ApiError) as exc_info:
                    await client.put("/warnings/w1", json={"status": "resolved"})

        assert exc_info.value.status_code == 409
        assert exc_info.value.is_conflict
        assert exc_info.value.message == "Warning was modified"

    async def test_error_without_message_uses_default(self):
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/warnings").mock(return_value=httpx.Response(500, text="oops"))

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                with pytest.raises(ApiError) as exc_info:
                    await client.get("/warnings")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Server error occurred"
        assert not exc_info.value.is_conflict

    async def test_transport_failure_has_no_status(self):
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/warnings").mock(side_effect=httpx.ConnectError("refused"))

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                with pytest.raises(ApiError) as exc_info:
                    await client.get("/warnings")

        assert exc_info.value.status_code is None
        assert exc_info.value.message == "No response received from server"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    async def test_none_params_are_dropped(self):
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.get("/resources/facilities").mock(
                return_value=httpx.Response(200, json={"resources": []})
            )

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                await ResourceApi(client).get_facilities({"type": "hospital", "city": None})

        params = route.calls.last.request.url.params
        assert params["type"] == "hospital"
        assert "city" not in params

    async def test_unwrap(self):
        assert unwrap({"data": [1]}) == [1]
        assert unwrap([1, 2]) == [1, 2]
        assert unwrap({"resources": [3]}, "resources") == [3]
        assert unwrap({"id": 1}) == {"id": 1}


class TestWarningApi:
    async def test_get_warnings_unwraps_data(self, mock_warning):
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/warnings").mock(
                return_value=httpx.Response(200, json={"success": True, "data": [mock_warning]})
            )

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                warnings = await WarningApi(client).get_warnings()

        assert warnings == [mock_warning]

    async def test_create_warning_posts_payload(self, mock_warning):
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.post("/warnings").mock(return_value=httpx.Response(201, json=mock_warning))

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                created = await WarningApi(client).create_warning({"title": "Flash flood"})

        assert created["id"] == "w1"
        assert json.loads(route.calls.last.request.content) == {"title": "Flash flood"}

    async def test_update_warning_puts_to_entity_url(self, mock_warning):
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.put("/warnings/w1").mock(return_value=httpx.Response(200, json=mock_warning))

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                await WarningApi(client).update_warning("w1", {"status": "resolved"})

        assert route.called


class TestResourceApi:
    async def test_emergency_contacts_unwrap_resources(self):
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/resources/emergency-contacts").mock(
                return_value=httpx.Response(200, json={"resources": [{"id": "c1"}], "totalResults": 1})
            )

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                contacts = await ResourceApi(client).get_emergency_contacts()

        assert contacts == [{"id": "c1"}]

    async def test_add_emergency_contact_tags_category(self):
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.post("/resources").mock(return_value=httpx.Response(201, json={"id": "c2"}))

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                await ResourceApi(client).add_emergency_contact({"name": "Coast Guard"})

        body = json.loads(route.calls.last.request.content)
        assert body == {"name": "Coast Guard", "category": "emergency_contact"}

    async def test_update_emergency_contact_tags_category(self):
        with respx.mock(base_url=BASE_URL) as mock:
            route = mock.put("/resources/c1").mock(return_value=httpx.Response(200, json={"id": "c1"}))

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                await ResourceApi(client).update_emergency_contact("c1", {"phone": "119"})

        assert json.loads(route.calls.last.request.content) == {"phone": "119", "category": "emergency_contact"}

    async def test_get_emergency_contact_reads_resource(self):
        with respx.mock(base_url=BASE_URL) as mock:
            mock.get("/resources/c1").mock(
                return_value=httpx.Response(200, json={"data": {"id": "c1", "name": "Police"}})
            )

            async with ApiClient(base_url=BASE_URL, token="t") as client:
                contact = await ResourceApi(client).get_emergency_contact("c1")

        assert contact == {"id": "c1", "name": "Police"}
