# disasterwatch/services/api_client.py
"""
DisasterWatch remote API client.

Thin authenticated JSON client over httpx.AsyncClient. Failures are
raised as ApiError carrying the HTTP status code (None when the server
could not be reached at all).
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from disasterwatch.core.config import settings
from disasterwatch.core.exceptions import ApiError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]


class ApiClient:
    """
    Async HTTP client for the DisasterWatch backend.

    Usage:
        async with ApiClient(base_url="https://api.example.org") as client:
            warnings = await client.get("/warnings")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root URL (defaults to settings.API_URL)
            timeout: Request timeout in seconds (defaults to settings.API_TIMEOUT_SECONDS)
            token: Static bearer token (defaults to settings.API_TOKEN)
            token_provider: Coroutine returning the current token, consulted when no static token is set
            transport: Optional httpx transport
        """
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT_SECONDS
        self.token = token or settings.API_TOKEN
        self.token_provider = token_provider
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self._http.aclose()

    async def _auth_headers(self) -> Dict[str, str]:
        token = self.token
        if not token and self.token_provider:
            token = await self.token_provider()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Perform a request and return the decoded JSON body.

        Raises:
            ApiError: On a non-2xx response or when no response was received
        """
        headers = await self._auth_headers()
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug(f"API Request: {method.upper()} {path}")
        try:
            response = await self._http.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"No response received from {method.upper()} {path}: {e}")
            raise ApiError(None, "No response received from server") from e

        logger.debug(f"API Response: {response.status_code} {path}")

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        if response.is_error:
            message = "Server error occurred"
            if isinstance(body, dict) and body.get("message"):
                message = body["message"]
            logger.error(f"Response Error: {response.status_code} {path} {message}")
            raise ApiError(response.status_code, message, payload=body)

        return body

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)


def unwrap(body: Any, key: str = "data") -> Any:
    """Return body[key] for enveloped responses, otherwise the body itself."""
    if isinstance(body, dict) and key in body:
        return body[key]
    return body
