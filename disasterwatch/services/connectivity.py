# disasterwatch/services/connectivity.py
"""
Connectivity signal.

ConnectivityMonitor holds the latest NetworkState and fans state changes
out to listeners. HttpConnectivityMonitor feeds it by probing the API
on an interval.
"""
import asyncio
import logging
from typing import Callable, List, Optional

import httpx

from disasterwatch.schemas.offline import NetworkState

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """Current network state plus a subscribe/unsubscribe interface."""

    def __init__(self, initial_state: Optional[NetworkState] = None):
        self._state = initial_state or NetworkState(is_connected=True, is_internet_reachable=True)
        self._listeners: List[Callable] = []

    @property
    def state(self) -> NetworkState:
        return self._state

    async def fetch(self) -> NetworkState:
        """One-shot read of the current network state."""
        return self._state

    def add_listener(self, callback: Callable) -> Callable[[], None]:
        """
        Register a callback for every state event.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def update(self, state: NetworkState):
        """Record a new state and deliver it to every listener."""
        self._state = state
        for callback in list(self._listeners):
            try:
                if asyncio.iscoroutinefunction(callback):
                    await callback(state)
                else:
                    callback(state)
            except Exception as e:
                logger.error(f"Error in connectivity listener: {e}")


class HttpConnectivityMonitor(ConnectivityMonitor):
    """
    Derives network state by probing an HTTP endpoint.

    - connect error / timeout -> not connected, not reachable
    - other HTTP failure or 5xx -> connected, not reachable
    - any other response -> connected and reachable
    """

    def __init__(
        self,
        probe_url: str,
        poll_seconds: float = 30.0,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.probe_url = probe_url
        self.poll_seconds = poll_seconds
        self.timeout = timeout
        self._transport = transport
        self._task: Optional[asyncio.Task] = None

    async def probe(self) -> NetworkState:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.probe_url)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.debug(f"Connectivity probe failed to connect: {e}")
            return NetworkState(is_connected=False, is_internet_reachable=False)
        except httpx.HTTPError as e:
            logger.debug(f"Connectivity probe error: {e}")
            return NetworkState(is_connected=True, is_internet_reachable=False)

        return NetworkState(
            is_connected=True,
            is_internet_reachable=response.status_code < 500
        )

    async def fetch(self) -> NetworkState:
        """Probe now. Listeners are only notified from the polling loop."""
        self._state = await self.probe()
        return self._state

    async def _poll_loop(self):
        while True:
            try:
                await self.update(await self.probe())
                await asyncio.sleep(self.poll_seconds)
            except asyncio.CancelledError:
                logger.info("Connectivity probe task cancelled")
                break
            except Exception as e:
                logger.error(f"Error in connectivity probe task: {e}")
                await asyncio.sleep(self.poll_seconds)

    async def start(self):
        """Start probing in the background."""
        if self._task:
            logger.warning("Connectivity probe already running")
            return
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(f"Connectivity probe started: {self.probe_url} every {self.poll_seconds}s")

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Connectivity probe stopped")
