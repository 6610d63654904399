# disasterwatch/core/sse_manager.py
"""
Server-Sent Events (SSE) manager for live sync status.
Fans EventBus events out to every connected client, so UIs can follow
the pending queue and sync progress without polling /sync/status.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from disasterwatch.services.event_bus import EventBus, EventType

logger = logging.getLogger(__name__)


class SSEConnection:
    """A single SSE client connection."""

    def __init__(self, connection_id: str):
        self.connection_id = connection_id
        self.queue: asyncio.Queue = asyncio.Queue()
        self.connected_at = datetime.now(timezone.utc)
        self.last_heartbeat = self.connected_at

    async def send_event(self, event_type: str, data: Dict[str, Any]):
        """Queue an event to be sent to the client."""
        await self.queue.put({"event": event_type, "data": data})

    async def send_heartbeat(self):
        """Send a heartbeat ping to keep the connection alive."""
        self.last_heartbeat = datetime.now(timezone.utc)
        await self.queue.put({
            "event": "ping",
            "data": {"timestamp": self.last_heartbeat.isoformat()}
        })


class SSEManager:
    """
    Manages SSE connections for the local process.
    There is one user per device, so connections are keyed by id only.
    """

    def __init__(self):
        self.connections: Dict[str, SSEConnection] = {}
        self._lock = asyncio.Lock()
        self._heartbeat_task: Optional[asyncio.Task] = None

    async def connect(self, connection_id: str) -> SSEConnection:
        connection = SSEConnection(connection_id)

        async with self._lock:
            self.connections[connection_id] = connection

        logger.info(f"SSE connection established ({connection_id})")
        return connection

    async def disconnect(self, connection_id: str):
        async with self._lock:
            self.connections.pop(connection_id, None)

        logger.info(f"SSE connection closed ({connection_id})")

    async def broadcast(self, event_type: str, data: Dict[str, Any]):
        """
        Send an event to every open connection.

        Args:
            event_type: SSE event name (e.g. "sync.completed")
            data: Event payload
        """
        connections = list(self.connections.values())
        logger.debug(f"Broadcasting {event_type} to {len(connections)} connections")

        for connection in connections:
            try:
                await connection.send_event(event_type, data)
            except Exception as e:
                logger.error(f"Error sending event to connection {connection.connection_id}: {e}")

    def get_connection_count(self) -> int:
        return len(self.connections)

    # ===========================
    # EventBus bridge
    # ===========================

    async def handle_bus_event(self, event_payload: Dict[str, Any]):
        """Forward an EventBus payload to the SSE clients."""
        await self.broadcast(
            event_payload["event_type"],
            {"data": event_payload.get("data", {}), "timestamp": event_payload.get("timestamp")}
        )

    def attach(self, event_bus: EventBus):
        """Subscribe to every sync event type on the bus."""
        for event_type in EventType:
            event_bus.subscribe(event_type, self.handle_bus_event)

    def detach(self, event_bus: EventBus):
        for event_type in EventType:
            event_bus.unsubscribe(event_type, self.handle_bus_event)

    # ===========================
    # Heartbeat
    # ===========================

    async def heartbeat_loop(self, interval: float = 30):
        while True:
            try:
                await asyncio.sleep(interval)

                for connection in list(self.connections.values()):
                    try:
                        await connection.send_heartbeat()
                    except Exception as e:
                        logger.error(f"Error sending heartbeat: {e}")

            except asyncio.CancelledError:
                logger.info("Heartbeat loop cancelled")
                break
            except Exception as e:
                logger.error(f"Error in heartbeat loop: {e}")

    async def start_heartbeat(self, interval: float = 30):
        """Start the heartbeat background task."""
        if not self._heartbeat_task:
            self._heartbeat_task = asyncio.create_task(self.heartbeat_loop(interval))
            logger.info(f"SSE heartbeat started (interval: {interval}s)")

    async def stop_heartbeat(self):
        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass
            self._heartbeat_task = None
            logger.info("SSE heartbeat stopped")
