# disasterwatch/services/event_bus.py
"""
In-process event bus for offline sync notifications.
Lets UI layers follow queued actions and sync progress without polling.
"""
import asyncio
import logging
from typing import Callable, Dict, Any, List
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Events published by the offline sync subsystem."""
    ACTION_QUEUED = "action.queued"
    SYNC_STARTED = "sync.started"
    SYNC_COMPLETED = "sync.completed"
    SYNC_CONFLICT_DETECTED = "sync.conflict_detected"
    CONNECTIVITY_CHANGED = "connectivity.changed"


class EventBus:
    """
    Event bus for publishing and subscribing to sync events.
    Callbacks may be plain functions or coroutine functions.
    """

    def __init__(self):
        self.subscribers: Dict[EventType, List[Callable]] = {}

    async def publish(self, event_type: EventType, data: Dict[str, Any]):
        """
        Publish an event to all subscribers.

        Args:
            event_type: Type of event being published
            data: Event payload data
        """
        event_payload = {
            "event_type": event_type.value,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        for callback in list(self.subscribers.get(event_type, [])):
            try:
                if asyncio.iscoroutinefunction(callback):
                    await callback(event_payload)
                else:
                    callback(event_payload)
            except Exception as e:
                logger.error(f"Error in event subscriber for {event_type.value}: {e}")

    def subscribe(self, event_type: EventType, callback: Callable):
        """
        Subscribe to an event type with a callback function.

        Args:
            event_type: Event type to subscribe to
            callback: Function to call when event is published (sync or async)
        """
        self.subscribers.setdefault(event_type, []).append(callback)
        logger.debug(f"Subscribed to event {event_type.value}")

    def unsubscribe(self, event_type: EventType, callback: Callable):
        """
        Unsubscribe a callback from an event type.

        Args:
            event_type: Event type to unsubscribe from
            callback: Callback function to remove
        """
        if event_type in self.subscribers and callback in self.subscribers[event_type]:
            self.subscribers[event_type].remove(callback)
            logger.debug(f"Unsubscribed from event {event_type.value}")
