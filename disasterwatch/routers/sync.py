"""
Sync router for the local offline-first process
Reports connectivity and queue status, and lets the user trigger a sync
"""

import asyncio
import json
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import StreamingResponse

from disasterwatch.core.deps import get_connectivity, get_sse_manager, get_storage, get_sync_service
from disasterwatch.core.sse_manager import SSEManager
from disasterwatch.schemas.offline import (
    ForceSyncResponse,
    PendingActionListResponse,
    SyncStatusResponse,
)
from disasterwatch.services.connectivity import ConnectivityMonitor
from disasterwatch.services.offline_storage import OfflineStorage
from disasterwatch.services.sync_service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["Sync & Offline"])


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(
    storage: OfflineStorage = Depends(get_storage),
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
    sync_service: SyncService = Depends(get_sync_service)
):
    """
    Current connectivity, queue size and last sync.

    Clients show an offline banner when `is_online` is false or
    `pending_actions` is non-zero.
    """
    network_state = await connectivity.fetch()

    return SyncStatusResponse(
        is_online=network_state.is_online,
        is_connected=network_state.is_connected,
        is_internet_reachable=network_state.is_internet_reachable,
        is_syncing=sync_service.is_syncing,
        pending_actions=await storage.get_pending_count(),
        last_sync=await storage.get_last_sync(),
        needs_sync=await sync_service.should_sync(),
        last_result=sync_service.last_result
    )


@router.get("/pending", response_model=PendingActionListResponse)
async def list_pending_actions(storage: OfflineStorage = Depends(get_storage)):
    """List queued actions in replay order."""
    actions = await storage.get_pending_actions()
    return PendingActionListResponse(actions=actions, total=len(actions))


@router.post("/force", response_model=ForceSyncResponse)
async def force_sync(
    response: Response,
    connectivity: ConnectivityMonitor = Depends(get_connectivity),
    sync_service: SyncService = Depends(get_sync_service)
):
    """
    Run a sync pass now.

    Refused while offline. Returns 202 with `started: false` if a pass
    is already running.
    """
    network_state = await connectivity.fetch()
    if not network_state.is_online:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot sync while offline"
        )

    result = await sync_service.force_sync_data()
    if result is None:
        response.status_code = status.HTTP_202_ACCEPTED
        return ForceSyncResponse(started=False)

    return ForceSyncResponse(started=True, result=result)


@router.delete("/storage", status_code=status.HTTP_200_OK)
async def clear_storage(storage: OfflineStorage = Depends(get_storage)):
    """Drop every cached collection and the pending queue (logout / reset)."""
    await storage.clear_all()
    return {"message": "Offline storage cleared"}


@router.get("/events")
async def stream_sync_events(
    storage: OfflineStorage = Depends(get_storage),
    sse_manager: SSEManager = Depends(get_sse_manager)
):
    """
    Server-Sent Events stream of sync activity.

    Starts with a `connected` event carrying the current pending count,
    then forwards `action.queued`, `sync.started`, `sync.completed`,
    `sync.conflict_detected` and `connectivity.changed` as they happen.

    **Usage:**
    ```javascript
    const eventSource = new EventSource('/sync/events');

    eventSource.addEventListener('sync.completed', (event) => {
        const { data } = JSON.parse(event.data);
        console.log('Replayed', data.processed, 'actions');
    });
    ```
    """
    connection_id = str(uuid.uuid4())
    connection = await sse_manager.connect(connection_id)
    pending_actions = await storage.get_pending_count()

    async def event_generator():
        try:
            connected = {"connection_id": connection_id, "pending_actions": pending_actions}
            yield f"event: connected\ndata: {json.dumps(connected)}\n\n"

            while True:
                try:
                    event = await asyncio.wait_for(connection.queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue

                event_type = event.get("event", "message")
                event_data = json.dumps(event.get("data", {}), default=str)
                yield f"event: {event_type}\ndata: {event_data}\n\n"

        except asyncio.CancelledError:
            logger.info(f"SSE stream cancelled ({connection_id})")
        finally:
            await sse_manager.disconnect(connection_id)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )
