"""
Helpers shared by the offline-aware routers
"""

from fastapi import HTTPException, status

from disasterwatch.core.exceptions import InvalidActionPayload, OfflineOperationNotSupported
from disasterwatch.schemas.offline import OfflineResult
from disasterwatch.services.offline_api import OfflineAwareAPI


async def call_offline_api(api: OfflineAwareAPI, operation: str, *args) -> OfflineResult:
    """Invoke an offline-aware operation, mapping its errors to HTTP errors."""
    try:
        return await api.call(operation, *args)
    except OfflineOperationNotSupported as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{e.operation} is not available offline"
        )
    except InvalidActionPayload as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(e), "errors": e.errors}
        )
