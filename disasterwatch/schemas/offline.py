"""
Offline sync schemas
Pending actions, per-kind payload schemas, network state and call results
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional, Dict, Any, Type
from enum import Enum


# ===========================
# Enums
# ===========================

class ActionType(str, Enum):
    """Kinds of mutation that can be queued while offline"""
    CREATE_DISASTER_REPORT = "CREATE_DISASTER_REPORT"
    UPDATE_DISASTER_STATUS = "UPDATE_DISASTER_STATUS"
    ADD_EMERGENCY_CONTACT = "ADD_EMERGENCY_CONTACT"
    UPDATE_EMERGENCY_CONTACT = "UPDATE_EMERGENCY_CONTACT"


class OperationKind(str, Enum):
    """Whether a wrapped API operation reads or mutates server state"""
    READ = "read"
    WRITE = "write"


# ===========================
# Pending Actions
# ===========================

class PendingAction(BaseModel):
    """A mutation waiting to be replayed against the remote API"""
    id: str = Field(..., description="Client-generated unique identifier")
    # Kept as a plain string so unknown types read back from storage survive
    type: str = Field(..., description="Action type tag, usually an ActionType value")
    data: Dict[str, Any] = Field(default_factory=dict, description="Payload passed to the remote endpoint")
    timestamp: str = Field(..., description="ISO-8601 creation time")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "9b2f6c1e-3d4a-4f7b-8e21-6a0c5d9f1b23",
                "type": "CREATE_DISASTER_REPORT",
                "data": {"title": "Flood", "severity": "high"},
                "timestamp": "2025-10-27T12:00:00+00:00"
            }
        }
    )


# ===========================
# Action Payloads
# ===========================

class ActionPayload(BaseModel):
    """Base for action payloads; unknown fields are passed through to the server"""
    model_config = ConfigDict(extra="allow")


class WarningCreate(ActionPayload):
    title: str = Field(..., min_length=1)


class WarningUpdate(ActionPayload):
    id: Any = Field(..., description="Identifier of the warning being updated")


class EmergencyContactCreate(ActionPayload):
    name: str = Field(..., min_length=1)


class EmergencyContactUpdate(ActionPayload):
    id: Any = Field(..., description="Identifier of the contact being updated")


ACTION_PAYLOAD_SCHEMAS: Dict[str, Type[ActionPayload]] = {
    ActionType.CREATE_DISASTER_REPORT.value: WarningCreate,
    ActionType.UPDATE_DISASTER_STATUS.value: WarningUpdate,
    ActionType.ADD_EMERGENCY_CONTACT.value: EmergencyContactCreate,
    ActionType.UPDATE_EMERGENCY_CONTACT.value: EmergencyContactUpdate,
}


# ===========================
# Network State
# ===========================

class NetworkState(BaseModel):
    """Connectivity snapshot reported by the platform"""
    is_connected: bool = False
    is_internet_reachable: Optional[bool] = None

    @property
    def is_online(self) -> bool:
        return bool(self.is_connected and self.is_internet_reachable)


# ===========================
# Call Results
# ===========================

class OfflineResult(BaseModel):
    """Outcome of a call made through the offline-aware API"""
    value: Any = None
    is_pending: bool = False
    action_id: Optional[str] = None


class Confirmed(OfflineResult):
    """A server result, or a cached snapshot of one"""
    is_pending: bool = False


class Pending(OfflineResult):
    """An optimistic placeholder for a write queued for later replay"""
    is_pending: bool = True


# ===========================
# Sync Responses
# ===========================

class SyncResult(BaseModel):
    """Summary of one sync pass"""
    started_at: datetime
    completed_at: Optional[datetime] = None
    processed: int = Field(0, description="Actions replayed and cleared")
    failed: int = Field(0, description="Actions left queued after an error")
    conflicts: int = Field(0, description="Actions that hit a 409 during replay")
    skipped_unknown: int = Field(0, description="Actions with an unknown type")


class SyncStatusResponse(BaseModel):
    """Current sync and connectivity status"""
    is_online: bool
    is_connected: bool
    is_internet_reachable: Optional[bool]
    is_syncing: bool
    pending_actions: int = 0
    last_sync: Optional[str] = None
    needs_sync: bool = False
    last_result: Optional[SyncResult] = None


class ForceSyncResponse(BaseModel):
    """Response from a manual sync request"""
    started: bool
    result: Optional[SyncResult] = None


class PendingActionListResponse(BaseModel):
    actions: List[PendingAction]
    total: int
