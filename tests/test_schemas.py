import pytest
from pydantic import ValidationError
from datetime import datetime, timezone

from disasterwatch.schemas.offline import (
    ACTION_PAYLOAD_SCHEMAS, ActionType, Confirmed, EmergencyContactCreate,
    OfflineResult, Pending, PendingAction, SyncResult, WarningCreate, WarningUpdate
)

class TestPendingAction:
    def test_pending_action_valid(self):
        action = PendingAction(
            id="a1",
            type=ActionType.CREATE_DISASTER_REPORT.value,
            data={"title": "Flood"},
            timestamp="2025-10-27T12:00:00+00:00"
        )
        assert action.type == "CREATE_DISASTER_REPORT"
        assert action.data == {"title": "Flood"}

    def test_pending_action_accepts_unknown_type(self):
        action = PendingAction(id="a1", type="LEGACY_ACTION", timestamp="2025-10-27T12:00:00+00:00")
        assert action.type == "LEGACY_ACTION"
        assert action.data == {}

    def test_pending_action_requires_id(self):
        with pytest.raises(ValidationError):
            PendingAction(type="CREATE_DISASTER_REPORT", timestamp="2025-10-27T12:00:00+00:00")

class TestActionPayloads:
    def test_every_action_type_has_a_schema(self):
        assert set(ACTION_PAYLOAD_SCHEMAS) == {action_type.value for action_type in ActionType}

    def test_warning_create_keeps_extra_fields(self):
        payload = WarningCreate.model_validate({"title": "Flood", "severity": "high"})
        assert payload.model_dump() == {"title": "Flood", "severity": "high"}

    def test_warning_create_empty_title(self):
        with pytest.raises(ValidationError):
            WarningCreate(title="")

    def test_warning_update_requires_id(self):
        with pytest.raises(ValidationError):
            WarningUpdate.model_validate({"status": "resolved"})

    def test_emergency_contact_requires_name(self):
        with pytest.raises(ValidationError):
            EmergencyContactCreate.model_validate({"phone": "112"})

    def test_schemas_are_keyed_by_plain_strings(self):
        assert all(type(key) is str for key in ACTION_PAYLOAD_SCHEMAS)
        assert ACTION_PAYLOAD_SCHEMAS["UPDATE_DISASTER_STATUS"] is WarningUpdate

class TestResults:
    def test_confirmed_is_not_pending(self):
        result = Confirmed(value=[1, 2])
        assert isinstance(result, OfflineResult)
        assert result.is_pending is False
        assert result.action_id is None

    def test_pending_carries_action_id(self):
        result = Pending(value={"id": "a1"}, action_id="a1")
        assert result.is_pending is True
        assert result.action_id == "a1"

    def test_sync_result_defaults(self):
        result = SyncResult(started_at=datetime.now(timezone.utc))
        assert result.processed == 0
        assert result.failed == 0
        assert result.conflicts == 0
        assert result.skipped_unknown == 0
        assert result.completed_at is None
