# disasterwatch/core/exceptions.py
"""
Error taxonomy for the offline sync subsystem.
"""
from typing import Any, Optional


class StorageError(Exception):
    """Reading or writing the local store failed."""


class ApiError(Exception):
    """
    A remote API call failed.

    status_code is None when no response was received at all
    (connection refused, DNS failure, timeout).
    """

    def __init__(self, status_code: Optional[int], message: str, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code!r}, message={self.message!r})"


class OfflineOperationNotSupported(Exception):
    """An offline read was requested for an operation with no cached fallback."""

    def __init__(self, operation: str):
        super().__init__("Offline operation not supported")
        self.operation = operation


class InvalidActionPayload(ValueError):
    """An offline write carried a payload that does not match its action schema."""

    def __init__(self, action_type: str, errors: Any = None):
        super().__init__(f"Invalid payload for {action_type}")
        self.action_type = action_type
        self.errors = errors
