"""
Queue-specific exceptions for the queues app.

These exceptions are raised by the queue services and are translated to
DRF responses in the views.
"""

from __future__ import annotations

from typing import Any


class QueueError(Exception):
    """Base exception for all queue-related errors."""

    def to_dict(self) -> dict[str, Any]:
        return {'detail': str(self)}


class InvalidQueueData(QueueError):
    """
    Raised when input for a queue operation is unusable
    (unknown doctor/room, missing patient, unknown treatment, ...).
    """
    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = {'detail': str(self)}
        if self.field:
            result['field'] = self.field
        return result


class InvalidSessionId(QueueError):
    """Raised when a care-session id is not a positive integer."""
    def __init__(self, raw: Any, message: str = "Invalid ID type"):
        self.raw = raw
        super().__init__(message)


class InvalidStatus(QueueError):
    """Raised when a status is not one of the lifecycle values."""
    def __init__(self, status: Any, message: str = "Invalid status"):
        self.status = status
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {'detail': str(self), 'status': self.status}


class InvalidTransition(QueueError):
    """
    Raised when strict transitions are enabled and the requested status does
    not follow the current one.
    """
    def __init__(self, old: str, new: str):
        self.old = old
        self.new = new
        super().__init__(f"Invalid transition {old} -> {new}.")

    def to_dict(self) -> dict[str, Any]:
        return {'detail': str(self), 'from': self.old, 'to': self.new}


class SessionNotFound(QueueError):
    """Raised when a care session does not exist."""
    def __init__(self, session_id: Any, message: str = "Care session not found."):
        self.session_id = session_id
        super().__init__(message)


class PatientNotFound(QueueError):
    """Raised when the referenced patient does not exist."""
    def __init__(self, patient_id: Any, message: str = "Patient not found."):
        self.patient_id = patient_id
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {'detail': str(self), 'field': 'patient_id'}


class CapacityExceeded(QueueError):
    """
    Raised when a sequence runs out of numbers
    (more than 999 queue entries in a day, or the last medical record number).

    Attributes:
        limit: The highest number the sequence can hand out
    """
    def __init__(self, message: str, *, limit: int):
        self.limit = limit
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {'detail': str(self), 'limit': self.limit}
