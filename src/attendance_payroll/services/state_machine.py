"""Leave request state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class LeaveStatus(str, Enum):
    """Leave request status values."""

    PENDING = "Pending"
    PROCESSING = "Processing"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    DONE = "Done"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class LeaveStateMachine:
    """State machine for leave request status transitions.

    Allowed transitions:
    - Pending → Processing
    - Pending → Rejected (manual, or the sweep once the start date passes)
    - Processing → Approved
    - Processing → Rejected
    - Approved → Done (the sweep, after the last leave day)
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        LeaveStatus.PENDING: [LeaveStatus.PROCESSING, LeaveStatus.REJECTED],
        LeaveStatus.PROCESSING: [LeaveStatus.APPROVED, LeaveStatus.REJECTED],
        LeaveStatus.APPROVED: [LeaveStatus.DONE],
        LeaveStatus.REJECTED: [],  # Terminal state
        LeaveStatus.DONE: [],  # Terminal state
    }

    # Statuses that block a new request from the same employee
    OUTSTANDING = {
        LeaveStatus.PENDING,
        LeaveStatus.PROCESSING,
        LeaveStatus.APPROVED,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)
