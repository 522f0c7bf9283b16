"""
Error taxonomy for the leave workflows.

Validation errors are raised before any network call and carry a
field -> message map. API errors wrap any non-success response or transport
failure and carry the message the backend sent, which views show verbatim.
"""

from __future__ import annotations


class LeavePortalError(Exception):
    """Base class for every error raised by leave_portal."""


class DraftValidationError(LeavePortalError):
    """Local validation failure. Never reaches the network layer."""

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()) or "Invalid leave request")


class RejectionReasonError(DraftValidationError):
    """Rejection reason missing or shorter than the configured minimum."""

    def __init__(self, message: str):
        super().__init__({"rejection_reason": message})


class InvalidTransitionError(LeavePortalError):
    """A status change out of a terminal leave request status."""


class LeaveApiError(LeavePortalError):
    """Non-success response or network failure from the leave API."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
