"""
Shared state handling for the request list views.

A view owns its copy of the data. Each load captures a generation number
and applies its result only if the view is still open and no later load or
completed mutation bumped the generation meanwhile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from leave_portal.errors import LeaveApiError
from leave_portal.models import LeaveRequest
from leave_portal.session import SessionProvider

logger = logging.getLogger(__name__)


@dataclass
class ConfirmationDialog:
    """Modal confirmation shown before a mutation reaches the network."""

    action: str
    request: LeaveRequest
    summary: str

    def matches(self, action: str, leave_request_id: int) -> bool:
        return self.action == action and self.request.leave_request_id == leave_request_id


class LeaveView:
    def __init__(self, api, session: SessionProvider):
        self.api = api
        self.session = session

        self.error = ""
        self.error_status: int | None = None
        self.success_message = ""
        self.loading = False
        self.closed = False
        self.dialog: ConfirmationDialog | None = None
        self.in_flight: set[int] = set()

        self._generation = 0

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int, what: str) -> bool:
        if self.closed:
            logger.debug(f"Discarding {what} response: view closed")
            return False
        if generation != self._generation:
            logger.debug(f"Discarding stale {what} response (generation {generation})")
            return False
        return True

    def _show_error(self, error: LeaveApiError) -> None:
        if not self.closed:
            self.error = error.message
            self.error_status = error.status_code

    def dismiss_dialog(self) -> None:
        self.dialog = None

    def dismiss_messages(self) -> None:
        self.error = ""
        self.error_status = None
        self.success_message = ""

    def close(self) -> None:
        """Stop applying responses; anything still in flight is ignored when it lands."""
        self.closed = True
        self.dialog = None
