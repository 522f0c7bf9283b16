"""
Reviewer side of the leave workflow.

Approve and reject both go through a confirmation dialog first, and a
reject needs a real reason before anything is sent. After a successful
action the pending list is re-fetched from the backend; statuses are never
patched locally.
"""

from __future__ import annotations

import logging

from leave_portal.collection import filter_requests, sort_requests
from leave_portal.config import settings
from leave_portal.eligibility import deducts_pto
from leave_portal.errors import InvalidTransitionError, LeaveApiError, RejectionReasonError
from leave_portal.form_fields import FormField, MultilineField, TextField
from leave_portal.formatting import format_date_range, format_days
from leave_portal.models import FilterState, LeaveRequest
from leave_portal.observability import trace_span
from leave_portal.session import SessionProvider
from leave_portal.views import ConfirmationDialog, LeaveView

logger = logging.getLogger(__name__)

APPROVE = "approve"
REJECT = "reject"


def validate_rejection_reason(reason: str | None) -> str:
    """Return the trimmed reason, or raise ``RejectionReasonError``."""
    trimmed = (reason or "").strip()
    if not trimmed:
        raise RejectionReasonError("Please provide a reason for rejection")
    if len(trimmed) < settings.min_rejection_reason_length:
        raise RejectionReasonError(
            "Please provide a more detailed reason "
            f"(at least {settings.min_rejection_reason_length} characters)"
        )
    return trimmed


def consequence_summary(request: LeaveRequest, action: str) -> str:
    """Plain-language description of what confirming ``action`` will do."""
    who = request.employee_name or "The employee"
    dates = format_date_range(request.start_date, request.end_date)
    span = f"{format_days(request.total_days)} ({dates})"

    if action == REJECT:
        return (
            f"Rejecting {request.leave_type} for {span}. {who} will see your reason. "
            "No balance will change."
        )
    if request.is_paid_leave and deducts_pto(request.leave_type):
        return (
            f"Approving {request.leave_type} for {span}. This will deduct "
            f"{format_days(request.total_days)} from {who}'s PTO balance."
        )
    if request.is_paid_leave:
        return (
            f"Approving {request.leave_type} for {span}. This is paid leave and "
            "will not be deducted from the PTO balance."
        )
    return (
        f"Approving {request.leave_type} for {span}. This is unpaid leave; "
        "no PTO will be deducted."
    )


class ApprovalWorkflow(LeaveView):
    """Pending-approvals queue for one reviewer."""

    def __init__(self, api, session: SessionProvider):
        super().__init__(api, session)
        self.pending: list[LeaveRequest] = []
        self.filters = FilterState()
        self.field_errors: dict[str, str] = {}

    @property
    def visible_requests(self) -> list[LeaveRequest]:
        """Filtered queue, oldest request first."""
        return sort_requests(filter_requests(self.pending, self.filters), "requested_at", "asc")

    @property
    def department_options(self) -> list[str]:
        return sorted({r.department for r in self.pending if r.department})

    def _find(self, leave_request_id: int) -> LeaveRequest:
        for request in self.pending:
            if request.leave_request_id == leave_request_id:
                return request
        raise KeyError(f"Leave request {leave_request_id} is not in the pending queue")

    async def refresh(self) -> None:
        """Re-fetch the pending queue. Manual retry after an error is just another refresh."""
        generation = self._next_generation()
        self.loading = True
        try:
            pending = await self.api.list_pending_approvals()
        except LeaveApiError as e:
            if self._is_current(generation, "pending approvals"):
                self._show_error(e)
                self.loading = False
            return

        if self._is_current(generation, "pending approvals"):
            self.pending = pending
            self.loading = False

    # ------------------------------------------------------------------
    # Confirmation dialogs
    # ------------------------------------------------------------------

    def open_approve(self, leave_request_id: int) -> ConfirmationDialog:
        request = self._find(leave_request_id)
        self.field_errors = {}
        self.dialog = ConfirmationDialog(APPROVE, request, consequence_summary(request, APPROVE))
        return self.dialog

    def open_reject(self, leave_request_id: int) -> ConfirmationDialog:
        request = self._find(leave_request_id)
        self.field_errors = {}
        self.dialog = ConfirmationDialog(REJECT, request, consequence_summary(request, REJECT))
        return self.dialog

    def dialog_fields(self, action: str) -> list[FormField]:
        """Inputs the confirmation dialog for ``action`` collects."""
        if action == APPROVE:
            return [TextField("comments", "Comments", max_length=settings.max_reason_length)]
        return [
            MultilineField(
                "rejection_reason",
                "Rejection Reason",
                required=True,
                max_length=settings.max_reason_length,
            )
        ]

    def dismiss_dialog(self) -> None:
        super().dismiss_dialog()
        self.field_errors = {}

    def _require_confirmation(self, action: str, leave_request_id: int) -> None:
        if self.dialog is None or not self.dialog.matches(action, leave_request_id):
            raise InvalidTransitionError(
                f"Open the {action} confirmation for request {leave_request_id} first"
            )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def approve(self, leave_request_id: int, comments: str | None = None) -> bool:
        self._require_confirmation(APPROVE, leave_request_id)
        return await self._run(
            APPROVE,
            leave_request_id,
            lambda: self.api.approve_request(leave_request_id, (comments or "").strip()),
        )

    async def reject(self, leave_request_id: int, reason: str) -> bool:
        """
        Reject a pending request.

        A reason shorter than the configured minimum is refused here with a
        field error; the backend is never called in that case.
        """
        try:
            trimmed = validate_rejection_reason(reason)
        except RejectionReasonError as e:
            self.field_errors = e.errors
            return False

        self._require_confirmation(REJECT, leave_request_id)
        return await self._run(
            REJECT,
            leave_request_id,
            lambda: self.api.reject_request(leave_request_id, trimmed),
        )

    async def _run(self, action: str, leave_request_id: int, call) -> bool:
        if leave_request_id in self.in_flight:
            return False

        self.in_flight.add(leave_request_id)
        self.dismiss_messages()
        try:
            with trace_span(f"{action}_leave_request", request=leave_request_id):
                message = await call()
        except LeaveApiError as e:
            self._show_error(e)
            return False
        finally:
            self.in_flight.discard(leave_request_id)

        if self.closed:
            logger.debug(f"{action} of {leave_request_id} finished after view closed")
            return True

        self.success_message = message
        self.dialog = None
        self.field_errors = {}
        # anything loaded before this point predates the mutation
        self._next_generation()
        await self.refresh()
        return True
