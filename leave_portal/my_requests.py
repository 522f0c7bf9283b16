"""
The requester's own leave history: list, filter, statistics, cancel.
"""

from __future__ import annotations

import asyncio
import logging

from leave_portal.collection import RequestStats, compute_stats, filter_requests, sort_requests
from leave_portal.eligibility import deducts_pto
from leave_portal.errors import LeaveApiError
from leave_portal.formatting import format_date_range, format_days
from leave_portal.models import FilterState, LeaveRequest, LeaveStatus, LeaveType, PTOBalance
from leave_portal.observability import trace_span
from leave_portal.pto_balance import BalanceProjection, project
from leave_portal.session import SessionProvider
from leave_portal.views import ConfirmationDialog, LeaveView

logger = logging.getLogger(__name__)

CANCEL = "cancel"


class MyRequestsView(LeaveView):
    def __init__(self, api, session: SessionProvider):
        super().__init__(api, session)
        self.requests: list[LeaveRequest] = []
        self.leave_types: list[LeaveType] = []
        self.balance: PTOBalance | None = None
        self.filters = FilterState()

    async def load(self) -> bool:
        """
        Fetch requests, leave types and balance in parallel.

        Returns False when the results were discarded as stale.

        Only the request list is primary. Leave types (filter options) and
        the balance card degrade to empty when their calls fail.
        """
        generation = self._next_generation()
        self.loading = True
        requests, leave_types, balance = await asyncio.gather(
            self.api.list_my_requests(),
            self.api.list_leave_types(),
            self.api.get_my_balance(),
            return_exceptions=True,
        )
        if not self._is_current(generation, "my requests"):
            return False
        self.loading = False

        for result in (requests, leave_types, balance):
            if isinstance(result, BaseException) and not isinstance(result, LeaveApiError):
                raise result

        if isinstance(requests, LeaveApiError):
            self.error = requests.message
        else:
            self.requests = requests

        if isinstance(leave_types, LeaveApiError):
            logger.warning(f"Leave type filter unavailable: {leave_types.message}")
            self.leave_types = []
        else:
            self.leave_types = leave_types

        if isinstance(balance, LeaveApiError):
            logger.warning(f"PTO balance unavailable: {balance.message}")
            self.balance = None
        else:
            self.balance = balance
        return True

    async def refresh(self) -> None:
        self.dismiss_messages()
        applied = await self.load()
        if applied and not self.error:
            self.success_message = "Leave requests refreshed successfully"

    @property
    def visible_requests(self) -> list[LeaveRequest]:
        """Filtered history, most recent request first."""
        return sort_requests(filter_requests(self.requests, self.filters))

    @property
    def stats(self) -> RequestStats:
        return compute_stats(self.requests)

    @property
    def approved_days(self) -> float:
        approved = compute_stats(self.requests, lambda r: r.status is LeaveStatus.APPROVED)
        return approved.total_days

    @property
    def pending_pto_days(self) -> float:
        return compute_stats(
            self.requests,
            lambda r: r.status is LeaveStatus.PENDING and deducts_pto(r.leave_type),
        ).total_days

    @property
    def projection(self) -> BalanceProjection:
        """Balance as it would stand once every pending PTO request is approved."""
        return project(self.balance, self.pending_pto_days)

    @property
    def leave_type_options(self) -> list[str]:
        return [t.name for t in self.leave_types]

    def request_cancel(self, leave_request_id: int) -> ConfirmationDialog | None:
        request = next(
            (r for r in self.requests if r.leave_request_id == leave_request_id), None
        )
        if request is None or not request.can_cancel:
            self.error = "Only your own pending requests can be cancelled"
            return None

        self.dialog = ConfirmationDialog(
            CANCEL,
            request,
            f"Cancel your {request.leave_type} request for {format_days(request.total_days)} "
            f"({format_date_range(request.start_date, request.end_date)})?",
        )
        return self.dialog

    def dismiss_dialog(self) -> None:
        # the dialog stays up while its cancellation is in flight
        if self.dialog and self.dialog.request.leave_request_id in self.in_flight:
            return
        super().dismiss_dialog()

    async def confirm_cancel(self) -> bool:
        if self.dialog is None or self.dialog.action != CANCEL:
            return False
        leave_request_id = self.dialog.request.leave_request_id
        if leave_request_id in self.in_flight:
            return False

        self.in_flight.add(leave_request_id)
        self.dismiss_messages()
        try:
            with trace_span("cancel_leave_request", request=leave_request_id):
                message = await self.api.cancel_request(leave_request_id)
        except LeaveApiError as e:
            self._show_error(e)
            return False
        finally:
            self.in_flight.discard(leave_request_id)

        if self.closed:
            return True

        self.success_message = message
        self.dialog = None
        self._next_generation()
        await self.load()
        return True
