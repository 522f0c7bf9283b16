"""
Client-side filtering, sorting and statistics over leave request lists.

The lists are small (one employee's history or one reviewer's queue) and
already in memory, so everything here is a plain pass over a list.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime

from leave_portal.models import FilterState, LeaveRequest, LeaveStatus

SORTABLE_FIELDS = {
    "requested_at",
    "start_date",
    "end_date",
    "total_days",
    "leave_type",
    "employee_name",
    "status",
}


def _matches_search(request: LeaveRequest, term: str) -> bool:
    haystacks = (request.leave_type, request.reason, request.employee_name)
    return any(term in (h or "").lower() for h in haystacks)


def filter_requests(requests: Iterable[LeaveRequest], filters: FilterState) -> list[LeaveRequest]:
    """
    Apply every active filter in ``filters`` (conjunction).

    ``status_filter`` and ``active_tab`` both constrain status when set.
    Applying the same filters twice gives the same list.
    """
    term = filters.search_term.strip().lower()

    def keep(request: LeaveRequest) -> bool:
        if term and not _matches_search(request, term):
            return False
        if filters.status_filter and request.status != filters.status_filter:
            return False
        if filters.active_tab and request.status != filters.active_tab:
            return False
        if filters.leave_type_filter and request.leave_type != filters.leave_type_filter:
            return False
        if filters.employee_filter and filters.employee_filter not in (
            str(request.employee_id),
            request.employee_name,
        ):
            return False
        if filters.start_date and request.start_date < filters.start_date:
            return False
        if filters.end_date and request.end_date > filters.end_date:
            return False
        return True

    return [r for r in requests if keep(r)]


def _sort_key(field: str):
    def key(request: LeaveRequest):
        value = getattr(request, field)
        # None sorts before any value in ascending order
        if value is None:
            return (0, "")
        if isinstance(value, LeaveStatus):
            value = value.value
        if isinstance(value, datetime) and value.tzinfo is not None:
            value = value.replace(tzinfo=None) - value.utcoffset()
        return (1, value)

    return key


def sort_requests(
    requests: Iterable[LeaveRequest], field: str = "requested_at", direction: str = "desc"
) -> list[LeaveRequest]:
    """Stable sort by ``field``; ``direction`` is ``"asc"`` or ``"desc"``."""
    if field not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort leave requests by {field!r}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Sort direction must be 'asc' or 'desc', got {direction!r}")

    # sorted() with reverse=True keeps equal elements in their original order
    return sorted(requests, key=_sort_key(field), reverse=direction == "desc")


@dataclass(frozen=True)
class RequestStats:
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0
    total_days: float = 0


def compute_stats(
    requests: Iterable[LeaveRequest],
    counts_toward_days: Callable[[LeaveRequest], bool] = lambda r: True,
) -> RequestStats:
    """
    Count requests per status and sum ``total_days`` in a single pass.

    Only requests accepted by ``counts_toward_days`` contribute to the day
    total, e.g. ``lambda r: r.status is LeaveStatus.APPROVED``.
    """
    counts = {status: 0 for status in LeaveStatus}
    total = 0
    days = 0.0

    for request in requests:
        total += 1
        counts[request.status] += 1
        if counts_toward_days(request):
            days += request.total_days

    return RequestStats(
        total=total,
        pending=counts[LeaveStatus.PENDING],
        approved=counts[LeaveStatus.APPROVED],
        rejected=counts[LeaveStatus.REJECTED],
        cancelled=counts[LeaveStatus.CANCELLED],
        total_days=days,
    )


def group_by_month(requests: Iterable[LeaveRequest]) -> dict[str, list[LeaveRequest]]:
    """Group by the month the leave starts in, keyed like ``"March 2024"``."""
    grouped: dict[str, list[LeaveRequest]] = defaultdict(list)
    for request in sorted(requests, key=lambda r: r.start_date):
        grouped[_month_label(request.start_date)].append(request)
    return dict(grouped)


def _month_label(d: date) -> str:
    return d.strftime("%B %Y")
