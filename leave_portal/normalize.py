"""
The one place raw leave API payloads are interpreted.

The backend is inconsistent about key casing (``typeName`` vs ``TypeName``)
and naming (``leaveTypeName`` vs ``leaveType``). Every payload passes
through here exactly once on its way into the canonical models; nothing
downstream reads raw dicts.
"""

from __future__ import annotations

from typing import Any

from leave_portal.errors import LeaveApiError
from leave_portal.models import LeaveRequest, LeaveStatus, LeaveType, PTOBalance


def _pick(raw: dict[str, Any], *names: str, default: Any = None) -> Any:
    """Return the first present key among ``names`` in camelCase or PascalCase."""
    for name in names:
        for key in (name, name[:1].upper() + name[1:]):
            if key in raw and raw[key] is not None:
                return raw[key]
    return default


def _nested_name(value: Any) -> Any:
    if isinstance(value, dict):
        return _pick(value, "typeName", "name", "fullName")
    return value


def _require_list(payload: Any, what: str) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = _pick(payload, "items", "data", "results", default=payload)
    if not isinstance(payload, list):
        raise LeaveApiError(f"Unexpected response while loading {what}")
    return payload


def leave_type_from_api(raw: dict[str, Any]) -> LeaveType:
    return LeaveType(
        leave_type_id=_pick(raw, "leaveTypeId", "id"),
        name=_pick(raw, "typeName", "name", default=""),
        description=_pick(raw, "description", default=""),
        is_paid_leave=bool(_pick(raw, "isPaidLeave", "isPaid", default=False)),
        requires_approval=bool(_pick(raw, "requiresApproval", default=True)),
        max_days_per_year=_pick(raw, "maxDaysPerYear"),
        requires_full_time_status=bool(_pick(raw, "requiresFullTimeStatus", default=False)),
        is_active=bool(_pick(raw, "isActive", default=True)),
        is_eligible=bool(_pick(raw, "isEligible", default=True)),
    )


def leave_types_from_api(payload: Any) -> list[LeaveType]:
    return [leave_type_from_api(raw) for raw in _require_list(payload, "leave types")]


def leave_request_from_api(raw: dict[str, Any]) -> LeaveRequest:
    employee = _pick(raw, "employee", default={})
    if not isinstance(employee, dict):
        employee = {"fullName": employee}
    leave_type = _pick(raw, "leaveTypeName", "leaveType", "typeName", default="")

    is_paid_leave = _pick(raw, "isPaidLeave")
    if is_paid_leave is None and isinstance(leave_type, dict):
        is_paid_leave = _pick(leave_type, "isPaidLeave")

    return LeaveRequest(
        leave_request_id=_pick(raw, "leaveRequestId", "id"),
        employee_id=_pick(raw, "employeeId", default=_pick(employee, "employeeId")),
        employee_name=_pick(raw, "employeeName", default=_nested_name(employee) or ""),
        department=_nested_name(
            _pick(raw, "department", default=_pick(employee, "department", default=""))
        )
        or "",
        leave_type=_nested_name(leave_type) or "",
        start_date=_pick(raw, "startDate"),
        end_date=_pick(raw, "endDate"),
        total_days=_pick(raw, "totalDays", default=0),
        reason=_pick(raw, "reason", default=""),
        status=LeaveStatus(_pick(raw, "status", default=LeaveStatus.PENDING.value)),
        requested_at=_pick(raw, "requestedAt", "createdAt"),
        approved_by=_nested_name(_pick(raw, "approvedBy")),
        approved_at=_pick(raw, "approvedAt"),
        rejection_reason=_pick(raw, "rejectionReason"),
        can_cancel=bool(_pick(raw, "canCancel", default=False)),
        is_paid_leave=bool(is_paid_leave),
    )


def leave_requests_from_api(payload: Any) -> list[LeaveRequest]:
    return [leave_request_from_api(raw) for raw in _require_list(payload, "leave requests")]


def pto_balance_from_api(raw: dict[str, Any] | None) -> PTOBalance | None:
    """Ineligible employees get ``None`` back from the API, or ``isEligible: false``."""
    if not raw:
        return None
    return PTOBalance(
        total_pto_days=_pick(raw, "totalPTODays", "totalPtoDays", "total", default=0),
        used_pto_days=_pick(raw, "usedPTODays", "usedPtoDays", "used", default=0),
        remaining_pto_days=_pick(
            raw, "remainingPTODays", "remainingPtoDays", "available", default=0
        ),
        pending_pto_days=_pick(raw, "pendingPTODays", "pendingPtoDays", "pending", default=0),
        year=_pick(raw, "year"),
        is_eligible=bool(_pick(raw, "isEligible", default=True)),
        accrual_rate=_pick(raw, "accrualRate"),
    )


def created_id_from_api(payload: Any) -> int | None:
    """Id of the request a create call made, when the body reports one."""
    if isinstance(payload, dict):
        return _pick(payload, "leaveRequestId", "id")
    return None


def message_from_api(payload: Any, fallback: str) -> str:
    """Extract the human readable ``message`` of a success or error body."""
    if isinstance(payload, dict):
        message = _pick(payload, "message", "detail", "title")
        if isinstance(message, str) and message.strip():
            return message
    return fallback
