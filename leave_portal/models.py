"""
Canonical leave entities.

Everything a view or workflow touches is one of these models. Raw API
payloads are converted in ``leave_portal.normalize`` and nowhere else.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LeaveStatus(str, Enum):
    """Lifecycle status of a persisted leave request."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.PENDING

    def can_transition_to(self, target: LeaveStatus) -> bool:
        """Pending may move to any terminal status; terminal statuses never move."""
        return self is LeaveStatus.PENDING and target.is_terminal


class LeaveType(BaseModel):
    """Catalog entry served by the backend. Never mutated client-side."""

    model_config = ConfigDict(frozen=True)

    leave_type_id: int
    name: str
    description: str = ""
    is_paid_leave: bool = False
    requires_approval: bool = True
    max_days_per_year: float | None = None
    requires_full_time_status: bool = False
    is_active: bool = True
    is_eligible: bool = True


class LeaveRequest(BaseModel):
    """Server-owned leave request."""

    model_config = ConfigDict(frozen=True)

    leave_request_id: int
    employee_id: int | None = None
    employee_name: str = ""
    department: str = ""
    leave_type: str
    start_date: date
    end_date: date
    total_days: float
    reason: str = ""
    status: LeaveStatus = LeaveStatus.PENDING
    requested_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    can_cancel: bool = False
    is_paid_leave: bool = False


class PTOBalance(BaseModel):
    """PTO balance snapshot as returned by the backend."""

    model_config = ConfigDict(frozen=True)

    total_pto_days: float = 0
    used_pto_days: float = 0
    remaining_pto_days: float = 0
    pending_pto_days: float = 0
    year: int | None = None
    is_eligible: bool = True
    accrual_rate: float | None = None


class FilterState(BaseModel):
    """Ephemeral filter state of a request list. ``FilterState()`` is the reset value."""

    search_term: str = ""
    status_filter: LeaveStatus | None = None
    leave_type_filter: str = ""
    employee_filter: str = ""
    active_tab: LeaveStatus | None = None
    start_date: date | None = None
    end_date: date | None = None


class SubmitLeavePayload(BaseModel):
    """Body of ``POST /Leave/Request``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    leave_type_id: int = Field(alias="leaveTypeId")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    reason: str = ""
    total_days: float = Field(alias="totalDays")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class LeaveRequestDraft:
    """In-progress user input for a new leave request."""

    leave_type_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str = ""
    is_half_day: bool = False

    def missing_fields(self) -> list[str]:
        missing = []
        if self.leave_type_id is None:
            missing.append("leave_type_id")
        if self.start_date is None:
            missing.append("start_date")
        if self.end_date is None:
            missing.append("end_date")
        return missing

    def is_complete(self) -> bool:
        return len(self.missing_fields()) == 0
