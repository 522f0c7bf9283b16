"""
Tests for converting raw leave API payloads into canonical models.
"""

from datetime import date

import pytest

from data.sample_leave_data import get_leave_requests, get_leave_types, get_pto_balance
from leave_portal.errors import LeaveApiError
from leave_portal.models import LeaveStatus
from leave_portal.normalize import (
    leave_request_from_api,
    leave_requests_from_api,
    leave_types_from_api,
    message_from_api,
    pto_balance_from_api,
)


class TestLeaveTypes:
    def test_camel_and_pascal_case_give_same_shape(self):
        camel = {"leaveTypeId": 3, "typeName": "Bereavement", "isPaidLeave": True}
        pascal = {"LeaveTypeId": 3, "TypeName": "Bereavement", "IsPaidLeave": True}

        assert leave_types_from_api([camel]) == leave_types_from_api([pascal])

    def test_sample_catalog(self):
        types = leave_types_from_api(get_leave_types())

        bereavement = types[2]
        assert bereavement.name == "Bereavement"
        assert bereavement.is_paid_leave
        assert bereavement.max_days_per_year == 5
        assert not types[5].is_active

    def test_defaults_for_missing_flags(self):
        leave_type = leave_types_from_api([{"id": 9, "name": "Floating Holiday"}])[0]

        assert leave_type.leave_type_id == 9
        assert leave_type.is_active
        assert leave_type.requires_approval
        assert not leave_type.is_paid_leave

    def test_wrapped_list_is_unwrapped(self):
        types = leave_types_from_api({"items": [{"leaveTypeId": 1, "typeName": "PTO"}]})

        assert [t.name for t in types] == ["PTO"]

    def test_non_list_payload_is_an_api_error(self):
        with pytest.raises(LeaveApiError):
            leave_types_from_api("oops")


class TestLeaveRequests:
    def test_pascal_case_request(self):
        rejected = leave_requests_from_api(get_leave_requests())[2]

        assert rejected.leave_type == "Unpaid Leave"
        assert rejected.status is LeaveStatus.REJECTED
        assert rejected.total_days == 0.5
        assert rejected.start_date == date(2026, 5, 11)
        assert rejected.rejection_reason.startswith("Team coverage")
        assert rejected.employee_name == "Dana Whitfield"

    def test_nested_leave_type_and_employee(self):
        raw = {
            "id": 12,
            "leaveType": {"typeName": "PTO", "isPaidLeave": True},
            "employee": {"employeeId": 7, "fullName": "Ana Ruiz", "department": {"name": "IT"}},
            "startDate": "2026-01-05",
            "endDate": "2026-01-06",
            "totalDays": 2,
            "status": "Pending",
        }

        request = leave_request_from_api(raw)

        assert request.leave_type == "PTO"
        assert request.is_paid_leave
        assert request.employee_id == 7
        assert request.employee_name == "Ana Ruiz"
        assert request.department == "IT"

    def test_plain_string_employee(self):
        raw = {
            "leaveRequestId": 1,
            "employee": "Ana Ruiz",
            "leaveTypeName": "Unpaid Leave",
            "startDate": "2026-01-05",
            "endDate": "2026-01-05",
            "totalDays": 1,
        }

        request = leave_request_from_api(raw)

        assert request.employee_name == "Ana Ruiz"
        assert request.status is LeaveStatus.PENDING
        assert not request.can_cancel

    def test_unknown_status_is_rejected(self):
        raw = get_leave_requests()[0]
        raw["status"] = "Archived"

        with pytest.raises(ValueError):
            leave_request_from_api(raw)


class TestBalanceAndMessages:
    def test_balance(self):
        balance = pto_balance_from_api(get_pto_balance(101))

        assert balance.total_pto_days == 20
        assert balance.remaining_pto_days == 5
        assert balance.pending_pto_days == 2

    def test_ineligible_balance_is_none(self):
        assert pto_balance_from_api(get_pto_balance(102)) is None
        assert pto_balance_from_api({}) is None

    def test_message_fallback(self):
        assert message_from_api({"message": "Overlaps an approved request"}, "x") == (
            "Overlaps an approved request"
        )
        assert message_from_api({"Message": "Pascal"}, "x") == "Pascal"
        assert message_from_api({"message": "  "}, "fallback") == "fallback"
        assert message_from_api(None, "fallback") == "fallback"
