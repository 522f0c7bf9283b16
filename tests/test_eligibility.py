"""
Tests for leave type eligibility and PTO deduction rules.
"""

from leave_portal.eligibility import (
    deducts_pto,
    eligible_types,
    empty_state_message,
    is_pto_eligible,
)
from leave_portal.models import LeaveType


class TestEligibleTypes:
    def test_inactive_types_are_dropped(self, leave_types):
        names = [t.name for t in eligible_types(leave_types, "Admin Staff")]

        assert "Sabbatical" not in names
        assert names == ["PTO", "Unpaid Leave", "Bereavement", "Jury Duty", "Medical Leave"]

    def test_field_staff_gets_no_paid_leave(self, leave_types):
        """Field Staff only see active, unpaid types."""
        types = eligible_types(leave_types, "Field Staff")

        assert types
        assert all(t.is_active and not t.is_paid_leave for t in types)
        assert [t.name for t in types] == ["Unpaid Leave", "Medical Leave"]

    def test_empty_catalog_is_not_an_error(self):
        only_paid = [LeaveType(leave_type_id=1, name="PTO", is_paid_leave=True)]

        assert eligible_types(only_paid, "Field Staff") == []
        assert eligible_types([], "Admin Staff") == []

    def test_empty_state_message_mentions_classification(self):
        assert "Field Staff" in empty_state_message("Field Staff")
        assert "contact HR" in empty_state_message("Admin Staff")

    def test_pto_eligibility(self):
        assert is_pto_eligible("Admin Staff")
        assert not is_pto_eligible("Field Staff")


class TestDeductsPto:
    def test_only_pto_deducts(self):
        assert deducts_pto("PTO")
        assert not deducts_pto("Unpaid Leave")

    def test_paid_leave_can_skip_deduction(self, leave_types):
        """Bereavement is paid but leaves the PTO balance alone."""
        bereavement = next(t for t in leave_types if t.name == "Bereavement")

        assert bereavement.is_paid_leave
        assert not deducts_pto(bereavement.name)
