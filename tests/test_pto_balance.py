"""
Tests for PTO balance projection.
"""

import pytest

from leave_portal.models import PTOBalance
from leave_portal.pto_balance import BalanceStatus, classify, project, usage_percentage


class TestProject:
    def test_low_balance_scenario(self, balance):
        """20 total, 15 used, 5 remaining, 3 requested."""
        projection = project(balance, 3)

        assert projection.projected_remaining == 2
        assert projection.used_pct == 75
        assert projection.remaining_pct == 25
        assert projection.status == BalanceStatus.LOW
        assert not projection.over_budget

    def test_over_budget_is_a_warning(self, balance):
        projection = project(balance, 8)

        assert projection.projected_remaining == -3
        assert projection.over_budget
        assert any("Insufficient PTO balance" in w for w in projection.warnings)

    def test_zero_total_does_not_divide(self):
        projection = project(PTOBalance(total_pto_days=0), 1)

        assert projection.used_pct == 0
        assert projection.remaining_pct == 100

    def test_ineligible_employee(self):
        assert project(None, 2).status == BalanceStatus.NOT_APPLICABLE
        assert project(PTOBalance(is_eligible=False), 2).status == BalanceStatus.NOT_APPLICABLE

    def test_long_request_warning(self):
        balance = PTOBalance(total_pto_days=40, used_pto_days=0, remaining_pto_days=40)

        projection = project(balance, 25)

        assert projection.status == BalanceStatus.MODERATE
        assert any("longer than 20 days" in w for w in projection.warnings)


@pytest.mark.parametrize(
    "remaining,total,expected",
    [
        (10, 20, BalanceStatus.HEALTHY),
        (20, 20, BalanceStatus.HEALTHY),
        (9.5, 20, BalanceStatus.MODERATE),
        (4, 20, BalanceStatus.MODERATE),
        (3.5, 20, BalanceStatus.LOW),
        (-1, 20, BalanceStatus.LOW),
    ],
)
def test_classify_thresholds(remaining, total, expected):
    assert classify(remaining, total) == expected


def test_usage_percentage_rounds():
    assert usage_percentage(1, 3) == 33
    assert usage_percentage(2, 3) == 67
    assert usage_percentage(5, 0) == 0
