"""
Which leave types an employee may request, and which of them consume PTO.
"""

import logging

from leave_portal.config import settings
from leave_portal.models import LeaveType

logger = logging.getLogger(__name__)


def is_pto_eligible(employee_classification: str | None) -> bool:
    """Field Staff (and any other configured classification) accrue no PTO."""
    return employee_classification not in settings.pto_ineligible_classifications


def eligible_types(
    all_types: list[LeaveType], employee_classification: str | None
) -> list[LeaveType]:
    """
    Filter the leave type catalog down to what this employee can request.

    Inactive types are always dropped. Paid-leave types are dropped for
    PTO-ineligible classifications. An empty result is a normal outcome;
    callers render ``empty_state_message`` for it.
    """
    pto_eligible = is_pto_eligible(employee_classification)

    types = [
        leave_type
        for leave_type in all_types
        if leave_type.is_active and (pto_eligible or not leave_type.is_paid_leave)
    ]

    logger.debug(
        "Eligible leave types for %s: %d of %d",
        employee_classification,
        len(types),
        len(all_types),
    )
    return types


def deducts_pto(type_name: str) -> bool:
    """
    Whether approving a request of this type consumes the PTO balance.

    Keyed by display name, independent of ``is_paid_leave``: Bereavement is
    paid but does not draw down PTO.
    """
    return type_name in settings.pto_deducting_types


def empty_state_message(employee_classification: str | None) -> str:
    if not is_pto_eligible(employee_classification):
        return (
            f"No leave types available. {employee_classification} positions "
            "have limited leave options."
        )
    return "No leave types are currently available. Please contact HR."
