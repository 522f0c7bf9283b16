"""
PTO balance projection.

The backend owns the balance. This module only projects what the balance
would look like if a pending request were approved, for display next to
the request form and in approval dialogs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from leave_portal.config import settings
from leave_portal.models import PTOBalance


class BalanceStatus(str, Enum):
    HEALTHY = "healthy"
    MODERATE = "moderate"
    LOW = "low"
    NOT_APPLICABLE = "not-applicable"


# (minimum remaining share of total, status), checked top to bottom
STATUS_THRESHOLDS = [
    (0.50, BalanceStatus.HEALTHY),
    (0.20, BalanceStatus.MODERATE),
]


@dataclass(frozen=True)
class BalanceProjection:
    used_pct: int
    remaining_pct: int
    projected_remaining: float
    status: BalanceStatus
    warnings: list[str] = field(default_factory=list)

    @property
    def over_budget(self) -> bool:
        return self.projected_remaining < 0


def usage_percentage(used_days: float, total_days: float) -> int:
    if not total_days:
        return 0
    return round(used_days / total_days * 100)


def classify(remaining_days: float, total_days: float) -> BalanceStatus:
    share = remaining_days / total_days if total_days else 0
    for threshold, status in STATUS_THRESHOLDS:
        if share >= threshold:
            return status
    return BalanceStatus.LOW


def project(balance: PTOBalance | None, pending_days: float = 0) -> BalanceProjection:
    """
    Project the balance after ``pending_days`` are approved.

    ``projected_remaining`` may go negative; over-budget requests are allowed
    and only produce a warning.
    A missing balance or an ineligible employee classifies as not-applicable.

    Example:
        >>> p = project(PTOBalance(total_pto_days=20, used_pto_days=15, remaining_pto_days=5), 3)
        >>> (p.projected_remaining, p.used_pct, p.status.value)
        (2, 75, 'low')
    """
    if balance is None or not balance.is_eligible:
        return BalanceProjection(
            used_pct=0,
            remaining_pct=0,
            projected_remaining=0,
            status=BalanceStatus.NOT_APPLICABLE,
        )

    used_pct = usage_percentage(balance.used_pto_days, balance.total_pto_days)
    projected_remaining = balance.remaining_pto_days - pending_days

    return BalanceProjection(
        used_pct=used_pct,
        remaining_pct=100 - used_pct,
        projected_remaining=projected_remaining,
        status=classify(projected_remaining, balance.total_pto_days),
        warnings=validate_request_size(balance.remaining_pto_days, pending_days),
    )


def validate_request_size(remaining_days: float, requested_days: float) -> list[str]:
    """Non-blocking warnings about the size of a PTO request."""
    warnings = []
    if requested_days > remaining_days:
        warnings.append(
            f"Insufficient PTO balance. Available: {remaining_days:g} days, "
            f"Requested: {requested_days:g} days. This request needs special approval."
        )
    if requested_days > settings.max_days_per_request:
        warnings.append(
            f"Requests longer than {settings.max_days_per_request:g} days "
            "need special approval."
        )
    return warnings
