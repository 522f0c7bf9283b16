"""
Date range arithmetic for leave requests.

All day counts are inclusive of both ends. A half-day request always
counts as 0.5 days, even when its start and end dates differ.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from dateutil import parser
from dateutil.parser import ParserError

from leave_portal.errors import DraftValidationError

END_BEFORE_START = "END_BEFORE_START"

HALF_DAY = 0.5


@dataclass(frozen=True)
class TotalDaysResult:
    total_days: float
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None


def to_date(value: date | str | None, field: str = "date") -> date | None:
    """
    Coerce a ``date``, ``datetime`` or ISO ``YYYY-MM-DD`` string into a ``date``.

    Empty values map to ``None``. Unparseable strings raise
    ``DraftValidationError`` keyed by ``field``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parser.isoparse(value).date()
    except (ParserError, ValueError) as e:
        raise DraftValidationError(
            {field: f"Invalid date format: {value}. Please use YYYY-MM-DD."}
        ) from e


def compute_total_days(
    start_date: date | str | None,
    end_date: date | str | None,
    is_half_day: bool = False,
) -> TotalDaysResult:
    """
    Count the leave days covered by ``start_date``..``end_date``.

    - end before start: ``total_days=0`` and ``error=END_BEFORE_START``
      (reported, never swapped)
    - otherwise the inclusive day count
    - ``is_half_day`` forces the count to 0.5 regardless of span

    Example:
        >>> compute_total_days("2024-03-01", "2024-03-03").total_days
        3
    """
    start = to_date(start_date, "start_date")
    end = to_date(end_date, "end_date")

    if start is None or end is None:
        return TotalDaysResult(total_days=0)

    if end < start:
        return TotalDaysResult(total_days=0, error=END_BEFORE_START)

    if is_half_day:
        return TotalDaysResult(total_days=HALF_DAY)

    return TotalDaysResult(total_days=(end - start).days + 1)


def minimum_selectable_date(disable_past_dates: bool, today: date | None = None) -> date | None:
    """Lower bound of the start-date field: today when past dates are disabled."""
    if not disable_past_dates:
        return None
    return today or date.today()


def end_date_floor(
    start_date: date | str | None, disable_past_dates: bool, today: date | None = None
) -> date | None:
    """Lower bound of the end-date field: the later of the start date and the floor."""
    start = to_date(start_date, "start_date")
    floor = minimum_selectable_date(disable_past_dates, today)
    candidates = [d for d in (start, floor) if d is not None]
    return max(candidates) if candidates else None


def autofill_end_date(start_date: date | None, end_date: date | None) -> date | None:
    """Picking a start date with no end date yet selects a single-day range."""
    if end_date is None:
        return start_date
    return end_date


def is_past_date(value: date | str | None, today: date | None = None) -> bool:
    d = to_date(value)
    if d is None:
        return False
    return d < (today or date.today())
