"""Display strings shared by the request views and confirmation dialogs."""

from datetime import date, datetime


def format_display_date(value: date | None) -> str:
    """``date(2025, 12, 15)`` -> ``"Dec 15, 2025"``."""
    if value is None:
        return ""
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_date_range(start: date | None, end: date | None) -> str:
    if start is None or end is None:
        return ""
    if start == end:
        return format_display_date(start)
    return f"{format_display_date(start)} - {format_display_date(end)}"


def format_days(total_days: float) -> str:
    if total_days == 0.5:
        return "0.5 day (Half Day)"
    if total_days == 1:
        return "1 day"
    return f"{total_days:g} days"


def relative_time(timestamp: datetime | None, now: datetime | None = None) -> str:
    """``"3 hours ago"`` style label, falling back to a full date after a week."""
    if timestamp is None:
        return ""
    now = now or datetime.now(timestamp.tzinfo)
    seconds = (now - timestamp).total_seconds()

    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if days < 7:
        return f"{days} day{'s' if days != 1 else ''} ago"
    return format_display_date(timestamp.date())
