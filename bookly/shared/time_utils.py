"""Time helpers shared by the booking and scheduling domains"""

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def combine_date_and_time(day: date, hhmm: str) -> datetime:
    """Build the naive datetime for a calendar date and an HH:MM wall-clock time"""
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime.combine(day, time(hours, minutes))
