"""Wall-clock time parsing and arithmetic on HH:MM strings"""

from ...shared.errors import InvalidConfiguration
from ...shared.validators import HHMM_PATTERN

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight"""
    match = HHMM_PATTERN.match((value or "").strip())
    if not match:
        raise InvalidConfiguration(f"Invalid time format: {value!r} (expected HH:MM)")
    hours, minutes = match.groups()
    return int(hours) * 60 + int(minutes)


def minutes_to_hhmm(total_minutes: int) -> str:
    if total_minutes < 0 or total_minutes >= MINUTES_PER_DAY:
        raise InvalidConfiguration(f"Time out of range: {total_minutes} minutes")
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def add_minutes(hhmm: str, minutes: int) -> str:
    """Add minutes to a wall-clock time; the result must stay within the same day"""
    return minutes_to_hhmm(parse_hhmm(hhmm) + minutes)


def format_display(hhmm: str) -> str:
    """12-hour label, e.g. "13:30" -> "1:30 PM" """
    total = parse_hhmm(hhmm)
    hours, minutes = divmod(total, 60)
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{minutes:02d} {period}"


def intervals_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open overlap: [start_a, end_a) intersects [start_b, end_b)"""
    return parse_hhmm(start_a) < parse_hhmm(end_b) and parse_hhmm(start_b) < parse_hhmm(end_a)
