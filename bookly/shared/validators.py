"""Shared validation utilities"""

import re
from typing import Optional

HHMM_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def validate_hhmm(value: Optional[str]) -> Optional[str]:
    """
    Validate a wall-clock time and normalize it to zero-padded HH:MM.

    Args:
        value: Time string such as "9:00" or "14:30"

    Returns:
        Normalized "HH:MM" string

    Raises:
        ValueError: If the time is not a valid 24-hour HH:MM value
    """
    if value is None:
        return value

    match = HHMM_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Valid time is required (HH:MM format)")

    hours, minutes = match.groups()
    return f"{int(hours):02d}:{minutes}"


def validate_weekly_schedule(schedule: Optional[dict]) -> Optional[dict]:
    """
    Validate a weekly availability schedule.

    Expected shape: {"monday": {"available": true, "slots": [{"start": "09:00", "end": "17:00"}]}, ...}
    Unknown weekday keys and overlapping slots within a day are rejected;
    times are normalized to HH:MM and slots sorted by start.
    """
    if schedule is None:
        return schedule

    normalized = {}
    for day, config in schedule.items():
        key = day.lower()
        if key not in WEEKDAYS:
            raise ValueError(f"Unknown weekday in schedule: {day}")

        config = config or {}
        slots = []
        for slot in config.get("slots", []):
            start = validate_hhmm(slot.get("start"))
            end = validate_hhmm(slot.get("end"))
            if not start or not end:
                raise ValueError(f"Schedule slot for {key} needs both start and end")
            if start >= end:
                raise ValueError(f"Schedule slot for {key} must end after it starts")
            slots.append({"start": start, "end": end})

        slots.sort(key=lambda s: s["start"])
        for previous, current in zip(slots, slots[1:]):
            if current["start"] < previous["end"]:
                raise ValueError(
                    f"Schedule slots for {key} overlap: "
                    f"{previous['start']}-{previous['end']} and {current['start']}-{current['end']}"
                )

        normalized[key] = {"available": bool(config.get("available", True)), "slots": slots}

    return normalized
