"""
Slot availability calculation.

Pure functions: no database access and no hidden state. Callers pass in the
service duration, the working window and the provider's booked intervals for
the day (see ``BookingRepository.get_provider_intervals``) and get back a
fresh, ordered list of slots each call.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...config import DEFAULT_WORKING_HOURS
from ...shared.errors import InvalidConfiguration
from .time_calculator import format_display, intervals_overlap, minutes_to_hhmm, parse_hhmm


class TimeSlot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_time: str = Field(serialization_alias="startTime")
    end_time: str = Field(serialization_alias="endTime")
    display_label: str = Field(serialization_alias="displayLabel")
    available: bool = True


class BookedInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str
    end: str


class WorkingWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str
    end: str


def generate_slots(
    duration: int,
    working_hours_start: str = DEFAULT_WORKING_HOURS["start"],
    working_hours_end: str = DEFAULT_WORKING_HOURS["end"],
) -> list[TimeSlot]:
    """
    Generate back-to-back slots of ``duration`` minutes covering the working window.

    The first slot starts at ``working_hours_start``; a slot whose end would pass
    ``working_hours_end`` is dropped together with everything after it.

    Raises:
        InvalidConfiguration: if duration is not positive or a time is malformed
    """
    if duration is None or duration <= 0:
        raise InvalidConfiguration(f"Service duration must be positive, got {duration}")

    window_start = parse_hhmm(working_hours_start)
    window_end = parse_hhmm(working_hours_end)

    slots = []
    current = window_start
    while current + duration <= window_end:
        start_time = minutes_to_hhmm(current)
        slots.append(
            TimeSlot(
                start_time=start_time,
                end_time=minutes_to_hhmm(current + duration),
                display_label=format_display(start_time),
            )
        )
        current += duration
    return slots


def filter_past_slots(slots: list[TimeSlot], target_date: date, now: datetime) -> list[TimeSlot]:
    """
    Drop slots that have already started.

    Only today's slots are filtered by time of day; future dates are returned
    untouched and past dates have no bookable slots at all.
    """
    today = now.date()
    if target_date > today:
        return list(slots)
    if target_date < today:
        return []

    current_minutes = now.hour * 60 + now.minute
    return [slot for slot in slots if parse_hhmm(slot.start_time) > current_minutes]


def mark_unavailable_slots(slots: list[TimeSlot], booked: Iterable[BookedInterval]) -> list[TimeSlot]:
    """Flag slots overlapping any booked interval; overlapping slots stay in the list"""
    booked = list(booked)
    return [
        slot.model_copy(
            update={
                "available": not any(
                    intervals_overlap(slot.start_time, slot.end_time, b.start, b.end) for b in booked
                )
            }
        )
        for slot in slots
    ]


def merge_windows(windows: Iterable[WorkingWindow]) -> list[WorkingWindow]:
    """Sort windows by start and fold overlapping ones together; touching windows stay apart"""
    merged: list[WorkingWindow] = []
    for window in sorted(windows, key=lambda w: parse_hhmm(w.start)):
        if merged and parse_hhmm(window.start) < parse_hhmm(merged[-1].end):
            last = merged[-1]
            if parse_hhmm(window.end) > parse_hhmm(last.end):
                merged[-1] = WorkingWindow(start=last.start, end=window.end)
            continue
        merged.append(window)
    return merged


def resolve_working_windows(availability: Optional[dict], target_date: date) -> list[WorkingWindow]:
    """
    Working windows for a date from a service's weekly schedule.

    Falls back to the default working hours when the service has no schedule
    for that weekday; a weekday marked unavailable yields no windows.
    """
    default = [WorkingWindow(**DEFAULT_WORKING_HOURS)]
    if not availability:
        return default

    weekday = target_date.strftime("%A").lower()
    day_config = availability.get(weekday)
    if day_config is None:
        return default
    if not day_config.get("available", True):
        return []

    windows = [WorkingWindow(start=s["start"], end=s["end"]) for s in day_config.get("slots") or []]
    return merge_windows(windows) or default


def compute_availability(
    duration: int,
    target_date: date,
    booked: Iterable[BookedInterval],
    now: datetime,
    windows: Optional[list[WorkingWindow]] = None,
) -> list[TimeSlot]:
    """Generate, filter and mark slots for one provider on one date"""
    if windows is None:
        windows = [WorkingWindow(**DEFAULT_WORKING_HOURS)]

    slots: list[TimeSlot] = []
    for window in merge_windows(windows):
        slots.extend(generate_slots(duration, window.start, window.end))

    slots = filter_past_slots(slots, target_date, now)
    return mark_unavailable_slots(slots, booked)
