from datetime import date, datetime

import pytest

from bookly.domain.scheduling.availability_service import (
    BookedInterval,
    WorkingWindow,
    compute_availability,
    filter_past_slots,
    generate_slots,
    mark_unavailable_slots,
    merge_windows,
    resolve_working_windows,
)
from bookly.domain.scheduling.time_calculator import add_minutes, format_display, parse_hhmm
from bookly.shared.errors import InvalidConfiguration

TARGET = date(2030, 6, 10)  # a Monday


def test_full_day_of_hour_slots():
    slots = generate_slots(60, "09:00", "17:00")

    assert len(slots) == 8
    assert [s.start_time for s in slots] == [f"{h:02d}:00" for h in range(9, 17)]
    assert slots[-1].end_time == "17:00"
    assert all(s.available for s in slots)


def test_slots_are_contiguous_and_inside_window():
    slots = generate_slots(45, "09:00", "12:00")

    assert len(slots) == 4
    for previous, current in zip(slots, slots[1:]):
        assert previous.end_time == current.start_time
    assert parse_hhmm(slots[0].start_time) >= parse_hhmm("09:00")
    assert parse_hhmm(slots[-1].end_time) <= parse_hhmm("12:00")


def test_partial_trailing_slot_is_dropped():
    slots = generate_slots(90, "09:00", "12:00")

    assert [s.start_time for s in slots] == ["09:00", "10:30"]


def test_empty_or_inverted_window_gives_no_slots():
    assert generate_slots(60, "17:00", "09:00") == []
    assert generate_slots(60, "09:00", "09:00") == []
    assert generate_slots(120, "09:00", "10:00") == []


@pytest.mark.parametrize("duration", [0, -30])
def test_non_positive_duration_is_rejected(duration):
    with pytest.raises(InvalidConfiguration):
        generate_slots(duration)


def test_display_labels_are_twelve_hour():
    assert format_display("09:00") == "9:00 AM"
    assert format_display("13:30") == "1:30 PM"
    assert format_display("00:15") == "12:15 AM"
    assert format_display("12:00") == "12:00 PM"


def test_add_minutes_past_midnight_is_rejected():
    assert add_minutes("22:30", 60) == "23:30"
    with pytest.raises(InvalidConfiguration):
        add_minutes("23:30", 60)


def test_booked_interval_marks_overlapping_slots_only():
    slots = generate_slots(60, "09:00", "17:00")
    marked = mark_unavailable_slots(slots, [BookedInterval(start="10:00", end="11:00")])

    assert len(marked) == len(slots)
    unavailable = [s.start_time for s in marked if not s.available]
    assert unavailable == ["10:00"]
    # Inputs are left untouched
    assert all(s.available for s in slots)


def test_touching_intervals_do_not_overlap():
    slots = generate_slots(30, "09:00", "11:00")
    marked = mark_unavailable_slots(slots, [BookedInterval(start="09:30", end="10:00")])

    assert [s.available for s in marked] == [True, False, True, True]


def test_longer_booking_blocks_every_slot_it_covers():
    slots = generate_slots(30, "09:00", "12:00")
    marked = mark_unavailable_slots(slots, [BookedInterval(start="09:45", end="11:15")])

    assert [s.start_time for s in marked if not s.available] == ["09:30", "10:00", "10:30", "11:00"]


def test_past_slots_filtered_only_for_today():
    slots = generate_slots(60, "09:00", "17:00")
    now = datetime(2030, 6, 10, 11, 30)

    today = filter_past_slots(slots, date(2030, 6, 10), now)
    assert [s.start_time for s in today] == ["12:00", "13:00", "14:00", "15:00", "16:00"]

    tomorrow = filter_past_slots(slots, date(2030, 6, 11), now)
    assert len(tomorrow) == 8

    yesterday = filter_past_slots(slots, date(2030, 6, 9), now)
    assert yesterday == []


def test_slot_starting_exactly_now_is_filtered():
    slots = generate_slots(60, "09:00", "12:00")
    now = datetime(2030, 6, 10, 10, 0)

    assert [s.start_time for s in filter_past_slots(slots, date(2030, 6, 10), now)] == ["11:00"]


def test_weekly_schedule_windows():
    availability = {
        "monday": {"available": True, "slots": [{"start": "13:00", "end": "15:00"}, {"start": "08:00", "end": "10:00"}]},
        "sunday": {"available": False, "slots": []},
    }

    windows = resolve_working_windows(availability, TARGET)
    assert windows == [WorkingWindow(start="08:00", end="10:00"), WorkingWindow(start="13:00", end="15:00")]

    assert resolve_working_windows(availability, date(2030, 6, 16)) == []
    # No entry for Tuesday falls back to the default working day
    assert resolve_working_windows(availability, date(2030, 6, 11)) == [WorkingWindow(start="09:00", end="17:00")]
    assert resolve_working_windows(None, TARGET) == [WorkingWindow(start="09:00", end="17:00")]


def test_overlapping_schedule_windows_are_merged():
    availability = {
        "monday": {"available": True, "slots": [{"start": "09:00", "end": "12:00"}, {"start": "11:00", "end": "13:00"}]},
    }

    windows = resolve_working_windows(availability, TARGET)
    assert windows == [WorkingWindow(start="09:00", end="13:00")]

    slots = compute_availability(60, TARGET, [], datetime(2030, 6, 1, 8, 0), windows)
    starts = [s.start_time for s in slots]
    assert starts == ["09:00", "10:00", "11:00", "12:00"]
    assert len(starts) == len(set(starts))


def test_merge_keeps_touching_windows_apart():
    windows = [
        WorkingWindow(start="10:30", end="12:00"),
        WorkingWindow(start="09:00", end="10:30"),
        WorkingWindow(start="09:30", end="10:00"),
    ]

    assert merge_windows(windows) == [
        WorkingWindow(start="09:00", end="10:30"),
        WorkingWindow(start="10:30", end="12:00"),
    ]


def test_compute_availability_merges_windows_passed_directly():
    windows = [WorkingWindow(start="09:00", end="12:00"), WorkingWindow(start="11:00", end="13:00")]

    slots = compute_availability(60, TARGET, [], datetime(2030, 6, 1, 8, 0), windows)

    assert [s.start_time for s in slots] == ["09:00", "10:00", "11:00", "12:00"]


def test_compute_availability_composes_all_steps():
    now = datetime(2030, 6, 10, 9, 30)
    booked = [BookedInterval(start="13:00", end="14:00")]

    slots = compute_availability(60, TARGET, booked, now)

    assert [s.start_time for s in slots] == ["10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"]
    assert [s.start_time for s in slots if not s.available] == ["13:00"]


def test_compute_availability_is_stateless():
    now = datetime(2030, 6, 1, 8, 0)
    first = compute_availability(60, TARGET, [BookedInterval(start="09:00", end="10:00")], now)
    second = compute_availability(60, TARGET, [], now)

    assert not first[0].available
    assert second[0].available
