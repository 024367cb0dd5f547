from datetime import date, datetime, timedelta, timezone

import pytest

from tutorslots.errors import ConfigurationError, ValidationError
from tutorslots.services.slots.calculator import (
    calculate_available_slots,
    filter_booked,
    generate_candidate_slots,
    localize,
    wall_clock_to_utc,
)
from tutorslots.services.slots.domain import BookedSlot, CandidateSlot, DayWindow

UTC = timezone.utc


def utc(*args):
    return datetime(*args, tzinfo=UTC)


def test_two_half_hour_slots_in_one_hour():
    window = DayWindow("monday", "09:00", "10:00")

    slots = generate_candidate_slots(date(2024, 3, 4), window, 30, 0, "UTC")

    assert slots == [
        CandidateSlot(utc(2024, 3, 4, 9, 0), utc(2024, 3, 4, 9, 30)),
        CandidateSlot(utc(2024, 3, 4, 9, 30), utc(2024, 3, 4, 10, 0)),
    ]


def test_window_is_anchored_in_teacher_zone():
    window = DayWindow("friday", "09:00", "10:00")

    slots = generate_candidate_slots(date(2024, 3, 1), window, 60, 0, "Asia/Kolkata")

    assert len(slots) == 1
    assert slots[0].start_utc == utc(2024, 3, 1, 3, 30)
    assert slots[0].end_utc == utc(2024, 3, 1, 4, 30)


@pytest.mark.parametrize("duration,brk", [(45, 10), (60, 15), (30, 0), (90, 5)])
def test_tiling_respects_length_step_and_window(duration, brk):
    window = DayWindow("monday", "08:15", "17:40")
    slots = generate_candidate_slots(date(2024, 3, 4), window, duration, brk, "Europe/Berlin")

    start = wall_clock_to_utc(date(2024, 3, 4), 8 * 60 + 15, "Europe/Berlin")
    end = wall_clock_to_utc(date(2024, 3, 4), 17 * 60 + 40, "Europe/Berlin")

    assert slots[0].start_utc == start
    for slot in slots:
        assert slot.end_utc - slot.start_utc == timedelta(minutes=duration)
        assert slot.end_utc <= end
    for prev, cur in zip(slots, slots[1:]):
        assert cur.start_utc - prev.start_utc == timedelta(minutes=duration + brk)
        assert not cur.overlaps(prev.start_utc, prev.end_utc)
    # no further slot would fit
    assert slots[-1].start_utc + timedelta(minutes=duration + brk + duration) > end


def test_short_tail_is_dropped():
    window = DayWindow("monday", "09:00", "11:00")

    slots = generate_candidate_slots(date(2024, 3, 4), window, 50, 10, "UTC")

    assert [s.start_utc.hour * 60 + s.start_utc.minute for s in slots] == [540, 600]


def test_window_shorter_than_duration_yields_nothing():
    window = DayWindow("monday", "09:00", "09:20")

    assert generate_candidate_slots(date(2024, 3, 4), window, 30, 0, "UTC") == []


def test_dst_gap_keeps_slot_lengths():
    # Clocks jump 02:00 -> 03:00 in Berlin on 2024-03-31
    window = DayWindow("sunday", "00:00", "06:00")
    slots = generate_candidate_slots(date(2024, 3, 31), window, 60, 0, "Europe/Berlin")

    assert all(s.end_utc - s.start_utc == timedelta(hours=1) for s in slots)
    # Six wall-clock hours are only five real ones
    assert len(slots) == 5


@pytest.mark.parametrize(
    "kwargs",
    [
        {"target_date": None},
        {"window": None},
        {"teacher_tz": ""},
        {"slot_duration": 0},
        {"break_duration": -5},
    ],
)
def test_missing_or_invalid_inputs_are_configuration_errors(kwargs):
    args = {
        "target_date": date(2024, 3, 4),
        "window": DayWindow("monday", "09:00", "10:00"),
        "slot_duration": 30,
        "break_duration": 0,
        "teacher_tz": "UTC",
    }
    args.update(kwargs)

    with pytest.raises(ConfigurationError):
        generate_candidate_slots(**args)


def test_unknown_zone_is_rejected():
    with pytest.raises(ValidationError):
        generate_candidate_slots(
            date(2024, 3, 4), DayWindow("monday", "09:00", "10:00"), 30, 0, "Mars/Base"
        )


def test_filter_booked_drops_intersecting_candidates_only():
    candidates = generate_candidate_slots(
        date(2024, 3, 4), DayWindow("monday", "10:00", "12:00"), 30, 0, "UTC"
    )
    booked = [BookedSlot(utc(2024, 3, 4, 10, 15), utc(2024, 3, 4, 10, 45), booked_by=1)]

    remaining = filter_booked(candidates, booked)

    assert [s.start_utc for s in remaining] == [utc(2024, 3, 4, 11, 0), utc(2024, 3, 4, 11, 30)]


def test_touching_intervals_do_not_overlap():
    slot = CandidateSlot(utc(2024, 3, 4, 10, 0), utc(2024, 3, 4, 10, 30))

    assert not slot.overlaps(utc(2024, 3, 4, 10, 30), utc(2024, 3, 4, 11, 0))
    assert slot.overlaps(utc(2024, 3, 4, 10, 29), utc(2024, 3, 4, 11, 0))


def test_localize_keeps_utc_and_converts_wall_clock():
    candidates = [CandidateSlot(utc(2024, 3, 1, 3, 30), utc(2024, 3, 1, 4, 30))]

    [slot] = localize(candidates, "America/New_York")

    assert slot.start_utc == candidates[0].start_utc
    assert slot.start_local.strftime("%Y-%m-%d %H:%M") == "2024-02-29 22:30"
    assert slot.timezone == "America/New_York"
    assert slot.start_local.astimezone(UTC) == slot.start_utc


def test_calculate_available_slots_defaults_to_teacher_zone():
    booked = [BookedSlot(utc(2024, 3, 4, 3, 30), utc(2024, 3, 4, 4, 0), booked_by=3)]

    slots = calculate_available_slots(
        date(2024, 3, 4),
        DayWindow("monday", "09:00", "10:00"),
        30,
        0,
        "Asia/Kolkata",
        booked=booked,
    )

    assert len(slots) == 1
    assert slots[0].start_local.strftime("%H:%M") == "09:30"
    assert slots[0].timezone == "Asia/Kolkata"
