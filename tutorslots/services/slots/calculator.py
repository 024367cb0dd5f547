# tutorslots/services/slots/calculator.py
"""
Slot generation.

Produces the tiling of one availability window:
  [start, start+duration), then every duration+break minutes,
  dropping any tail shorter than duration.

Contains:
✓ window start/end anchored in the teacher's zone
✓ session duration and break
✓ UTC conversion (canonical form)

Does NOT contain:
✗ Bookings (filter_booked, applied at read time)
✗ Display zone (localize, applied per viewer)
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from ...errors import ConfigurationError
from .domain import (
    BookedSlot,
    CandidateSlot,
    DayWindow,
    LocalizedSlot,
    load_zone,
    to_utc,
)


def generate_candidate_slots(
    target_date: Optional[date],
    window: Optional[DayWindow],
    slot_duration: int,
    break_duration: int,
    teacher_tz: Optional[str],
) -> list[CandidateSlot]:
    """
    Tile the window on target_date.

    The walk happens in absolute time so a DST shift inside the window
    never produces slots of the wrong length.

    Returns:
        Candidate slots as UTC pairs, in start order.
    """
    if target_date is None:
        raise ConfigurationError("date is required for slot generation")
    if window is None:
        raise ConfigurationError("availability window is required for slot generation")
    if not teacher_tz:
        raise ConfigurationError("teacher time zone is required for slot generation")
    if slot_duration <= 0:
        raise ConfigurationError(f"slot duration must be positive, got {slot_duration}")
    if break_duration < 0:
        raise ConfigurationError(f"break duration must not be negative, got {break_duration}")

    zone = load_zone(teacher_tz)
    cursor = _anchor(target_date, window.start_minutes, zone)
    limit = _anchor(target_date, window.end_minutes, zone)

    length = timedelta(minutes=slot_duration)
    step = timedelta(minutes=slot_duration + break_duration)

    slots: list[CandidateSlot] = []
    while cursor + length <= limit:
        slots.append(CandidateSlot(start_utc=cursor, end_utc=cursor + length))
        cursor += step

    return slots


def filter_booked(
    candidates: Iterable[CandidateSlot],
    booked: Iterable[BookedSlot],
) -> list[CandidateSlot]:
    """Drop every candidate whose interval intersects a booked one."""
    booked = list(booked)
    return [
        slot for slot in candidates
        if not any(b.overlaps(slot.start_utc, slot.end_utc) for b in booked)
    ]


def localize(
    candidates: Iterable[CandidateSlot],
    display_tz: str,
) -> list[LocalizedSlot]:
    """Attach the wall-clock pair in display_tz, keeping the UTC pair."""
    zone = load_zone(display_tz)
    return [
        LocalizedSlot(
            start_utc=slot.start_utc,
            end_utc=slot.end_utc,
            start_local=slot.start_utc.astimezone(zone),
            end_local=slot.end_utc.astimezone(zone),
            timezone=display_tz,
        )
        for slot in candidates
    ]


def calculate_available_slots(
    target_date: date,
    window: DayWindow,
    slot_duration: int,
    break_duration: int,
    teacher_tz: str,
    booked: Iterable[BookedSlot] = (),
    display_tz: Optional[str] = None,
) -> list[LocalizedSlot]:
    """Generate, filter and localize in one go (no cache)."""
    candidates = generate_candidate_slots(
        target_date, window, slot_duration, break_duration, teacher_tz
    )
    return localize(filter_booked(candidates, booked), display_tz or teacher_tz)


def wall_clock_to_utc(target_date: date, minutes: int, tz_name: str) -> datetime:
    """Convert date@HH:MM in tz_name to a UTC instant."""
    return _anchor(target_date, minutes, load_zone(tz_name))


# ── Helpers ──────────────────────────────────────────────────────────────


def _anchor(target_date: date, minutes: int, zone) -> datetime:
    """date@minutes in zone, as UTC."""
    local = datetime.combine(target_date, time(minutes // 60, minutes % 60), tzinfo=zone)
    return to_utc(local)
