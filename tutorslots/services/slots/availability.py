# tutorslots/services/slots/availability.py
"""
Available slots of a session group for one viewer.

Read path:
  1. Derived tier (viewer + zone specific)
  2. Base tier (unfiltered tiling)
  3. Generator on miss

Booked intervals are always filtered out here, from the list passed in by
the caller (the session group document), even on a derived-tier hit.
"""

from datetime import date
from typing import Iterable, Optional

from redis import Redis

from ...errors import ConfigurationError
from .calculator import filter_booked, generate_candidate_slots, localize
from .config import SlotsConfig, get_slots_config
from .domain import BookedSlot, CandidateSlot, DayWindow, LocalizedSlot
from .redis_store import SlotsRedisStore


def calculate_session_availability(
    *,
    teacher_id: int,
    session_id: int,
    target_date: date,
    window: DayWindow,
    slot_duration: int,
    break_duration: int,
    teacher_tz: str,
    booked: Iterable[BookedSlot],
    viewer_id: Optional[int] = None,
    display_tz: Optional[str] = None,
    redis: Optional[Redis] = None,
    config: SlotsConfig | None = None,
) -> list[LocalizedSlot]:
    """
    Available slots in display_tz (teacher zone by default).

    viewer_id=None skips the derived tier (teacher previews).
    """
    if teacher_id is None or session_id is None:
        raise ConfigurationError("teacher_id and session_id are required")

    config = config or get_slots_config()
    display_tz = display_tz or teacher_tz
    booked = list(booked)
    store = SlotsRedisStore(redis, config) if redis is not None else None

    # Step 1: viewer-specific list
    if store is not None and viewer_id is not None:
        cached = store.get_view_slots(viewer_id, session_id, target_date, window, display_tz)
        if cached is not None:
            return _drop_booked(cached, booked)

    # Step 2: base tiling
    base = _get_base_slots(
        store, teacher_id, session_id, target_date, window,
        slot_duration, break_duration, teacher_tz,
    )

    # Step 3: filter + convert, then remember for this viewer
    slots = localize(filter_booked(base, booked), display_tz)
    if store is not None and viewer_id is not None:
        store.store_view_slots(viewer_id, session_id, target_date, window, display_tz, slots)
    return slots


# ── Base slots (with cache) ─────────────────────────────────────────────


def _get_base_slots(
    store: Optional[SlotsRedisStore],
    teacher_id: int,
    session_id: int,
    target_date: date,
    window: DayWindow,
    slot_duration: int,
    break_duration: int,
    teacher_tz: str,
) -> list[CandidateSlot]:
    """Get the unfiltered tiling, using Redis cache when available."""
    if store is not None:
        cached = store.get_base_slots(teacher_id, session_id, target_date, window)
        if cached is not None:
            return cached

    slots = generate_candidate_slots(
        target_date, window, slot_duration, break_duration, teacher_tz
    )
    if store is not None:
        store.store_base_slots(teacher_id, session_id, target_date, window, slots)
    return slots


def _drop_booked(
    slots: list[LocalizedSlot],
    booked: list[BookedSlot],
) -> list[LocalizedSlot]:
    return [
        slot for slot in slots
        if not any(b.overlaps(slot.start_utc, slot.end_utc) for b in booked)
    ]
