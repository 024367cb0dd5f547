# tutorslots/services/slots/__init__.py
"""
Slots module.

Base tier: unfiltered tiling per session group (cached in Redis)
Derived tier: booking-filtered, zone-converted list per viewer (cached in Redis)
Lock: per-slot SET NX mutex guarding bookings
"""

from .config import SlotsConfig, get_slots_config
from .calculator import (
    calculate_available_slots,
    filter_booked,
    generate_candidate_slots,
    localize,
)
from .redis_store import SlotsRedisStore
from .invalidator import invalidate_session_cache
from .availability import calculate_session_availability
from .lock import LockHandle, SlotLock

__all__ = [
    "SlotsConfig",
    "get_slots_config",
    "calculate_available_slots",
    "filter_booked",
    "generate_candidate_slots",
    "localize",
    "SlotsRedisStore",
    "invalidate_session_cache",
    "calculate_session_availability",
    "LockHandle",
    "SlotLock",
]
