# tutorslots/services/slots/config.py
"""
Slot rules configuration.
"""

import re
from dataclasses import dataclass
from functools import lru_cache

from ...errors import ValidationError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class SlotsConfig:
    """
    Configuration for slot generation and booking.

    Attributes:
        min_slot_minutes / max_slot_minutes: clamp bounds for session duration
        min_break_minutes / max_break_minutes: clamp bounds for break duration
        horizon_days: how far ahead a session group may be published
        cache_ttl_seconds: TTL for both derivation cache tiers
        lock_ttl_seconds: TTL of a per-slot booking lock
    """
    min_slot_minutes: int = 15
    max_slot_minutes: int = 240
    min_break_minutes: int = 0
    max_break_minutes: int = 60
    horizon_days: int = 365
    cache_ttl_seconds: int = 60 * 60 * 12
    lock_ttl_seconds: int = 10

    def __post_init__(self):
        """Validate configuration."""
        if self.min_slot_minutes <= 0 or self.min_slot_minutes > self.max_slot_minutes:
            raise ValueError(
                f"invalid slot bounds {self.min_slot_minutes}..{self.max_slot_minutes}"
            )
        if self.min_break_minutes < 0 or self.min_break_minutes > self.max_break_minutes:
            raise ValueError(
                f"invalid break bounds {self.min_break_minutes}..{self.max_break_minutes}"
            )
        if self.lock_ttl_seconds <= 0:
            raise ValueError("lock_ttl_seconds must be positive")

    def clamp_slot_duration(self, minutes: int) -> int:
        return max(self.min_slot_minutes, min(self.max_slot_minutes, minutes))

    def clamp_break_duration(self, minutes: int) -> int:
        return max(self.min_break_minutes, min(self.max_break_minutes, minutes))


@lru_cache
def get_slots_config() -> SlotsConfig:
    """Slot configuration built from the process settings (singleton)."""
    from ...config import get_settings

    settings = get_settings()
    return SlotsConfig(
        cache_ttl_seconds=settings.slot_cache_ttl_seconds,
        lock_ttl_seconds=settings.booking_lock_ttl_seconds,
    )


def time_str_to_minutes(value: str) -> int:
    """Parse a 24-hour "HH:MM" string into minutes after midnight."""
    if not value:
        raise ValidationError("time is required")
    lower = value.lower()
    if "am" in lower or "pm" in lower:
        raise ValidationError("time must be in 24-hour format (HH:MM)", details={"value": value})
    match = _TIME_RE.match(value.strip())
    if not match:
        raise ValidationError("time must be in HH:MM format", details={"value": value})
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValidationError("invalid time value", details={"value": value})
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
