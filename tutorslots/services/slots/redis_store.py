# tutorslots/services/slots/redis_store.py
"""
Redis storage for derived slot lists.

Base tier:
  slots:base:{teacher_id}:session:{session_id}:{date}:{start}-{end}
  Value: JSON list of {"start_utc", "end_utc"}, the unfiltered tiling.

Derived tier:
  slots:view:{student_id}:session:{session_id}:{date}:{start}-{end}:{tz}
  Value: JSON list of {"start_utc", "end_utc", "timezone"} for one viewer.

The store is best-effort: a failed read is a miss, a failed write or
delete is logged and dropped. Nothing here is consulted for overlap
decisions.
"""

import json
import logging
from datetime import date
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from .config import SlotsConfig, get_slots_config
from .domain import CandidateSlot, DayWindow, LocalizedSlot

logger = logging.getLogger(__name__)


class SlotsRedisStore:
    """Redis wrapper for both derivation cache tiers."""

    BASE_PREFIX = "slots:base"
    VIEW_PREFIX = "slots:view"

    def __init__(self, redis: Redis, config: SlotsConfig | None = None):
        self.redis = redis
        self.config = config or get_slots_config()

    # ── Keys ─────────────────────────────────────────────────────────────

    def base_key(
        self,
        teacher_id: int,
        session_id: int,
        dt: date,
        window: DayWindow,
    ) -> str:
        return (
            f"{self.BASE_PREFIX}:{teacher_id}:session:{session_id}:"
            f"{dt.isoformat()}:{window.start_time}-{window.end_time}"
        )

    def view_key(
        self,
        student_id: int,
        session_id: int,
        dt: date,
        window: DayWindow,
        display_tz: str,
    ) -> str:
        return (
            f"{self.VIEW_PREFIX}:{student_id}:session:{session_id}:"
            f"{dt.isoformat()}:{window.start_time}-{window.end_time}:{display_tz}"
        )

    def session_patterns(self, teacher_id: int, session_id: int) -> list[str]:
        """Glob patterns covering every cached entry of a session group."""
        return [
            f"{self.BASE_PREFIX}:{teacher_id}:session:{session_id}:*",
            f"{self.VIEW_PREFIX}:*:session:{session_id}:*",
        ]

    # ── Read ─────────────────────────────────────────────────────────────

    def get_base_slots(
        self,
        teacher_id: int,
        session_id: int,
        dt: date,
        window: DayWindow,
    ) -> Optional[list[CandidateSlot]]:
        """Cached tiling, or None on miss."""
        raw = self._get(self.base_key(teacher_id, session_id, dt, window))
        if raw is None:
            return None
        return [CandidateSlot.from_document(doc) for doc in raw]

    def get_view_slots(
        self,
        student_id: int,
        session_id: int,
        dt: date,
        window: DayWindow,
        display_tz: str,
    ) -> Optional[list[LocalizedSlot]]:
        """Cached viewer list, or None on miss."""
        raw = self._get(self.view_key(student_id, session_id, dt, window, display_tz))
        if raw is None:
            return None
        return [LocalizedSlot.from_document(doc) for doc in raw]

    # ── Write ────────────────────────────────────────────────────────────

    def store_base_slots(
        self,
        teacher_id: int,
        session_id: int,
        dt: date,
        window: DayWindow,
        slots: list[CandidateSlot],
    ) -> None:
        self._set(
            self.base_key(teacher_id, session_id, dt, window),
            [slot.to_document() for slot in slots],
        )

    def store_view_slots(
        self,
        student_id: int,
        session_id: int,
        dt: date,
        window: DayWindow,
        display_tz: str,
        slots: list[LocalizedSlot],
    ) -> None:
        self._set(
            self.view_key(student_id, session_id, dt, window, display_tz),
            [slot.to_document() for slot in slots],
        )

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_by_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Returns:
            Number of deleted keys (0 when Redis is unreachable).
        """
        try:
            keys = list(self.redis.scan_iter(match=pattern, count=500))
            if not keys:
                return 0
            return self.redis.delete(*keys)
        except RedisError as exc:
            logger.warning("slots cache delete failed for %s: %s", pattern, exc)
            return 0

    # ── Helpers ──────────────────────────────────────────────────────────

    def _get(self, key: str) -> Optional[list[dict]]:
        try:
            raw = self.redis.get(key)
        except RedisError as exc:
            logger.warning("slots cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("slots cache entry %s is not valid JSON, ignoring", key)
            return None
        return data if isinstance(data, list) else None

    def _set(self, key: str, value: list[dict]) -> None:
        try:
            self.redis.set(key, json.dumps(value), ex=self.config.cache_ttl_seconds)
        except RedisError as exc:
            logger.warning("slots cache write failed for %s: %s", key, exc)
