# tutorslots/services/slots/invalidator.py
"""
Cache invalidation for session group slots.

Triggers:
✓ Slot booked by a student
✓ Slot assigned or cancelled by the teacher
✓ Session group deleted

Every trigger drops both tiers for the whole session group: a booking
changes what every viewer of a common group may pick, in every zone.
"""

import logging

from redis import Redis

from .redis_store import SlotsRedisStore

logger = logging.getLogger(__name__)


def invalidate_session_cache(
    redis: Redis,
    teacher_id: int,
    session_id: int,
    student_id: int | None = None,
) -> int:
    """
    Invalidate cached slot lists for a session group.

    Args:
        redis: Redis client
        teacher_id: Owner of the session group
        session_id: Session group ID
        student_id: Student whose booking triggered this (for logging)

    Returns:
        Number of deleted cache keys
    """
    store = SlotsRedisStore(redis)
    deleted = 0
    for pattern in store.session_patterns(teacher_id, session_id):
        deleted += store.delete_by_pattern(pattern)

    logger.info(
        "slots cache invalidated: teacher=%s session=%s student=%s keys=%s",
        teacher_id, session_id, student_id, deleted,
    )
    return deleted
