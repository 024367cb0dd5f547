# tutorslots/services/booking.py
"""
Booking coordinator.

One reservation, start to finish:
1. Validate the session group, the actor and the interval
2. Take the per-slot lock (no waiting; busy → ConflictError)
3. Re-read the group and re-check overlap against its booked list
4. Append the booked slot and save the group
5. Drop cached slot lists of the group
6. Release the lock (always)

Overlap decisions only ever use the session group document, never the cache.
Cancelling a teacher-assigned slot shrinks the booked list and needs no lock.
"""

import logging
from datetime import date, datetime
from typing import Optional

from redis import Redis
from sqlalchemy.orm import Session

from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..models.tables import SessionGroups as DBSessionGroups, Users as DBUsers
from .slots.calculator import generate_candidate_slots, wall_clock_to_utc
from .slots.config import SlotsConfig, get_slots_config, time_str_to_minutes
from .slots.domain import BookedSlot, CandidateSlot, DayWindow, booked_slots_of, isoformat_utc, to_utc
from .slots.invalidator import invalidate_session_cache
from .slots.lock import SlotLock
from .stores import AvailabilityStore, SessionGroupStore, UserDirectory

logger = logging.getLogger(__name__)


class BookingCoordinator:
    """Serializes reservations per (session group, slot start)."""

    def __init__(
        self,
        db: Session,
        redis: Redis,
        default_timezone: str,
        config: SlotsConfig | None = None,
    ):
        self.redis = redis
        self.config = config or get_slots_config()
        self.groups = SessionGroupStore(db)
        self.availability = AvailabilityStore(db)
        self.users = UserDirectory(db, default_timezone)
        self.lock = SlotLock(redis, self.config)

    # ── Student self-service ─────────────────────────────────────────────

    def book_slot(
        self,
        student_id: int,
        session_id: int,
        start_utc: datetime,
        end_utc: datetime,
    ) -> BookedSlot:
        student = self._get_student(student_id)
        group = self._get_group(session_id)

        if group.teacher_id != student.teacher_id:
            raise AuthorizationError("You are not allowed to book slots in this session")
        self._check_restriction(group, student.id)

        start_utc, end_utc = to_utc(start_utc), to_utc(end_utc)
        if end_utc <= start_utc:
            raise ValidationError("endTime must be after startTime")

        window = self._window_for(group)
        candidates = generate_candidate_slots(
            group.date,
            window,
            group.slot_duration,
            group.break_duration,
            self._teacher_timezone(group.teacher_id),
        )
        if CandidateSlot(start_utc, end_utc) not in candidates:
            raise ValidationError(
                "Invalid slot for this session",
                details={
                    "start_time": isoformat_utc(start_utc),
                    "end_time": isoformat_utc(end_utc),
                },
            )

        return self._reserve(group, start_utc, end_utc, booked_by=student.id, by_teacher=False)

    # ── Teacher actions ──────────────────────────────────────────────────

    def assign_slot(
        self,
        teacher_id: int,
        session_id: int,
        student_id: int,
        target_date: date,
        start_time: str,
        end_time: str,
    ) -> BookedSlot:
        """Book a wall-clock interval (teacher zone) on a student's behalf."""
        group = self._get_owned_group(teacher_id, session_id)

        student = self.users.get(student_id)
        if student is None or student.role != "student":
            raise NotFoundError("Student not found", details={"student_id": student_id})
        if student.teacher_id != teacher_id:
            raise AuthorizationError("Invalid student for this teacher")
        self._check_restriction(group, student.id)

        start_utc, end_utc = self._teacher_interval(group, target_date, start_time, end_time)

        window = self._window_for(group)
        start_min, end_min = time_str_to_minutes(start_time), time_str_to_minutes(end_time)
        if start_min < window.start_minutes or end_min > window.end_minutes:
            raise ValidationError(
                "Slot is outside the teacher's availability window",
                details={"window": f"{window.start_time}-{window.end_time}"},
            )

        return self._reserve(group, start_utc, end_utc, booked_by=student.id, by_teacher=True)

    def cancel_assigned_slot(
        self,
        teacher_id: int,
        session_id: int,
        target_date: date,
        start_time: str,
        end_time: str,
    ) -> BookedSlot:
        """Remove a teacher-assigned slot; student self-bookings are immutable."""
        group = self._get_owned_group(teacher_id, session_id)
        start_utc, end_utc = self._teacher_interval(group, target_date, start_time, end_time)

        booked = booked_slots_of(group)
        match: Optional[BookedSlot] = next(
            (slot for slot in booked if slot.matches(start_utc, end_utc)), None
        )
        if match is None:
            raise NotFoundError(
                "Booked slot not found",
                details={"start_time": isoformat_utc(start_utc), "end_time": isoformat_utc(end_utc)},
            )
        if not match.booked_by_teacher:
            raise AuthorizationError("Slots booked by a student cannot be cancelled by the teacher")

        group.booked_slots = [slot.to_document() for slot in booked if slot is not match]
        self.groups.save(group)
        invalidate_session_cache(self.redis, group.teacher_id, group.id, match.booked_by)

        logger.info(
            "assigned slot cancelled: session=%s student=%s start=%s",
            group.id, match.booked_by, isoformat_utc(start_utc),
        )
        return match

    # ── Reservation protocol ─────────────────────────────────────────────

    def _reserve(
        self,
        group: DBSessionGroups,
        start_utc: datetime,
        end_utc: datetime,
        booked_by: int,
        by_teacher: bool,
    ) -> BookedSlot:
        session_id = group.id
        with self.lock.hold(session_id, start_utc):
            group = self.groups.reload(group)
            if group is None:
                raise NotFoundError("Session not found", details={"session_id": session_id})

            booked = booked_slots_of(group)
            if any(slot.overlaps(start_utc, end_utc) for slot in booked):
                raise ConflictError(
                    "Invalid or already booked slot",
                    details={
                        "session_id": session_id,
                        "start_time": isoformat_utc(start_utc),
                        "end_time": isoformat_utc(end_utc),
                    },
                )

            new_slot = BookedSlot(
                start_time=start_utc,
                end_time=end_utc,
                booked_by=booked_by,
                booked_by_teacher=by_teacher,
            )
            group.booked_slots = [*(group.booked_slots or []), new_slot.to_document()]
            self.groups.save(group)
            invalidate_session_cache(self.redis, group.teacher_id, session_id, booked_by)

        logger.info(
            "slot booked: session=%s student=%s start=%s by_teacher=%s",
            session_id, booked_by, isoformat_utc(start_utc), by_teacher,
        )
        return new_slot

    # ── Helpers ──────────────────────────────────────────────────────────

    def _get_group(self, session_id: int) -> DBSessionGroups:
        group = self.groups.find_by_id(session_id)
        if group is None:
            raise NotFoundError("Session not found", details={"session_id": session_id})
        return group

    def _get_owned_group(self, teacher_id: int, session_id: int) -> DBSessionGroups:
        group = self._get_group(session_id)
        if group.teacher_id != teacher_id:
            raise AuthorizationError("Session belongs to another teacher")
        return group

    def _get_student(self, student_id: int) -> DBUsers:
        student = self.users.get(student_id)
        if student is None or student.role != "student":
            raise NotFoundError("Student not found", details={"student_id": student_id})
        return student

    def _check_restriction(self, group: DBSessionGroups, student_id: int) -> None:
        if group.allowed_student_id is not None and group.allowed_student_id != student_id:
            raise AuthorizationError("This session is reserved for another student")

    def _teacher_timezone(self, teacher_id: int) -> str:
        teacher = self.users.get(teacher_id)
        if teacher is None:
            raise NotFoundError("Teacher not found", details={"teacher_id": teacher_id})
        return self.users.timezone_of(teacher)

    def _window_for(self, group: DBSessionGroups) -> DayWindow:
        availability = self.availability.get_weekly_availability(group.teacher_id)
        window = availability.window_for(group.date) if availability else None
        if window is None:
            raise ConflictError("Teacher not available on this day")
        return window

    def _teacher_interval(
        self,
        group: DBSessionGroups,
        target_date: date,
        start_time: str,
        end_time: str,
    ) -> tuple[datetime, datetime]:
        if target_date != group.date:
            raise ValidationError(
                "date does not match the session date",
                details={"session_date": group.date.isoformat()},
            )
        start_min = time_str_to_minutes(start_time)
        end_min = time_str_to_minutes(end_time)
        if end_min <= start_min:
            raise ValidationError("endTime must be after startTime")

        tz_name = self._teacher_timezone(group.teacher_id)
        return (
            wall_clock_to_utc(target_date, start_min, tz_name),
            wall_clock_to_utc(target_date, end_min, tz_name),
        )
