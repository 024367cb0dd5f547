# tutorslots/services/session_groups.py
"""
Session group lifecycle and listings.

A session group is one teacher-published day: title, date, slot length,
break, and optionally a single student it is reserved for.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from redis import Redis
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..models.tables import SessionGroups as DBSessionGroups
from .slots.availability import calculate_session_availability
from .slots.config import SlotsConfig, get_slots_config
from .slots.domain import BookedSlot, LocalizedSlot, booked_slots_of, load_zone
from .slots.invalidator import invalidate_session_cache
from .stores import AvailabilityStore, SessionGroupStore, UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class SessionGroupSlots:
    group: DBSessionGroups
    slots: list[LocalizedSlot]
    timezone: str


@dataclass
class Page:
    items: list
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


@dataclass
class StudentBooking:
    group: DBSessionGroups
    slot: BookedSlot


class SessionGroupService:
    def __init__(
        self,
        db: Session,
        redis: Optional[Redis],
        default_timezone: str,
        config: SlotsConfig | None = None,
    ):
        self.redis = redis
        self.config = config or get_slots_config()
        self.groups = SessionGroupStore(db)
        self.availability = AvailabilityStore(db)
        self.users = UserDirectory(db, default_timezone)

    # ── Lifecycle ────────────────────────────────────────────────────────

    def create_session_group(
        self,
        teacher_id: int,
        title: str,
        target_date: Optional[date],
        slot_duration: int,
        break_duration: int,
        student_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> SessionGroupSlots:
        """
        Publish a bookable day.

        Every check that can fail runs before anything is written. The only
        write-then-undo path is the final "does at least one slot fit" check.
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Session title is required")
        if not 3 <= len(title) <= 100:
            raise ValidationError("Session title must be between 3 and 100 characters")
        if target_date is None:
            raise ValidationError("Date is required")
        if slot_duration is None or slot_duration <= 0:
            raise ValidationError("Session duration must be a positive number of minutes")
        if break_duration is None or break_duration < 0:
            raise ValidationError("Break duration must not be negative")

        teacher = self.users.get(teacher_id)
        if teacher is None or teacher.role != "teacher":
            raise NotFoundError("Teacher not found", details={"teacher_id": teacher_id})
        teacher_tz = self.users.timezone_of(teacher)

        today = today or datetime.now(load_zone(teacher_tz)).date()
        if target_date < today:
            raise ValidationError("Date must be today or future")
        if target_date > today + timedelta(days=self.config.horizon_days):
            raise ValidationError("Date cannot be more than 1 year in advance")

        if self.groups.find_one(teacher_id=teacher_id, title=title, date=target_date):
            raise ConflictError(
                "Session with same title already exists on this date",
                details={"title": title, "date": target_date.isoformat()},
            )

        availability = self.availability.get_weekly_availability(teacher_id)
        if availability is None:
            raise ValidationError("Teacher availability not set")

        holiday = availability.holiday_on(target_date)
        if holiday is not None:
            raise ConflictError(
                "Session date is a holiday",
                details={"holiday_id": holiday.id, "reason": holiday.reason},
            )

        window = availability.window_for(target_date)
        if window is None:
            raise ValidationError(
                "Teacher not available on this day",
                details={"date": target_date.isoformat()},
            )

        allowed_student_id = None
        if student_id is not None:
            student = self.users.get(student_id)
            if student is None or student.role != "student":
                raise NotFoundError("Student not found", details={"student_id": student_id})
            if student.teacher_id != teacher_id:
                raise AuthorizationError("Invalid student for this teacher")
            allowed_student_id = student.id

        if self.groups.find_one(
            teacher_id=teacher_id,
            date=target_date,
            allowed_student_id=allowed_student_id,
        ):
            kind = "personal session for this student" if allowed_student_id else "common session"
            raise ConflictError(f"A {kind} already exists on this date")

        group = self.groups.create(
            teacher_id=teacher_id,
            title=title,
            date=target_date,
            slot_duration=self.config.clamp_slot_duration(slot_duration),
            break_duration=self.config.clamp_break_duration(break_duration),
            allowed_student_id=allowed_student_id,
        )

        # No cache here: the group may still be rolled back below
        slots = calculate_session_availability(
            teacher_id=teacher_id,
            session_id=group.id,
            target_date=target_date,
            window=window,
            slot_duration=group.slot_duration,
            break_duration=group.break_duration,
            teacher_tz=teacher_tz,
            booked=[],
            redis=None,
            config=self.config,
        )
        if not slots:
            self.groups.find_by_id_and_delete(group.id)
            raise ValidationError(
                "No available slots: session duration does not fit the availability window",
                details={"window": f"{window.start_time}-{window.end_time}"},
            )

        logger.info(
            "session group created: id=%s teacher=%s date=%s slots=%s personal=%s",
            group.id, teacher_id, target_date, len(slots), allowed_student_id is not None,
        )
        return SessionGroupSlots(group=group, slots=slots, timezone=teacher_tz)

    def delete_session_group(self, teacher_id: int, session_id: int) -> None:
        group = self.groups.find_by_id(session_id)
        if group is None:
            raise NotFoundError("Session not found", details={"session_id": session_id})
        if group.teacher_id != teacher_id:
            raise AuthorizationError("Session belongs to another teacher")
        if group.booked_slots:
            raise ConflictError(
                "Cannot delete a session that already has booked slots",
                details={"booked": len(group.booked_slots)},
            )

        self.groups.find_by_id_and_delete(session_id)
        if self.redis is not None:
            invalidate_session_cache(self.redis, teacher_id, session_id)
        logger.info("session group deleted: id=%s teacher=%s", session_id, teacher_id)

    # ── Listings ─────────────────────────────────────────────────────────

    def list_student_session_slots(
        self,
        student_id: int,
        page: int = 1,
        limit: int = 5,
        display_tz: Optional[str] = None,
    ) -> Page:
        """Groups the student may book, each with its open slots in the viewer zone."""
        student = self.users.get(student_id)
        if student is None or student.role != "student":
            raise NotFoundError("Student not found", details={"student_id": student_id})
        teacher = self.users.get(student.teacher_id) if student.teacher_id else None
        if teacher is None:
            raise NotFoundError("Teacher not found")

        display_tz = display_tz or self.users.timezone_of(student)
        load_zone(display_tz)
        teacher_tz = self.users.timezone_of(teacher)

        query = self.groups.query(teacher_id=teacher.id).filter(
            or_(
                DBSessionGroups.allowed_student_id.is_(None),
                DBSessionGroups.allowed_student_id == student.id,
            )
        )
        availability = self.availability.get_weekly_availability(teacher.id)

        # Groups whose weekday was closed after publishing are not listed or counted
        open_groups = []
        for group in self.groups.find(query):
            window = availability.window_for(group.date) if availability else None
            if window is not None:
                open_groups.append((group, window))

        offset = (page - 1) * limit
        items: list[SessionGroupSlots] = []
        for group, window in open_groups[offset:offset + limit]:
            slots = calculate_session_availability(
                teacher_id=teacher.id,
                session_id=group.id,
                target_date=group.date,
                window=window,
                slot_duration=group.slot_duration,
                break_duration=group.break_duration,
                teacher_tz=teacher_tz,
                booked=booked_slots_of(group),
                viewer_id=student.id,
                display_tz=display_tz,
                redis=self.redis,
                config=self.config,
            )
            items.append(SessionGroupSlots(group=group, slots=slots, timezone=display_tz))

        return Page(items=items, total=len(open_groups), page=page, limit=limit)

    def list_teacher_session_groups(
        self,
        teacher_id: int,
        kind: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        query = self.groups.query(teacher_id=teacher_id)
        if kind == "personal":
            query = query.filter(DBSessionGroups.allowed_student_id.isnot(None))
        elif kind == "common":
            query = query.filter(DBSessionGroups.allowed_student_id.is_(None))
        elif kind is not None:
            raise ValidationError("type must be 'personal' or 'common'")

        total = query.count()
        groups = self.groups.find(query, offset=(page - 1) * limit, limit=limit)
        return Page(items=groups, total=total, page=page, limit=limit)

    def list_student_bookings(
        self,
        student_id: int,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        """Every slot booked for the student, across the teacher's groups."""
        student = self.users.get(student_id)
        if student is None or student.role != "student":
            raise NotFoundError("Student not found", details={"student_id": student_id})

        bookings: list[StudentBooking] = []
        for group in self.groups.find(self.groups.query(teacher_id=student.teacher_id)):
            for slot in booked_slots_of(group):
                if slot.booked_by == student.id:
                    bookings.append(StudentBooking(group=group, slot=slot))
        bookings.sort(key=lambda b: b.slot.start_time)

        offset = (page - 1) * limit
        return Page(items=bookings[offset:offset + limit], total=len(bookings), page=page, limit=limit)

    def timezone_of(self, user_id: int) -> str:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return self.users.timezone_of(user)
