# tutorslots/services/stores.py
"""
Document-style access to users, availability and session groups.

Session groups are handled as whole documents: load, mutate in memory,
save. Saves are guarded by the row version, so two writers that loaded the
same version cannot both win.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError
from ..models.tables import (
    SessionGroups as DBSessionGroups,
    TeacherAvailability as DBTeacherAvailability,
    Users as DBUsers,
)
from .slots.domain import DayWindow, HolidayRange, WeeklyAvailability

logger = logging.getLogger(__name__)


class UserDirectory:
    """Identity collaborator: who is who, and in which zone."""

    def __init__(self, db: Session, default_timezone: str):
        self.db = db
        self.default_timezone = default_timezone

    def get(self, user_id: int) -> Optional[DBUsers]:
        return self.db.get(DBUsers, user_id)

    def timezone_of(self, user: DBUsers) -> str:
        return user.timezone or self.default_timezone


class AvailabilityStore:
    def __init__(self, db: Session):
        self.db = db

    def _document(self, teacher_id: int) -> Optional[DBTeacherAvailability]:
        return (
            self.db.query(DBTeacherAvailability)
            .filter(DBTeacherAvailability.teacher_id == teacher_id)
            .first()
        )

    def get_weekly_availability(self, teacher_id: int) -> Optional[WeeklyAvailability]:
        doc = self._document(teacher_id)
        if doc is None:
            return None
        return WeeklyAvailability(
            teacher_id=teacher_id,
            days=tuple(DayWindow.from_document(d) for d in (doc.weekly_availability or [])),
            holidays=tuple(HolidayRange.from_document(h) for h in (doc.holidays or [])),
        )

    def list_holidays(self, teacher_id: int) -> list[HolidayRange]:
        doc = self._document(teacher_id)
        if doc is None:
            return []
        return [HolidayRange.from_document(h) for h in (doc.holidays or [])]

    def save_weekly_availability(self, teacher_id: int, days: list[DayWindow]) -> None:
        doc = self._get_or_create(teacher_id)
        doc.weekly_availability = [d.to_document() for d in days]
        self.db.commit()

    def save_holidays(self, teacher_id: int, holidays: list[HolidayRange]) -> None:
        doc = self._get_or_create(teacher_id)
        doc.holidays = [h.to_document() for h in holidays]
        self.db.commit()

    def _get_or_create(self, teacher_id: int) -> DBTeacherAvailability:
        doc = self._document(teacher_id)
        if doc is None:
            doc = DBTeacherAvailability(teacher_id=teacher_id, weekly_availability=[], holidays=[])
            self.db.add(doc)
        return doc


class SessionGroupStore:
    def __init__(self, db: Session):
        self.db = db

    def query(self, **filters):
        query = self.db.query(DBSessionGroups)
        for name, value in filters.items():
            column = getattr(DBSessionGroups, name)
            query = query.filter(column.is_(None) if value is None else column == value)
        return query

    def find_one(self, **filters) -> Optional[DBSessionGroups]:
        return self.query(**filters).first()

    def find_by_id(self, session_id: int) -> Optional[DBSessionGroups]:
        return self.db.get(DBSessionGroups, session_id)

    def find(self, query=None, offset: int = 0, limit: Optional[int] = None) -> list[DBSessionGroups]:
        query = query if query is not None else self.query()
        query = query.order_by(DBSessionGroups.date, DBSessionGroups.id).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def create(self, **fields) -> DBSessionGroups:
        group = DBSessionGroups(booked_slots=[], **fields)
        self.db.add(group)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(
                "Duplicate session detected (same title & date)",
                details={"title": fields.get("title"), "date": str(fields.get("date"))},
            ) from exc
        return group

    def save(self, group: DBSessionGroups) -> DBSessionGroups:
        """Rewrite the whole document; fails if someone saved it meanwhile."""
        session_id = group.id
        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.info("session group %s changed concurrently, save rejected", session_id)
            raise ConflictError(
                "Session was modified concurrently, please retry",
                details={"session_id": session_id},
            ) from exc
        return group

    def reload(self, group: DBSessionGroups) -> Optional[DBSessionGroups]:
        """Re-read the document from the database; None if it was deleted."""
        return self.db.get(DBSessionGroups, group.id, populate_existing=True)

    def find_by_id_and_delete(self, session_id: int) -> Optional[DBSessionGroups]:
        group = self.find_by_id(session_id)
        if group is None:
            return None
        self.db.delete(group)
        self.db.commit()
        return group
