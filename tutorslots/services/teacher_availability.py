# tutorslots/services/teacher_availability.py
"""
Weekly availability template and holiday ranges of a teacher.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Iterable, Optional

from ..errors import ConflictError, NotFoundError, ValidationError
from .slots.config import minutes_to_time_str, time_str_to_minutes
from .slots.domain import UNSET_TIME, DayWindow, HolidayRange, load_zone, normalize_day
from .stores import AvailabilityStore

logger = logging.getLogger(__name__)

HOLIDAY_REASONS = ("personal", "public")


def build_weekly_template(entries: Iterable[dict]) -> list[DayWindow]:
    """
    Validate raw day entries into DayWindows.

    Collects every row problem and raises one ValidationError listing them.
    """
    errors: list[str] = []
    seen: set[str] = set()
    days: list[DayWindow] = []

    for index, entry in enumerate(entries, start=1):
        try:
            day = normalize_day(entry.get("day"))
        except ValidationError:
            errors.append(f"Row {index}: Invalid day ({entry.get('day')})")
            continue
        if day in seen:
            errors.append(f"Row {index}: Duplicate day ({day})")
            continue

        start_time = entry.get("start_time")
        end_time = entry.get("end_time")
        try:
            start = time_str_to_minutes(start_time)
        except ValidationError as exc:
            errors.append(f"Row {index}: start_time {exc.message}")
            continue
        try:
            end = time_str_to_minutes(end_time)
        except ValidationError as exc:
            errors.append(f"Row {index}: end_time {exc.message}")
            continue

        unset = start == 0 and end == 0
        if not unset and start >= end:
            errors.append(f"Row {index}: start_time must be before end_time")
            continue

        seen.add(day)
        days.append(DayWindow(
            day=day,
            start_time=UNSET_TIME if unset else minutes_to_time_str(start),
            end_time=UNSET_TIME if unset else minutes_to_time_str(end),
        ))

    if errors:
        raise ValidationError("Invalid weekly availability", details={"errors": errors})
    return days


def set_weekly_availability(
    store: AvailabilityStore,
    teacher_id: int,
    entries: Iterable[dict],
) -> list[DayWindow]:
    days = build_weekly_template(entries)
    store.save_weekly_availability(teacher_id, days)
    logger.info("weekly availability updated: teacher=%s days=%s", teacher_id, len(days))
    return days


def add_holiday(
    store: AvailabilityStore,
    teacher_id: int,
    start_date: date,
    end_date: date,
    reason: str,
    note: str = "",
    *,
    teacher_tz: str,
    today: Optional[date] = None,
) -> HolidayRange:
    """Add a holiday range; a start before today in teacher_tz is rejected."""
    today = today or datetime.now(load_zone(teacher_tz)).date()
    errors: list[str] = []
    if reason not in HOLIDAY_REASONS:
        errors.append(f"reason must be one of {', '.join(HOLIDAY_REASONS)}")
    if start_date < today:
        errors.append("startDate must be current or future date")
    if end_date < start_date:
        errors.append("endDate cannot be before startDate")
    if errors:
        raise ValidationError("Invalid holiday", details={"errors": errors})

    holidays = store.list_holidays(teacher_id)
    for existing in holidays:
        if existing.overlaps(start_date, end_date):
            raise ConflictError(
                "Holiday dates overlap with an existing holiday",
                details={"holiday_id": existing.id},
            )

    holiday = HolidayRange(
        id=uuid.uuid4().hex,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        note=note or "",
    )
    store.save_holidays(teacher_id, [*holidays, holiday])
    logger.info(
        "holiday added: teacher=%s %s..%s (%s)",
        teacher_id, start_date, end_date, reason,
    )
    return holiday


def delete_holiday(store: AvailabilityStore, teacher_id: int, holiday_id: str) -> None:
    holidays = store.list_holidays(teacher_id)
    remaining = [h for h in holidays if h.id != holiday_id]
    if len(remaining) == len(holidays):
        raise NotFoundError("Holiday not found", details={"holiday_id": holiday_id})
    store.save_holidays(teacher_id, remaining)

