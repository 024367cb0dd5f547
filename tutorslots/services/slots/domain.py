# tutorslots/services/slots/domain.py
"""
Value types shared by the generator, the cache and the coordinator.

All instants are timezone-aware. UTC pairs are the canonical form;
wall-clock pairs exist only for presentation.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...errors import ValidationError
from .config import time_str_to_minutes

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
_SHORT_DAY_NAMES = {name[:3]: name for name in DAY_NAMES}

UNSET_TIME = "00:00"


def normalize_day(value: str) -> str:
    day = (value or "").strip().lower()
    day = _SHORT_DAY_NAMES.get(day, day)
    if day not in DAY_NAMES:
        raise ValidationError(f"Invalid day ({value})", details={"day": value})
    return day


def day_name(target_date: date) -> str:
    return DAY_NAMES[target_date.weekday()]


def load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown time zone: {name}", details={"timezone": name})


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_utc(value: datetime) -> str:
    return to_utc(value).isoformat().replace("+00:00", "Z")


def parse_utc(value: str) -> datetime:
    return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


@dataclass(frozen=True)
class DayWindow:
    """One weekday's bookable window in teacher wall-clock time."""
    day: str
    start_time: str
    end_time: str

    @property
    def is_unset(self) -> bool:
        return self.start_time == UNSET_TIME and self.end_time == UNSET_TIME

    @property
    def start_minutes(self) -> int:
        return time_str_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_str_to_minutes(self.end_time)

    def to_document(self) -> dict:
        return {"day": self.day, "start_time": self.start_time, "end_time": self.end_time}

    @classmethod
    def from_document(cls, doc: dict) -> "DayWindow":
        return cls(day=doc["day"], start_time=doc["start_time"], end_time=doc["end_time"])


@dataclass(frozen=True)
class HolidayRange:
    id: str
    start_date: date
    end_date: date
    reason: str
    note: str = ""

    def contains(self, target_date: date) -> bool:
        return self.start_date <= target_date <= self.end_date

    def overlaps(self, start_date: date, end_date: date) -> bool:
        return start_date <= self.end_date and end_date >= self.start_date

    def to_document(self) -> dict:
        return {
            "id": self.id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "reason": self.reason,
            "note": self.note,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "HolidayRange":
        return cls(
            id=doc["id"],
            start_date=date.fromisoformat(doc["start_date"]),
            end_date=date.fromisoformat(doc["end_date"]),
            reason=doc["reason"],
            note=doc.get("note") or "",
        )


@dataclass(frozen=True)
class WeeklyAvailability:
    teacher_id: int
    days: tuple[DayWindow, ...] = ()
    holidays: tuple[HolidayRange, ...] = ()

    def window_for(self, target_date: date) -> Optional[DayWindow]:
        """Window of the date's weekday, or None when absent or unset."""
        name = day_name(target_date)
        for window in self.days:
            if window.day == name:
                return None if window.is_unset else window
        return None

    def holiday_on(self, target_date: date) -> Optional[HolidayRange]:
        for holiday in self.holidays:
            if holiday.contains(target_date):
                return holiday
        return None


@dataclass(frozen=True, order=True)
class CandidateSlot:
    """A generated, unbooked [start, end) interval in UTC."""
    start_utc: datetime
    end_utc: datetime

    def overlaps(self, start_utc: datetime, end_utc: datetime) -> bool:
        return self.start_utc < end_utc and self.end_utc > start_utc

    def to_document(self) -> dict:
        return {"start_utc": isoformat_utc(self.start_utc), "end_utc": isoformat_utc(self.end_utc)}

    @classmethod
    def from_document(cls, doc: dict) -> "CandidateSlot":
        return cls(start_utc=parse_utc(doc["start_utc"]), end_utc=parse_utc(doc["end_utc"]))


@dataclass(frozen=True)
class LocalizedSlot:
    """A candidate slot with its wall-clock pair in a display zone."""
    start_utc: datetime
    end_utc: datetime
    start_local: datetime
    end_local: datetime
    timezone: str

    @property
    def candidate(self) -> CandidateSlot:
        return CandidateSlot(self.start_utc, self.end_utc)

    def to_document(self) -> dict:
        return {
            "start_utc": isoformat_utc(self.start_utc),
            "end_utc": isoformat_utc(self.end_utc),
            "timezone": self.timezone,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "LocalizedSlot":
        zone = ZoneInfo(doc["timezone"])
        start_utc = parse_utc(doc["start_utc"])
        end_utc = parse_utc(doc["end_utc"])
        return cls(
            start_utc=start_utc,
            end_utc=end_utc,
            start_local=start_utc.astimezone(zone),
            end_local=end_utc.astimezone(zone),
            timezone=doc["timezone"],
        )


@dataclass(frozen=True)
class BookedSlot:
    start_time: datetime
    end_time: datetime
    booked_by: int
    booked_by_teacher: bool = False

    def overlaps(self, start_utc: datetime, end_utc: datetime) -> bool:
        return start_utc < self.end_time and end_utc > self.start_time

    def matches(self, start_utc: datetime, end_utc: datetime) -> bool:
        return self.start_time == start_utc and self.end_time == end_utc

    def to_document(self) -> dict:
        return {
            "start_time": isoformat_utc(self.start_time),
            "end_time": isoformat_utc(self.end_time),
            "booked_by": self.booked_by,
            "booked_by_teacher": self.booked_by_teacher,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "BookedSlot":
        return cls(
            start_time=parse_utc(doc["start_time"]),
            end_time=parse_utc(doc["end_time"]),
            booked_by=doc["booked_by"],
            booked_by_teacher=bool(doc.get("booked_by_teacher", False)),
        )


def booked_slots_of(group) -> list[BookedSlot]:
    return [BookedSlot.from_document(doc) for doc in (group.booked_slots or [])]
