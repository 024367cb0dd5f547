# tutorslots/schemas/slots.py
"""
Pydantic schemas for session groups and slots API.
"""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator

from .common import PaginationRead, check_time_str, parse_request_date


# ── Requests ─────────────────────────────────────────────────────────────


class SessionGroupCreate(BaseModel):
    """Publish a bookable day."""
    title: str = Field(min_length=1, max_length=100)
    date: date
    slot_duration: int = Field(60, description="Minutes, clamped to 15..240")
    break_duration: int = Field(10, description="Minutes, clamped to 0..60")
    student_id: Optional[int] = Field(None, description="Reserve the day for one student")

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_request_date(v)


class SlotBookRequest(BaseModel):
    """Student books one generated slot, identified by its UTC pair."""
    session_id: int
    start_time_utc: datetime
    end_time_utc: datetime


class _TeacherSlotRequest(BaseModel):
    session_id: int
    date: date
    start_time: str = Field(description="HH:MM in the teacher's zone")
    end_time: str = Field(description="HH:MM in the teacher's zone")

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_request_date(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return check_time_str(v)


class SlotAssignRequest(_TeacherSlotRequest):
    student_id: int


class SlotCancelRequest(_TeacherSlotRequest):
    pass


# ── Responses ────────────────────────────────────────────────────────────


class SlotRead(BaseModel):
    """A slot with both its UTC pair and its wall-clock pair."""
    start_time_utc: datetime
    end_time_utc: datetime
    start_time: str  # "HH:MM" in timezone
    end_time: str
    date: date
    timezone: str

    @classmethod
    def from_localized(cls, slot) -> "SlotRead":
        return cls(
            start_time_utc=slot.start_utc,
            end_time_utc=slot.end_utc,
            start_time=slot.start_local.strftime("%H:%M"),
            end_time=slot.end_local.strftime("%H:%M"),
            date=slot.start_local.date(),
            timezone=slot.timezone,
        )


class SessionGroupCreated(BaseModel):
    session_id: int
    title: str
    date: date
    slot_duration: int
    break_duration: int
    allowed_student_id: Optional[int] = None
    timezone: str
    generated_slots: list[SlotRead]


class SessionGroupSlotsRead(BaseModel):
    session_id: int
    title: str
    date: date
    slots: list[SlotRead]


class MySlotsResponse(BaseModel):
    pagination: PaginationRead
    timezone: str
    sessions: list[SessionGroupSlotsRead]


class BookedSlotRead(BaseModel):
    session_id: int
    start_time_utc: datetime
    end_time_utc: datetime
    start_time: str
    end_time: str
    date: date
    timezone: str
    booked_by: int
    booked_by_teacher: bool

    @classmethod
    def build(cls, session_id: int, slot, tz_name: str, **extra):
        zone = ZoneInfo(tz_name)
        start_local = slot.start_time.astimezone(zone)
        return cls(
            session_id=session_id,
            start_time_utc=slot.start_time,
            end_time_utc=slot.end_time,
            start_time=start_local.strftime("%H:%M"),
            end_time=slot.end_time.astimezone(zone).strftime("%H:%M"),
            date=start_local.date(),
            timezone=tz_name,
            booked_by=slot.booked_by,
            booked_by_teacher=slot.booked_by_teacher,
            **extra,
        )


class TeacherSessionGroupRead(BaseModel):
    session_id: int
    title: str
    date: date
    slot_duration: int
    break_duration: int
    allowed_student_id: Optional[int] = None
    booked_slots: list[BookedSlotRead]


class TeacherSessionGroupsResponse(BaseModel):
    pagination: PaginationRead
    timezone: str
    sessions: list[TeacherSessionGroupRead]


class StudentBookingRead(BookedSlotRead):
    title: str
    teacher_id: int


class StudentBookingsResponse(BaseModel):
    pagination: PaginationRead
    timezone: str
    sessions: list[StudentBookingRead]
