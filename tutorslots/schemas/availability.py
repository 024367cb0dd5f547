# tutorslots/schemas/availability.py

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .common import parse_request_date


class DayAvailability(BaseModel):
    day: str = Field(description="monday..sunday (mon..sun accepted)")
    start_time: str = Field(description="HH:MM, 24-hour")
    end_time: str = Field(description="HH:MM, 24-hour; 00:00-00:00 = unavailable")

    model_config = {"from_attributes": True}


class WeeklyAvailabilityUpdate(BaseModel):
    weekly_availability: list[DayAvailability] = Field(max_length=7)


class WeeklyAvailabilityRead(BaseModel):
    teacher_id: int
    weekly_availability: list[DayAvailability]


class HolidayCreate(BaseModel):
    start_date: date
    end_date: date
    reason: Literal["personal", "public"]
    note: str = ""

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_request_date(v)


class HolidayRead(BaseModel):
    id: str
    start_date: date
    end_date: date
    reason: str
    note: str = ""

    model_config = {"from_attributes": True}

