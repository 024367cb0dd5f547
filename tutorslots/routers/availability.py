# tutorslots/routers/availability.py
"""
Teacher availability endpoints: weekly template and holidays.
"""

from fastapi import APIRouter, Depends, status

from ..dependencies import get_availability_store, get_user_directory, require_teacher
from ..models.tables import Users as DBUsers
from ..schemas.availability import (
    DayAvailability,
    HolidayCreate,
    HolidayRead,
    WeeklyAvailabilityRead,
    WeeklyAvailabilityUpdate,
)
from ..services import teacher_availability
from ..services.stores import AvailabilityStore, UserDirectory

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/", response_model=WeeklyAvailabilityRead)
def get_weekly_availability(
    teacher: DBUsers = Depends(require_teacher),
    store: AvailabilityStore = Depends(get_availability_store),
):
    availability = store.get_weekly_availability(teacher.id)
    days = availability.days if availability else ()
    return WeeklyAvailabilityRead(
        teacher_id=teacher.id,
        weekly_availability=[DayAvailability.model_validate(d) for d in days],
    )


@router.put("/", response_model=WeeklyAvailabilityRead)
def set_weekly_availability(
    data: WeeklyAvailabilityUpdate,
    teacher: DBUsers = Depends(require_teacher),
    store: AvailabilityStore = Depends(get_availability_store),
):
    days = teacher_availability.set_weekly_availability(
        store, teacher.id, [d.model_dump() for d in data.weekly_availability]
    )
    return WeeklyAvailabilityRead(
        teacher_id=teacher.id,
        weekly_availability=[DayAvailability.model_validate(d) for d in days],
    )


@router.get("/holidays", response_model=list[HolidayRead])
def list_holidays(
    teacher: DBUsers = Depends(require_teacher),
    store: AvailabilityStore = Depends(get_availability_store),
):
    return store.list_holidays(teacher.id)


@router.post("/holidays", response_model=HolidayRead, status_code=status.HTTP_201_CREATED)
def add_holiday(
    data: HolidayCreate,
    teacher: DBUsers = Depends(require_teacher),
    store: AvailabilityStore = Depends(get_availability_store),
    users: UserDirectory = Depends(get_user_directory),
):
    return teacher_availability.add_holiday(
        store,
        teacher.id,
        start_date=data.start_date,
        end_date=data.end_date,
        reason=data.reason,
        note=data.note,
        teacher_tz=users.timezone_of(teacher),
    )


@router.delete("/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holiday(
    holiday_id: str,
    teacher: DBUsers = Depends(require_teacher),
    store: AvailabilityStore = Depends(get_availability_store),
):
    teacher_availability.delete_holiday(store, teacher.id, holiday_id)
