# tutorslots/routers/slots.py
"""
Slots API endpoints.

GET  /slots/mine      - Open slots of every group the student may book
GET  /slots/bookings  - The student's booked slots
POST /slots/book      - Student books a slot
POST /slots/assign    - Teacher books a slot for a student
POST /slots/cancel    - Teacher cancels a slot they assigned
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    get_booking_coordinator,
    get_session_group_service,
    require_student,
    require_teacher,
)
from ..models.tables import Users as DBUsers
from ..schemas.common import PaginationRead
from ..schemas.slots import (
    BookedSlotRead,
    MySlotsResponse,
    SessionGroupSlotsRead,
    SlotAssignRequest,
    SlotBookRequest,
    SlotCancelRequest,
    SlotRead,
    StudentBookingRead,
    StudentBookingsResponse,
)
from ..services.booking import BookingCoordinator
from ..services.session_groups import SessionGroupService

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/mine", response_model=MySlotsResponse)
def list_my_slots(
    page: int = Query(1, ge=1),
    limit: int = Query(5, ge=1, le=50),
    tz: Optional[str] = Query(None, description="IANA zone; defaults to the student's"),
    student: DBUsers = Depends(require_student),
    service: SessionGroupService = Depends(get_session_group_service),
):
    result = service.list_student_session_slots(student.id, page=page, limit=limit, display_tz=tz)
    return MySlotsResponse(
        pagination=PaginationRead.from_page(result),
        timezone=tz or service.timezone_of(student.id),
        sessions=[
            SessionGroupSlotsRead(
                session_id=item.group.id,
                title=item.group.title,
                date=item.group.date,
                slots=[SlotRead.from_localized(s) for s in item.slots],
            )
            for item in result.items
        ],
    )


@router.get("/bookings", response_model=StudentBookingsResponse)
def list_my_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    student: DBUsers = Depends(require_student),
    service: SessionGroupService = Depends(get_session_group_service),
):
    result = service.list_student_bookings(student.id, page=page, limit=limit)
    tz_name = service.timezone_of(student.id)
    return StudentBookingsResponse(
        pagination=PaginationRead.from_page(result),
        timezone=tz_name,
        sessions=[
            StudentBookingRead.build(
                item.group.id,
                item.slot,
                tz_name,
                title=item.group.title,
                teacher_id=item.group.teacher_id,
            )
            for item in result.items
        ],
    )


@router.post("/book", response_model=BookedSlotRead)
def book_slot(
    data: SlotBookRequest,
    student: DBUsers = Depends(require_student),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    service: SessionGroupService = Depends(get_session_group_service),
):
    booked = coordinator.book_slot(
        student_id=student.id,
        session_id=data.session_id,
        start_utc=data.start_time_utc,
        end_utc=data.end_time_utc,
    )
    return BookedSlotRead.build(data.session_id, booked, service.timezone_of(student.id))


@router.post("/assign", response_model=BookedSlotRead)
def assign_slot(
    data: SlotAssignRequest,
    teacher: DBUsers = Depends(require_teacher),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    service: SessionGroupService = Depends(get_session_group_service),
):
    booked = coordinator.assign_slot(
        teacher_id=teacher.id,
        session_id=data.session_id,
        student_id=data.student_id,
        target_date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
    )
    return BookedSlotRead.build(data.session_id, booked, service.timezone_of(teacher.id))


@router.post("/cancel", response_model=BookedSlotRead)
def cancel_assigned_slot(
    data: SlotCancelRequest,
    teacher: DBUsers = Depends(require_teacher),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
    service: SessionGroupService = Depends(get_session_group_service),
):
    cancelled = coordinator.cancel_assigned_slot(
        teacher_id=teacher.id,
        session_id=data.session_id,
        target_date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
    )
    return BookedSlotRead.build(data.session_id, cancelled, service.timezone_of(teacher.id))

