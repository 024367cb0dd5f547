# tutorslots/routers/session_groups.py
# DELETE = ALLOWED only while no slot is booked

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_session_group_service, require_teacher
from ..models.tables import Users as DBUsers
from ..schemas.common import PaginationRead
from ..schemas.slots import (
    BookedSlotRead,
    SessionGroupCreate,
    SessionGroupCreated,
    SlotRead,
    TeacherSessionGroupRead,
    TeacherSessionGroupsResponse,
)
from ..services.session_groups import SessionGroupService
from ..services.slots.domain import booked_slots_of

router = APIRouter(prefix="/session-groups", tags=["session_groups"])


@router.post("/", response_model=SessionGroupCreated, status_code=status.HTTP_201_CREATED)
def create_session_group(
    data: SessionGroupCreate,
    teacher: DBUsers = Depends(require_teacher),
    service: SessionGroupService = Depends(get_session_group_service),
):
    result = service.create_session_group(
        teacher_id=teacher.id,
        title=data.title,
        target_date=data.date,
        slot_duration=data.slot_duration,
        break_duration=data.break_duration,
        student_id=data.student_id,
    )
    group = result.group
    return SessionGroupCreated(
        session_id=group.id,
        title=group.title,
        date=group.date,
        slot_duration=group.slot_duration,
        break_duration=group.break_duration,
        allowed_student_id=group.allowed_student_id,
        timezone=result.timezone,
        generated_slots=[SlotRead.from_localized(s) for s in result.slots],
    )


@router.get("/", response_model=TeacherSessionGroupsResponse)
def list_session_groups(
    kind: Optional[Literal["personal", "common"]] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    teacher: DBUsers = Depends(require_teacher),
    service: SessionGroupService = Depends(get_session_group_service),
):
    result = service.list_teacher_session_groups(teacher.id, kind=kind, page=page, limit=limit)
    tz_name = service.timezone_of(teacher.id)
    return TeacherSessionGroupsResponse(
        pagination=PaginationRead.from_page(result),
        timezone=tz_name,
        sessions=[
            TeacherSessionGroupRead(
                session_id=group.id,
                title=group.title,
                date=group.date,
                slot_duration=group.slot_duration,
                break_duration=group.break_duration,
                allowed_student_id=group.allowed_student_id,
                booked_slots=[
                    BookedSlotRead.build(group.id, slot, tz_name)
                    for slot in booked_slots_of(group)
                ],
            )
            for group in result.items
        ],
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session_group(
    session_id: int,
    teacher: DBUsers = Depends(require_teacher),
    service: SessionGroupService = Depends(get_session_group_service),
):
    service.delete_session_group(teacher.id, session_id)
