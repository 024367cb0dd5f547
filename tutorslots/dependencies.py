# tutorslots/dependencies.py
"""
Request-scoped wiring.

Identity arrives from the upstream gateway in the X-User-Id header; this
service trusts it and only checks the role.
"""

from fastapi import Depends, Header, HTTPException, Request, status
from redis import Redis
from sqlalchemy.orm import Session

from .database import get_db
from .models.tables import Users as DBUsers
from .redis_client import get_redis
from .services.booking import BookingCoordinator
from .services.session_groups import SessionGroupService
from .services.stores import AvailabilityStore, UserDirectory


def get_current_user(
    x_user_id: int | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> DBUsers:
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    user = db.get(DBUsers, x_user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_teacher(user: DBUsers = Depends(get_current_user)) -> DBUsers:
    if user.role != "teacher":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Teachers only")
    return user


def require_student(user: DBUsers = Depends(get_current_user)) -> DBUsers:
    if user.role != "student":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Students only")
    return user


def get_availability_store(db: Session = Depends(get_db)) -> AvailabilityStore:
    return AvailabilityStore(db)


def get_user_directory(request: Request, db: Session = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db, request.app.state.settings.default_timezone)


def get_session_group_service(
    request: Request,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
) -> SessionGroupService:
    settings = request.app.state.settings
    return SessionGroupService(
        db, redis, settings.default_timezone, request.app.state.slots_config
    )


def get_booking_coordinator(
    request: Request,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
) -> BookingCoordinator:
    settings = request.app.state.settings
    return BookingCoordinator(
        db, redis, settings.default_timezone, request.app.state.slots_config
    )
