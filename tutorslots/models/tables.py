# tutorslots/models/tables.py

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Users(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text)
    role = Column(Enum('teacher', 'student', name='user_role'), nullable=False)
    teacher_id = Column(ForeignKey('users.id', ondelete='SET NULL'))
    timezone = Column(Text)

    teacher = relationship('Users', remote_side=[id])


class TeacherAvailability(Base):
    __tablename__ = 'teacher_availability'

    id = Column(Integer, primary_key=True)
    teacher_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    # [{"day": "monday", "start_time": "09:00", "end_time": "17:00"}, ...]
    weekly_availability = Column(JSON, nullable=False, default=list)
    # [{"id": "...", "start_date": "2024-05-01", "end_date": "2024-05-03",
    #   "reason": "public", "note": ""}, ...]
    holidays = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class SessionGroups(Base):
    __tablename__ = 'session_groups'
    __table_args__ = (
        UniqueConstraint('teacher_id', 'title', 'date'),
    )

    id = Column(Integer, primary_key=True)
    teacher_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    slot_duration = Column(Integer, nullable=False, default=60)
    break_duration = Column(Integer, nullable=False, default=10)
    allowed_student_id = Column(ForeignKey('users.id', ondelete='SET NULL'))
    # [{"start_time": iso_utc, "end_time": iso_utc, "booked_by": 7,
    #   "booked_by_teacher": false}, ...]
    booked_slots = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}
