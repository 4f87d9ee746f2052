# timetable/models/teacher.py
"""Teacher model."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import ID_LENGTH
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Teacher(Base):
    """An instructor; full name follows the "Surname I. I." format."""

    __tablename__ = "teachers"

    id = Column(String(ID_LENGTH), primary_key=True, default=generate_ulid)
    full_name = Column(String(255), nullable=False, unique=True, index=True)
    position = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lesson_links = relationship("TeacherLesson", back_populates="teacher")
    free_hours = relationship("FreeHour", back_populates="teacher")

    def __repr__(self) -> str:
        return f"<Teacher {self.full_name} ({self.position})>"
