# timetable/models/group.py
"""Student group model."""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import ID_LENGTH
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Group(Base):
    """A student cohort identified by a unique name."""

    __tablename__ = "groups"

    id = Column(String(ID_LENGTH), primary_key=True, default=generate_ulid)
    name = Column(String(100), nullable=False, unique=True, index=True)
    course = Column(Integer, nullable=False)
    specialty = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lesson_links = relationship(
        "GroupLesson", back_populates="group", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (CheckConstraint("course BETWEEN 1 AND 4", name="ck_groups_course_range"),)

    def __repr__(self) -> str:
        return f"<Group {self.name} course={self.course}>"
