# timetable/models/availability.py
"""
Availability models for the timetable engine.

One FreeHour row exists per (teacher, day, pair) the teacher could ever
teach. A row is free when no lesson holds it; when occupied it points at
the lesson that owns the slot.

Classes:
    FreeHour: Per-teacher free/occupied record for one slot
"""

import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import ID_LENGTH
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class FreeHour(Base):
    """Teacher availability slot"""

    __tablename__ = "free_hours"

    id = Column(String(ID_LENGTH), primary_key=True, default=generate_ulid)
    teacher_id = Column(String(ID_LENGTH), ForeignKey("teachers.id"), nullable=False)
    day = Column(Integer, nullable=False)
    number_of_pair = Column(Integer, nullable=False)
    is_free = Column(Boolean, nullable=False, default=True)
    lesson_id = Column(String(ID_LENGTH), ForeignKey("lessons.id"), nullable=True, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    teacher = relationship("Teacher", back_populates="free_hours")
    lesson = relationship("Lesson", back_populates="occupied_slots")

    # Constraints
    __table_args__ = (
        UniqueConstraint("teacher_id", "day", "number_of_pair", name="unique_teacher_slot"),
        CheckConstraint("day BETWEEN 1 AND 5", name="ck_free_hours_day_range"),
        CheckConstraint("number_of_pair BETWEEN 1 AND 4", name="ck_free_hours_pair_range"),
        CheckConstraint(
            "(is_free AND lesson_id IS NULL) OR (NOT is_free AND lesson_id IS NOT NULL)",
            name="ck_free_hours_occupancy",
        ),
        Index("idx_free_hours_slot", "day", "number_of_pair", "is_free"),
    )

    @property
    def slot(self) -> tuple[int, int]:
        return (self.day, self.number_of_pair)

    def __repr__(self) -> str:
        state = "free" if self.is_free else f"lesson {self.lesson_id}"
        return f"<FreeHour {self.teacher_id} d{self.day}p{self.number_of_pair} {state}>"
