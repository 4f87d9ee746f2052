# timetable/models/lesson.py
"""
Lesson model for the timetable engine.

A lesson occupies one (day, pair) slot of the weekly grid. Groups and
teachers are attached through GroupLesson and TeacherLesson rows, which
the lesson service replaces wholesale whenever the sets change.
"""

from typing import List, Optional

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
from ..core.enums import WeekType
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Lesson(Base):
    """A scheduled teaching event in one slot."""

    __tablename__ = "lessons"

    id = Column(String(ID_LENGTH), primary_key=True, index=True, default=generate_ulid)

    # Slot
    day = Column(Integer, nullable=False)
    number_of_pair = Column(Integer, nullable=False)

    # Subject
    subject = Column(String(255), nullable=False)
    hours_of_subject = Column(Integer, nullable=False)
    is_lecture = Column(Boolean, nullable=False, default=False)
    has_consultation = Column(Boolean, nullable=False, default=False)
    hours_of_consultation = Column(Integer, nullable=True)

    # NULL = every week, TRUE = even weeks, FALSE = odd weeks
    is_even_week = Column(Boolean, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    group_links = relationship("GroupLesson", back_populates="lesson")
    teacher_links = relationship("TeacherLesson", back_populates="lesson")
    occupied_slots = relationship("FreeHour", back_populates="lesson")

    __table_args__ = (
        CheckConstraint("day BETWEEN 1 AND 5", name="ck_lessons_day_range"),
        CheckConstraint("number_of_pair BETWEEN 1 AND 4", name="ck_lessons_pair_range"),
        CheckConstraint("hours_of_subject >= 1", name="ck_lessons_hours_positive"),
        CheckConstraint(
            "NOT has_consultation OR hours_of_consultation >= 1",
            name="ck_lessons_consultation_hours",
        ),
        Index("idx_lessons_slot", "day", "number_of_pair"),
    )

    @property
    def week_type(self) -> WeekType:
        return WeekType.from_flag(self.is_even_week)

    @property
    def group_ids(self) -> List[str]:
        return sorted(link.group_id for link in self.group_links)

    @property
    def teacher_ids(self) -> List[str]:
        return sorted(link.teacher_id for link in self.teacher_links)

    @property
    def consultation_hours(self) -> Optional[int]:
        return self.hours_of_consultation if self.has_consultation else None

    def __repr__(self) -> str:
        return f"<Lesson {self.subject} d{self.day}p{self.number_of_pair} ({self.week_type.value})>"


class GroupLesson(Base):
    """Link between a group and a lesson."""

    __tablename__ = "group_lessons"

    id = Column(String(ID_LENGTH), primary_key=True, default=generate_ulid)
    group_id = Column(
        String(ID_LENGTH), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    lesson_id = Column(String(ID_LENGTH), ForeignKey("lessons.id"), nullable=False, index=True)

    group = relationship("Group", back_populates="lesson_links")
    lesson = relationship("Lesson", back_populates="group_links")

    __table_args__ = (UniqueConstraint("group_id", "lesson_id", name="unique_group_lesson"),)


class TeacherLesson(Base):
    """Link between a teacher and a lesson."""

    __tablename__ = "teacher_lessons"

    id = Column(String(ID_LENGTH), primary_key=True, default=generate_ulid)
    teacher_id = Column(String(ID_LENGTH), ForeignKey("teachers.id"), nullable=False, index=True)
    lesson_id = Column(String(ID_LENGTH), ForeignKey("lessons.id"), nullable=False, index=True)

    teacher = relationship("Teacher", back_populates="lesson_links")
    lesson = relationship("Lesson", back_populates="teacher_links")

    __table_args__ = (UniqueConstraint("teacher_id", "lesson_id", name="unique_teacher_lesson"),)
