"""
SQLAlchemy models for the timetable engine.

Importing this package registers every table on ``Base.metadata``.
"""

from .availability import FreeHour
from .group import Group
from .lesson import GroupLesson, Lesson, TeacherLesson
from .teacher import Teacher

__all__ = [
    "FreeHour",
    "Group",
    "GroupLesson",
    "Lesson",
    "Teacher",
    "TeacherLesson",
]
