"""
Service layer for the timetable engine.

Every public mutation opens exactly one transaction through
BaseService.transaction(); the ledger and conflict checker join it.
"""

from .availability_ledger import AvailabilityLedger
from .base import BaseService
from .conflict_checker import ConflictChecker
from .lesson_service import LessonService
from .roster_service import RosterService
from .teacher_availability_service import TeacherAvailabilityService

__all__ = [
    "AvailabilityLedger",
    "BaseService",
    "ConflictChecker",
    "LessonService",
    "RosterService",
    "TeacherAvailabilityService",
]
