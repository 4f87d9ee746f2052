# timetable/repositories/factory.py
"""
Repository Factory for the timetable engine

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .lesson_repository import LessonRepository
    from .roster_repository import GroupRepository, TeacherRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for teacher availability slots."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_lesson_repository(db: Session) -> "LessonRepository":
        """Create repository for lessons and their links."""
        from .lesson_repository import LessonRepository

        return LessonRepository(db)

    @staticmethod
    def create_group_repository(db: Session) -> "GroupRepository":
        from .roster_repository import GroupRepository

        return GroupRepository(db)

    @staticmethod
    def create_teacher_repository(db: Session) -> "TeacherRepository":
        from .roster_repository import TeacherRepository

        return TeacherRepository(db)
