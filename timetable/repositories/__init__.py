"""
Repository Pattern Implementation for the timetable engine

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- AvailabilityRepository: Teacher free hours (the availability ledger rows)
- ConflictCheckerRepository: Group-exclusivity queries
- LessonRepository: Lessons, association rows and projections
- GroupRepository / TeacherRepository: Roster lookups

Usage:
    from timetable.repositories import RepositoryFactory

    repository = RepositoryFactory.create_lesson_repository(db)
    lessons = repository.get_filtered(day=1)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository, IRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory
from .lesson_repository import LessonRepository
from .roster_repository import GroupRepository, TeacherRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "ConflictCheckerRepository",
    "GroupRepository",
    "IRepository",
    "LessonRepository",
    "RepositoryFactory",
    "TeacherRepository",
]
