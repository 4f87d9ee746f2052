# timetable/services/conflict_checker.py
"""
Conflict Checker Service for the timetable engine

Decides whether placing a lesson at (day, pair) with a set of groups and
teachers would break either schedule invariant:
- a group may hold at most one lesson per slot
- a teacher may only teach in a slot marked free in the ledger

Both checks are read-only and must run before the operation writes
anything, inside the same transaction as the eventual write.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """Service for group-exclusivity and teacher-availability checks."""

    def __init__(
        self,
        db: Session,
        repository: Optional[ConflictCheckerRepository] = None,
        availability_repository: Optional[AvailabilityRepository] = None,
    ):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional ConflictCheckerRepository instance
            availability_repository: Optional AvailabilityRepository instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)
        self.availability_repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )

    @BaseService.measure_operation("check_group_conflict")
    def check_group_conflict(
        self,
        day: int,
        pair: int,
        group_ids: Sequence[str],
        exclude_lesson_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Find a group that already has another lesson at (day, pair).

        Args:
            day: Candidate day
            pair: Candidate pair
            group_ids: Groups of the candidate lesson, in request order
            exclude_lesson_id: Lesson being updated

        Returns:
            The first conflicting group id in request order, or None
        """
        bookings = self.repository.get_group_bookings_at(day, pair, group_ids, exclude_lesson_id)
        booked = {link.group_id for link in bookings}
        for group_id in group_ids:
            if group_id in booked:
                self.logger.warning(
                    f"Group {group_id} already booked on day {day}, pair {pair}"
                )
                return group_id
        return None

    @BaseService.measure_operation("check_teacher_availability")
    def check_teacher_availability(
        self,
        day: int,
        pair: int,
        teacher_ids: Sequence[str],
        exclude_lesson_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Find a teacher without a free slot at (day, pair).

        A slot held by ``exclude_lesson_id`` counts as free: the update that
        passes it releases the slot before re-occupying it.

        Returns:
            The first unavailable teacher id in request order, or None
        """
        slots = {
            slot.teacher_id: slot
            for slot in self.availability_repository.get_slots_at(day, pair, teacher_ids)
        }
        for teacher_id in teacher_ids:
            slot = slots.get(teacher_id)
            if slot is None:
                return teacher_id
            if slot.is_free:
                continue
            if exclude_lesson_id is not None and slot.lesson_id == exclude_lesson_id:
                continue
            self.logger.warning(
                f"Teacher {teacher_id} unavailable on day {day}, pair {pair} "
                f"(held by lesson {slot.lesson_id})"
            )
            return teacher_id
        return None
