# timetable/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for the timetable engine

Read-only queries behind the group-exclusivity check. Teacher availability
is read through AvailabilityRepository.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.lesson import GroupLesson, Lesson
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[GroupLesson]):
    """
    Repository for conflict checking data access.

    Works on GroupLesson rows joined to their lesson's slot.
    """

    def __init__(self, db: Session):
        """Initialize with GroupLesson model as primary."""
        super().__init__(db, GroupLesson)

    def get_group_bookings_at(
        self,
        day: int,
        pair: int,
        group_ids: Sequence[str],
        exclude_lesson_id: Optional[str] = None,
    ) -> List[GroupLesson]:
        """
        Get group links of other lessons already placed at (day, pair).

        Args:
            day: Candidate day
            pair: Candidate pair
            group_ids: Groups to check
            exclude_lesson_id: Lesson being updated, ignored in the scan

        Returns:
            Matching links with group loaded, in lesson creation order
        """
        if not group_ids:
            return []
        try:
            query = (
                self.db.query(GroupLesson)
                .join(Lesson, GroupLesson.lesson_id == Lesson.id)
                .options(joinedload(GroupLesson.group))
                .filter(
                    Lesson.day == day,
                    Lesson.number_of_pair == pair,
                    GroupLesson.group_id.in_(list(group_ids)),
                )
            )
            if exclude_lesson_id:
                query = query.filter(Lesson.id != exclude_lesson_id)
            return query.order_by(Lesson.created_at, Lesson.id).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting group bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get group bookings: {str(e)}") from e
