# timetable/repositories/availability_repository.py
"""
AvailabilityRepository - Teacher Free Hour Storage

Data access for the per-teacher (day, pair) availability slots. The
occupy/release rules live in the AvailabilityLedger service; this class
only reads and writes rows.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.availability import FreeHour
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[FreeHour]):
    """Repository for FreeHour rows."""

    def __init__(self, db: Session):
        super().__init__(db, FreeHour)

    def find_free_slots(
        self,
        day: Optional[int] = None,
        pair: Optional[int] = None,
        teacher_id: Optional[str] = None,
    ) -> List[FreeHour]:
        """
        Get free slots matching the optional filters.

        Args:
            day: Only this day when given
            pair: Only this pair when given
            teacher_id: Only this teacher when given

        Returns:
            Free slots ordered by teacher, day and pair
        """
        query = self.db.query(FreeHour).filter(FreeHour.is_free.is_(True))
        if day:
            query = query.filter(FreeHour.day == day)
        if pair:
            query = query.filter(FreeHour.number_of_pair == pair)
        if teacher_id:
            query = query.filter(FreeHour.teacher_id == teacher_id)
        query = query.options(joinedload(FreeHour.teacher)).order_by(
            FreeHour.teacher_id, FreeHour.day, FreeHour.number_of_pair
        )
        return self._execute_query(query)

    def get_slot(
        self, teacher_id: str, day: int, pair: int, lock: bool = False
    ) -> Optional[FreeHour]:
        """Get the slot of one teacher at (day, pair), optionally row-locked."""
        try:
            query = self.db.query(FreeHour).filter(
                FreeHour.teacher_id == teacher_id,
                FreeHour.day == day,
                FreeHour.number_of_pair == pair,
            )
            if lock:
                query = self._lock_rows(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting slot for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to get slot: {str(e)}") from e

    def get_slots_at(self, day: int, pair: int, teacher_ids: Sequence[str]) -> List[FreeHour]:
        """
        Get the slots of several teachers at one (day, pair).

        Rows are locked where the dialect allows, so a concurrent operation
        cannot claim them between the availability check and the write.
        """
        if not teacher_ids:
            return []
        query = self.db.query(FreeHour).filter(
            FreeHour.day == day,
            FreeHour.number_of_pair == pair,
            FreeHour.teacher_id.in_(list(teacher_ids)),
        )
        return self._execute_query(self._lock_rows(query))

    def get_slots_for_teacher(self, teacher_id: str) -> List[FreeHour]:
        query = (
            self.db.query(FreeHour)
            .filter(FreeHour.teacher_id == teacher_id)
            .order_by(FreeHour.day, FreeHour.number_of_pair)
        )
        return self._execute_query(query)

    def get_slots_for_lessons(self, lesson_ids: Iterable[str]) -> List[FreeHour]:
        """Get every slot currently held by any of the given lessons."""
        ids = list(lesson_ids)
        if not ids:
            return []
        query = self.db.query(FreeHour).filter(FreeHour.lesson_id.in_(ids))
        return self._execute_query(self._lock_rows(query))

    def create_slots(self, teacher_id: str, slots: Iterable[Tuple[int, int]]) -> List[FreeHour]:
        """Insert free slots for a teacher."""
        return self.bulk_create(
            [
                {
                    "teacher_id": teacher_id,
                    "day": day,
                    "number_of_pair": pair,
                    "is_free": True,
                    "lesson_id": None,
                }
                for day, pair in slots
            ]
        )

    def delete_slots(self, slots: Sequence[FreeHour]) -> int:
        try:
            for slot in slots:
                self.db.delete(slot)
            self.db.flush()
            return len(slots)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting slots: {str(e)}")
            raise RepositoryException(f"Failed to delete slots: {str(e)}") from e
