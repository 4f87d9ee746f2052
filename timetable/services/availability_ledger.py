# timetable/services/availability_ledger.py
"""
Availability Ledger for the timetable engine

Tracks, per teacher and (day, pair), whether the teacher is free and which
lesson holds the slot otherwise. The ledger never opens or commits a
transaction: it is always driven from inside the caller's.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import BusinessRuleException, NotFoundException, SlotOccupiedException
from ..models.availability import FreeHour
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class AvailabilityLedger(BaseService):
    """Occupy/release bookkeeping over FreeHour rows."""

    def __init__(self, db: Session, repository: Optional[AvailabilityRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)

    def find_free_slots(
        self,
        day: Optional[int] = None,
        pair: Optional[int] = None,
        teacher_id: Optional[str] = None,
    ) -> List[FreeHour]:
        """Free slots matching the optional day/pair/teacher filters."""
        return self.repository.find_free_slots(day=day, pair=pair, teacher_id=teacher_id)

    def occupy(self, teacher_id: str, day: int, pair: int, lesson_id: str) -> FreeHour:
        """
        Mark a teacher's slot as held by a lesson.

        Raises:
            NotFoundException: The teacher has no slot at (day, pair)
            SlotOccupiedException: The slot is already held
        """
        slot = self.repository.get_slot(teacher_id, day, pair, lock=True)
        if slot is None:
            raise NotFoundException(
                f"Teacher {teacher_id} has no availability slot on day {day}, pair {pair}",
                details={"teacher_id": teacher_id, "day": day, "pair": pair},
            )
        if not slot.is_free:
            raise SlotOccupiedException(teacher_id, day, pair, slot.lesson_id)

        slot.is_free = False
        slot.lesson_id = lesson_id
        self.repository.flush()
        self.logger.debug(f"Occupied d{day}p{pair} of teacher {teacher_id} with lesson {lesson_id}")
        return slot

    def release(self, teacher_id: str, day: int, pair: int) -> FreeHour:
        """
        Return a teacher's slot to free.

        Raises:
            NotFoundException: The teacher has no slot at (day, pair)
            BusinessRuleException: The slot is already free
        """
        slot = self.repository.get_slot(teacher_id, day, pair, lock=True)
        if slot is None:
            raise NotFoundException(
                f"Teacher {teacher_id} has no availability slot on day {day}, pair {pair}",
                details={"teacher_id": teacher_id, "day": day, "pair": pair},
            )
        if slot.is_free:
            raise BusinessRuleException(
                f"Slot day {day}, pair {pair} of teacher {teacher_id} is already free",
                code="SLOT_ALREADY_FREE",
            )
        self._free(slot)
        self.repository.flush()
        return slot

    def release_lessons(self, lesson_ids: Iterable[str]) -> int:
        """Release every slot held by any of the given lessons."""
        slots = self.repository.get_slots_for_lessons(lesson_ids)
        for slot in slots:
            self._free(slot)
        self.repository.flush()
        if slots:
            self.logger.debug(f"Released {len(slots)} availability slots")
        return len(slots)

    def release_lesson(self, lesson_id: str) -> int:
        return self.release_lessons([lesson_id])

    @staticmethod
    def _free(slot: FreeHour) -> None:
        slot.is_free = True
        slot.lesson_id = None
