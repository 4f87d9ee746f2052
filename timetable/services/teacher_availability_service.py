# timetable/services/teacher_availability_service.py
"""
Teacher Availability Service for the timetable engine

Administers which (day, pair) slots exist for a teacher. Occupancy itself
is driven by lesson mutations through the AvailabilityLedger; this service
only adds or removes free slots and answers "who is free when" queries.
"""

from collections import OrderedDict
import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy.orm import Session

from ..core.constants import ANY, MAX_DAY, MAX_PAIR, MIN_DAY, MIN_PAIR
from ..core.exceptions import NotFoundException, SlotOccupiedException, ValidationException
from ..models.availability import FreeHour
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import AvailableTeacher, FreeHourRead, SlotRef
from .availability_ledger import AvailabilityLedger
from .base import BaseService

logger = logging.getLogger(__name__)

SlotLike = Tuple[int, int]
SlotInput = Union[SlotRef, SlotLike]


def full_week_grid() -> List[SlotLike]:
    """Every (day, pair) of the weekly grid, Monday first."""
    return [
        (day, pair)
        for day in range(MIN_DAY, MAX_DAY + 1)
        for pair in range(MIN_PAIR, MAX_PAIR + 1)
    ]


def _normalize(slots: Iterable[SlotInput]) -> List[SlotLike]:
    seen: "OrderedDict[SlotLike, None]" = OrderedDict()
    for slot in slots:
        key = slot.as_tuple() if isinstance(slot, SlotRef) else (int(slot[0]), int(slot[1]))
        day, pair = key
        if not (MIN_DAY <= day <= MAX_DAY and MIN_PAIR <= pair <= MAX_PAIR):
            raise ValidationException(
                f"Slot day {day}, pair {pair} is outside the weekly grid",
                details={"day": day, "pair": pair},
            )
        seen[key] = None
    return list(seen)


class TeacherAvailabilityService(BaseService):
    """Service for teacher free-slot administration."""

    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
        ledger: Optional[AvailabilityLedger] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.ledger = ledger or AvailabilityLedger(db, self.repository)

    def materialize_slots(
        self, teacher_id: str, slots: Optional[Sequence[SlotInput]] = None
    ) -> List[FreeHour]:
        """
        Create the initial free slots of a newly created teacher.

        Joins the caller's transaction; the roster service calls this while
        creating the teacher. Without an explicit list, all 20 slots of the
        week start free.
        """
        wanted = _normalize(slots) if slots is not None else full_week_grid()
        created = self.repository.create_slots(teacher_id, wanted)
        self.logger.debug(f"Materialized {len(created)} slots for teacher {teacher_id}")
        return created

    @BaseService.measure_operation("add_free_slots")
    def add_free_slots(
        self, teacher_id: str, slots: Sequence[SlotInput]
    ) -> List[FreeHour]:
        """
        Mark additional slots as free for a teacher.

        Slots that already exist, free or occupied, are left as they are.

        Returns:
            The newly created slots
        """
        wanted = _normalize(slots)
        self.log_operation("add_free_slots", teacher_id=teacher_id, slots=wanted)

        with self.transaction():
            self._require_teacher(teacher_id)
            existing = {slot.slot for slot in self.repository.get_slots_for_teacher(teacher_id)}
            missing = [slot for slot in wanted if slot not in existing]
            created = self.repository.create_slots(teacher_id, missing) if missing else []

        self.logger.info(f"Added {len(created)} free slots for teacher {teacher_id}")
        return created

    @BaseService.measure_operation("remove_free_slots")
    def remove_free_slots(self, teacher_id: str, slots: Sequence[SlotInput]) -> int:
        """
        Remove slots from a teacher's availability.

        The whole request is refused when any named slot does not exist or
        is held by a lesson.

        Raises:
            NotFoundException: Unknown teacher or slot
            SlotOccupiedException: A named slot is held by a lesson
        """
        wanted = _normalize(slots)
        self.log_operation("remove_free_slots", teacher_id=teacher_id, slots=wanted)

        with self.transaction():
            self._require_teacher(teacher_id)
            doomed: List[FreeHour] = []
            for day, pair in wanted:
                slot = self.repository.get_slot(teacher_id, day, pair, lock=True)
                if slot is None:
                    raise NotFoundException(
                        f"Teacher {teacher_id} has no availability slot on day {day}, pair {pair}",
                        details={"teacher_id": teacher_id, "day": day, "pair": pair},
                    )
                if not slot.is_free:
                    raise SlotOccupiedException(teacher_id, day, pair, slot.lesson_id)
                doomed.append(slot)
            removed = self.repository.delete_slots(doomed)

        self.logger.info(f"Removed {removed} free slots for teacher {teacher_id}")
        return removed

    @BaseService.measure_operation("find_available_teachers")
    def find_available_teachers(self, day: int = ANY, pair: int = ANY) -> List[AvailableTeacher]:
        """
        Teachers with at least one free slot matching the filters.

        Args:
            day: Day filter (0 = any)
            pair: Pair filter (0 = any)

        Returns:
            Teachers ordered by name, each with the matching free slots
        """
        if day not in range(ANY, MAX_DAY + 1):
            raise ValidationException(
                f"Day filter must be between 0 and {MAX_DAY}, got {day}",
                details={"field": "day", "value": day},
            )
        if pair not in range(ANY, MAX_PAIR + 1):
            raise ValidationException(
                f"Pair filter must be between 0 and {MAX_PAIR}, got {pair}",
                details={"field": "pair", "value": pair},
            )

        by_teacher: "OrderedDict[str, List[FreeHour]]" = OrderedDict()
        teachers = {}
        for slot in self.ledger.find_free_slots(day=day or None, pair=pair or None):
            by_teacher.setdefault(slot.teacher_id, []).append(slot)
            teachers[slot.teacher_id] = slot.teacher

        result = [
            AvailableTeacher(
                id=teacher_id,
                full_name=teachers[teacher_id].full_name,
                position=teachers[teacher_id].position,
                free_hours=[FreeHourRead.model_validate(slot) for slot in free],
            )
            for teacher_id, free in by_teacher.items()
        ]
        result.sort(key=lambda teacher: teacher.full_name)
        return result

    def _require_teacher(self, teacher_id: str) -> None:
        if self.teacher_repository.get_by_id(teacher_id, load_relationships=False) is None:
            raise NotFoundException(
                f"Teacher {teacher_id} not found", details={"teacher_id": teacher_id}
            )
