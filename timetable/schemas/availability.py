# timetable/schemas/availability.py
"""Availability slot schemas."""

from typing import List, Optional

from pydantic import Field

from ..core.constants import MAX_DAY, MAX_PAIR, MIN_DAY, MIN_PAIR
from ._strict_base import StrictModel, StrictRequestModel


class SlotRef(StrictRequestModel):
    """A (day, pair) coordinate of the weekly grid."""

    day: int = Field(..., ge=MIN_DAY, le=MAX_DAY, description="Day of week, 1 = Monday")
    number_of_pair: int = Field(..., ge=MIN_PAIR, le=MAX_PAIR, description="Pair within the day")

    def as_tuple(self) -> tuple[int, int]:
        return (self.day, self.number_of_pair)


class FreeHourRead(StrictModel):
    id: str
    teacher_id: str
    day: int
    number_of_pair: int
    is_free: bool
    lesson_id: Optional[str] = None


class AvailableTeacher(StrictModel):
    """Teacher with the free slots that matched an availability search."""

    id: str
    full_name: str
    position: str
    free_hours: List[FreeHourRead]
