# timetable/schemas/lesson.py
"""
Lesson schemas for the timetable engine.

LessonUpdate is a partial update: a field that is not supplied is left
unchanged, so "explicitly zero" and "not supplied" can never be confused.
Supplied fields are read from ``model_fields_set``.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from ..core.constants import MAX_DAY, MAX_PAIR, MIN_DAY, MIN_PAIR
from ..core.enums import WeekType
from ._strict_base import StrictModel, StrictRequestModel

# Fields that may not be supplied as null on update
_NON_NULLABLE_UPDATE_FIELDS = (
    "day",
    "number_of_pair",
    "subject",
    "hours_of_subject",
    "has_consultation",
    "is_lecture",
    "week_type",
    "teacher_ids",
    "group_ids",
)


def _dedupe(ids: List[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for raw in ids:
        value = raw.strip()
        if not value:
            raise ValueError("identifiers must not be empty")
        seen.setdefault(value, None)
    return list(seen)


class LessonCreate(StrictRequestModel):
    """Create a lesson in one slot with its teachers and groups."""

    day: int = Field(..., ge=MIN_DAY, le=MAX_DAY, description="Day of week, 1 = Monday")
    number_of_pair: int = Field(..., ge=MIN_PAIR, le=MAX_PAIR, description="Pair within the day")
    subject: str = Field(..., min_length=1, max_length=255)
    hours_of_subject: int = Field(..., ge=1)
    has_consultation: bool = False
    hours_of_consultation: Optional[int] = Field(None, ge=1)
    is_lecture: bool = False
    week_type: WeekType = WeekType.ALWAYS
    teacher_ids: List[str] = Field(..., min_length=1)
    group_ids: List[str] = Field(..., min_length=1)

    @field_validator("teacher_ids", "group_ids")
    @classmethod
    def _unique_ids(cls, value: List[str]) -> List[str]:
        return _dedupe(value)

    @model_validator(mode="after")
    def _consultation_hours_required(self) -> "LessonCreate":
        if self.has_consultation and self.hours_of_consultation is None:
            raise ValueError("hours_of_consultation must be at least 1 when has_consultation is set")
        return self


class LessonUpdate(StrictRequestModel):
    """Partial lesson update; unsupplied fields stay unchanged."""

    day: Optional[int] = Field(None, ge=MIN_DAY, le=MAX_DAY)
    number_of_pair: Optional[int] = Field(None, ge=MIN_PAIR, le=MAX_PAIR)
    subject: Optional[str] = Field(None, min_length=1, max_length=255)
    hours_of_subject: Optional[int] = Field(None, ge=1)
    has_consultation: Optional[bool] = None
    hours_of_consultation: Optional[int] = Field(None, ge=1)
    is_lecture: Optional[bool] = None
    week_type: Optional[WeekType] = None
    teacher_ids: Optional[List[str]] = Field(None, min_length=1)
    group_ids: Optional[List[str]] = Field(None, min_length=1)

    @field_validator("teacher_ids", "group_ids")
    @classmethod
    def _unique_ids(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return None if value is None else _dedupe(value)

    @model_validator(mode="after")
    def _no_explicit_nulls(self) -> "LessonUpdate":
        for name in _NON_NULLABLE_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null; omit it to leave it unchanged")
        return self

    def overrides(self) -> Dict[str, Any]:
        """Supplied fields only."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class LessonRead(StrictModel):
    """Snapshot of a lesson with its association ids."""

    id: str
    day: int
    number_of_pair: int
    subject: str
    hours_of_subject: int
    is_lecture: bool
    has_consultation: bool
    hours_of_consultation: Optional[int] = None
    week_type: WeekType
    group_ids: List[str]
    teacher_ids: List[str]
