# timetable/schemas/roster.py
"""Group and teacher schemas."""

from typing import List, Optional

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel
from .availability import SlotRef


class GroupCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    course: int
    specialty: str = Field(..., min_length=1)


class GroupUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    course: Optional[int] = None
    specialty: Optional[str] = Field(None, min_length=1)


class GroupRead(StrictModel):
    id: str
    name: str
    course: int
    specialty: str


class TeacherCreate(StrictRequestModel):
    """
    New teacher.

    ``free_slots`` lists the slots the teacher can teach in; when omitted,
    every slot of the weekly grid starts free.
    """

    full_name: str = Field(..., min_length=1, max_length=255)
    position: str = Field(..., min_length=1)
    free_slots: Optional[List[SlotRef]] = None


class TeacherRead(StrictModel):
    id: str
    full_name: str
    position: str
