# timetable/core/enums.py
"""
Core enums for the timetable engine.
"""

from enum import Enum
from typing import Optional


class WeekType(str, Enum):
    """
    Week parity a lesson runs on.

    Persisted as a nullable boolean: NULL for every week, TRUE for even
    weeks only, FALSE for odd weeks only.
    """

    ALWAYS = "always"
    EVEN = "even"
    ODD = "odd"

    def to_flag(self) -> Optional[bool]:
        if self is WeekType.EVEN:
            return True
        if self is WeekType.ODD:
            return False
        return None

    @classmethod
    def from_flag(cls, flag: Optional[bool]) -> "WeekType":
        if flag is None:
            return cls.ALWAYS
        return cls.EVEN if flag else cls.ODD
