# timetable/core/reference_data.py
"""
Closed reference sets used to validate groups and teachers.

The sets are carried by an immutable ReferenceData value that services
receive explicitly, so alternate domains can be substituted without
touching module state.
"""

from dataclasses import dataclass, field
import re
from typing import FrozenSet, Optional

from .config import Settings, settings
from .constants import MAX_COURSE, MIN_COURSE
from .exceptions import ValidationException

# "Surname I. I." with an optional space between the initials
TEACHER_NAME_PATTERN = re.compile(r"^[^\W\d_][^\W\d_'\-]*(?:['\-][^\W\d_]+)* [^\W\d_]\. ?[^\W\d_]\.$")


@dataclass(frozen=True)
class ReferenceData:
    specialties: FrozenSet[str]
    positions: FrozenSet[str]
    courses: FrozenSet[int] = field(
        default_factory=lambda: frozenset(range(MIN_COURSE, MAX_COURSE + 1))
    )

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "ReferenceData":
        cfg = source or settings
        return cls(specialties=frozenset(cfg.specialties), positions=frozenset(cfg.positions))

    def validate_course(self, course: int) -> int:
        if course not in self.courses:
            raise ValidationException(
                f"Course must be one of {sorted(self.courses)}, got {course}",
                details={"field": "course", "value": course},
            )
        return course

    def validate_specialty(self, specialty: str) -> str:
        value = specialty.strip()
        if value not in self.specialties:
            raise ValidationException(
                f"Unknown specialty '{specialty}'. Allowed: {', '.join(sorted(self.specialties))}",
                details={"field": "specialty", "value": specialty},
            )
        return value

    def validate_position(self, position: str) -> str:
        value = position.strip()
        if value not in self.positions:
            raise ValidationException(
                f"Unknown position '{position}'. Allowed: {', '.join(sorted(self.positions))}",
                details={"field": "position", "value": position},
            )
        return value


def validate_teacher_name(full_name: str) -> str:
    """Normalize and check a "Surname I. I." teacher name."""
    value = " ".join(full_name.split())
    if not TEACHER_NAME_PATTERN.match(value) or not value[0].isupper():
        raise ValidationException(
            f"Teacher name '{full_name}' must look like 'Surname I. I.'",
            details={"field": "full_name", "value": full_name},
        )
    return value
