# timetable/core/exceptions.py
"""
Domain-specific exceptions for the timetable engine.

These exceptions provide clear, schedule-focused error messages naming the
offending field or entity, so the calling collaborator can report them
verbatim.
"""

from typing import Any, Dict, Optional

from .constants import DAY_NAMES


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Structured failure payload for the caller."""
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Raised when input or merged state fails validation."""


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""


class ServiceException(DomainException):
    """Raised when a service operation fails."""


# Specific schedule exceptions


def _slot_label(day: int, pair: int) -> str:
    return f"{DAY_NAMES.get(day, f'day {day}')}, pair {pair}"


class GroupConflictException(ConflictException):
    """Raised when a group already has a lesson in the requested slot."""

    def __init__(self, group_id: str, day: int, pair: int, group_name: Optional[str] = None):
        label = group_name or group_id
        super().__init__(
            message=f"Group {label} already has a lesson on {_slot_label(day, pair)}",
            code="GROUP_CONFLICT",
            details={"group_id": group_id, "group_name": group_name, "day": day, "pair": pair},
        )


class TeacherUnavailableException(ConflictException):
    """Raised when a teacher has no free slot at the requested time."""

    def __init__(
        self, teacher_id: str, day: int, pair: int, teacher_name: Optional[str] = None
    ):
        label = teacher_name or teacher_id
        super().__init__(
            message=f"Teacher {label} is not available on {_slot_label(day, pair)}",
            code="TEACHER_UNAVAILABLE",
            details={
                "teacher_id": teacher_id,
                "teacher_name": teacher_name,
                "day": day,
                "pair": pair,
            },
        )


class SlotOccupiedException(ConflictException):
    """Raised when an availability slot is already held by a lesson."""

    def __init__(self, teacher_id: str, day: int, pair: int, lesson_id: Optional[str]):
        super().__init__(
            message=(
                f"Slot {_slot_label(day, pair)} of teacher {teacher_id} "
                f"is occupied by lesson {lesson_id}"
            ),
            code="SLOT_OCCUPIED",
            details={"teacher_id": teacher_id, "day": day, "pair": pair, "lesson_id": lesson_id},
        )


class DuplicateNameException(ConflictException):
    """Raised when a unique name is already taken."""

    def __init__(self, entity: str, name: str):
        super().__init__(
            message=f"{entity} with name '{name}' already exists",
            code="DUPLICATE_NAME",
            details={"entity": entity, "name": name},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
