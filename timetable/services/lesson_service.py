# timetable/services/lesson_service.py
"""
Lesson Service for the timetable engine

Creates, updates and deletes lessons while keeping three invariants true
after every operation:
- no group holds two lessons in the same (day, pair) slot
- a teacher is only assigned to a slot marked free for them
- teacher availability slots point at exactly the lessons that hold them

Every public mutation runs its state load, conflict checks and writes in
one transaction; any failure rolls everything back. Association rows are
replaced wholesale (delete, then insert the full set) whenever a set
changes.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.constants import ANY, MAX_COURSE, MAX_DAY
from ..core.exceptions import (
    BusinessRuleException,
    GroupConflictException,
    NotFoundException,
    TeacherUnavailableException,
    ValidationException,
)
from ..core.week_parity import occurs_on
from ..models.group import Group
from ..models.lesson import Lesson
from ..models.teacher import Teacher
from ..repositories.factory import RepositoryFactory
from ..repositories.lesson_repository import LessonRepository
from ..schemas.lesson import LessonCreate, LessonRead, LessonUpdate
from .availability_ledger import AvailabilityLedger
from .base import BaseService
from .conflict_checker import ConflictChecker
from .confirmation import require_confirmation, resolve_token

logger = logging.getLogger(__name__)

# Update field -> Lesson column
_SCALAR_FIELDS = {
    "day": "day",
    "number_of_pair": "number_of_pair",
    "subject": "subject",
    "hours_of_subject": "hours_of_subject",
    "has_consultation": "has_consultation",
    "hours_of_consultation": "hours_of_consultation",
    "is_lecture": "is_lecture",
    "week_type": "is_even_week",
}


class LessonService(BaseService):
    """
    Service layer for lesson mutations.

    Coordinates the lesson record, its group/teacher links and the
    availability ledger as one atomic unit.
    """

    repository: LessonRepository

    def __init__(
        self,
        db: Session,
        repository: Optional[LessonRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        ledger: Optional[AvailabilityLedger] = None,
        confirmation_token: Optional[str] = None,
        reference_monday: Optional[date] = None,
    ):
        """
        Initialize lesson service.

        Args:
            db: Database session
            repository: Optional LessonRepository instance
            conflict_checker: Optional ConflictChecker instance
            ledger: Optional AvailabilityLedger instance
            confirmation_token: Token required by delete_lesson (defaults to settings)
            reference_monday: Monday of a known even week (defaults to settings)
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_lesson_repository(db)
        self.group_repository = RepositoryFactory.create_group_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.ledger = ledger or AvailabilityLedger(db)
        self.confirmation_token = resolve_token(confirmation_token)
        self.reference_monday = reference_monday

    # Mutations

    @BaseService.measure_operation("create_lesson")
    def create_lesson(self, lesson_data: LessonCreate) -> Lesson:
        """
        Create a lesson and occupy its teachers' slots.

        Args:
            lesson_data: Validated creation data

        Returns:
            The created lesson with its links

        Raises:
            NotFoundException: A referenced group or teacher does not exist
            ValidationException: The groups mix courses or specialties
            GroupConflictException: A group already has a lesson in the slot
            TeacherUnavailableException: A teacher is not free in the slot
        """
        day, pair = lesson_data.day, lesson_data.number_of_pair
        self.log_operation(
            "create_lesson",
            day=day,
            pair=pair,
            subject=lesson_data.subject,
            group_ids=lesson_data.group_ids,
            teacher_ids=lesson_data.teacher_ids,
        )

        with self.transaction():
            groups = self._load_groups(lesson_data.group_ids)
            teachers = self._load_teachers(lesson_data.teacher_ids)
            self._validate_cohort(groups)
            self._ensure_no_group_conflict(day, pair, groups)
            self._ensure_teachers_available(day, pair, teachers)

            lesson = self.repository.create(
                day=day,
                number_of_pair=pair,
                subject=lesson_data.subject,
                hours_of_subject=lesson_data.hours_of_subject,
                is_lecture=lesson_data.is_lecture,
                has_consultation=lesson_data.has_consultation,
                hours_of_consultation=lesson_data.hours_of_consultation,
                is_even_week=lesson_data.week_type.to_flag(),
            )
            self.repository.replace_group_links(lesson, [group.id for group in groups])
            self.repository.replace_teacher_links(lesson, [teacher.id for teacher in teachers])
            for teacher in teachers:
                self.ledger.occupy(teacher.id, day, pair, lesson.id)

        self.logger.info(f"Created lesson {lesson.id} on day {day}, pair {pair}")
        return lesson

    @BaseService.measure_operation("update_lesson")
    def update_lesson(self, lesson_id: str, update_data: LessonUpdate) -> Lesson:
        """
        Apply a partial update to a lesson.

        Only supplied fields that differ from the current values count as
        changes; group and teacher lists compare as sets. An update with no
        changes returns the lesson untouched.

        Args:
            lesson_id: Lesson to update
            update_data: Supplied overrides

        Returns:
            The updated lesson

        Raises:
            NotFoundException: Lesson, group or teacher not found
            ValidationException: Merged consultation hours invalid or mixed cohorts
            GroupConflictException: A final group is booked elsewhere in the final slot
            TeacherUnavailableException: A final teacher is not free in the final slot
        """
        overrides = update_data.overrides()
        self.log_operation("update_lesson", lesson_id=lesson_id, fields=sorted(overrides))

        with self.transaction():
            lesson = self._get_lesson_or_raise(lesson_id)

            changes = self._scalar_changes(lesson, overrides)
            self._validate_consultation(lesson, changes)

            current_group_ids = lesson.group_ids
            current_teacher_ids = lesson.teacher_ids
            new_group_ids = overrides.get("group_ids")
            new_teacher_ids = overrides.get("teacher_ids")
            groups_changed = new_group_ids is not None and set(new_group_ids) != set(
                current_group_ids
            )
            teachers_changed = new_teacher_ids is not None and set(new_teacher_ids) != set(
                current_teacher_ids
            )
            slot_changed = "day" in changes or "number_of_pair" in changes

            if not changes and not groups_changed and not teachers_changed:
                self.logger.info(f"Update of lesson {lesson_id} changes nothing")
                return lesson

            final_day = changes.get("day", lesson.day)
            final_pair = changes.get("number_of_pair", lesson.number_of_pair)

            if new_group_ids is not None:
                groups = self._load_groups(new_group_ids)
                self._validate_cohort(groups)
            if groups_changed or slot_changed:
                final_groups = (
                    groups if groups_changed else self._load_groups(current_group_ids)
                )
                self._ensure_no_group_conflict(
                    final_day, final_pair, final_groups, exclude_lesson_id=lesson.id
                )

            final_teacher_ids = new_teacher_ids if teachers_changed else current_teacher_ids
            rebook_teachers = slot_changed or teachers_changed
            if rebook_teachers:
                final_teachers = self._load_teachers(final_teacher_ids)
                self._ensure_teachers_available(
                    final_day, final_pair, final_teachers, exclude_lesson_id=lesson.id
                )

            # Checks passed: write
            if rebook_teachers:
                self.ledger.release_lesson(lesson.id)
            for column, value in changes.items():
                setattr(lesson, column, value)
            self.repository.flush()
            if groups_changed:
                self.repository.replace_group_links(lesson, [group.id for group in groups])
            if teachers_changed:
                self.repository.replace_teacher_links(
                    lesson, [teacher.id for teacher in final_teachers]
                )
            if rebook_teachers:
                for teacher in final_teachers:
                    self.ledger.occupy(teacher.id, final_day, final_pair, lesson.id)

        self.logger.info(
            f"Updated lesson {lesson_id}: fields={sorted(changes)} "
            f"groups_changed={groups_changed} teachers_changed={teachers_changed}"
        )
        return lesson

    @BaseService.measure_operation("delete_lesson")
    def delete_lesson(self, lesson_id: str, confirmation: str) -> LessonRead:
        """
        Delete one lesson after explicit confirmation.

        Releases the lesson's availability slots and removes its links
        before the lesson itself.

        Args:
            lesson_id: Lesson to delete
            confirmation: Must equal the configured affirmative token

        Returns:
            Snapshot of the deleted lesson
        """
        require_confirmation(confirmation, self.confirmation_token, lesson_id=lesson_id)
        self.log_operation("delete_lesson", lesson_id=lesson_id)

        with self.transaction():
            lesson = self._get_lesson_or_raise(lesson_id)
            snapshot = LessonRead.model_validate(lesson)
            self._remove_lessons([lesson])

        self.logger.info(f"Deleted lesson {lesson_id}")
        return snapshot

    @BaseService.measure_operation("delete_lessons")
    def delete_lessons(self, course: int = ANY, day: int = ANY) -> int:
        """
        Delete every lesson matching the filters.

        Args:
            course: Lessons with at least one group of this course (0 = any)
            day: Lessons on this day (0 = any)

        Returns:
            Number of deleted lessons

        Raises:
            ValidationException: Filter out of range
            BusinessRuleException: No lesson matched
        """
        if course not in range(ANY, MAX_COURSE + 1):
            raise ValidationException(
                f"Course filter must be between 0 and {MAX_COURSE}, got {course}",
                details={"field": "course", "value": course},
            )
        if day not in range(ANY, MAX_DAY + 1):
            raise ValidationException(
                f"Day filter must be between 0 and {MAX_DAY}, got {day}",
                details={"field": "day", "value": day},
            )
        self.log_operation("delete_lessons", course=course, day=day)

        with self.transaction():
            lessons = self.repository.find_for_bulk_delete(course=course or None, day=day or None)
            if not lessons:
                raise BusinessRuleException(
                    "No lessons matched the given filters",
                    code="NOTHING_MATCHED",
                    details={"course": course, "day": day},
                )
            deleted = self._remove_lessons(lessons)

        self.logger.info(f"Bulk deleted {deleted} lessons (course={course}, day={day})")
        return deleted

    # Projections

    def get_lesson(self, lesson_id: str) -> Lesson:
        return self._get_lesson_or_raise(lesson_id)

    def lessons_filtered(self, day: int = ANY, pair: int = ANY) -> List[Lesson]:
        return self.repository.get_filtered(day=day or None, pair=pair or None)

    def lessons_by_teacher(self, full_name: str) -> List[Lesson]:
        if self.teacher_repository.get_by_name(full_name) is None:
            raise NotFoundException(f"Teacher '{full_name}' not found")
        return self.repository.get_by_teacher_name(full_name)

    def lessons_by_group(self, group_name: str) -> List[Lesson]:
        self._require_group_name(group_name)
        return self.repository.get_by_group_name(group_name)

    def find_lesson_by_time_and_group(self, group_name: str, day: int, pair: int) -> Lesson:
        self._require_group_name(group_name)
        lesson = self.repository.find_by_time_and_group(group_name, day, pair)
        if lesson is None:
            raise NotFoundException(
                f"Group '{group_name}' has no lesson on day {day}, pair {pair}",
                details={"group_name": group_name, "day": day, "pair": pair},
            )
        return lesson

    def lessons_on_date(self, target: date, group_id: Optional[str] = None) -> List[Lesson]:
        """Lessons that take place on a calendar date, honoring week parity."""
        weekday = target.isoweekday()
        if weekday > MAX_DAY:
            return []
        if group_id:
            lessons = self.repository.get_by_group(group_id=group_id, day=weekday)
        else:
            lessons = self.repository.get_filtered(day=weekday)
        return [
            lesson
            for lesson in lessons
            if occurs_on(lesson.is_even_week, target, self.reference_monday)
        ]

    # Helpers

    def _get_lesson_or_raise(self, lesson_id: str) -> Lesson:
        lesson = self.repository.get_by_id(lesson_id)
        if lesson is None:
            raise NotFoundException(
                f"Lesson {lesson_id} not found", details={"lesson_id": lesson_id}
            )
        return lesson

    def _require_group_name(self, group_name: str) -> None:
        if self.group_repository.get_by_name(group_name) is None:
            raise NotFoundException(
                f"Group '{group_name}' not found", details={"group_name": group_name}
            )

    def _load_groups(self, group_ids: Sequence[str]) -> List[Group]:
        found = {group.id: group for group in self.group_repository.get_by_ids(list(group_ids))}
        for group_id in group_ids:
            if group_id not in found:
                raise NotFoundException(
                    f"Group {group_id} not found", details={"group_id": group_id}
                )
        return [found[group_id] for group_id in group_ids]

    def _load_teachers(self, teacher_ids: Sequence[str]) -> List[Teacher]:
        found = {
            teacher.id: teacher for teacher in self.teacher_repository.get_by_ids(list(teacher_ids))
        }
        for teacher_id in teacher_ids:
            if teacher_id not in found:
                raise NotFoundException(
                    f"Teacher {teacher_id} not found", details={"teacher_id": teacher_id}
                )
        return [found[teacher_id] for teacher_id in teacher_ids]

    @staticmethod
    def _validate_cohort(groups: Sequence[Group]) -> None:
        """All groups of one lesson must share course and specialty."""
        if len(groups) < 2:
            return
        first = groups[0]
        for group in groups[1:]:
            if group.course != first.course or group.specialty != first.specialty:
                raise ValidationException(
                    f"Groups {first.name} and {group.name} differ in course or specialty "
                    "and cannot share a lesson",
                    code="MIXED_COHORT",
                    details={"group_ids": [first.id, group.id]},
                )

    def _ensure_no_group_conflict(
        self,
        day: int,
        pair: int,
        groups: Sequence[Group],
        exclude_lesson_id: Optional[str] = None,
    ) -> None:
        conflicting = self.conflict_checker.check_group_conflict(
            day, pair, [group.id for group in groups], exclude_lesson_id
        )
        if conflicting is not None:
            name = next(group.name for group in groups if group.id == conflicting)
            raise GroupConflictException(conflicting, day, pair, group_name=name)

    def _ensure_teachers_available(
        self,
        day: int,
        pair: int,
        teachers: Sequence[Teacher],
        exclude_lesson_id: Optional[str] = None,
    ) -> None:
        unavailable = self.conflict_checker.check_teacher_availability(
            day, pair, [teacher.id for teacher in teachers], exclude_lesson_id
        )
        if unavailable is not None:
            name = next(teacher.full_name for teacher in teachers if teacher.id == unavailable)
            raise TeacherUnavailableException(unavailable, day, pair, teacher_name=name)

    @staticmethod
    def _scalar_changes(lesson: Lesson, overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Column -> new value for supplied fields that differ from the lesson."""
        changes: Dict[str, Any] = {}
        for field_name, column in _SCALAR_FIELDS.items():
            if field_name not in overrides:
                continue
            value = overrides[field_name]
            if field_name == "week_type":
                value = value.to_flag()
            if getattr(lesson, column) != value:
                changes[column] = value
        return changes

    @staticmethod
    def _validate_consultation(lesson: Lesson, changes: Dict[str, Any]) -> None:
        has_consultation = changes.get("has_consultation", lesson.has_consultation)
        hours = changes.get("hours_of_consultation", lesson.hours_of_consultation)
        if has_consultation and (hours is None or hours < 1):
            raise ValidationException(
                "hours_of_consultation must be at least 1 when the lesson has a consultation",
                details={"field": "hours_of_consultation", "value": hours},
            )

    def _remove_lessons(self, lessons: Sequence[Lesson]) -> int:
        """Release slots, drop links, then delete the lessons themselves."""
        lesson_ids = [lesson.id for lesson in lessons]
        released = self.ledger.release_lessons(lesson_ids)
        links = self.repository.delete_links_for_lessons(lesson_ids)
        deleted = self.repository.delete_lessons(lessons)
        self.logger.debug(
            f"Removed {deleted} lessons, {links} links, released {released} slots"
        )
        return deleted
