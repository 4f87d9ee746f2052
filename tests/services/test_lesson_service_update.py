# tests/services/test_lesson_service_update.py
"""
Tests for LessonService.update_lesson.

Unsupplied fields stay unchanged; supplied fields equal to the current
value do not count as changes.
"""

import pytest

from timetable.core.enums import WeekType
from timetable.core.exceptions import (
    GroupConflictException,
    NotFoundException,
    TeacherUnavailableException,
    ValidationException,
)
from timetable.models.lesson import GroupLesson, TeacherLesson
from timetable.schemas.lesson import LessonUpdate

from tests.helpers import assert_schedule_consistent, ledger_snapshot, slot_of


@pytest.fixture
def lesson(lesson_service, lesson_payload, g1, teacher_a):
    return lesson_service.create_lesson(lesson_payload([g1.id], [teacher_a.id], day=1, pair=1))


class TestNoOpUpdates:
    def test_empty_update_changes_nothing(self, db, lesson_service, lesson):
        before = ledger_snapshot(db)

        result = lesson_service.update_lesson(lesson.id, LessonUpdate())

        assert result.id == lesson.id
        assert (result.day, result.number_of_pair, result.subject) == (1, 1, "Algorithms")
        assert ledger_snapshot(db) == before

    def test_same_values_are_not_changes(self, db, lesson_service, lesson, g1, teacher_a):
        before = ledger_snapshot(db)

        lesson_service.update_lesson(
            lesson.id,
            LessonUpdate(day=1, number_of_pair=1, group_ids=[g1.id], teacher_ids=[teacher_a.id]),
        )

        assert ledger_snapshot(db) == before
        assert db.query(GroupLesson).filter_by(lesson_id=lesson.id).count() == 1

    def test_unknown_lesson(self, lesson_service):
        with pytest.raises(NotFoundException, match="nope"):
            lesson_service.update_lesson("nope", LessonUpdate(subject="Physics"))


class TestScalarUpdates:
    def test_scalar_fields_applied(self, db, lesson_service, lesson):
        before = ledger_snapshot(db)

        result = lesson_service.update_lesson(
            lesson.id,
            LessonUpdate(
                subject="Data Structures",
                hours_of_subject=32,
                is_lecture=True,
                week_type=WeekType.EVEN,
            ),
        )

        assert result.subject == "Data Structures"
        assert result.hours_of_subject == 32
        assert result.is_lecture is True
        assert result.week_type is WeekType.EVEN
        # No slot movement without day/pair/teacher changes
        assert ledger_snapshot(db) == before

    def test_zero_like_values_are_real_overrides(self, lesson_service, lesson_payload, g2, teacher_b):
        lesson = lesson_service.create_lesson(
            lesson_payload([g2.id], [teacher_b.id], is_lecture=True, week_type=WeekType.ODD)
        )

        result = lesson_service.update_lesson(
            lesson.id, LessonUpdate(is_lecture=False, week_type=WeekType.ALWAYS)
        )

        assert result.is_lecture is False
        assert result.is_even_week is None

    def test_enabling_consultation_requires_hours(self, db, lesson_service, lesson):
        with pytest.raises(ValidationException, match="hours_of_consultation"):
            lesson_service.update_lesson(lesson.id, LessonUpdate(has_consultation=True))

        db.expire_all()
        assert lesson_service.get_lesson(lesson.id).has_consultation is False

    def test_enabling_consultation_with_hours(self, lesson_service, lesson):
        result = lesson_service.update_lesson(
            lesson.id, LessonUpdate(has_consultation=True, hours_of_consultation=6)
        )
        assert result.has_consultation is True
        assert result.consultation_hours == 6

    def test_clearing_hours_of_active_consultation_rejected(
        self, lesson_service, lesson_payload, g2, teacher_b
    ):
        lesson = lesson_service.create_lesson(
            lesson_payload([g2.id], [teacher_b.id], has_consultation=True, hours_of_consultation=2)
        )

        with pytest.raises(ValidationException):
            lesson_service.update_lesson(lesson.id, LessonUpdate(hours_of_consultation=None))


class TestSlotMoves:
    def test_move_releases_old_and_occupies_new_slot(self, db, lesson_service, lesson, teacher_a):
        result = lesson_service.update_lesson(lesson.id, LessonUpdate(day=3, number_of_pair=4))

        assert (result.day, result.number_of_pair) == (3, 4)
        old_slot = slot_of(db, teacher_a.id, 1, 1)
        new_slot = slot_of(db, teacher_a.id, 3, 4)
        assert old_slot.is_free is True and old_slot.lesson_id is None
        assert new_slot.is_free is False and new_slot.lesson_id == lesson.id
        assert_schedule_consistent(db)

    def test_update_keeping_its_own_slot_succeeds(
        self, db, lesson_service, lesson, g1, g2, teacher_a, teacher_b
    ):
        # g1 and teacher_a are already booked at (1, 1) by this very lesson
        result = lesson_service.update_lesson(
            lesson.id,
            LessonUpdate(group_ids=[g1.id, g2.id], teacher_ids=[teacher_a.id, teacher_b.id]),
        )

        assert sorted(result.group_ids) == sorted([g1.id, g2.id])
        assert slot_of(db, teacher_a.id, 1, 1).lesson_id == lesson.id
        assert slot_of(db, teacher_b.id, 1, 1).lesson_id == lesson.id
        assert_schedule_consistent(db)

    def test_move_into_group_conflict_rejected(
        self, db, lesson_service, lesson_payload, lesson, g1, teacher_a, teacher_b
    ):
        lesson_service.create_lesson(lesson_payload([g1.id], [teacher_b.id], day=2, pair=2))
        before = ledger_snapshot(db)

        with pytest.raises(GroupConflictException) as exc_info:
            lesson_service.update_lesson(lesson.id, LessonUpdate(day=2, number_of_pair=2))

        assert exc_info.value.details["group_name"] == "CS-11"
        assert ledger_snapshot(db) == before
        db.expire_all()
        refreshed = lesson_service.get_lesson(lesson.id)
        assert (refreshed.day, refreshed.number_of_pair) == (1, 1)

    def test_move_to_slot_teacher_lacks_rejected(
        self, db, lesson_service, lesson_payload, g2, make_teacher
    ):
        part_timer = make_teacher("Kovalenko K. K.", free_slots=[(1, 1)])
        lesson = lesson_service.create_lesson(lesson_payload([g2.id], [part_timer.id]))
        before = ledger_snapshot(db)

        with pytest.raises(TeacherUnavailableException, match="Kovalenko K. K."):
            lesson_service.update_lesson(lesson.id, LessonUpdate(day=5))

        assert ledger_snapshot(db) == before
        assert_schedule_consistent(db)


class TestSetReplacement:
    def test_teacher_set_replaced(self, db, lesson_service, lesson, teacher_a, teacher_b):
        result = lesson_service.update_lesson(lesson.id, LessonUpdate(teacher_ids=[teacher_b.id]))

        assert result.teacher_ids == [teacher_b.id]
        assert slot_of(db, teacher_a.id, 1, 1).is_free is True
        assert slot_of(db, teacher_b.id, 1, 1).lesson_id == lesson.id
        assert db.query(TeacherLesson).filter_by(lesson_id=lesson.id).count() == 1
        assert_schedule_consistent(db)

    def test_teacher_set_extended(self, db, lesson_service, lesson, teacher_a, teacher_b):
        result = lesson_service.update_lesson(
            lesson.id, LessonUpdate(teacher_ids=[teacher_b.id, teacher_a.id])
        )

        assert sorted(result.teacher_ids) == sorted([teacher_a.id, teacher_b.id])
        assert slot_of(db, teacher_a.id, 1, 1).lesson_id == lesson.id
        assert slot_of(db, teacher_b.id, 1, 1).lesson_id == lesson.id
        assert_schedule_consistent(db)

    def test_busy_new_teacher_rejected(
        self, db, lesson_service, lesson_payload, lesson, g2, teacher_a, teacher_b
    ):
        other = lesson_service.create_lesson(lesson_payload([g2.id], [teacher_b.id]))
        before = ledger_snapshot(db)

        with pytest.raises(TeacherUnavailableException) as exc_info:
            lesson_service.update_lesson(lesson.id, LessonUpdate(teacher_ids=[teacher_b.id]))

        assert exc_info.value.details["teacher_id"] == teacher_b.id
        assert ledger_snapshot(db) == before
        assert slot_of(db, teacher_b.id, 1, 1).lesson_id == other.id
        assert db.query(TeacherLesson).filter_by(lesson_id=lesson.id, teacher_id=teacher_a.id).count() == 1

    def test_group_set_replaced(self, db, lesson_service, lesson, g1, g2):
        result = lesson_service.update_lesson(lesson.id, LessonUpdate(group_ids=[g1.id, g2.id]))

        assert sorted(result.group_ids) == sorted([g1.id, g2.id])
        assert db.query(GroupLesson).filter_by(lesson_id=lesson.id).count() == 2
        assert_schedule_consistent(db)

    def test_group_set_with_busy_group_rejected(
        self, db, lesson_service, lesson_payload, lesson, g2, teacher_b, g1
    ):
        lesson_service.create_lesson(lesson_payload([g2.id], [teacher_b.id]))

        with pytest.raises(GroupConflictException) as exc_info:
            lesson_service.update_lesson(lesson.id, LessonUpdate(group_ids=[g1.id, g2.id]))

        assert exc_info.value.details["group_id"] == g2.id
        assert db.query(GroupLesson).filter_by(lesson_id=lesson.id).count() == 1

    def test_mixed_cohort_rejected(self, db, lesson_service, lesson, g1, g_other):
        with pytest.raises(ValidationException) as exc_info:
            lesson_service.update_lesson(lesson.id, LessonUpdate(group_ids=[g1.id, g_other.id]))

        assert exc_info.value.code == "MIXED_COHORT"
        assert db.query(GroupLesson).filter_by(lesson_id=lesson.id).count() == 1

    def test_unknown_teacher_in_new_set(self, lesson_service, lesson):
        with pytest.raises(NotFoundException):
            lesson_service.update_lesson(lesson.id, LessonUpdate(teacher_ids=["ghost"]))

    def test_move_and_swap_teachers_together(self, db, lesson_service, lesson, teacher_a, teacher_b):
        lesson_service.update_lesson(
            lesson.id, LessonUpdate(day=2, number_of_pair=3, teacher_ids=[teacher_b.id])
        )

        assert slot_of(db, teacher_a.id, 1, 1).is_free is True
        assert slot_of(db, teacher_a.id, 2, 3).is_free is True
        assert slot_of(db, teacher_b.id, 2, 3).lesson_id == lesson.id
        assert_schedule_consistent(db)
