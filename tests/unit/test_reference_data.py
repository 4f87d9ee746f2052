# tests/unit/test_reference_data.py
"""
Tests for reference-set validation and configuration.
"""

from datetime import date

from pydantic import ValidationError
import pytest

from timetable.core.config import Settings
from timetable.core.exceptions import (
    GroupConflictException,
    SlotOccupiedException,
    ValidationException,
)
from timetable.core.reference_data import ReferenceData, validate_teacher_name


@pytest.fixture
def reference() -> ReferenceData:
    return ReferenceData(
        specialties=frozenset({"Physics"}),
        positions=frozenset({"Lecturer"}),
    )


class TestReferenceData:
    @pytest.mark.parametrize("course", [1, 2, 3, 4])
    def test_valid_courses(self, reference, course):
        assert reference.validate_course(course) == course

    @pytest.mark.parametrize("course", [0, 5, -1])
    def test_course_out_of_range(self, reference, course):
        with pytest.raises(ValidationException) as exc_info:
            reference.validate_course(course)
        assert exc_info.value.details == {"field": "course", "value": course}

    def test_substituted_specialties(self, reference):
        assert reference.validate_specialty(" Physics ") == "Physics"
        with pytest.raises(ValidationException, match="Unknown specialty 'Computer Science'"):
            reference.validate_specialty("Computer Science")

    def test_substituted_positions(self, reference):
        assert reference.validate_position("Lecturer") == "Lecturer"
        with pytest.raises(ValidationException, match="Unknown position"):
            reference.validate_position("Professor")

    def test_from_settings(self):
        cfg = Settings(specialties=["Biology"], positions=["Dean"])
        data = ReferenceData.from_settings(cfg)
        assert data.specialties == frozenset({"Biology"})
        assert data.positions == frozenset({"Dean"})
        assert data.courses == frozenset({1, 2, 3, 4})


class TestTeacherName:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Ivanov I. I.", "Ivanov I. I."),
            ("Ivanov I.I.", "Ivanov I.I."),
            ("  Smith-Jones   A.  B. ", "Smith-Jones A. B."),
            ("Шевченко Т. Г.", "Шевченко Т. Г."),
        ],
    )
    def test_accepts_surname_with_initials(self, raw, expected):
        assert validate_teacher_name(raw) == expected

    @pytest.mark.parametrize(
        "raw", ["ivanov I. I.", "Ivanov Ivan", "Ivanov I.", "Ivanov1 I. I.", "I. I. Ivanov"]
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValidationException) as exc_info:
            validate_teacher_name(raw)
        assert exc_info.value.details["field"] == "full_name"


class TestSettings:
    def test_reference_monday_must_be_monday(self):
        with pytest.raises(ValidationError):
            Settings(reference_even_monday=date(2025, 9, 2))

    def test_confirmation_token_normalized(self):
        assert Settings(delete_confirmation_token="  YES ").delete_confirmation_token == "yes"

    def test_confirmation_token_not_empty(self):
        with pytest.raises(ValidationError):
            Settings(delete_confirmation_token="   ")


class TestExceptionPayload:
    def test_group_conflict_names_group(self):
        exc = GroupConflictException("01ABC", 1, 2, group_name="CS-11")
        payload = exc.to_dict()
        assert payload["code"] == "GROUP_CONFLICT"
        assert "CS-11" in payload["message"]
        assert "Monday, pair 2" in payload["message"]
        assert payload["details"]["group_id"] == "01ABC"

    def test_slot_occupied_uses_day_name(self):
        exc = SlotOccupiedException("01TEACHER", 3, 4, "01LESSON")
        assert exc.message == "Slot Wednesday, pair 4 of teacher 01TEACHER is occupied by lesson 01LESSON"
        assert exc.to_dict()["details"]["lesson_id"] == "01LESSON"
