"""Shared assertions over stored schedule state."""

from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from timetable.models.availability import FreeHour
from timetable.models.lesson import GroupLesson, Lesson, TeacherLesson


def slot_of(db: Session, teacher_id: str, day: int, pair: int) -> Optional[FreeHour]:
    return (
        db.query(FreeHour)
        .filter_by(teacher_id=teacher_id, day=day, number_of_pair=pair)
        .one_or_none()
    )


def ledger_snapshot(db: Session) -> Dict[Tuple[str, int, int], Tuple[bool, Optional[str]]]:
    db.expire_all()
    return {
        (slot.teacher_id, slot.day, slot.number_of_pair): (slot.is_free, slot.lesson_id)
        for slot in db.query(FreeHour).all()
    }


def assert_schedule_consistent(db: Session) -> None:
    """
    Check the cross-table invariants against the stored rows.

    A group attends at most one lesson per (day, pair), and a teacher slot
    is occupied exactly when one of the teacher's lessons sits in it.
    """
    db.expire_all()

    group_slots = set()
    for link, lesson in db.query(GroupLesson, Lesson).join(
        Lesson, GroupLesson.lesson_id == Lesson.id
    ):
        key = (link.group_id, lesson.day, lesson.number_of_pair)
        assert key not in group_slots, f"group double-booked: {key}"
        group_slots.add(key)

    taught: Dict[Tuple[str, int, int], str] = {}
    for link, lesson in db.query(TeacherLesson, Lesson).join(
        Lesson, TeacherLesson.lesson_id == Lesson.id
    ):
        key = (link.teacher_id, lesson.day, lesson.number_of_pair)
        assert key not in taught, f"teacher double-booked: {key}"
        taught[key] = lesson.id

    slots = {
        (slot.teacher_id, slot.day, slot.number_of_pair): slot for slot in db.query(FreeHour).all()
    }
    for key, slot in slots.items():
        if slot.is_free:
            assert slot.lesson_id is None
            assert key not in taught, f"slot free but taught: {key}"
        else:
            assert taught.get(key) == slot.lesson_id, f"slot holder mismatch: {key}"
    for key, lesson_id in taught.items():
        assert key in slots, f"taught without a slot: {key}"
        assert slots[key].lesson_id == lesson_id
