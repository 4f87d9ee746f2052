# tests/services/test_transactions.py
"""
Tests for atomicity of lesson mutations.

A failure after some writes have been flushed must leave the lesson, its
links and the availability ledger exactly as they were.
"""

import logging

import pytest
from sqlalchemy.exc import OperationalError

from timetable.core.exceptions import GroupConflictException, RepositoryException, ServiceException
from timetable.database import build_engine, build_session_factory, init_db
from timetable.models.lesson import GroupLesson, Lesson, TeacherLesson
from timetable.schemas.lesson import LessonUpdate
from timetable.schemas.roster import GroupCreate, TeacherCreate
from timetable.services.lesson_service import LessonService
from timetable.services.roster_service import RosterService

from tests.helpers import assert_schedule_consistent, ledger_snapshot, slot_of


def _fail_on_call(monkeypatch, target, name, call_number, exc):
    """Patch ``target.name`` to raise ``exc`` on its ``call_number``-th call."""
    original = getattr(target, name)
    calls = {"count": 0}

    def _wrapped(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == call_number:
            raise exc
        return original(*args, **kwargs)

    monkeypatch.setattr(target, name, _wrapped)


class TestCreateRollback:
    def test_failure_while_occupying_rolls_back_everything(
        self, db, monkeypatch, lesson_service, lesson_payload, g1, teacher_a, teacher_b
    ):
        before = ledger_snapshot(db)
        _fail_on_call(monkeypatch, lesson_service.ledger, "occupy", 2, RuntimeError("disk full"))

        with pytest.raises(RuntimeError, match="disk full"):
            lesson_service.create_lesson(lesson_payload([g1.id], [teacher_a.id, teacher_b.id]))

        assert ledger_snapshot(db) == before
        assert db.query(Lesson).count() == 0
        assert db.query(GroupLesson).count() == 0
        assert db.query(TeacherLesson).count() == 0

    def test_store_error_becomes_service_exception(
        self, db, monkeypatch, lesson_service, lesson_payload, g1, teacher_a
    ):
        error = OperationalError("INSERT", {}, Exception("could not serialize access"))
        _fail_on_call(monkeypatch, lesson_service.repository, "replace_teacher_links", 1, error)

        with pytest.raises(ServiceException) as exc_info:
            lesson_service.create_lesson(lesson_payload([g1.id], [teacher_a.id]))

        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert db.query(Lesson).count() == 0
        assert slot_of(db, teacher_a.id, 1, 1).is_free is True

    def test_failed_link_write_becomes_service_exception(
        self, db, monkeypatch, lesson_service, lesson_payload, g1, teacher_a
    ):
        def _locked(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "add_all", _locked)

        with pytest.raises(ServiceException) as exc_info:
            lesson_service.create_lesson(lesson_payload([g1.id], [teacher_a.id]))

        assert "group links" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RepositoryException)
        assert isinstance(exc_info.value.__cause__.__cause__, OperationalError)
        assert exc_info.value.to_dict()["code"] == "ServiceException"
        monkeypatch.undo()
        assert db.query(Lesson).count() == 0
        assert slot_of(db, teacher_a.id, 1, 1).is_free is True

    def test_failure_is_recorded_in_metrics(
        self, monkeypatch, lesson_service, lesson_payload, g1, teacher_a
    ):
        _fail_on_call(monkeypatch, lesson_service.ledger, "occupy", 1, RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            lesson_service.create_lesson(lesson_payload([g1.id], [teacher_a.id]))

        metrics = lesson_service.get_metrics()["create_lesson"]
        assert metrics["failure_count"] == 1
        assert metrics["success_rate"] == 0.0


class TestUpdateRollback:
    def test_failure_after_release_restores_old_slot(
        self, db, monkeypatch, lesson_service, lesson_payload, g1, teacher_a, teacher_b
    ):
        lesson = lesson_service.create_lesson(lesson_payload([g1.id], [teacher_a.id]))
        before = ledger_snapshot(db)
        _fail_on_call(monkeypatch, lesson_service.ledger, "occupy", 1, RuntimeError("crash"))

        with pytest.raises(RuntimeError):
            lesson_service.update_lesson(
                lesson.id, LessonUpdate(day=2, teacher_ids=[teacher_b.id])
            )

        assert ledger_snapshot(db) == before
        db.expire_all()
        reloaded = lesson_service.get_lesson(lesson.id)
        assert reloaded.day == 1
        assert reloaded.teacher_ids == [teacher_a.id]
        assert_schedule_consistent(db)


class TestDeleteRollback:
    def test_failure_while_deleting_keeps_lesson_booked(
        self, db, monkeypatch, lesson_service, lesson_payload, g1, teacher_a
    ):
        lesson = lesson_service.create_lesson(lesson_payload([g1.id], [teacher_a.id]))
        _fail_on_call(
            monkeypatch, lesson_service.repository, "delete_lessons", 1, RuntimeError("crash")
        )

        with pytest.raises(RuntimeError):
            lesson_service.delete_lesson(lesson.id, "yes")

        assert db.query(Lesson).count() == 1
        assert slot_of(db, teacher_a.id, 1, 1).lesson_id == lesson.id
        assert db.query(GroupLesson).filter_by(lesson_id=lesson.id).count() == 1
        assert_schedule_consistent(db)


class TestOperationLogging:
    def test_create_logs_operation_context(
        self, caplog, lesson_service, lesson_payload, g1, teacher_a
    ):
        with caplog.at_level(logging.INFO, logger="LessonService"):
            lesson_service.create_lesson(lesson_payload([g1.id], [teacher_a.id]))

        records = [r for r in caplog.records if getattr(r, "operation", None) == "create_lesson"]
        assert records
        assert records[0].group_ids == [g1.id]


class TestConcurrentCreates:
    """Two sessions on one file-backed store contend for the same group slot."""

    @pytest.fixture
    def file_engine(self, tmp_path):
        engine = build_engine(
            f"sqlite+pysqlite:///{tmp_path / 'timetable.db'}", echo=False, busy_timeout=0.05
        )
        init_db(engine)
        yield engine
        engine.dispose()

    def test_second_writer_waits_until_conflict_check_commits(
        self, file_engine, monkeypatch, reference_data, lesson_payload
    ):
        factory = build_session_factory(file_engine)
        first, second = factory(), factory()
        try:
            roster = RosterService(first, reference_data=reference_data)
            group = roster.create_group(
                GroupCreate(name="CS-11", course=1, specialty="Computer Science")
            )
            teacher_a = roster.create_teacher(
                TeacherCreate(full_name="Ivanov I. I.", position="Professor")
            )
            teacher_b = roster.create_teacher(
                TeacherCreate(full_name="Petrov P. P.", position="Professor")
            )

            first_service = LessonService(first)
            second_service = LessonService(second)
            interleaved = []
            check = first_service.conflict_checker.check_group_conflict

            def _check_then_interleave(*args, **kwargs):
                result = check(*args, **kwargs)
                try:
                    second_service.create_lesson(lesson_payload([group.id], [teacher_b.id]))
                except ServiceException as exc:
                    interleaved.append(exc)
                return result

            monkeypatch.setattr(
                first_service.conflict_checker, "check_group_conflict", _check_then_interleave
            )

            first_service.create_lesson(lesson_payload([group.id], [teacher_a.id]))

            assert len(interleaved) == 1
            assert "locked" in interleaved[0].message

            with pytest.raises(GroupConflictException):
                second_service.create_lesson(lesson_payload([group.id], [teacher_b.id]))

            assert second.query(GroupLesson).filter_by(group_id=group.id).count() == 1
            assert_schedule_consistent(second)
        finally:
            first.close()
            second.close()
