from datetime import date
from typing import Callable, Iterator, List, Optional

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from timetable.core.reference_data import ReferenceData
from timetable.database import Base, build_engine, build_session_factory, init_db
from timetable.models.group import Group
from timetable.models.teacher import Teacher
from timetable.schemas.lesson import LessonCreate
from timetable.schemas.roster import GroupCreate, TeacherCreate
from timetable.services.lesson_service import LessonService
from timetable.services.roster_service import RosterService
from timetable.services.teacher_availability_service import TeacherAvailabilityService

REFERENCE_MONDAY = date(2025, 9, 1)


@pytest.fixture(scope="function")
def engine() -> Iterator[Engine]:
    """
    Fresh in-memory database per test.

    Services commit and roll back on their own, so tests cannot share a
    savepoint-wrapped connection.
    """
    engine = build_engine("sqlite+pysqlite:///:memory:", echo=False)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine: Engine) -> Iterator[Session]:
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def reference_data() -> ReferenceData:
    return ReferenceData(
        specialties=frozenset({"Computer Science", "Software Engineering"}),
        positions=frozenset({"Assistant", "Professor"}),
    )


@pytest.fixture
def roster(db: Session, reference_data: ReferenceData) -> RosterService:
    return RosterService(db, reference_data=reference_data)


@pytest.fixture
def availability_service(db: Session) -> TeacherAvailabilityService:
    return TeacherAvailabilityService(db)


@pytest.fixture
def lesson_service(db: Session) -> LessonService:
    return LessonService(db, reference_monday=REFERENCE_MONDAY)


@pytest.fixture
def make_group(roster: RosterService) -> Callable[..., Group]:
    def _make(
        name: str, course: int = 1, specialty: str = "Computer Science"
    ) -> Group:
        return roster.create_group(GroupCreate(name=name, course=course, specialty=specialty))

    return _make


@pytest.fixture
def make_teacher(roster: RosterService) -> Callable[..., Teacher]:
    def _make(
        full_name: str, position: str = "Professor", free_slots: Optional[List[tuple]] = None
    ) -> Teacher:
        slots = None
        if free_slots is not None:
            slots = [{"day": day, "number_of_pair": pair} for day, pair in free_slots]
        return roster.create_teacher(
            TeacherCreate(full_name=full_name, position=position, free_slots=slots)
        )

    return _make


@pytest.fixture
def g1(make_group) -> Group:
    return make_group("CS-11")


@pytest.fixture
def g2(make_group) -> Group:
    return make_group("CS-12")


@pytest.fixture
def g_other(make_group) -> Group:
    return make_group("SE-21", course=2, specialty="Software Engineering")


@pytest.fixture
def teacher_a(make_teacher) -> Teacher:
    return make_teacher("Ivanov I. I.")


@pytest.fixture
def teacher_b(make_teacher) -> Teacher:
    return make_teacher("Petrov P. P.")


@pytest.fixture
def lesson_payload() -> Callable[..., LessonCreate]:
    """Build a LessonCreate with sensible defaults."""

    def _payload(group_ids, teacher_ids, day: int = 1, pair: int = 1, **overrides) -> LessonCreate:
        data = {
            "day": day,
            "number_of_pair": pair,
            "subject": "Algorithms",
            "hours_of_subject": 64,
            "teacher_ids": list(teacher_ids),
            "group_ids": list(group_ids),
        }
        data.update(overrides)
        return LessonCreate(**data)

    return _payload

