# timetable/repositories/lesson_repository.py
"""
Lesson Repository for the timetable engine

Implements data access for lessons and their group/teacher links:
- Lesson loading with links
- Wholesale replacement of association rows
- Filtered selection for bulk deletion
- Read-only projections (by slot, teacher, group)
"""

import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.group import Group
from ..models.lesson import GroupLesson, Lesson, TeacherLesson
from ..models.teacher import Teacher
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LessonRepository(BaseRepository[Lesson]):
    """Repository for Lesson data access."""

    def __init__(self, db: Session):
        super().__init__(db, Lesson)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(Lesson.group_links),
            selectinload(Lesson.teacher_links),
        )

    # Association rows

    def replace_group_links(self, lesson: Lesson, group_ids: Sequence[str]) -> None:
        """Delete every group link of the lesson, then insert the new set."""
        try:
            self.db.query(GroupLesson).filter(GroupLesson.lesson_id == lesson.id).delete(
                synchronize_session="fetch"
            )
            self.db.flush()
            self.db.add_all(GroupLesson(group_id=gid, lesson_id=lesson.id) for gid in group_ids)
            self.db.flush()
            self.db.expire(lesson, ["group_links"])
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing group links of lesson {lesson.id}: {str(e)}")
            raise RepositoryException(f"Failed to replace group links: {str(e)}") from e

    def replace_teacher_links(self, lesson: Lesson, teacher_ids: Sequence[str]) -> None:
        """Delete every teacher link of the lesson, then insert the new set."""
        try:
            self.db.query(TeacherLesson).filter(TeacherLesson.lesson_id == lesson.id).delete(
                synchronize_session="fetch"
            )
            self.db.flush()
            self.db.add_all(
                TeacherLesson(teacher_id=tid, lesson_id=lesson.id) for tid in teacher_ids
            )
            self.db.flush()
            self.db.expire(lesson, ["teacher_links"])
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing teacher links of lesson {lesson.id}: {str(e)}")
            raise RepositoryException(f"Failed to replace teacher links: {str(e)}") from e

    def delete_links_for_lessons(self, lesson_ids: Iterable[str]) -> int:
        """Remove all group and teacher links of the given lessons."""
        ids = list(lesson_ids)
        if not ids:
            return 0
        try:
            removed = self.db.query(TeacherLesson).filter(
                TeacherLesson.lesson_id.in_(ids)
            ).delete(synchronize_session="fetch")
            removed += self.db.query(GroupLesson).filter(GroupLesson.lesson_id.in_(ids)).delete(
                synchronize_session="fetch"
            )
            self.db.flush()
            return removed
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting lesson links: {str(e)}")
            raise RepositoryException(f"Failed to delete lesson links: {str(e)}") from e

    def delete_lessons(self, lessons: Sequence[Lesson]) -> int:
        """Delete lessons whose links and slots are already released."""
        try:
            for lesson in lessons:
                self.db.expire(lesson, ["group_links", "teacher_links", "occupied_slots"])
                self.db.delete(lesson)
            self.db.flush()
            return len(lessons)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting lessons: {str(e)}")
            raise RepositoryException(f"Failed to delete lessons: {str(e)}") from e

    # Selection

    def find_for_bulk_delete(
        self, course: Optional[int] = None, day: Optional[int] = None
    ) -> List[Lesson]:
        """
        Select lessons for bulk deletion.

        Args:
            course: Lessons with at least one group of this course
            day: Lessons on this day

        Returns:
            Matching lessons
        """
        query = self.db.query(Lesson)
        if course:
            course_lessons = (
                self.db.query(GroupLesson.lesson_id)
                .join(Group, GroupLesson.group_id == Group.id)
                .filter(Group.course == course)
            )
            query = query.filter(Lesson.id.in_(course_lessons))
        if day:
            query = query.filter(Lesson.day == day)
        return self._execute_query(query.order_by(Lesson.day, Lesson.number_of_pair))

    # Projections

    def get_filtered(self, day: Optional[int] = None, pair: Optional[int] = None) -> List[Lesson]:
        query = self._apply_eager_loading(self.db.query(Lesson))
        if day:
            query = query.filter(Lesson.day == day)
        if pair:
            query = query.filter(Lesson.number_of_pair == pair)
        return self._execute_query(query.order_by(Lesson.day, Lesson.number_of_pair))

    def get_by_teacher_name(self, full_name: str) -> List[Lesson]:
        query = (
            self._apply_eager_loading(self.db.query(Lesson))
            .join(TeacherLesson, TeacherLesson.lesson_id == Lesson.id)
            .join(Teacher, TeacherLesson.teacher_id == Teacher.id)
            .filter(Teacher.full_name == full_name)
            .order_by(Lesson.day, Lesson.number_of_pair)
        )
        return self._execute_query(query)

    def get_by_group(
        self,
        group_id: Optional[str] = None,
        group_name: Optional[str] = None,
        day: Optional[int] = None,
        pair: Optional[int] = None,
    ) -> List[Lesson]:
        query = (
            self._apply_eager_loading(self.db.query(Lesson))
            .join(GroupLesson, GroupLesson.lesson_id == Lesson.id)
            .join(Group, GroupLesson.group_id == Group.id)
        )
        if group_id:
            query = query.filter(Group.id == group_id)
        if group_name:
            query = query.filter(Group.name == group_name)
        if day:
            query = query.filter(Lesson.day == day)
        if pair:
            query = query.filter(Lesson.number_of_pair == pair)
        return self._execute_query(query.order_by(Lesson.day, Lesson.number_of_pair))

    def get_by_group_name(self, group_name: str) -> List[Lesson]:
        return self.get_by_group(group_name=group_name)

    def find_by_time_and_group(self, group_name: str, day: int, pair: int) -> Optional[Lesson]:
        """The lesson a group attends at (day, pair), if any."""
        lessons = self.get_by_group(group_name=group_name, day=day, pair=pair)
        return lessons[0] if lessons else None
