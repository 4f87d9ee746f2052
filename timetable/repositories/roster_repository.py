# timetable/repositories/roster_repository.py
"""
Group and Teacher repositories.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.group import Group
from ..models.lesson import GroupLesson, TeacherLesson
from ..models.teacher import Teacher
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class GroupRepository(BaseRepository[Group]):
    def __init__(self, db: Session):
        super().__init__(db, Group)

    def get_by_name(self, name: str) -> Optional[Group]:
        return self.find_one_by(name=name)

    def get_co_scheduled(self, group_id: str) -> List[Group]:
        """Other groups attending at least one lesson together with this group."""
        shared_lessons = self.db.query(GroupLesson.lesson_id).filter(GroupLesson.group_id == group_id)
        query = (
            self.db.query(Group)
            .join(GroupLesson, GroupLesson.group_id == Group.id)
            .filter(GroupLesson.lesson_id.in_(shared_lessons), Group.id != group_id)
            .distinct()
            .order_by(Group.name)
        )
        return self._execute_query(query)

    def delete_lesson_links(self, group_id: str) -> int:
        try:
            removed = (
                self.db.query(GroupLesson)
                .filter(GroupLesson.group_id == group_id)
                .delete(synchronize_session="fetch")
            )
            self.db.flush()
            return removed
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting lesson links of group {group_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete group links: {str(e)}") from e


class TeacherRepository(BaseRepository[Teacher]):
    def __init__(self, db: Session):
        super().__init__(db, Teacher)

    def get_by_name(self, full_name: str) -> Optional[Teacher]:
        return self.find_one_by(full_name=full_name)

    def get_lesson_ids(self, teacher_id: str) -> List[str]:
        try:
            rows = (
                self.db.query(TeacherLesson.lesson_id)
                .filter(TeacherLesson.teacher_id == teacher_id)
                .all()
            )
            return [row.lesson_id for row in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting lessons of teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to get teacher lessons: {str(e)}") from e

    def delete_lesson_links(self, teacher_id: str) -> int:
        try:
            removed = (
                self.db.query(TeacherLesson)
                .filter(TeacherLesson.teacher_id == teacher_id)
                .delete(synchronize_session="fetch")
            )
            self.db.flush()
            return removed
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting lesson links of teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete teacher links: {str(e)}") from e

