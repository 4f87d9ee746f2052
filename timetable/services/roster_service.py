# timetable/services/roster_service.py
"""
Roster Service for the timetable engine

Maintains the groups and teachers that lessons reference. Groups and
teachers are validated against the closed reference sets; a new teacher
gets availability slots in the same transaction that creates them.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import DuplicateNameException, NotFoundException, ValidationException
from ..core.reference_data import ReferenceData, validate_teacher_name
from ..models.group import Group
from ..models.teacher import Teacher
from ..repositories.factory import RepositoryFactory
from ..schemas.roster import GroupCreate, GroupUpdate, TeacherCreate
from .availability_ledger import AvailabilityLedger
from .base import BaseService
from .confirmation import require_confirmation, resolve_token
from .teacher_availability_service import TeacherAvailabilityService

logger = logging.getLogger(__name__)


class RosterService(BaseService):
    """Service for group and teacher management."""

    def __init__(
        self,
        db: Session,
        reference_data: Optional[ReferenceData] = None,
        availability_service: Optional[TeacherAvailabilityService] = None,
        confirmation_token: Optional[str] = None,
    ):
        """
        Initialize roster service.

        Args:
            db: Database session
            reference_data: Allowed courses, specialties and positions
            availability_service: Optional TeacherAvailabilityService instance
            confirmation_token: Token required by deletions (defaults to settings)
        """
        super().__init__(db)
        self.reference_data = reference_data or ReferenceData.from_settings()
        self.group_repository = RepositoryFactory.create_group_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.availability_service = availability_service or TeacherAvailabilityService(
            db, self.availability_repository
        )
        self.ledger = AvailabilityLedger(db, self.availability_repository)
        self.confirmation_token = resolve_token(confirmation_token)

    # Groups

    @BaseService.measure_operation("create_group")
    def create_group(self, group_data: GroupCreate) -> Group:
        course = self.reference_data.validate_course(group_data.course)
        specialty = self.reference_data.validate_specialty(group_data.specialty)
        self.log_operation("create_group", group_name=group_data.name, course=course)

        with self.transaction():
            if self.group_repository.get_by_name(group_data.name) is not None:
                raise DuplicateNameException("Group", group_data.name)
            group = self.group_repository.create(
                name=group_data.name, course=course, specialty=specialty
            )

        self.logger.info(f"Created group {group.name} ({group.id})")
        return group

    @BaseService.measure_operation("update_group")
    def update_group(self, group_id: str, update_data: GroupUpdate) -> Group:
        """
        Rename a group or move it to another course or specialty.

        A cohort change is refused while the group shares a lesson with a
        group that would then belong to a different cohort.
        """
        supplied = update_data.model_fields_set
        self.log_operation("update_group", group_id=group_id, fields=sorted(supplied))

        with self.transaction():
            group = self._get_group_or_raise(group_id)

            changes = {}
            if "name" in supplied and update_data.name and update_data.name != group.name:
                if self.group_repository.get_by_name(update_data.name) is not None:
                    raise DuplicateNameException("Group", update_data.name)
                changes["name"] = update_data.name

            course = group.course
            specialty = group.specialty
            if "course" in supplied and update_data.course is not None:
                course = self.reference_data.validate_course(update_data.course)
            if "specialty" in supplied and update_data.specialty is not None:
                specialty = self.reference_data.validate_specialty(update_data.specialty)

            if (course, specialty) != (group.course, group.specialty):
                for other in self.group_repository.get_co_scheduled(group.id):
                    if (other.course, other.specialty) != (course, specialty):
                        raise ValidationException(
                            f"Group {group.name} shares lessons with {other.name}; "
                            "changing its course or specialty would mix cohorts",
                            code="MIXED_COHORT",
                            details={"group_ids": [group.id, other.id]},
                        )
                changes["course"] = course
                changes["specialty"] = specialty

            if changes:
                group = self.group_repository.update(group.id, **changes)

        return group

    @BaseService.measure_operation("delete_group")
    def delete_group(self, group_id: str, confirmation: str) -> None:
        """Delete a group; its lessons stay, minus this group's attendance."""
        require_confirmation(confirmation, self.confirmation_token, group_id=group_id)
        self.log_operation("delete_group", group_id=group_id)

        with self.transaction():
            group = self._get_group_or_raise(group_id)
            links = self.group_repository.delete_lesson_links(group.id)
            self.group_repository.delete(group.id)

        self.logger.info(f"Deleted group {group_id} and {links} lesson links")

    # Teachers

    @BaseService.measure_operation("create_teacher")
    def create_teacher(self, teacher_data: TeacherCreate) -> Teacher:
        """
        Create a teacher together with their availability slots.

        Raises:
            ValidationException: Malformed name or unknown position
            DuplicateNameException: Name already taken
        """
        full_name = validate_teacher_name(teacher_data.full_name)
        position = self.reference_data.validate_position(teacher_data.position)
        self.log_operation("create_teacher", full_name=full_name, position=position)

        with self.transaction():
            if self.teacher_repository.get_by_name(full_name) is not None:
                raise DuplicateNameException("Teacher", full_name)
            teacher = self.teacher_repository.create(full_name=full_name, position=position)
            self.availability_service.materialize_slots(teacher.id, teacher_data.free_slots)

        self.logger.info(f"Created teacher {teacher.full_name} ({teacher.id})")
        return teacher

    @BaseService.measure_operation("delete_teacher")
    def delete_teacher(self, teacher_id: str, confirmation: str) -> None:
        """
        Delete a teacher, their availability slots and their lesson links.

        Lessons the teacher taught remain with the other teachers.
        """
        require_confirmation(confirmation, self.confirmation_token, teacher_id=teacher_id)
        self.log_operation("delete_teacher", teacher_id=teacher_id)

        with self.transaction():
            if self.teacher_repository.get_by_id(teacher_id, load_relationships=False) is None:
                raise NotFoundException(
                    f"Teacher {teacher_id} not found", details={"teacher_id": teacher_id}
                )
            lesson_ids = self.teacher_repository.get_lesson_ids(teacher_id)
            slots = self.availability_repository.get_slots_for_teacher(teacher_id)
            for slot in slots:
                if not slot.is_free:
                    self.ledger.release(teacher_id, slot.day, slot.number_of_pair)
            self.availability_repository.delete_slots(slots)
            self.teacher_repository.delete_lesson_links(teacher_id)
            self.teacher_repository.delete(teacher_id)

        if lesson_ids:
            self.logger.warning(
                f"Teacher {teacher_id} removed from {len(lesson_ids)} lessons"
            )
        self.logger.info(f"Deleted teacher {teacher_id}")

    def _get_group_or_raise(self, group_id: str) -> Group:
        group = self.group_repository.get_by_id(group_id, load_relationships=False)
        if group is None:
            raise NotFoundException(f"Group {group_id} not found", details={"group_id": group_id})
        return group
