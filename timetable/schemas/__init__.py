from .availability import AvailableTeacher, FreeHourRead, SlotRef
from .lesson import LessonCreate, LessonRead, LessonUpdate
from .roster import GroupCreate, GroupRead, GroupUpdate, TeacherCreate, TeacherRead

__all__ = [
    "AvailableTeacher",
    "FreeHourRead",
    "GroupCreate",
    "GroupRead",
    "GroupUpdate",
    "LessonCreate",
    "LessonRead",
    "LessonUpdate",
    "SlotRef",
    "TeacherCreate",
    "TeacherRead",
]
