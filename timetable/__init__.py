"""University timetable slot allocation and consistency engine."""

__version__ = "0.1.0"
