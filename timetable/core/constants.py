# timetable/core/constants.py
"""
Grid and reference constants for the timetable engine.

The weekly grid is five teaching days with four pairs each. Values that a
deployment may want to change (reference week, specialties, positions)
live in Settings; the defaults are declared here.
"""

from datetime import date

# Weekly grid
DAYS_PER_WEEK = 5
PAIRS_PER_DAY = 4
MIN_DAY = 1
MAX_DAY = DAYS_PER_WEEK
MIN_PAIR = 1
MAX_PAIR = PAIRS_PER_DAY

DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
}

# Study years
MIN_COURSE = 1
MAX_COURSE = 4

# Filter value meaning "do not filter"
ANY = 0

# A Monday known to open an even week
DEFAULT_REFERENCE_EVEN_MONDAY = date(2025, 9, 1)

DEFAULT_DELETE_CONFIRMATION_TOKEN = "yes"

DEFAULT_SPECIALTIES = (
    "Computer Science",
    "Software Engineering",
    "Applied Mathematics",
    "Cybersecurity",
    "System Analysis",
)

DEFAULT_POSITIONS = (
    "Assistant",
    "Senior Lecturer",
    "Associate Professor",
    "Professor",
    "Head of Department",
)

# Length of ULID string identifiers
ID_LENGTH = 26
