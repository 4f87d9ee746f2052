# timetable/core/week_parity.py
"""
Week parity calculation.

Weeks run Monday through Sunday. A week is "even" when the number of whole
weeks between its Monday and the configured reference Monday is even.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from .config import settings
from .enums import WeekType


def week_start(target: date) -> date:
    """Return the Monday of the week containing ``target``."""
    if isinstance(target, datetime):
        target = target.date()
    return target - timedelta(days=target.weekday())


def is_even_week(target: date, reference: Optional[date] = None) -> bool:
    """
    Check whether ``target`` falls into an even week.

    Args:
        target: Any date of the week to classify
        reference: Monday of a known even week (defaults to settings)

    Returns:
        True for an even week, False for an odd one
    """
    anchor = week_start(reference or settings.reference_even_monday)
    weeks = (week_start(target) - anchor).days // 7
    return weeks % 2 == 0


def week_type_for(target: date, reference: Optional[date] = None) -> WeekType:
    return WeekType.EVEN if is_even_week(target, reference) else WeekType.ODD


def occurs_on(even_week_flag: Optional[bool], target: date, reference: Optional[date] = None) -> bool:
    """Whether a lesson with the given parity flag runs in the week of ``target``."""
    if even_week_flag is None:
        return True
    return even_week_flag == is_even_week(target, reference)
