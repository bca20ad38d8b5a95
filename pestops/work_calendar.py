"""Work calendar expansion for Pest Ops Workforce Analytics"""
import calendar
from datetime import date, timedelta
from typing import Dict, List, Optional

from .models import DaySchedule, WorkDay


def weekday_name(day: date) -> str:
    """Lower-case English weekday name, the key used in work schedules."""
    return calendar.day_name[day.weekday()].lower()


def expand_work_days(work_schedule: Optional[Dict[str, DaySchedule]],
                     start_date: date, end_date: date) -> List[WorkDay]:
    """
    Expand a weekly work schedule into concrete work days.

    One WorkDay is produced for every calendar day in the inclusive range
    whose weekday is marked active. The start/end clock times are taken
    literally from that weekday's entry.

    Args:
        work_schedule: Mapping of weekday name to DaySchedule (may be empty)
        start_date: First day of the range (inclusive)
        end_date: Last day of the range (inclusive)

    Returns:
        Work days ordered by date
    """
    if not work_schedule:
        return []

    schedule = {str(k).strip().lower(): v for k, v in work_schedule.items()}

    days = []
    current = start_date
    while current <= end_date:
        name = weekday_name(current)
        entry = schedule.get(name)
        if entry is not None and entry.active:
            days.append(WorkDay(
                date=current,
                start=entry.start,
                end=entry.end,
                weekday=name
            ))
        current += timedelta(days=1)

    return days


def total_work_hours(work_days: List[WorkDay]) -> float:
    return sum(day.hours for day in work_days)
