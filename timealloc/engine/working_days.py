"""Working day resolution for estimate generation."""

from datetime import date
from typing import List, Optional, Sequence

from ..models.project import Holiday, Project, Settings
from ..utils.datetime_utils import iter_days, resolve_today, weekday_name


def is_holiday(day: date, holidays: Sequence[Holiday]) -> bool:
    """Check if a day falls inside any holiday range."""
    return any(holiday.contains(day) for holiday in holidays)


def is_working_day(
    day: date,
    settings: Settings,
    holidays: Sequence[Holiday],
    project: Optional[Project] = None,
) -> bool:
    """Check if a day can receive estimated hours.

    Holidays always block. A project's ``auto_estimate_days`` overrides the
    weekly schedule; without it the day needs at least one work slot.
    """
    if is_holiday(day, holidays):
        return False

    if project is not None and project.auto_estimate_days is not None:
        return project.auto_estimate_days.get(weekday_name(day), False) is True

    return len(settings.slots_for(day)) > 0


def get_working_days_between(
    start_date: date,
    end_date: date,
    settings: Settings,
    holidays: Sequence[Holiday],
    project: Optional[Project] = None,
    today: Optional[date] = None,
) -> List[date]:
    """Get working days in [max(start, today), end], inclusive.

    Days before today are never returned, so no estimate lands in the past.
    """
    first = max(start_date, resolve_today(today))
    return [
        day for day in iter_days(first, end_date)
        if is_working_day(day, settings, holidays, project)
    ]


def get_project_working_days(
    project: Project,
    settings: Settings,
    holidays: Sequence[Holiday],
    today: Optional[date] = None,
) -> List[date]:
    """Get remaining working days across a project's window."""
    return get_working_days_between(
        project.start_date, project.end_date, settings, holidays, project, today
    )


def count_working_days(
    start_date: date,
    end_date: date,
    settings: Settings,
    holidays: Sequence[Holiday],
    project: Optional[Project] = None,
    today: Optional[date] = None,
) -> int:
    """Count working days in [max(start, today), end], inclusive."""
    return len(get_working_days_between(start_date, end_date, settings, holidays, project, today))


def get_daily_capacity(day: date, settings: Settings, holidays: Sequence[Holiday] = ()) -> float:
    """Scheduled work hours for a day (0 on holidays)."""
    if is_holiday(day, holidays):
        return 0.0
    return sum(slot.duration for slot in settings.slots_for(day))
