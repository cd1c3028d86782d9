"""Project, phase, schedule and calendar input models."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..utils.datetime_utils import (
    WEEKDAY_NAMES,
    to_date,
    to_datetime,
    to_optional_date,
)

RECURRENCE_TYPES = ('daily', 'weekly', 'monthly')
MONTHLY_PATTERNS = ('date', 'dayOfWeek')

# Accepted spellings for the relative monthly week patterns
WEEK_OF_MONTH_ALIASES = {
    'last': -1,
    'second_last': -2,
    '2nd-last': -2,
    'second-last': -2,
}


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, accepting camelCase and snake_case inputs."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _require(data: Dict[str, Any], entity: str, *keys: str) -> Any:
    value = _pick(data, *keys)
    if value is None:
        raise ValueError(f"{entity} is missing required field '{keys[0]}'")
    return value


def safe_hours(value: Any) -> float:
    """Coerce an hour amount to a finite, non-negative float (0.0 otherwise)."""
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(hours) or hours <= 0:
        return 0.0
    return hours


@dataclass(frozen=True)
class RecurringConfig:
    """Recurrence rule for a recurring phase.

    Weekday numbers follow ``date.weekday()``: 0 is Monday, 6 is Sunday.
    ``monthly_week_of_month`` is 1-4 for the nth weekday of a month, -1 for the
    last and -2 for the second-last occurrence.
    """

    type: str
    interval: int = 1
    weekly_day_of_week: Optional[int] = None
    monthly_pattern: Optional[str] = None
    monthly_date: Optional[int] = None
    monthly_week_of_month: Optional[int] = None
    monthly_day_of_week: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RecurringConfig':
        recurrence_type = str(_require(data, 'RecurringConfig', 'type')).lower()
        if recurrence_type not in RECURRENCE_TYPES:
            raise ValueError(f"Unknown recurrence type: {recurrence_type}")

        week_of_month = _pick(data, 'monthly_week_of_month', 'monthlyWeekOfMonth')
        if isinstance(week_of_month, str):
            week_of_month = WEEK_OF_MONTH_ALIASES.get(week_of_month.lower(), week_of_month)

        def _int(value):
            return int(value) if value is not None else None

        return cls(
            type=recurrence_type,
            interval=int(_pick(data, 'interval', default=1)),
            weekly_day_of_week=_int(_pick(data, 'weekly_day_of_week', 'weeklyDayOfWeek')),
            monthly_pattern=_pick(data, 'monthly_pattern', 'monthlyPattern'),
            monthly_date=_int(_pick(data, 'monthly_date', 'monthlyDate')),
            monthly_week_of_month=_int(week_of_month),
            monthly_day_of_week=_int(_pick(data, 'monthly_day_of_week', 'monthlyDayOfWeek')),
        )


@dataclass(frozen=True)
class Project:
    """A budgeted project with an active date window."""

    id: str
    start_date: date
    end_date: date
    estimated_hours: float = 0.0
    continuous: bool = False
    name: str = ''
    auto_estimate_days: Optional[Dict[str, bool]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        auto_days = _pick(data, 'auto_estimate_days', 'autoEstimateDays')
        if auto_days is not None:
            auto_days = {
                name: bool(auto_days.get(name, False)) for name in WEEKDAY_NAMES
            }
        start = to_date(_require(data, 'Project', 'start_date', 'startDate'))
        # Continuous projects may omit their end date entirely
        end = to_optional_date(_pick(data, 'end_date', 'endDate')) or start
        return cls(
            id=str(_require(data, 'Project', 'id')),
            name=_pick(data, 'name', default=''),
            start_date=start,
            end_date=end,
            estimated_hours=float(_pick(data, 'estimated_hours', 'estimatedHours', default=0.0)),
            continuous=bool(_pick(data, 'continuous', default=False)),
            auto_estimate_days=auto_days,
        )


@dataclass(frozen=True)
class Phase:
    """A budgeted unit of work inside a project, optionally recurring.

    A phase without ``start_date`` is a deadline-only milestone; its segment
    starts the day after the previous phase ends.
    """

    id: str
    project_id: str
    end_date: date
    time_allocation_hours: float = 0.0
    start_date: Optional[date] = None
    is_recurring: bool = False
    recurring_config: Optional[RecurringConfig] = None
    name: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Phase':
        config = _pick(data, 'recurring_config', 'recurringConfig')
        return cls(
            id=str(_require(data, 'Phase', 'id')),
            project_id=str(_pick(data, 'project_id', 'projectId', default='')),
            name=_pick(data, 'name', default=''),
            start_date=to_optional_date(_pick(data, 'start_date', 'startDate')),
            end_date=to_date(_require(data, 'Phase', 'end_date', 'endDate', 'dueDate', 'due_date')),
            time_allocation_hours=float(_pick(
                data, 'time_allocation_hours', 'timeAllocationHours', 'timeAllocation', default=0.0
            )),
            is_recurring=bool(_pick(data, 'is_recurring', 'isRecurring', default=False)),
            recurring_config=RecurringConfig.from_dict(config) if config else None,
        )


@dataclass(frozen=True)
class Holiday:
    """Inclusive date range on which no work is estimated."""

    start_date: date
    end_date: date
    id: str = ''
    title: str = ''

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Holiday':
        start = to_date(_require(data, 'Holiday', 'start_date', 'startDate', 'date'))
        end = to_optional_date(_pick(data, 'end_date', 'endDate')) or start
        return cls(
            id=str(_pick(data, 'id', default='')),
            title=_pick(data, 'title', default=''),
            start_date=start,
            end_date=end,
        )


@dataclass(frozen=True)
class WorkSlot:
    """A block of working time within a day (times in HH:MM)."""

    start_time: str
    end_time: str
    duration: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkSlot':
        start = _require(data, 'WorkSlot', 'start_time', 'startTime')
        end = _require(data, 'WorkSlot', 'end_time', 'endTime')
        duration = _pick(data, 'duration')
        if duration is None:
            start_h, start_m = (int(part) for part in start.split(':'))
            end_h, end_m = (int(part) for part in end.split(':'))
            duration = ((end_h * 60 + end_m) - (start_h * 60 + start_m)) / 60
        return cls(start_time=start, end_time=end, duration=float(duration))


@dataclass(frozen=True)
class Settings:
    """Global weekly work-hour schedule."""

    weekly_work_hours: Dict[str, List[WorkSlot]] = field(default_factory=dict)

    def slots_for(self, day: date) -> List[WorkSlot]:
        return self.weekly_work_hours.get(WEEKDAY_NAMES[day.weekday()], [])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        raw = _pick(data, 'weekly_work_hours', 'weeklyWorkHours', default={})
        schedule = {}
        for name in WEEKDAY_NAMES:
            schedule[name] = [WorkSlot.from_dict(slot) for slot in raw.get(name, []) or []]
        return cls(weekly_work_hours=schedule)


@dataclass(frozen=True)
class CalendarEvent:
    """A planned or tracked block of time on the calendar."""

    start_time: datetime
    end_time: datetime
    project_id: Optional[str] = None
    completed: bool = False
    id: str = ''
    title: str = ''
    event_type: Optional[str] = None  # 'planned', 'tracked' or 'completed'
    category: Optional[str] = None  # 'event', 'habit' or 'task'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CalendarEvent':
        project_id = _pick(data, 'project_id', 'projectId')
        return cls(
            id=str(_pick(data, 'id', default='')),
            title=_pick(data, 'title', default=''),
            start_time=to_datetime(_require(data, 'CalendarEvent', 'start_time', 'startTime')),
            end_time=to_datetime(_require(data, 'CalendarEvent', 'end_time', 'endTime')),
            project_id=str(project_id) if project_id is not None else None,
            completed=bool(_pick(data, 'completed', default=False)),
            event_type=_pick(data, 'event_type', 'type'),
            category=_pick(data, 'category'),
        )
