"""
Pytest configuration and shared fixtures.
"""

from datetime import date, datetime

import pytest

from timealloc.models.project import (
    CalendarEvent,
    Phase,
    Project,
    RecurringConfig,
    Settings,
    WorkSlot,
)
from timealloc.utils.datetime_utils import WEEKDAY_NAMES

# Fixed reference day well before the January 2026 scenarios
BEFORE_SCENARIOS = date(2025, 12, 1)


@pytest.fixture
def today():
    return BEFORE_SCENARIOS


@pytest.fixture
def weekday_settings():
    """Monday to Friday, 09:00-17:00."""
    slot = WorkSlot(start_time="09:00", end_time="17:00", duration=8.0)
    return Settings(weekly_work_hours={
        name: [slot] if index < 5 else []
        for index, name in enumerate(WEEKDAY_NAMES)
    })


@pytest.fixture
def january_project():
    """Project spanning January 2026 with a 40h budget."""
    return Project(
        id="proj-jan",
        name="January",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 1, 31),
        estimated_hours=40.0,
    )


def make_phase(phase_id, end, hours, start=None, recurring=None, project_id="proj-jan"):
    return Phase(
        id=phase_id,
        project_id=project_id,
        end_date=end,
        time_allocation_hours=hours,
        start_date=start,
        is_recurring=recurring is not None,
        recurring_config=recurring,
    )


def weekly(day_of_week, interval=1):
    return RecurringConfig(type="weekly", interval=interval, weekly_day_of_week=day_of_week)


def make_event(day, start_hour, end_hour, project_id="proj-jan", completed=False, **kwargs):
    return CalendarEvent(
        start_time=datetime(day.year, day.month, day.day, start_hour),
        end_time=datetime(day.year, day.month, day.day, end_hour),
        project_id=project_id,
        completed=completed,
        **kwargs,
    )
