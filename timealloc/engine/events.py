"""Calendar event classification and per-day grouping."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Set

from ..models.project import CalendarEvent, Project
from ..utils.datetime_utils import hours_between

logger = logging.getLogger(__name__)

NON_PROJECT_CATEGORIES = {'habit', 'task'}
COMPLETED_EVENT_TYPES = {'tracked', 'completed'}

PLANNED_EVENT = 'planned-event'
COMPLETED_EVENT = 'completed-event'


@dataclass(frozen=True)
class DayEventSummary:
    """Planned and completed hours of one project on one day."""

    planned_hours: float
    completed_hours: float
    event_count: int

    @property
    def total_hours(self) -> float:
        return self.planned_hours + self.completed_hours

    @property
    def has_events(self) -> bool:
        return self.event_count > 0

    @property
    def display_type(self) -> str:
        # Planned wins when a day has both
        return PLANNED_EVENT if self.planned_hours > 0 else COMPLETED_EVENT


def is_event_for_project(event: CalendarEvent, project: Project) -> bool:
    """Habits and tasks never belong to a project, even with a project id."""
    if event.category in NON_PROJECT_CATEGORIES:
        return False
    return event.project_id == project.id


def filter_events_for_project(events: Iterable[CalendarEvent], project: Project) -> List[CalendarEvent]:
    return [event for event in events if is_event_for_project(event, project)]


def is_completed_time(event: CalendarEvent) -> bool:
    return event.completed or event.event_type in COMPLETED_EVENT_TYPES


def is_planned_time(event: CalendarEvent) -> bool:
    return not is_completed_time(event)


def is_valid_event(event: CalendarEvent) -> bool:
    return event.end_time > event.start_time


def event_hours(event: CalendarEvent) -> float:
    return hours_between(event.start_time, event.end_time)


def group_events_by_date(events: Iterable[CalendarEvent]) -> Dict[date, List[CalendarEvent]]:
    """Group valid events by the day they start on."""
    grouped: Dict[date, List[CalendarEvent]] = {}
    for event in events:
        if not is_valid_event(event):
            logger.warning(
                "Skipping event %s: end %s is not after start %s",
                event.id or event.title, event.end_time, event.start_time,
            )
            continue
        grouped.setdefault(event.start_time.date(), []).append(event)
    return grouped


def summarize_day_events(events_on_day: Iterable[CalendarEvent]) -> DayEventSummary:
    planned = 0.0
    completed = 0.0
    count = 0
    for event in events_on_day:
        count += 1
        if is_completed_time(event):
            completed += event_hours(event)
        else:
            planned += event_hours(event)
    return DayEventSummary(planned_hours=planned, completed_hours=completed, event_count=count)


def summarize_events_by_date(events_by_date: Dict[date, List[CalendarEvent]]) -> Dict[date, DayEventSummary]:
    return {day: summarize_day_events(events) for day, events in events_by_date.items()}


def sum_event_hours_in_range(
    summaries: Dict[date, DayEventSummary],
    start_date: date,
    end_date: date,
    planned: bool = True,
    completed: bool = True,
) -> float:
    """Sum event hours on days within [start, end], inclusive.

    Planned time counts by default: it is committed and no longer available
    for re-estimation.
    """
    total = 0.0
    for day, summary in summaries.items():
        if day < start_date or day > end_date:
            continue
        if planned:
            total += summary.planned_hours
        if completed:
            total += summary.completed_hours
    return total


def blocked_dates(events_by_date: Dict[date, List[CalendarEvent]]) -> Set[date]:
    """Days with any event; estimates are never emitted on them."""
    return {day for day, events in events_by_date.items() if events}
