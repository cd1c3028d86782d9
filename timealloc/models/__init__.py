"""Input and output data models."""

from .estimate import DayEstimate, EstimateSource, EstimateTrace, SegmentDecision
from .project import (
    CalendarEvent,
    Holiday,
    Phase,
    Project,
    RecurringConfig,
    Settings,
    WorkSlot,
)

__all__ = [
    'CalendarEvent',
    'DayEstimate',
    'EstimateSource',
    'EstimateTrace',
    'Holiday',
    'Phase',
    'Project',
    'RecurringConfig',
    'SegmentDecision',
    'Settings',
    'WorkSlot',
]
