"""Recurring phase expansion into anchor dates and work intervals.

Occurrences come from ``dateutil.rrule`` and are bounded by the project's
window. Stepping backwards by one interval (to seed the first work interval)
uses ``relativedelta`` so month arithmetic clamps instead of skipping
(Mar 31 - 1 month = Feb 28).
"""

import logging
from datetime import date, datetime, timedelta
from itertools import islice
from typing import Any, Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from dateutil.rrule import DAILY, MONTHLY, WEEKLY, weekday as rrule_weekday, rrule

from ..models.project import MONTHLY_PATTERNS, RECURRENCE_TYPES, Project, RecurringConfig
from ..utils.datetime_utils import WEEKDAY_NAMES, resolve_today

logger = logging.getLogger(__name__)

FREQUENCIES = {
    'daily': DAILY,
    'weekly': WEEKLY,
    'monthly': MONTHLY,
}

VALID_WEEKS_OF_MONTH = (1, 2, 3, 4, -1, -2)
WEEK_OF_MONTH_NAMES = {1: '1st', 2: '2nd', 3: '3rd', 4: '4th', -1: 'last', -2: 'second-last'}

DEFAULT_RECURRENCE_CONFIG = {
    'lookback_days': 30,
    'continuous_horizon_days': 90,
    'max_occurrences': 365,
    'continuous_max_occurrences': 100,
}

Interval = Tuple[date, date]


def _interval(config: RecurringConfig) -> int:
    return max(1, int(config.interval or 1))


def _build_rule_options(config: RecurringConfig) -> Dict[str, Any]:
    """Translate a RecurringConfig into rrule keyword arguments."""
    options: Dict[str, Any] = {'interval': _interval(config)}

    if config.type == 'weekly' and config.weekly_day_of_week is not None:
        options['byweekday'] = rrule_weekday(config.weekly_day_of_week)

    elif config.type == 'monthly':
        if config.monthly_pattern == 'dayOfWeek' and (
            config.monthly_week_of_month is not None and config.monthly_day_of_week is not None
        ):
            options['byweekday'] = rrule_weekday(
                config.monthly_day_of_week, config.monthly_week_of_month
            )
        elif config.monthly_date:
            if config.monthly_date > 28:
                # Clamp to the month's last day instead of skipping short months
                options['bymonthday'] = tuple(range(28, config.monthly_date + 1))
                options['bysetpos'] = -1
            else:
                options['bymonthday'] = config.monthly_date

    return options


def _upper_bound(project: Project, today: date, recurrence_config: Dict[str, Any]) -> date:
    if not project.continuous:
        return project.end_date
    horizon = int(recurrence_config.get('continuous_horizon_days', 90))
    return max(today, project.start_date) + timedelta(days=horizon)


def generate_occurrences(
    config: RecurringConfig,
    project: Project,
    today: Optional[date] = None,
    recurrence_config: Optional[Dict[str, Any]] = None,
) -> List[date]:
    """Generate raw occurrence dates within [window start, project end].

    The rule stays phased on the project start, but only occurrences from
    ``lookback_days`` before today onwards are returned, so a long-running
    project never spends the occurrence cap in the past. Continuous projects
    have no end, so occurrences stop at a horizon counted from today.
    """
    settings = {**DEFAULT_RECURRENCE_CONFIG, **(recurrence_config or {})}
    problems = validate_recurring_config(True, config, 1.0)['errors']
    if problems:
        logger.warning("Invalid recurrence config, no occurrences generated: %s", '; '.join(problems))
        return []

    today = resolve_today(today)
    until = _upper_bound(project, today, settings)
    window_start = max(project.start_date, today - timedelta(days=int(settings['lookback_days'])))
    if until < window_start:
        return []

    limit_key = 'continuous_max_occurrences' if project.continuous else 'max_occurrences'
    limit = int(settings[limit_key])

    rule = rrule(
        FREQUENCIES[config.type],
        dtstart=datetime.combine(project.start_date, datetime.min.time()),
        until=datetime.combine(until, datetime.min.time()),
        **_build_rule_options(config),
    )
    window = rule.xafter(datetime.combine(window_start, datetime.min.time()), inc=True)
    return [occurrence.date() for occurrence in islice(window, limit)]


def previous_occurrence(config: RecurringConfig, occurrence: date) -> date:
    """Step back exactly one interval from an occurrence, per the same rule."""
    interval = _interval(config)

    if config.type == 'daily':
        return occurrence - timedelta(days=interval)
    if config.type == 'weekly':
        return occurrence - timedelta(weeks=interval)

    if config.monthly_pattern == 'dayOfWeek' and (
        config.monthly_week_of_month is not None and config.monthly_day_of_week is not None
    ):
        nth = config.monthly_week_of_month
        # Counting from the 1st for nth weekdays, from the month's end for last / second-last
        anchor_day = 1 if nth > 0 else 31
        return occurrence + relativedelta(
            months=-interval,
            day=anchor_day,
            weekday=rrule_weekday(config.monthly_day_of_week, nth),
        )
    if config.monthly_date:
        return occurrence + relativedelta(months=-interval, day=config.monthly_date)
    return occurrence + relativedelta(months=-interval)


def expand_anchors(
    config: RecurringConfig,
    project: Project,
    today: Optional[date] = None,
    recurrence_config: Optional[Dict[str, Any]] = None,
) -> List[date]:
    """Return ascending anchor dates, seeded with a previous anchor when needed.

    When the first occurrence in the window falls on the project start it is
    the first anchor. Otherwise one interval is subtracted from it and
    prepended so the first work interval is a full one.
    """
    occurrences = generate_occurrences(config, project, today, recurrence_config)
    if not occurrences:
        return []

    anchors = list(occurrences)
    if anchors[0] != project.start_date:
        anchors.insert(0, previous_occurrence(config, anchors[0]))

    return sorted(anchors)


def anchor_intervals(anchors: List[date], project: Project) -> List[Interval]:
    """Turn consecutive anchors into inclusive work intervals.

    Each interval runs from anchor[i-1] to the day before anchor[i], clamped to
    the project window (no upper clamp for continuous projects).
    """
    intervals = []
    for previous, current in zip(anchors, anchors[1:]):
        start = max(previous, project.start_date)
        end = current - timedelta(days=1)
        if not project.continuous:
            end = min(end, project.end_date)
        if start > end:
            continue
        intervals.append((start, end))
    return intervals


def expand_intervals(
    config: RecurringConfig,
    project: Project,
    today: Optional[date] = None,
    recurrence_config: Optional[Dict[str, Any]] = None,
) -> List[Interval]:
    return anchor_intervals(expand_anchors(config, project, today, recurrence_config), project)


def validate_recurring_config(
    is_recurring: bool,
    config: Optional[RecurringConfig],
    time_allocation_hours: float,
) -> Dict[str, Any]:
    """Validate a recurring phase configuration.

    Returns a dict with ``is_valid`` and a list of ``errors``.
    """
    errors: List[str] = []

    if not is_recurring:
        return {'is_valid': True, 'errors': []}

    if config is None:
        errors.append('Recurring phase must have recurrence configuration')
        return {'is_valid': False, 'errors': errors}

    if config.type not in RECURRENCE_TYPES:
        errors.append(f"Invalid recurrence type: {config.type}. Must be daily, weekly, or monthly")

    if not config.interval or config.interval < 1:
        errors.append('Recurrence interval must be at least 1')

    if config.type == 'weekly':
        if config.weekly_day_of_week is None:
            errors.append('Weekly recurrence must specify day of week (0-6)')
        elif not 0 <= config.weekly_day_of_week <= 6:
            errors.append('Weekly day of week must be between 0 (Monday) and 6 (Sunday)')

    if config.type == 'monthly':
        if config.monthly_pattern not in MONTHLY_PATTERNS:
            errors.append('Monthly recurrence must specify pattern (date or dayOfWeek)')
        elif config.monthly_pattern == 'date':
            if not config.monthly_date:
                errors.append('Monthly date pattern must specify date (1-31)')
            elif not 1 <= config.monthly_date <= 31:
                errors.append('Monthly date must be between 1 and 31')
        else:
            if config.monthly_week_of_month is None or config.monthly_day_of_week is None:
                errors.append('Monthly dayOfWeek pattern must specify week of month and day of week')
            else:
                if config.monthly_week_of_month not in VALID_WEEKS_OF_MONTH:
                    errors.append('Monthly week of month must be 1-4, -1 (last) or -2 (second-last)')
                if not 0 <= config.monthly_day_of_week <= 6:
                    errors.append('Monthly day of week must be between 0 (Monday) and 6 (Sunday)')

    if time_allocation_hours <= 0:
        errors.append('Recurring phase must have positive time allocation per occurrence')

    return {'is_valid': len(errors) == 0, 'errors': errors}


def _ordinal_suffix(num: int) -> str:
    if num % 10 == 1 and num % 100 != 11:
        return 'st'
    if num % 10 == 2 and num % 100 != 12:
        return 'nd'
    if num % 10 == 3 and num % 100 != 13:
        return 'rd'
    return 'th'


def describe_recurrence(config: RecurringConfig) -> str:
    """Human-readable pattern, e.g. "Every 2 weeks on Monday"."""
    interval = _interval(config)
    count = '' if interval == 1 else f"{interval} "
    plural = 's' if interval > 1 else ''

    if config.type == 'daily':
        return f"Every {count}day{plural}"

    if config.type == 'weekly':
        day = 'week'
        if config.weekly_day_of_week is not None:
            day = WEEKDAY_NAMES[config.weekly_day_of_week].capitalize()
        return f"Every {count}week{plural} on {day}"

    if config.type == 'monthly':
        if config.monthly_pattern == 'date' and config.monthly_date:
            suffix = _ordinal_suffix(config.monthly_date)
            return f"Every {count}month{plural} on the {config.monthly_date}{suffix}"
        if (
            config.monthly_pattern == 'dayOfWeek'
            and config.monthly_week_of_month in WEEK_OF_MONTH_NAMES
            and config.monthly_day_of_week is not None
        ):
            week = WEEK_OF_MONTH_NAMES[config.monthly_week_of_month]
            day = WEEKDAY_NAMES[config.monthly_day_of_week].capitalize()
            return f"Every {count}month{plural} on the {week} {day}"
        return f"Every {count}month{plural}"

    return 'Unknown recurrence pattern'


def estimate_occurrence_count(config: RecurringConfig, duration_days: int) -> int:
    """Rough occurrence count for a duration, without expanding the rule."""
    interval = _interval(config)
    days_per_step = {'daily': 1, 'weekly': 7, 'monthly': 30}.get(config.type)
    if days_per_step is None:
        return 0
    return duration_days // (days_per_step * interval)
