"""Core day-estimate engine."""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..models.estimate import DayEstimate, EstimateSource, EstimateTrace, SegmentDecision
from ..models.project import CalendarEvent, Holiday, Phase, Project, Settings, safe_hours
from ..utils.config import resolve_config
from ..utils.datetime_utils import resolve_today
from .cache import EstimateCache, make_cache_key
from .events import (
    blocked_dates,
    filter_events_for_project,
    group_events_by_date,
    summarize_events_by_date,
)
from .phases import PhaseSegmentAllocator

logger = logging.getLogger(__name__)


class ProjectEstimateAggregator:
    """Builds the day-by-day hour allocation for a project.

    Sources are applied in priority order: calendar events, then phases in
    end-date order, then the project-wide auto-estimate when there are no
    phases. Lower-priority sources never land on a day that has events.
    """

    def __init__(self, config: Optional[dict] = None, cache: Optional[EstimateCache] = None):
        """Initialize aggregator with configuration and an optional cache."""
        self.config = resolve_config(config)
        self.estimation_config = self.config.get('estimation', {})
        self.recurrence_config = self.config.get('recurrence', {})
        self.cache = cache

    def compute(
        self,
        project: Project,
        phases: Sequence[Phase],
        settings: Settings,
        holidays: Sequence[Holiday],
        events: Sequence[CalendarEvent] = (),
        today: Optional[date] = None,
    ) -> List[DayEstimate]:
        """Return day estimates only."""
        estimates, _ = self.estimate(project, phases, settings, holidays, events, today)
        return estimates

    def estimate(
        self,
        project: Project,
        phases: Sequence[Phase],
        settings: Settings,
        holidays: Sequence[Holiday],
        events: Sequence[CalendarEvent] = (),
        today: Optional[date] = None,
    ) -> Tuple[List[DayEstimate], EstimateTrace]:
        """Generate day estimates and the trace, consulting the cache when one was given."""
        today = resolve_today(today)
        if self.cache is None:
            return self._estimate(project, phases, settings, holidays, events, today)

        key = make_cache_key(project, list(phases), settings, list(holidays), list(events), today, self.config)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        estimates, trace = self._estimate(project, phases, settings, holidays, events, today)
        self.cache.set(key, estimates, trace)
        return estimates, trace

    def _estimate(
        self,
        project: Project,
        phases: Sequence[Phase],
        settings: Settings,
        holidays: Sequence[Holiday],
        events: Sequence[CalendarEvent],
        today: date,
    ) -> Tuple[List[DayEstimate], EstimateTrace]:
        """Generate day estimates and the trace explaining them."""
        events_by_date = group_events_by_date(filter_events_for_project(events, project))
        day_summaries = summarize_events_by_date(events_by_date)
        blocked = blocked_dates(events_by_date)

        allocator = PhaseSegmentAllocator(
            project, settings, holidays, day_summaries, blocked, today, self.recurrence_config
        )

        estimates: List[DayEstimate] = []
        decisions: List[SegmentDecision] = []

        # Events first: one estimate per day, both planned and completed hours
        for day in sorted(day_summaries):
            summary = day_summaries[day]
            if summary.total_hours <= 0:
                continue
            estimates.append(DayEstimate(
                date=day,
                project_id=project.id,
                hours=summary.total_hours,
                source=EstimateSource.EVENT,
                is_planned_event=summary.planned_hours > 0,
                is_completed_event=summary.completed_hours > 0,
            ))

        # Phases in deadline order; milestones without a start continue from the previous phase
        sorted_phases = sorted(phases, key=lambda phase: phase.end_date)
        previous_phase_end: Optional[date] = None

        for phase in sorted_phases:
            if phase.start_date is not None:
                segment_start = phase.start_date
            elif previous_phase_end is not None:
                segment_start = previous_phase_end + timedelta(days=1)
            else:
                segment_start = project.start_date

            phase_estimates, phase_decisions = allocator.allocate_phase(phase, segment_start)
            estimates.extend(phase_estimates)
            decisions.extend(phase_decisions)
            previous_phase_end = phase.end_date

        if sorted_phases:
            trailing = self._allocate_trailing_budget(allocator, project, sorted_phases, previous_phase_end)
            if trailing is not None:
                estimates.extend(trailing[0])
                decisions.append(trailing[1])
        elif not project.continuous and safe_hours(project.estimated_hours) > 0:
            fallback, decision = allocator.allocate_segment(
                project.start_date,
                project.end_date,
                project.estimated_hours,
                source=EstimateSource.PROJECT_AUTO_ESTIMATE,
                redistribute=True,
            )
            estimates.extend(fallback)
            decisions.append(decision)

        estimates.sort(key=DayEstimate.sort_key)

        trace = EstimateTrace(
            project_id=project.id,
            timestamp=datetime.now(),
            today=today,
            config={
                'continuous': project.continuous,
                'estimated_hours': project.estimated_hours,
                'phase_count': len(sorted_phases),
                'trailing_budget_segment': self.estimation_config.get('trailing_budget_segment', True),
                'continuous_horizon_days': self.recurrence_config.get('continuous_horizon_days'),
            },
            decisions=decisions,
            summary_stats=self._compute_summary_stats(estimates, blocked),
        )

        logger.info(
            "Project %s: %d estimates, %.2fh total",
            project.id, len(estimates), trace.summary_stats['total_hours'],
        )

        return estimates, trace

    def _allocate_trailing_budget(
        self,
        allocator: PhaseSegmentAllocator,
        project: Project,
        phases: Sequence[Phase],
        last_phase_end: Optional[date],
    ) -> Optional[Tuple[List[DayEstimate], SegmentDecision]]:
        """Spread budget no phase claims over the days after the last phase."""
        if not self.estimation_config.get('trailing_budget_segment', True):
            return None
        if project.continuous or last_phase_end is None:
            return None
        # Recurring phases have no fixed total, so nothing is left over to spread
        if any(phase.is_recurring for phase in phases):
            return None
        if last_phase_end >= project.end_date:
            return None

        unallocated = safe_hours(project.estimated_hours) - sum(
            safe_hours(phase.time_allocation_hours) for phase in phases
        )
        if unallocated <= 0:
            return None

        return allocator.allocate_segment(
            last_phase_end + timedelta(days=1),
            project.end_date,
            unallocated,
            source=EstimateSource.PROJECT_AUTO_ESTIMATE,
            redistribute=True,
        )

    def _compute_summary_stats(self, estimates: List[DayEstimate], blocked: Set[date]) -> Dict[str, Any]:
        """Compute summary statistics for the trace."""
        hours_by_source = {
            EstimateSource.EVENT: 0.0,
            EstimateSource.PHASE_ALLOCATION: 0.0,
            EstimateSource.PROJECT_AUTO_ESTIMATE: 0.0,
        }
        for estimate in estimates:
            hours_by_source[estimate.source] = hours_by_source.get(estimate.source, 0.0) + estimate.hours

        days = {estimate.date for estimate in estimates}
        return {
            'estimate_count': len(estimates),
            'days_covered': len(days),
            'event_days': len(blocked),
            'first_day': min(days).isoformat() if days else None,
            'last_day': max(days).isoformat() if days else None,
            'hours_by_source': hours_by_source,
            'total_hours': sum(hours_by_source.values()),
        }


def compute_day_estimates(
    project: Project,
    phases: Sequence[Phase],
    settings: Settings,
    holidays: Sequence[Holiday],
    events: Sequence[CalendarEvent] = (),
    today: Optional[date] = None,
    config: Optional[dict] = None,
    cache: Optional[EstimateCache] = None,
) -> List[DayEstimate]:
    """Compute every day estimate for one project."""
    return ProjectEstimateAggregator(config, cache).compute(
        project, phases, settings, holidays, events, today
    )


def compute_all_day_estimates(
    projects: Iterable[Project],
    phases: Sequence[Phase],
    settings: Settings,
    holidays: Sequence[Holiday],
    events: Sequence[CalendarEvent] = (),
    today: Optional[date] = None,
    config: Optional[dict] = None,
    cache: Optional[EstimateCache] = None,
) -> Dict[str, List[DayEstimate]]:
    """Compute estimates for several projects, matching phases by project id."""
    aggregator = ProjectEstimateAggregator(config, cache)
    results = {}
    for project in projects:
        project_phases = [phase for phase in phases if phase.project_id == project.id]
        results[project.id] = aggregator.compute(
            project, project_phases, settings, holidays, events, today
        )
    return results


def aggregate_day_estimates_by_date(estimates: Iterable[DayEstimate]) -> Dict[date, List[DayEstimate]]:
    """Group estimates (from one or many projects) by day."""
    by_date: Dict[date, List[DayEstimate]] = {}
    for estimate in estimates:
        by_date.setdefault(estimate.date, []).append(estimate)
    return by_date


def total_estimate_hours(estimates: Iterable[DayEstimate]) -> float:
    return sum(estimate.hours for estimate in estimates)
