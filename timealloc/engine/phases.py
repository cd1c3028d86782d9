"""Phase segment allocation: spreading remaining phase hours over working days."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..models.estimate import DayEstimate, EstimateSource, SegmentDecision
from ..models.project import Holiday, Phase, Project, Settings, safe_hours
from .events import DayEventSummary, sum_event_hours_in_range
from .recurrence import anchor_intervals, expand_anchors
from .working_days import get_working_days_between

logger = logging.getLogger(__name__)


class PhaseSegmentAllocator:
    """Distributes phase budgets across the working days of their segments.

    One allocator is built per project run; it holds only read-only inputs.
    """

    def __init__(
        self,
        project: Project,
        settings: Settings,
        holidays: Sequence[Holiday],
        day_summaries: Dict[date, DayEventSummary],
        blocked_dates: Set[date],
        today: date,
        recurrence_config: Optional[Dict[str, Any]] = None,
    ):
        """Initialize allocator with one project's inputs."""
        self.project = project
        self.settings = settings
        self.holidays = holidays
        self.day_summaries = day_summaries
        self.blocked_dates = blocked_dates
        self.today = today
        self.recurrence_config = recurrence_config or {}

    def allocate_phase(
        self,
        phase: Phase,
        segment_start: date,
    ) -> Tuple[List[DayEstimate], List[SegmentDecision]]:
        """Allocate one phase, recurring or not, starting at segment_start."""
        if phase.is_recurring and phase.recurring_config is not None:
            anchors = expand_anchors(
                phase.recurring_config, self.project, self.today, self.recurrence_config
            )
            if anchors:
                return self._allocate_recurring(phase, anchors)
            logger.warning(
                "Recurring phase %s resolved no occurrences; treating it as a single "
                "occurrence ending %s", phase.id, phase.end_date,
            )

        estimates, decision = self.allocate_segment(
            segment_start,
            phase.end_date,
            phase.time_allocation_hours,
            phase_id=phase.id,
            source=EstimateSource.PHASE_ALLOCATION,
            redistribute=True,
        )
        return estimates, [decision]

    def _allocate_recurring(
        self,
        phase: Phase,
        anchors: List[date],
    ) -> Tuple[List[DayEstimate], List[SegmentDecision]]:
        estimates: List[DayEstimate] = []
        decisions: List[SegmentDecision] = []

        for number, (start, end) in enumerate(anchor_intervals(anchors, self.project), start=1):
            # Each occurrence owns its full allocation; blocked days are not re-spread
            occurrence_estimates, decision = self.allocate_segment(
                start,
                end,
                phase.time_allocation_hours,
                phase_id=phase.id,
                source=EstimateSource.PHASE_ALLOCATION,
                redistribute=False,
                occurrence=number,
            )
            estimates.extend(occurrence_estimates)
            decisions.append(decision)

        return estimates, decisions

    def allocate_segment(
        self,
        start_date: date,
        end_date: date,
        allocation_hours: float,
        phase_id: Optional[str] = None,
        source: str = EstimateSource.PHASE_ALLOCATION,
        redistribute: bool = True,
        occurrence: Optional[int] = None,
    ) -> Tuple[List[DayEstimate], SegmentDecision]:
        """Spread what is left of an allocation over a segment's working days.

        Planned and completed event hours inside the segment are subtracted
        first. Days with events are then dropped; with ``redistribute`` the
        remaining hours are re-spread over the surviving days so the segment
        total is preserved.
        """
        allocation = safe_hours(allocation_hours)
        consumed = sum_event_hours_in_range(self.day_summaries, start_date, end_date)
        remaining = max(0.0, allocation - consumed)

        def decide(working_days: int, estimated_days: int, hours_per_day: float, reason: str):
            return SegmentDecision(
                phase_id=phase_id,
                segment_start=start_date,
                segment_end=end_date,
                allocation_hours=allocation,
                consumed_hours=consumed,
                remaining_hours=remaining,
                working_days=working_days,
                estimated_days=estimated_days,
                hours_per_day=hours_per_day,
                reason=reason,
                occurrence=occurrence,
            )

        if allocation <= 0:
            return [], decide(0, 0, 0.0, "No allocation")
        if remaining <= 0:
            return [], decide(0, 0, 0.0, "Allocation consumed by events")

        working_days = get_working_days_between(
            start_date, end_date, self.settings, self.holidays, self.project, self.today
        )
        if not working_days:
            return [], decide(0, 0, 0.0, "No remaining working days")

        hours_per_day = remaining / len(working_days)

        estimate_days = [
            day for day in working_days
            if day not in self.blocked_dates
            and (self.project.continuous or day <= self.project.end_date)
        ]
        if not estimate_days:
            return [], decide(len(working_days), 0, hours_per_day, "All working days blocked by events")

        if redistribute:
            hours_per_day = remaining / len(estimate_days)
            reason = "Spread evenly over unblocked working days"
        else:
            reason = "Spread evenly over occurrence working days"

        logger.debug(
            "Segment %s %s..%s: %.2fh over %d days (%.2fh/day)",
            phase_id or self.project.id, start_date, end_date,
            remaining, len(estimate_days), hours_per_day,
        )

        estimates = [
            DayEstimate(
                date=day,
                project_id=self.project.id,
                hours=hours_per_day,
                source=source,
                phase_id=phase_id,
            )
            for day in estimate_days
        ]
        return estimates, decide(len(working_days), len(estimate_days), hours_per_day, reason)
