"""Day estimate output and allocation trace models."""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional


class EstimateSource:
    """Where the hours of a DayEstimate come from."""

    EVENT = 'event'
    PHASE_ALLOCATION = 'phase-allocation'
    PROJECT_AUTO_ESTIMATE = 'project-auto-estimate'

    # Lower value wins when ordering estimates on the same day
    PRIORITY = {
        EVENT: 0,
        PHASE_ALLOCATION: 1,
        PROJECT_AUTO_ESTIMATE: 2,
    }


@dataclass(frozen=True)
class DayEstimate:
    """Hours implied for one project on one day."""

    date: date
    project_id: str
    hours: float
    source: str
    phase_id: Optional[str] = None
    is_planned_event: Optional[bool] = None
    is_completed_event: Optional[bool] = None
    is_working_day: bool = True

    def sort_key(self):
        return (self.date, EstimateSource.PRIORITY.get(self.source, 99), self.phase_id or '')

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['date'] = self.date.isoformat()
        return data


@dataclass
class SegmentDecision:
    """Records how one phase segment was distributed."""

    phase_id: Optional[str]
    segment_start: date
    segment_end: date
    allocation_hours: float
    consumed_hours: float
    remaining_hours: float
    working_days: int
    estimated_days: int
    hours_per_day: float
    reason: str
    occurrence: Optional[int] = None


@dataclass
class EstimateTrace:
    """Complete trace of one project's estimate run."""

    project_id: str
    timestamp: datetime
    today: date
    config: Dict[str, Any]
    decisions: List[SegmentDecision] = field(default_factory=list)
    summary_stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert trace to dictionary for JSON export."""
        return asdict(self)

    def to_human_readable(self) -> str:
        """Generate human-readable log format."""
        lines = [
            f"=== Estimate Run: {self.project_id} ===",
            f"Today: {self.today}",
            f"Timestamp: {self.timestamp}",
            "",
            "Configuration:",
        ]

        for key, value in self.config.items():
            lines.append(f"  {key}: {value}")

        lines.extend([
            "",
            "Segment Decisions:",
        ])

        for decision in self.decisions:
            label = decision.phase_id or 'project'
            if decision.occurrence is not None:
                label = f"{label} #{decision.occurrence}"
            lines.append(f"  {label}: {decision.segment_start} -> {decision.segment_end}")
            lines.append(
                f"    Allocation: {decision.allocation_hours:.2f}h, "
                f"consumed: {decision.consumed_hours:.2f}h, "
                f"remaining: {decision.remaining_hours:.2f}h"
            )
            lines.append(
                f"    Working days: {decision.working_days}, "
                f"estimated days: {decision.estimated_days}, "
                f"per day: {decision.hours_per_day:.2f}h"
            )
            lines.append(f"    Reason: {decision.reason}")

        lines.extend([
            "",
            "Summary Statistics:",
        ])

        for key, value in self.summary_stats.items():
            lines.append(f"  {key}: {value}")

        lines.append("=" * 50)

        return "\n".join(lines)
