"""Day estimate engine."""

from .cache import EstimateCache
from .estimator import (
    ProjectEstimateAggregator,
    aggregate_day_estimates_by_date,
    compute_all_day_estimates,
    compute_day_estimates,
    total_estimate_hours,
)
from .phases import PhaseSegmentAllocator
from .recurrence import expand_anchors, expand_intervals
from .working_days import get_working_days_between, is_working_day

__all__ = [
    'EstimateCache',
    'PhaseSegmentAllocator',
    'ProjectEstimateAggregator',
    'aggregate_day_estimates_by_date',
    'compute_all_day_estimates',
    'compute_day_estimates',
    'expand_anchors',
    'expand_intervals',
    'get_working_days_between',
    'is_working_day',
    'total_estimate_hours',
]
