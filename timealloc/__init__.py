"""Time allocation and recurrence engine for project day estimates."""

from .engine import compute_all_day_estimates, compute_day_estimates
from .validation import analyze_budget, validate_budget

__version__ = '0.1.0'

__all__ = [
    'analyze_budget',
    'compute_all_day_estimates',
    'compute_day_estimates',
    'validate_budget',
]
