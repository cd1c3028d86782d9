"""Budget validation."""

from .budget import (
    BudgetAnalysis,
    BudgetCheck,
    BudgetValidation,
    analyze_budget,
    check_budget_constraint,
    generate_recommendations,
    validate_budget,
    validate_phase_against_budget,
    validate_phase_time,
)

__all__ = [
    'BudgetAnalysis',
    'BudgetCheck',
    'BudgetValidation',
    'analyze_budget',
    'check_budget_constraint',
    'generate_recommendations',
    'validate_budget',
    'validate_phase_against_budget',
    'validate_phase_time',
]
