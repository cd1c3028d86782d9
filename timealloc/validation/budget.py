"""Project budget analysis and phase allocation validation.

Works on raw phase allocations against the project budget (estimated hours),
independently of the day-level estimates. Nothing here raises: every check
returns a structured result and callers decide whether errors block a save.
"""

import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence

from ..models.project import Phase, safe_hours

HIGH_UTILIZATION_THRESHOLD = 0.9
SINGLE_PHASE_DOMINANCE_THRESHOLD = 0.5
UNEVEN_DISTRIBUTION_RATIO = 0.5
UNALLOCATED_WARNING_RATIO = 0.3
UNEVEN_DISTRIBUTION_MIN_PHASES = 3


@dataclass
class BudgetCheck:
    """Allocated hours measured against the project budget."""

    is_valid: bool
    total_allocated: float
    project_budget: float
    remaining: float
    overage: float
    utilization_percentage: float


@dataclass
class BudgetValidation:
    """Blocking errors and non-blocking warnings."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BudgetAnalysis:
    """Budget figures plus recommendations for a project."""

    total_allocated: float
    project_budget: float
    remaining: float
    overage: float
    utilization_percentage: float
    average_phase_allocation: float
    phase_count: int
    is_over_budget: bool
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _budget(value: float) -> float:
    return safe_hours(value)


def _allocations(phases: Sequence[Phase]) -> List[float]:
    return [safe_hours(phase.time_allocation_hours) for phase in phases]


def calculate_total_allocation(phases: Sequence[Phase]) -> float:
    return sum(_allocations(phases))


def calculate_budget_utilization(phases: Sequence[Phase], project_budget: float) -> float:
    """Allocated share of the budget in percent (can exceed 100)."""
    budget = _budget(project_budget)
    if budget == 0:
        return 0.0
    return calculate_total_allocation(phases) / budget * 100


def calculate_remaining_budget(phases: Sequence[Phase], project_budget: float) -> float:
    """Budget minus allocations; negative when over budget."""
    return _budget(project_budget) - calculate_total_allocation(phases)


def calculate_budget_overage(phases: Sequence[Phase], project_budget: float) -> float:
    return max(0.0, calculate_total_allocation(phases) - _budget(project_budget))


def calculate_average_phase_allocation(phases: Sequence[Phase]) -> float:
    if not phases:
        return 0.0
    return calculate_total_allocation(phases) / len(phases)


def allocation_standard_deviation(phases: Sequence[Phase]) -> float:
    """Population standard deviation of phase allocations."""
    allocations = _allocations(phases)
    if not allocations:
        return 0.0
    mean = sum(allocations) / len(allocations)
    variance = sum((value - mean) ** 2 for value in allocations) / len(allocations)
    return math.sqrt(variance)


def check_budget_constraint(
    phases: Sequence[Phase],
    project_budget: float,
    exclude_phase_id: Optional[str] = None,
) -> BudgetCheck:
    """Check that allocations fit the budget, optionally ignoring one phase (updates)."""
    relevant = [phase for phase in phases if phase.id != exclude_phase_id] if exclude_phase_id else list(phases)
    budget = _budget(project_budget)
    total = calculate_total_allocation(relevant)
    return BudgetCheck(
        is_valid=total <= budget,
        total_allocated=total,
        project_budget=budget,
        remaining=budget - total,
        overage=max(0.0, total - budget),
        utilization_percentage=(total / budget * 100) if budget > 0 else 0.0,
    )


def can_accommodate_additional_phase(
    phases: Sequence[Phase],
    project_budget: float,
    additional_hours: float,
) -> bool:
    return check_budget_constraint(phases, project_budget).remaining >= additional_hours


def validate_phase_time(time_allocation: float, project_budget: float) -> BudgetValidation:
    """Validate a single phase allocation against the budget."""
    errors: List[str] = []
    warnings: List[str] = []
    budget = _budget(project_budget)

    if not math.isfinite(time_allocation) or time_allocation < 0:
        errors.append('Phase time allocation cannot be negative')
    elif time_allocation == 0:
        warnings.append('Phase has 0h allocated; work will not be distributed until hours are set')
    elif time_allocation > budget:
        errors.append(f"Phase allocation ({time_allocation}h) exceeds project budget ({budget}h)")
    elif time_allocation > budget * SINGLE_PHASE_DOMINANCE_THRESHOLD:
        warnings.append('Phase allocation is over 50% of project budget')

    return BudgetValidation(is_valid=not errors, errors=errors, warnings=warnings)


def validate_phase_against_budget(
    existing_phases: Sequence[Phase],
    phase_hours: float,
    project_budget: float,
    is_recurring: bool = False,
    exclude_phase_id: Optional[str] = None,
) -> BudgetValidation:
    """Validate adding or updating a phase. Recurring phases are never checked."""
    if is_recurring:
        return BudgetValidation(is_valid=True)

    errors: List[str] = []
    warnings: List[str] = []
    hours = safe_hours(phase_hours)
    check = check_budget_constraint(existing_phases, project_budget, exclude_phase_id)

    if check.remaining < hours:
        errors.append(
            f"Adding this phase would exceed project budget. "
            f"Current allocation: {check.total_allocated:g}h, "
            f"New phase: {hours:g}h, "
            f"Project budget: {check.project_budget:g}h"
        )

    if check.project_budget > 0:
        projected = (check.total_allocated + hours) / check.project_budget
        if HIGH_UTILIZATION_THRESHOLD <= projected < 1:
            warnings.append(f"Adding this phase will use {projected * 100:.1f}% of project budget")

    return BudgetValidation(is_valid=not errors, errors=errors, warnings=warnings)


def validate_budget(phases: Sequence[Phase], project_budget: float) -> BudgetValidation:
    """Validate a project's full phase set.

    Recurring phases bypass the budget constraint: their total impact is not a
    single fixed allocation. Warnings are still reported for them.
    """
    errors: List[str] = []
    warnings: List[str] = []

    has_recurring = any(phase.is_recurring for phase in phases)
    check = check_budget_constraint(phases, project_budget)

    if not check.is_valid and not has_recurring:
        errors.append(
            f"Phase allocations ({check.total_allocated:g}h) exceed project budget "
            f"({check.project_budget:g}h) by {check.overage:.1f}h"
        )

    utilization = check.utilization_percentage
    if HIGH_UTILIZATION_THRESHOLD * 100 <= utilization < 100:
        warnings.append(f"Budget utilization at {utilization:.1f}% - approaching project limit")

    if check.project_budget > 0:
        for phase in phases:
            if safe_hours(phase.time_allocation_hours) > check.project_budget * SINGLE_PHASE_DOMINANCE_THRESHOLD:
                warnings.append(f"Phase {phase.name or phase.id} uses over 50% of project budget")

    if _is_uneven(phases):
        warnings.append('Phase allocations vary significantly across phases')

    for phase in phases:
        if safe_hours(phase.time_allocation_hours) == 0:
            warnings.append(
                f"Phase {phase.name or phase.id} has 0h allocated; "
                f"work will not be distributed until hours are set"
            )

    return BudgetValidation(is_valid=not errors, errors=errors, warnings=warnings)


def _is_uneven(phases: Sequence[Phase]) -> bool:
    if len(phases) < UNEVEN_DISTRIBUTION_MIN_PHASES:
        return False
    mean = calculate_average_phase_allocation(phases)
    return mean > 0 and allocation_standard_deviation(phases) > mean * UNEVEN_DISTRIBUTION_RATIO


def generate_recommendations(phases: Sequence[Phase], project_budget: float) -> List[str]:
    """Human-readable suggestions derived from the budget thresholds."""
    recommendations: List[str] = []
    check = check_budget_constraint(phases, project_budget)

    if not check.is_valid:
        recommendations.append(
            f"Budget exceeded by {check.overage:.1f}h. "
            f"Consider reducing phase allocations or increasing project budget."
        )

    if HIGH_UTILIZATION_THRESHOLD * 100 <= check.utilization_percentage < 100:
        recommendations.append(
            f"Budget utilization is {check.utilization_percentage:.1f}%. "
            f"Consider leaving buffer for unexpected work."
        )

    if phases and check.remaining > check.project_budget * UNALLOCATED_WARNING_RATIO:
        recommendations.append(
            f"{check.remaining:.1f}h unallocated. "
            f"Consider distributing remaining budget to phases or reducing project scope."
        )

    if not phases and check.project_budget > 0:
        recommendations.append(
            f"No phases defined. Create phases to allocate the {check.project_budget:g}h budget."
        )

    if len(phases) > 1:
        largest = max(_allocations(phases))
        if largest > check.project_budget * SINGLE_PHASE_DOMINANCE_THRESHOLD:
            recommendations.append(
                'One phase uses over 50% of budget. Consider breaking down into smaller phases.'
            )

    if _is_uneven(phases):
        recommendations.append(
            'Phase allocations vary significantly. '
            'Consider more balanced distribution for predictable workflow.'
        )

    return recommendations


def analyze_budget(phases: Sequence[Phase], project_budget: float) -> BudgetAnalysis:
    """Full budget picture for a project, with recommendations."""
    check = check_budget_constraint(phases, project_budget)
    return BudgetAnalysis(
        total_allocated=check.total_allocated,
        project_budget=check.project_budget,
        remaining=check.remaining,
        overage=check.overage,
        utilization_percentage=check.utilization_percentage,
        average_phase_allocation=calculate_average_phase_allocation(phases),
        phase_count=len(phases),
        is_over_budget=check.total_allocated > check.project_budget,
        recommendations=generate_recommendations(phases, project_budget),
    )


def suggest_phase_allocation(phases: Sequence[Phase], project_budget: float) -> float:
    """Remaining budget split evenly across the existing phases."""
    if not phases:
        return 0.0
    return max(0.0, calculate_remaining_budget(phases, project_budget) / len(phases))


def is_budget_well_distributed(phases: Sequence[Phase], project_budget: float) -> bool:
    """Healthy utilization (70-95%) and no phase over half the budget."""
    if not phases:
        return False
    check = check_budget_constraint(phases, project_budget)
    healthy = 70 <= check.utilization_percentage <= 95
    no_dominance = max(_allocations(phases)) <= check.project_budget * SINGLE_PHASE_DOMINANCE_THRESHOLD
    return healthy and no_dominance
