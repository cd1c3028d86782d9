"""Tests for phase segment allocation."""

from datetime import date

import pytest

from timealloc.engine.events import blocked_dates, group_events_by_date, summarize_events_by_date
from timealloc.engine.phases import PhaseSegmentAllocator
from timealloc.models.estimate import EstimateSource
from timealloc.models.project import Holiday, Project, RecurringConfig

from conftest import BEFORE_SCENARIOS, make_event, make_phase, weekly


def build_allocator(project, settings, events=(), holidays=(), today=BEFORE_SCENARIOS):
    grouped = group_events_by_date(events)
    return PhaseSegmentAllocator(
        project, settings, list(holidays), summarize_events_by_date(grouped), blocked_dates(grouped), today,
    )


@pytest.fixture
def two_week_project():
    return Project(id="proj-jan", start_date=date(2026, 1, 5), end_date=date(2026, 1, 16), estimated_hours=40.0)


def test_even_spread_over_working_days(weekday_settings, two_week_project):
    allocator = build_allocator(two_week_project, weekday_settings)
    estimates, decision = allocator.allocate_segment(date(2026, 1, 5), date(2026, 1, 16), 20.0, phase_id="ph")

    assert len(estimates) == 10
    assert all(estimate.hours == pytest.approx(2.0) for estimate in estimates)
    assert all(estimate.source == EstimateSource.PHASE_ALLOCATION for estimate in estimates)
    assert decision.working_days == 10
    assert decision.remaining_hours == pytest.approx(20.0)


def test_completed_event_reduces_and_blocks(weekday_settings, two_week_project):
    events = [make_event(date(2026, 1, 7), 9, 12, completed=True)]
    allocator = build_allocator(two_week_project, weekday_settings, events)
    estimates, decision = allocator.allocate_segment(date(2026, 1, 5), date(2026, 1, 16), 20.0, phase_id="ph")

    assert decision.consumed_hours == pytest.approx(3.0)
    assert date(2026, 1, 7) not in {estimate.date for estimate in estimates}
    assert len(estimates) == 9
    assert sum(estimate.hours for estimate in estimates) == pytest.approx(17.0)
    assert estimates[0].hours == pytest.approx(17.0 / 9)


def test_planned_event_hours_also_consume_allocation(weekday_settings, two_week_project):
    events = [make_event(date(2026, 1, 12), 9, 13)]
    allocator = build_allocator(two_week_project, weekday_settings, events)
    estimates, _ = allocator.allocate_segment(date(2026, 1, 5), date(2026, 1, 16), 20.0)

    assert sum(estimate.hours for estimate in estimates) == pytest.approx(16.0)


def test_events_outside_segment_do_not_count(weekday_settings, two_week_project):
    events = [make_event(date(2026, 1, 14), 9, 13)]
    allocator = build_allocator(two_week_project, weekday_settings, events)
    estimates, decision = allocator.allocate_segment(date(2026, 1, 5), date(2026, 1, 9), 10.0)

    assert decision.consumed_hours == 0.0
    assert sum(estimate.hours for estimate in estimates) == pytest.approx(10.0)


def test_events_exceeding_allocation_leave_nothing(weekday_settings, two_week_project):
    events = [make_event(date(2026, 1, 6), 8, 18, completed=True)]
    allocator = build_allocator(two_week_project, weekday_settings, events)
    estimates, decision = allocator.allocate_segment(date(2026, 1, 5), date(2026, 1, 9), 6.0)

    assert estimates == []
    assert decision.remaining_hours == 0.0
    assert decision.reason == "Allocation consumed by events"


def test_zero_and_invalid_allocations_produce_nothing(weekday_settings, two_week_project):
    allocator = build_allocator(two_week_project, weekday_settings)
    for hours in (0, -5, float('nan'), float('inf')):
        estimates, decision = allocator.allocate_segment(date(2026, 1, 5), date(2026, 1, 9), hours)
        assert estimates == []
        assert decision.allocation_hours == 0.0


def test_segment_without_working_days(weekday_settings, two_week_project):
    allocator = build_allocator(two_week_project, weekday_settings)
    estimates, decision = allocator.allocate_segment(date(2026, 1, 10), date(2026, 1, 11), 8.0)

    assert estimates == []
    assert decision.reason == "No remaining working days"


def test_holidays_are_skipped(weekday_settings, two_week_project):
    holidays = [Holiday(start_date=date(2026, 1, 8), end_date=date(2026, 1, 9))]
    allocator = build_allocator(two_week_project, weekday_settings, holidays=holidays)
    estimates, _ = allocator.allocate_segment(date(2026, 1, 5), date(2026, 1, 9), 9.0)

    assert [estimate.date for estimate in estimates] == [date(2026, 1, 5), date(2026, 1, 6), date(2026, 1, 7)]
    assert estimates[0].hours == pytest.approx(3.0)


def test_days_after_project_end_are_dropped(weekday_settings, two_week_project):
    allocator = build_allocator(two_week_project, weekday_settings)
    # Phase deadline runs past the project's end date
    estimates, decision = allocator.allocate_segment(date(2026, 1, 12), date(2026, 1, 23), 20.0)

    assert max(estimate.date for estimate in estimates) == date(2026, 1, 16)
    assert decision.working_days == 10
    assert decision.estimated_days == 5
    assert sum(estimate.hours for estimate in estimates) == pytest.approx(20.0)


def test_past_days_are_not_estimated(weekday_settings, two_week_project):
    allocator = build_allocator(two_week_project, weekday_settings, today=date(2026, 1, 12))
    estimates, _ = allocator.allocate_segment(date(2026, 1, 5), date(2026, 1, 16), 10.0)

    assert min(estimate.date for estimate in estimates) == date(2026, 1, 12)
    assert len(estimates) == 5
    assert estimates[0].hours == pytest.approx(2.0)


def test_recurring_phase_allocates_each_occurrence(weekday_settings):
    project = Project(id="proj-jan", start_date=date(2026, 1, 5), end_date=date(2026, 1, 31))
    phase = make_phase("weekly", date(2026, 1, 31), 10.0, recurring=weekly(0))
    allocator = build_allocator(project, weekday_settings)

    estimates, decisions = allocator.allocate_phase(phase, project.start_date)

    assert [decision.occurrence for decision in decisions] == [1, 2, 3]
    assert len(estimates) == 15
    assert all(estimate.hours == pytest.approx(2.0) for estimate in estimates)
    assert all(estimate.phase_id == "weekly" for estimate in estimates)


def test_recurring_occurrence_does_not_redistribute(weekday_settings):
    project = Project(id="proj-jan", start_date=date(2026, 1, 5), end_date=date(2026, 1, 31))
    phase = make_phase("weekly", date(2026, 1, 31), 10.0, recurring=weekly(0))
    events = [make_event(date(2026, 1, 6), 9, 11)]
    allocator = build_allocator(project, weekday_settings, events)

    estimates, decisions = allocator.allocate_phase(phase, project.start_date)
    first_week = [estimate for estimate in estimates if estimate.date <= date(2026, 1, 11)]

    # 8h left over 5 working days, the event day is dropped without re-spreading
    assert decisions[0].consumed_hours == pytest.approx(2.0)
    assert len(first_week) == 4
    assert all(estimate.hours == pytest.approx(8.0 / 5) for estimate in first_week)


def test_recurring_with_no_occurrences_falls_back(weekday_settings):
    project = Project(id="proj-jan", start_date=date(2026, 1, 5), end_date=date(2026, 1, 7))
    phase = make_phase("friday", date(2026, 1, 7), 6.0, recurring=weekly(4))
    allocator = build_allocator(project, weekday_settings)

    estimates, decisions = allocator.allocate_phase(phase, project.start_date)

    assert len(decisions) == 1
    assert decisions[0].occurrence is None
    assert len(estimates) == 3
    assert all(estimate.hours == pytest.approx(2.0) for estimate in estimates)


def test_monthly_recurring_phase_intervals(weekday_settings):
    project = Project(id="proj-jan", start_date=date(2026, 1, 1), end_date=date(2026, 3, 31))
    config = RecurringConfig(type="monthly", monthly_pattern="date", monthly_date=15)
    phase = make_phase("monthly", date(2026, 3, 31), 12.0, recurring=config)
    allocator = build_allocator(project, weekday_settings)

    _, decisions = allocator.allocate_phase(phase, project.start_date)

    assert [(d.segment_start, d.segment_end) for d in decisions] == [
        (date(2026, 1, 1), date(2026, 1, 14)),
        (date(2026, 1, 15), date(2026, 2, 14)),
        (date(2026, 2, 15), date(2026, 3, 14)),
    ]
