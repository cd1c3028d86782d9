"""Tests for the project estimate aggregator."""

from datetime import date, timedelta

import pytest

from timealloc.engine.cache import EstimateCache
from timealloc.engine.estimator import (
    ProjectEstimateAggregator,
    aggregate_day_estimates_by_date,
    compute_all_day_estimates,
    compute_day_estimates,
    total_estimate_hours,
)
from timealloc.models.estimate import EstimateSource
from timealloc.models.project import Holiday, Project, RecurringConfig

from conftest import BEFORE_SCENARIOS, make_event, make_phase, weekly

MID_JANUARY_HOLIDAY = Holiday(start_date=date(2026, 1, 15), end_date=date(2026, 1, 15), title="Company day")


@pytest.fixture
def two_week_project():
    return Project(id="proj-jan", start_date=date(2026, 1, 5), end_date=date(2026, 1, 16), estimated_hours=20.0)


def sources(estimates):
    return {estimate.source for estimate in estimates}


class TestProjectFallback:

    def test_budget_spread_over_all_weekdays(self, january_project, weekday_settings, today):
        estimates = compute_day_estimates(january_project, [], weekday_settings, [], today=today)

        assert len(estimates) == 22
        assert sources(estimates) == {EstimateSource.PROJECT_AUTO_ESTIMATE}
        assert all(estimate.hours == pytest.approx(40.0 / 22) for estimate in estimates)
        assert total_estimate_hours(estimates) == pytest.approx(40.0)

    def test_holiday_is_skipped(self, january_project, weekday_settings, today):
        estimates = compute_day_estimates(
            january_project, [], weekday_settings, [MID_JANUARY_HOLIDAY], today=today
        )

        assert len(estimates) == 21
        assert date(2026, 1, 15) not in {estimate.date for estimate in estimates}
        assert estimates[0].hours == pytest.approx(40.0 / 21)

    def test_nothing_is_estimated_before_today(self, january_project, weekday_settings):
        estimates = compute_day_estimates(
            january_project, [], weekday_settings, [], today=date(2026, 1, 8)
        )

        assert estimates[0].date == date(2026, 1, 8)
        assert len(estimates) == 17
        assert estimates[0].hours == pytest.approx(40.0 / 17)

    def test_continuous_project_without_phases_is_empty(self, weekday_settings, today):
        project = Project(
            id="ongoing", start_date=date(2026, 1, 1), end_date=date(2026, 1, 1),
            estimated_hours=100.0, continuous=True,
        )
        assert compute_day_estimates(project, [], weekday_settings, [], today=today) == []

    def test_zero_budget_is_empty(self, weekday_settings, today):
        project = Project(id="p", start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
        assert compute_day_estimates(project, [], weekday_settings, [], today=today) == []

    def test_project_in_past_is_empty(self, january_project, weekday_settings):
        assert compute_day_estimates(
            january_project, [], weekday_settings, [], today=date(2026, 3, 1)
        ) == []


class TestEvents:

    def test_event_day_has_only_event_estimate(self, two_week_project, weekday_settings, today):
        phase = make_phase("build", date(2026, 1, 16), 20.0, start=date(2026, 1, 5))
        events = [make_event(date(2026, 1, 7), 9, 12, completed=True)]

        estimates = compute_day_estimates(
            two_week_project, [phase], weekday_settings, [], events, today=today
        )
        on_event_day = [estimate for estimate in estimates if estimate.date == date(2026, 1, 7)]

        assert len(on_event_day) == 1
        event_estimate = on_event_day[0]
        assert event_estimate.source == EstimateSource.EVENT
        assert event_estimate.hours == pytest.approx(3.0)
        assert event_estimate.is_completed_event is True
        assert event_estimate.is_planned_event is False

        phase_estimates = [e for e in estimates if e.source == EstimateSource.PHASE_ALLOCATION]
        assert len(phase_estimates) == 9
        assert all(estimate.hours == pytest.approx(17.0 / 9) for estimate in phase_estimates)

    def test_phase_budget_is_conserved(self, two_week_project, weekday_settings, today):
        phase = make_phase("build", date(2026, 1, 16), 20.0, start=date(2026, 1, 5))
        events = [make_event(date(2026, 1, 7), 9, 12, completed=True), make_event(date(2026, 1, 13), 9, 11)]

        estimates = compute_day_estimates(
            two_week_project, [phase], weekday_settings, [], events, today=today
        )

        assert total_estimate_hours(estimates) == pytest.approx(20.0)

    def test_planned_and_completed_on_same_day(self, two_week_project, weekday_settings, today):
        events = [
            make_event(date(2026, 1, 6), 9, 11),
            make_event(date(2026, 1, 6), 13, 14, completed=True),
        ]
        estimates = compute_day_estimates(two_week_project, [], weekday_settings, [], events, today=today)
        event_estimate = next(e for e in estimates if e.source == EstimateSource.EVENT)

        assert event_estimate.hours == pytest.approx(3.0)
        assert event_estimate.is_planned_event is True
        assert event_estimate.is_completed_event is True

    def test_past_events_are_still_reported(self, two_week_project, weekday_settings):
        events = [make_event(date(2026, 1, 6), 9, 11, completed=True)]
        estimates = compute_day_estimates(
            two_week_project, [], weekday_settings, [], events, today=date(2026, 1, 12)
        )

        assert estimates[0].date == date(2026, 1, 6)
        assert estimates[0].source == EstimateSource.EVENT

    def test_other_projects_events_are_ignored(self, two_week_project, weekday_settings, today):
        events = [make_event(date(2026, 1, 6), 9, 17, project_id="someone-else")]
        estimates = compute_day_estimates(two_week_project, [], weekday_settings, [], events, today=today)

        assert sources(estimates) == {EstimateSource.PROJECT_AUTO_ESTIMATE}
        assert len(estimates) == 10


class TestPhases:

    def test_milestone_starts_after_previous_phase(self, two_week_project, weekday_settings, today):
        phases = [
            make_phase("design", date(2026, 1, 9), 8.0, start=date(2026, 1, 5)),
            make_phase("build", date(2026, 1, 16), 10.0),
        ]
        estimates = compute_day_estimates(two_week_project, phases, weekday_settings, [], today=today)
        build = [e for e in estimates if e.phase_id == "build"]

        assert [e.date for e in build] == [date(2026, 1, d) for d in range(12, 17)]
        assert all(e.hours == pytest.approx(2.0) for e in build)

    def test_first_milestone_starts_at_project_start(self, two_week_project, weekday_settings, today):
        phases = [make_phase("only", date(2026, 1, 9), 10.0)]
        estimates = compute_day_estimates(two_week_project, phases, weekday_settings, [], today=today)
        only = [e for e in estimates if e.phase_id == "only"]

        assert only[0].date == date(2026, 1, 5)
        assert len(only) == 5

    def test_phases_are_processed_in_deadline_order(self, two_week_project, weekday_settings, today):
        phases = [
            make_phase("build", date(2026, 1, 16), 10.0),
            make_phase("design", date(2026, 1, 9), 5.0),
        ]
        estimates = compute_day_estimates(two_week_project, phases, weekday_settings, [], today=today)

        assert {e.date for e in estimates if e.phase_id == "design"} == {
            date(2026, 1, d) for d in range(5, 10)
        }
        assert {e.date for e in estimates if e.phase_id == "build"} == {
            date(2026, 1, d) for d in range(12, 17)
        }

    def test_no_project_fallback_when_phases_exist(self, january_project, weekday_settings, today):
        phases = [make_phase("all", date(2026, 1, 31), 40.0, start=date(2026, 1, 1))]
        estimates = compute_day_estimates(january_project, phases, weekday_settings, [], today=today)

        assert sources(estimates) == {EstimateSource.PHASE_ALLOCATION}

    def test_trailing_budget_after_last_phase(self, weekday_settings, today):
        project = Project(id="proj-jan", start_date=date(2026, 1, 5), end_date=date(2026, 1, 16),
                          estimated_hours=30.0)
        phases = [make_phase("design", date(2026, 1, 9), 20.0, start=date(2026, 1, 5))]

        estimates = compute_day_estimates(project, phases, weekday_settings, [], today=today)
        trailing = [e for e in estimates if e.source == EstimateSource.PROJECT_AUTO_ESTIMATE]

        assert [e.date for e in trailing] == [date(2026, 1, d) for d in range(12, 17)]
        assert all(e.hours == pytest.approx(2.0) for e in trailing)
        assert total_estimate_hours(estimates) == pytest.approx(30.0)

    def test_trailing_budget_can_be_disabled(self, weekday_settings, today):
        project = Project(id="proj-jan", start_date=date(2026, 1, 5), end_date=date(2026, 1, 16),
                          estimated_hours=30.0)
        phases = [make_phase("design", date(2026, 1, 9), 20.0, start=date(2026, 1, 5))]

        estimates = compute_day_estimates(
            project, phases, weekday_settings, [], today=today,
            config={'estimation': {'trailing_budget_segment': False}},
        )

        assert sources(estimates) == {EstimateSource.PHASE_ALLOCATION}
        assert total_estimate_hours(estimates) == pytest.approx(20.0)

    def test_recurring_phase_repeats_full_allocation(self, weekday_settings, today):
        project = Project(id="proj-jan", start_date=date(2026, 1, 5), end_date=date(2026, 1, 31),
                          estimated_hours=10.0)
        phases = [make_phase("weekly", date(2026, 1, 31), 10.0, recurring=weekly(0))]

        estimates = compute_day_estimates(project, phases, weekday_settings, [], today=today)

        assert len(estimates) == 15
        assert total_estimate_hours(estimates) == pytest.approx(30.0)
        assert sources(estimates) == {EstimateSource.PHASE_ALLOCATION}

    def test_continuous_project_recurs_to_horizon(self, weekday_settings):
        project = Project(id="ongoing", start_date=date(2026, 1, 5), end_date=date(2026, 1, 5),
                          continuous=True)
        phases = [make_phase("weekly", date(2026, 1, 5), 10.0, recurring=weekly(0), project_id="ongoing")]

        estimates, trace = ProjectEstimateAggregator().estimate(
            project, phases, weekday_settings, [], today=date(2026, 1, 5)
        )

        # Mondays Jan 5 .. Mar 30 give twelve full weeks
        assert len(trace.decisions) == 12
        assert len(estimates) == 60
        assert max(e.date for e in estimates) == date(2026, 3, 27)

    def test_long_running_continuous_project_estimates_from_today(self, weekday_settings):
        today = date(2026, 10, 1)
        start = today - timedelta(days=200)
        project = Project(id="ongoing", start_date=start, end_date=start, continuous=True)
        phases = [make_phase("daily", start, 2.0, recurring=RecurringConfig(type="daily"),
                             project_id="ongoing")]

        estimates = compute_day_estimates(project, phases, weekday_settings, [], today=today)

        assert estimates
        assert min(e.date for e in estimates) == today
        assert all(e.hours == pytest.approx(2.0) for e in estimates)
        assert all(e.date.weekday() < 5 for e in estimates)


class TestOutput:

    def test_output_is_sorted_and_idempotent(self, january_project, weekday_settings, today):
        phases = [
            make_phase("design", date(2026, 1, 16), 12.0, start=date(2026, 1, 1)),
            make_phase("build", date(2026, 1, 30), 20.0),
        ]
        events = [make_event(date(2026, 1, 20), 9, 11)]

        first = compute_day_estimates(january_project, phases, weekday_settings, [], events, today=today)
        second = compute_day_estimates(january_project, phases, weekday_settings, [], events, today=today)

        assert first == second
        assert first == sorted(first, key=lambda e: e.sort_key())

    def test_estimates_never_fall_on_non_working_days(self, january_project, weekday_settings, today):
        phases = [make_phase("all", date(2026, 1, 31), 40.0, start=date(2026, 1, 1))]
        estimates = compute_day_estimates(
            january_project, phases, weekday_settings, [MID_JANUARY_HOLIDAY], today=today
        )

        assert all(e.date.weekday() < 5 for e in estimates)
        assert date(2026, 1, 15) not in {e.date for e in estimates}

    def test_trace_records_decisions(self, two_week_project, weekday_settings, today):
        phases = [make_phase("build", date(2026, 1, 16), 20.0, start=date(2026, 1, 5))]
        _, trace = ProjectEstimateAggregator().estimate(
            two_week_project, phases, weekday_settings, [], today=today
        )

        assert trace.project_id == "proj-jan"
        assert trace.decisions[0].phase_id == "build"
        assert trace.summary_stats['total_hours'] == pytest.approx(20.0)
        assert trace.summary_stats['first_day'] == "2026-01-05"
        assert "Segment Decisions:" in trace.to_human_readable()

    def test_cache_returns_stored_result(self, january_project, weekday_settings, today):
        cache = EstimateCache()
        first = compute_day_estimates(january_project, [], weekday_settings, [], today=today, cache=cache)
        second = compute_day_estimates(january_project, [], weekday_settings, [], today=today, cache=cache)

        assert first == second
        assert cache.hits == 1
        assert cache.misses == 1

    def test_estimate_with_trace_uses_cache(self, january_project, weekday_settings, today):
        aggregator = ProjectEstimateAggregator(cache=EstimateCache())
        first, first_trace = aggregator.estimate(january_project, [], weekday_settings, [], today=today)
        second, second_trace = aggregator.estimate(january_project, [], weekday_settings, [], today=today)

        assert second == first
        assert second_trace is first_trace
        assert aggregator.cache.hits == 1

    def test_cache_key_depends_on_today(self, january_project, weekday_settings):
        cache = EstimateCache()
        compute_day_estimates(january_project, [], weekday_settings, [], today=date(2026, 1, 1), cache=cache)
        later = compute_day_estimates(
            january_project, [], weekday_settings, [], today=date(2026, 1, 20), cache=cache
        )

        assert cache.hits == 0
        assert later[0].date == date(2026, 1, 20)


def test_compute_all_matches_phases_to_projects(january_project, weekday_settings, today):
    other = Project(id="other", start_date=date(2026, 1, 1), end_date=date(2026, 1, 31), estimated_hours=22.0)
    phases = [make_phase("jan-phase", date(2026, 1, 9), 5.0, start=date(2026, 1, 5))]

    results = compute_all_day_estimates([january_project, other], phases, weekday_settings, [], today=today)

    assert {e.phase_id for e in results["proj-jan"]} >= {"jan-phase"}
    assert sources(results["other"]) == {EstimateSource.PROJECT_AUTO_ESTIMATE}
    assert total_estimate_hours(results["other"]) == pytest.approx(22.0)

    by_date = aggregate_day_estimates_by_date(results["proj-jan"] + results["other"])
    assert {e.project_id for e in by_date[date(2026, 1, 5)]} == {"proj-jan", "other"}
