"""Main entry point for the Time Allocation Engine."""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from timealloc.engine.cache import EstimateCache
from timealloc.engine.estimator import ProjectEstimateAggregator
from timealloc.engine.recurrence import describe_recurrence, expand_anchors, anchor_intervals
from timealloc.scenario import load_scenario
from timealloc.utils.config import load_config, get_default_config
from timealloc.validation.budget import analyze_budget, validate_budget


def _load_config(config_path: str) -> dict:
    return load_config(config_path) if Path(config_path).exists() else get_default_config()


def _round(hours: float, places):
    return round(hours, places) if places is not None else hours


def run_estimate(scenario_path: str, config_path: str, today: date, output_dir: str = "results"):
    """Compute day estimates for a scenario and save them."""
    config = _load_config(config_path)
    scenario = load_scenario(scenario_path, config)

    cache_config = config.get('cache', {})
    cache = EstimateCache(cache_config.get('max_entries', 256)) if cache_config.get('enabled') else None
    aggregator = ProjectEstimateAggregator(config, cache)

    estimates, trace = aggregator.estimate(
        scenario.project,
        scenario.phases,
        scenario.settings,
        scenario.holidays,
        scenario.events,
        today,
    )

    places = config.get('estimation', {}).get('round_hours')
    rows = []
    for estimate in estimates:
        row = estimate.to_dict()
        row['hours'] = _round(estimate.hours, places)
        rows.append(row)

    print(f"\nEstimated project {scenario.project.id} as of {today}")
    print(f"Generated {len(estimates)} day estimates "
          f"({trace.summary_stats['total_hours']:.2f}h total)")

    results_dir = Path(output_dir)
    results_dir.mkdir(exist_ok=True)

    estimates_path = results_dir / f"estimates_{scenario.project.id}.json"
    with open(estimates_path, 'w') as f:
        json.dump(rows, f, indent=2, default=str)

    log_path = results_dir / f"estimates_{scenario.project.id}.log"
    with open(log_path, 'w') as f:
        f.write(trace.to_human_readable())

    print(f"Estimates saved to: {estimates_path}")
    print(f"Human-readable trace saved to: {log_path}")

    return estimates, trace


def run_budget_validation(scenario_path: str, config_path: str) -> bool:
    """Print budget analysis for a scenario; returns whether it is valid."""
    config = _load_config(config_path)
    scenario = load_scenario(scenario_path, config)
    budget = scenario.project.estimated_hours

    analysis = analyze_budget(scenario.phases, budget)
    validation = validate_budget(scenario.phases, budget)

    print("\n" + "=" * 70)
    print(f"BUDGET ANALYSIS: {scenario.project.id}")
    print("=" * 70)
    print(f"{'Project budget (h)':<40} {analysis.project_budget:<15.2f}")
    print(f"{'Total allocated (h)':<40} {analysis.total_allocated:<15.2f}")
    print(f"{'Remaining (h)':<40} {analysis.remaining:<15.2f}")
    print(f"{'Overage (h)':<40} {analysis.overage:<15.2f}")
    print(f"{'Utilization (%)':<40} {analysis.utilization_percentage:<15.1f}")
    print(f"{'Phases':<40} {analysis.phase_count:<15}")
    print(f"{'Valid':<40} {str(validation.is_valid):<15}")

    for title, items in (
        ('Errors', validation.errors),
        ('Warnings', validation.warnings),
        ('Recommendations', analysis.recommendations),
    ):
        if items:
            print(f"\n{title}:")
            for item in items:
                print(f"  - {item}")

    print("\n" + "=" * 70)

    return validation.is_valid


def run_occurrences(scenario_path: str, config_path: str, phase_id: str, today: date):
    """List anchors and work intervals of a recurring phase."""
    config = _load_config(config_path)
    scenario = load_scenario(scenario_path, config)

    phase = scenario.find_phase(phase_id)
    if phase is None:
        raise ValueError(f"Unknown phase: {phase_id}")
    if not phase.is_recurring or phase.recurring_config is None:
        raise ValueError(f"Phase {phase_id} is not recurring")

    anchors = expand_anchors(phase.recurring_config, scenario.project, today, config.get('recurrence'))
    intervals = anchor_intervals(anchors, scenario.project)

    print(f"\n{phase_id}: {describe_recurrence(phase.recurring_config)}")
    print(f"Anchors: {', '.join(anchor.isoformat() for anchor in anchors) or 'none'}")
    for number, (start, end) in enumerate(intervals, start=1):
        print(f"  #{number}: {start} -> {end} ({(end - start).days + 1} days)")

    return intervals


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Time Allocation & Recurrence Engine"
    )
    parser.add_argument(
        'command',
        choices=['estimate', 'validate-budget', 'occurrences'],
        help='Command to run'
    )
    parser.add_argument(
        'scenario',
        type=str,
        help='Path to a scenario file (YAML or JSON)'
    )
    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--today',
        type=date.fromisoformat,
        default=date.today(),
        help='Reference day in YYYY-MM-DD; nothing is estimated before it (default: today)'
    )
    parser.add_argument(
        '--phase',
        type=str,
        help='Phase id (occurrences command)'
    )
    parser.add_argument(
        '--output',
        type=str,
        default='results',
        help='Directory for estimate output (default: results)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='WARNING',
        help='Logging level (default: WARNING)'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.command == 'estimate':
        run_estimate(args.scenario, args.config, args.today, args.output)
    elif args.command == 'validate-budget':
        if not run_budget_validation(args.scenario, args.config):
            sys.exit(1)
    elif args.command == 'occurrences':
        if not args.phase:
            parser.error('--phase is required for the occurrences command')
        run_occurrences(args.scenario, args.config, args.phase, args.today)


if __name__ == "__main__":
    main()
