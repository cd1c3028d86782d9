"""Scenario files: materialized engine inputs loaded from YAML or JSON."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .models.project import CalendarEvent, Holiday, Phase, Project, Settings, WorkSlot
from .utils.config import get_default_config
from .utils.datetime_utils import WEEKDAY_NAMES

logger = logging.getLogger(__name__)


@dataclass
class Scenario:
    """Everything the engine needs for one project."""

    project: Project
    settings: Settings
    phases: List[Phase] = field(default_factory=list)
    holidays: List[Holiday] = field(default_factory=list)
    events: List[CalendarEvent] = field(default_factory=list)

    def find_phase(self, phase_id: str) -> Optional[Phase]:
        for phase in self.phases:
            if phase.id == phase_id:
                return phase
        return None


def default_settings(config: Optional[Dict[str, Any]] = None) -> Settings:
    """Build a weekly schedule from the config's schedule section."""
    schedule = (config or get_default_config()).get('schedule', {})
    slot = WorkSlot.from_dict({
        'start_time': schedule.get('working_hours_start', '09:00'),
        'end_time': schedule.get('working_hours_end', '17:00'),
    })
    working_days = set(schedule.get('working_days', [0, 1, 2, 3, 4]))
    return Settings(weekly_work_hours={
        name: [slot] if index in working_days else []
        for index, name in enumerate(WEEKDAY_NAMES)
    })


def parse_scenario(data: Dict[str, Any], config: Optional[Dict[str, Any]] = None) -> Scenario:
    """Build a Scenario from a plain mapping."""
    if not isinstance(data, dict) or 'project' not in data:
        raise ValueError("Scenario must be a mapping with a 'project' key")

    project = Project.from_dict(data['project'])

    if data.get('settings'):
        settings = Settings.from_dict(data['settings'])
    else:
        logger.info("Scenario has no settings, using configured default schedule")
        settings = default_settings(config)

    phases = [Phase.from_dict(item) for item in data.get('phases') or []]
    for phase in phases:
        if phase.project_id and phase.project_id != project.id:
            logger.warning("Phase %s belongs to project %s, not %s", phase.id, phase.project_id, project.id)

    return Scenario(
        project=project,
        settings=settings,
        phases=[phase for phase in phases if not phase.project_id or phase.project_id == project.id],
        holidays=[Holiday.from_dict(item) for item in data.get('holidays') or []],
        events=[CalendarEvent.from_dict(item) for item in data.get('events') or []],
    )


def load_scenario(scenario_path: str, config: Optional[Dict[str, Any]] = None) -> Scenario:
    """Load a scenario from a YAML or JSON file."""
    path = Path(scenario_path)

    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {scenario_path}")

    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        elif path.suffix.lower() == '.json':
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported scenario file format: {path.suffix}")

    return parse_scenario(data, config)
