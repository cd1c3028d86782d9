"""Configuration management."""

import copy
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML or JSON file, merged over the defaults."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            loaded = yaml.safe_load(f)
        elif path.suffix.lower() == '.json':
            loaded = json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    return merge_config(get_default_config(), loaded)


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return the defaults, or the defaults overlaid with a partial config."""
    if not config:
        return get_default_config()
    return merge_config(get_default_config(), config)


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        'estimation': {
            'trailing_budget_segment': True,
            'round_hours': None,  # decimal places for exported hours, None keeps full precision
        },
        'recurrence': {
            'lookback_days': 30,  # past occurrences kept before today
            'continuous_horizon_days': 90,
            'max_occurrences': 365,
            'continuous_max_occurrences': 100,
        },
        'schedule': {
            # Fallback weekly schedule used when a scenario ships no settings
            'working_days': [0, 1, 2, 3, 4],  # Monday to Friday
            'working_hours_start': '09:00',
            'working_hours_end': '17:00',
        },
        'cache': {
            'enabled': False,
            'max_entries': 256,
        },
    }
