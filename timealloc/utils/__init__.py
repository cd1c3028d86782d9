"""Utility functions."""

from .config import get_default_config, load_config, resolve_config
from .datetime_utils import date_key, iter_days, to_date, weekday_name

__all__ = [
    'date_key',
    'get_default_config',
    'iter_days',
    'load_config',
    'resolve_config',
    'to_date',
    'weekday_name',
]
