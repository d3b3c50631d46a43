"""
Tournament defaults, optionally overridden by a YAML settings file.
"""
import os
from typing import Any, Dict, Optional

import yaml

from .errors import ValidationError
from .models import KnockoutLogic, TieBreakRule, TournamentFormat, parse_enum

BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DATA_DIR = os.environ.get('ARENA_DATA_DIR', os.path.join(BASE_DIR, 'data'))
SETTINGS_FILE = os.path.join(DATA_DIR, 'settings.yaml')


def get_default_settings() -> Dict[str, Any]:
    """Return default tournament settings."""
    return {
        'format': 'LEAGUE',
        'max_tables': 2,
        'location_label': 'Mesa',
        'num_groups': 2,
        'advance_count_per_group': 2,
        'tie_break_rules': ['POINTS', 'GOAL_DIFF', 'GOALS_FOR', 'WINS'],
        'use_knockout_advantage': False,
        'knockout_logic': 'OLYMPIC',
    }


def _positive_int(settings, key):
    value = settings[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"Setting '{key}' must be a positive integer, got {value!r}")
    return value


def normalize_settings(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Overlay raw settings on the defaults and convert values to engine types.

    Unknown keys are ignored. Enum-valued settings become enum members and
    tie_break_rules becomes a tuple of TieBreakRule.
    """
    settings = get_default_settings()
    if raw:
        if not isinstance(raw, dict):
            raise ValidationError("Settings must be a mapping")
        settings.update({key: value for key, value in raw.items() if key in settings})

    rules = settings['tie_break_rules'] or []
    if isinstance(rules, str):
        rules = [rules]
    return {
        'format': parse_enum(TournamentFormat, settings['format']),
        'max_tables': _positive_int(settings, 'max_tables'),
        'location_label': str(settings['location_label'] or 'Mesa'),
        'num_groups': _positive_int(settings, 'num_groups'),
        'advance_count_per_group': _positive_int(settings, 'advance_count_per_group'),
        'tie_break_rules': tuple(parse_enum(TieBreakRule, rule) for rule in rules),
        'use_knockout_advantage': bool(settings['use_knockout_advantage']),
        'knockout_logic': parse_enum(KnockoutLogic, settings['knockout_logic']),
    }


def read_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Read raw settings from a YAML file; a missing or empty file yields an empty mapping."""
    path = path or SETTINGS_FILE
    if not os.path.exists(path):
        return {}
    with open(path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to parse {path}: {e}")
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError(f"{path} must contain a mapping of settings")
    return raw


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Load and normalize settings from a YAML file."""
    return normalize_settings(read_settings(path))


def save_settings(settings: Dict[str, Any], path: Optional[str] = None):
    """Write settings (raw values) to a YAML file."""
    path = path or SETTINGS_FILE
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(settings, f, default_flow_style=False)
