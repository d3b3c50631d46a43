"""
Tests for settings defaults and YAML loading.
"""
import pytest
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from arena.config import get_default_settings, load_settings, normalize_settings, read_settings, save_settings
from arena.errors import ValidationError
from arena.models import KnockoutLogic, TieBreakRule, TournamentFormat


class TestNormalizeSettings:
    """Tests for converting raw settings."""

    def test_defaults(self):
        """Test the built-in defaults."""
        settings = normalize_settings(None)
        assert settings['format'] is TournamentFormat.LEAGUE
        assert settings['max_tables'] == 2
        assert settings['num_groups'] == 2
        assert settings['advance_count_per_group'] == 2
        assert settings['tie_break_rules'] == (
            TieBreakRule.POINTS, TieBreakRule.GOAL_DIFF, TieBreakRule.GOALS_FOR, TieBreakRule.WINS,
        )
        assert settings['use_knockout_advantage'] is False
        assert settings['knockout_logic'] is KnockoutLogic.OLYMPIC

    def test_overlay_ignores_unknown_keys(self):
        """Test known keys are overlaid and unknown ones dropped."""
        settings = normalize_settings({'max_tables': 5, 'colour': 'blue', 'tie_break_rules': 'wins'})
        assert settings['max_tables'] == 5
        assert settings['tie_break_rules'] == (TieBreakRule.WINS,)
        assert 'colour' not in settings

    @pytest.mark.parametrize('raw', [
        {'max_tables': 0}, {'num_groups': 'two'}, {'advance_count_per_group': True},
        {'knockout_logic': 'RANDOM'}, {'tie_break_rules': ['POINTS', 'LUCK']},
    ])
    def test_invalid_values(self, raw):
        """Test invalid values raise validation errors."""
        with pytest.raises(ValidationError):
            normalize_settings(raw)

    def test_defaults_are_fresh(self):
        """Test callers cannot change the defaults."""
        get_default_settings()['max_tables'] = 99
        assert get_default_settings()['max_tables'] == 2


class TestSettingsFile:
    """Tests for reading and writing the YAML settings file."""

    def test_missing_file(self, tmp_path):
        """Test a missing file yields defaults."""
        path = str(tmp_path / 'settings.yaml')
        assert read_settings(path) == {}
        assert load_settings(path)['max_tables'] == 2

    def test_empty_file(self, tmp_path):
        """Test an empty file yields defaults."""
        path = tmp_path / 'settings.yaml'
        path.write_text('')
        assert read_settings(str(path)) == {}

    def test_load_overrides(self, tmp_path):
        """Test values in the file override the defaults."""
        path = tmp_path / 'settings.yaml'
        path.write_text(yaml.dump({'format': 'KNOCKOUT', 'use_knockout_advantage': True}))
        settings = load_settings(str(path))
        assert settings['format'] is TournamentFormat.KNOCKOUT
        assert settings['use_knockout_advantage'] is True

    def test_invalid_yaml(self, tmp_path):
        """Test unparsable YAML is reported."""
        path = tmp_path / 'settings.yaml'
        path.write_text('max_tables: [1, 2\n')
        with pytest.raises(ValidationError):
            read_settings(str(path))

    def test_not_a_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        path = tmp_path / 'settings.yaml'
        path.write_text('- 1\n- 2\n')
        with pytest.raises(ValidationError):
            read_settings(str(path))

    def test_save_and_read(self, tmp_path):
        """Test saved settings can be read back."""
        path = str(tmp_path / 'nested' / 'settings.yaml')
        save_settings(get_default_settings(), path)
        assert read_settings(path) == get_default_settings()
