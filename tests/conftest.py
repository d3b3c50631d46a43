"""
Shared pytest fixtures for tournament engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from arena.ids import SequentialIds
from arena.models import TournamentFormat
from builders import build_tournament, grouped_teams, make_team


@pytest.fixture
def ids():
    """Deterministic match id factory."""
    return SequentialIds('m')


@pytest.fixture
def four_teams():
    return [make_team(f"t{c}", name=c) for c in 'ABCD']


@pytest.fixture
def league(four_teams):
    """Four-team league on two tables."""
    return build_tournament(TournamentFormat.LEAGUE, four_teams, max_tables=2)


@pytest.fixture
def groups_knockout():
    """Two pre-drawn groups of four, top two advance."""
    return build_tournament(TournamentFormat.GROUPS_KNOCKOUT, grouped_teams(), max_tables=2)


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the web app at a temporary data directory."""
    import app as app_module

    tournaments_dir = tmp_path / "tournaments"
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text(yaml.dump({'max_tables': 3, 'location_label': 'Table'},
                                       default_flow_style=False))

    monkeypatch.setattr(app_module, 'TOURNAMENTS_DIR', str(tournaments_dir))
    monkeypatch.setattr(app_module, 'SETTINGS_FILE', str(settings_file))
    return str(tmp_path)


@pytest.fixture
def client(temp_data_dir):
    """Flask test client backed by the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    app.config['NAME_SUGGESTER'] = None
    with app.test_client() as client:
        yield client
