"""
Tests for tournament creation and team registration.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from arena.errors import IllegalStateError, ValidationError
from arena.ids import SequentialIds
from arena.models import KnockoutLogic, TieBreakRule, TournamentFormat
from arena.progression import start_tournament
from arena.teams import add_team, create_tournament, make_player, remove_team, update_team, validate_roster


@pytest.fixture
def empty():
    return create_tournament('Copa', id_factory=lambda: 't1', clock=lambda: 100.0)


def with_teams(tournament, *team_names):
    ids = SequentialIds('team')
    for name in team_names:
        tournament = add_team(tournament, name, id_factory=ids)
    return tournament


class TestCreateTournament:
    """Tests for creating tournaments."""

    def test_defaults(self, empty):
        """Test built-in defaults are applied."""
        assert empty.id == 't1'
        assert empty.created_at == 100.0
        assert empty.format is TournamentFormat.LEAGUE
        assert empty.max_tables == 2
        assert empty.location_label == 'Mesa'
        assert empty.tie_break_rules[0] is TieBreakRule.POINTS
        assert empty.teams == ()

    def test_settings_and_overrides(self):
        """Test overrides take precedence over settings."""
        tournament = create_tournament(
            '  Liga  ', settings={'format': 'KNOCKOUT', 'max_tables': 4},
            max_tables=6, knockout_logic='efficiency', tie_break_rules=['GOAL_DIFF'],
            use_knockout_advantage=None, slogan=' Play fair ',
        )
        assert tournament.name == 'Liga'
        assert tournament.format is TournamentFormat.KNOCKOUT
        assert tournament.max_tables == 6
        assert tournament.knockout_logic is KnockoutLogic.EFFICIENCY
        assert tournament.tie_break_rules == (TieBreakRule.GOAL_DIFF,)
        assert tournament.use_knockout_advantage is False
        assert tournament.slogan == 'Play fair'

    def test_name_required(self):
        """Test a blank name is rejected."""
        with pytest.raises(ValidationError):
            create_tournament('   ')

    def test_invalid_setting(self):
        """Test invalid settings are rejected."""
        with pytest.raises(ValidationError):
            create_tournament('Copa', max_tables=0)
        with pytest.raises(ValidationError):
            create_tournament('Copa', format='SWISS')


class TestTeams:
    """Tests for adding, editing and removing teams."""

    def test_add_team(self, empty):
        """Test a registered team is appended."""
        tournament = with_teams(empty, 'Lions', 'Tigers')
        assert [t.name for t in tournament.teams] == ['Lions', 'Tigers']
        assert [t.id for t in tournament.teams] == ['team1', 'team2']
        assert empty.teams == ()

    def test_duplicate_name_ignores_case(self, empty):
        """Test names are unique regardless of case."""
        tournament = with_teams(empty, 'Lions')
        with pytest.raises(ValidationError):
            add_team(tournament, ' lions ')

    def test_blank_name(self, empty):
        """Test a blank team name is rejected."""
        with pytest.raises(ValidationError):
            add_team(empty, '')

    def test_add_after_start(self, empty):
        """Test the team list is locked once fixtures exist."""
        started = start_tournament(with_teams(empty, 'Lions', 'Tigers'))
        with pytest.raises(IllegalStateError):
            add_team(started, 'Bears')
        with pytest.raises(IllegalStateError):
            remove_team(started, started.teams[0].id)

    def test_remove_team(self, empty):
        """Test a team is removed before the start."""
        tournament = with_teams(empty, 'Lions', 'Tigers')
        removed = remove_team(tournament, 'team1')
        assert [t.name for t in removed.teams] == ['Tigers']

    def test_remove_unknown(self, empty):
        """Test removing a missing team fails."""
        with pytest.raises(IllegalStateError):
            remove_team(empty, 'ghost')

    def test_rename_after_start(self, empty):
        """Test names stay editable during the tournament."""
        started = start_tournament(with_teams(empty, 'Lions', 'Tigers'))
        renamed = update_team(started, 'team1', name='Big Lions')
        assert renamed.team_by_id('team1').name == 'Big Lions'
        assert renamed.matches == started.matches

    def test_rename_clash(self, empty):
        """Test a rename cannot take another team's name."""
        tournament = with_teams(empty, 'Lions', 'Tigers')
        with pytest.raises(ValidationError):
            update_team(tournament, 'team1', name='TIGERS')
        assert update_team(tournament, 'team1', name='lions').team_by_id('team1').name == 'lions'

    def test_update_without_changes(self, empty):
        """Test an empty update returns the same tournament."""
        tournament = with_teams(empty, 'Lions')
        assert update_team(tournament, 'team1') is tournament


class TestRoster:
    """Tests for player rosters."""

    def test_make_player(self):
        """Test numbers are parsed and names trimmed."""
        player = make_player(' Ana ', '9', id_factory=lambda: 'p1')
        assert (player.id, player.name, player.number) == ('p1', 'Ana', 9)

    @pytest.mark.parametrize('name,number', [('', 1), ('Ana', 'x'), ('Ana', -3), ('Ana', None)])
    def test_invalid_player(self, name, number):
        """Test invalid players are rejected."""
        with pytest.raises(ValidationError):
            make_player(name, number)

    def test_roster_cap(self):
        """Test at most fifteen players per team."""
        players = [make_player(f"P{i}", i) for i in range(16)]
        with pytest.raises(ValidationError):
            validate_roster(players)
        assert len(validate_roster(players[:15])) == 15

    def test_unique_numbers(self):
        """Test shirt numbers are unique within a team."""
        with pytest.raises(ValidationError, match='7'):
            validate_roster([make_player('Ana', 7), make_player('Bia', 7)])

    def test_roster_on_team(self, empty):
        """Test rosters are stored on the team and can be replaced."""
        tournament = add_team(empty, 'Lions', players=[make_player('Ana', 1)], id_factory=lambda: 'x')
        assert tournament.team_by_id('x').players[0].name == 'Ana'
        replaced = update_team(tournament, 'x', players=[make_player('Bia', 2), make_player('Caio', 3)])
        assert [p.number for p in replaced.team_by_id('x').players] == [2, 3]
