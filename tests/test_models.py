"""
Unit tests for the tournament data model.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from arena.errors import IllegalStateError, ValidationError
from arena.models import (
    BYE,
    TBD,
    KnockoutLogic,
    Match,
    Player,
    Slot,
    SlotKind,
    Stage,
    Team,
    TeamRecord,
    TieBreakRule,
    Tournament,
    TournamentFormat,
    parse_enum,
)


class TestSlot:
    """Tests for match sides."""

    def test_team_slot(self):
        """Test a concrete team slot exposes its id."""
        slot = Slot.team('abc')
        assert slot.is_team
        assert slot.require_team() == 'abc'
        assert slot.to_value() == 'abc'

    def test_placeholders_are_not_teams(self):
        """Test TBD and BYE placeholders."""
        assert not TBD.is_team
        assert not BYE.is_team
        assert TBD.kind is SlotKind.TBD
        with pytest.raises(IllegalStateError):
            BYE.require_team()

    def test_reserved_values_rejected_as_team_ids(self):
        """Test that placeholder markers cannot be used as team ids."""
        for value in ('TBD', 'BYE', ''):
            with pytest.raises(ValidationError):
                Slot.team(value)

    def test_from_value(self):
        """Test parsing stored slot values."""
        assert Slot.from_value(None) == TBD
        assert Slot.from_value('TBD') == TBD
        assert Slot.from_value('BYE') == BYE
        assert Slot.from_value('t1') == Slot.team('t1')


class TestTeamRecord:
    """Tests for derived record values."""

    def test_goal_diff(self):
        """Test goal difference is goals for minus goals against."""
        assert TeamRecord(goals_for=5, goals_against=7).goal_diff == -2

    def test_percentage(self):
        """Test percentage of available points."""
        assert TeamRecord(played=2, points=3).percentage == pytest.approx(0.5)

    def test_percentage_without_games(self):
        """Test percentage is zero before any game is played."""
        assert TeamRecord().percentage == 0.0


class TestMatch:
    """Tests for match invariants and helpers."""

    def test_finished_requires_scores(self):
        """Test a finished match must carry both scores."""
        with pytest.raises(ValidationError):
            Match(id='m1', home=Slot.team('a'), away=Slot.team('b'), round=1,
                  stage=Stage.LEAGUE, is_finished=True, home_score=1)

    def test_scores_require_finished(self):
        """Test an unfinished match cannot carry scores."""
        with pytest.raises(ValidationError):
            Match(id='m1', home=Slot.team('a'), away=Slot.team('b'), round=1,
                  stage=Stage.LEAGUE, home_score=1, away_score=0)

    def test_finish_returns_new_match(self):
        """Test finish() leaves the original match untouched."""
        match = Match(id='m1', home=Slot.team('a'), away=Slot.team('b'), round=1, stage=Stage.LEAGUE)
        done = match.finish(2, 1)
        assert done.is_finished and (done.home_score, done.away_score) == (2, 1)
        assert not match.is_finished

    def test_goals_of(self):
        """Test goals are reported from the team's point of view."""
        match = Match(id='m1', home=Slot.team('a'), away=Slot.team('b'), round=1,
                      stage=Stage.LEAGUE).finish(3, 1)
        assert match.goals_of('a') == (3, 1)
        assert match.goals_of('b') == (1, 3)

    def test_playable_and_involves(self):
        """Test playability with a placeholder side."""
        match = Match(id='m1', home=Slot.team('a'), away=TBD, round=1, stage=Stage.SEMI_FINAL)
        assert not match.is_playable
        assert match.involves('a')
        assert not match.involves('b')

    def test_dict_keeps_placeholders(self):
        """Test placeholders are stored as their marker values."""
        match = Match(id='m1', home=Slot.team('a'), away=TBD, round=2, stage=Stage.FINAL,
                      advantage_team_id='a')
        data = match.to_dict()
        assert data['home'] == 'a'
        assert data['away'] == 'TBD'
        assert data['stage'] == 'FINAL'
        assert 'home_score' not in data
        assert Match.from_dict(data) == match


class TestEnums:
    """Tests for enum parsing."""

    def test_parse_enum_accepts_names(self):
        """Test lower-case names are accepted."""
        assert parse_enum(TieBreakRule, 'goal_diff') is TieBreakRule.GOAL_DIFF
        assert parse_enum(KnockoutLogic, KnockoutLogic.EFFICIENCY) is KnockoutLogic.EFFICIENCY

    def test_parse_enum_rejects_unknown(self):
        """Test unknown values raise a validation error listing the options."""
        with pytest.raises(ValidationError, match='LEAGUE'):
            parse_enum(TournamentFormat, 'SWISS')

    def test_stage_properties(self):
        """Test knockout flags and display labels."""
        assert Stage.SEMI_FINAL.is_knockout
        assert not Stage.GROUP.is_knockout
        assert Stage.THIRD_PLACE.label == 'Third Place'


class TestTournamentDocument:
    """Tests for tournament serialization."""

    def test_to_dict_from_dict(self):
        """Test a started tournament survives a dict round trip."""
        team = Team(id='a', name='Alpha', record=TeamRecord(played=1, won=1, goals_for=2, points=3),
                    group='A', group_pos=1, players=(Player(id='p1', name='Zé', number=10),))
        other = Team(id='b', name='Bravo', group='A')
        match = Match(id='m1', home=Slot.team('a'), away=Slot.team('b'), round=1,
                      stage=Stage.GROUP, table_number=1, group_id='A').finish(2, 0)
        tournament = Tournament(
            id='t1', name='Copa', format=TournamentFormat.GROUPS_KNOCKOUT,
            teams=(team, other), matches=(match,), max_tables=3, num_groups=1,
            advance_count_per_group=2,
            tie_break_rules=(TieBreakRule.POINTS, TieBreakRule.HEAD_TO_HEAD),
            use_knockout_advantage=True, knockout_logic=KnockoutLogic.EFFICIENCY,
        )
        data = tournament.to_dict()
        assert data['teams'][0]['record']['points'] == 3
        assert data['tie_break_rules'] == ['POINTS', 'HEAD_TO_HEAD']
        assert Tournament.from_dict(data) == tournament

    def test_lookups(self):
        """Test team and match lookups and group listing."""
        tournament = Tournament(id='t1', name='Copa', format=TournamentFormat.LEAGUE,
                                teams=(Team(id='a', name='A', group='B'), Team(id='b', name='B', group='A')))
        assert tournament.team_by_id('b').name == 'B'
        assert tournament.team_by_id('zzz') is None
        assert tournament.match_by_id('m1') is None
        assert tournament.groups() == ['A', 'B']

    def test_snapshots_are_frozen(self):
        """Test tournaments cannot be modified in place."""
        tournament = Tournament(id='t1', name='Copa', format=TournamentFormat.LEAGUE)
        with pytest.raises(AttributeError):
            tournament.name = 'Other'
