"""
Tie advantage for knockout fixtures.

When a knockout match ends level and advantage mode is on, the team that
did better in the group stage goes through. The advantage is decided once,
when the fixture is generated, and stored on the match.
"""
from dataclasses import replace
from typing import List, Optional, Sequence

from .models import Match, Stage, Team, TieBreakRule
from .ranking import compute_record, rank


def finished_group_matches(matches: Sequence[Match]) -> List[Match]:
    return [m for m in matches if m.stage is Stage.GROUP and m.is_finished]


def group_record(team_id: str, matches: Sequence[Match]):
    """The team's record over finished GROUP matches only."""
    return compute_record(team_id, finished_group_matches(matches))


def determine_advantage(team_a_id: str, team_b_id: str, teams: Sequence[Team],
                        rules: Sequence[TieBreakRule], matches: Sequence[Match]) -> Optional[str]:
    """
    Return the id of the team holding the tie advantage, or None.

    Final group positions decide first, so teams from different groups are
    compared by standing. Without positions the two teams are ranked on
    their group-stage records alone, names settling what the rules leave level.
    """
    by_id = {team.id: team for team in teams}
    team_a = by_id.get(team_a_id)
    team_b = by_id.get(team_b_id)
    if team_a is None or team_b is None:
        return None

    if team_a.group_pos is not None and team_b.group_pos is not None:
        if team_a.group_pos < team_b.group_pos:
            return team_a_id
        if team_b.group_pos < team_a.group_pos:
            return team_b_id

    group_matches = finished_group_matches(matches)
    group_a = replace(team_a, record=compute_record(team_a_id, group_matches))
    group_b = replace(team_b, record=compute_record(team_b_id, group_matches))
    return rank([group_a, group_b], rules, group_matches)[0].id
