"""
Team records and multi-criteria ranking.

Ranking is a comparator chain: one (team_a, team_b) -> int function per
tie-break rule, applied in order until one of them separates the two teams.
Team names settle whatever the rules leave level.
"""
import functools
import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from .models import Match, Team, TeamRecord, TieBreakRule

logger = logging.getLogger(__name__)

WIN_POINTS = 3
DRAW_POINTS = 1

Comparator = Callable[[Team, Team], int]


def _fold_result(record: TeamRecord, goals: Tuple[int, int]) -> TeamRecord:
    scored, conceded = goals
    won = int(scored > conceded)
    drawn = int(scored == conceded)
    lost = int(scored < conceded)
    return TeamRecord(
        played=record.played + 1,
        won=record.won + won,
        drawn=record.drawn + drawn,
        lost=record.lost + lost,
        goals_for=record.goals_for + scored,
        goals_against=record.goals_against + conceded,
        points=record.points + won * WIN_POINTS + drawn * DRAW_POINTS,
    )


def compute_record(team_id: str, matches: Iterable[Match]) -> TeamRecord:
    """Fold every finished match involving team_id into a fresh record."""
    results = [
        m.goals_of(team_id) for m in matches
        if m.is_finished and m.is_playable and m.involves(team_id)
    ]
    return functools.reduce(_fold_result, results, TeamRecord())


def refresh_records(teams: Sequence[Team], matches: Sequence[Match]) -> Tuple[Team, ...]:
    """Return the teams with records recomputed from scratch over matches."""
    return tuple(replace(team, record=compute_record(team.id, matches)) for team in teams)


def _sign(value) -> int:
    return (value > 0) - (value < 0)


def _higher_wins(value_a, value_b) -> int:
    # negative result puts team_a first
    return _sign(value_b - value_a)


def _meetings(team_a: Team, team_b: Team, matches: Sequence[Match]) -> List[Match]:
    return [m for m in matches if m.is_finished and m.is_between(team_a.id, team_b.id)]


def _head_to_head_points(team_a, team_b, matches):
    points_a = points_b = 0
    for match in _meetings(team_a, team_b, matches):
        scored, conceded = match.goals_of(team_a.id)
        if scored == conceded:
            points_a += DRAW_POINTS
            points_b += DRAW_POINTS
        elif scored > conceded:
            points_a += WIN_POINTS
        else:
            points_b += WIN_POINTS
    return points_a, points_b


def _head_to_head_goal_diff(team_a, team_b, matches):
    diff_a = sum(s - c for s, c in (m.goals_of(team_a.id) for m in _meetings(team_a, team_b, matches)))
    return diff_a, -diff_a


def _head_to_head_goals_for(team_a, team_b, matches):
    meetings = _meetings(team_a, team_b, matches)
    return (
        sum(m.goals_of(team_a.id)[0] for m in meetings),
        sum(m.goals_of(team_b.id)[0] for m in meetings),
    )


def _away_goals(team: Team, matches: Sequence[Match]) -> int:
    return sum(m.away_score for m in matches if m.is_finished and m.away.team_id == team.id)


def _record_rule(getter):
    def compare(team_a, team_b, matches):
        return _higher_wins(getter(team_a.record), getter(team_b.record))
    return compare


def _pair_rule(pair_values):
    def compare(team_a, team_b, matches):
        return _higher_wins(*pair_values(team_a, team_b, matches))
    return compare


RULE_COMPARATORS: Dict[TieBreakRule, Callable] = {
    TieBreakRule.POINTS: _record_rule(lambda r: r.points),
    TieBreakRule.WINS: _record_rule(lambda r: r.won),
    TieBreakRule.GOALS_FOR: _record_rule(lambda r: r.goals_for),
    TieBreakRule.GOAL_DIFF: _record_rule(lambda r: r.goal_diff),
    TieBreakRule.PERCENTAGE: _record_rule(lambda r: r.percentage),
    TieBreakRule.AWAY_GOALS: lambda a, b, matches: _higher_wins(_away_goals(a, matches), _away_goals(b, matches)),
    TieBreakRule.HEAD_TO_HEAD: _pair_rule(_head_to_head_points),
    TieBreakRule.H2H_GOAL_DIFF: _pair_rule(_head_to_head_goal_diff),
    TieBreakRule.H2H_GOALS_FOR: _pair_rule(_head_to_head_goals_for),
}


def effective_rules(rules: Sequence[TieBreakRule]) -> List[TieBreakRule]:
    """POINTS always leads; it is prepended when the configured rules omit it."""
    rules = list(rules)
    if TieBreakRule.POINTS not in rules:
        rules.insert(0, TieBreakRule.POINTS)
    return rules


def compare_names(team_a: Team, team_b: Team) -> int:
    key_a = (team_a.name.casefold(), team_a.name)
    key_b = (team_b.name.casefold(), team_b.name)
    return (key_a > key_b) - (key_a < key_b)


def build_rule_comparator(rules: Sequence[TieBreakRule], matches: Sequence[Match]) -> Comparator:
    """
    Build the cascading comparator for a rule list, without the name fallback.

    The returned function is negative when team_a ranks above team_b and
    zero when every rule leaves the two teams level.
    """
    chain = [functools.partial(RULE_COMPARATORS[rule], matches=matches) for rule in effective_rules(rules)]

    def compare(team_a: Team, team_b: Team) -> int:
        for comparator in chain:
            result = comparator(team_a, team_b)
            if result:
                return result
        return 0

    return compare


def build_comparator(rules: Sequence[TieBreakRule], matches: Sequence[Match]) -> Comparator:
    """Total-order comparator: the rule chain, then team names."""
    by_rules = build_rule_comparator(rules, matches)

    def compare(team_a: Team, team_b: Team) -> int:
        return by_rules(team_a, team_b) or compare_names(team_a, team_b)

    return compare


def rank(teams: Sequence[Team], rules: Sequence[TieBreakRule], matches: Sequence[Match]) -> List[Team]:
    """
    Order teams best first.

    Args:
        teams: Concrete teams to rank; placeholders are never passed in.
        rules: Tie-break rules in priority order (POINTS is implied first).
        matches: Match history used by the AWAY_GOALS and head-to-head rules.

    Returns:
        A new list, best team first.
    """
    matches = list(matches)
    ordered = sorted(teams, key=functools.cmp_to_key(build_comparator(rules, matches)))
    logger.debug("Ranked %d teams: %s", len(ordered), [t.name for t in ordered])
    return ordered
