"""
Knockout bracket generation, seeding and winner resolution.
"""
import logging
import warnings
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .advantage import determine_advantage
from .errors import AmbiguousAdvancementWarning, IllegalStateError
from .formats import next_table
from .ids import random_id
from .models import TBD, KnockoutLogic, Match, Slot, Stage, Team, TieBreakRule, Tournament
from .ranking import rank

logger = logging.getLogger(__name__)

NEXT_STAGE = {
    Stage.ROUND_16: Stage.QUARTER_FINAL,
    Stage.QUARTER_FINAL: Stage.SEMI_FINAL,
    Stage.SEMI_FINAL: Stage.FINAL,
}

SlotLike = Union[str, Slot, None]


def stage_for_team_count(num_teams: int) -> Stage:
    """Get the opening knockout stage for a number of teams."""
    if num_teams > 8:
        return Stage.ROUND_16
    elif num_teams > 4:
        return Stage.QUARTER_FINAL
    elif num_teams > 2:
        return Stage.SEMI_FINAL
    return Stage.FINAL


def next_stage(stage: Stage) -> Stage:
    """ROUND_16 -> QUARTER_FINAL -> SEMI_FINAL -> FINAL."""
    try:
        return NEXT_STAGE[stage]
    except KeyError:
        raise IllegalStateError(f"No knockout stage follows {stage.value}")


def _to_slot(value: SlotLike) -> Slot:
    if isinstance(value, Slot):
        return value
    return Slot.from_value(value)


def _first_table(start_table: int, max_tables: int) -> int:
    return (start_table - 1) % max_tables + 1


def generate_knockout_round(team_ids: Sequence[SlotLike], stage: Stage, round_number: int,
                            max_tables: int, start_table: int = 1,
                            tournament: Optional[Tournament] = None,
                            id_factory: Callable[[], str] = random_id) -> List[Match]:
    """
    Pair entries sequentially (0 vs 1, 2 vs 3, ...) into one knockout round.

    A missing partner becomes TBD. When a tournament is given, advantage mode
    is on and both sides are concrete, the tie advantage is resolved now and
    frozen on the fixture. Tables cycle from start_table, wrapping at max_tables.
    """
    slots = [_to_slot(value) for value in team_ids]
    matches = []
    table = _first_table(start_table, max_tables)
    for i in range(0, len(slots), 2):
        home = slots[i]
        away = slots[i + 1] if i + 1 < len(slots) else TBD

        advantage_team_id = None
        if tournament is not None and tournament.use_knockout_advantage and home.is_team and away.is_team:
            advantage_team_id = determine_advantage(
                home.team_id, away.team_id, tournament.teams,
                tournament.tie_break_rules, tournament.matches,
            )

        matches.append(Match(
            id=id_factory(),
            home=home,
            away=away,
            round=round_number,
            stage=stage,
            table_number=table,
            advantage_team_id=advantage_team_id,
        ))
        table = next_table(table, max_tables)

    logger.debug("Generated %d %s matches for round %d", len(matches), stage.value, round_number)
    return matches


def _warn(message: str):
    logger.warning(message)
    warnings.warn(message, AmbiguousAdvancementWarning, stacklevel=3)


def _cross_pair(first: Sequence[Team], second: Sequence[Team]) -> List[str]:
    # i-th of one group meets the mirrored position of the other; the better placed side is home
    order = []
    count = min(len(first), len(second))
    for i in range(count):
        a, b = first[i], second[count - 1 - i]
        if count - 1 - i < i:
            a, b = b, a
        order.extend([a.id, b.id])
    leftovers = list(first[count:]) + list(second[count:])
    if leftovers:
        _warn(f"Groups advanced unequal numbers of teams; {len(leftovers)} team(s) enter unpaired")
        order.extend(team.id for team in leftovers)
    return order


def seed_olympic(advanced_by_group: Dict[str, Sequence[Team]]) -> List[str]:
    """
    Cross-group seeding: group winners meet runners-up of the paired group.

    Groups are paired in sorted key order (A with B, C with D, ...). A lone
    trailing group has no partner; its teams are appended unpaired.
    """
    order = []
    keys = sorted(advanced_by_group)
    for i in range(0, len(keys), 2):
        first = advanced_by_group[keys[i]]
        if i + 1 < len(keys):
            order.extend(_cross_pair(first, advanced_by_group[keys[i + 1]]))
        else:
            _warn(f"Group {keys[i]} has no partner group for olympic seeding; its teams enter unpaired")
            order.extend(team.id for team in first)
    return order


def seed_efficiency(advanced: Sequence[Team], rules: Sequence[TieBreakRule],
                    matches: Sequence[Match]) -> List[str]:
    """Rank every advancing team together, then pair best with worst, second with second worst, ..."""
    ordered = rank(advanced, rules, matches)
    n = len(ordered)
    order = []
    for i in range(n // 2):
        order.extend([ordered[i].id, ordered[n - 1 - i].id])
    if n % 2:
        _warn(f"Odd number of advancing teams ({n}); {ordered[n // 2].name} enters unpaired")
        order.append(ordered[n // 2].id)
    return order


def seed_knockout(advanced_by_group: Dict[str, Sequence[Team]], logic: KnockoutLogic,
                  rules: Sequence[TieBreakRule], matches: Sequence[Match]) -> List[str]:
    """Build the first knockout order from the teams advancing out of each group."""
    advanced = [team for key in sorted(advanced_by_group) for team in advanced_by_group[key]]
    if not advanced:
        _warn("No teams advanced from the group stage")
        return []
    if logic is KnockoutLogic.EFFICIENCY:
        return seed_efficiency(advanced, rules, matches)
    return seed_olympic(advanced_by_group)


def resolve_match(match: Match, use_advantage: bool) -> Tuple[Slot, Slot]:
    """
    Return (winner, loser) of a finished knockout match.

    A match with a single concrete side is a walkover for that side. Level
    scores go to the advantage team when advantage mode is on; otherwise
    the match cannot be resolved.
    """
    if not match.is_finished:
        raise IllegalStateError(f"Match {match.id} is not finished")
    if match.home.is_team and not match.away.is_team:
        return match.home, match.away
    if match.away.is_team and not match.home.is_team:
        return match.away, match.home
    if match.home_score > match.away_score:
        return match.home, match.away
    if match.away_score > match.home_score:
        return match.away, match.home
    if use_advantage and match.advantage_team_id:
        if match.advantage_team_id == match.home.team_id:
            return match.home, match.away
        return match.away, match.home
    raise IllegalStateError(
        f"Match {match.id} ended level ({match.home_score}-{match.away_score}) "
        f"and no tie advantage applies"
    )


def match_winner(match: Match, use_advantage: bool) -> Slot:
    return resolve_match(match, use_advantage)[0]


def match_loser(match: Match, use_advantage: bool) -> Slot:
    return resolve_match(match, use_advantage)[1]
