"""
Round-robin schedule generation for league and group stages.
"""
import logging
import random
import string
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import ValidationError
from .ids import random_id
from .models import BYE, Match, Slot, Stage, Team

logger = logging.getLogger(__name__)


def next_table(table: int, max_tables: int) -> int:
    """Advance a 1-based table counter, wrapping after max_tables."""
    return 1 if table >= max_tables else table + 1


def generate_round_robin(teams: Sequence[Team], max_tables: int, stage: Stage = Stage.LEAGUE,
                         id_factory: Callable[[], str] = random_id) -> List[Match]:
    """
    Generate a single round robin with the circle method.

    An odd field gets a BYE appended. The first entry stays fixed while the
    last entry rotates into second position after every round, which yields
    n - 1 rounds of n / 2 pairings. Pairings against the BYE are dropped.

    Table numbers cycle through 1..max_tables within each round; they are
    advisory until the table assigner runs over the full schedule.
    """
    if max_tables < 1:
        raise ValidationError("max_tables must be at least 1")

    slots = [Slot.team(team.id) for team in teams]
    if len(slots) < 2:
        return []
    if len(slots) % 2 != 0:
        slots.append(BYE)

    n = len(slots)
    matches = []
    for round_index in range(n - 1):
        table = 1
        for i in range(n // 2):
            home, away = slots[i], slots[n - 1 - i]
            if home == BYE or away == BYE:
                continue
            matches.append(Match(
                id=id_factory(),
                home=home,
                away=away,
                round=round_index + 1,
                stage=stage,
                table_number=table,
            ))
            table = next_table(table, max_tables)
        slots.insert(1, slots.pop())

    logger.debug("Generated %d %s matches over %d rounds for %d teams",
                 len(matches), stage.value, n - 1, len(teams))
    return matches


def group_label(index: int) -> str:
    """0 -> 'A', 1 -> 'B', ... 26 -> 'AA'."""
    letters = string.ascii_uppercase
    label = ''
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        label = letters[remainder] + label
    return label


def assign_groups(teams: Sequence[Team], num_groups: int,
                  rng: Optional[random.Random] = None) -> Tuple[Team, ...]:
    """
    Deal teams into groups A, B, C, ...

    When every team already carries a group label the teams are returned
    unchanged. Otherwise the field is shuffled with rng and dealt in turn.
    """
    if num_groups < 1:
        raise ValidationError("num_groups must be at least 1")
    if teams and all(team.group for team in teams):
        return tuple(teams)

    rng = rng or random.Random()
    shuffled = list(teams)
    rng.shuffle(shuffled)
    return tuple(replace(team, group=group_label(i % num_groups), group_pos=None)
                 for i, team in enumerate(shuffled))


def generate_group_stage(teams: Sequence[Team], max_tables: int,
                         id_factory: Callable[[], str] = random_id) -> List[Match]:
    """One GROUP round robin per group, groups in label order, matches tagged with group_id."""
    matches = []
    for group in sorted({team.group for team in teams if team.group}):
        group_teams = [team for team in teams if team.group == group]
        if len(group_teams) < 2:
            logger.warning("Group %s has fewer than 2 teams; no matches generated", group)
            continue
        group_matches = generate_round_robin(group_teams, max_tables, Stage.GROUP, id_factory)
        matches.extend(replace(match, group_id=group) for match in group_matches)
    return matches
