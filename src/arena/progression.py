"""
Tournament lifecycle: starting a competition and advancing it after results.

Both entry points take a tournament snapshot and return a new one. Nothing is
written back into the snapshot that was passed in, so a call that raises
leaves the caller's tournament exactly as it was.
"""
import logging
import random
from collections import OrderedDict
from dataclasses import replace
from enum import Enum
from typing import Callable, Dict, List, Optional

from .allocation import assign_tables
from .elimination import (
    generate_knockout_round,
    next_stage,
    resolve_match,
    seed_knockout,
    stage_for_team_count,
)
from .errors import IllegalStateError, ValidationError
from .formats import assign_groups, generate_group_stage, generate_round_robin
from .ids import random_id
from .models import Match, Stage, Team, Tournament, TournamentFormat
from .ranking import rank, refresh_records

logger = logging.getLogger(__name__)

DEFAULT_NUM_GROUPS = 2
DEFAULT_ADVANCE_COUNT = 2

CLOSING_STAGES = (Stage.FINAL, Stage.THIRD_PLACE)


class TournamentPhase(Enum):
    SETUP = 'SETUP'
    LEAGUE_IN_PROGRESS = 'LEAGUE_IN_PROGRESS'
    GROUP_IN_PROGRESS = 'GROUP_IN_PROGRESS'
    KNOCKOUT_IN_PROGRESS = 'KNOCKOUT_IN_PROGRESS'
    FINISHED = 'FINISHED'


def determine_phase(tournament: Tournament) -> TournamentPhase:
    """Derive the lifecycle phase from the match list."""
    if tournament.is_finished:
        return TournamentPhase.FINISHED
    if not tournament.matches:
        return TournamentPhase.SETUP

    pending = [m for m in tournament.matches if not m.is_finished] or [tournament.matches[-1]]
    stages = {m.stage for m in pending}
    if Stage.LEAGUE in stages:
        return TournamentPhase.LEAGUE_IN_PROGRESS
    if Stage.GROUP in stages:
        return TournamentPhase.GROUP_IN_PROGRESS
    return TournamentPhase.KNOCKOUT_IN_PROGRESS


def parse_score(value) -> int:
    """Accept a non-negative integer (or its decimal string form)."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid score {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            raise ValidationError(f"Score must be a non-negative whole number, got {value!r}")
        return int(value)
    if not isinstance(value, int):
        raise ValidationError(f"Score must be a non-negative whole number, got {value!r}")
    if value < 0:
        raise ValidationError(f"Score cannot be negative, got {value}")
    return value


def next_round_number(matches) -> int:
    return max((m.round for m in matches), default=0) + 1


def start_tournament(tournament: Tournament, id_factory: Callable[[], str] = random_id,
                     rng: Optional[random.Random] = None) -> Tournament:
    """
    Generate the opening fixtures for the tournament's format.

    LEAGUE plays a single round robin, KNOCKOUT pairs teams in registration
    order, GROUPS_KNOCKOUT deals teams into groups and plays a round robin in
    each. Table numbers are then assigned per round over the whole schedule.
    """
    if tournament.matches:
        raise IllegalStateError(f"Tournament {tournament.name} has already started")
    if len(tournament.teams) < 2:
        raise ValidationError("At least 2 teams are needed to start a tournament")

    teams = tournament.teams
    if tournament.format is TournamentFormat.LEAGUE:
        matches = generate_round_robin(teams, tournament.max_tables, Stage.LEAGUE, id_factory)
    elif tournament.format is TournamentFormat.KNOCKOUT:
        stage = stage_for_team_count(len(teams))
        matches = generate_knockout_round([t.id for t in teams], stage, 1, tournament.max_tables,
                                          1, tournament, id_factory)
    else:
        # a group holding a single team plays no matches; its team tops the group
        teams = assign_groups(teams, tournament.num_groups or DEFAULT_NUM_GROUPS, rng)
        matches = generate_group_stage(teams, tournament.max_tables, id_factory)

    matches = tuple(assign_tables(matches, tournament.max_tables))
    logger.info("Started %s tournament '%s': %d teams, %d matches",
                tournament.format.value, tournament.name, len(teams), len(matches))
    started = replace(tournament, teams=refresh_records(teams, matches), matches=matches)
    if tournament.format is TournamentFormat.GROUPS_KNOCKOUT and not matches:
        logger.info("No group has two teams; going straight to the knockout stage")
        return _advance_from_groups(started, id_factory)
    return started


def record_result(tournament: Tournament, match_id: str, home_score, away_score,
                  id_factory: Callable[[], str] = random_id) -> Tournament:
    """
    Record a score and advance the competition when a stage completes.

    Re-scoring a match that was already finished only refreshes standings;
    fixtures generated from its first result are kept as they are.
    """
    home_score = parse_score(home_score)
    away_score = parse_score(away_score)

    match = tournament.match_by_id(match_id)
    if match is None:
        raise IllegalStateError(f"Match {match_id} does not exist")
    if not match.home.is_team and not match.away.is_team:
        raise IllegalStateError(f"Match {match_id} has no teams yet")

    finished = match.finish(home_score, away_score)
    if finished.stage.is_knockout:
        # level knockout scores must be settled by a tie advantage
        resolve_match(finished, tournament.use_knockout_advantage)

    matches = tuple(finished if m.id == match_id else m for m in tournament.matches)
    updated = replace(tournament, matches=matches, teams=refresh_records(tournament.teams, matches))
    logger.debug("Recorded %s %d-%d %s (match %s)", match.home, home_score, away_score, match.away, match_id)

    if match.is_finished:
        logger.info("Match %s re-scored; standings refreshed without advancing stages", match_id)
        return updated

    stage = match.stage
    if not all(m.is_finished for m in updated.stage_matches(stage)):
        return updated

    logger.info("Stage %s of '%s' is complete", stage.value, tournament.name)
    if stage is Stage.LEAGUE:
        return _finish(updated)
    if stage is Stage.GROUP:
        return _advance_from_groups(updated, id_factory)
    if stage is Stage.SEMI_FINAL:
        return _advance_from_semifinals(updated, id_factory)
    if stage in CLOSING_STAGES:
        if all(m.is_finished for m in updated.matches if m.stage in CLOSING_STAGES):
            return _finish(updated)
        return updated
    return _advance_knockout(updated, stage, id_factory)


def _finish(tournament: Tournament) -> Tournament:
    logger.info("Tournament '%s' finished", tournament.name)
    return replace(tournament, is_finished=True)


def _append(tournament: Tournament, new_matches: List[Match]) -> Tournament:
    return replace(tournament, matches=tournament.matches + tuple(new_matches))


def _advance_from_groups(tournament: Tournament, id_factory) -> Tournament:
    count = tournament.advance_count_per_group or DEFAULT_ADVANCE_COUNT
    positions: Dict[str, int] = {}
    advanced_by_group: Dict[str, List[Team]] = {}
    for group, ordered in group_standings(tournament).items():
        for position, team in enumerate(ordered, start=1):
            positions[team.id] = position
        advanced_by_group[group] = ordered[:count]

    teams = tuple(replace(t, group_pos=positions.get(t.id, t.group_pos)) for t in tournament.teams)
    with_positions = replace(tournament, teams=teams)

    order = seed_knockout(advanced_by_group, tournament.knockout_logic,
                          tournament.tie_break_rules, tournament.matches)
    if not order:
        return with_positions

    stage = stage_for_team_count(len(order))
    knockout = generate_knockout_round(order, stage, next_round_number(tournament.matches),
                                       tournament.max_tables, 1, with_positions, id_factory)
    logger.info("%d teams advance from the group stage into the %s", len(order), stage.label)
    return _append(with_positions, knockout)


def _advance_knockout(tournament: Tournament, stage: Stage, id_factory) -> Tournament:
    winners = [resolve_match(m, tournament.use_knockout_advantage)[0] for m in tournament.stage_matches(stage)]
    following = next_stage(stage)
    new_matches = generate_knockout_round(winners, following, next_round_number(tournament.matches),
                                          tournament.max_tables, 1, tournament, id_factory)
    return _append(tournament, new_matches)


def _advance_from_semifinals(tournament: Tournament, id_factory) -> Tournament:
    results = [resolve_match(m, tournament.use_knockout_advantage) for m in tournament.stage_matches(Stage.SEMI_FINAL)]
    winners = [winner for winner, _ in results]
    losers = [loser for _, loser in results]
    round_number = next_round_number(tournament.matches)

    new_matches = generate_knockout_round(winners, Stage.FINAL, round_number,
                                          tournament.max_tables, 1, tournament, id_factory)
    if all(loser.is_team for loser in losers):
        new_matches += generate_knockout_round(losers, Stage.THIRD_PLACE, round_number,
                                               tournament.max_tables, 2, tournament, id_factory)
    else:
        logger.info("No third place match: a semifinal was a walkover")
    return _append(tournament, new_matches)


def group_standings(tournament: Tournament) -> "OrderedDict[str, List[Team]]":
    """Ranked teams per group, groups in label order."""
    return OrderedDict(
        (group, rank([t for t in tournament.teams if t.group == group],
                     tournament.tie_break_rules, tournament.matches))
        for group in tournament.groups()
    )


def final_standings(tournament: Tournament) -> List[Team]:
    """
    Final ranking of every team.

    Knockout results decide the podium: the FINAL winner and loser, then the
    THIRD_PLACE winner and loser. Every other team follows in ranking order.
    A LEAGUE tournament is simply its ranking.
    """
    podium: List[str] = []
    for stage in CLOSING_STAGES:
        for match in tournament.stage_matches(stage):
            if not match.is_finished:
                continue
            for slot in resolve_match(match, tournament.use_knockout_advantage):
                if slot.is_team and slot.team_id not in podium:
                    podium.append(slot.team_id)

    ranked = rank(tournament.teams, tournament.tie_break_rules, tournament.matches)
    by_id = {team.id: team for team in tournament.teams}
    return [by_id[team_id] for team_id in podium] + [t for t in ranked if t.id not in podium]
