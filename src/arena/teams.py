"""
Tournament creation and team registration.

Team membership can only change before the first fixture is generated.
Names and rosters stay editable afterwards.
"""
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from .config import normalize_settings
from .errors import IllegalStateError, ValidationError
from .ids import random_id
from .models import MAX_ROSTER_SIZE, Player, Team, Tournament

logger = logging.getLogger(__name__)


def create_tournament(name: str, settings: Optional[Dict[str, Any]] = None,
                      slogan: Optional[str] = None,
                      id_factory: Callable[[], str] = random_id,
                      clock: Callable[[], float] = time.time, **overrides) -> Tournament:
    """
    Create an empty tournament.

    Args:
        name: Display name.
        settings: Raw settings mapping (see config.get_default_settings).
        slogan: Optional tagline shown with the tournament.
        id_factory: Produces the tournament id.
        clock: Produces the creation timestamp.
        **overrides: Individual settings that take precedence over settings.
    """
    name = str(name or '').strip()
    if not name:
        raise ValidationError("Tournament name is required")

    raw = dict(settings or {})
    raw.update({key: value for key, value in overrides.items() if value is not None})
    config = normalize_settings(raw)
    tournament = Tournament(id=id_factory(), name=name, created_at=clock(),
                            slogan=str(slogan or '').strip() or None, **config)
    logger.info("Created %s tournament '%s' (%s)", tournament.format.value, name, tournament.id)
    return tournament


def _clean_name(name: str) -> str:
    name = str(name or '').strip()
    if not name:
        raise ValidationError("Team name is required")
    return name


def _check_unique_name(tournament: Tournament, name: str, ignore_id: Optional[str] = None):
    for team in tournament.teams:
        if team.id != ignore_id and team.name.casefold() == name.casefold():
            raise ValidationError(f'A team named "{name}" already exists in this tournament')


def make_player(name: str, number, id_factory: Callable[[], str] = random_id) -> Player:
    name = str(name or '').strip()
    if not name:
        raise ValidationError("Player name is required")
    try:
        number = int(number)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid shirt number {number!r}")
    if number < 0:
        raise ValidationError(f"Invalid shirt number {number}")
    return Player(id=id_factory(), name=name, number=number)


def validate_roster(players: Iterable[Player]) -> tuple:
    """Check the roster cap and shirt number uniqueness; return the roster as a tuple."""
    players = tuple(players)
    if len(players) > MAX_ROSTER_SIZE:
        raise ValidationError(f"A roster holds at most {MAX_ROSTER_SIZE} players")
    numbers = [player.number for player in players]
    duplicates = sorted({n for n in numbers if numbers.count(n) > 1})
    if duplicates:
        raise ValidationError(f"Shirt numbers already in use: {', '.join(map(str, duplicates))}")
    return players


def _require_setup(tournament: Tournament, action: str):
    if tournament.matches:
        raise IllegalStateError(f"Cannot {action}: tournament '{tournament.name}' has already started")


def add_team(tournament: Tournament, name: str, logo: Optional[str] = None,
             players: Sequence[Player] = (), group: Optional[str] = None,
             id_factory: Callable[[], str] = random_id) -> Tournament:
    """Register a new team. Names are unique per tournament, ignoring case."""
    _require_setup(tournament, 'add teams')
    name = _clean_name(name)
    _check_unique_name(tournament, name)
    team = Team(id=id_factory(), name=name, logo=logo, group=group or None,
                players=validate_roster(players))
    logger.info("Added team '%s' to '%s'", name, tournament.name)
    return replace(tournament, teams=tournament.teams + (team,))


def _find_team(tournament: Tournament, team_id: str) -> Team:
    team = tournament.team_by_id(team_id)
    if team is None:
        raise IllegalStateError(f"Team {team_id} does not exist")
    return team


def update_team(tournament: Tournament, team_id: str, name: Optional[str] = None,
                logo: Optional[str] = None, players: Optional[Sequence[Player]] = None) -> Tournament:
    """Rename a team, change its logo or replace its roster."""
    team = _find_team(tournament, team_id)
    changes = {}
    if name is not None:
        name = _clean_name(name)
        _check_unique_name(tournament, name, ignore_id=team_id)
        changes['name'] = name
    if logo is not None:
        changes['logo'] = logo
    if players is not None:
        changes['players'] = validate_roster(players)
    if not changes:
        return tournament

    updated = replace(team, **changes)
    return replace(tournament, teams=tuple(updated if t.id == team_id else t for t in tournament.teams))


def remove_team(tournament: Tournament, team_id: str) -> Tournament:
    _require_setup(tournament, 'remove teams')
    team = _find_team(tournament, team_id)
    logger.info("Removed team '%s' from '%s'", team.name, tournament.name)
    return replace(tournament, teams=tuple(t for t in tournament.teams if t.id != team_id))
