"""
Data model for tournaments, teams and matches.

Every object here is an immutable snapshot. Engine operations build new
snapshots with dataclasses.replace and never modify the ones they were given.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import IllegalStateError, ValidationError

MAX_ROSTER_SIZE = 15

TBD_VALUE = 'TBD'
BYE_VALUE = 'BYE'


class Stage(Enum):
    LEAGUE = 'LEAGUE'
    GROUP = 'GROUP'
    ROUND_16 = 'ROUND_16'
    QUARTER_FINAL = 'QUARTER_FINAL'
    SEMI_FINAL = 'SEMI_FINAL'
    THIRD_PLACE = 'THIRD_PLACE'
    FINAL = 'FINAL'

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]

    @property
    def is_knockout(self) -> bool:
        return self not in (Stage.LEAGUE, Stage.GROUP)


STAGE_LABELS = {
    Stage.LEAGUE: 'League',
    Stage.GROUP: 'Groups',
    Stage.ROUND_16: 'Round of 16',
    Stage.QUARTER_FINAL: 'Quarterfinal',
    Stage.SEMI_FINAL: 'Semifinal',
    Stage.THIRD_PLACE: 'Third Place',
    Stage.FINAL: 'Final',
}


class TournamentFormat(Enum):
    LEAGUE = 'LEAGUE'
    GROUPS_KNOCKOUT = 'GROUPS_KNOCKOUT'
    KNOCKOUT = 'KNOCKOUT'


class TieBreakRule(Enum):
    POINTS = 'POINTS'
    WINS = 'WINS'
    GOALS_FOR = 'GOALS_FOR'
    GOAL_DIFF = 'GOAL_DIFF'
    PERCENTAGE = 'PERCENTAGE'
    AWAY_GOALS = 'AWAY_GOALS'
    HEAD_TO_HEAD = 'HEAD_TO_HEAD'
    H2H_GOAL_DIFF = 'H2H_GOAL_DIFF'
    H2H_GOALS_FOR = 'H2H_GOALS_FOR'


class KnockoutLogic(Enum):
    OLYMPIC = 'OLYMPIC'
    EFFICIENCY = 'EFFICIENCY'


def parse_enum(enum_cls, value):
    """Convert a raw value (name or member) to an enum member, raising ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {enum_cls.__name__} '{value}'. Expected one of: {allowed}")


class SlotKind(Enum):
    TEAM = 'TEAM'
    TBD = 'TBD'
    BYE = 'BYE'


@dataclass(frozen=True)
class Slot:
    """One side of a match: a concrete team, a TBD placeholder or a BYE."""
    kind: SlotKind
    team_id: Optional[str] = None

    @classmethod
    def team(cls, team_id: str) -> 'Slot':
        if not team_id or team_id in (TBD_VALUE, BYE_VALUE):
            raise ValidationError(f"'{team_id}' is not a valid team id")
        return cls(SlotKind.TEAM, team_id)

    @property
    def is_team(self) -> bool:
        return self.kind is SlotKind.TEAM

    def require_team(self) -> str:
        """Return the team id, raising IllegalStateError for placeholders."""
        if not self.is_team:
            raise IllegalStateError(f"Slot is a {self.kind.value} placeholder, not a team")
        return self.team_id

    def to_value(self) -> str:
        if self.is_team:
            return self.team_id
        return self.kind.value

    @classmethod
    def from_value(cls, value: Optional[str]) -> 'Slot':
        if value is None or value == TBD_VALUE:
            return TBD
        if value == BYE_VALUE:
            return BYE
        return cls.team(value)

    def __str__(self):
        return self.to_value()


TBD = Slot(SlotKind.TBD)
BYE = Slot(SlotKind.BYE)


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    number: int

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'number': self.number}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        return cls(id=data['id'], name=data['name'], number=int(data['number']))


@dataclass(frozen=True)
class TeamRecord:
    """Aggregate results of a team over a set of finished matches."""
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_diff(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def percentage(self) -> float:
        """Share of the available points won, 0 when nothing was played."""
        if self.played == 0:
            return 0.0
        return self.points / (self.played * 3)

    def to_dict(self) -> Dict[str, int]:
        return {
            'played': self.played,
            'won': self.won,
            'drawn': self.drawn,
            'lost': self.lost,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'points': self.points,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'TeamRecord':
        data = data or {}
        return cls(**{key: int(data.get(key, 0)) for key in cls().to_dict()})


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    record: TeamRecord = field(default_factory=TeamRecord)
    logo: Optional[str] = None
    group: Optional[str] = None
    group_pos: Optional[int] = None
    players: Tuple[Player, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'record': self.record.to_dict(),
            'players': [player.to_dict() for player in self.players],
        }
        if self.logo is not None:
            data['logo'] = self.logo
        if self.group is not None:
            data['group'] = self.group
        if self.group_pos is not None:
            data['group_pos'] = self.group_pos
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Team':
        return cls(
            id=data['id'],
            name=data['name'],
            record=TeamRecord.from_dict(data.get('record')),
            logo=data.get('logo'),
            group=data.get('group'),
            group_pos=data.get('group_pos'),
            players=tuple(Player.from_dict(p) for p in data.get('players') or []),
        )


@dataclass(frozen=True)
class Match:
    id: str
    home: Slot
    away: Slot
    round: int
    stage: Stage
    table_number: Optional[int] = None
    is_finished: bool = False
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    group_id: Optional[str] = None
    advantage_team_id: Optional[str] = None

    def __post_init__(self):
        has_scores = self.home_score is not None and self.away_score is not None
        if self.is_finished != has_scores:
            raise ValidationError(f"Match {self.id}: scores must be present if and only if it is finished")

    @property
    def is_playable(self) -> bool:
        """True when both sides are concrete teams."""
        return self.home.is_team and self.away.is_team

    def involves(self, team_id: str) -> bool:
        return team_id in (self.home.team_id, self.away.team_id)

    def is_between(self, team_a_id: str, team_b_id: str) -> bool:
        return {self.home.team_id, self.away.team_id} == {team_a_id, team_b_id}

    def goals_of(self, team_id: str) -> Tuple[int, int]:
        """Return (scored, conceded) for team_id in this finished match."""
        if self.home.team_id == team_id:
            return self.home_score, self.away_score
        return self.away_score, self.home_score

    def finish(self, home_score: int, away_score: int) -> 'Match':
        return replace(self, is_finished=True, home_score=home_score, away_score=away_score)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'home': self.home.to_value(),
            'away': self.away.to_value(),
            'round': self.round,
            'stage': self.stage.value,
            'table_number': self.table_number,
            'is_finished': self.is_finished,
        }
        if self.is_finished:
            data['home_score'] = self.home_score
            data['away_score'] = self.away_score
        if self.group_id is not None:
            data['group_id'] = self.group_id
        if self.advantage_team_id is not None:
            data['advantage_team_id'] = self.advantage_team_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Match':
        return cls(
            id=data['id'],
            home=Slot.from_value(data.get('home')),
            away=Slot.from_value(data.get('away')),
            round=int(data['round']),
            stage=parse_enum(Stage, data['stage']),
            table_number=data.get('table_number'),
            is_finished=bool(data.get('is_finished', False)),
            home_score=data.get('home_score'),
            away_score=data.get('away_score'),
            group_id=data.get('group_id'),
            advantage_team_id=data.get('advantage_team_id'),
        )


@dataclass(frozen=True)
class Tournament:
    """Aggregate root: configuration plus the ordered teams and matches."""
    id: str
    name: str
    format: TournamentFormat
    teams: Tuple[Team, ...] = ()
    matches: Tuple[Match, ...] = ()
    max_tables: int = 1
    location_label: str = 'Mesa'
    created_at: float = 0.0
    is_finished: bool = False
    num_groups: Optional[int] = None
    advance_count_per_group: Optional[int] = None
    tie_break_rules: Tuple[TieBreakRule, ...] = (TieBreakRule.POINTS,)
    use_knockout_advantage: bool = False
    knockout_logic: KnockoutLogic = KnockoutLogic.OLYMPIC
    slogan: Optional[str] = None

    def team_by_id(self, team_id: str) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def match_by_id(self, match_id: str) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def stage_matches(self, stage: Stage) -> List[Match]:
        return [m for m in self.matches if m.stage is stage]

    def groups(self) -> List[str]:
        """Sorted group labels currently assigned to teams."""
        return sorted({team.group for team in self.teams if team.group})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'format': self.format.value,
            'teams': [team.to_dict() for team in self.teams],
            'matches': [match.to_dict() for match in self.matches],
            'max_tables': self.max_tables,
            'location_label': self.location_label,
            'created_at': self.created_at,
            'is_finished': self.is_finished,
            'num_groups': self.num_groups,
            'advance_count_per_group': self.advance_count_per_group,
            'tie_break_rules': [rule.value for rule in self.tie_break_rules],
            'use_knockout_advantage': self.use_knockout_advantage,
            'knockout_logic': self.knockout_logic.value,
            'slogan': self.slogan,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Tournament':
        return cls(
            id=str(data['id']),
            name=data['name'],
            format=parse_enum(TournamentFormat, data['format']),
            teams=tuple(Team.from_dict(t) for t in data.get('teams') or []),
            matches=tuple(Match.from_dict(m) for m in data.get('matches') or []),
            max_tables=int(data.get('max_tables', 1)),
            location_label=data.get('location_label') or 'Mesa',
            created_at=float(data.get('created_at', 0.0)),
            is_finished=bool(data.get('is_finished', False)),
            num_groups=data.get('num_groups'),
            advance_count_per_group=data.get('advance_count_per_group'),
            tie_break_rules=tuple(parse_enum(TieBreakRule, r) for r in data.get('tie_break_rules') or []),
            use_knockout_advantage=bool(data.get('use_knockout_advantage', False)),
            knockout_logic=parse_enum(KnockoutLogic, data.get('knockout_logic') or 'OLYMPIC'),
            slogan=data.get('slogan'),
        )
