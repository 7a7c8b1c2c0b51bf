"""Game aggregate: teams, players, stats and the play log.

Plain dataclasses with no Flask or database imports. Transitions live in
``transitions.py`` and always hand back a fresh ``Game``.
"""

import enum
import time
import uuid
from dataclasses import dataclass, field, fields
from typing import List, Optional


class Sport(str, enum.Enum):
    BASKETBALL = 'basketball'
    HOCKEY = 'hockey'
    FOOTBALL = 'football'
    BASEBALL = 'baseball'
    VOLLEYBALL = 'volleyball'
    SOCCER = 'soccer'


class Rules(str, enum.Enum):
    HIGH_SCHOOL = 'high_school'
    COLLEGE = 'college'
    PRO = 'pro'


class GameStatus(str, enum.Enum):
    SETUP = 'setup'
    ACTIVE = 'active'
    PAUSED = 'paused'
    COMPLETED = 'completed'


class TeamRole(str, enum.Enum):
    HOME = 'home'
    AWAY = 'away'


class Possession(str, enum.Enum):
    HOME = 'home'
    AWAY = 'away'
    NONE = 'none'

    def next(self) -> 'Possession':
        if self is Possession.HOME:
            return Possession.AWAY
        if self is Possession.AWAY:
            return Possession.NONE
        return Possession.HOME

    def to_json(self) -> Optional[str]:
        return None if self is Possession.NONE else self.value

    @classmethod
    def from_json(cls, value) -> 'Possession':
        if value is None:
            return cls.NONE
        return cls(value)


class StatType(str, enum.Enum):
    FIELD_GOAL_2 = 'field_goal_2'
    FIELD_GOAL_3 = 'field_goal_3'
    FREE_THROW = 'free_throw'
    MISS_2 = 'miss_2'
    MISS_3 = 'miss_3'
    MISS_FT = 'miss_ft'
    OFFENSIVE_REBOUND = 'offensive_rebound'
    DEFENSIVE_REBOUND = 'defensive_rebound'
    ASSIST = 'assist'
    STEAL = 'steal'
    BLOCK = 'block'
    TURNOVER = 'turnover'
    FOUL = 'foul'


class PlayType(str, enum.Enum):
    FIELD_GOAL_2 = 'field_goal_2'
    FIELD_GOAL_3 = 'field_goal_3'
    FREE_THROW = 'free_throw'
    MISS_2 = 'miss_2'
    MISS_3 = 'miss_3'
    MISS_FT = 'miss_ft'
    OFFENSIVE_REBOUND = 'offensive_rebound'
    DEFENSIVE_REBOUND = 'defensive_rebound'
    ASSIST = 'assist'
    STEAL = 'steal'
    BLOCK = 'block'
    TURNOVER = 'turnover'
    FOUL = 'foul'
    TIMEOUT = 'timeout'
    SUBSTITUTION = 'substitution'


def new_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


def format_game_time(seconds: int) -> str:
    """Format remaining clock seconds as ``M:SS`` (no leading zero on minutes)."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def check_abbreviation(team_name: str, abbreviation) -> str:
    abbreviation = (abbreviation or '').strip()
    if not abbreviation or len(abbreviation) > 4:
        raise ValueError(f'Abbreviation for {team_name} must be 1-4 characters')
    return abbreviation


def check_number(player_name: str, number) -> int:
    try:
        number = int(number)
    except (TypeError, ValueError):
        raise ValueError(f'Invalid number for {player_name}')
    if not 0 <= number <= 99:
        raise ValueError(f'Player number must be between 0 and 99 ({player_name})')
    return number


@dataclass
class PlayerStats:
    points: int = 0
    field_goals_made: int = 0
    field_goals_attempted: int = 0
    three_pointers_made: int = 0
    three_pointers_attempted: int = 0
    free_throws_made: int = 0
    free_throws_attempted: int = 0
    offensive_rebounds: int = 0
    defensive_rebounds: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0

    @property
    def rebounds(self) -> int:
        return self.offensive_rebounds + self.defensive_rebounds

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: int(v) for k, v in data.items() if k in known})


@dataclass
class Player:
    id: str
    name: str
    number: int
    position: str = ''
    is_active: bool = True
    is_on_court: bool = False
    fouls: int = 0
    stats: PlayerStats = field(default_factory=PlayerStats)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'number': self.number,
            'position': self.position,
            'is_active': self.is_active,
            'is_on_court': self.is_on_court,
            'fouls': self.fouls,
            'stats': self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data['id']),
            name=data['name'],
            number=check_number(data['name'], data.get('number', 0)),
            position=data.get('position') or '',
            is_active=bool(data.get('is_active', True)),
            is_on_court=bool(data.get('is_on_court', False)),
            fouls=int(data.get('fouls', 0)),
            stats=PlayerStats.from_dict(data.get('stats')),
        )


@dataclass
class Team:
    id: str
    name: str
    abbreviation: str
    color: str = '#000000'
    players: List[Player] = field(default_factory=list)
    timeouts_remaining: int = 5
    team_fouls: int = 0
    score: int = 0

    def find_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    @property
    def on_court(self) -> List[Player]:
        return [p for p in self.players if p.is_on_court]

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'abbreviation': self.abbreviation,
            'color': self.color,
            'players': [p.to_dict() for p in self.players],
            'timeouts_remaining': self.timeouts_remaining,
            'team_fouls': self.team_fouls,
            'score': self.score,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data['id']),
            name=data['name'],
            abbreviation=check_abbreviation(data['name'], data.get('abbreviation')),
            color=data.get('color') or '#000000',
            players=[Player.from_dict(p) for p in data.get('players') or []],
            timeouts_remaining=int(data.get('timeouts_remaining', 5)),
            team_fouls=int(data.get('team_fouls', 0)),
            score=int(data.get('score', 0)),
        )


@dataclass(frozen=True)
class Play:
    """A single play-log entry. Never edited after creation."""

    id: str
    timestamp: int
    period: int
    game_time: str
    team_id: str
    type: PlayType
    description: str
    player_id: Optional[str] = None
    player_name: Optional[str] = None

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'period': self.period,
            'game_time': self.game_time,
            'player_id': self.player_id,
            'player_name': self.player_name,
            'team_id': self.team_id,
            'type': self.type.value,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data['id']),
            timestamp=int(data['timestamp']),
            period=int(data['period']),
            game_time=data['game_time'],
            team_id=str(data['team_id']),
            type=PlayType(data['type']),
            description=data.get('description') or '',
            player_id=data.get('player_id'),
            player_name=data.get('player_name'),
        )


@dataclass
class Game:
    id: str
    sport: Sport
    rules: Rules
    home_team: Team
    away_team: Team
    status: GameStatus = GameStatus.ACTIVE
    current_period: int = 1
    period_length: int = 12
    total_periods: int = 4
    game_clock_seconds: int = 720
    is_clock_running: bool = False
    possession: Possession = Possession.NONE
    plays: List[Play] = field(default_factory=list)
    created_at: int = field(default_factory=now_ms)

    def team(self, role: TeamRole) -> Team:
        return self.home_team if TeamRole(role) is TeamRole.HOME else self.away_team

    @property
    def is_completed(self) -> bool:
        return self.status is GameStatus.COMPLETED

    @property
    def is_overtime(self) -> bool:
        return self.current_period > self.total_periods

    @property
    def period_label(self) -> str:
        if self.sport is Sport.BASKETBALL:
            if self.current_period <= self.total_periods:
                return f"Q{self.current_period}"
            return f"OT{self.current_period - self.total_periods}"
        return f"P{self.current_period}"

    @property
    def game_time(self) -> str:
        return format_game_time(self.game_clock_seconds)

    def to_dict(self):
        return {
            'id': self.id,
            'sport': self.sport.value,
            'rules': self.rules.value,
            'status': self.status.value,
            'home_team': self.home_team.to_dict(),
            'away_team': self.away_team.to_dict(),
            'current_period': self.current_period,
            'period_length': self.period_length,
            'total_periods': self.total_periods,
            'game_clock_seconds': self.game_clock_seconds,
            'is_clock_running': self.is_clock_running,
            'possession': self.possession.to_json(),
            'plays': [p.to_dict() for p in self.plays],
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data):
        period_length = int(data.get('period_length', 12))
        return cls(
            id=str(data['id']),
            sport=Sport(data['sport']),
            rules=Rules(data['rules']),
            status=GameStatus(data.get('status', GameStatus.ACTIVE.value)),
            home_team=Team.from_dict(data['home_team']),
            away_team=Team.from_dict(data['away_team']),
            current_period=int(data.get('current_period', 1)),
            period_length=period_length,
            total_periods=int(data.get('total_periods', 4)),
            game_clock_seconds=int(data.get('game_clock_seconds', period_length * 60)),
            is_clock_running=bool(data.get('is_clock_running', False)),
            possession=Possession.from_json(data.get('possession')),
            plays=[Play.from_dict(p) for p in data.get('plays') or []],
            created_at=int(data.get('created_at') or now_ms()),
        )
