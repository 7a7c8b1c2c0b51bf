from typing import Optional

from .state import (
    Game, GameStatus, Player, PlayerStats, Possession, Rules, Sport, Team,
    check_abbreviation, check_number, new_id, now_ms,
)

DEFAULT_HOME_COLOR = '#1E88E5'
DEFAULT_AWAY_COLOR = '#E53935'


def timeouts_for(rules: Rules) -> int:
    return 7 if rules is Rules.PRO else 5


def default_period_length(sport: Sport, rules: Rules) -> int:
    if sport is Sport.HOCKEY:
        return 20
    if rules is Rules.PRO:
        return 12
    if sport is Sport.BASKETBALL and rules is Rules.COLLEGE:
        return 20
    return 8


def default_total_periods(sport: Sport, rules: Rules) -> int:
    if sport is Sport.HOCKEY:
        return 3
    if sport is Sport.BASKETBALL and rules is Rules.COLLEGE:
        return 2
    return 4


def _build_player(entry: dict, on_court: bool) -> Player:
    name = (entry.get('name') or '').strip()
    if not name:
        raise ValueError('Player name is required')
    number = check_number(name, entry.get('number', 0))
    return Player(
        id=new_id(),
        name=name,
        number=number,
        position=entry.get('position') or '',
        is_active=bool(entry.get('is_active', True)),
        is_on_court=on_court,
        fouls=0,
        stats=PlayerStats(),
    )


def _build_team(entry: dict, default_color: str, timeouts: int, max_on_court: int) -> Team:
    entry = entry or {}
    name = (entry.get('name') or '').strip()
    if not name:
        raise ValueError('Team name is required')
    abbreviation = check_abbreviation(name, entry.get('abbreviation'))
    players = [
        _build_player(p or {}, on_court=i < max_on_court)
        for i, p in enumerate(entry.get('players') or [])
    ]
    return Team(
        id=new_id(),
        name=name,
        abbreviation=abbreviation,
        color=entry.get('color') or default_color,
        players=players,
        timeouts_remaining=timeouts,
        team_fouls=0,
        score=0,
    )


def new_game(
    sport,
    rules,
    home: dict,
    away: dict,
    period_length: Optional[int] = None,
    total_periods: Optional[int] = None,
    max_on_court: int = 5,
) -> Game:
    """Build a fresh, active game from setup data.

    ``home``/``away`` are dicts with ``name``, ``abbreviation``, optional
    ``color`` and a ``players`` list of ``{name, number, position,
    is_active}``. Raises ``ValueError`` on bad input.
    """
    try:
        sport = Sport(sport)
        rules = Rules(rules)
    except ValueError:
        raise ValueError(f'Unsupported sport/rules: {sport}/{rules}')

    if period_length is None:
        period_length = default_period_length(sport, rules)
    if total_periods is None:
        total_periods = default_total_periods(sport, rules)
    period_length = int(period_length)
    total_periods = int(total_periods)
    if period_length <= 0 or total_periods <= 0:
        raise ValueError('Period length and count must be positive')

    timeouts = timeouts_for(rules)
    return Game(
        id=new_id(),
        sport=sport,
        rules=rules,
        status=GameStatus.ACTIVE,
        home_team=_build_team(home, DEFAULT_HOME_COLOR, timeouts, max_on_court),
        away_team=_build_team(away, DEFAULT_AWAY_COLOR, timeouts, max_on_court),
        current_period=1,
        period_length=period_length,
        total_periods=total_periods,
        game_clock_seconds=period_length * 60,
        is_clock_running=False,
        possession=Possession.NONE,
        plays=[],
        created_at=now_ms(),
    )
