from dataclasses import dataclass
from typing import Dict, List, Optional

from .state import Game, Play, PlayerStats, StatType, Team


@dataclass(frozen=True)
class StatEffect:
    label: str
    points: int = 0
    deltas: tuple = ()
    is_foul: bool = False


# Single source of truth for what each stat button does.
STAT_EFFECTS: Dict[StatType, StatEffect] = {
    StatType.FIELD_GOAL_2: StatEffect(
        '2PT made', 2, ('field_goals_made', 'field_goals_attempted'),
    ),
    StatType.FIELD_GOAL_3: StatEffect(
        '3PT made', 3,
        ('three_pointers_made', 'three_pointers_attempted', 'field_goals_made', 'field_goals_attempted'),
    ),
    StatType.FREE_THROW: StatEffect(
        'FT made', 1, ('free_throws_made', 'free_throws_attempted'),
    ),
    StatType.MISS_2: StatEffect('2PT missed', 0, ('field_goals_attempted',)),
    StatType.MISS_3: StatEffect('3PT missed', 0, ('three_pointers_attempted', 'field_goals_attempted')),
    StatType.MISS_FT: StatEffect('FT missed', 0, ('free_throws_attempted',)),
    StatType.OFFENSIVE_REBOUND: StatEffect('offensive rebound', 0, ('offensive_rebounds',)),
    StatType.DEFENSIVE_REBOUND: StatEffect('defensive rebound', 0, ('defensive_rebounds',)),
    StatType.ASSIST: StatEffect('assist', 0, ('assists',)),
    StatType.STEAL: StatEffect('steal', 0, ('steals',)),
    StatType.BLOCK: StatEffect('block', 0, ('blocks',)),
    StatType.TURNOVER: StatEffect('turnover', 0, ('turnovers',)),
    StatType.FOUL: StatEffect('personal foul', 0, (), is_foul=True),
}


def apply_stat_effect(stats: PlayerStats, stat: StatType) -> int:
    """Bump the counters for ``stat`` on ``stats`` and return the points awarded."""
    effect = STAT_EFFECTS[stat]
    for name in effect.deltas:
        setattr(stats, name, getattr(stats, name) + 1)
    if effect.points:
        stats.points += effect.points
    return effect.points


def describe_stat(player_name: str, stat: StatType, fouls_after: int = 0) -> str:
    effect = STAT_EFFECTS[stat]
    if effect.is_foul:
        return f"{player_name} {effect.label} ({fouls_after})"
    return f"{player_name} {effect.label}"


def recompute_score(team: Team) -> int:
    return sum(p.stats.points for p in team.players)


def shooting_pct(made: int, attempted: int) -> Optional[int]:
    if not attempted:
        return None
    return int(round(made * 100.0 / attempted))


def box_score(team: Team) -> dict:
    """Team totals summed from the players' stat lines.

    Totals are derived every time rather than stored, so they can never drift
    from the per-player records.
    """
    totals = PlayerStats()
    fouls = 0
    for p in team.players:
        for name, value in p.stats.to_dict().items():
            setattr(totals, name, getattr(totals, name) + value)
        fouls += p.fouls

    return {
        'team_id': team.id,
        'name': team.name,
        'abbreviation': team.abbreviation,
        'score': team.score,
        'players': [
            {
                'id': p.id,
                'name': p.name,
                'number': p.number,
                'position': p.position,
                'fouls': p.fouls,
                'fouled_out': p.fouls >= 5,
                'rebounds': p.stats.rebounds,
                **p.stats.to_dict(),
            }
            for p in team.players
        ],
        'totals': {**totals.to_dict(), 'rebounds': totals.rebounds, 'fouls': fouls},
        'field_goal_pct': shooting_pct(totals.field_goals_made, totals.field_goals_attempted),
        'three_point_pct': shooting_pct(totals.three_pointers_made, totals.three_pointers_attempted),
        'free_throw_pct': shooting_pct(totals.free_throws_made, totals.free_throws_attempted),
        'team_fouls': team.team_fouls,
        'timeouts_remaining': team.timeouts_remaining,
    }


def game_box_score(game: Game) -> dict:
    return {
        'game_id': game.id,
        'status': game.status.value,
        'period_label': game.period_label,
        'away': box_score(game.away_team),
        'home': box_score(game.home_team),
    }


def play_by_play(game: Game) -> List[Play]:
    """Plays newest-first; plays sharing a timestamp come out in reverse log order."""
    return sorted(reversed(game.plays), key=lambda p: p.timestamp, reverse=True)
