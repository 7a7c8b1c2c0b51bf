"""Scorekeeping transitions.

Every function takes a ``Game`` and returns a ``Game``. When the event does
not apply (unknown player, no timeouts left, ...) the input game is returned
as-is; otherwise a deep copy carries the change, so callers never observe a
half-applied event.
"""

import copy

from .scoring import apply_stat_effect, describe_stat
from .state import (
    Game,
    GameStatus,
    Play,
    PlayType,
    StatType,
    TeamRole,
    format_game_time,
    new_id,
    now_ms,
)


def _play(game: Game, team, play_type: PlayType, description: str, player=None) -> Play:
    return Play(
        id=new_id(),
        timestamp=now_ms(),
        period=game.current_period,
        game_time=format_game_time(game.game_clock_seconds),
        team_id=team.id,
        type=play_type,
        description=description,
        player_id=player.id if player else None,
        player_name=player.name if player else None,
    )


def record_stat(game: Game, role: TeamRole, player_id: str, stat: StatType) -> Game:
    stat = StatType(stat)
    if game.team(role).find_player(player_id) is None:
        return game

    nxt = copy.deepcopy(game)
    team = nxt.team(role)
    player = team.find_player(player_id)

    points = apply_stat_effect(player.stats, stat)
    team.score += points
    if stat is StatType.FOUL:
        player.fouls += 1
        team.team_fouls += 1

    description = describe_stat(player.name, stat, fouls_after=player.fouls)
    nxt.plays.append(_play(nxt, team, PlayType(stat.value), description, player))
    return nxt


def toggle_clock(game: Game) -> Game:
    nxt = copy.deepcopy(game)
    nxt.is_clock_running = not game.is_clock_running
    return nxt


def tick(game: Game) -> Game:
    if not game.is_clock_running or game.game_clock_seconds <= 0:
        return game
    nxt = copy.deepcopy(game)
    nxt.game_clock_seconds = game.game_clock_seconds - 1
    return nxt


def stop_clock(game: Game) -> Game:
    if not game.is_clock_running:
        return game
    nxt = copy.deepcopy(game)
    nxt.is_clock_running = False
    return nxt


def reset_clock(game: Game) -> Game:
    nxt = copy.deepcopy(game)
    nxt.game_clock_seconds = game.period_length * 60
    nxt.is_clock_running = False
    return nxt


def advance_period(game: Game) -> Game:
    nxt = reset_clock(game)
    nxt.current_period = game.current_period + 1
    nxt.home_team.team_fouls = 0
    nxt.away_team.team_fouls = 0
    return nxt


def toggle_possession(game: Game) -> Game:
    nxt = copy.deepcopy(game)
    nxt.possession = game.possession.next()
    return nxt


def call_timeout(game: Game, role: TeamRole) -> Game:
    if game.team(role).timeouts_remaining <= 0:
        return game
    nxt = copy.deepcopy(game)
    team = nxt.team(role)
    team.timeouts_remaining -= 1
    nxt.is_clock_running = False
    nxt.plays.append(_play(nxt, team, PlayType.TIMEOUT, f"{team.abbreviation} timeout"))
    return nxt


def toggle_on_court(game: Game, role: TeamRole, player_id: str) -> Game:
    if game.team(role).find_player(player_id) is None:
        return game
    nxt = copy.deepcopy(game)
    player = nxt.team(role).find_player(player_id)
    player.is_on_court = not player.is_on_court
    return nxt


def substitute(game: Game, role: TeamRole, player_out_id: str, player_in_id: str) -> Game:
    """Swap a bench player in for an on-court one and log the substitution."""
    team = game.team(role)
    out_p = team.find_player(player_out_id)
    in_p = team.find_player(player_in_id)
    if out_p is None or in_p is None or not out_p.is_on_court or in_p.is_on_court:
        return game

    nxt = copy.deepcopy(game)
    team = nxt.team(role)
    out_p = team.find_player(player_out_id)
    in_p = team.find_player(player_in_id)
    out_p.is_on_court = False
    in_p.is_on_court = True
    nxt.plays.append(_play(nxt, team, PlayType.SUBSTITUTION, f"{in_p.name} in for {out_p.name}", in_p))
    return nxt


def end_game(game: Game) -> Game:
    nxt = copy.deepcopy(game)
    nxt.status = GameStatus.COMPLETED
    nxt.is_clock_running = False
    return nxt
