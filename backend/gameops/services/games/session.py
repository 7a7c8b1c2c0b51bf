"""Live game sessions.

A ``GameSession`` holds the one live ``Game`` for a game id and applies
transitions to it one at a time. HTTP handlers and the clock ticker both go
through ``apply``/the ticker callback, so read-modify-write on score, fouls
and stats never interleaves.
"""

import threading
from typing import Callable, Dict, List, Optional

from .clock import ClockTicker
from .state import Game
from .transitions import tick


class GameSession:
    def __init__(self, game: Game, on_tick: Optional[Callable[[Game], None]] = None,
                 clock_enabled: bool = True, tick_interval: float = 1.0, heartbeat: int = 0,
                 spawn=None, sleep=None, log=None):
        self._game = game
        self._lock = threading.RLock()
        self._closed = False
        self._on_tick = on_tick
        self.ticker = None
        if clock_enabled:
            self.ticker = ClockTicker(
                self._tick, interval=tick_interval, spawn=spawn, sleep=sleep,
                heartbeat=heartbeat, name=game.id, log=log,
            )
        with self._lock:
            self._sync_clock()

    @property
    def game(self) -> Game:
        return self._game

    @property
    def game_id(self) -> str:
        return self._game.id

    @property
    def closed(self) -> bool:
        return self._closed

    def apply(self, transition: Callable[..., Game], *args,
              on_change: Optional[Callable[[Game], None]] = None) -> Game:
        """Run ``transition(game, *args)`` and install the result as the live game.

        ``on_change(game)`` runs under the session lock when the game changed, so
        snapshots are persisted in the order the transitions were applied.
        """
        with self._lock:
            if self._closed:
                return self._game
            before = self._game
            self._game = transition(before, *args)
            self._sync_clock()
            if on_change is not None and self._game is not before:
                on_change(self._game)
            return self._game

    def close(self) -> Game:
        with self._lock:
            self._closed = True
            if self.ticker is not None:
                self.ticker.stop()
            return self._game

    def _sync_clock(self) -> None:
        if self.ticker is None:
            return
        game = self._game
        if not self._closed and game.is_clock_running and game.game_clock_seconds > 0:
            self.ticker.start()
        else:
            self.ticker.stop()

    def _tick(self, generation: int) -> bool:
        with self._lock:
            if self._closed or not self.ticker.is_current(generation):
                return False
            self._game = tick(self._game)
            game = self._game
            if game.game_clock_seconds <= 0:
                # Clock stays "running" at 0:00; nothing left to count down.
                self.ticker.stop()
        if self._on_tick is not None:
            self._on_tick(game)
        return game.game_clock_seconds > 0


class SessionRegistry:
    """Live sessions keyed by game id, owned by the Flask app."""

    def __init__(self, factory: Callable[[Game], GameSession]):
        self._factory = factory
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def open(self, game: Game) -> GameSession:
        with self._lock:
            session = self._sessions.get(game.id)
            if session is None:
                session = self._factory(game)
                self._sessions[game.id] = session
            return session

    def close(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.pop(game_id, None)
        if session is not None:
            session.close()
        return session

    def close_all(self) -> None:
        with self._lock:
            sessions: List[GameSession] = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()

    def __len__(self):
        with self._lock:
            return len(self._sessions)
