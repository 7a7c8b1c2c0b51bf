"""One-second game clock ticker.

Runs as a Socket.IO background task while a session's clock is running.
Cancellation is generation based: ``stop()`` bumps the generation, and a
worker whose generation is stale exits without applying another tick.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ClockTicker:
    def __init__(self, on_tick: Callable[[int], bool], interval: float = 1.0,
                 spawn: Optional[Callable] = None, sleep: Optional[Callable] = None,
                 heartbeat: int = 0, name: str = '', log=None):
        """``on_tick(generation)`` applies one tick and returns False once the worker should exit."""
        if spawn is None or sleep is None:
            from gameops import socketio
            spawn = spawn or socketio.start_background_task
            sleep = sleep or socketio.sleep
        self._on_tick = on_tick
        self._interval = interval
        self._spawn = spawn
        self._sleep = sleep
        self._heartbeat = heartbeat
        self._name = name
        self._log = log or logger
        self.generation = 0
        self.running = False

    def start(self) -> None:
        if self.running:
            return
        self.generation += 1
        self.running = True
        self._log.info(f"[clock-start] game={self._name} gen={self.generation}")
        self._spawn(self._worker, self.generation)

    def stop(self) -> None:
        if not self.running:
            return
        self.generation += 1
        self.running = False
        self._log.info(f"[clock-stop] game={self._name} gen={self.generation}")

    def is_current(self, generation: int) -> bool:
        return self.running and generation == self.generation

    def _worker(self, generation: int) -> None:
        ticks = 0
        while True:
            self._sleep(self._interval)
            if not self._on_tick(generation):
                return
            ticks += 1
            if self._heartbeat and ticks % self._heartbeat == 0:
                self._log.info(f"[clock-heartbeat] game={self._name} gen={generation} ticks={ticks}")
