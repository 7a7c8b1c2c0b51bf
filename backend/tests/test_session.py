import dataclasses
import threading

import pytest

from gameops.services.games import transitions as t
from gameops.services.games.clock import ClockTicker
from gameops.services.games.session import GameSession, SessionRegistry
from gameops.services.games.state import StatType, TeamRole


class FakeSpawn:
    """Captures background tasks instead of running them."""

    def __init__(self):
        self.calls = []

    def __call__(self, fn, *args):
        self.calls.append((fn, args))

    def run(self, index=-1):
        fn, args = self.calls[index]
        fn(*args)


class RecordingLog:
    def __init__(self):
        self.lines = []

    def info(self, msg, *args):
        self.lines.append(msg % args if args else msg)


def no_sleep(_seconds):
    pass


@pytest.fixture()
def short_game(game):
    return dataclasses.replace(game, game_clock_seconds=3)


def make_session(game, **kwargs):
    spawn = FakeSpawn()
    ticks = []
    session = GameSession(game, on_tick=ticks.append, spawn=spawn, sleep=no_sleep,
                          log=RecordingLog(), **kwargs)
    return session, spawn, ticks


def test_clock_runs_down_to_zero_and_stays_running(short_game):
    session, spawn, ticks = make_session(short_game)
    assert spawn.calls == []

    session.apply(t.toggle_clock)
    assert len(spawn.calls) == 1
    spawn.run()

    assert session.game.game_clock_seconds == 0
    assert session.game.is_clock_running is True
    assert [g.game_clock_seconds for g in ticks] == [2, 1, 0]
    assert session.ticker.running is False


def test_no_tick_after_stop(short_game):
    session, spawn, ticks = make_session(short_game)
    session.apply(t.toggle_clock)
    session.apply(t.toggle_clock)
    spawn.run()
    assert session.game.game_clock_seconds == 3
    assert ticks == []


def test_no_tick_after_close(short_game):
    session, spawn, ticks = make_session(short_game)
    session.apply(t.toggle_clock)
    session.close()
    spawn.run()
    assert session.game.game_clock_seconds == 3
    assert ticks == []
    assert session.closed


def test_restart_leaves_only_the_new_worker_ticking(short_game):
    session, spawn, ticks = make_session(short_game)
    session.apply(t.toggle_clock)
    session.apply(t.toggle_clock)
    session.apply(t.toggle_clock)
    assert len(spawn.calls) == 2

    spawn.run(0)
    assert ticks == []
    spawn.run(1)
    assert session.game.game_clock_seconds == 0


def test_timeout_stops_ticker(short_game):
    session, spawn, ticks = make_session(short_game)
    session.apply(t.toggle_clock)
    session.apply(t.call_timeout, TeamRole.HOME)
    assert session.ticker.running is False
    spawn.run()
    assert session.game.game_clock_seconds == 3


def test_running_clock_at_zero_does_not_spawn(game):
    game = dataclasses.replace(game, game_clock_seconds=0, is_clock_running=True)
    session, spawn, _ = make_session(game)
    assert spawn.calls == []
    session.apply(t.toggle_possession)
    assert spawn.calls == []


def test_apply_after_close_is_ignored(game):
    session, _, _ = make_session(game)
    session.close()
    pid = game.home_team.players[0].id
    assert session.apply(t.record_stat, TeamRole.HOME, pid, StatType.FIELD_GOAL_2) is game


def test_clock_disabled_session(game):
    session = GameSession(game, clock_enabled=False)
    assert session.ticker is None
    assert session.apply(t.toggle_clock).is_clock_running is True
    session.close()


def test_ticker_heartbeat_logs():
    log = RecordingLog()
    spawn = FakeSpawn()
    remaining = [4]

    def on_tick(_gen):
        remaining[0] -= 1
        return remaining[0] > 0

    ticker = ClockTicker(on_tick, spawn=spawn, sleep=no_sleep, heartbeat=2, name='g1', log=log)
    ticker.start()
    ticker.start()
    assert len(spawn.calls) == 1
    spawn.run()
    assert sum('[clock-heartbeat]' in line for line in log.lines) == 1
    assert any('[clock-start] game=g1' in line for line in log.lines)
    ticker.stop()
    assert not ticker.is_current(1)


def test_registry(game, pro_game):
    opened = []

    def factory(g):
        opened.append(g.id)
        return GameSession(g, clock_enabled=False)

    registry = SessionRegistry(factory)
    first = registry.open(game)
    assert registry.open(game) is first
    registry.open(pro_game)
    assert len(registry) == 2
    assert opened == [game.id, pro_game.id]

    closed = registry.close(game.id)
    assert closed is first and first.closed
    assert registry.get(game.id) is None
    assert registry.close(game.id) is None

    registry.close_all()
    assert len(registry) == 0


def test_on_change_runs_under_the_session_lock(game):
    session, _, _ = make_session(game)
    seen = []

    def on_change(g):
        # a second writer from another thread must wait for this callback
        blocked = []
        worker = threading.Thread(target=lambda: blocked.append(session._lock.acquire(blocking=False)))
        worker.start()
        worker.join()
        seen.append((g.possession, blocked[0]))

    result = session.apply(t.toggle_possession, on_change=on_change)
    assert seen == [(result.possession, False)]


def test_on_change_skipped_for_no_op(game):
    session, _, _ = make_session(game)
    seen = []
    result = session.apply(t.record_stat, TeamRole.HOME, 'ghost', StatType.ASSIST, on_change=seen.append)
    assert result is game
    assert seen == []
