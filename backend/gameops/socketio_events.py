from flask_socketio import join_room, leave_room, emit
from gameops import socketio, get_store, get_sessions
from gameops.storage import StorageError
from gameops.services.games.transitions import stop_clock
from flask import current_app, request
from typing import Dict, Any
import time


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # When the last scorekeeper for a game drops, stop its clock after a
    # short grace period so it does not keep running unattended
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    game_id = ctx.get('game_id')
    if ctx.get('is_scorekeeper') and game_id:
        _release_keeper(game_id)


def handle_join_game(data):
    game_id = (data or {}).get('game_id')
    is_scorekeeper = bool((data or {}).get('is_scorekeeper'))
    if not game_id:
        emit('error', {'message': 'game_id is required'})
        return
    room = f"game:{game_id}"
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'game_id': game_id, 'is_scorekeeper': is_scorekeeper}
    if is_scorekeeper:
        _keeper_count[game_id] = _keeper_count.get(game_id, 0) + 1
        _stop_deadline.pop(game_id, None)
    emit('joined', {'room': room})


def handle_leave_game(data):
    game_id = (data or {}).get('game_id')
    if not game_id:
        emit('error', {'message': 'game_id is required'})
        return
    room = f"game:{game_id}"
    leave_room(room)
    emit('left', {'room': room})
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx and ctx.get('game_id') == game_id:
        ctx['game_id'] = None
        if ctx.get('is_scorekeeper'):
            _release_keeper(game_id)


def handle_ping(data):
    emit('pong', data or {})

# ---- Scorekeeper presence helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_keeper_count: Dict[str, int] = {}
_stop_deadline: Dict[str, float] = {}

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _release_keeper(game_id: str) -> None:
    _keeper_count[game_id] = max(0, _keeper_count.get(game_id, 0) - 1)
    app = current_app._get_current_object()
    # In tests, stop immediately for determinism; in prod, allow grace period
    if app.config.get('TESTING'):
        if _keeper_count.get(game_id, 0) == 0:
            _stop_unattended_clock(app, game_id)
        return
    _schedule_stop_if_unattended(app, game_id)

def _stop_unattended_clock(app, game_id: str) -> None:
    """Stop the live clock for ``game_id`` and persist the snapshot."""
    with app.app_context():
        session = get_sessions().get(game_id)
        if session is None:
            return
        changed = []
        try:
            game = session.apply(stop_clock, on_change=lambda g: changed.append(get_store().save_game(g)))
        except StorageError:
            app.logger.exception(f"[storage] game={game_id} unattended stop")
            game = session.game
            changed.append(game)
        if not changed:
            return
        app.logger.info(f"[clock-unattended] game={game_id} stopped at {game.game_time}")
        socketio.emit('state_update', {'game_id': game_id}, to=f"game:{game_id}", namespace='/ws')
    _stop_deadline.pop(game_id, None)

def _schedule_stop_if_unattended(app, game_id: str, delay_sec: float = 5.0) -> None:
    if _keeper_count.get(game_id, 0) > 0:
        return
    _stop_deadline[game_id] = time.time() + delay_sec

    def _runner(gid: str, deadline: float):
        sleep_for = max(0.0, deadline - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if _keeper_count.get(gid, 0) == 0 and _stop_deadline.get(gid) == deadline:
            _stop_unattended_clock(app, gid)

    socketio.start_background_task(_runner, game_id, _stop_deadline[game_id])


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('disconnect', handle_disconnect, namespace=ns)
        socketio.on_event('join_game', handle_join_game, namespace=ns)
        socketio.on_event('leave_game', handle_leave_game, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)
