from flask import Blueprint, jsonify, request, current_app
from gameops import socketio, get_store, get_sessions
from gameops.storage import StorageError
from gameops.services.games import transitions
from gameops.services.games.scoring import game_box_score, play_by_play
from gameops.services.games.setup import new_game
from gameops.services.games.state import Game, StatType, TeamRole


games = Blueprint('games', __name__)


class TransitionRefused(Exception):
    """Raised inside a session transition to leave the live game untouched."""


def _role(value):
    try:
        return TeamRole(value)
    except ValueError:
        return None


def _emit_state(game_id: str) -> None:
    socketio.emit('state_update', {'game_id': game_id}, to=f"game:{game_id}", namespace='/ws')


def _current_game(game_id: str):
    session = get_sessions().get(game_id)
    if session is not None:
        return session.game
    return get_store().get_game(game_id)


def _detach_session(game_id: str) -> bool:
    """Flush and close the live session so a direct store write is not overwritten."""
    session = get_sessions().close(game_id)
    if session is None:
        return False
    get_store().save_game(session.game)
    return True


def _write_through(game_id: str, write):
    was_live = _detach_session(game_id)
    try:
        return write()
    finally:
        if was_live:
            game = get_store().get_game(game_id)
            if game is not None and not game.is_completed:
                get_sessions().open(game)


def _refuse_if_completed(game):
    if game.is_completed:
        raise TransitionRefused('Game is completed')


def _live(game_id: str, action: str, transition, *args):
    """Apply ``transition`` to the live session of ``game_id`` and persist the result."""
    store = get_store()
    sessions = get_sessions()
    try:
        session = sessions.get(game_id)
        if session is None:
            game = store.get_game(game_id)
            if game is None:
                return jsonify({'error': 'Game not found'}), 404
            if game.is_completed:
                return jsonify({'error': 'Game is completed'}), 400
            session = sessions.open(game)

        def guarded(game, *a):
            _refuse_if_completed(game)
            return transition(game, *a)

        changed = []

        def persist(game):
            store.save_game(game)
            changed.append(game)

        try:
            game = session.apply(guarded, *args, on_change=persist)
        except TransitionRefused as exc:
            current_app.logger.info(f"[refused] game={game_id} action={action} reason={exc}")
            return jsonify({'error': str(exc)}), 400

        if changed:
            current_app.logger.info(f"[{action}] game={game_id} period={game.current_period} clock={game.game_time} plays={len(game.plays)}")
            _emit_state(game_id)
        return jsonify(game.to_dict())
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} action={action}")
        return jsonify({'error': f'Failed to {action.replace("_", " ")}'}), 500


@games.route('', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    try:
        game = new_game(
            data.get('sport'),
            data.get('rules'),
            home=data.get('home_team'),
            away=data.get('away_team'),
            period_length=data.get('period_length'),
            total_periods=data.get('total_periods'),
            max_on_court=int(current_app.config.get('MAX_ON_COURT', 5)),
        )
    except (TypeError, ValueError) as exc:
        return jsonify({'error': str(exc)}), 400
    try:
        get_store().create_game(game)
    except StorageError:
        current_app.logger.exception('[storage] create failed')
        return jsonify({'error': 'Failed to create game'}), 500
    get_sessions().open(game)
    current_app.logger.info(f"[create] game={game.id} sport={game.sport.value} rules={game.rules.value} {game.away_team.abbreviation}@{game.home_team.abbreviation}")
    return jsonify(game.to_dict()), 201


@games.route('', methods=['GET'])
def list_games():
    status = request.args.get('status')
    try:
        stored = get_store().get_all_games()
    except StorageError:
        current_app.logger.exception('[storage] list failed')
        return jsonify({'error': 'Failed to fetch games'}), 500
    sessions = get_sessions()
    result = []
    for game in stored:
        session = sessions.get(game.id)
        if session is not None:
            game = session.game
        if status and game.status.value != status:
            continue
        result.append(game.to_dict())
    return jsonify(result)


@games.route('/<string:game_id>', methods=['GET'])
def get_game(game_id):
    try:
        game = _current_game(game_id)
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} fetch failed")
        return jsonify({'error': 'Failed to fetch game'}), 500
    if game is None:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify(game.to_dict())


@games.route('/<string:game_id>', methods=['PUT'])
def save_game(game_id):
    data = request.get_json(silent=True) or {}
    try:
        game = Game.from_dict({**data, 'id': game_id})
    except (KeyError, TypeError, ValueError) as exc:
        return jsonify({'error': f'Invalid game data: {exc}'}), 400
    try:
        saved = _write_through(game_id, lambda: get_store().save_game(game))
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} save failed")
        return jsonify({'error': 'Failed to save game'}), 500
    _emit_state(game_id)
    return jsonify(saved.to_dict())


@games.route('/<string:game_id>', methods=['PATCH'])
def update_game(game_id):
    updates = request.get_json(silent=True) or {}
    try:
        game = _write_through(game_id, lambda: get_store().update_game(game_id, updates))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} update failed")
        return jsonify({'error': 'Failed to update game'}), 500
    if game is None:
        return jsonify({'error': 'Game not found'}), 404
    _emit_state(game_id)
    return jsonify(game.to_dict())


@games.route('/<string:game_id>', methods=['DELETE'])
def delete_game(game_id):
    get_sessions().close(game_id)
    try:
        deleted = get_store().delete_game(game_id)
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} delete failed")
        return jsonify({'error': 'Failed to delete game'}), 500
    if not deleted:
        return jsonify({'error': 'Game not found'}), 404
    current_app.logger.info(f"[delete] game={game_id}")
    return jsonify({'success': True})


@games.route('/<string:game_id>/plays', methods=['POST'])
def record_play(game_id):
    data = request.get_json(silent=True) or {}
    try:
        play = _write_through(game_id, lambda: get_store().record_play(game_id, data))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} record play failed")
        return jsonify({'error': 'Failed to record play'}), 500
    if play is None:
        return jsonify({'error': 'Game not found'}), 404
    _emit_state(game_id)
    return jsonify(play.to_dict()), 201


@games.route('/<string:game_id>/plays', methods=['GET'])
def get_plays(game_id):
    try:
        game = _current_game(game_id)
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} fetch failed")
        return jsonify({'error': 'Failed to fetch game'}), 500
    if game is None:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify([p.to_dict() for p in play_by_play(game)])


@games.route('/<string:game_id>/boxscore', methods=['GET'])
def get_box_score(game_id):
    try:
        game = _current_game(game_id)
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} fetch failed")
        return jsonify({'error': 'Failed to fetch game'}), 500
    if game is None:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify(game_box_score(game))


@games.route('/<string:game_id>/teams/<string:team_role>', methods=['PATCH'])
def update_team(game_id, team_role):
    role = _role(team_role)
    if role is None:
        return jsonify({'error': 'Invalid team type'}), 400
    updates = request.get_json(silent=True) or {}
    try:
        team = _write_through(game_id, lambda: get_store().update_team(game_id, role, updates))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} update team failed")
        return jsonify({'error': 'Failed to update team'}), 500
    if team is None:
        return jsonify({'error': 'Game or team not found'}), 404
    _emit_state(game_id)
    return jsonify(team.to_dict())


@games.route('/<string:game_id>/teams/<string:team_role>/players/<string:player_id>', methods=['PATCH'])
def update_player(game_id, team_role, player_id):
    role = _role(team_role)
    if role is None:
        return jsonify({'error': 'Invalid team type'}), 400
    updates = request.get_json(silent=True) or {}
    try:
        player = _write_through(
            game_id, lambda: get_store().update_player_stats(game_id, role, player_id, updates)
        )
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    except StorageError:
        current_app.logger.exception(f"[storage] game={game_id} update player failed")
        return jsonify({'error': 'Failed to update player'}), 500
    if player is None:
        return jsonify({'error': 'Game or player not found'}), 404
    _emit_state(game_id)
    return jsonify(player.to_dict())


# ---- Live scorekeeping ----

@games.route('/<string:game_id>/stats', methods=['POST'])
def record_stat(game_id):
    data = request.get_json(silent=True) or {}
    role = _role(data.get('team'))
    player_id = data.get('player_id')
    try:
        stat = StatType(data.get('stat'))
    except ValueError:
        stat = None
    if role is None or not player_id or stat is None:
        return jsonify({'error': 'team, player_id and a valid stat are required'}), 400

    foul_limit = int(current_app.config.get('FOUL_OUT_LIMIT', 5))

    def guarded(game, role, player_id, stat):
        player = game.team(role).find_player(player_id)
        if stat is StatType.FOUL and player is not None and player.fouls >= foul_limit:
            raise TransitionRefused(f'{player.name} has fouled out')
        return transitions.record_stat(game, role, player_id, stat)

    return _live(game_id, 'record_stat', guarded, role, str(player_id), stat)


@games.route('/<string:game_id>/clock/toggle', methods=['POST'])
def toggle_clock(game_id):
    return _live(game_id, 'toggle_clock', transitions.toggle_clock)


@games.route('/<string:game_id>/clock/reset', methods=['POST'])
def reset_clock(game_id):
    return _live(game_id, 'reset_clock', transitions.reset_clock)


@games.route('/<string:game_id>/period/next', methods=['POST'])
def next_period(game_id):
    max_ot = int(current_app.config.get('MAX_OVERTIME_PERIODS', 3))

    def guarded(game):
        if game.current_period >= game.total_periods + max_ot:
            raise TransitionRefused('No more periods allowed')
        return transitions.advance_period(game)

    return _live(game_id, 'advance_period', guarded)


@games.route('/<string:game_id>/possession', methods=['POST'])
def toggle_possession(game_id):
    return _live(game_id, 'toggle_possession', transitions.toggle_possession)


@games.route('/<string:game_id>/timeouts', methods=['POST'])
def call_timeout(game_id):
    data = request.get_json(silent=True) or {}
    role = _role(data.get('team'))
    if role is None:
        return jsonify({'error': 'Invalid team type'}), 400
    return _live(game_id, 'call_timeout', transitions.call_timeout, role)


@games.route('/<string:game_id>/teams/<string:team_role>/players/<string:player_id>/court', methods=['POST'])
def toggle_on_court(game_id, team_role, player_id):
    role = _role(team_role)
    if role is None:
        return jsonify({'error': 'Invalid team type'}), 400
    max_on_court = int(current_app.config.get('MAX_ON_COURT', 5))

    def guarded(game, role, player_id):
        team = game.team(role)
        player = team.find_player(player_id)
        if player is not None and not player.is_on_court and len(team.on_court) >= max_on_court:
            raise TransitionRefused(f'{team.abbreviation} already has {max_on_court} players on court')
        return transitions.toggle_on_court(game, role, player_id)

    return _live(game_id, 'toggle_on_court', guarded, role, player_id)


@games.route('/<string:game_id>/substitutions', methods=['POST'])
def substitute(game_id):
    data = request.get_json(silent=True) or {}
    role = _role(data.get('team'))
    player_out_id = data.get('player_out_id')
    player_in_id = data.get('player_in_id')
    if role is None or not player_out_id or not player_in_id:
        return jsonify({'error': 'team, player_out_id and player_in_id are required'}), 400
    return _live(game_id, 'substitute', transitions.substitute, role, str(player_out_id), str(player_in_id))


@games.route('/<string:game_id>/end', methods=['POST'])
def end_game(game_id):
    response = _live(game_id, 'end_game', transitions.end_game)
    if isinstance(response, tuple):
        return response
    session = get_sessions().close(game_id)
    if session is not None:
        current_app.logger.info(f"[end] game={game_id} final {session.game.away_team.score}-{session.game.home_team.score}")
    return response
