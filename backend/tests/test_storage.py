import dataclasses

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from gameops.storage import MemoryGameStore, SqlGameStore, StorageError
from gameops.services.games import transitions as t
from gameops.services.games.state import StatType, TeamRole


def test_create_and_get_round_trip(store, game):
    game = t.record_stat(game, TeamRole.HOME, game.home_team.players[0].id, StatType.FIELD_GOAL_3)
    game = t.toggle_possession(game)
    saved = store.create_game(game)
    assert saved == game

    loaded = store.get_game(game.id)
    assert loaded == game
    assert loaded.home_team.score == 3
    assert [p.number for p in loaded.home_team.players] == [1, 2, 3, 4, 5, 6]
    assert loaded.plays[0].description == 'Home Player1 3PT made'


def test_missing_game_is_none(store):
    assert store.get_game('nope') is None
    assert store.update_game('nope', {'status': 'completed'}) is None
    assert store.record_play('nope', {}) is None
    assert store.update_team('nope', TeamRole.HOME, {'score': 1}) is None
    assert store.update_player_stats('nope', TeamRole.HOME, 'p', {'fouls': 1}) is None
    assert store.delete_game('nope') is False


def test_get_all_games(store, game, pro_game):
    store.create_game(game)
    store.create_game(pro_game)
    assert {g.id for g in store.get_all_games()} == {game.id, pro_game.id}


def test_save_replaces_snapshot(store, game):
    store.create_game(game)
    nxt = t.call_timeout(t.advance_period(game), TeamRole.AWAY)
    store.save_game(nxt)
    loaded = store.get_game(game.id)
    assert loaded.current_period == 2
    assert loaded.away_team.timeouts_remaining == 4
    assert len(loaded.plays) == 1


def test_update_game_is_shallow_merge(store, game):
    store.create_game(game)
    updated = store.update_game(game.id, {'status': 'completed', 'id': 'other', 'current_period': 3})
    assert updated.id == game.id
    assert updated.status.value == 'completed'
    assert updated.current_period == 3
    assert updated.home_team == game.home_team


def test_update_game_rejects_bad_values(store, game):
    store.create_game(game)
    with pytest.raises(ValueError):
        store.update_game(game.id, {'status': 'paused-forever'})


def test_record_play_assigns_id(store, game):
    store.create_game(game)
    play = store.record_play(game.id, {
        'id': 'client-id', 'timestamp': 1, 'period': 1, 'game_time': '8:00',
        'team_id': game.home_team.id, 'type': 'timeout', 'description': 'manual entry',
    })
    assert play.id != 'client-id'
    loaded = store.get_game(game.id)
    assert [p.id for p in loaded.plays] == [play.id]


def test_update_player_stats(store, game):
    store.create_game(game)
    pid = game.away_team.players[2].id
    player = store.update_player_stats(game.id, TeamRole.AWAY, pid, {'fouls': 4, 'is_on_court': False})
    assert player.fouls == 4
    loaded = store.get_game(game.id).away_team.find_player(pid)
    assert loaded.fouls == 4
    assert loaded.is_on_court is False
    assert store.update_player_stats(game.id, TeamRole.AWAY, 'ghost', {'fouls': 1}) is None


def test_update_team(store, game):
    store.create_game(game)
    team = store.update_team(game.id, TeamRole.HOME, {'color': '#000000', 'timeouts_remaining': 2})
    assert team.color == '#000000'
    loaded = store.get_game(game.id)
    assert loaded.home_team.timeouts_remaining == 2
    assert loaded.home_team.players == game.home_team.players


def test_delete_game(store, game):
    store.create_game(game)
    assert store.delete_game(game.id) is True
    assert store.get_game(game.id) is None


def test_backend_matches_config(flask_app, store):
    expected = MemoryGameStore if flask_app.config['GAME_STORE'] == 'memory' else SqlGameStore
    assert isinstance(store, expected)


def test_sql_failure_raises_storage_error(flask_app, store, game, monkeypatch):
    if not isinstance(store, SqlGameStore):
        pytest.skip('sql backend only')

    def boom(self):
        raise OperationalError('COMMIT', {}, Exception('database is gone'))

    monkeypatch.setattr(Session, 'commit', boom)
    with pytest.raises(StorageError):
        store.create_game(game)


def test_games_may_share_team_and_player_ids(store, game):
    store.create_game(game)
    copy = dataclasses.replace(game, id='copy-1')
    store.save_game(copy)

    assert store.get_game('copy-1').home_team.id == game.home_team.id
    assert store.get_game(game.id) == game
    assert store.delete_game('copy-1') is True
    assert store.get_game(game.id) == game


def test_update_rejects_invalid_team_and_player_fields(store, game):
    store.create_game(game)
    with pytest.raises(ValueError):
        store.update_team(game.id, TeamRole.HOME, {'abbreviation': 'TOOLONG'})
    with pytest.raises(ValueError):
        store.update_player_stats(game.id, TeamRole.HOME, game.home_team.players[0].id, {'number': -1})
    assert store.get_game(game.id) == game
