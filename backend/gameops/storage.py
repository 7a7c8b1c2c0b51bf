"""Game persistence.

``GameStore`` is the interface the HTTP layer talks to. Two backends ship:
``MemoryGameStore`` (dict keyed by game id, used by tests and local runs) and
``SqlGameStore`` (Flask-SQLAlchemy tables from ``gameops.models``). The app
builds one in ``create_app`` according to ``GAME_STORE`` and keeps it in
``app.extensions['gameops']``.

Lookups that miss return ``None`` (or ``False`` for deletes). Backend
failures raise ``StorageError``.
"""

import threading
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from gameops.services.games.state import Game, Play, Player, Team, TeamRole, new_id


class StorageError(Exception):
    pass


class GameStore:

    def get_game(self, game_id: str) -> Optional[Game]:
        raise NotImplementedError

    def get_all_games(self) -> List[Game]:
        raise NotImplementedError

    def save_game(self, game: Game) -> Game:
        """Insert or fully replace the stored snapshot for ``game.id``."""
        raise NotImplementedError

    def delete_game(self, game_id: str) -> bool:
        raise NotImplementedError

    def create_game(self, game: Game) -> Game:
        return self.save_game(game)

    def update_game(self, game_id: str, updates: dict) -> Optional[Game]:
        """Shallow-merge ``updates`` into the stored game (last write wins per field)."""
        game = self.get_game(game_id)
        if game is None:
            return None
        data = game.to_dict()
        data.update({k: v for k, v in (updates or {}).items() if k != 'id'})
        return self.save_game(_parse(Game, data))

    def record_play(self, game_id: str, play_data: dict) -> Optional[Play]:
        game = self.get_game(game_id)
        if game is None:
            return None
        play = _parse(Play, {**(play_data or {}), 'id': new_id()})
        game.plays.append(play)
        self.save_game(game)
        return play

    def update_player_stats(self, game_id: str, role: TeamRole, player_id: str, updates: dict) -> Optional[Player]:
        game = self.get_game(game_id)
        if game is None:
            return None
        team = game.team(role)
        for idx, player in enumerate(team.players):
            if player.id == player_id:
                data = player.to_dict()
                data.update({k: v for k, v in (updates or {}).items() if k != 'id'})
                team.players[idx] = _parse(Player, data)
                self.save_game(game)
                return team.players[idx]
        return None

    def update_team(self, game_id: str, role: TeamRole, updates: dict) -> Optional[Team]:
        game = self.get_game(game_id)
        if game is None:
            return None
        data = game.team(role).to_dict()
        data.update({k: v for k, v in (updates or {}).items() if k != 'id'})
        team = _parse(Team, data)
        if TeamRole(role) is TeamRole.HOME:
            game.home_team = team
        else:
            game.away_team = team
        self.save_game(game)
        return team


def _parse(cls, data):
    try:
        return cls.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f'Invalid {cls.__name__.lower()} data: {exc}')


class MemoryGameStore(GameStore):
    """Process-local store. Snapshots are copied in and out as dicts."""

    def __init__(self):
        self._games: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def get_game(self, game_id):
        with self._lock:
            data = self._games.get(game_id)
        return Game.from_dict(data) if data else None

    def get_all_games(self):
        with self._lock:
            snapshots = list(self._games.values())
        return [Game.from_dict(d) for d in snapshots]

    def save_game(self, game):
        with self._lock:
            self._games[game.id] = game.to_dict()
        return Game.from_dict(game.to_dict())

    def delete_game(self, game_id):
        with self._lock:
            return self._games.pop(game_id, None) is not None


class SqlGameStore(GameStore):
    """Relational store backed by the app's Flask-SQLAlchemy session."""

    def __init__(self, db):
        self.db = db

    def _record(self, game_id):
        from gameops.models import GameRecord
        return self.db.session.get(GameRecord, game_id)

    def get_game(self, game_id):
        try:
            record = self._record(game_id)
            return record.to_game() if record else None
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StorageError(str(exc)) from exc

    def get_all_games(self):
        from gameops.models import GameRecord
        try:
            records = GameRecord.query.order_by(GameRecord.created_at).all()
            return [r.to_game() for r in records]
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StorageError(str(exc)) from exc

    def save_game(self, game):
        from gameops.models import GameRecord
        try:
            existing = self._record(game.id)
            if existing is not None:
                self.db.session.delete(existing)
                self.db.session.flush()
            self.db.session.add(GameRecord.from_game(game))
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StorageError(str(exc)) from exc
        return self.get_game(game.id)

    def delete_game(self, game_id):
        try:
            record = self._record(game_id)
            if record is None:
                return False
            self.db.session.delete(record)
            self.db.session.commit()
            return True
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise StorageError(str(exc)) from exc


def build_store(app, db) -> GameStore:
    kind = (app.config.get('GAME_STORE') or 'sql').lower()
    if kind == 'memory':
        return MemoryGameStore()
    if kind == 'sql':
        return SqlGameStore(db)
    raise ValueError(f'Unknown GAME_STORE: {kind}')
