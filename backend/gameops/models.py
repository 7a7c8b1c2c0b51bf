from gameops import db
from gameops.services.games.state import Game, Play, Player, PlayerStats, Team
import json


class GameRecord(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.String(64), primary_key=True)
    sport = db.Column(db.String(32), nullable=False)
    rules = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(32), default='active', nullable=False)  # setup, active, paused, completed
    current_period = db.Column(db.Integer, default=1, nullable=False)
    period_length = db.Column(db.Integer, nullable=False)
    total_periods = db.Column(db.Integer, nullable=False)
    game_clock_seconds = db.Column(db.Integer, nullable=False)
    is_clock_running = db.Column(db.Boolean, default=False, nullable=False)
    possession = db.Column(db.String(8), nullable=True)  # home, away or NULL
    created_at = db.Column(db.BigInteger, nullable=False)

    teams = db.relationship('TeamRecord', back_populates='game', cascade='all, delete-orphan')
    plays = db.relationship('PlayRecord', back_populates='game', order_by='PlayRecord.seq',
                            cascade='all, delete-orphan')

    def _team(self, role):
        for t in self.teams:
            if t.role == role:
                return t
        return None

    def to_dict(self):
        home = self._team('home')
        away = self._team('away')
        return {
            'id': self.id,
            'sport': self.sport,
            'rules': self.rules,
            'status': self.status,
            'home_team': home.to_dict() if home else None,
            'away_team': away.to_dict() if away else None,
            'current_period': self.current_period,
            'period_length': self.period_length,
            'total_periods': self.total_periods,
            'game_clock_seconds': self.game_clock_seconds,
            'is_clock_running': self.is_clock_running,
            'possession': self.possession,
            'plays': [p.to_dict() for p in self.plays],
            'created_at': self.created_at,
        }

    def to_game(self) -> Game:
        return Game.from_dict(self.to_dict())

    @classmethod
    def from_game(cls, game: Game) -> 'GameRecord':
        data = game.to_dict()
        record = cls(
            id=game.id,
            sport=data['sport'],
            rules=data['rules'],
            status=data['status'],
            current_period=game.current_period,
            period_length=game.period_length,
            total_periods=game.total_periods,
            game_clock_seconds=game.game_clock_seconds,
            is_clock_running=game.is_clock_running,
            possession=data['possession'],
            created_at=game.created_at,
        )
        record.teams = [
            TeamRecord.from_team(game.home_team, game.id, 'home'),
            TeamRecord.from_team(game.away_team, game.id, 'away'),
        ]
        record.plays = [PlayRecord.from_play(p, game.id, seq) for seq, p in enumerate(game.plays)]
        return record


class TeamRecord(db.Model):
    __tablename__ = 'team'
    # Team ids are only unique within a game, so the game is part of the key
    game_id = db.Column(db.String(64), db.ForeignKey('game.id'), primary_key=True, index=True)
    id = db.Column(db.String(64), primary_key=True)
    role = db.Column(db.String(8), nullable=False)  # home, away
    name = db.Column(db.String(128), nullable=False)
    abbreviation = db.Column(db.String(4), nullable=False)
    color = db.Column(db.String(16), default='#000000')
    timeouts_remaining = db.Column(db.Integer, default=5, nullable=False)
    team_fouls = db.Column(db.Integer, default=0, nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)

    game = db.relationship('GameRecord', back_populates='teams')
    players = db.relationship('PlayerRecord', back_populates='team', order_by='PlayerRecord.seq',
                              cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'abbreviation': self.abbreviation,
            'color': self.color,
            'players': [p.to_dict() for p in self.players],
            'timeouts_remaining': self.timeouts_remaining,
            'team_fouls': self.team_fouls,
            'score': self.score,
        }

    @classmethod
    def from_team(cls, team: Team, game_id: str, role: str) -> 'TeamRecord':
        record = cls(
            id=team.id,
            game_id=game_id,
            role=role,
            name=team.name,
            abbreviation=team.abbreviation,
            color=team.color,
            timeouts_remaining=team.timeouts_remaining,
            team_fouls=team.team_fouls,
            score=team.score,
        )
        record.players = [PlayerRecord.from_player(p, game_id, team.id, seq) for seq, p in enumerate(team.players)]
        return record


class PlayerRecord(db.Model):
    __tablename__ = 'player'
    __table_args__ = (
        db.ForeignKeyConstraint(['game_id', 'team_id'], ['team.game_id', 'team.id']),
    )
    # Player ids are only unique within a team, so game and team are part of the key
    game_id = db.Column(db.String(64), primary_key=True)
    team_id = db.Column(db.String(64), primary_key=True)
    id = db.Column(db.String(64), primary_key=True)
    seq = db.Column(db.Integer, nullable=False, default=0)
    name = db.Column(db.String(128), nullable=False)
    number = db.Column(db.Integer, nullable=False)
    position = db.Column(db.String(32), default='')
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_on_court = db.Column(db.Boolean, default=False, nullable=False)
    fouls = db.Column(db.Integer, default=0, nullable=False)
    stats = db.Column(db.Text, nullable=True)  # JSON-encoded stat counters

    team = db.relationship('TeamRecord', back_populates='players')

    def to_dict(self):
        stats = json.loads(self.stats) if self.stats else {}
        return {
            'id': self.id,
            'name': self.name,
            'number': self.number,
            'position': self.position,
            'is_active': self.is_active,
            'is_on_court': self.is_on_court,
            'fouls': self.fouls,
            'stats': PlayerStats.from_dict(stats).to_dict(),
        }

    @classmethod
    def from_player(cls, player: Player, game_id: str, team_id: str, seq: int) -> 'PlayerRecord':
        return cls(
            game_id=game_id,
            team_id=team_id,
            id=player.id,
            seq=seq,
            name=player.name,
            number=player.number,
            position=player.position,
            is_active=player.is_active,
            is_on_court=player.is_on_court,
            fouls=player.fouls,
            stats=json.dumps(player.stats.to_dict()),
        )


class PlayRecord(db.Model):
    __tablename__ = 'play'
    game_id = db.Column(db.String(64), db.ForeignKey('game.id'), primary_key=True)
    id = db.Column(db.String(64), primary_key=True)
    seq = db.Column(db.Integer, nullable=False, index=True)
    timestamp = db.Column(db.BigInteger, nullable=False)
    period = db.Column(db.Integer, nullable=False)
    game_time = db.Column(db.String(8), nullable=False)
    player_id = db.Column(db.String(64), nullable=True)
    player_name = db.Column(db.String(128), nullable=True)
    team_id = db.Column(db.String(64), nullable=False)
    type = db.Column(db.String(32), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')

    game = db.relationship('GameRecord', back_populates='plays')

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'period': self.period,
            'game_time': self.game_time,
            'player_id': self.player_id,
            'player_name': self.player_name,
            'team_id': self.team_id,
            'type': self.type,
            'description': self.description,
        }

    def to_play(self) -> Play:
        return Play.from_dict(self.to_dict())

    @classmethod
    def from_play(cls, play: Play, game_id: str, seq: int) -> 'PlayRecord':
        return cls(
            game_id=game_id,
            id=play.id,
            seq=seq,
            timestamp=play.timestamp,
            period=play.period,
            game_time=play.game_time,
            player_id=play.player_id,
            player_name=play.player_name,
            team_id=play.team_id,
            type=play.type.value,
            description=play.description,
        )
