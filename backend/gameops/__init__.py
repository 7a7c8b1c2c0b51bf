from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def _session_factory(flask_app):
    from gameops.services.games.session import GameSession

    cfg = flask_app.config
    clock_enabled = not cfg.get('TESTING') or cfg.get('ENABLE_CLOCK_IN_TESTS', False)

    def on_tick(game):
        socketio.emit(
            'clock_tick',
            {'game_id': game.id, 'game_clock_seconds': game.game_clock_seconds},
            to=f"game:{game.id}",
            namespace='/ws',
        )

    def factory(game):
        return GameSession(
            game,
            on_tick=on_tick,
            clock_enabled=clock_enabled,
            tick_interval=float(cfg.get('CLOCK_TICK_SEC', 1.0)),
            heartbeat=int(cfg.get('CLOCK_HEARTBEAT_TICKS', 0)),
            log=flask_app.logger,
        )

    return factory


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Store and live sessions are per app, never module globals
    from gameops import models  # noqa: F401
    from gameops.storage import build_store
    from gameops.services.games.session import SessionRegistry
    flask_app.extensions['gameops'] = {
        'store': build_store(flask_app, db),
        'sessions': SessionRegistry(_session_factory(flask_app)),
    }

    from gameops.main import main
    flask_app.register_blueprint(main)

    from gameops.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from gameops.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo game."""
        from gameops import models  # noqa: F401
        from gameops.services.games.setup import new_game
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            roster = [
                {'name': f'{first} {last}', 'number': n, 'position': pos}
                for n, (first, last, pos) in enumerate([
                    ('Jordan', 'Smith', 'PG'), ('Casey', 'Lee', 'SG'), ('Riley', 'Diaz', 'SF'),
                    ('Avery', 'Khan', 'PF'), ('Morgan', 'Ortiz', 'C'), ('Quinn', 'Park', 'G'),
                ], start=3)
            ]
            game = new_game(
                'basketball', 'high_school',
                home={'name': 'Central Hawks', 'abbreviation': 'CHS', 'players': roster},
                away={'name': 'Westfield Wolves', 'abbreviation': 'WFD', 'players': roster},
            )
            flask_app.extensions['gameops']['store'].create_game(game)
            print(f'Database has been reset and seeded with game {game.id}!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app


def get_store():
    from flask import current_app
    return current_app.extensions['gameops']['store']


def get_sessions():
    from flask import current_app
    return current_app.extensions['gameops']['sessions']
