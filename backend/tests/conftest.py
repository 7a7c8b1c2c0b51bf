import os
import sys
import pytest

# Ensure the backend root (containing the `gameops` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gameops import create_app, db, socketio
from gameops.services.games.setup import new_game


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    GAME_STORE = 'sql'
    MAX_ON_COURT = 5
    FOUL_OUT_LIMIT = 5
    MAX_OVERTIME_PERIODS = 3


class MemoryTestConfig(TestConfig):
    GAME_STORE = 'memory'


def roster(prefix, count=6):
    return [
        {'name': f'{prefix} Player{i}', 'number': i, 'position': 'G' if i % 2 else 'F'}
        for i in range(1, count + 1)
    ]


def setup_payload(rules='high_school', sport='basketball', **extra):
    payload = {
        'sport': sport,
        'rules': rules,
        'home_team': {'name': 'Central Hawks', 'abbreviation': 'CHS', 'players': roster('Home')},
        'away_team': {'name': 'Westfield Wolves', 'abbreviation': 'WFD', 'players': roster('Away')},
    }
    payload.update(extra)
    return payload


@pytest.fixture()
def make_payload():
    return setup_payload


@pytest.fixture()
def game():
    data = setup_payload()
    return new_game(data['sport'], data['rules'], home=data['home_team'], away=data['away_team'])


@pytest.fixture()
def pro_game():
    data = setup_payload(rules='pro')
    return new_game(data['sport'], data['rules'], home=data['home_team'], away=data['away_team'])


@pytest.fixture(params=[TestConfig, MemoryTestConfig], ids=['sql', 'memory'])
def flask_app(request):
    application = create_app(request.param)
    with application.app_context():
        # Ensure models are imported so tables are created
        import gameops.models  # noqa: F401
        db.create_all()
        yield application
        application.extensions['gameops']['sessions'].close_all()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def store(flask_app):
    return flask_app.extensions['gameops']['store']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
