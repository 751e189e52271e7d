import os
import sys
import pytest

# Ensure the backend root (containing the `colormatch` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from colormatch import create_app, db, socketio
from colormatch.api.rounds import _active_rounds, discard_round


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SCORE_STORE_KEY = 'colormatch.scores'
    ACHIEVEMENT_STORE_KEY = 'colormatch.achievements'


class TickingTestConfig(TestConfig):
    # Run the round ticker inline with no delay between ticks
    ENABLE_SCHEDULER_IN_TESTS = True
    ROUND_TICK_SEC = 0


def _make_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import colormatch.models  # noqa: F401
        db.create_all()
        yield application
        # Rounds are process-wide; drop them without persisting anything
        for round_id in list(_active_rounds):
            discard_round(round_id)
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def flask_app():
    yield from _make_app(TestConfig)


@pytest.fixture()
def ticking_app():
    yield from _make_app(TickingTestConfig)


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
