import os
import random
import sys
import pytest

# Ensure the backend root (containing the `bomb_party` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bomb_party import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:3000']
    LOG_LEVEL = 'DEBUG'
    MIN_PLAYERS = 2
    ROOM_CODE_LENGTH = 6
    BOMB_HP_MIN = 50
    BOMB_HP_MAX = 150
    RANDOM_SEED = 1234


class ScriptedRandom(random.Random):
    """Random source whose randint() replays scripted values before
    falling back to the seeded generator."""

    def __init__(self):
        super().__init__(0)
        self.values = []

    def script(self, *values):
        self.values.extend(values)
        return self

    def randint(self, a, b):
        if self.values:
            value = self.values.pop(0)
            assert a <= value <= b, f"scripted {value} outside [{a}, {b}]"
            return value
        return super().randint(a, b)


@pytest.fixture()
def scripted_rng():
    """Factory: scripted_rng(3, 4) -> ScriptedRandom replaying 3 then 4."""
    return lambda *values: ScriptedRandom().script(*values)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['room_registry']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients; all are disconnected on teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        test_client.get_received()  # drop the 'connected' greeting
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass


@pytest.fixture()
def sio_client(connect):
    return connect()
