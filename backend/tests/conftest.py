import os
import sys
import random
import pytest

# Ensure the backend root (containing the `ssm` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from ssm import create_app, socketio
from ssm.services.games import (
    GameEngine, ImagePool, PhaseTimings, SessionOrchestrator, SessionRegistry,
)
from ssm.services.games.scheduler import TimerHandle

IMAGES = ['/images/alpha.jpg', '/images/bravo.png', '/images/charlie.webp']


class ManualScheduler:
    """Scheduler driven by an explicit clock so timers are deterministic."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._queue = []

    def call_later(self, delay, callback):
        handle = TimerHandle(delay)
        self._seq += 1
        self._queue.append((self.now + delay, self._seq, handle, callback))
        return handle

    def pending(self):
        return [entry[2] for entry in self._queue if not entry[2].cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [entry for entry in self._queue if entry[0] <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self._queue.remove(entry)
            self.now = entry[0]
            if not entry[2].cancelled:
                entry[3]()
        self.now = target


class RecordingBroadcaster:
    def __init__(self):
        self.events = []
        self.closed = []

    def emit(self, code, event, payload=None):
        self.events.append((code, event, payload))

    def close(self, code):
        self.closed.append(code)

    def names(self):
        return [event for _, event, _ in self.events]

    def payloads(self, event):
        return [payload for _, name, payload in self.events if name == event]

    def clear(self):
        self.events.clear()


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def registry():
    return SessionRegistry()


@pytest.fixture()
def pool(tmp_path):
    image_pool = ImagePool(str(tmp_path / 'unused'), rng=random.Random(7))
    image_pool.set_images(IMAGES)
    return image_pool


@pytest.fixture()
def engine(registry, pool, scheduler, broadcaster):
    return GameEngine(registry, pool, scheduler, broadcaster, timings=PhaseTimings())


@pytest.fixture()
def sessions(registry, pool, engine, broadcaster, scheduler):
    return SessionOrchestrator(
        registry, pool, engine, broadcaster,
        min_players=2, grace_period=300, clock=lambda: scheduler.now,
    )


@pytest.fixture()
def lobby(sessions):
    """A lobby hosted by p1 with p2 seated."""
    created = sessions.create_lobby('p1')
    sessions.join_lobby(created.code, 'p2')
    return created


@pytest.fixture()
def images_dir(tmp_path):
    directory = tmp_path / 'images'
    directory.mkdir()
    for name in ('alpha.jpg', 'bravo.png', 'charlie.webp'):
        (directory / name).write_bytes(b'not really an image')
    return directory


@pytest.fixture()
def flask_app(images_dir, scheduler):
    config_class = type('ImagesConfig', (TestConfig,), {'IMAGES_DIR': str(images_dir)})
    application = create_app(config_class, scheduler=scheduler)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield connect
    for test_client in clients:
        try:
            test_client.disconnect(namespace='/ws')
        except Exception:
            pass
