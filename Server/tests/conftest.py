import sys
from pathlib import Path

import pytest

# Ensure the server package is importable when tests run from the repo root
SERVER_ROOT = Path(__file__).resolve().parents[1]
if str(SERVER_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVER_ROOT))

from sudoku_server import create_app
from sudoku_server.config import TestingConfig
from sudoku_server.services.room_registry import RoomRegistry
from sudoku_server.services.room_service import RoomService
from sudoku_server.store.json_store import JsonStore
from sudoku_server.utils.helpers import utc_now_iso

SOLUTION = [
    [1, 2, 3, 4],
    [3, 4, 1, 2],
    [2, 1, 4, 3],
    [4, 3, 2, 1],
]

PUZZLE = [
    [1, None, 3, None],
    [None, 4, None, 2],
    [2, None, 4, None],
    [None, 3, None, 1],
]


def blank_cells(puzzle=PUZZLE):
    return [
        (row, col)
        for row, values in enumerate(puzzle)
        for col, value in enumerate(values)
        if value is None
    ]


class RecordingChannel:
    """Collects every push the room service makes."""

    def __init__(self):
        self.events = []
        self.connected = set()

    def room_update(self, room):
        self.events.append(('room:update', room['id'], room))

    def game_start(self, room):
        self.events.append(('game:start', room['id'], room))

    def game_progress(self, room_id, players):
        self.events.append(('game:progress', room_id, {'players': players}))

    def rematch_created(self, sid, new_room_id):
        self.events.append(('rematch:created', sid, {'newRoomId': new_room_id}))

    def you_were_kicked(self, user_id, room_id):
        self.events.append(('room:you_were_kicked', user_id, {'roomId': room_id}))
        return user_id in self.connected

    def named(self, event):
        return [payload for name, _, payload in self.events if name == event]


def add_user(store, user_id, username=None, **fields):
    with store.transaction() as data:
        user = {
            'id': user_id,
            'username': username or user_id,
            'password': 'x',
            'createdAt': utc_now_iso(),
            'xp': 0,
            'level': 1,
            'solvedPuzzles': 0,
            'profileColor': '#123456',
            'profilePicture': None,
            **fields,
        }
        data['users'].append(user)
    return user


@pytest.fixture
def store(tmp_path):
    json_store = JsonStore(str(tmp_path / 'db.json'))
    yield json_store
    json_store.close()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def rooms(store, channel):
    for user_id in ('host', 'p2', 'p3', 'p4'):
        add_user(store, user_id)
    return RoomService(store, RoomRegistry(), channel)


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        DB_PATH = str(tmp_path / 'db.json')

    flask_app, socketio = create_app(Config)
    yield flask_app
    flask_app.extensions['json_store'].close()


@pytest.fixture
def socketio(app):
    return app.socketio


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    """Register a user through the API; returns (user, auth headers)."""
    def _register(username, password='secret123'):
        response = client.post('/api/auth/register', json={'username': username, 'password': password})
        assert response.status_code == 201, response.get_json()
        body = response.get_json()
        return body['user'], {'Authorization': f"Bearer {body['token']}"}

    return _register
