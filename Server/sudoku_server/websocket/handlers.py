"""
WebSocket Event Handlers

Handles all Socket.IO events of the real-time room channel.

Client -> server:
    user:connected, room:join, game:move, game:progress_update,
    game:validate_win, room:play_again
Server -> client (see channel.py):
    room:update, game:start, game:progress, rematch:created,
    room:you_were_kicked
"""

from typing import Any, Optional

from flask import request
from flask_socketio import emit, join_room

from ..services.auth_service import get_auth_service
from ..services.room_service import get_room_service
from ..utils.decorators import socket_event
from ..utils.game_logger import game_logger
from ..utils.helpers import payload_value
from .sessions import get_connection_registry


def _rematch_user_id(data: Any) -> Optional[str]:
    user = data.get('user') if isinstance(data, dict) else None
    return user.get('id') if isinstance(user, dict) else None


def register_websocket_handlers(socketio):
    """Register all WebSocket event handlers."""

    @socketio.on('connect')
    def handle_connect(auth=None):
        """Connections may present a token; an authenticated one is mapped at once."""
        token = payload_value(auth, 'token') if isinstance(auth, dict) else None
        if not token:
            return None

        auth_service = get_auth_service()
        result = auth_service.verify_token(token) if auth_service else {'success': False}
        if not result['success']:
            game_logger.logger.info(f"Socket {request.sid}: rejected token on connect")
            return False

        get_connection_registry().register(result['user']['id'], request.sid, authenticated=True)
        return None

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        """Only the session map is pruned; room membership is untouched."""
        user_id = get_connection_registry().unregister_sid(request.sid)
        if user_id:
            game_logger.logger.info(f"User {user_id} disconnected")

    @socketio.on('user:connected')
    @socket_event(expects_object=False, room_key=None)
    def handle_user_connected(data, user_id=None):
        if not user_id:
            return
        get_connection_registry().register(user_id, request.sid)
        game_logger.logger.info(f"User {user_id} connected with socket {request.sid}")

    @socketio.on('room:join')
    def handle_room_join(data):
        """Subscribe this connection to a room topic. Listening is not joining the game."""
        room_id = payload_value(data, 'roomId')
        if not room_id or not isinstance(room_id, str):
            emit('error', {'error': 'Room ID is required'})
            return
        join_room(room_id)
        game_logger.logger.info(f"Socket {request.sid} joined room {room_id}")

    @socketio.on('game:move')
    @socket_event()
    def handle_move(data, user_id=None):
        """Per-cell write; no acknowledgement."""
        get_room_service().apply_move(
            data.get('roomId'), user_id, data.get('row'), data.get('col'), data.get('value')
        )

    @socketio.on('game:progress_update')
    @socket_event()
    def handle_progress_update(data, user_id=None):
        get_room_service().report_progress(data.get('roomId'), user_id, data.get('progress'))

    @socketio.on('game:validate_win')
    @socket_event()
    def handle_validate_win(data, user_id=None):
        """An incorrect grid is ignored without telling the client why."""
        get_room_service().validate_win(data.get('roomId'), user_id, data.get('time'))

    @socketio.on('room:play_again')
    @socket_event(claim=_rematch_user_id, reply_errors=True, room_key='oldRoomId')
    def handle_play_again(data, user_id=None):
        user = dict(data['user']) if isinstance(data.get('user'), dict) else {}
        user['id'] = user_id
        new_room_id = get_room_service().request_rematch(data.get('oldRoomId'), user)
        get_room_service().channel.rematch_created(request.sid, new_room_id)
