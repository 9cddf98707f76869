"""
Authentication Decorators

Contains decorators for HTTP and WebSocket authentication.
"""

from functools import wraps
from typing import Any, Callable, Optional

from flask import current_app, jsonify, request
from flask_socketio import emit

from .game_logger import game_logger
from .helpers import payload_value


def _bearer_token() -> Optional[str]:
    auth_header = request.headers.get('Authorization')
    if not auth_header or not auth_header.startswith('Bearer '):
        return None
    return auth_header.split(' ', 1)[1].strip() or None


def require_auth(f):
    """
    Decorator to require authentication for protected HTTP endpoints.
    The verified user is available as ``request.user``.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from ..services.auth_service import get_auth_service

        auth_service = get_auth_service()
        if not auth_service:
            return jsonify({
                'success': False,
                'error': 'Authentication service unavailable'
            }), 500

        token = _bearer_token()
        if not token:
            return jsonify({
                'success': False,
                'error': 'Authorization token required'
            }), 401

        result = auth_service.verify_token(token)
        if not result['success']:
            return jsonify({
                'success': False,
                'error': result['error']
            }), 401

        request.user = result['user']
        return f(*args, **kwargs)

    return decorated_function


def _claimed_user_id(data: Any) -> Optional[str]:
    return payload_value(data, 'userId')


def socket_event(claim: Callable[[Any], Optional[str]] = _claimed_user_id,
                 reply_errors: bool = False,
                 expects_object: bool = True,
                 room_key: Optional[str] = 'roomId'):
    """
    Decorator for Socket.IO event handlers.

    Resolves the acting user (``user_id`` keyword): the user proven by the
    connection's token when there is one, otherwise the id the payload claims.
    A payload claiming someone other than the authenticated user is dropped.
    Service errors are logged and never propagate to the transport; with
    ``reply_errors`` the sender also gets an ``error`` event. Handlers with
    ``expects_object`` ignore payloads that are not JSON objects, and a
    payload whose ``room_key`` or claimed user id is not a string is ignored
    before it reaches the room service.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(data=None):
            from ..services.errors import RoomServiceError
            from ..websocket.sessions import get_connection_registry

            if expects_object and not isinstance(data, dict):
                game_logger.logger.info(f"Socket {request.sid}: {f.__name__} ignored malformed payload")
                return None

            if room_key and not isinstance(data.get(room_key), str):
                game_logger.logger.info(f"Socket {request.sid}: {f.__name__} ignored payload without a valid {room_key}")
                if reply_errors:
                    emit('error', {'error': 'Room ID is required'})
                return None

            sessions = get_connection_registry()
            authenticated = sessions.authenticated_user(request.sid) if sessions else None
            claimed = claim(data)
            if claimed is not None and not isinstance(claimed, str):
                game_logger.logger.info(f"Socket {request.sid}: {f.__name__} ignored payload with a malformed user id")
                return None

            if authenticated:
                if claimed and claimed != authenticated:
                    game_logger.logger.warning(
                        f"Socket {request.sid}: {f.__name__} for {claimed} rejected, connection belongs to {authenticated}"
                    )
                    return None
                user_id = authenticated
            elif current_app.config.get('SOCKET_AUTH_REQUIRED'):
                emit('error', {'error': 'Authentication required'})
                return None
            else:
                user_id = claimed

            try:
                return f(data, user_id=user_id)
            except RoomServiceError as e:
                game_logger.logger.info(f"Socket {request.sid}: {f.__name__} by {user_id} refused: {e}")
                if reply_errors:
                    emit('error', {'error': str(e)})
                return None

        return decorated_function
    return decorator
