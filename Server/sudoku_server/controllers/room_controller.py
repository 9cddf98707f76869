"""
Room Controller

Handles the request-response side of multiplayer rooms. Every mutating
endpoint broadcasts the committed room to its subscribers through the room
service; the HTTP caller gets the same snapshot back.
"""

from functools import wraps
from typing import Any, Dict

from flask import Blueprint, request
from ..services.errors import ForbiddenError, InvalidRequestError
from ..services.room_service import get_room_service
from ..utils.decorators import require_auth
from .responses import request_body, service_response, service_unavailable

room_bp = Blueprint('rooms', __name__)


def _profile(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'profileColor': data.get('profileColor'),
        'profilePicture': data.get('profilePicture'),
    }


def _acting_for(data: Dict[str, Any], key: str = 'userId') -> str:
    """The authenticated user, who may only act on their own behalf."""
    user_id = request.user['id']
    claimed = data.get(key)
    if claimed and claimed != user_id:
        raise ForbiddenError('You can only act on your own behalf.')
    return user_id


def requires_room_service(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not get_room_service():
            return service_unavailable('Room')
        return f(*args, **kwargs)

    return decorated_function


@room_bp.route('/create', methods=['POST'])
@requires_room_service
@require_auth
def create_room():
    """Create a waiting room hosted by the caller."""
    data = request_body()

    def operation():
        host_id = _acting_for(data, 'hostId')
        room = get_room_service().create_room(
            host_id,
            data.get('difficulty'),
            data.get('puzzle'),
            data.get('solution'),
            data.get('maxPlayers'),
            profile=_profile(data),
        )
        return {'room': room}

    return service_response('create_room', operation, status=201)


@room_bp.route('/join', methods=['POST'])
@requires_room_service
@require_auth
def join_room():
    """Join a waiting room by its 6-digit code."""
    data = request_body()

    def operation():
        user_id = _acting_for(data)
        code = data.get('code')
        if not code:
            raise InvalidRequestError('Room code is required')
        return {'room': get_room_service().join_room(code, user_id, _profile(data))}

    return service_response('join_room', operation)


@room_bp.route('/<room_id>', methods=['GET'])
@requires_room_service
def get_room(room_id):
    """Get a room snapshot."""
    return service_response('get_room', lambda: {'room': get_room_service().get_room(room_id)}, room_id)


@room_bp.route('/<room_id>/leave', methods=['POST'])
@requires_room_service
@require_auth
def leave_room(room_id):
    """Leave a room; the room is deleted with its last player."""
    data = request_body()

    def operation():
        user_id = _acting_for(data)
        room = get_room_service().leave_room(room_id, user_id)
        return {'room': room, 'deleted': room is None}

    return service_response('leave_room', operation, room_id)


@room_bp.route('/<room_id>/kick', methods=['POST'])
@requires_room_service
@require_auth
def kick_player(room_id):
    """Host removes another player."""
    data = request_body()

    def operation():
        target_id = data.get('kickedPlayerId')
        if not target_id:
            raise InvalidRequestError('kickedPlayerId is required')
        room = get_room_service().kick_player(room_id, request.user['id'], target_id)
        return {'room': room, 'deleted': room is None}

    return service_response('kick_player', operation, room_id)


@room_bp.route('/<room_id>/ready', methods=['POST'])
@requires_room_service
@require_auth
def set_ready(room_id):
    """Toggle the caller's ready flag."""
    data = request_body()

    def operation():
        user_id = data.get('userId') or request.user['id']
        room = get_room_service().set_ready(room_id, request.user['id'], user_id, data.get('isReady', True))
        return {'room': room}

    return service_response('set_ready', operation, room_id)


@room_bp.route('/<room_id>/start', methods=['POST'])
@requires_room_service
@require_auth
def start_room(room_id):
    """Host starts the game."""
    return service_response(
        'start_room',
        lambda: {'room': get_room_service().start_room(room_id, request.user['id'])},
        room_id
    )


@room_bp.route('/<room_id>/progress', methods=['POST'])
@requires_room_service
@require_auth
def report_progress(room_id):
    """Report completion percentage and elapsed time; ``finished`` asks for a win check."""
    data = request_body()

    def operation():
        user_id = _acting_for(data)
        room = get_room_service().report_progress_http(
            room_id,
            user_id,
            data.get('progress'),
            data.get('timeElapsed'),
            finished=bool(data.get('finished')),
        )
        return {'room': room}

    return service_response('report_progress', operation, room_id)


@room_bp.route('/<room_id>', methods=['DELETE'])
@requires_room_service
@require_auth
def delete_room(room_id):
    """Host deletes the room."""
    return service_response(
        'delete_room',
        lambda: {'deleted': get_room_service().delete_room(room_id, request.user['id'])},
        room_id
    )
