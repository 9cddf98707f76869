"""
User Controller

Public profiles, self-service profile edits and per-user listings.
"""

from flask import Blueprint, request
from ..services.auth_service import get_auth_service
from ..services.challenge_service import get_challenge_service
from ..services.errors import ForbiddenError, NotFoundError
from ..services.room_service import get_room_service
from ..utils.decorators import require_auth
from .responses import request_body, service_response

user_bp = Blueprint('users', __name__)


def _require_self(user_id: str) -> None:
    if request.user['id'] != user_id:
        raise ForbiddenError('You can only access your own account.')


@user_bp.route('/<user_id>', methods=['GET'])
def get_user(user_id):
    """Public profile, never including the password hash."""
    def operation():
        user = get_auth_service().get_user_by_id(user_id)
        if not user:
            raise NotFoundError('User not found')
        return {'user': user}

    return service_response('get_user', operation)


@user_bp.route('/<user_id>', methods=['PUT'])
@require_auth
def update_user(user_id):
    """Edit the caller's own profile color, picture or email."""
    data = request_body()

    def operation():
        _require_self(user_id)
        user = get_auth_service().update_profile(user_id, data)
        if not user:
            raise NotFoundError('User not found')
        return {'user': user}

    return service_response('update_user', operation)


@user_bp.route('/<user_id>/challenges', methods=['GET'])
@require_auth
def list_challenges(user_id):
    """Challenges the caller sent or received."""
    def operation():
        _require_self(user_id)
        return {'challenges': get_challenge_service().list_for_user(user_id)}

    return service_response('list_challenges', operation)


@user_bp.route('/<user_id>/rooms', methods=['GET'])
@require_auth
def list_rooms(user_id):
    """Rooms the caller is currently seated in."""
    def operation():
        _require_self(user_id)
        return {'rooms': get_room_service().rooms_for_user(user_id)}

    return service_response('list_rooms', operation)
