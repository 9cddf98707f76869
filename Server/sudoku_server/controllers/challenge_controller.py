"""
Challenge Controller

Head-to-head invitations. Accepting one creates a two-player room.
"""

from flask import Blueprint, request
from ..services.challenge_service import get_challenge_service
from ..services.errors import InvalidRequestError
from ..utils.decorators import require_auth
from .responses import request_body, service_response

challenge_bp = Blueprint('challenges', __name__)


@challenge_bp.route('', methods=['POST'])
@require_auth
def create_challenge():
    """Challenge another user with a given puzzle."""
    data = request_body()

    def operation():
        to_user_id = data.get('toUserId')
        if not to_user_id:
            raise InvalidRequestError('toUserId is required')
        challenge = get_challenge_service().create_challenge(
            request.user['id'],
            to_user_id,
            data.get('difficulty'),
            data.get('puzzle'),
            data.get('solution'),
        )
        return {'challenge': challenge}

    return service_response('create_challenge', operation, status=201)


@challenge_bp.route('/<challenge_id>/accept', methods=['POST'])
@require_auth
def accept_challenge(challenge_id):
    """The challenged user accepts; both players are seated in a new room."""
    def operation():
        room = get_challenge_service().accept(challenge_id, request.user['id'])
        return {'room': room}

    return service_response('accept_challenge', operation)


@challenge_bp.route('/<challenge_id>/decline', methods=['POST'])
@require_auth
def decline_challenge(challenge_id):
    def operation():
        get_challenge_service().decline(challenge_id, request.user['id'])
        return {'message': 'Challenge declined'}

    return service_response('decline_challenge', operation)
