"""
Notification Controller
"""

from flask import Blueprint, request
from ..services.errors import ForbiddenError
from ..services.notification_service import get_notification_service
from ..utils.decorators import require_auth
from .responses import service_response

notification_bp = Blueprint('notifications', __name__)


@notification_bp.route('/<user_id>', methods=['GET'])
@require_auth
def list_notifications(user_id):
    def operation():
        if request.user['id'] != user_id:
            raise ForbiddenError('You can only read your own notifications.')
        return {'notifications': get_notification_service().list_for_user(user_id)}

    return service_response('list_notifications', operation)


@notification_bp.route('/<notification_id>/read', methods=['POST'])
@require_auth
def mark_read(notification_id):
    def operation():
        notification = get_notification_service().mark_read(notification_id, request.user['id'])
        return {'notification': notification}

    return service_response('mark_notification_read', operation)


@notification_bp.route('/<user_id>/read-all', methods=['POST'])
@require_auth
def mark_all_read(user_id):
    def operation():
        if request.user['id'] != user_id:
            raise ForbiddenError('You can only update your own notifications.')
        return {'updated': get_notification_service().mark_all_read(user_id)}

    return service_response('mark_all_notifications_read', operation)
