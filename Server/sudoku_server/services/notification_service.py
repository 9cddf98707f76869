"""
Notification Service

Stored per-user notifications (currently only challenge invitations).
"""

from typing import Any, Dict, List, Optional

from ..store.json_store import JsonStore
from ..utils.helpers import generate_id, utc_now_iso
from .errors import ForbiddenError, NotFoundError


class NotificationService:
    """Create, list and acknowledge notifications."""

    def __init__(self, store: JsonStore):
        self.store = store

    @staticmethod
    def add(data: Dict[str, Any], user_id: str, kind: str, message: str,
            related_id: Optional[str] = None) -> Dict[str, Any]:
        """Append a notification inside the caller's transaction."""
        notification = {
            'id': generate_id('notif'),
            'userId': user_id,
            'type': kind,
            'message': message,
            'relatedId': related_id,
            'read': False,
            'createdAt': utc_now_iso(),
        }
        data['notifications'].append(notification)
        return notification

    @staticmethod
    def remove_related(data: Dict[str, Any], related_id: str) -> int:
        before = len(data['notifications'])
        data['notifications'][:] = [n for n in data['notifications'] if n.get('relatedId') != related_id]
        return before - len(data['notifications'])

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        with self.store.snapshot() as data:
            return [dict(n) for n in data['notifications'] if n.get('userId') == user_id]

    def mark_read(self, notification_id: str, user_id: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: Unknown notification
            ForbiddenError: The notification belongs to someone else
        """
        with self.store.transaction() as data:
            for notification in data['notifications']:
                if notification.get('id') == notification_id:
                    if notification.get('userId') != user_id:
                        raise ForbiddenError()
                    notification['read'] = True
                    return dict(notification)
            raise NotFoundError('Notification not found')

    def mark_all_read(self, user_id: str) -> int:
        with self.store.transaction() as data:
            changed = 0
            for notification in data['notifications']:
                if notification.get('userId') == user_id and not notification.get('read'):
                    notification['read'] = True
                    changed += 1
            return changed


# Global service instance
_notification_service = None


def get_notification_service() -> Optional[NotificationService]:
    """Get the global notification service instance."""
    return _notification_service


def initialize_notification_service(store: JsonStore) -> NotificationService:
    """Initialize the global notification service instance."""
    global _notification_service
    _notification_service = NotificationService(store)
    return _notification_service
