"""
Services Package

Contains all business logic and service classes.
"""

from .auth_service import AuthService, get_auth_service
from .challenge_service import ChallengeService, get_challenge_service
from .notification_service import NotificationService, get_notification_service
from .room_registry import RoomRegistry
from .room_service import RoomService, get_room_service

__all__ = [
    'AuthService', 'get_auth_service',
    'ChallengeService', 'get_challenge_service',
    'NotificationService', 'get_notification_service',
    'RoomRegistry',
    'RoomService', 'get_room_service'
]
