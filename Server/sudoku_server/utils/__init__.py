"""
Utilities Package

Contains utility functions, decorators, and helper modules.
"""

from .decorators import require_auth, socket_event
from .helpers import generate_id, payload_value, public_user, utc_now_iso
from .game_logger import game_logger
from .locks import KeyedLock

__all__ = [
    'require_auth', 'socket_event', 'game_logger', 'KeyedLock',
    'generate_id', 'payload_value', 'public_user', 'utc_now_iso'
]
