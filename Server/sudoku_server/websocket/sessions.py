"""
Connection Registry

Ephemeral user id -> Socket.IO sid mapping. Filled when a client announces
itself, pruned when the connection drops. Never persisted.
"""

import threading
from typing import Dict, Optional


class ConnectionRegistry:
    """Tracks the latest connection of every user."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sid_by_user: Dict[str, str] = {}
        self._user_by_sid: Dict[str, str] = {}
        self._authenticated: Dict[str, str] = {}

    def register(self, user_id: str, sid: str, authenticated: bool = False) -> None:
        """Map the user to this connection, replacing any older one."""
        with self._lock:
            previous_sid = self._sid_by_user.get(user_id)
            if previous_sid and previous_sid != sid:
                self._user_by_sid.pop(previous_sid, None)
                self._authenticated.pop(previous_sid, None)
            previous_user = self._user_by_sid.get(sid)
            if previous_user and previous_user != user_id:
                self._sid_by_user.pop(previous_user, None)
            self._sid_by_user[user_id] = sid
            self._user_by_sid[sid] = user_id
            if authenticated:
                self._authenticated[sid] = user_id

    def unregister_sid(self, sid: str) -> Optional[str]:
        """Drop the mapping of a closed connection; returns its user id."""
        with self._lock:
            self._authenticated.pop(sid, None)
            user_id = self._user_by_sid.pop(sid, None)
            if user_id is not None and self._sid_by_user.get(user_id) == sid:
                del self._sid_by_user[user_id]
            return user_id

    def sid_for(self, user_id: str) -> Optional[str]:
        with self._lock:
            return self._sid_by_user.get(user_id)

    def user_for(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._user_by_sid.get(sid)

    def authenticated_user(self, sid: str) -> Optional[str]:
        """User id proven by a token on connect, if any."""
        with self._lock:
            return self._authenticated.get(sid)

    def count(self) -> int:
        with self._lock:
            return len(self._sid_by_user)


# Global registry instance
_connection_registry = None


def get_connection_registry() -> Optional[ConnectionRegistry]:
    """Get the global connection registry."""
    return _connection_registry


def initialize_connection_registry() -> ConnectionRegistry:
    """Initialize the global connection registry."""
    global _connection_registry
    _connection_registry = ConnectionRegistry()
    return _connection_registry
