"""
Room Channel

Server-initiated pushes for room topics. Every emit is fire-and-forget: a
failed broadcast is logged and never reaches the code that committed the
mutation.
"""

from typing import Any, Dict, List, Optional

from ..utils.game_logger import game_logger
from .sessions import ConnectionRegistry

ROOM_UPDATE = 'room:update'
GAME_START = 'game:start'
GAME_PROGRESS = 'game:progress'
REMATCH_CREATED = 'rematch:created'
YOU_WERE_KICKED = 'room:you_were_kicked'


class RoomChannel:
    """Publishes room snapshots and deltas through Flask-SocketIO."""

    def __init__(self, socketio, sessions: ConnectionRegistry):
        self.socketio = socketio
        self.sessions = sessions

    def room_update(self, room: Dict[str, Any]) -> None:
        """Full snapshot to every subscriber of the room."""
        self._emit(ROOM_UPDATE, room, room['id'])

    def game_start(self, room: Dict[str, Any]) -> None:
        self._emit(GAME_START, room, room['id'])

    def game_progress(self, room_id: str, players: List[Dict[str, Any]]) -> None:
        """Players-only delta, cheaper than a snapshot."""
        self._emit(GAME_PROGRESS, {'players': players}, room_id)

    def rematch_created(self, sid: str, new_room_id: str) -> None:
        self._emit(REMATCH_CREATED, {'newRoomId': new_room_id}, sid)

    def you_were_kicked(self, user_id: str, room_id: str) -> bool:
        """
        Tell exactly the kicked user's connection, if one is mapped.

        Returns:
            bool: True when a connection was found and the event sent
        """
        sid = self.sessions.sid_for(user_id)
        if not sid:
            return False
        return self._emit(YOU_WERE_KICKED, {'roomId': room_id}, sid)

    def _emit(self, event: str, payload: Any, to: Optional[str]) -> bool:
        try:
            self.socketio.emit(event, payload, to=to)
            return True
        except Exception as e:
            game_logger.logger.error(f"Failed to emit '{event}' to {to}: {e}")
            return False
