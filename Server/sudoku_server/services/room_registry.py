"""
Room Registry

CRUD over room records inside a loaded store document. Every method takes the
document returned by ``JsonStore.read()``; callers own the transaction.
"""

import random
from typing import Any, Dict, List, Optional

from ..config.game_settings import ROOM_CODE_ATTEMPTS, ROOM_CODE_MAX, ROOM_CODE_MIN
from ..models.grid import Grid, clone_grid
from ..models.room import Player, Room, RoomStatus, seat_player
from ..utils.helpers import generate_id, utc_now_iso
from .errors import HostNotFoundError, NotFoundError


class RoomRegistry:
    """Create, look up and delete rooms."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def generate_code(self, data: Dict[str, Any]) -> str:
        """
        A 6-digit code not used by any room that has not finished yet.

        Raises:
            RuntimeError: If no free code was found after ROOM_CODE_ATTEMPTS tries
        """
        taken = {
            room['code'] for room in data['rooms']
            if room.get('status') != RoomStatus.FINISHED.value
        }
        for _ in range(ROOM_CODE_ATTEMPTS):
            code = str(self._rng.randint(ROOM_CODE_MIN, ROOM_CODE_MAX))
            if code not in taken:
                return code
        raise RuntimeError("Could not allocate a free room code")

    def create(self,
               data: Dict[str, Any],
               host_id: str,
               difficulty: str,
               puzzle: Grid,
               solution: Grid,
               max_players: int,
               initial_puzzle: Optional[Grid] = None,
               rematch_of: Optional[str] = None,
               host_profile: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Add a waiting room with the host as its only (ready) player.

        Args:
            data: Loaded store document
            host_id: User id of the host
            difficulty: Difficulty label
            puzzle: Starting grid
            solution: Full answer grid
            max_players: Capacity bound
            initial_puzzle: Starting clues when they differ from ``puzzle``
            rematch_of: Id of the room this one is a rematch of
            host_profile: Profile fields overriding the stored user's

        Returns:
            The stored room record

        Raises:
            HostNotFoundError: If ``host_id`` is not a known user
        """
        host = self.find_user(data, host_id)
        if host is None:
            raise HostNotFoundError()

        now = utc_now_iso()
        room = Room(
            id=generate_id('room'),
            code=self.generate_code(data),
            hostId=host_id,
            difficulty=difficulty,
            puzzle=clone_grid(puzzle),
            initialPuzzle=clone_grid(initial_puzzle if initial_puzzle is not None else puzzle),
            solution=clone_grid(solution),
            maxPlayers=max_players,
            createdAt=now,
            updatedAt=now,
            rematchOf=rematch_of,
        )
        profile = host_profile or {}
        record = room.to_dict()
        seat_player(record, Player.from_user(
            host,
            isReady=True,
            profileColor=profile.get('profileColor'),
            profilePicture=profile.get('profilePicture'),
        ))
        data['rooms'].append(record)
        return record

    def find_by_code(self, data: Dict[str, Any], code: Any) -> Optional[Dict[str, Any]]:
        """The joinable (waiting) room with this code, if any."""
        code = str(code).strip() if code is not None else ''
        for room in data['rooms']:
            if room.get('code') == code and room.get('status') == RoomStatus.WAITING.value:
                return room
        return None

    def find_by_id(self, data: Dict[str, Any], room_id: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: If no room has this id
        """
        for room in data['rooms']:
            if room.get('id') == room_id:
                return room
        raise NotFoundError('Room not found')

    def get(self, data: Dict[str, Any], room_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.find_by_id(data, room_id)
        except NotFoundError:
            return None

    def delete(self, data: Dict[str, Any], room_id: str) -> bool:
        before = len(data['rooms'])
        data['rooms'][:] = [room for room in data['rooms'] if room.get('id') != room_id]
        return len(data['rooms']) != before

    def delete_if_empty(self, data: Dict[str, Any], room: Dict[str, Any]) -> bool:
        """Remove the room once its last player is gone."""
        if room['players']:
            return False
        return self.delete(data, room['id'])

    @staticmethod
    def find_user(data: Dict[str, Any], user_id: str) -> Optional[Dict[str, Any]]:
        for user in data['users']:
            if user.get('id') == user_id:
                return user
        return None

    @staticmethod
    def rooms_for_user(data: Dict[str, Any], user_id: str) -> List[Dict[str, Any]]:
        return [
            room for room in data['rooms']
            if any(player['userId'] == user_id for player in room['players'])
        ]
