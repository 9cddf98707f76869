"""
Challenge Service

A user challenges another to a head-to-head game. Accepting creates a
two-player waiting room hosted by the challenger with both players seated.
"""

import copy
from typing import Any, Dict, List, Optional

from ..models.grid import clone_grid, is_valid_grid, same_shape
from ..models.room import Difficulty
from ..store.json_store import JsonStore
from ..utils.game_logger import game_logger
from ..utils.helpers import generate_id, utc_now_iso
from ..utils.locks import KeyedLock
from .errors import ForbiddenError, InvalidRequestError, NotFoundError, RoomServiceError
from .notification_service import NotificationService
from .room_service import RoomService

CHALLENGE_ROOM_SIZE = 2


class ChallengeService:
    """Pending challenges and their conversion into rooms."""

    def __init__(self, store: JsonStore, rooms: RoomService, notifications: NotificationService):
        self.store = store
        self.rooms = rooms
        self.notifications = notifications
        self._locks = KeyedLock()

    def create_challenge(self,
                         from_user_id: str,
                         to_user_id: str,
                         difficulty: Any,
                         puzzle: Any,
                         solution: Any) -> Dict[str, Any]:
        """
        Store a pending challenge and notify its target.

        Raises:
            InvalidRequestError: Bad difficulty or grids, or a self-challenge
            NotFoundError: Either user is unknown
        """
        level = Difficulty.parse(difficulty)
        if level is None:
            raise InvalidRequestError(f"Unknown difficulty '{difficulty}'")
        if not is_valid_grid(puzzle) or not is_valid_grid(solution) or not same_shape(puzzle, solution):
            raise InvalidRequestError('Puzzle and solution must be square grids of the same size')
        if from_user_id == to_user_id:
            raise InvalidRequestError('You cannot challenge yourself')

        with self.store.transaction() as data:
            users = {user['id']: user for user in data['users']}
            if to_user_id not in users:
                raise NotFoundError('User to challenge not found')
            if from_user_id not in users:
                raise NotFoundError('User not found')

            challenge = {
                'id': generate_id('chal'),
                'fromUserId': from_user_id,
                'toUserId': to_user_id,
                'fromUsername': users[from_user_id]['username'],
                'difficulty': level.value,
                'puzzle': clone_grid(puzzle),
                'solution': clone_grid(solution),
                'status': 'pending',
                'createdAt': utc_now_iso(),
            }
            data['challenges'].append(challenge)
            self.notifications.add(
                data, to_user_id, 'challenge',
                f"{challenge['fromUsername']} challenged you to a {level.value} game!",
                related_id=challenge['id'],
            )
            snapshot = copy.deepcopy(challenge)

        game_logger.log_game_event(None, 'challenge_sent', from_user_id, to=to_user_id, difficulty=level.value)
        return snapshot

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        with self.store.snapshot() as data:
            return [
                copy.deepcopy(c) for c in data['challenges']
                if user_id in (c.get('fromUserId'), c.get('toUserId'))
            ]

    def accept(self, challenge_id: str, user_id: str) -> Dict[str, Any]:
        """
        Turn the challenge into a room and clear it.

        Returns:
            The new room with challenger (host) and target seated

        Raises:
            NotFoundError: Unknown challenge
            ForbiddenError: Only the challenged user may accept
            RoomServiceError: The room could not seat the target; it is removed
                and the challenge stays pending
        """
        with self._locks.hold(challenge_id):
            challenge = self._pending(challenge_id, user_id)
            room = self.rooms.create_room(
                challenge['fromUserId'],
                challenge['difficulty'],
                challenge['puzzle'],
                challenge['solution'],
                max_players=CHALLENGE_ROOM_SIZE,
            )
            try:
                room = self.rooms.join_room_by_id(room['id'], user_id)
            except RoomServiceError:
                self.rooms.delete_room(room['id'], challenge['fromUserId'])
                raise
            self._discard(challenge_id)

        game_logger.log_game_event(room['id'], 'challenge_accepted', user_id, challenge_id=challenge_id)
        return room

    def decline(self, challenge_id: str, user_id: str) -> None:
        """
        Raises:
            NotFoundError: Unknown challenge
            ForbiddenError: Only the challenged user may decline
        """
        with self._locks.hold(challenge_id):
            self._pending(challenge_id, user_id)
            self._discard(challenge_id)
        game_logger.log_game_event(None, 'challenge_declined', user_id, challenge_id=challenge_id)

    def _pending(self, challenge_id: str, user_id: str) -> Dict[str, Any]:
        with self.store.snapshot() as data:
            for challenge in data['challenges']:
                if challenge.get('id') == challenge_id:
                    if challenge.get('toUserId') != user_id:
                        raise ForbiddenError('Only the challenged user can answer this challenge.')
                    return copy.deepcopy(challenge)
        raise NotFoundError('Challenge not found')

    def _discard(self, challenge_id: str) -> None:
        with self.store.transaction() as data:
            data['challenges'][:] = [c for c in data['challenges'] if c.get('id') != challenge_id]
            self.notifications.remove_related(data, challenge_id)


# Global service instance
_challenge_service = None


def get_challenge_service() -> Optional[ChallengeService]:
    """Get the global challenge service instance."""
    return _challenge_service


def initialize_challenge_service(store: JsonStore, rooms: RoomService,
                                 notifications: NotificationService) -> ChallengeService:
    """Initialize the global challenge service instance."""
    global _challenge_service
    _challenge_service = ChallengeService(store, rooms, notifications)
    return _challenge_service
