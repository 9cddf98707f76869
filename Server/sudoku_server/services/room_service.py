"""
Room Service

Server-authoritative state machine for multiplayer rooms:

    waiting -> active -> finished

Every mutation runs inside a per-room exclusive section covering the store's
read -> mutate -> write sequence and the broadcast that follows it, so
subscribers see ``room:update`` snapshots in commit order while unrelated
rooms proceed in parallel.
"""

import copy
import datetime
import threading
from typing import Any, Dict, List, Optional

from ..config.game_settings import base_xp, level_for_xp, xp_for_placement
from ..models.grid import cell_value, in_bounds, is_valid_grid, matches_solution, same_shape
from ..models.room import (
    REMOVABLE_STATUSES, Difficulty, Player, RoomStatus,
    assign_placements, find_player, seat_player, unseat_player
)
from ..store.json_store import JsonStore
from ..utils.game_logger import game_logger
from ..utils.helpers import parse_iso, utc_now, utc_now_iso
from ..utils.locks import KeyedLock
from ..websocket.channel import RoomChannel
from .errors import (
    ForbiddenError, InvalidRequestError, InvalidStateError, NotFoundError,
    PlayerNotFoundError, RoomFullError, RoomNotJoinableError
)
from .progress import ProgressPolicy, trust_reported_progress
from .room_registry import RoomRegistry

WAITING = RoomStatus.WAITING.value
ACTIVE = RoomStatus.ACTIVE.value
FINISHED = RoomStatus.FINISHED.value


def _as_number(value: Any, default: float = 0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number < 0:
        return default
    return int(number) if number.is_integer() else number


class RoomService:
    """
    Room lifecycle: join, ready, start, moves, progress, win validation,
    placements, leave/kick with host reassignment and rematch chaining.
    """

    def __init__(self,
                 store: JsonStore,
                 registry: RoomRegistry,
                 channel: RoomChannel,
                 progress_policy: ProgressPolicy = trust_reported_progress,
                 min_players_to_start: int = 1,
                 default_max_players: int = 4,
                 max_players_limit: int = 50,
                 room_ttl_seconds: int = 6 * 60 * 60):
        self.store = store
        self.registry = registry
        self.channel = channel
        self.progress_policy = progress_policy
        self.min_players_to_start = max(1, min_players_to_start)
        self.default_max_players = default_max_players
        self.max_players_limit = max_players_limit
        self.room_ttl_seconds = room_ttl_seconds

        self._room_locks = KeyedLock()
        # old room id -> rematch room id
        self.rematches: Dict[str, str] = {}
        self._rematch_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registry operations
    # ------------------------------------------------------------------

    def create_room(self,
                    host_id: str,
                    difficulty: Any,
                    puzzle: Any,
                    solution: Any,
                    max_players: Any = None,
                    profile: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Create a waiting room hosted by ``host_id``.

        Raises:
            InvalidRequestError: Bad difficulty, grids or capacity
            HostNotFoundError: Unknown host
        """
        level = Difficulty.parse(difficulty)
        if level is None:
            raise InvalidRequestError(f"Unknown difficulty '{difficulty}'")
        if not is_valid_grid(puzzle) or not is_valid_grid(solution) or not same_shape(puzzle, solution):
            raise InvalidRequestError('Puzzle and solution must be square grids of the same size')
        capacity = self._parse_capacity(max_players)

        with self.store.transaction() as data:
            room = self.registry.create(
                data, host_id, level.value, puzzle, solution, capacity, host_profile=profile
            )
            snapshot = copy.deepcopy(room)

        game_logger.log_game_event(snapshot['id'], 'room_created', host_id,
                                   code=snapshot['code'], difficulty=level.value, max_players=capacity)
        return snapshot

    def get_room(self, room_id: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: If the room does not exist
        """
        with self.store.snapshot() as data:
            return copy.deepcopy(self.registry.find_by_id(data, room_id))

    def rooms_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        with self.store.snapshot() as data:
            return copy.deepcopy(self.registry.rooms_for_user(data, user_id))

    def count_rooms(self) -> Dict[str, int]:
        with self.store.snapshot() as data:
            counts = {status.value: 0 for status in RoomStatus}
            for room in data['rooms']:
                counts[room.get('status', WAITING)] = counts.get(room.get('status', WAITING), 0) + 1
            return counts

    def delete_room(self, room_id: str, actor_id: str) -> bool:
        """
        Host-only removal. Deleting a room that no longer exists is a no-op.

        Raises:
            ForbiddenError: If the actor is not the host
        """
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.get(data, room_id)
                if room is None:
                    return False
                if room['hostId'] != actor_id:
                    raise ForbiddenError('Only the host can delete the room.')
                self.registry.delete(data, room_id)
            self._forget_room(room_id)

        game_logger.log_game_event(room_id, 'room_deleted', actor_id)
        return True

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def join_room(self, code: Any, user_id: str, profile: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Join the waiting room with this code.

        Raises:
            NotFoundError: No waiting room has this code
            RoomFullError: The room is at capacity
        """
        with self.store.snapshot() as data:
            room = self.registry.find_by_code(data, code)
            if room is None:
                raise NotFoundError('Room not found or has already started.')
            room_id = room['id']
        return self.join_room_by_id(room_id, user_id, profile)

    def join_room_by_id(self,
                        room_id: str,
                        user_id: str,
                        profile: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Seat a user in a waiting room. Joining twice is a no-op.

        Raises:
            NotFoundError: Unknown room or user
            RoomNotJoinableError: The room is no longer waiting
            RoomFullError: The room is at capacity
        """
        profile = profile or {}
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                if room['status'] != WAITING:
                    raise RoomNotJoinableError()
                if find_player(room, user_id) is not None:
                    return copy.deepcopy(room)
                if len(room['players']) >= room['maxPlayers']:
                    raise RoomFullError()

                user = self.registry.find_user(data, user_id)
                if user is None:
                    raise NotFoundError('User not found')

                seat_player(room, Player.from_user(
                    user,
                    profileColor=profile.get('profileColor'),
                    profilePicture=profile.get('profilePicture'),
                ))
                self._touch(room)
                snapshot = copy.deepcopy(room)

            self.channel.room_update(snapshot)

        game_logger.log_game_event(room_id, 'player_joined', user_id, players=len(snapshot['players']))
        return snapshot

    def set_ready(self, room_id: str, actor_id: str, user_id: str, is_ready: Any) -> Dict[str, Any]:
        """
        Raises:
            ForbiddenError: Toggling someone else's ready state
            InvalidRequestError: isReady is not a boolean
            InvalidStateError: The room is no longer waiting
            PlayerNotFoundError: The user is not in the room
        """
        if actor_id != user_id:
            raise ForbiddenError('You can only change your own ready state.')
        if not isinstance(is_ready, bool):
            raise InvalidRequestError('isReady must be true or false')

        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                if room['status'] != WAITING:
                    raise InvalidStateError('Ready state can only change before the game starts.')
                player = find_player(room, user_id)
                if player is None:
                    raise PlayerNotFoundError()
                player['isReady'] = is_ready
                self._touch(room)
                snapshot = copy.deepcopy(room)

            self.channel.room_update(snapshot)
        return snapshot

    def start_room(self, room_id: str, actor_id: str) -> Dict[str, Any]:
        """
        waiting -> active. Host only.

        Raises:
            ForbiddenError: The actor is not the host
            InvalidStateError: Not waiting, or too few players
        """
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                if room['hostId'] != actor_id:
                    raise ForbiddenError('Only the host can start the game.')
                if room['status'] != WAITING:
                    raise InvalidStateError('The game has already started.')
                if len(room['players']) < self.min_players_to_start:
                    raise InvalidStateError(
                        f'At least {self.min_players_to_start} players are needed to start.'
                    )
                room['status'] = ACTIVE
                room['startedAt'] = utc_now_iso()
                self._touch(room)
                snapshot = copy.deepcopy(room)

            self.channel.room_update(snapshot)
            self.channel.game_start(snapshot)

        game_logger.log_game_event(room_id, 'room_started', actor_id, players=len(snapshot['players']))
        return snapshot

    def leave_room(self, room_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Remove a player. Returns the updated room, or None once it is deleted.

        When an active room drops to a single player, that player wins.

        Raises:
            NotFoundError: Unknown room
        """
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                was_active = room['status'] == ACTIVE
                if not unseat_player(room, user_id):
                    return copy.deepcopy(room)

                if self.registry.delete_if_empty(data, room):
                    snapshot = None
                else:
                    self._reassign_host(room, user_id)
                    if was_active and len(room['players']) == 1:
                        self._declare_survivor(data, room)
                    elif was_active:
                        self._finish_if_everyone_done(data, room)
                    self._touch(room)
                    snapshot = copy.deepcopy(room)

            if snapshot is None:
                self._forget_room(room_id)
            else:
                self.channel.room_update(snapshot)

        game_logger.log_game_event(room_id, 'player_left', user_id, room_deleted=snapshot is None)
        return snapshot

    def kick_player(self, room_id: str, actor_id: str, target_id: str) -> Optional[Dict[str, Any]]:
        """
        Host removes another player and the kicked connection is told directly.

        Raises:
            ForbiddenError: The actor is not the host
            InvalidRequestError: The host targets themselves
            InvalidStateError: The room has finished
            PlayerNotFoundError: The target is not in the room
        """
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                if room['hostId'] != actor_id:
                    raise ForbiddenError('Only the host can kick players.')
                if target_id == actor_id:
                    raise InvalidRequestError('Host cannot kick themselves.')
                if room['status'] not in REMOVABLE_STATUSES:
                    raise InvalidStateError('Players cannot be kicked from a finished room.')
                was_active = room['status'] == ACTIVE
                if not unseat_player(room, target_id):
                    raise PlayerNotFoundError()

                if self.registry.delete_if_empty(data, room):
                    snapshot = None
                else:
                    self._reassign_host(room, target_id)
                    if was_active:
                        self._finish_if_everyone_done(data, room)
                    self._touch(room)
                    snapshot = copy.deepcopy(room)

            if snapshot is None:
                self._forget_room(room_id)
            else:
                self.channel.room_update(snapshot)
            self.channel.you_were_kicked(target_id, room_id)

        game_logger.log_game_event(room_id, 'player_kicked', actor_id, kicked=target_id)
        return snapshot

    # ------------------------------------------------------------------
    # Gameplay
    # ------------------------------------------------------------------

    def apply_move(self, room_id: str, user_id: str, row: Any, col: Any, value: Any) -> None:
        """
        Write one cell of the player's own grid. Correctness is only checked
        when the player claims the win.

        Raises:
            InvalidStateError: The room is not active
            PlayerNotFoundError: The user has no grid in this room
            InvalidRequestError: The cell is outside the grid
        """
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                if room['status'] != ACTIVE:
                    raise InvalidStateError('Moves are only accepted while the game is active.')
                grid = room['grids'].get(user_id)
                if grid is None:
                    raise PlayerNotFoundError()
                if not in_bounds(grid, row, col):
                    raise InvalidRequestError('Cell is outside the grid')
                grid[row][col] = cell_value(value)
                self._touch(room)

    def report_progress(self, room_id: str, user_id: str, progress: Any) -> List[Dict[str, Any]]:
        """
        Store a player's completion percentage and push the players delta.

        Returns:
            The room's players after the update

        Raises:
            InvalidStateError: The room is not active
            PlayerNotFoundError: The user is not in the room
        """
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                player = self._active_player(room, user_id)
                player['progress'] = self.progress_policy(room, user_id, progress)
                self._touch(room)
                players = copy.deepcopy(room['players'])

            self.channel.game_progress(room_id, players)
        return players

    def report_progress_http(self,
                             room_id: str,
                             user_id: str,
                             progress: Any,
                             time_elapsed: Any,
                             finished: bool = False) -> Dict[str, Any]:
        """
        Request-response progress report. ``finished`` is a claim, checked
        against the solution exactly like ``validate_win``.
        """
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                player = self._active_player(room, user_id)
                player['progress'] = self.progress_policy(room, user_id, progress)
                player['timeElapsed'] = _as_number(time_elapsed, player.get('timeElapsed') or 0)
                if finished and not player['finished']:
                    self._try_finish(data, room, player, player['timeElapsed'])
                self._touch(room)
                snapshot = copy.deepcopy(room)

            self.channel.room_update(snapshot)
        return snapshot

    def validate_win(self, room_id: str, user_id: str, time: Any) -> bool:
        """
        Check the player's grid against the solution.

        A wrong grid is ignored without an error so the client cannot probe
        which cells are wrong.

        Returns:
            bool: True when the player has just been marked finished

        Raises:
            InvalidStateError: The room is not active
            PlayerNotFoundError: The user is not in the room
        """
        with self._room_locks.hold(room_id):
            with self.store.transaction() as data:
                room = self.registry.find_by_id(data, room_id)
                player = self._active_player(room, user_id)
                if player['finished'] or not self._try_finish(data, room, player, time):
                    return False
                self._touch(room)
                snapshot = copy.deepcopy(room)

            self.channel.room_update(snapshot)
        return True

    # ------------------------------------------------------------------
    # Rematch
    # ------------------------------------------------------------------

    def request_rematch(self, old_room_id: str, user: Dict[str, Any]) -> str:
        """
        Resolve the rematch room of ``old_room_id`` for this user.

        The first request creates a waiting room with the same puzzle, hosted
        by the requester; later requests join that same room. A requester the
        rematch room can no longer seat (it started or filled up) still
        resolves to its id and can follow it as a listener.

        Returns:
            The rematch room id

        Raises:
            InvalidRequestError: No user id supplied
            NotFoundError: The old room no longer exists
        """
        user_id = (user or {}).get('id')
        if not user_id:
            raise InvalidRequestError('User is required')
        profile = {
            'profileColor': user.get('profileColor'),
            'profilePicture': user.get('profilePicture'),
        }

        with self._room_locks.hold(('rematch', old_room_id)):
            new_room_id = self._existing_rematch(old_room_id)
            if new_room_id:
                try:
                    self.join_room_by_id(new_room_id, user_id, profile)
                except (RoomFullError, RoomNotJoinableError) as e:
                    game_logger.log_game_event(new_room_id, 'rematch_unseated', user_id, reason=str(e))
                return new_room_id

            with self.store.transaction() as data:
                old_room = self.registry.find_by_id(data, old_room_id)
                new_room = self.registry.create(
                    data,
                    user_id,
                    old_room['difficulty'],
                    old_room['puzzle'],
                    old_room['solution'],
                    old_room['maxPlayers'],
                    initial_puzzle=old_room['initialPuzzle'],
                    rematch_of=old_room_id,
                    host_profile=profile,
                )
                new_room_id = new_room['id']

            with self._rematch_lock:
                self.rematches[old_room_id] = new_room_id

        game_logger.log_game_event(new_room_id, 'rematch_created', user_id, rematch_of=old_room_id)
        return new_room_id

    def _existing_rematch(self, old_room_id: str) -> Optional[str]:
        with self._rematch_lock:
            new_room_id = self.rematches.get(old_room_id)
        if not new_room_id:
            return None
        with self.store.snapshot() as data:
            if self.registry.get(data, new_room_id) is not None:
                return new_room_id
        self._forget_room(new_room_id)
        return None

    def _forget_room(self, room_id: str) -> None:
        """Drop rematch links touching a deleted room."""
        with self._rematch_lock:
            for old_id, new_id in list(self.rematches.items()):
                if room_id in (old_id, new_id):
                    del self.rematches[old_id]

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def reap_stale_rooms(self, now: Optional[datetime.datetime] = None) -> List[str]:
        """
        Delete rooms untouched for longer than the TTL.

        Returns:
            Ids of the deleted rooms
        """
        now = now or utc_now()
        cutoff = now - datetime.timedelta(seconds=self.room_ttl_seconds)

        with self.store.snapshot() as data:
            candidates = [room['id'] for room in data['rooms'] if self._is_stale(room, cutoff)]

        reaped = []
        for room_id in candidates:
            with self._room_locks.hold(room_id):
                with self.store.transaction() as data:
                    room = self.registry.get(data, room_id)
                    if room is None or not self._is_stale(room, cutoff):
                        continue
                    self.registry.delete(data, room_id)
                self._forget_room(room_id)
            reaped.append(room_id)
            game_logger.log_game_event(room_id, 'room_reaped', 'system')
        return reaped

    @staticmethod
    def _is_stale(room: Dict[str, Any], cutoff: datetime.datetime) -> bool:
        last_activity = parse_iso(room.get('updatedAt')) or parse_iso(room.get('createdAt'))
        return last_activity is None or last_activity < cutoff

    # ------------------------------------------------------------------
    # Internals (caller holds the room lock and an open transaction)
    # ------------------------------------------------------------------

    def _parse_capacity(self, max_players: Any) -> int:
        if max_players is None:
            return self.default_max_players
        if isinstance(max_players, bool):
            raise InvalidRequestError('maxPlayers must be a whole number')
        try:
            capacity = int(max_players)
        except (TypeError, ValueError):
            raise InvalidRequestError('maxPlayers must be a whole number')
        if not 1 <= capacity <= self.max_players_limit:
            raise InvalidRequestError(f'maxPlayers must be between 1 and {self.max_players_limit}')
        return capacity

    @staticmethod
    def _touch(room: Dict[str, Any]) -> None:
        room['updatedAt'] = utc_now_iso()

    @staticmethod
    def _active_player(room: Dict[str, Any], user_id: str) -> Dict[str, Any]:
        if room['status'] != ACTIVE:
            raise InvalidStateError('The game is not active.')
        player = find_player(room, user_id)
        if player is None:
            raise PlayerNotFoundError()
        return player

    @staticmethod
    def _reassign_host(room: Dict[str, Any], departed_id: str) -> None:
        if room['hostId'] == departed_id and room['players']:
            room['hostId'] = room['players'][0]['userId']
            game_logger.log_game_event(room['id'], 'host_reassigned', 'system', host=room['hostId'])

    def _try_finish(self, data: Dict[str, Any], room: Dict[str, Any], player: Dict[str, Any], time: Any) -> bool:
        grid = room['grids'].get(player['userId'])
        if grid is None or not matches_solution(grid, room['solution']):
            game_logger.log_game_event(room['id'], 'win_rejected', player['userId'])
            return False

        player['finished'] = True
        player['progress'] = 100
        player['timeFinished'] = _as_number(time, player.get('timeElapsed') or 0)
        assign_placements(room)
        game_logger.log_game_event(room['id'], 'player_finished', player['userId'],
                                   time_finished=player['timeFinished'], placement=player['placement'])
        self._finish_if_everyone_done(data, room)
        return True

    def _finish_if_everyone_done(self, data: Dict[str, Any], room: Dict[str, Any]) -> None:
        if room['players'] and all(player['finished'] for player in room['players']):
            self._finish_room(room)
            player_count = len(room['players'])
            for player in room['players']:
                reward = xp_for_placement(room['difficulty'], player['placement'], player_count)
                self._award_xp(data, player['userId'], reward, solved=True)

    def _declare_survivor(self, data: Dict[str, Any], room: Dict[str, Any]) -> None:
        winner = room['players'][0]
        if not winner['finished']:
            winner['finished'] = True
            winner['timeFinished'] = winner.get('timeElapsed') or 0
        self._finish_room(room)
        winner['placement'] = 1
        self._award_xp(data, winner['userId'], base_xp(room['difficulty']))

    @staticmethod
    def _finish_room(room: Dict[str, Any]) -> None:
        room['status'] = FINISHED
        room['finishedAt'] = utc_now_iso()
        assign_placements(room)
        game_logger.log_game_event(room['id'], 'room_finished', 'system',
                                   placements={p['userId']: p['placement'] for p in room['players']})

    def _award_xp(self, data: Dict[str, Any], user_id: str, amount: int, solved: bool = False) -> None:
        user = self.registry.find_user(data, user_id)
        if user is None:
            return
        user['xp'] = (user.get('xp') or 0) + amount
        user['level'] = level_for_xp(user['xp'])
        if solved:
            user['solvedPuzzles'] = (user.get('solvedPuzzles') or 0) + 1
        game_logger.log_game_event(None, 'xp_awarded', user_id, amount=amount, total=user['xp'])


# Global service instance
_room_service = None


def get_room_service() -> Optional[RoomService]:
    """Get the global room service instance."""
    return _room_service


def initialize_room_service(*args, **kwargs) -> RoomService:
    """Initialize the global room service instance."""
    global _room_service
    _room_service = RoomService(*args, **kwargs)
    return _room_service
