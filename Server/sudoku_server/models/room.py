"""
Room Data Models

Rooms are persisted as plain JSON records with camelCase keys (the wire
format). These dataclasses build new records and name the allowed values.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .grid import Grid, clone_grid


class RoomStatus(Enum):
    """Room lifecycle; transitions only move forward."""
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


# Statuses a player may still leave from or be kicked from
REMOVABLE_STATUSES = (RoomStatus.WAITING.value, RoomStatus.ACTIVE.value)


class Difficulty(Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    EXPERT = "Expert"

    @classmethod
    def parse(cls, value: Any) -> Optional["Difficulty"]:
        for member in cls:
            if isinstance(value, str) and member.value.lower() == value.strip().lower():
                return member
        return None


@dataclass
class Player:
    """A room member. Profile fields are captured at join time."""
    userId: str
    username: str
    profileColor: Optional[str] = None
    profilePicture: Optional[str] = None
    progress: int = 0
    finished: bool = False
    timeElapsed: float = 0
    timeFinished: Optional[float] = None
    isReady: bool = False
    placement: int = 0

    @classmethod
    def from_user(cls, user: Dict[str, Any], **overrides) -> "Player":
        player = cls(
            userId=user['id'],
            username=user['username'],
            profileColor=user.get('profileColor'),
            profilePicture=user.get('profilePicture'),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(player, key, value)
        return player

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Room:
    """Server-side room record."""
    id: str
    code: str
    hostId: str
    difficulty: str
    puzzle: Grid
    initialPuzzle: Grid
    solution: Grid
    maxPlayers: int
    createdAt: str
    updatedAt: str
    players: List[Dict[str, Any]] = field(default_factory=list)
    grids: Dict[str, Grid] = field(default_factory=dict)
    status: str = RoomStatus.WAITING.value
    startedAt: Optional[str] = None
    finishedAt: Optional[str] = None
    rematchOf: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def seat_player(room: Dict[str, Any], player: Player) -> Dict[str, Any]:
    """
    Append a player to a room record and give them their own grid,
    seeded from the starting clues rather than anyone's progress.
    """
    record = player.to_dict()
    room['players'].append(record)
    room['grids'][player.userId] = clone_grid(room['initialPuzzle'])
    return record


def unseat_player(room: Dict[str, Any], user_id: str) -> bool:
    """Remove a player and their grid; False if they were not seated."""
    remaining = [player for player in room['players'] if player['userId'] != user_id]
    if len(remaining) == len(room['players']):
        return False
    room['players'] = remaining
    room['grids'].pop(user_id, None)
    return True


def find_player(room: Dict[str, Any], user_id: str) -> Optional[Dict[str, Any]]:
    for player in room['players']:
        if player['userId'] == user_id:
            return player
    return None


def assign_placements(room: Dict[str, Any]) -> None:
    """
    Rank finished players by ascending finish time (1, 2, ...).
    Unfinished players keep placement 0. Safe to run repeatedly.
    """
    finished = [player for player in room['players'] if player.get('finished')]
    finished.sort(key=lambda p: (p.get('timeFinished') is None, p.get('timeFinished') or 0))
    for index, player in enumerate(finished):
        player['placement'] = index + 1
    for player in room['players']:
        if not player.get('finished'):
            player['placement'] = 0
