"""
Game Configuration Constants Module

This module defines the multiplayer Sudoku rules that are not environment
specific: difficulty tiers, XP rewards, room code format and the collections
held by the persistent store.
"""

from typing import Dict, Final, Tuple

# Difficulty tiers in ascending order
DIFFICULTIES: Final[Tuple[str, ...]] = ('Easy', 'Medium', 'Hard', 'Expert')

DEFAULT_DIFFICULTY: Final[str] = 'Medium'

XP_REWARDS: Final[Dict[str, int]] = {
    'Easy': 250,
    'Medium': 500,
    'Hard': 750,
    'Expert': 1000,
}
"""
Base XP for finishing a room, per difficulty.
A room won by being the last player standing awards exactly this amount.
"""

XP_PER_LEVEL: Final[int] = 1000

# Room codes are 6 digit strings in [ROOM_CODE_MIN, ROOM_CODE_MAX]
ROOM_CODE_MIN: Final[int] = 100000
ROOM_CODE_MAX: Final[int] = 999999
ROOM_CODE_ATTEMPTS: Final[int] = 50

STORE_COLLECTIONS: Final[Tuple[str, ...]] = (
    'users',
    'rooms',
    'friendRequests',
    'notifications',
    'puzzles',
    'challenges',
)


def base_xp(difficulty: str) -> int:
    """Base reward for a difficulty, falling back to the Medium tier."""
    return XP_REWARDS.get(difficulty, XP_REWARDS[DEFAULT_DIFFICULTY])


def xp_for_placement(difficulty: str, placement: int, player_count: int) -> int:
    """
    XP earned by a player who solved the puzzle.
    
    Args:
        difficulty: Room difficulty
        placement: 1-based finishing rank
        player_count: Number of players in the room when it finished
        
    Returns:
        int: base reward plus a bonus of a tenth of the base for every
        player finishing at or behind this one
    """
    base = base_xp(difficulty)
    bonus = max(0, player_count - placement + 1) * (base // 10)
    return base + bonus


def level_for_xp(xp: int) -> int:
    """Levels start at 1 and advance every XP_PER_LEVEL points."""
    return max(0, xp) // XP_PER_LEVEL + 1


def validate_rules_integrity() -> bool:
    """
    Validates that every difficulty has a positive reward.
    
    Raises:
        ValueError: If a difficulty is missing or has a non-positive reward
    """
    for difficulty in DIFFICULTIES:
        if difficulty not in XP_REWARDS:
            raise ValueError(f"Difficulty '{difficulty}' has no XP reward")
        if XP_REWARDS[difficulty] <= 0:
            raise ValueError(f"Difficulty '{difficulty}' must award positive XP")
    
    if len(str(ROOM_CODE_MIN)) != len(str(ROOM_CODE_MAX)):
        raise ValueError("Room code bounds must have the same number of digits")
    
    return True
