"""
Data Models Package

Contains all data models and schemas used throughout the application.
"""

from .grid import Grid, clone_grid, matches_solution, completion_percentage
from .room import (
    Difficulty, Player, Room, RoomStatus,
    seat_player, unseat_player, find_player, assign_placements
)
from .user import User

__all__ = [
    'Grid', 'clone_grid', 'matches_solution', 'completion_percentage',
    'Difficulty', 'Player', 'Room', 'RoomStatus', 'User',
    'seat_player', 'unseat_player', 'find_player', 'assign_placements'
]
