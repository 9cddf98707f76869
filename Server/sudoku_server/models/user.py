"""
User Data Models

Contains user-related data structures.
"""

import random
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


def random_profile_color() -> str:
    return f"#{random.randint(0, 0xFFFFFF):06x}"


@dataclass
class User:
    """User record as stored in the ``users`` collection."""
    id: str
    username: str
    password: str
    createdAt: str
    email: Optional[str] = None
    xp: int = 0
    level: int = 1
    solvedPuzzles: int = 0
    profileColor: str = field(default_factory=random_profile_color)
    profilePicture: Optional[str] = None
    friends: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
