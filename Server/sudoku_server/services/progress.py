"""
Progress Policies

A progress policy turns a reported completion percentage into the value
stored on the player: ``policy(room, user_id, reported) -> number``.
"""

from typing import Any, Callable, Dict, Union

from ..models.grid import completion_percentage
from .errors import InvalidRequestError

ProgressPolicy = Callable[[Dict[str, Any], str, Any], Union[int, float]]


def _clamp(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return int(round(min(100.0, max(0.0, number))))


def trust_reported_progress(room: Dict[str, Any], user_id: str, reported: Any) -> Union[int, float]:
    """
    Store exactly what the client computed.

    Raises:
        InvalidRequestError: The report is not a number
    """
    if isinstance(reported, bool) or not isinstance(reported, (int, float)):
        raise InvalidRequestError('progress must be a number')
    return reported


def recompute_progress(room: Dict[str, Any], user_id: str, reported: Any) -> int:
    """Ignore the report and derive the percentage from the player's grid."""
    grid = room.get('grids', {}).get(user_id)
    if grid is None:
        return _clamp(reported)
    return completion_percentage(grid, room['initialPuzzle'])


PROGRESS_POLICIES: Dict[str, ProgressPolicy] = {
    'trust': trust_reported_progress,
    'recompute': recompute_progress,
}


def get_progress_policy(name: str) -> ProgressPolicy:
    """
    Raises:
        ValueError: For an unknown policy name
    """
    try:
        return PROGRESS_POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown progress policy '{name}'. Expected one of {sorted(PROGRESS_POLICIES)}")
