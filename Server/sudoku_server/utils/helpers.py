"""
Helper Functions

Contains utility functions used throughout the application.
"""

import datetime
import uuid
from typing import Any, Dict, Optional


def generate_id(prefix: str) -> str:
    """Opaque identifier such as ``room_3f9c2a61b0d4``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime.datetime]:
    """Parse a stored ISO timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """User record without its password hash."""
    return {key: value for key, value in user.items() if key != 'password'}


def payload_value(data: Any, key: str) -> Any:
    """
    Socket clients send either a bare value or an object carrying it,
    e.g. ``'room_1'`` or ``{'roomId': 'room_1'}``.
    """
    if isinstance(data, dict):
        return data.get(key)
    return data
