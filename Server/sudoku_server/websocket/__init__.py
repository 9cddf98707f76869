"""
WebSocket Package

Real-time room channel, connection registry and Socket.IO event handlers.
"""

from .channel import RoomChannel
from .sessions import ConnectionRegistry, get_connection_registry

__all__ = ['RoomChannel', 'ConnectionRegistry', 'get_connection_registry']
