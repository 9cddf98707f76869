"""
Health Controller

Liveness endpoint with room, connection and log statistics.
"""

from flask import Blueprint, jsonify
from ..services.room_service import get_room_service
from ..utils.game_logger import game_logger
from ..websocket.sessions import get_connection_registry

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health():
    room_service = get_room_service()
    sessions = get_connection_registry()
    return jsonify({
        'success': True,
        'status': 'ok',
        'rooms': room_service.count_rooms() if room_service else None,
        'connections': sessions.count() if sessions else 0,
        'logs': game_logger.get_log_stats()
    })
