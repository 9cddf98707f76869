"""
Response Helpers

Shared request parsing and the JSON envelope used by every blueprint.
"""

from typing import Any, Callable, Dict, Optional

from flask import request, jsonify
from ..services.errors import RoomServiceError
from ..utils.game_logger import game_logger


def request_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def service_response(action: str,
                     operation: Callable[[], Dict[str, Any]],
                     room_id: Optional[str] = None,
                     status: int = 200):
    """
    Run a service operation and translate its outcome into a JSON response.

    Guard failures become ``{'success': False, 'error': ...}`` with the
    error's status code and are logged as error responses; anything else is
    logged as a server error and answered with 500.
    """
    try:
        game_logger.log_user_action(request, action, room_id)

        response_data = {'success': True, **operation()}
        game_logger.log_server_response(request, action, True, response_data, room_id)
        return jsonify(response_data), status

    except RoomServiceError as e:
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, action, False, error_response, room_id)
        return jsonify(error_response), e.status_code

    except Exception as e:
        game_logger.log_error(request, e, action, room_id)
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, action, False, error_response, room_id)
        return jsonify(error_response), 500


def service_unavailable(name: str):
    return jsonify({
        'success': False,
        'error': f'{name} service unavailable'
    }), 500
