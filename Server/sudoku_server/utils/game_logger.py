"""
Game Logger Module for the Sudoku server

This module provides structured logging for user actions, server responses,
room events and store failures.
"""

import logging
import json
from datetime import datetime
from typing import Dict, Any, Optional
from pathlib import Path

# Keys never written to the log files
_REDACTED_KEYS = {'password', 'token'}
# Large room fields replaced by a short summary
_BULKY_ROOM_KEYS = {'puzzle', 'initialPuzzle', 'solution', 'grids'}


class GameLogger:
    """
    Centralized logging system for the Sudoku server.

    Features:
    - User action tracking with user id / IP identification
    - Server response logging
    - Room event logging
    - JSON structured logs for easy parsing
    """

    def __init__(self, name: str = "sudoku_server"):
        self.name = name
        self.log_dir: Optional[Path] = None
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Setup the main logger with a console handler."""
        logger = logging.getLogger(self.name)
        logger.setLevel(logging.INFO)

        # Prevent duplicate handlers
        if logger.handlers:
            logger.handlers.clear()

        # Console handler for only important messages (WARNING and above)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

        logger.addHandler(console_handler)
        return logger

    def configure(self, log_dir: str = "logs", level: str = "INFO", to_file: bool = True):
        """
        Attach the daily file handler. Called once by the application factory.

        Args:
            log_dir: Directory for the daily log files
            level: Minimum level written to the file
            to_file: When False only the console handler is kept
        """
        self.logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

        for handler in list(self.logger.handlers):
            if isinstance(handler, logging.FileHandler):
                self.logger.removeHandler(handler)
                handler.close()

        if not to_file:
            self.log_dir = None
            return

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(self._log_file(), encoding='utf-8')
        file_handler.setLevel(self.logger.level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(file_handler)

    def _log_file(self) -> Path:
        return self.log_dir / f"server_log_{datetime.now().strftime('%Y-%m-%d')}.log"

    def _get_user_identity(self, request) -> Dict[str, Optional[str]]:
        """Extract user identity information from request."""
        user = getattr(request, 'user', None) or {}
        return {
            'user_ip': getattr(request, 'remote_addr', None) or 'unknown',
            'user_id': user.get('id'),
            'username': user.get('username')
        }

    def _create_log_entry(self,
                         event_type: str,
                         action: str,
                         user_info: Dict[str, Optional[str]],
                         details: Dict[str, Any]) -> str:
        """Create a structured log entry."""
        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'event_type': event_type,
            'action': action,
            'user': user_info,
            'details': details
        }
        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def log_user_action(self,
                       request,
                       action: str,
                       room_id: Optional[str] = None,
                       **kwargs):
        """
        Log user actions with full context.

        Args:
            request: Flask request object
            action: Type of action (e.g., 'create_room', 'join_room', 'kick_player')
            room_id: Room identifier if applicable
            **kwargs: Additional details to log
        """
        details = {
            'room_id': room_id,
            'endpoint': request.endpoint,
            'method': request.method,
            'url': request.url,
            **self.sanitize(kwargs)
        }

        log_message = self._create_log_entry('USER_ACTION', action, self._get_user_identity(request), details)
        self.logger.info(log_message)

    def log_server_response(self,
                           request,
                           action: str,
                           success: bool,
                           response_data: Dict[str, Any],
                           room_id: Optional[str] = None,
                           **kwargs):
        """
        Log server responses with full context.

        Args:
            request: Flask request object
            action: Action that was performed
            success: Whether the action succeeded
            response_data: Data being returned to client
            room_id: Room identifier if applicable
            **kwargs: Additional details to log
        """
        details = {
            'room_id': room_id,
            'success': success,
            'response_size': len(str(response_data)),
            'response_data': self.sanitize(response_data),
            **kwargs
        }

        event_type = 'SERVER_RESPONSE_SUCCESS' if success else 'SERVER_RESPONSE_ERROR'
        log_message = self._create_log_entry(event_type, action, self._get_user_identity(request), details)

        if success:
            self.logger.info(log_message)
        else:
            self.logger.warning(log_message)

    def log_game_event(self,
                      room_id: Optional[str],
                      event: str,
                      actor: Optional[str] = None,
                      **kwargs):
        """
        Log room events (start, finish, kicks, rematches...).

        Args:
            room_id: Room identifier
            event: Type of event (e.g., 'room_started', 'player_finished')
            actor: User id that triggered the event, or 'system'
            **kwargs: Additional details
        """
        user_info = {'user_ip': None, 'user_id': actor, 'username': None}
        details = {'room_id': room_id, **self.sanitize(kwargs)}

        log_message = self._create_log_entry('GAME_EVENT', event, user_info, details)
        self.logger.info(log_message)

    def log_error(self,
                 request,
                 error: Exception,
                 action: str,
                 room_id: Optional[str] = None):
        """
        Log errors with full context.

        Args:
            request: Flask request object
            error: Exception that occurred
            action: Action that was being performed
            room_id: Room identifier if applicable
        """
        details = {
            'room_id': room_id,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'action': action
        }

        log_message = self._create_log_entry('ERROR', action, self._get_user_identity(request), details)
        self.logger.error(log_message)

    def sanitize(self, data: Any) -> Any:
        """Remove credentials and shrink room payloads before they reach the log."""
        if isinstance(data, list):
            return [self.sanitize(item) for item in data]
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if key in _REDACTED_KEYS:
                sanitized[key] = '***'
            elif key in _BULKY_ROOM_KEYS:
                sanitized[key] = f'<{type(value).__name__}>'
            else:
                sanitized[key] = self.sanitize(value)
        return sanitized

    def get_log_stats(self) -> Dict[str, Any]:
        """Get statistics about logged events (useful for monitoring)."""
        if self.log_dir is None:
            return {'error': 'File logging disabled'}

        try:
            log_file = self._log_file()
            if not log_file.exists():
                return {'error': 'No log file found for today'}

            stats = {
                'log_file': str(log_file),
                'file_size_mb': round(log_file.stat().st_size / (1024 * 1024), 2),
                'total_entries': 0,
                'user_actions': 0,
                'server_responses': 0,
                'game_events': 0,
                'errors': 0
            }

            with open(log_file, 'r', encoding='utf-8') as f:
                for line in f:
                    if line.strip():
                        stats['total_entries'] += 1
                        if 'USER_ACTION' in line:
                            stats['user_actions'] += 1
                        elif 'SERVER_RESPONSE' in line:
                            stats['server_responses'] += 1
                        elif 'GAME_EVENT' in line:
                            stats['game_events'] += 1
                        elif 'ERROR' in line:
                            stats['errors'] += 1

            return stats

        except OSError as e:
            return {'error': f'Failed to get stats: {str(e)}'}


# Global logger instance
game_logger = GameLogger()
