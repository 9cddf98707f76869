"""
Service Errors

Guard failures raised by the room, auth and challenge services. Controllers
turn them into ``{'success': False, 'error': ...}`` responses using
``status_code``; socket handlers log them and carry on.
"""


class RoomServiceError(Exception):
    """Base class for guard failures reported to the caller."""
    status_code = 400

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    default_message = 'Request could not be completed'


class InvalidRequestError(RoomServiceError):
    status_code = 400
    default_message = 'Invalid request'


class NotFoundError(RoomServiceError):
    status_code = 404
    default_message = 'Not found'


class HostNotFoundError(NotFoundError):
    default_message = 'Host user not found in database. Please log in again.'


class PlayerNotFoundError(NotFoundError):
    default_message = 'Player not found in this room.'


class ForbiddenError(RoomServiceError):
    status_code = 403
    default_message = 'Forbidden'


class RoomFullError(RoomServiceError):
    status_code = 400
    default_message = 'Room is full.'


class RoomNotJoinableError(RoomServiceError):
    status_code = 409
    default_message = 'Room has already started.'


class InvalidStateError(RoomServiceError):
    status_code = 409
    default_message = 'Action not allowed in the current room state.'


class AuthError(RoomServiceError):
    status_code = 401
    default_message = 'Authentication failed'
