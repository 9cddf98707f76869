"""
Sudoku Room Server Application Package

Multiplayer Sudoku rooms: a server-authoritative room state machine exposed
over HTTP (Flask blueprints) and a real-time Socket.IO channel, persisted in a
single JSON document.
"""

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from .config import Config


def create_app(config_class=Config):
    """
    Application factory pattern for creating Flask app instances.

    Services are wired here so every app (server or test) gets its own store,
    session map and room service.

    Args:
        config_class: Configuration class to use

    Returns:
        Tuple of (Flask app, SocketIO instance)
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    from .utils.game_logger import game_logger
    game_logger.configure(
        log_dir=app.config['LOG_DIR'],
        level=app.config['LOG_LEVEL'],
        to_file=app.config['LOG_TO_FILE']
    )

    # Initialize extensions
    origins = app.config['CORS_ORIGINS']
    if not origins or '*' in origins:
        origins = '*'
    CORS(app, origins=origins)
    socketio = SocketIO(
        app,
        cors_allowed_origins=origins,
        async_mode='threading',
        logger=False,
        engineio_logger=False
    )

    # Initialize services
    from .services.auth_service import initialize_auth_service
    from .services.challenge_service import initialize_challenge_service
    from .services.notification_service import initialize_notification_service
    from .services.progress import get_progress_policy
    from .services.room_registry import RoomRegistry
    from .services.room_service import initialize_room_service
    from .store.json_store import JsonStore
    from .websocket.channel import RoomChannel
    from .websocket.sessions import initialize_connection_registry

    store = JsonStore(app.config['DB_PATH'])
    sessions = initialize_connection_registry()
    channel = RoomChannel(socketio, sessions)

    auth_service = initialize_auth_service(
        store,
        app.config['JWT_SECRET'],
        token_days=app.config['JWT_EXPIRATION_DAYS'],
        bcrypt_rounds=app.config['BCRYPT_ROUNDS']
    )
    room_service = initialize_room_service(
        store,
        RoomRegistry(),
        channel,
        progress_policy=get_progress_policy(app.config['PROGRESS_POLICY']),
        min_players_to_start=app.config['MIN_PLAYERS_TO_START'],
        default_max_players=app.config['DEFAULT_MAX_PLAYERS'],
        max_players_limit=app.config['MAX_PLAYERS_LIMIT'],
        room_ttl_seconds=app.config['ROOM_TTL_SECONDS']
    )
    notification_service = initialize_notification_service(store)
    initialize_challenge_service(store, room_service, notification_service)

    # Register blueprints
    from .controllers.auth_controller import auth_bp
    from .controllers.challenge_controller import challenge_bp
    from .controllers.health_controller import health_bp
    from .controllers.notification_controller import notification_bp
    from .controllers.room_controller import room_bp
    from .controllers.user_controller import user_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(user_bp, url_prefix='/api/users')
    app.register_blueprint(room_bp, url_prefix='/api/rooms')
    app.register_blueprint(challenge_bp, url_prefix='/api/challenges')
    app.register_blueprint(notification_bp, url_prefix='/api/notifications')
    app.register_blueprint(health_bp, url_prefix='/api')

    # Register WebSocket handlers
    from .websocket.handlers import register_websocket_handlers
    register_websocket_handlers(socketio)

    # Store shared instances for use in other modules
    app.socketio = socketio
    app.extensions['json_store'] = store
    app.extensions['room_service'] = room_service
    app.extensions['auth_service'] = auth_service

    return app, socketio
