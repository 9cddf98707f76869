"""
Sudoku Room Server - Main Entry Point

Creates the Flask-SocketIO application, starts the stale-room reaper and
serves HTTP and Socket.IO on the configured address.
"""

import os
import threading
import time

from sudoku_server import create_app
from sudoku_server.config import config
from sudoku_server.services.room_service import get_room_service
from sudoku_server.utils.game_logger import game_logger


def room_reaper_worker(app, interval_seconds):
    """
    Background worker that deletes rooms nobody has touched for longer than
    ROOM_TTL_SECONDS. Disconnects never remove players, so abandoned rooms
    are only cleaned up here.
    """
    game_logger.logger.info(f"Room reaper started - sweeping every {interval_seconds}s")
    while True:
        try:
            with app.app_context():
                room_service = get_room_service()
                if room_service:
                    reaped = room_service.reap_stale_rooms()
                    if reaped:
                        game_logger.logger.info(f"Room reaper: removed {len(reaped)} stale room(s)")
        except Exception as e:
            game_logger.logger.error(f"Error in room reaper worker: {e}")

        time.sleep(interval_seconds)


def main():
    """Main function to create the app and start the server."""
    config_class = config[os.getenv('FLASK_ENV', 'default')]
    app = None
    try:
        print("Creating Flask application...")
        app, socketio = create_app(config_class)
        print("✓ Flask application and services initialized")

        interval = config_class.REAPER_INTERVAL_SECONDS
        reaper_thread = threading.Thread(target=room_reaper_worker, args=(app, interval), daemon=True)
        reaper_thread.start()
        print(f"✓ Room reaper started - checking every {interval} seconds")

        game_logger.logger.info("Sudoku Room Server starting")

        print(f"\nStarting Sudoku Room Server on {config_class.HOST}:{config_class.PORT}")
        print(f"Debug mode: {config_class.DEBUG}")
        print(f"Store: {config_class.DB_PATH}")
        print("=" * 50)

        socketio.run(
            app,
            host=config_class.HOST,
            port=config_class.PORT,
            debug=config_class.DEBUG,
            allow_unsafe_werkzeug=True
        )

    except KeyboardInterrupt:
        print("\nServer shutting down...")
        game_logger.logger.info("Sudoku Room Server shutting down (KeyboardInterrupt)")
    except Exception as e:
        print(f"Error starting server: {e}")
        game_logger.logger.error(f"Error starting server: {e}")
        raise
    finally:
        if app is not None:
            app.extensions['json_store'].close()


if __name__ == '__main__':
    main()
