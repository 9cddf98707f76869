"""
Configuration Management Module

Centralized configuration management following the 12-factor app methodology.
All configuration is loaded from environment variables with sensible defaults.
"""

import os
from dotenv import load_dotenv

# Load environment variables from config.env next to this package
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.env'))

SERVER_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


class Config:
    """Base configuration class with all settings."""
    
    # Flask Settings
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = _env_bool('DEBUG', 'False')
    TESTING = False
    
    # Server Settings
    HOST = os.getenv('HOST', '127.0.0.1')
    PORT = int(os.getenv('PORT', 3002))
    CORS_ORIGINS = [origin.strip() for origin in os.getenv('CORS_ORIGINS', '*').split(',') if origin.strip()]
    
    # Store Settings
    DB_PATH = os.getenv('DB_PATH', os.path.join(SERVER_DIR, 'data', 'db.json'))
    
    # Authentication Settings
    JWT_SECRET = os.getenv('JWT_SECRET', 'dev-jwt-secret-change-in-production')
    JWT_EXPIRATION_DAYS = int(os.getenv('JWT_EXPIRATION_DAYS', 7))
    BCRYPT_ROUNDS = int(os.getenv('BCRYPT_ROUNDS', 12))
    SOCKET_AUTH_REQUIRED = _env_bool('SOCKET_AUTH_REQUIRED', 'False')
    
    # Room Settings
    MIN_PLAYERS_TO_START = int(os.getenv('MIN_PLAYERS_TO_START', 1))
    DEFAULT_MAX_PLAYERS = int(os.getenv('DEFAULT_MAX_PLAYERS', 4))
    MAX_PLAYERS_LIMIT = int(os.getenv('MAX_PLAYERS_LIMIT', 50))
    PROGRESS_POLICY = os.getenv('PROGRESS_POLICY', 'trust')
    ROOM_TTL_SECONDS = int(os.getenv('ROOM_TTL_SECONDS', 6 * 60 * 60))
    REAPER_INTERVAL_SECONDS = int(os.getenv('REAPER_INTERVAL_SECONDS', 60))
    
    # Logging Settings
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    LOG_TO_FILE = _env_bool('LOG_TO_FILE', 'True')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    BCRYPT_ROUNDS = 4
    LOG_TO_FILE = False
    JWT_SECRET = 'testing-jwt-secret'


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
