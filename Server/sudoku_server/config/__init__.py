"""
Configuration Package

Contains all configuration-related files and settings.

This package separates two types of configuration:
- app_config.py: Flask application configuration (environment-based)
- game_settings.py: Room rules and constants (business logic)
"""

from .app_config import Config, DevelopmentConfig, ProductionConfig, TestingConfig, config
from .game_settings import (
    DIFFICULTIES, XP_REWARDS, STORE_COLLECTIONS,
    base_xp, xp_for_placement, level_for_xp, validate_rules_integrity
)

__all__ = [
    # App configuration
    'Config', 'DevelopmentConfig', 'ProductionConfig', 'TestingConfig', 'config',
    # Game rules
    'DIFFICULTIES', 'XP_REWARDS', 'STORE_COLLECTIONS',
    'base_xp', 'xp_for_placement', 'level_for_xp', 'validate_rules_integrity'
]
