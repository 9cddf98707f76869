"""
Store Package

Persistence for every collection the server owns.
"""

from .json_store import JsonStore

__all__ = ['JsonStore']
