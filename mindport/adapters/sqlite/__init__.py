"""
SQLite Adapter - Resource and prompt storage.
"""

from .repository import SQLiteRepository

__all__ = ["SQLiteRepository"]
