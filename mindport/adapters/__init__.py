"""
Adapters - External collaborator implementations.

The index and store are wrapped here to isolate domains from storage details.
"""

from .memory_index import MemoryIndex
from .sqlite import SQLiteRepository

__all__ = [
    "MemoryIndex",
    "SQLiteRepository",
]
