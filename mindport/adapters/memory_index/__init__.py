"""
Memory Index Adapter - In-process full-text index.
"""

from .index import MemoryIndex

__all__ = ["MemoryIndex"]
