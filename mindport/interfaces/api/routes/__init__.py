"""
API Routes.
"""

from . import domains, health, resources, search, shorthand, tools

__all__ = ["health", "search", "tools", "domains", "resources", "shorthand"]
