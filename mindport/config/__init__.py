"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    ConflictError,
    DeadlineExceededError,
    ErrorCode,
    InvalidArgumentError,
    InvariantViolationError,
    MindPortError,
    NotFoundError,
    SearchIndexError,
    StorageError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "MindPortError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "InvariantViolationError",
    "DeadlineExceededError",
    "SearchIndexError",
    "StorageError",
]
