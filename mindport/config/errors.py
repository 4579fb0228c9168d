"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from mindport.config.errors import ErrorCode, MindPortError

    raise MindPortError(ErrorCode.NOT_FOUND, "domain not found: team-a")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Caller input errors
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Registry integrity
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"

    # Request lifecycle
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"

    # Collaborator errors
    SEARCH_INDEX_FAILED = "SEARCH_INDEX_FAILED"
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class MindPortError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# Specific exceptions for cleaner imports
class InvalidArgumentError(MindPortError):
    """Malformed caller input: bad domain id, bad pattern, bad limits."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INVALID_ARGUMENT, message, details)


class NotFoundError(MindPortError):
    """Unknown domain, resource, prompt or parent domain."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, details)


class ConflictError(MindPortError):
    """Duplicate ids or forbidden mutation of the default domain."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CONFLICT, message, details)


class InvariantViolationError(MindPortError):
    """Domain graph walk exceeded its depth bound or revisited a node."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INVARIANT_VIOLATION, message, details)


class DeadlineExceededError(MindPortError):
    """A request deadline fired during a scan."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.DEADLINE_EXCEEDED, message, details)


class SearchIndexError(MindPortError):
    """Full-text index collaborator failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_INDEX_FAILED, message, details)


class StorageError(MindPortError):
    """Resource/prompt store failures."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.STORAGE_READ_FAILED,
    ) -> None:
        super().__init__(code, message, details)
