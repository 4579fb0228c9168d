"""
CLI Tool Contracts - Interfaces for scan strategies.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from .models import ScanRecord, ScanRequest


@runtime_checkable
class ScanStrategy(Protocol):
    """Contract for reading candidate documents for a CLI tool."""

    def scan(self, request: ScanRequest) -> AsyncIterator[ScanRecord]:
        """Yield candidate records for the request's scope."""
        ...
