"""
CLI Interface - Command-line tools for MindPort.

Provides commands for:
- Search and grep over the local store
- Domain listing
- Shorthand token decoding
- Running the API server
"""

from .main import app, main

__all__ = ["app", "main"]
