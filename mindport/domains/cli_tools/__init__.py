"""
CLI Tools Domain - Unix search tool emulation.

This domain handles:
- grep (flat line scan)
- find (flat record filter)
- ripgrep (ranked query, grep-shaped output)
"""

from .contracts import ScanStrategy
from .models import (
    FindOptions,
    FindResult,
    GrepOptions,
    GrepResult,
    RipgrepOptions,
    ScanRecord,
    ScanRequest,
)
from .strategies import FlatScanStrategy, RankedQueryStrategy, check_deadline
from .tools import CLISearchTools, matches_size, parse_size_filter

__all__ = [
    "ScanStrategy",
    "FlatScanStrategy",
    "RankedQueryStrategy",
    "CLISearchTools",
    "GrepOptions",
    "GrepResult",
    "FindOptions",
    "FindResult",
    "RipgrepOptions",
    "ScanRecord",
    "ScanRequest",
    "check_deadline",
    "parse_size_filter",
    "matches_size",
]
