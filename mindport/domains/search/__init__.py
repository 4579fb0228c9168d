"""
Search Domain - Query compilation and result shaping.

This domain handles:
- Structured query models and executable query trees
- Mode auto-detection and multi-field boosting
- Snippets, match counts, line numbers and context lines
- Post-filters, sorting and search statistics
"""

from . import postprocess
from .compiler import FIELD_BOOSTS, QueryCompiler, detect_mode
from .contracts import DocumentStore, SearchIndex
from .models import (
    ContextLine,
    Prompt,
    RawHit,
    Resource,
    SearchMode,
    SearchQuerySpec,
    SearchResponse,
    SearchResult,
    SearchStats,
    SortField,
    SortOrder,
    content_id,
)
from .query import CompiledQuery, QueryNode

__all__ = [
    # Contracts
    "SearchIndex",
    "DocumentStore",
    # Models
    "Resource",
    "Prompt",
    "SearchMode",
    "SortField",
    "SortOrder",
    "SearchQuerySpec",
    "RawHit",
    "ContextLine",
    "SearchResult",
    "SearchStats",
    "SearchResponse",
    "content_id",
    # Compiler
    "QueryCompiler",
    "CompiledQuery",
    "QueryNode",
    "FIELD_BOOSTS",
    "detect_mode",
    "postprocess",
]
