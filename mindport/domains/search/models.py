"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from mindport.domains.registry.models import DEFAULT_DOMAIN


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def content_id(*parts: str) -> str:
    """Stable local ID: first 8 bytes of a BLAKE2b-256 digest, hex encoded."""
    digest = hashlib.blake2b("".join(parts).encode("utf-8"), digest_size=32).digest()
    return digest[:8].hex()


class SearchMode(str, Enum):
    """How query text is interpreted."""

    SMART = "smart"
    EXACT = "exact"
    FUZZY = "fuzzy"
    REGEX = "regex"
    WILDCARD = "wildcard"
    SEMANTIC = "semantic"


class SortField(str, Enum):
    RELEVANCE = "relevance"
    SCORE = "score"
    DATE = "date"
    UPDATED = "updated"
    CREATED = "created"
    TITLE = "title"
    TYPE = "type"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# --- Stored records ---


class Resource(BaseModel):
    """A short document stored inside a domain."""

    id: str = ""
    domain: str = DEFAULT_DOMAIN
    type: str = "text"
    title: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    search_terms: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))


class Prompt(BaseModel):
    """A templated prompt stored inside a domain."""

    id: str = ""
    domain: str = DEFAULT_DOMAIN
    name: str
    description: str = ""
    template: str
    variables: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def size(self) -> int:
        return len(self.template.encode("utf-8"))


# --- Queries ---


class SearchQuerySpec(BaseModel):
    """
    Structured search request.

    ``limit`` 0 means "use the configured default"; ``sort_order`` None
    keeps each sort field's natural direction.
    """

    query: str = ""
    mode: SearchMode = SearchMode.SMART
    case_sensitive: bool = False
    whole_words: bool = False

    # Filters
    type_filter: str | None = None
    content_type: str | None = None
    tags: list[str] = Field(default_factory=list)
    domains: list[str] = Field(default_factory=list)
    fields: list[str] = Field(default_factory=list)
    min_score: float | None = Field(default=None, ge=0)
    created_after: datetime | None = None
    created_before: datetime | None = None
    updated_after: datetime | None = None
    updated_before: datetime | None = None

    # Paging and ordering
    limit: int = 0
    offset: int = 0
    sort_by: SortField | None = None
    sort_order: SortOrder | None = None

    # Shaping
    highlight: bool = False
    snippet_length: int = Field(default=0, ge=0)
    include_patterns: list[str] = Field(default_factory=list)
    exclude_patterns: list[str] = Field(default_factory=list)
    context_lines: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @field_validator(
        "created_after", "created_before", "updated_after", "updated_before"
    )
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        """Timestamps without an offset are read as UTC."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class RawHit(BaseModel):
    """Ranked hit as returned by the index."""

    id: str
    score: float
    fields: dict[str, Any] = Field(default_factory=dict)
    highlights: dict[str, list[str]] = Field(default_factory=dict)


# --- Results ---


class ContextLine(BaseModel):
    """One line of a context block around a match."""

    line_number: int
    text: str
    kind: Literal["before", "match", "after"]

    def render(self) -> str:
        """grep-style rendering: ``N:  text`` for matches, ``N-  text`` otherwise."""
        marker = ":" if self.kind == "match" else "-"
        return f"{self.line_number}{marker}  {self.text}"


class SearchResult(BaseModel):
    """Shaped search hit."""

    id: str
    domain: str = DEFAULT_DOMAIN
    score: float = 0.0
    type: str = ""
    content_type: str = ""
    title: str = ""
    content: str = ""
    snippet: str = ""
    highlights: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    field_matches: dict[str, int] = Field(default_factory=dict)
    line_numbers: list[int] = Field(default_factory=list)
    context_lines: list[ContextLine] = Field(default_factory=list)
    match_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SearchStats(BaseModel):
    """Aggregate view over one result set."""

    total_results: int = 0
    search_time_ms: float = 0.0
    type_breakdown: dict[str, int] = Field(default_factory=dict)
    tag_breakdown: dict[str, int] = Field(default_factory=dict)
    score_distribution: dict[str, int] = Field(default_factory=dict)
    field_matches: dict[str, int] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """Results plus statistics."""

    results: list[SearchResult] = Field(default_factory=list)
    stats: SearchStats = Field(default_factory=SearchStats)
