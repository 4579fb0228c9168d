"""
Executable Query - Tree of query nodes understood by the index adapter.

Leaf nodes match text or keyword fields; ``DisjunctionQuery`` and
``ConjunctionQuery`` combine them. All nodes are immutable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, SerializeAsAny

__all__ = [
    "QueryNode",
    "MatchAllQuery",
    "MatchQuery",
    "PhraseQuery",
    "FuzzyQuery",
    "RegexQuery",
    "WildcardQuery",
    "TermQuery",
    "TermsQuery",
    "DateRangeQuery",
    "DisjunctionQuery",
    "ConjunctionQuery",
    "CompiledQuery",
]


class QueryNode(BaseModel):
    """Base for all query nodes."""

    boost: float = 1.0

    model_config = {"frozen": True}


class MatchAllQuery(QueryNode):
    kind: Literal["match_all"] = "match_all"


class MatchQuery(QueryNode):
    """Any analyzed token of ``text`` in any of ``fields`` (all text fields if empty)."""

    kind: Literal["match"] = "match"
    text: str
    fields: list[str] = Field(default_factory=list)


class PhraseQuery(QueryNode):
    """Tokens of ``text`` in consecutive positions."""

    kind: Literal["phrase"] = "phrase"
    text: str
    fields: list[str] = Field(default_factory=list)


class FuzzyQuery(QueryNode):
    """Tokens within ``fuzziness`` edits of a token of ``text``."""

    kind: Literal["fuzzy"] = "fuzzy"
    text: str
    fuzziness: int = 1
    fields: list[str] = Field(default_factory=list)


class RegexQuery(QueryNode):
    kind: Literal["regex"] = "regex"
    pattern: str
    case_sensitive: bool = False
    fields: list[str] = Field(default_factory=list)


class WildcardQuery(QueryNode):
    """Glob pattern: ``*`` any run of characters, ``?`` exactly one."""

    kind: Literal["wildcard"] = "wildcard"
    pattern: str
    case_sensitive: bool = False
    fields: list[str] = Field(default_factory=list)


class TermQuery(QueryNode):
    """Exact keyword match; list fields match on any element."""

    kind: Literal["term"] = "term"
    field: str
    value: str


class TermsQuery(QueryNode):
    kind: Literal["terms"] = "terms"
    field: str
    values: list[str]


class DateRangeQuery(QueryNode):
    """Inclusive range on a datetime field; open ends are None."""

    kind: Literal["date_range"] = "date_range"
    field: str
    start: datetime | None = None
    end: datetime | None = None


class DisjunctionQuery(QueryNode):
    """Union of sub-queries; at least ``min`` must match (0 means any)."""

    kind: Literal["disjunction"] = "disjunction"
    queries: list[SerializeAsAny[QueryNode]]
    min: int = 0


class ConjunctionQuery(QueryNode):
    kind: Literal["conjunction"] = "conjunction"
    queries: list[SerializeAsAny[QueryNode]]


class CompiledQuery(BaseModel):
    """Query tree plus paging, ready for ``SearchIndex.execute``."""

    query: SerializeAsAny[QueryNode]
    limit: int
    offset: int = 0
    highlight: bool = False

    model_config = {"frozen": True}
