"""
Query Compiler - SearchQuerySpec to executable query tree.

Features:
- Mode dispatch table with smart auto-detection
- Multi-field boosted default query (title > tags ~ search_terms > content)
- Semantic mode: per-term exact + fuzzy union with a minimum-match floor
- Type / content-type / tag / domain / date filters ANDed onto the base
- Limit clamping and offset validation before any index call
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING

from mindport.config.errors import InvalidArgumentError

from .models import SearchMode, SearchQuerySpec
from .query import (
    CompiledQuery,
    ConjunctionQuery,
    DateRangeQuery,
    DisjunctionQuery,
    FuzzyQuery,
    MatchAllQuery,
    MatchQuery,
    PhraseQuery,
    QueryNode,
    RegexQuery,
    TermQuery,
    TermsQuery,
    WildcardQuery,
)

if TYPE_CHECKING:
    from mindport.config import Settings

logger = logging.getLogger(__name__)

__all__ = ["QueryCompiler", "FIELD_BOOSTS", "detect_mode", "strip_regex_delimiters"]

# Relative ordering matters, not the exact numbers
FIELD_BOOSTS: dict[str, float] = {
    "title": 5.0,
    "tags": 3.0,
    "search_terms": 2.5,
    "content": 2.0,
}

SEMANTIC_EXACT_BOOST = 2.0
SEMANTIC_FUZZY_BOOST = 0.5
SEMANTIC_WORD_THRESHOLD = 3


def detect_mode(text: str) -> SearchMode:
    """
    Pick a concrete mode for smart queries.

    Checked in order: glob characters, ``/.../`` delimiters, a trailing
    ``~``, more than three words. Anything else stays ``SMART`` and gets
    the multi-field boosted query.
    """
    if "*" in text or "?" in text:
        return SearchMode.WILDCARD
    if len(text) > 1 and text.startswith("/") and text.endswith("/"):
        return SearchMode.REGEX
    if text.endswith("~"):
        return SearchMode.FUZZY
    if len(text.split()) > SEMANTIC_WORD_THRESHOLD:
        return SearchMode.SEMANTIC
    return SearchMode.SMART


def strip_regex_delimiters(text: str) -> str:
    if len(text) > 1 and text.startswith("/") and text.endswith("/"):
        return text[1:-1]
    return text


def _normalize(text: str, spec: SearchQuerySpec) -> str:
    return text if spec.case_sensitive else text.lower()


# --- Mode builders ---


def _build_multi_field(text: str, spec: SearchQuerySpec, fields: list[str]) -> QueryNode:
    text = _normalize(text, spec)
    return DisjunctionQuery(
        queries=[
            MatchQuery(text=text, fields=[field], boost=FIELD_BOOSTS[field])
            for field in fields
        ]
    )


def _build_exact(text: str, spec: SearchQuerySpec, fields: list[str]) -> QueryNode:
    return PhraseQuery(text=_normalize(text, spec), fields=fields)


def _build_fuzzy(text: str, spec: SearchQuerySpec, fields: list[str]) -> QueryNode:
    return FuzzyQuery(text=_normalize(text.rstrip("~"), spec), fields=fields)


def _build_regex(text: str, spec: SearchQuerySpec, fields: list[str]) -> QueryNode:
    pattern = strip_regex_delimiters(text)
    if spec.whole_words:
        pattern = rf"\b(?:{pattern})\b"
    flags = 0 if spec.case_sensitive else re.IGNORECASE
    try:
        re.compile(pattern, flags)
    except re.error as exc:
        raise InvalidArgumentError(
            f"invalid regex pattern {pattern!r}: {exc}",
            {"pattern": pattern, "cause": str(exc)},
        ) from exc
    return RegexQuery(pattern=pattern, case_sensitive=spec.case_sensitive, fields=fields)


def _build_wildcard(text: str, spec: SearchQuerySpec, fields: list[str]) -> QueryNode:
    return WildcardQuery(pattern=text, case_sensitive=spec.case_sensitive, fields=fields)


def _build_semantic(text: str, spec: SearchQuerySpec, fields: list[str]) -> QueryNode:
    words = _normalize(text, spec).split()
    per_word = [
        DisjunctionQuery(
            queries=[
                MatchQuery(text=word, fields=fields, boost=SEMANTIC_EXACT_BOOST),
                FuzzyQuery(text=word, fields=fields, boost=SEMANTIC_FUZZY_BOOST),
            ]
        )
        for word in words
    ]
    # floor(n/2): a single word yields min=0, i.e. no minimum
    return DisjunctionQuery(queries=per_word, min=len(words) // 2)


_Builder = Callable[[str, SearchQuerySpec, list[str]], QueryNode]

_BUILDERS: dict[SearchMode, _Builder] = {
    SearchMode.SMART: _build_multi_field,
    SearchMode.EXACT: _build_exact,
    SearchMode.FUZZY: _build_fuzzy,
    SearchMode.REGEX: _build_regex,
    SearchMode.WILDCARD: _build_wildcard,
    SearchMode.SEMANTIC: _build_semantic,
}


class QueryCompiler:
    """
    Compiles structured queries into index query trees.

    Pure: holds only limits, safe to share across concurrent requests.

    Example:
        >>> compiler = QueryCompiler()
        >>> compiled = compiler.compile(SearchQuerySpec(query="foo*bar"))
        >>> compiled.query.kind
        'wildcard'
    """

    def __init__(self, default_limit: int = 20, max_limit: int = 1000) -> None:
        self.default_limit = default_limit
        self.max_limit = max_limit

    @classmethod
    def from_settings(cls, settings: Settings) -> QueryCompiler:
        return cls(
            default_limit=settings.search_default_limit,
            max_limit=settings.search_max_limit,
        )

    def resolve_mode(self, spec: SearchQuerySpec) -> SearchMode:
        """Concrete mode for a spec; SMART means the multi-field query."""
        if spec.mode is SearchMode.SMART:
            return detect_mode(spec.query)
        return spec.mode

    def compile(
        self,
        spec: SearchQuerySpec,
        scope: list[str] | None = None,
    ) -> CompiledQuery:
        """
        Build the executable query for a spec.

        Args:
            spec: Structured query
            scope: Domain IDs the query is restricted to (None = unrestricted)

        Returns:
            CompiledQuery with clamped limit

        Raises:
            InvalidArgumentError: Negative paging, unknown field, bad regex
        """
        limit, offset = self._paging(spec)
        fields = self._fields(spec)

        text = spec.query.strip()
        if text:
            mode = self.resolve_mode(spec)
            base = _BUILDERS[mode](text, spec, fields)
        else:
            mode = None
            base = MatchAllQuery()

        filters = self._filters(spec, scope)
        query = ConjunctionQuery(queries=[base, *filters]) if filters else base

        logger.debug(
            "Compiled query: mode=%s filters=%d limit=%d offset=%d",
            mode.value if mode else "match_all",
            len(filters),
            limit,
            offset,
        )
        return CompiledQuery(query=query, limit=limit, offset=offset, highlight=spec.highlight)

    def clamp_limit(self, limit: int) -> int:
        if limit < 0:
            raise InvalidArgumentError(f"limit must be non-negative, got {limit}", {"limit": limit})
        if limit == 0:
            limit = self.default_limit
        return max(1, min(limit, self.max_limit))

    def _paging(self, spec: SearchQuerySpec) -> tuple[int, int]:
        if spec.offset < 0:
            raise InvalidArgumentError(
                f"offset must be non-negative, got {spec.offset}", {"offset": spec.offset}
            )
        return self.clamp_limit(spec.limit), spec.offset

    def _fields(self, spec: SearchQuerySpec) -> list[str]:
        if not spec.fields:
            return list(FIELD_BOOSTS)
        unknown = [f for f in spec.fields if f not in FIELD_BOOSTS]
        if unknown:
            raise InvalidArgumentError(
                f"unknown search field(s): {', '.join(unknown)}",
                {"fields": unknown, "allowed": list(FIELD_BOOSTS)},
            )
        return list(dict.fromkeys(spec.fields))

    def _filters(self, spec: SearchQuerySpec, scope: list[str] | None) -> list[QueryNode]:
        filters: list[QueryNode] = []

        if spec.type_filter:
            filters.append(TermQuery(field="type", value=spec.type_filter))
        if spec.content_type:
            filters.append(TermQuery(field="content_type", value=spec.content_type))
        if spec.tags:
            filters.append(
                DisjunctionQuery(
                    queries=[MatchQuery(text=tag.lower(), fields=["tags"]) for tag in spec.tags]
                )
            )
        if scope is not None:
            filters.append(TermsQuery(field="domain", values=list(scope)))
        if spec.created_after or spec.created_before:
            filters.append(
                DateRangeQuery(
                    field="created_at", start=spec.created_after, end=spec.created_before
                )
            )
        if spec.updated_after or spec.updated_before:
            filters.append(
                DateRangeQuery(
                    field="updated_at", start=spec.updated_after, end=spec.updated_before
                )
            )

        return filters
