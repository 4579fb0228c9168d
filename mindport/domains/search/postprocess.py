"""
Result Post-Processor - Raw index hits to shaped, CLI-friendly results.

Features:
- Snippets centered on the earliest query-term occurrence
- Substring match counts, matching line numbers, tagged context lines
- Post-filters the index cannot express (min score, include/exclude patterns)
- Stable multi-key sorting and per-response statistics

All functions are pure.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from mindport.config.errors import InvalidArgumentError

from .models import (
    ContextLine,
    RawHit,
    SearchQuerySpec,
    SearchResult,
    SearchStats,
    SortField,
    SortOrder,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ELLIPSIS",
    "query_terms",
    "create_snippet",
    "count_matches",
    "find_matching_lines",
    "context_lines",
    "matches_pattern",
    "apply_post_filters",
    "sort_results",
    "shape",
    "build_stats",
]

ELLIPSIS = "..."
DEFAULT_SNIPPET_LENGTH = 200

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def query_terms(query: str) -> list[str]:
    """Lower-cased whitespace-separated terms of raw query text."""
    return query.lower().split()


def create_snippet(content: str, terms: Iterable[str], max_length: int) -> str:
    """
    Window of ``max_length`` characters around the earliest term occurrence.

    Args:
        content: Full text
        terms: Lower-cased query terms
        max_length: Window size in characters

    Returns:
        Content unchanged when short enough, else the window with ``...``
        marking each cut side. With no occurrence the head of the content
        is returned.
    """
    if max_length < 0:
        raise InvalidArgumentError(
            f"snippet length must be non-negative: {max_length}", {"max_length": max_length}
        )
    if len(content) <= max_length:
        return content

    lowered = content.lower()
    positions = [pos for pos in (lowered.find(t) for t in terms if t) if pos >= 0]
    if not positions:
        return content[:max_length] + ELLIPSIS

    start = max(0, min(positions) - max_length // 4)
    end = start + max_length
    if end > len(content):
        end = len(content)
        start = max(0, end - max_length)

    snippet = content[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(content):
        snippet = snippet + ELLIPSIS
    return snippet


def count_matches(content: str, terms: Iterable[str]) -> int:
    """Sum of case-insensitive substring occurrences of every term."""
    lowered = content.lower()
    return sum(lowered.count(t) for t in terms if t)


def find_matching_lines(content: str, terms: Iterable[str]) -> list[int]:
    """1-based numbers of lines containing any term, case-insensitively."""
    terms = [t for t in terms if t]
    if not terms:
        return []
    return [
        number
        for number, line in enumerate(content.split("\n"), start=1)
        if any(t in line.lower() for t in terms)
    ]


def context_lines(
    content: str,
    line_numbers: Iterable[int],
    before: int,
    after: int | None = None,
) -> list[ContextLine]:
    """
    Context block for each matching line, clipped to the content.

    Windows are emitted per match, so overlapping windows repeat lines
    exactly as grep does without separators.
    """
    after = before if after is None else after
    lines = content.split("\n")
    block: list[ContextLine] = []

    for number in line_numbers:
        index = number - 1
        if not 0 <= index < len(lines):
            continue
        for i in range(max(0, index - before), index):
            block.append(ContextLine(line_number=i + 1, text=lines[i], kind="before"))
        block.append(ContextLine(line_number=number, text=lines[index], kind="match"))
        for i in range(index + 1, min(len(lines), index + 1 + after)):
            block.append(ContextLine(line_number=i + 1, text=lines[i], kind="after"))

    return block


def matches_pattern(content: str, pattern: str) -> bool:
    """Regex search, degrading to case-insensitive substring on a bad pattern."""
    try:
        return re.search(pattern, content) is not None
    except re.error:
        logger.debug("Pattern %r is not a valid regex, using substring match", pattern)
        return pattern.lower() in content.lower()


def apply_post_filters(
    results: list[SearchResult],
    min_score: float | None = None,
    include: list[str] | None = None,
    exclude: list[str] | None = None,
) -> list[SearchResult]:
    filtered = []
    for result in results:
        if min_score and result.score < min_score:
            continue
        if include and not any(matches_pattern(result.content, p) for p in include):
            continue
        if exclude and any(matches_pattern(result.content, p) for p in exclude):
            continue
        filtered.append(result)
    return filtered


# Natural direction per field: True means descending
_SORT_KEYS: dict[SortField, tuple[Any, bool]] = {
    SortField.RELEVANCE: (lambda r: r.score, True),
    SortField.SCORE: (lambda r: r.score, True),
    SortField.DATE: (lambda r: r.updated_at or _EPOCH, True),
    SortField.UPDATED: (lambda r: r.updated_at or _EPOCH, True),
    SortField.CREATED: (lambda r: r.created_at or _EPOCH, True),
    SortField.TITLE: (lambda r: r.title, False),
    SortField.TYPE: (lambda r: r.type, False),
}


def sort_results(
    results: list[SearchResult],
    sort_by: SortField | str = SortField.RELEVANCE,
    sort_order: SortOrder | str | None = None,
) -> list[SearchResult]:
    """
    Stable sort.

    Without ``sort_order`` each field uses its natural direction: highest
    score and newest dates first, titles and types alphabetical.
    """
    key, descending = _SORT_KEYS[SortField(sort_by)]
    if sort_order is not None:
        descending = SortOrder(sort_order) is SortOrder.DESC
    return sorted(results, key=key, reverse=descending)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def _shape_hit(hit: RawHit, spec: SearchQuerySpec, terms: list[str]) -> SearchResult:
    fields = hit.fields
    content = fields.get("content") or ""
    snippet_length = spec.snippet_length or DEFAULT_SNIPPET_LENGTH

    highlights: list[str] = []
    field_matches: dict[str, int] = {}
    for field, fragments in hit.highlights.items():
        highlights.extend(fragments)
        field_matches[field] = len(fragments)

    line_numbers = find_matching_lines(content, terms)
    return SearchResult(
        id=fields.get("id", hit.id),
        domain=fields.get("domain") or "default",
        score=hit.score,
        type=fields.get("type") or "",
        content_type=fields.get("content_type") or "",
        title=fields.get("title") or "",
        content=content,
        snippet=create_snippet(content, terms, snippet_length),
        highlights=highlights,
        tags=_as_list(fields.get("tags")),
        metadata=fields.get("metadata") or {},
        field_matches=field_matches,
        line_numbers=line_numbers,
        context_lines=(
            context_lines(content, line_numbers, spec.context_lines)
            if spec.context_lines > 0
            else []
        ),
        match_count=count_matches(content, terms),
        created_at=fields.get("created_at"),
        updated_at=fields.get("updated_at"),
    )


def shape(hits: list[RawHit], spec: SearchQuerySpec) -> list[SearchResult]:
    """
    Turn raw hits into filtered, sorted SearchResults.

    Args:
        hits: Ranked hits from the index
        spec: The query that produced them

    Returns:
        Shaped results after post-filters and sorting
    """
    terms = query_terms(spec.query)
    results = [_shape_hit(hit, spec, terms) for hit in hits]
    results = apply_post_filters(
        results, spec.min_score, spec.include_patterns, spec.exclude_patterns
    )
    if spec.sort_by is not None:
        results = sort_results(results, spec.sort_by, spec.sort_order)
    return results


def _score_bucket(score: float) -> str:
    low = int(score * 10)
    return f"{low / 10:.1f}-{(low + 1) / 10:.1f}"


def build_stats(results: list[SearchResult], elapsed_ms: float) -> SearchStats:
    """Type, tag, score-bucket and highlighted-field breakdowns."""
    types: Counter[str] = Counter()
    tags: Counter[str] = Counter()
    buckets: Counter[str] = Counter()
    fields: Counter[str] = Counter()

    for result in results:
        if result.type:
            types[result.type] += 1
        tags.update(result.tags)
        buckets[_score_bucket(result.score)] += 1
        fields.update(result.field_matches.keys())

    return SearchStats(
        total_results=len(results),
        search_time_ms=round(elapsed_ms, 3),
        type_breakdown=dict(types),
        tag_breakdown=dict(tags),
        score_distribution=dict(buckets),
        field_matches=dict(fields),
    )
