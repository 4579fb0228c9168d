"""
Tests for result post-processing.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from mindport.config.errors import InvalidArgumentError

from .models import RawHit, SearchQuerySpec, SearchResult, SortField, SortOrder
from .postprocess import (
    ELLIPSIS,
    apply_post_filters,
    build_stats,
    context_lines,
    count_matches,
    create_snippet,
    find_matching_lines,
    matches_pattern,
    shape,
    sort_results,
)

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _result(id: str, score: float = 1.0, **kwargs) -> SearchResult:
    return SearchResult(id=id, score=score, **kwargs)


# --- Snippets ---


def test_snippet_short_content_unchanged() -> None:
    assert create_snippet("short text", ["text"], 50) == "short text"


def test_snippet_contains_first_term() -> None:
    content = "a" * 300 + " needle " + "b" * 300

    snippet = create_snippet(content, ["needle"], 100)

    assert "needle" in snippet
    assert snippet.startswith(ELLIPSIS)
    assert snippet.endswith(ELLIPSIS)
    assert len(snippet) == 100 + 2 * len(ELLIPSIS)


def test_snippet_without_match_takes_head() -> None:
    content = "x" * 500

    assert create_snippet(content, ["missing"], 40) == "x" * 40 + ELLIPSIS


def test_snippet_negative_length_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        create_snippet("x" * 50 + "needle" + "y" * 50, ["needle"], -10)


def test_snippet_near_end_has_no_trailing_ellipsis() -> None:
    content = "y" * 500 + " tail"

    snippet = create_snippet(content, ["tail"], 50)

    assert snippet.endswith("tail")
    assert snippet.startswith(ELLIPSIS)


# --- Counts and lines ---


def test_count_matches_is_case_insensitive_substring() -> None:
    assert count_matches("Auth, auth and AUTHENTICATION", ["auth"]) == 3


def test_find_matching_lines() -> None:
    content = "first line\nSecond Token\nthird\ntoken again"

    assert find_matching_lines(content, ["token"]) == [2, 4]
    assert find_matching_lines(content, []) == []


def test_context_lines_clipped_at_edges() -> None:
    """Line 1 with 2 lines of context: no before, two after."""
    content = "one\ntwo\nthree\nfour"

    block = context_lines(content, [1], 2)

    assert [(c.line_number, c.kind) for c in block] == [
        (1, "match"),
        (2, "after"),
        (3, "after"),
    ]


def test_context_lines_asymmetric() -> None:
    content = "one\ntwo\nthree\nfour\nfive"

    block = context_lines(content, [3], 1, 2)

    assert [c.line_number for c in block] == [2, 3, 4, 5]
    assert [c.render() for c in block][:2] == ["2-  two", "3:  three"]


def test_context_lines_ignore_out_of_range() -> None:
    assert context_lines("only", [5], 1) == []


# --- Post-filters ---


@pytest.mark.parametrize(
    ("content", "pattern", "expected"),
    [
        ("error 42", r"\d+", True),
        ("no digits", r"\d+", False),
        ("literal (paren", "(paren", True),
        ("LITERAL (PAREN", "(paren", True),
    ],
)
def test_matches_pattern(content: str, pattern: str, expected: bool) -> None:
    assert matches_pattern(content, pattern) is expected


def test_apply_post_filters() -> None:
    results = [
        _result("a", 0.9, content="deploy to prod"),
        _result("b", 0.2, content="deploy to staging"),
        _result("c", 0.8, content="draft notes"),
    ]

    assert [r.id for r in apply_post_filters(results, min_score=0.5)] == ["a", "c"]
    assert [r.id for r in apply_post_filters(results, include=["deploy"])] == ["a", "b"]
    assert [r.id for r in apply_post_filters(results, exclude=["prod"])] == ["b", "c"]


# --- Sorting ---


def test_sort_natural_directions() -> None:
    results = [
        _result("old", 0.1, title="Beta", type="resource", updated_at=NOW - timedelta(days=1)),
        _result("new", 0.9, title="alpha", type="prompt", updated_at=NOW),
    ]

    assert [r.id for r in sort_results(results, SortField.SCORE)] == ["new", "old"]
    assert [r.id for r in sort_results(results, SortField.DATE)] == ["new", "old"]
    assert [r.id for r in sort_results(results, SortField.TYPE)] == ["new", "old"]
    assert [r.id for r in sort_results(results, "title")] == ["old", "new"]


def test_sort_explicit_order() -> None:
    results = [_result("low", 0.1), _result("high", 0.9)]

    assert [r.id for r in sort_results(results, SortField.SCORE, SortOrder.ASC)] == [
        "low",
        "high",
    ]
    assert [r.id for r in sort_results(results, "score", "desc")] == ["high", "low"]


def test_sort_is_stable() -> None:
    results = [_result("first", 0.5), _result("second", 0.5)]

    assert [r.id for r in sort_results(results, SortField.RELEVANCE)] == ["first", "second"]


# --- Shaping ---


def test_shape_builds_results() -> None:
    hits = [
        RawHit(
            id="team-a:abc",
            score=1.5,
            fields={
                "id": "abc",
                "domain": "team-a",
                "type": "resource",
                "content_type": "markdown",
                "title": "Login flow",
                "content": "intro\nlogin handler\nexit",
                "tags": ["auth"],
                "created_at": NOW,
                "updated_at": NOW,
            },
            highlights={"content": ["<mark>login</mark> handler"]},
        )
    ]

    results = shape(hits, SearchQuerySpec(query="Login", context_lines=1))

    result = results[0]
    assert result.id == "abc"
    assert result.domain == "team-a"
    assert result.content_type == "markdown"
    assert result.line_numbers == [2]
    assert result.match_count == 1
    assert result.field_matches == {"content": 1}
    assert result.highlights == ["<mark>login</mark> handler"]
    assert [c.line_number for c in result.context_lines] == [1, 2, 3]


def test_shape_applies_min_score_and_sort() -> None:
    hits = [
        RawHit(id="1", score=0.2, fields={"id": "1", "title": "b"}),
        RawHit(id="2", score=0.7, fields={"id": "2", "title": "c"}),
        RawHit(id="3", score=0.9, fields={"id": "3", "title": "a"}),
    ]
    spec = SearchQuerySpec(query="", min_score=0.5, sort_by=SortField.TITLE)

    assert [r.id for r in shape(hits, spec)] == ["3", "2"]


# --- Stats ---


def test_build_stats() -> None:
    results = [
        _result("a", 0.25, type="resource", tags=["auth"], field_matches={"title": 1}),
        _result("b", 0.27, type="resource", tags=["auth", "api"]),
        _result("c", 0.91, type="prompt"),
    ]

    stats = build_stats(results, 12.3456)

    assert stats.total_results == 3
    assert stats.type_breakdown == {"resource": 2, "prompt": 1}
    assert stats.tag_breakdown == {"auth": 2, "api": 1}
    assert stats.score_distribution == {"0.2-0.3": 2, "0.9-1.0": 1}
    assert stats.field_matches == {"title": 1}
    assert stats.search_time_ms == 12.346


@pytest.mark.parametrize("field", ["snippet_length", "context_lines", "min_score"])
def test_spec_rejects_negative_shaping_values(field: str) -> None:
    with pytest.raises(ValidationError):
        SearchQuerySpec(query="x", **{field: -1})


def test_spec_reads_naive_dates_as_utc() -> None:
    spec = SearchQuerySpec(query="x", created_after=datetime(2020, 1, 1))

    assert spec.created_after == datetime(2020, 1, 1, tzinfo=timezone.utc)
