"""
Tests for the query compiler.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mindport.config.errors import InvalidArgumentError

from .compiler import FIELD_BOOSTS, QueryCompiler, detect_mode
from .models import SearchMode, SearchQuerySpec
from .query import (
    ConjunctionQuery,
    DateRangeQuery,
    DisjunctionQuery,
    FuzzyQuery,
    MatchAllQuery,
    MatchQuery,
    PhraseQuery,
    RegexQuery,
    TermQuery,
    TermsQuery,
    WildcardQuery,
)


@pytest.fixture
def compiler() -> QueryCompiler:
    return QueryCompiler(default_limit=20, max_limit=100)


# --- Mode detection ---


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("foo*bar", SearchMode.WILDCARD),
        ("find foo*bar in all docs", SearchMode.WILDCARD),
        ("/err(or)?s/", SearchMode.WILDCARD),
        ("fo?", SearchMode.WILDCARD),
        ("/^error/", SearchMode.REGEX),
        ("authentication~", SearchMode.FUZZY),
        ("how do tokens expire here", SearchMode.SEMANTIC),
        ("three word query", SearchMode.SMART),
        ("login", SearchMode.SMART),
        ("/", SearchMode.SMART),
    ],
)
def test_detect_mode(text: str, expected: SearchMode) -> None:
    assert detect_mode(text) is expected


def test_smart_wildcard_compiles_to_wildcard(compiler: QueryCompiler) -> None:
    """Glob characters win, whatever else the text contains."""
    compiled = compiler.compile(SearchQuerySpec(query="foo*bar"))

    assert isinstance(compiled.query, WildcardQuery)
    assert compiled.query.pattern == "foo*bar"

    long_query = compiler.compile(SearchQuerySpec(query="find foo*bar in all docs"))
    assert isinstance(long_query.query, WildcardQuery)


def test_explicit_mode_skips_detection(compiler: QueryCompiler) -> None:
    compiled = compiler.compile(SearchQuerySpec(query="foo*bar", mode=SearchMode.EXACT))

    assert isinstance(compiled.query, PhraseQuery)


# --- Builders ---


def test_multi_field_boosts(compiler: QueryCompiler) -> None:
    """Title outranks tags, tags outrank search terms, content is lowest."""
    compiled = compiler.compile(SearchQuerySpec(query="Login"))

    query = compiled.query
    assert isinstance(query, DisjunctionQuery)
    boosts = {q.fields[0]: q.boost for q in query.queries}
    assert boosts == FIELD_BOOSTS
    assert boosts["title"] > boosts["tags"] > boosts["search_terms"] > boosts["content"]
    assert all(q.text == "login" for q in query.queries)


def test_case_sensitive_keeps_text(compiler: QueryCompiler) -> None:
    compiled = compiler.compile(SearchQuerySpec(query="Login", case_sensitive=True))

    assert all(q.text == "Login" for q in compiled.query.queries)


def test_fuzzy_strips_marker(compiler: QueryCompiler) -> None:
    compiled = compiler.compile(SearchQuerySpec(query="authentcation~"))

    assert isinstance(compiled.query, FuzzyQuery)
    assert compiled.query.text == "authentcation"


def test_regex_strips_delimiters(compiler: QueryCompiler) -> None:
    compiled = compiler.compile(SearchQuerySpec(query="/err(or)+s/"))

    assert isinstance(compiled.query, RegexQuery)
    assert compiled.query.pattern == "err(or)+s"
    assert compiled.query.case_sensitive is False


def test_regex_whole_words(compiler: QueryCompiler) -> None:
    spec = SearchQuerySpec(query="tok.n", mode=SearchMode.REGEX, whole_words=True)

    compiled = compiler.compile(spec)

    assert compiled.query.pattern == r"\b(?:tok.n)\b"


def test_invalid_regex_rejected(compiler: QueryCompiler) -> None:
    with pytest.raises(InvalidArgumentError) as exc_info:
        compiler.compile(SearchQuerySpec(query="(unclosed", mode=SearchMode.REGEX))

    assert "pattern" in exc_info.value.details


def test_semantic_minimum_match(compiler: QueryCompiler) -> None:
    """Each word becomes exact + fuzzy; at least floor(n/2) words must match."""
    compiled = compiler.compile(SearchQuerySpec(query="how do tokens expire here"))

    query = compiled.query
    assert isinstance(query, DisjunctionQuery)
    assert len(query.queries) == 5
    assert query.min == 2

    exact, fuzzy = query.queries[0].queries
    assert isinstance(exact, MatchQuery) and exact.boost == 2.0
    assert isinstance(fuzzy, FuzzyQuery) and fuzzy.boost == 0.5


def test_semantic_single_word_has_no_minimum(compiler: QueryCompiler) -> None:
    compiled = compiler.compile(SearchQuerySpec(query="tokens", mode=SearchMode.SEMANTIC))

    assert compiled.query.min == 0


def test_empty_query_matches_all(compiler: QueryCompiler) -> None:
    compiled = compiler.compile(SearchQuerySpec(query="   "))

    assert isinstance(compiled.query, MatchAllQuery)


# --- Fields ---


def test_field_restriction(compiler: QueryCompiler) -> None:
    compiled = compiler.compile(SearchQuerySpec(query="x", fields=["title", "title"]))

    assert [q.fields for q in compiled.query.queries] == [["title"]]


def test_unknown_field_rejected(compiler: QueryCompiler) -> None:
    with pytest.raises(InvalidArgumentError):
        compiler.compile(SearchQuerySpec(query="x", fields=["body"]))


# --- Filters ---


def test_filters_are_conjoined(compiler: QueryCompiler) -> None:
    after = datetime(2024, 1, 1, tzinfo=timezone.utc)
    spec = SearchQuerySpec(
        query="login",
        type_filter="prompt",
        content_type="markdown",
        tags=["Auth", "security"],
        created_after=after,
        updated_before=after,
    )

    compiled = compiler.compile(spec, scope=["team-a", "team-a-backend"])

    query = compiled.query
    assert isinstance(query, ConjunctionQuery)
    base, *filters = query.queries
    assert isinstance(base, DisjunctionQuery)
    assert filters[0] == TermQuery(field="type", value="prompt")
    assert filters[1] == TermQuery(field="content_type", value="markdown")
    assert [q.text for q in filters[2].queries] == ["auth", "security"]
    assert filters[3] == TermsQuery(field="domain", values=["team-a", "team-a-backend"])
    assert filters[4] == DateRangeQuery(field="created_at", start=after)
    assert filters[5] == DateRangeQuery(field="updated_at", end=after)


def test_no_filters_no_conjunction(compiler: QueryCompiler) -> None:
    compiled = compiler.compile(SearchQuerySpec(query="login"))

    assert isinstance(compiled.query, DisjunctionQuery)


def test_empty_scope_still_filters(compiler: QueryCompiler) -> None:
    """An empty scope must match nothing, not everything."""
    compiled = compiler.compile(SearchQuerySpec(query="login"), scope=[])

    assert compiled.query.queries[-1] == TermsQuery(field="domain", values=[])


# --- Paging ---


def test_limit_defaults_and_clamps(compiler: QueryCompiler) -> None:
    assert compiler.compile(SearchQuerySpec(query="x")).limit == 20
    assert compiler.compile(SearchQuerySpec(query="x", limit=5000)).limit == 100
    assert compiler.compile(SearchQuerySpec(query="x", limit=7, offset=3)).offset == 3


def test_negative_paging_rejected(compiler: QueryCompiler) -> None:
    with pytest.raises(InvalidArgumentError):
        compiler.compile(SearchQuerySpec(query="x", limit=-1))
    with pytest.raises(InvalidArgumentError):
        compiler.compile(SearchQuerySpec(query="x", offset=-1))


def test_highlight_flag_passes_through(compiler: QueryCompiler) -> None:
    assert compiler.compile(SearchQuerySpec(query="x", highlight=True)).highlight is True
