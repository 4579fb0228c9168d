"""
Memory Index - In-process full-text index over resources and prompts.

Features:
- Lower-cased word tokenization with per-field positions
- TF-IDF style scoring multiplied by node boosts
- Fuzzy token matching via rapidfuzz Levenshtein distance
- Regex / wildcard matching on raw field text
- Native ``<mark>`` highlighting for title and content
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from rapidfuzz.distance import Levenshtein

from mindport.config.errors import SearchIndexError
from mindport.domains.search.models import RawHit
from mindport.domains.search.query import (
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

logger = logging.getLogger(__name__)

__all__ = ["MemoryIndex", "tokenize", "glob_to_regex"]

TEXT_FIELDS = ("title", "content", "tags", "search_terms")
HIGHLIGHT_FIELDS = ("title", "content")
MAX_FRAGMENTS = 3
FRAGMENT_RADIUS = 40

_TOKEN_RE = re.compile(r"\w+")

Scores = dict[str, float]


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def glob_to_regex(pattern: str) -> str:
    """``*`` -> ``.*``, ``?`` -> ``.``, everything else literal."""
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return " ".join(str(v) for v in value)


@dataclass
class _Document:
    doc_id: str
    fields: dict[str, Any]
    text: dict[str, str] = field(default_factory=dict)
    tokens: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def build(cls, doc_id: str, fields: dict[str, Any]) -> _Document:
        doc = cls(doc_id=doc_id, fields=dict(fields))
        for name in TEXT_FIELDS:
            doc.text[name] = _field_text(fields.get(name))
            doc.tokens[name] = tokenize(doc.text[name])
        return doc

    def keyword(self, name: str) -> list[str]:
        value = self.fields.get(name)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]


class MemoryIndex:
    """
    In-memory inverted index implementing the ``SearchIndex`` contract.

    Example:
        >>> index = MemoryIndex()
        >>> await index.index_document("::a1", {"title": "Auth", "content": "login flow"})
        >>> hits = await index.execute(CompiledQuery(query=MatchQuery(text="login"), limit=10))
    """

    def __init__(self) -> None:
        self._docs: dict[str, _Document] = {}
        self._df: dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._evaluators: dict[type[QueryNode], Callable[[Any], Scores]] = {
            MatchAllQuery: self._eval_match_all,
            MatchQuery: self._eval_match,
            PhraseQuery: self._eval_phrase,
            FuzzyQuery: self._eval_fuzzy,
            RegexQuery: self._eval_regex,
            WildcardQuery: self._eval_wildcard,
            TermQuery: self._eval_term,
            TermsQuery: self._eval_terms,
            DateRangeQuery: self._eval_date_range,
            DisjunctionQuery: self._eval_disjunction,
            ConjunctionQuery: self._eval_conjunction,
        }

    @property
    def size(self) -> int:
        return len(self._docs)

    # --- Writes ---

    async def index_document(self, doc_id: str, fields: dict[str, Any]) -> None:
        """Index a document, replacing any previous version."""
        async with self._lock:
            self._remove(doc_id)
            doc = _Document.build(doc_id, fields)
            self._docs[doc_id] = doc
            for token in self._unique_tokens(doc):
                self._df[token] = self._df.get(token, 0) + 1
        logger.debug("Indexed document %s", doc_id)

    async def delete_document(self, doc_id: str) -> None:
        async with self._lock:
            self._remove(doc_id)

    def _remove(self, doc_id: str) -> None:
        doc = self._docs.pop(doc_id, None)
        if doc is None:
            return
        for token in self._unique_tokens(doc):
            remaining = self._df.get(token, 0) - 1
            if remaining > 0:
                self._df[token] = remaining
            else:
                self._df.pop(token, None)

    @staticmethod
    def _unique_tokens(doc: _Document) -> set[str]:
        return {t for tokens in doc.tokens.values() for t in tokens}

    # --- Reads ---

    async def execute(self, compiled: CompiledQuery) -> list[RawHit]:
        """
        Evaluate a compiled query.

        Returns:
            Hits ordered by score desc then ID, sliced by offset/limit
        """
        try:
            scores = self._evaluate(compiled.query)
        except SearchIndexError:
            raise
        except (re.error, KeyError, TypeError, ValueError) as exc:
            raise SearchIndexError(
                f"query execution failed: {exc}", {"cause": str(exc)}
            ) from exc

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        window = ranked[compiled.offset : compiled.offset + compiled.limit]

        hits = []
        for doc_id, score in window:
            doc = self._docs[doc_id]
            hits.append(
                RawHit(
                    id=doc_id,
                    score=score,
                    fields=dict(doc.fields),
                    highlights=self._highlight(doc, compiled.query) if compiled.highlight else {},
                )
            )
        return hits

    def _evaluate(self, node: QueryNode) -> Scores:
        evaluator = self._evaluators.get(type(node))
        if evaluator is None:
            raise SearchIndexError(
                f"unsupported query node: {type(node).__name__}",
                {"node": type(node).__name__},
            )
        return evaluator(node)

    def _idf(self, token: str) -> float:
        return 1.0 + math.log((1 + len(self._docs)) / (1 + self._df.get(token, 0)))

    @staticmethod
    def _fields(fields: list[str]) -> list[str]:
        return list(fields) if fields else list(TEXT_FIELDS)

    def _eval_match_all(self, node: MatchAllQuery) -> Scores:
        return {doc_id: node.boost for doc_id in self._docs}

    def _eval_match(self, node: MatchQuery) -> Scores:
        terms = tokenize(node.text)
        scores: Scores = {}
        if not terms:
            return scores
        for doc in self._docs.values():
            score = 0.0
            for name in self._fields(node.fields):
                tokens = doc.tokens.get(name, [])
                for term in terms:
                    tf = tokens.count(term)
                    if tf:
                        score += math.sqrt(tf) * self._idf(term)
            if score:
                scores[doc.doc_id] = score * node.boost
        return scores

    def _eval_phrase(self, node: PhraseQuery) -> Scores:
        terms = tokenize(node.text)
        scores: Scores = {}
        if not terms:
            return scores
        width = len(terms)
        for doc in self._docs.values():
            found = 0
            for name in self._fields(node.fields):
                tokens = doc.tokens.get(name, [])
                found += sum(
                    1
                    for i in range(len(tokens) - width + 1)
                    if tokens[i : i + width] == terms
                )
            if found:
                scores[doc.doc_id] = math.sqrt(found) * width * node.boost
        return scores

    def _eval_fuzzy(self, node: FuzzyQuery) -> Scores:
        terms = tokenize(node.text)
        scores: Scores = {}
        for doc in self._docs.values():
            score = 0.0
            for name in self._fields(node.fields):
                for token in doc.tokens.get(name, []):
                    for term in terms:
                        distance = Levenshtein.distance(term, token, score_cutoff=node.fuzziness)
                        if distance <= node.fuzziness:
                            score += 1.0 / (1 + distance)
            if score:
                scores[doc.doc_id] = score * node.boost
        return scores

    def _eval_pattern(self, regex: re.Pattern[str], fields: list[str], boost: float) -> Scores:
        scores: Scores = {}
        for doc in self._docs.values():
            found = sum(
                1 for name in self._fields(fields) for _ in regex.finditer(doc.text.get(name, ""))
            )
            if found:
                scores[doc.doc_id] = math.sqrt(found) * boost
        return scores

    def _eval_regex(self, node: RegexQuery) -> Scores:
        flags = 0 if node.case_sensitive else re.IGNORECASE
        return self._eval_pattern(re.compile(node.pattern, flags), node.fields, node.boost)

    def _eval_wildcard(self, node: WildcardQuery) -> Scores:
        flags = 0 if node.case_sensitive else re.IGNORECASE
        regex = re.compile(glob_to_regex(node.pattern), flags)
        return self._eval_pattern(regex, node.fields, node.boost)

    def _eval_term(self, node: TermQuery) -> Scores:
        return {
            doc_id: 0.0
            for doc_id, doc in self._docs.items()
            if node.value in doc.keyword(node.field)
        }

    def _eval_terms(self, node: TermsQuery) -> Scores:
        wanted = set(node.values)
        return {
            doc_id: 0.0
            for doc_id, doc in self._docs.items()
            if wanted.intersection(doc.keyword(node.field))
        }

    def _eval_date_range(self, node: DateRangeQuery) -> Scores:
        scores: Scores = {}
        for doc_id, doc in self._docs.items():
            value = doc.fields.get(node.field)
            if isinstance(value, str):
                value = datetime.fromisoformat(value)
            if not isinstance(value, datetime):
                continue
            if node.start is not None and value < node.start:
                continue
            if node.end is not None and value > node.end:
                continue
            scores[doc_id] = 0.0
        return scores

    def _eval_disjunction(self, node: DisjunctionQuery) -> Scores:
        totals: Scores = {}
        matched: dict[str, int] = {}
        for child in node.queries:
            for doc_id, score in self._evaluate(child).items():
                totals[doc_id] = totals.get(doc_id, 0.0) + score
                matched[doc_id] = matched.get(doc_id, 0) + 1
        return {
            doc_id: score * node.boost
            for doc_id, score in totals.items()
            if matched[doc_id] >= node.min
        }

    def _eval_conjunction(self, node: ConjunctionQuery) -> Scores:
        result: Scores | None = None
        for child in node.queries:
            scores = self._evaluate(child)
            if result is None:
                result = dict(scores)
            else:
                result = {
                    doc_id: total + scores[doc_id]
                    for doc_id, total in result.items()
                    if doc_id in scores
                }
            if not result:
                break
        return {doc_id: score * node.boost for doc_id, score in (result or {}).items()}

    # --- Highlighting ---

    def _highlight_patterns(self, node: QueryNode) -> Iterator[re.Pattern[str]]:
        if isinstance(node, (MatchQuery, PhraseQuery, FuzzyQuery)):
            if isinstance(node, MatchQuery) and node.fields == ["tags"]:
                return
            for term in tokenize(node.text):
                yield re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)
        elif isinstance(node, RegexQuery):
            yield re.compile(node.pattern, 0 if node.case_sensitive else re.IGNORECASE)
        elif isinstance(node, WildcardQuery):
            flags = 0 if node.case_sensitive else re.IGNORECASE
            yield re.compile(glob_to_regex(node.pattern), flags)
        elif isinstance(node, (DisjunctionQuery, ConjunctionQuery)):
            for child in node.queries:
                yield from self._highlight_patterns(child)

    def _highlight(self, doc: _Document, query: QueryNode) -> dict[str, list[str]]:
        patterns = list(self._highlight_patterns(query))
        highlights: dict[str, list[str]] = {}
        for name in HIGHLIGHT_FIELDS:
            text = doc.text.get(name, "")
            spans = sorted(
                {m.span() for p in patterns for m in p.finditer(text) if m.end() > m.start()}
            )
            fragments = []
            for start, end in spans[:MAX_FRAGMENTS]:
                left = max(0, start - FRAGMENT_RADIUS)
                right = min(len(text), end + FRAGMENT_RADIUS)
                fragments.append(
                    f"{text[left:start]}<mark>{text[start:end]}</mark>{text[end:right]}"
                )
            if fragments:
                highlights[name] = fragments
        return highlights
