"""
CLI Search Tools - grep, find and ripgrep over domain-scoped documents.

Features:
- grep: flat line scan with -i -v -w -E -F -o -c -m -A/-B/-C semantics
- find: name / type / content-type / tags / size criteria over resources and prompts
- ripgrep: ranked query with smart-case, count and files-with-matches shaping
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING

from mindport.config.errors import InvalidArgumentError
from mindport.domains.search.models import SearchMode, SearchQuerySpec
from mindport.domains.search.postprocess import context_lines

from .models import (
    FindOptions,
    FindResult,
    GrepOptions,
    GrepResult,
    RipgrepOptions,
    ScanRecord,
    ScanRequest,
)

if TYPE_CHECKING:
    from .contracts import ScanStrategy

logger = logging.getLogger(__name__)

__all__ = ["CLISearchTools", "parse_size_filter", "matches_size"]

SUMMARY_ID = "summary"

_SIZE_RE = re.compile(r"^([+-]?)(\d+)([kKmMgG]?)$")
_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3}

_FILE_TYPES = {"f", "file"}
_PROMPT_TYPES = {"d", "directory", "prompt"}

# Matcher returns the matched span, or None when the line does not match
LineMatcher = Callable[[str], "str | None"]


def parse_size_filter(spec: str) -> tuple[str, int]:
    """
    Parse a find ``-size`` value.

    Returns:
        ``(operator, bytes)`` where operator is ``+``, ``-`` or ``""``

    Raises:
        InvalidArgumentError: Malformed value
    """
    match = _SIZE_RE.match(spec.strip())
    if match is None:
        raise InvalidArgumentError(
            f"invalid size filter {spec!r}: expected [+|-]N[k|m|g]", {"size": spec}
        )
    operator, number, unit = match.groups()
    return operator, int(number) * _SIZE_UNITS[unit.lower()]


def matches_size(size: int, operator: str, target: int) -> bool:
    if operator == "+":
        return size > target
    if operator == "-":
        return size < target
    return size == target


def _has_upper(text: str) -> bool:
    return any(c.isupper() for c in text)


def _line_matcher(opts: GrepOptions) -> LineMatcher:
    """Build the per-line predicate for grep flags; fixed wins over extended."""
    if opts.extended and not opts.fixed:
        flags = re.IGNORECASE if opts.ignore_case else 0
        try:
            regex = re.compile(opts.pattern, flags)
        except re.error as exc:
            raise InvalidArgumentError(
                f"invalid regex pattern {opts.pattern!r}: {exc}",
                {"pattern": opts.pattern, "cause": str(exc)},
            ) from exc

        if opts.whole_words:
            return lambda line: next(
                (word for word in line.split() if regex.fullmatch(word)), None
            )

        def match_regex(line: str) -> str | None:
            found = regex.search(line)
            return found.group(0) if found else None

        return match_regex

    needle = opts.pattern.lower() if opts.ignore_case else opts.pattern

    def match_literal(line: str) -> str | None:
        haystack = line.lower() if opts.ignore_case else line
        if opts.whole_words:
            words, original = haystack.split(), line.split()
            for word, raw in zip(words, original):
                if word == needle:
                    return raw
            return None
        pos = haystack.find(needle)
        return line[pos : pos + len(needle)] if pos >= 0 else None

    return match_literal


def _matches_resource_filter(record: ScanRecord, pattern: str) -> bool:
    """Case-insensitive substring test on title, type and tags."""
    pattern = pattern.lower()
    return (
        pattern in record.title.lower()
        or pattern in record.type.lower()
        or any(pattern in tag.lower() for tag in record.tags)
    )


class CLISearchTools:
    """
    Unix-tool emulation over the store (flat scans) and index (ranked).

    Example:
        >>> tools = CLISearchTools(FlatScanStrategy(repo), RankedQueryStrategy(compiler, index))
        >>> results = await tools.grep(GrepOptions(pattern="TODO", ignore_case=True), ["default"])
    """

    def __init__(
        self,
        flat: ScanStrategy,
        ranked: ScanStrategy,
        grep_max_matches: int = 1000,
        find_limit: int = 1000,
    ) -> None:
        """
        Initialize tools.

        Args:
            flat: Strategy used by grep and find
            ranked: Strategy used by ripgrep
            grep_max_matches: Default global cap for grep
            find_limit: Default result cap for find
        """
        self._flat = flat
        self._ranked = ranked
        self.grep_max_matches = grep_max_matches
        self.find_limit = find_limit

    # --- grep ---

    async def grep(
        self,
        opts: GrepOptions,
        scope: list[str],
        deadline: float | None = None,
    ) -> list[GrepResult]:
        """
        Line-by-line scan of every in-scope resource.

        Args:
            opts: grep flags
            scope: Domain IDs to scan
            deadline: Absolute ``time.monotonic()`` deadline

        Returns:
            One record per matching line, or a single summary with ``count``
        """
        matcher = _line_matcher(opts)
        max_matches = opts.max_matches or self.grep_max_matches
        before = opts.context or opts.context_before
        after = opts.context or opts.context_after

        results: list[GrepResult] = []
        matched_resources: set[tuple[str, str]] = set()

        async for record in self._flat.scan(ScanRequest(scope=scope, deadline=deadline)):
            if len(results) >= max_matches:
                break
            if opts.include and not any(_matches_resource_filter(record, p) for p in opts.include):
                continue
            if any(_matches_resource_filter(record, p) for p in opts.exclude):
                continue

            for number, line in enumerate(record.content.split("\n"), start=1):
                span = matcher(line)
                if (span is not None) == opts.invert_match:
                    continue

                results.append(
                    GrepResult(
                        resource_id=record.id,
                        resource_type=record.type,
                        title=record.title,
                        domain=record.domain,
                        line_number=number,
                        matched_line=span if opts.only_matching and span else line,
                        context=(
                            context_lines(record.content, [number], before, after)
                            if before or after
                            else []
                        ),
                        match_count=1,
                    )
                )
                matched_resources.add((record.domain, record.id))
                if len(results) >= max_matches:
                    break

        logger.debug("grep %r: %d matches", opts.pattern, len(results))

        if opts.count:
            return [
                GrepResult(
                    resource_id=SUMMARY_ID,
                    title="Total matches",
                    match_count=len(results),
                    matched_line=(
                        f"{len(results)} total matches across "
                        f"{len(matched_resources)} resources"
                    ),
                )
            ]
        return results

    # --- find ---

    async def find(
        self,
        opts: FindOptions,
        scope: list[str],
        deadline: float | None = None,
    ) -> list[FindResult]:
        """
        Filter resources and prompts by find criteria.

        Criteria are evaluated name, type, content-type, tags, size; the
        first failure rejects the record.
        """
        try:
            name_re = re.compile(opts.name) if opts.name else None
        except re.error as exc:
            raise InvalidArgumentError(
                f"invalid name pattern {opts.name!r}: {exc}",
                {"name": opts.name, "cause": str(exc)},
            ) from exc
        size_filter = parse_size_filter(opts.size) if opts.size else None
        wanted_tags = {t.lower() for t in opts.tags}
        limit = opts.limit or self.find_limit

        results: list[FindResult] = []
        request = ScanRequest(scope=scope, deadline=deadline, include_prompts=True)
        async for record in self._flat.scan(request):
            if len(results) >= limit:
                break
            try:
                if not self._matches_find(record, opts, name_re, wanted_tags, size_filter):
                    continue
                results.append(self._find_result(record))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping malformed record %s: %s", record.id, exc)

        return results

    @staticmethod
    def _matches_find(
        record: ScanRecord,
        opts: FindOptions,
        name_re: re.Pattern[str] | None,
        wanted_tags: set[str],
        size_filter: tuple[str, int] | None,
    ) -> bool:
        if name_re is not None and not name_re.search(record.title):
            return False
        if opts.type:
            allowed = _FILE_TYPES if record.kind == "resource" else _PROMPT_TYPES
            if opts.type not in allowed:
                return False
        if opts.content_type and record.kind == "resource" and record.type != opts.content_type:
            return False
        if wanted_tags and not wanted_tags.intersection(t.lower() for t in record.tags):
            return False
        if size_filter is not None and not matches_size(record.size, *size_filter):
            return False
        return True

    @staticmethod
    def _find_result(record: ScanRecord) -> FindResult:
        folder = "resources" if record.kind == "resource" else "prompts"
        return FindResult(
            resource_id=record.id,
            resource_type=record.kind,
            title=record.title,
            domain=record.domain,
            size=record.size,
            created=record.created,
            modified=record.modified,
            tags=record.tags,
            metadata=record.metadata,
            path=f"/{folder}/{record.id}",
        )

    # --- ripgrep ---

    def ripgrep_spec(self, opts: RipgrepOptions) -> SearchQuerySpec:
        """Map ripgrep flags onto a structured query."""
        case_sensitive = opts.case_sensitive or (not opts.ignore_case and not opts.smart_case)
        if opts.smart_case and _has_upper(opts.pattern):
            case_sensitive = True

        pattern = opts.pattern
        whole_words = opts.word_regexp
        if opts.fixed:
            mode = SearchMode.EXACT
        elif opts.multiline or opts.dot_all:
            mode = SearchMode.REGEX
            inline = ("m" if opts.multiline else "") + ("s" if opts.dot_all else "")
            if whole_words:
                pattern = rf"\b(?:{pattern})\b"
                whole_words = False
            pattern = f"(?{inline}){pattern}"
        else:
            mode = SearchMode.SMART

        return SearchQuerySpec(
            query=pattern,
            mode=mode,
            case_sensitive=case_sensitive,
            whole_words=whole_words,
            type_filter=opts.type[0] if opts.type else None,
            fields=["title", "content"],
            limit=opts.max_count,
            context_lines=opts.context,
            highlight=True,
        )

    async def ripgrep(
        self,
        opts: RipgrepOptions,
        scope: list[str],
        deadline: float | None = None,
    ) -> list[GrepResult]:
        """Ranked search shaped as grep records, counts or file lists."""
        spec = self.ripgrep_spec(opts)
        request = ScanRequest(scope=scope, deadline=deadline, spec=spec)

        results = [
            GrepResult(
                resource_id=record.id,
                resource_type=record.type,
                title=record.title,
                domain=record.domain,
                line_number=record.line_numbers[0] if record.line_numbers else None,
                matched_line=record.snippet,
                context=record.context_lines,
                match_count=record.match_count,
            )
            async for record in self._ranked.scan(request)
        ]

        if opts.count:
            total = sum(r.match_count for r in results)
            return [
                GrepResult(
                    resource_id=SUMMARY_ID,
                    title="Total matches",
                    match_count=total,
                    matched_line=f"{total} matches",
                )
            ]

        if opts.files_with_matches:
            unique: dict[tuple[str, str], GrepResult] = {}
            for r in results:
                unique.setdefault(
                    (r.domain, r.resource_id),
                    GrepResult(
                        resource_id=r.resource_id,
                        resource_type=r.resource_type,
                        title=r.title,
                        domain=r.domain,
                        matched_line=f"Resource: {r.title}",
                        match_count=1,
                    ),
                )
            return list(unique.values())

        return results
