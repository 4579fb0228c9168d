"""
CLI Tool Models - Flags and result shapes for grep, find and ripgrep.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from mindport.domains.search.models import ContextLine, SearchQuerySpec


class GrepOptions(BaseModel):
    """grep flags."""

    pattern: str
    ignore_case: bool = False  # -i
    invert_match: bool = False  # -v
    line_numbers: bool = True  # -n
    count: bool = False  # -c
    context: int = Field(default=0, ge=0)  # -C
    context_before: int = Field(default=0, ge=0)  # -B
    context_after: int = Field(default=0, ge=0)  # -A
    include: list[str] = Field(default_factory=list)  # --include
    exclude: list[str] = Field(default_factory=list)  # --exclude
    max_matches: int = Field(default=0, ge=0)  # -m, 0 = configured default
    whole_words: bool = False  # -w
    extended: bool = False  # -E
    fixed: bool = False  # -F
    only_matching: bool = False  # -o
    domains: list[str] = Field(default_factory=list)


class FindOptions(BaseModel):
    """find criteria."""

    name: str = ""  # -name, regex on title/name
    type: str = ""  # -type: f/file, d/directory/prompt
    size: str = ""  # -size: +N, -N, N with k/m/g suffix
    tags: list[str] = Field(default_factory=list)
    content_type: str = ""
    limit: int = Field(default=0, ge=0)  # 0 = configured default
    domains: list[str] = Field(default_factory=list)


class RipgrepOptions(BaseModel):
    """ripgrep flags."""

    pattern: str
    ignore_case: bool = False  # -i
    smart_case: bool = False  # -S
    case_sensitive: bool = False  # -s
    multiline: bool = False  # -U
    dot_all: bool = False  # --multiline-dotall
    word_regexp: bool = False  # -w
    fixed: bool = False  # -F
    count: bool = False  # -c
    files_with_matches: bool = False  # -l
    context: int = Field(default=0, ge=0)  # -C
    max_count: int = Field(default=0, ge=0)  # -m
    type: list[str] = Field(default_factory=list)  # -t
    domains: list[str] = Field(default_factory=list)


class GrepResult(BaseModel):
    """One grep/ripgrep output record."""

    resource_id: str
    resource_type: str = ""
    title: str = ""
    domain: str = ""
    line_number: int | None = None
    matched_line: str = ""
    context: list[ContextLine] = Field(default_factory=list)
    match_count: int = 0


class FindResult(BaseModel):
    """One find output record."""

    resource_id: str
    resource_type: Literal["resource", "prompt"]
    title: str
    domain: str = ""
    size: int
    created: datetime
    modified: datetime
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    path: str


class ScanRequest(BaseModel):
    """What a scan strategy should read."""

    scope: list[str]
    deadline: float | None = None
    include_prompts: bool = False
    spec: SearchQuerySpec | None = None  # ranked strategies only


class ScanRecord(BaseModel):
    """Document as seen by the CLI tools, from either strategy."""

    id: str
    domain: str
    kind: Literal["resource", "prompt"] = "resource"
    type: str = ""
    title: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    size: int = 0
    created: datetime | None = None
    modified: datetime | None = None

    # Filled by the ranked strategy
    score: float = 0.0
    snippet: str = ""
    line_numbers: list[int] = Field(default_factory=list)
    context_lines: list[ContextLine] = Field(default_factory=list)
    match_count: int = 0
