"""
Registry Models - Data types for the domain registry.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

DEFAULT_DOMAIN = "default"
DOMAIN_SEPARATOR = "/"
DOMAIN_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9\-_]*[a-z0-9]$")
DOMAIN_ID_MAX_LENGTH = 64


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_domain_id(domain_id: str) -> bool:
    """Check a domain id against the identifier grammar (2-64 chars)."""
    return (
        len(domain_id) <= DOMAIN_ID_MAX_LENGTH
        and DOMAIN_ID_PATTERN.match(domain_id) is not None
    )


class IsolationMode(str, Enum):
    """How far a domain can see into the rest of the graph."""

    STRICT = "strict"  # Self only
    HIERARCHICAL = "hierarchical"  # Self + ancestors + descendants
    SHARED = "shared"  # Every domain


class Domain(BaseModel):
    """A named, hierarchical namespace for resources and prompts."""

    id: str
    name: str
    description: str = ""
    parent_id: str | None = None
    path: str
    metadata: dict[str, str] = Field(default_factory=dict)
    active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class DomainScope(BaseModel):
    """Derived view of what a domain can reach. Never persisted."""

    current: str
    ancestry: list[str] = Field(default_factory=list)  # root -> parent
    children: list[str] = Field(default_factory=list)
    searchable: list[str] = Field(default_factory=list)


class DomainContext(BaseModel):
    """
    Per-call domain context.

    Carries the implicit domain for callers that omit one, so that one
    session switching domains never changes another session's scope.
    """

    domain: str = DEFAULT_DOMAIN
    session_id: str | None = None
    deadline: float | None = None  # time.monotonic() value

    model_config = {"frozen": True}
