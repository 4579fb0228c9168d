"""
Shorthand Identifiers - Compact ``(domain, local_id)`` tokens.

Formats, in parse precedence order:
- ``::abc123``              -> ("default", "abc123")
- ``domain:proj1:abc123``   -> ("proj1", "abc123")   legacy triple form
- ``proj1:abc123``          -> ("proj1", "abc123")
- ``abc123``                -> (context domain, "abc123")
"""

from __future__ import annotations

from .models import DEFAULT_DOMAIN

__all__ = ["parse", "build", "normalize"]

_DEFAULT_PREFIX = "::"
_LEGACY_PREFIX = "domain:"


def parse(token: str, context_domain: str = DEFAULT_DOMAIN) -> tuple[str, str]:
    """
    Split a shorthand token into ``(domain, local_id)``.

    Args:
        token: Identifier as supplied by a caller
        context_domain: Domain used for bare tokens

    Returns:
        Tuple of (domain, local_id)
    """
    if token.startswith(_DEFAULT_PREFIX):
        return DEFAULT_DOMAIN, token[len(_DEFAULT_PREFIX) :]

    if token.startswith(_LEGACY_PREFIX):
        parts = token.split(":", 2)
        if len(parts) == 3:
            return parts[1], parts[2]

    if ":" in token:
        domain, local_id = token.split(":", 1)
        return domain, local_id

    return context_domain or DEFAULT_DOMAIN, token


def build(domain: str | None, local_id: str) -> str:
    """Encode ``(domain, local_id)``; the default domain gets the ``::`` form."""
    if not domain or domain == DEFAULT_DOMAIN:
        return f"{_DEFAULT_PREFIX}{local_id}"
    return f"{domain}:{local_id}"


def normalize(token: str, context_domain: str = DEFAULT_DOMAIN) -> str:
    """Canonical form of any accepted token (``domain:x:y`` -> ``x:y``)."""
    domain, local_id = parse(token, context_domain)
    return build(domain, local_id)
