"""
Registry Domain - Hierarchical namespaces for resources and prompts.

This domain handles:
- Domain creation, archival and deletion
- Ancestry / descendant walks
- Searchable scope per isolation mode
- Shorthand resource identifiers (``::id``, ``domain:id``)
"""

from . import shorthand
from .contracts import DomainGraph
from .models import (
    DEFAULT_DOMAIN,
    Domain,
    DomainContext,
    DomainScope,
    IsolationMode,
    is_valid_domain_id,
)
from .registry import DomainRegistry, ReadWriteLock

__all__ = [
    "DomainGraph",
    "DomainRegistry",
    "ReadWriteLock",
    "Domain",
    "DomainContext",
    "DomainScope",
    "IsolationMode",
    "DEFAULT_DOMAIN",
    "is_valid_domain_id",
    "shorthand",
]
