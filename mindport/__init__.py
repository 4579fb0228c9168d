"""
MindPort - Domain-scoped search and retrieval for resources and prompts.

Example:
    >>> from mindport.domains.orchestration import SearchOrchestrator
    >>> orchestrator = SearchOrchestrator(registry, repo, index)
    >>> response = await orchestrator.search(orchestrator.new_context("team-a"), "auth*")
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
