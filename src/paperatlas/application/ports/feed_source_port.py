# src/paperatlas/application/ports/feed_source_port.py
"""
Feed source port interface.

Anything that can page through search results, or look up explicit
identifiers, and yield raw Atom entries.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from paperatlas.domain.harvest import AtomEntry, AtomFeed


@runtime_checkable
class FeedSourcePort(Protocol):
    """Abstract interface for paged entry sources."""

    async def fetch_all(
        self,
        search_query: str,
        *,
        max_results: int = 200,
    ) -> List[AtomEntry]:
        """
        Fetch up to ``max_results`` entries matching the query.

        Args:
            search_query: Source-specific query string
            max_results: Maximum number of entries to return

        Returns:
            Entries in the order the source ranked them
        """
        ...

    async def fetch_page(
        self,
        *,
        search_query: Optional[str] = None,
        id_list: Optional[List[str]] = None,
        start: int = 0,
        max_results: int = 100,
    ) -> AtomFeed:
        """Fetch one page, either for a query or for explicit identifiers."""
        ...
