# src/paperatlas/infrastructure/harvesters/arxiv_harvester.py
"""
arXiv export API harvester.

Uses the Atom API for paged search.
API documentation: https://arxiv.org/help/api
"""

from __future__ import annotations

import logging
from typing import List, Optional

from paperatlas.domain.errors import FetchError
from paperatlas.domain.harvest import AtomEntry, AtomFeed
from paperatlas.infrastructure.api_clients.rate_limited_client import RateLimitedClient
from paperatlas.infrastructure.harvesters.arxiv_atom import (
    ARXIV_API_URL,
    build_query_params,
    parse_atom_feed,
)

logger = logging.getLogger(__name__)


class ArxivHarvester:
    """
    arXiv harvester using the Atom API.

    API: http://export.arxiv.org/api/query
    Rate limit: 1 request per 3 seconds, enforced by the shared client.
    """

    MAX_PAGE_SIZE = 100

    def __init__(self, client: RateLimitedClient, *, api_url: str = ARXIV_API_URL):
        self.client = client
        self.api_url = api_url

    async def fetch_page(
        self,
        *,
        search_query: Optional[str] = None,
        id_list: Optional[List[str]] = None,
        start: int = 0,
        max_results: int = 100,
        sort_by: Optional[str] = "submittedDate",
        sort_order: Optional[str] = "descending",
    ) -> AtomFeed:
        """
        Fetch and parse one page.

        Raises:
            FetchError: The API answered with a non-5xx error status.
            TransientFetchError: Network/5xx failure after retries.
        """
        params = build_query_params(
            search_query=search_query,
            id_list=id_list,
            start=start,
            max_results=max_results,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        response = await self.client.fetch(self.api_url, params=params)
        if not response.ok:
            raise FetchError(
                f"arXiv API returned status {response.status}",
                url=response.url,
                status=response.status,
            )

        feed = parse_atom_feed(response.text)
        logger.info(
            f"arXiv page start={start} query={search_query or id_list}: "
            f"{len(feed.entries)} entries (total {feed.total_results})"
        )
        return feed

    async def fetch_all(
        self,
        search_query: str,
        *,
        max_results: int = 200,
        page_size: Optional[int] = None,
    ) -> List[AtomEntry]:
        """
        Page through a query until a short page or ``max_results`` entries.
        """
        page_size = page_size or min(self.MAX_PAGE_SIZE, max_results)
        start = 0
        entries: List[AtomEntry] = []

        while len(entries) < max_results:
            feed = await self.fetch_page(
                search_query=search_query,
                start=start,
                max_results=page_size,
            )
            if not feed.entries:
                break
            entries.extend(feed.entries)
            if len(feed.entries) < page_size:
                break
            if feed.total_results and start + page_size >= feed.total_results:
                break
            start += page_size

        return entries[:max_results]
