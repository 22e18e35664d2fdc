# src/paperatlas/infrastructure/harvesters/__init__.py
"""
arXiv harvesters.

Both share one RateLimitedClient so the export API rate limit holds across
the page harvest and the OAI-PMH harvest.
"""

from .arxiv_harvester import ArxivHarvester
from .oai_harvester import OaiHarvester

__all__ = [
    "ArxivHarvester",
    "OaiHarvester",
]
