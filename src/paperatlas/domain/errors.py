"""
Pipeline error taxonomy.

Stages raise these; only the CLI catches them to report and exit non-zero.
Malformed feeds have no error class: the parser degrades to empty results.
"""

from __future__ import annotations

from typing import Optional


class PaperAtlasError(Exception):
    """Base class for all pipeline errors."""


class FetchError(PaperAtlasError):
    """Outbound request failed and is not worth retrying (e.g. HTTP 4xx)."""

    def __init__(self, message: str, *, url: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class TransientFetchError(FetchError):
    """Network failure or HTTP 5xx that survived every retry."""


class FetchTimeoutError(TransientFetchError, TimeoutError):
    """A single request attempt exceeded its timeout."""


class ConfigurationError(PaperAtlasError):
    """Required configuration file is missing or invalid."""
