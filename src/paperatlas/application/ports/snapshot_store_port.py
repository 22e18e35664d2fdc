# src/paperatlas/application/ports/snapshot_store_port.py
"""
Snapshot store port interface.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Protocol, runtime_checkable

from paperatlas.domain.paper import Paper


@runtime_checkable
class SnapshotStorePort(Protocol):
    """Persisted paper corpus."""

    def load_all(self) -> Dict[str, Paper]:
        """All papers keyed by arxiv_id; empty on first run."""
        ...

    def write_snapshots(self, papers: Iterable[Paper]) -> Any:
        """Merge papers into the corpus and rewrite the index."""
        ...

    def replace_all(self, papers: Iterable[Paper]) -> Any:
        """Overwrite stored papers with recomputed ones and rewrite the index."""
        ...

    def load_index(self) -> List[Dict[str, Any]]:
        ...
