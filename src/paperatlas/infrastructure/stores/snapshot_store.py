# src/paperatlas/infrastructure/stores/snapshot_store.py
"""
File-backed paper corpus.

Layout (data dir relative):
    papers/<arxiv_id>.json   one merged snapshot per identifier
    papers.index.json        flat index, rewritten wholesale on every write

Single writer: the read-modify-write cycle is not locked, callers must not
run two pipelines against the same data dir at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from paperatlas.application.services.snapshot_merger import merge_into
from paperatlas.domain.paper import Paper
from paperatlas.domain.paper_identity import snapshot_file_stem
from paperatlas.infrastructure.stores.json_io import read_json, write_json
from paperatlas.utils.dates import parse_datetime
from paperatlas.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)


@dataclass
class SnapshotWriteResult:
    papers: List[Paper] = field(default_factory=list)
    index: List[Dict[str, Any]] = field(default_factory=list)


def index_sort_key(paper: Paper) -> Tuple[int, float, str]:
    """``updated_at`` descending, then ``arxiv_id`` ascending; undated papers last."""
    updated = parse_datetime(paper.updated_at)
    if updated is None:
        return (1, 0.0, paper.arxiv_id)
    return (0, -updated.timestamp(), paper.arxiv_id)


def sort_for_index(papers: Iterable[Paper]) -> List[Paper]:
    return sorted(papers, key=index_sort_key)


class SnapshotStore:
    """Reads and writes the paper corpus under ``data_dir``."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    @property
    def papers_dir(self) -> Path:
        return self.data_dir / "papers"

    @property
    def index_path(self) -> Path:
        return self.data_dir / "papers.index.json"

    def paper_path(self, arxiv_id: str) -> Path:
        return self.papers_dir / f"{snapshot_file_stem(arxiv_id)}.json"

    def load_all(self) -> Dict[str, Paper]:
        """All persisted papers keyed by arxiv_id; a missing directory is an empty corpus."""
        corpus: Dict[str, Paper] = {}
        if not self.papers_dir.is_dir():
            logger.info(f"No corpus at {self.papers_dir}, starting empty")
            return corpus

        for path in sorted(self.papers_dir.glob("*.json")):
            data = read_json(path)
            if not isinstance(data, dict) or not data.get("arxiv_id"):
                logger.warning(f"Skipping snapshot without arxiv_id: {path.name}")
                continue
            paper = Paper.from_dict(data)
            corpus[paper.arxiv_id] = paper

        logger.info(f"Loaded {len(corpus)} papers from {self.papers_dir}")
        return corpus

    def load_index(self) -> List[Dict[str, Any]]:
        return read_json(self.index_path, default=[]) or []

    def write_snapshots(self, papers: Iterable[Paper]) -> SnapshotWriteResult:
        """Merge ``papers`` into the persisted corpus and rewrite files plus index."""
        incoming = list(papers)
        Logger.info(f"Merging {len(incoming)} harvested papers into corpus", file=LogFiles.SNAPSHOTS)
        merged = merge_into(self.load_all(), incoming)
        return self._persist(merged.values())

    def replace_all(self, papers: Iterable[Paper]) -> SnapshotWriteResult:
        """Write ``papers`` as-is, without merging against what is on disk.

        Used after tagging and scoring, whose derived fields replace the stored ones.
        """
        return self._persist(papers)

    def _persist(self, papers: Iterable[Paper]) -> SnapshotWriteResult:
        ordered = sort_for_index(papers)
        for paper in ordered:
            write_json(self.paper_path(paper.arxiv_id), paper.to_dict())

        index = [paper.to_index_entry() for paper in ordered]
        write_json(self.index_path, index)

        Logger.info(
            f"Wrote {len(ordered)} snapshots and index to {self.data_dir}",
            file=LogFiles.SNAPSHOTS,
        )
        return SnapshotWriteResult(papers=ordered, index=index)
