"""
Harvesting domain models.

Contains data structures produced before normalization and after a run:
- AtomEntry: one raw entry of the arXiv Atom feed
- AtomFeed: one parsed feed page
- PipelineRunResult: summary of one pipeline run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class EntryVersion:
    version: str
    created: str = ""


@dataclass(frozen=True)
class AtomEntry:
    """
    One feed entry as the export API describes it.

    Dates are kept as raw feed strings; the normalizer turns them into
    calendar dates.
    """

    arxiv_id: str
    title: str = ""
    summary: str = ""
    authors: List[str] = field(default_factory=list)
    published: str = ""
    updated: str = ""
    categories: List[str] = field(default_factory=list)
    primary_category: str = ""
    abs_url: str = ""
    pdf_url: str = ""
    versions: List[EntryVersion] = field(default_factory=list)


@dataclass(frozen=True)
class AtomFeed:
    entries: List[AtomEntry] = field(default_factory=list)
    total_results: int = 0


@dataclass
class PipelineRunResult:
    """Aggregated result of one pipeline run."""

    run_id: str
    status: str  # success, dry_run
    papers_harvested: int
    papers_new: int
    papers_total: int
    topics_tagged: Dict[str, int]
    started_at: datetime
    ended_at: Optional[datetime] = None
    dry_run: bool = False
    offline: bool = False
    momentum: Dict[str, float] = field(default_factory=dict)
    anchors_harvested: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "run_id": self.run_id,
            "status": self.status,
            "papers_harvested": self.papers_harvested,
            "anchors_harvested": self.anchors_harvested,
            "papers_new": self.papers_new,
            "papers_total": self.papers_total,
            "topics_tagged": dict(self.topics_tagged),
            "momentum": dict(self.momentum),
            "dry_run": self.dry_run,
            "offline": self.offline,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }
