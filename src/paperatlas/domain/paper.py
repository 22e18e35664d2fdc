"""
Paper domain models.

Contains the persisted representation of one harvested paper:
- Paper: merged snapshot of one arXiv identifier
- PaperVersion: one entry of the version lineage
- TopicTag / TagRationale: derived topic classification
- Provenance: where and when the record was harvested

``cross_list_count`` and ``version_count`` are derived from the category and
version lists, so a Paper can never carry stale counts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from paperatlas.utils.dates import parse_datetime

ARXIV_ABS_URL = "https://arxiv.org/abs/{arxiv_id}"
ARXIV_PDF_URL = "https://arxiv.org/pdf/{arxiv_id}.pdf"

_VERSION_RE = re.compile(r"^v?(\d+)$", re.IGNORECASE)


def unique(values) -> List[str]:
    """Deduplicate while keeping first-appearance order, dropping empties."""
    seen = set()
    result: List[str] = []
    for value in values:
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def version_sort_key(label: str) -> Tuple[int, int, str]:
    """Natural order for version labels: v2 sorts before v10."""
    match = _VERSION_RE.match(label or "")
    if match:
        return (0, int(match.group(1)), label)
    return (1, 0, label or "")


@dataclass(frozen=True)
class PaperVersion:
    version: str
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "updated_at": self.updated_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaperVersion":
        return cls(
            version=str(data.get("version") or ""),
            updated_at=str(data.get("updated_at") or ""),
        )


def dedupe_versions(versions: Iterable[PaperVersion]) -> List[PaperVersion]:
    """One entry per label, the later ``updated_at`` winning, in natural label order."""
    by_label: Dict[str, PaperVersion] = {}
    for version in versions:
        if not version.version:
            continue
        current = by_label.get(version.version)
        if current is None:
            by_label[version.version] = version
            continue
        candidate_dt = parse_datetime(version.updated_at)
        current_dt = parse_datetime(current.updated_at)
        if candidate_dt is not None and (current_dt is None or candidate_dt > current_dt):
            by_label[version.version] = version
    return sorted(by_label.values(), key=lambda v: version_sort_key(v.version))


@dataclass(frozen=True)
class TagRationale:
    matched_keywords: List[str] = field(default_factory=list)
    rules_version: str = "v1"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched_keywords": list(self.matched_keywords),
            "rules_version": self.rules_version,
        }


@dataclass(frozen=True)
class TopicTag:
    """Topic classification attached to a paper, confidence in [0, 1]."""

    topic_id: str
    confidence: float
    rationale: TagRationale = field(default_factory=TagRationale)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic_id": self.topic_id,
            "confidence": self.confidence,
            "rationale": self.rationale.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicTag":
        rationale = data.get("rationale") or {}
        return cls(
            topic_id=str(data.get("topic_id", "")),
            confidence=float(data.get("confidence", 0.0)),
            rationale=TagRationale(
                matched_keywords=list(rationale.get("matched_keywords") or []),
                rules_version=str(rationale.get("rules_version") or "v1"),
            ),
        )


@dataclass(frozen=True)
class Provenance:
    source: str = "arxiv_api"
    harvested_at: str = ""
    harvest_run_id: str = "manual"
    queries: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "harvested_at": self.harvested_at,
            "harvest_run_id": self.harvest_run_id,
            "queries": list(self.queries),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Provenance":
        data = data or {}
        return cls(
            source=str(data.get("source") or "arxiv_api"),
            harvested_at=str(data.get("harvested_at") or ""),
            harvest_run_id=str(data.get("harvest_run_id") or "manual"),
            queries=unique(data.get("queries") or []),
        )


@dataclass(frozen=True)
class Paper:
    """
    Persisted snapshot of one arXiv paper.

    Required field: arxiv_id (version suffix stripped).
    Everything else degrades to empty defaults so partially-missing
    metadata never breaks the pipeline.
    """

    arxiv_id: str
    title: str = ""
    abstract: str = ""
    authors: List[str] = field(default_factory=list)
    submitted_at: str = ""
    updated_at: str = ""
    primary_category: str = ""
    categories: List[str] = field(default_factory=list)
    versions: List[PaperVersion] = field(default_factory=list)
    topic_tags: List[TopicTag] = field(default_factory=list)
    trending_score: float = 0.0
    canonical_url: str = ""
    pdf_url: str = ""
    provenance: Provenance = field(default_factory=Provenance)

    @property
    def cross_list_count(self) -> int:
        return max(0, len(self.categories) - 1)

    @property
    def version_count(self) -> int:
        return len(self.versions)

    @property
    def metrics(self) -> Dict[str, Any]:
        return {
            "cross_list_count": self.cross_list_count,
            "version_count": self.version_count,
            "trending_score": self.trending_score,
        }

    @property
    def links(self) -> Dict[str, str]:
        return {
            "arxiv_abs": self.canonical_url or ARXIV_ABS_URL.format(arxiv_id=self.arxiv_id),
            "arxiv_pdf": self.pdf_url or ARXIV_PDF_URL.format(arxiv_id=self.arxiv_id),
        }

    def with_tags(self, tags: List[TopicTag]) -> "Paper":
        return replace(self, topic_tags=list(tags))

    def with_trending_score(self, score: float) -> "Paper":
        return replace(self, trending_score=score)

    def to_dict(self) -> Dict[str, Any]:
        """Full snapshot representation, one file per paper."""
        links = self.links
        return {
            "arxiv_id": self.arxiv_id,
            "canonical_url": links["arxiv_abs"],
            "pdf_url": links["arxiv_pdf"],
            "title": self.title,
            "abstract": self.abstract,
            "authors": [{"name": name} for name in self.authors],
            "submitted_at": self.submitted_at,
            "updated_at": self.updated_at,
            "primary_category": self.primary_category,
            "categories": list(self.categories),
            "metrics": self.metrics,
            "topic_tags": [tag.to_dict() for tag in self.topic_tags],
            "versions": [version.to_dict() for version in self.versions],
            "links": links,
            "provenance": self.provenance.to_dict(),
        }

    def to_index_entry(self) -> Dict[str, Any]:
        """Denormalized projection used for bulk scans of papers.index.json."""
        return {
            "arxiv_id": self.arxiv_id,
            "title": self.title,
            "abstract": self.abstract,
            "authors": list(self.authors),
            "submitted_at": self.submitted_at,
            "updated_at": self.updated_at,
            "primary_category": self.primary_category,
            "categories": list(self.categories),
            "topic_tags": [tag.to_dict() for tag in self.topic_tags],
            "metrics": self.metrics,
            "links": self.links,
            "provenance": self.provenance.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Paper":
        """Create instance from a snapshot or index entry.

        Stored counts in ``metrics`` are ignored; they are re-derived. Version
        labels are deduplicated, and an empty lineage becomes a single v1.
        """
        links = data.get("links") or {}
        metrics = data.get("metrics") or {}
        authors = [
            str(author.get("name", "")) if isinstance(author, dict) else str(author)
            for author in data.get("authors") or []
        ]
        updated_at = str(data.get("updated_at") or "")
        versions = dedupe_versions(PaperVersion.from_dict(v) for v in data.get("versions") or [])
        if not versions:
            versions = [PaperVersion("v1", updated_at)]
        return cls(
            arxiv_id=str(data.get("arxiv_id", "")),
            title=str(data.get("title") or ""),
            abstract=str(data.get("abstract") or ""),
            authors=[name for name in authors if name],
            submitted_at=str(data.get("submitted_at") or ""),
            updated_at=updated_at,
            primary_category=str(data.get("primary_category") or ""),
            categories=unique(data.get("categories") or []),
            versions=versions,
            topic_tags=[TopicTag.from_dict(t) for t in data.get("topic_tags") or []],
            trending_score=float(metrics.get("trending_score") or 0.0),
            canonical_url=str(data.get("canonical_url") or links.get("arxiv_abs") or ""),
            pdf_url=str(data.get("pdf_url") or links.get("arxiv_pdf") or ""),
            provenance=Provenance.from_dict(data.get("provenance")),
        )
