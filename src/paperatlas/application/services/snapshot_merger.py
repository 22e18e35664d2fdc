# src/paperatlas/application/services/snapshot_merger.py
"""
Snapshot merge.

Reconciles a freshly harvested Paper with the persisted one for the same
identifier. Pure function over immutable values; file I/O lives in
SnapshotStore.
"""

from __future__ import annotations

import logging
from itertools import chain
from typing import Dict, Iterable, List, Optional

from paperatlas.domain.paper import Paper, PaperVersion, Provenance, dedupe_versions, unique
from paperatlas.utils.dates import parse_datetime

logger = logging.getLogger(__name__)


def _is_later(candidate: str, current: str) -> bool:
    """True when ``candidate`` is strictly after ``current``.

    An unparseable ``current`` loses to anything; an unparseable candidate
    never wins against a valid date.
    """
    current_dt = parse_datetime(current)
    if current_dt is None:
        return True
    candidate_dt = parse_datetime(candidate)
    return candidate_dt is not None and candidate_dt > current_dt


def merge_versions(*version_lists: Iterable[PaperVersion]) -> List[PaperVersion]:
    """Union by label, keeping the later ``updated_at`` per label, sorted by label."""
    return dedupe_versions(chain.from_iterable(version_lists))


def merge_paper_records(existing: Optional[Paper], incoming: Paper) -> Paper:
    """
    Merge ``incoming`` into ``existing``.

    - Descriptive fields (title, abstract, authors, updated_at) come from
      incoming only when its updated_at is strictly later; ties keep existing.
    - Categories, versions and provenance queries are unioned.
    - submitted_at keeps the first recorded value.
    - Derived counts follow from the merged lists.
    """
    if existing is None:
        return incoming

    incoming_is_newer = _is_later(incoming.updated_at, existing.updated_at)
    descriptive = incoming if incoming_is_newer else existing

    provenance = Provenance(
        source=incoming.provenance.source,
        harvested_at=incoming.provenance.harvested_at,
        harvest_run_id=incoming.provenance.harvest_run_id,
        queries=unique(list(existing.provenance.queries) + list(incoming.provenance.queries)),
    )

    return Paper(
        arxiv_id=existing.arxiv_id,
        title=descriptive.title,
        abstract=descriptive.abstract,
        authors=list(descriptive.authors),
        submitted_at=existing.submitted_at or incoming.submitted_at,
        updated_at=descriptive.updated_at,
        primary_category=incoming.primary_category or existing.primary_category,
        categories=unique(list(existing.categories) + list(incoming.categories)),
        versions=merge_versions(existing.versions, incoming.versions),
        topic_tags=list(incoming.topic_tags or existing.topic_tags),
        trending_score=incoming.trending_score or existing.trending_score,
        canonical_url=incoming.canonical_url or existing.canonical_url,
        pdf_url=incoming.pdf_url or existing.pdf_url,
        provenance=provenance,
    )


def merge_into(corpus: Dict[str, Paper], papers: Iterable[Paper]) -> Dict[str, Paper]:
    """Fold ``papers`` into a copy of ``corpus`` keyed by arxiv_id."""
    merged = dict(corpus)
    new_count = 0
    for paper in papers:
        current = merged.get(paper.arxiv_id)
        if current is None:
            new_count += 1
        merged[paper.arxiv_id] = merge_paper_records(current, paper)
    logger.info(f"Merged into corpus: {new_count} new, {len(merged)} total")
    return merged
