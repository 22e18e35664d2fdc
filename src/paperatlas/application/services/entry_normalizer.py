"""
Entry normalizer: parsed Atom entry -> persisted Paper record.

Pure given its arguments; the caller supplies the harvest timestamp and run
id so normalizing the same entry twice yields equal records.
"""

from __future__ import annotations

from typing import Optional

from paperatlas.domain.harvest import AtomEntry
from paperatlas.domain.paper import (
    ARXIV_ABS_URL,
    ARXIV_PDF_URL,
    Paper,
    PaperVersion,
    Provenance,
    unique,
    version_sort_key,
)
from paperatlas.utils.dates import to_date_string


def _normalize_whitespace(value: Optional[str]) -> str:
    return " ".join((value or "").split())


def normalize_entry(
    entry: AtomEntry,
    query: Optional[str] = None,
    harvested_at: Optional[str] = None,
    harvest_run_id: Optional[str] = None,
) -> Paper:
    submitted = to_date_string(entry.published)
    updated = to_date_string(entry.updated or entry.published) or submitted

    categories = unique(entry.categories) or unique([entry.primary_category])

    versions = {}
    for item in entry.versions:
        if item.version and item.version not in versions:
            versions[item.version] = PaperVersion(item.version, to_date_string(item.created))
    version_list = sorted(versions.values(), key=lambda v: version_sort_key(v.version))
    if not version_list:
        version_list = [PaperVersion("v1", updated)]

    return Paper(
        arxiv_id=entry.arxiv_id,
        title=_normalize_whitespace(entry.title),
        abstract=_normalize_whitespace(entry.summary),
        authors=[name for name in (_normalize_whitespace(a) for a in entry.authors) if name],
        submitted_at=submitted,
        updated_at=updated,
        primary_category=entry.primary_category or (categories[0] if categories else ""),
        categories=categories,
        versions=version_list,
        canonical_url=entry.abs_url or ARXIV_ABS_URL.format(arxiv_id=entry.arxiv_id),
        pdf_url=entry.pdf_url or ARXIV_PDF_URL.format(arxiv_id=entry.arxiv_id),
        provenance=Provenance(
            source="arxiv_api",
            harvested_at=harvested_at or "",
            harvest_run_id=harvest_run_id or "manual",
            queries=[query] if query else [],
        ),
    )
