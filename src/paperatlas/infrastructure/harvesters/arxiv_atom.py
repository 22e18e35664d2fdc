"""
arXiv Atom feed parsing.

Pure functions, no I/O. A feed that fails to parse, or has no entries,
yields an empty AtomFeed instead of raising.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

from paperatlas.domain.harvest import AtomEntry, AtomFeed, EntryVersion
from paperatlas.domain.paper import ARXIV_ABS_URL, ARXIV_PDF_URL
from paperatlas.domain.paper_identity import split_arxiv_version

logger = logging.getLogger(__name__)

ARXIV_API_URL = "http://export.arxiv.org/api/query"
ATOM_NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
    "opensearch": "http://a9.com/-/spec/opensearch/1.1/",
}


def build_query_params(
    *,
    search_query: Optional[str] = None,
    id_list: Optional[List[str]] = None,
    start: int = 0,
    max_results: int = 100,
    sort_by: Optional[str] = "submittedDate",
    sort_order: Optional[str] = "descending",
) -> dict:
    """Query parameters for the export API, in the API's own names."""
    params: dict = {}
    if search_query:
        params["search_query"] = search_query
    if id_list:
        params["id_list"] = ",".join(id_list)
    params["start"] = str(start)
    params["max_results"] = str(max_results)
    if sort_by:
        params["sortBy"] = sort_by
    if sort_order:
        params["sortOrder"] = sort_order
    return params


def parse_atom_feed(xml_text: str) -> AtomFeed:
    """Parse one export API response page."""
    if not xml_text or not xml_text.strip():
        return AtomFeed()
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.warning(f"Unparseable Atom feed, treating as empty: {e}")
        return AtomFeed()

    entries = []
    for node in root.findall("atom:entry", ATOM_NS):
        entry = _parse_entry(node)
        if entry is not None:
            entries.append(entry)

    if not entries:
        return AtomFeed()

    return AtomFeed(entries=entries, total_results=_read_int(root, "opensearch:totalResults"))


def _parse_entry(node: ET.Element) -> Optional[AtomEntry]:
    arxiv_id, id_version = split_arxiv_version(_read_raw(node, "atom:id"))
    # API error entries carry an http://arxiv.org/api/errors#... id
    if not arxiv_id or "://" in arxiv_id:
        return None

    published = _read_text(node, "atom:published")
    updated = _read_text(node, "atom:updated")

    authors = []
    for author_node in node.findall("atom:author", ATOM_NS):
        name = _read_text(author_node, "atom:name")
        if name:
            authors.append(name)

    categories = [c.attrib.get("term", "") for c in node.findall("atom:category", ATOM_NS)]
    categories = [term for term in categories if term]
    primary_node = node.find("arxiv:primary_category", ATOM_NS)
    primary = primary_node.attrib.get("term", "") if primary_node is not None else ""
    if not primary and categories:
        primary = categories[0]

    abs_url, pdf_url = _extract_links(node)

    versions = [
        EntryVersion(version=v.attrib["version"], created=v.attrib.get("created", ""))
        for v in node.findall("arxiv:version", ATOM_NS)
        if v.attrib.get("version")
    ]
    if not versions and id_version:
        versions = [EntryVersion(version=id_version, created=updated or published)]

    return AtomEntry(
        arxiv_id=arxiv_id,
        title=_read_text(node, "atom:title"),
        summary=_read_text(node, "atom:summary"),
        authors=authors,
        published=published,
        updated=updated,
        categories=categories,
        primary_category=primary,
        abs_url=abs_url or ARXIV_ABS_URL.format(arxiv_id=arxiv_id),
        pdf_url=pdf_url or ARXIV_PDF_URL.format(arxiv_id=arxiv_id),
        versions=versions,
    )


def _extract_links(node: ET.Element) -> tuple[str, str]:
    abs_url = ""
    pdf_url = ""
    for link in node.findall("atom:link", ATOM_NS):
        href = link.attrib.get("href", "")
        if not href:
            continue
        if not abs_url and link.attrib.get("rel") == "alternate":
            abs_url = href
        is_pdf = link.attrib.get("type") == "application/pdf" or link.attrib.get("title", "").lower() == "pdf"
        if not pdf_url and is_pdf:
            pdf_url = href
    return abs_url, pdf_url


def _read_raw(node: ET.Element, path: str) -> str:
    found = node.find(path, ATOM_NS)
    if found is None or found.text is None:
        return ""
    return found.text.strip()


def _read_text(node: ET.Element, path: str) -> str:
    # ElementTree has already decoded entities; collapse whitespace only.
    return " ".join(_read_raw(node, path).split())


def _read_int(node: ET.Element, path: str) -> int:
    try:
        return max(0, int(_read_raw(node, path) or 0))
    except ValueError:
        return 0
