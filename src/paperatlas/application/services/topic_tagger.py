# src/paperatlas/application/services/topic_tagger.py
"""
Rule-based topic tagger.

Matches case-insensitive substrings of title + abstract against each
topic's keyword lists. Deterministic: the same paper and taxonomy always
give the same tags, and ``rationale.matched_keywords`` explains each one.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from paperatlas.domain.paper import Paper, TagRationale, TopicTag, unique
from paperatlas.domain.topic import Topic

logger = logging.getLogger(__name__)

RULES_VERSION = "v1"


def _find_matches(text: str, keywords: Sequence[str]) -> List[str]:
    return [keyword for keyword in keywords if keyword and keyword.lower() in text]


def tag_paper(paper: Paper, topics: Sequence[Topic], rules_version: str = RULES_VERSION) -> List[TopicTag]:
    """Tags for one paper, highest confidence first (ties keep topic order)."""
    text = f"{paper.title} {paper.abstract}".lower()
    tags: List[TopicTag] = []

    for topic in topics:
        if _find_matches(text, topic.exclude_keywords):
            continue

        matched_any = _find_matches(text, topic.keywords_any)
        matched_all = _find_matches(text, topic.keywords_all)
        has_any = not topic.keywords_any or bool(matched_any)
        has_all = not topic.keywords_all or len(matched_all) == len(topic.keywords_all)
        if not (has_any and has_all):
            continue

        whitelisted = bool(paper.primary_category) and paper.primary_category in topic.category_whitelist
        matched = unique(matched_any + matched_all)
        if not matched and not whitelisted:
            continue

        confidence = min(1.0, round(0.5 + 0.08 * len(matched) + (0.15 if whitelisted else 0.0), 2))
        tags.append(
            TopicTag(
                topic_id=topic.id,
                confidence=confidence,
                rationale=TagRationale(matched_keywords=matched, rules_version=rules_version),
            )
        )

    # sorted() is stable, so equal confidences keep taxonomy order
    return sorted(tags, key=lambda tag: tag.confidence, reverse=True)


def tag_papers(
    papers: Sequence[Paper],
    topics: Sequence[Topic],
    rules_version: str = RULES_VERSION,
) -> List[Paper]:
    """Re-derive tags for every paper, replacing whatever was stored."""
    tagged = [paper.with_tags(tag_paper(paper, topics, rules_version)) for paper in papers]
    logger.info(f"Tagged {len(tagged)} papers across {len(count_tags(tagged))} topics")
    return tagged


def count_tags(papers: Sequence[Paper]) -> Dict[str, int]:
    """Number of papers carrying each topic id."""
    counts: Dict[str, int] = {}
    for paper in papers:
        for tag in paper.topic_tags:
            counts[tag.topic_id] = counts.get(tag.topic_id, 0) + 1
    return counts
