"""
Per-topic feeds: the newest and the highest-trending papers of each topic.

Output shape (topic_feeds/<topic>.json):
    {"topic": id, "generated_at": "YYYY-MM-DD", "latest": [ids], "trending": [ids]}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from paperatlas.domain.paper import Paper
from paperatlas.domain.topic import Topic
from paperatlas.utils.dates import parse_datetime

DEFAULT_LIMIT = 12


@dataclass(frozen=True)
class TopicFeed:
    topic: str
    generated_at: str
    latest: List[str] = field(default_factory=list)
    trending: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "generated_at": self.generated_at,
            "latest": list(self.latest),
            "trending": list(self.trending),
        }


def _submitted_key(paper: Paper) -> float:
    submitted = parse_datetime(paper.submitted_at)
    return submitted.timestamp() if submitted else float("-inf")


def build_topic_feed(
    topic: Topic,
    papers: Sequence[Paper],
    generated_at: str,
    limit_latest: int = DEFAULT_LIMIT,
    limit_trending: int = DEFAULT_LIMIT,
) -> TopicFeed:
    tagged = [
        paper for paper in papers
        if any(tag.topic_id == topic.id for tag in paper.topic_tags)
    ]
    # Ids ascending first so the stable sorts below break ties deterministically.
    tagged.sort(key=lambda p: p.arxiv_id)

    latest = sorted(tagged, key=_submitted_key, reverse=True)[:limit_latest]
    trending = sorted(tagged, key=lambda p: p.trending_score, reverse=True)[:limit_trending]
    return TopicFeed(
        topic=topic.id,
        generated_at=generated_at,
        latest=[paper.arxiv_id for paper in latest],
        trending=[paper.arxiv_id for paper in trending],
    )


def build_topic_feeds(
    topics: Sequence[Topic],
    papers: Sequence[Paper],
    generated_at: str,
    limit_latest: int = DEFAULT_LIMIT,
    limit_trending: int = DEFAULT_LIMIT,
) -> List[TopicFeed]:
    """One feed per taxonomy topic, including topics with no papers."""
    return [
        build_topic_feed(topic, papers, generated_at, limit_latest, limit_trending)
        for topic in topics
    ]
