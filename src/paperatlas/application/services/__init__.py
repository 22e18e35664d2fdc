from paperatlas.application.services.entry_normalizer import normalize_entry
from paperatlas.application.services.scoring_engine import (
    TopicMomentum,
    compute_topic_momentum,
    compute_trending,
    normalize_momentum,
    recency_score,
)
from paperatlas.application.services.snapshot_merger import merge_into, merge_paper_records
from paperatlas.application.services.topic_feeds import TopicFeed, build_topic_feeds
from paperatlas.application.services.topic_tagger import tag_paper, tag_papers

__all__ = [
    "normalize_entry",
    "TopicMomentum",
    "compute_topic_momentum",
    "compute_trending",
    "normalize_momentum",
    "recency_score",
    "merge_into",
    "merge_paper_records",
    "TopicFeed",
    "build_topic_feeds",
    "tag_paper",
    "tag_papers",
]
