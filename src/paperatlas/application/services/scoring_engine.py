# src/paperatlas/application/services/scoring_engine.py
"""
Scoring engine.

Two passes over the tagged corpus:
1. Topic momentum: relative growth of each topic's paper count in a recent
   window versus a length-normalized baseline window.
2. Trending score per paper: weighted blend of submission recency, mean
   topic momentum, cross-listing breadth and revision churn.

All date arithmetic is in UTC; a reference date means midnight UTC.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from paperatlas.domain.paper import Paper
from paperatlas.domain.ranking import RankingConfig
from paperatlas.domain.topic import Topic
from paperatlas.utils.dates import DateLike, parse_datetime, utc_midnight

logger = logging.getLogger(__name__)

UPDATE_RECENCY_HALF_LIFE_DAYS = 30.0
CROSS_LIST_SATURATION = 3
CHURN_SATURATION = 3


@dataclass(frozen=True)
class TopicMomentum:
    """Content of metrics/topic_momentum.json."""

    generated_at: str
    window_a: str
    window_b: str
    topics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "window": {"A": self.window_a, "B": self.window_b},
            "topics": dict(self.topics),
        }


def _reference(reference: Optional[Union[date, datetime]]) -> datetime:
    return utc_midnight(reference or datetime.now(timezone.utc).date())


def compute_topic_momentum(
    papers: Sequence[Paper],
    topics: Sequence[Topic],
    reference: Optional[Union[date, datetime]] = None,
    window_a: int = 7,
    window_b: int = 14,
) -> TopicMomentum:
    """
    Momentum per topic id.

    Window A: ``submitted >= ref - A``.
    Window B: ``ref - (A + B) <= submitted < ref - A``.
    ``momentum = (countA - baseline) / max(1, baseline)`` with
    ``baseline = countB * A / B``, rounded to 3 decimals. Values are
    unbounded and may be negative.
    """
    ref = _reference(reference)
    start_a = ref - timedelta(days=window_a)
    start_b = ref - timedelta(days=window_a + window_b)

    counts_a = {topic.id: 0 for topic in topics}
    counts_b = {topic.id: 0 for topic in topics}

    for paper in papers:
        submitted = parse_datetime(paper.submitted_at)
        if submitted is None:
            continue
        topic_ids = [tag.topic_id for tag in paper.topic_tags]
        if submitted >= start_a:
            for topic_id in topic_ids:
                counts_a[topic_id] = counts_a.get(topic_id, 0) + 1
        elif start_b <= submitted < start_a:
            for topic_id in topic_ids:
                counts_b[topic_id] = counts_b.get(topic_id, 0) + 1

    momentum: Dict[str, float] = {}
    for topic in topics:
        count_a = counts_a[topic.id]
        baseline = counts_b[topic.id] * (window_a / window_b) if window_b > 0 else 0.0
        momentum[topic.id] = round((count_a - baseline) / max(1.0, baseline), 3)

    return TopicMomentum(
        generated_at=ref.date().isoformat(),
        window_a=f"{start_a.date().isoformat()}_to_{ref.date().isoformat()}",
        window_b=f"{start_b.date().isoformat()}_to_{start_a.date().isoformat()}",
        topics=momentum,
    )


def normalize_momentum(momentum_by_topic: Mapping[str, float]) -> Dict[str, float]:
    """Map raw momentum into [0, 1]: -1 (halved) -> 0, 0 (flat) -> 0.5, +1 (doubled) and above -> 1."""
    return {
        topic_id: min(1.0, max(0.0, (value + 1.0) / 2.0))
        for topic_id, value in momentum_by_topic.items()
    }


def recency_score(value: DateLike, reference: datetime, half_life_days: float) -> float:
    """Exponential half-life decay of a date's age; 0 for a missing date, 1 for a future one."""
    parsed = parse_datetime(value)
    if parsed is None or half_life_days <= 0:
        return 0.0
    age_days = max(0.0, (reference - parsed).total_seconds() / 86400.0)
    decay = math.exp(-math.log(2) * age_days / half_life_days)
    return decay if math.isfinite(decay) else 0.0


def trending_score(
    paper: Paper,
    momentum_by_topic: Mapping[str, float],
    config: RankingConfig,
    reference: datetime,
) -> float:
    weights = config.weights
    recency = recency_score(paper.submitted_at, reference, config.recency_half_life_days)

    tag_momentum = [momentum_by_topic.get(tag.topic_id, 0.0) for tag in paper.topic_tags]
    momentum = sum(tag_momentum) / len(tag_momentum) if tag_momentum else 0.0

    cross_list = min(1.0, paper.cross_list_count / CROSS_LIST_SATURATION)
    churn = min(1.0, max(0.0, (paper.version_count - 1) / CHURN_SATURATION))
    churn *= recency_score(paper.updated_at, reference, UPDATE_RECENCY_HALF_LIFE_DAYS)

    score = (
        weights.recency * recency
        + weights.momentum * momentum
        + weights.cross_list * cross_list
        + weights.churn * churn
    )
    return round(score, 4)


def compute_trending(
    papers: Sequence[Paper],
    momentum_by_topic: Mapping[str, float],
    config: RankingConfig,
    reference: Optional[Union[date, datetime]] = None,
) -> List[Paper]:
    """
    Return papers with ``trending_score`` overwritten.

    ``momentum_by_topic`` is expected in [0, 1] (see normalize_momentum).
    Weights are used as configured, without renormalization.
    """
    ref = _reference(reference)
    scored = [
        paper.with_trending_score(trending_score(paper, momentum_by_topic, config, ref))
        for paper in papers
    ]
    logger.info(f"Scored {len(scored)} papers (reference {ref.date().isoformat()})")
    return scored
