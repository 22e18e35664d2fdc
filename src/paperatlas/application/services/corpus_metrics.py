# src/paperatlas/application/services/corpus_metrics.py
"""
Corpus-level metrics derived from the scored corpus.

Each builder is a pure function of the papers (tags and scores already
applied), the taxonomy and a reference date:

- version churn: recently revised papers with the most versions
- cross-list heatmap: primary category -> secondary category counts
- topic timeseries: weekly paper counts per topic (ISO weeks)
- trend radar: per-topic momentum, recency, cross-listing and churn in [0, 1]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from paperatlas.application.services.scoring_engine import (
    CHURN_SATURATION,
    UPDATE_RECENCY_HALF_LIFE_DAYS,
    _reference,
    recency_score,
)
from paperatlas.domain.paper import Paper
from paperatlas.domain.topic import Topic
from paperatlas.utils.dates import parse_datetime

logger = logging.getLogger(__name__)

METRICS_WINDOW_DAYS = 30
CHURN_LIMIT = 50
TIMESERIES_WEEKS = 52


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def _revision_churn(paper: Paper, reference: datetime) -> float:
    saturation = _clamp((paper.version_count - 1) / CHURN_SATURATION)
    return saturation * recency_score(paper.updated_at, reference, UPDATE_RECENCY_HALF_LIFE_DAYS)


def iso_week_label(value: Union[date, datetime]) -> str:
    year, week, _ = value.isocalendar()
    return f"{year}-W{week:02d}"


@dataclass(frozen=True)
class VersionChurn:
    """Content of metrics/version_churn.json."""

    generated_at: str
    window_days: int
    papers: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "window": f"{self.window_days}d",
            "papers": list(self.papers),
        }


def compute_version_churn(
    papers: Sequence[Paper],
    reference: Optional[Union[date, datetime]] = None,
    window_days: int = METRICS_WINDOW_DAYS,
    limit: int = CHURN_LIMIT,
) -> VersionChurn:
    """
    Papers with two or more versions updated inside the window.

    Ranked by ``0.7 * version_count + 0.3 * update recency`` (30-day half
    life), ties broken by arxiv_id.
    """
    ref = _reference(reference)
    window_start = ref - timedelta(days=window_days)

    ranked = []
    for paper in papers:
        updated = parse_datetime(paper.updated_at)
        if paper.version_count < 2 or updated is None or updated < window_start:
            continue
        recency = recency_score(paper.updated_at, ref, UPDATE_RECENCY_HALF_LIFE_DAYS)
        ranked.append((paper.version_count * 0.7 + recency * 0.3, paper))
    ranked.sort(key=lambda item: (-item[0], item[1].arxiv_id))

    return VersionChurn(
        generated_at=ref.date().isoformat(),
        window_days=window_days,
        papers=[
            {
                "arxiv_id": paper.arxiv_id,
                "title": paper.title,
                "updated_at": paper.updated_at,
                "version_count": paper.version_count,
                "primary_category": paper.primary_category,
                "links": paper.links,
            }
            for _, paper in ranked[:limit]
        ],
    )


@dataclass(frozen=True)
class CrosslistHeatmap:
    """Content of metrics/crosslist_heatmap.json."""

    generated_at: str
    window_days: int
    categories: List[str] = field(default_factory=list)
    matrix: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "window": f"{self.window_days}d",
            "categories": list(self.categories),
            "matrix": {primary: dict(row) for primary, row in self.matrix.items()},
        }


def compute_crosslist_heatmap(
    papers: Sequence[Paper],
    reference: Optional[Union[date, datetime]] = None,
    window_days: int = METRICS_WINDOW_DAYS,
) -> CrosslistHeatmap:
    """
    Count secondary categories per primary category for cross-listed papers.

    Papers submitted before the window are skipped; undated papers count.
    """
    ref = _reference(reference)
    window_start = ref - timedelta(days=window_days)

    categories = set()
    matrix: Dict[str, Dict[str, int]] = {}
    for paper in papers:
        submitted = parse_datetime(paper.submitted_at)
        if submitted is not None and submitted < window_start:
            continue
        primary = paper.primary_category
        if not primary or len(paper.categories) <= 1:
            continue
        categories.add(primary)
        categories.update(paper.categories)
        row = matrix.setdefault(primary, {})
        for category in paper.categories:
            if category != primary:
                row[category] = row.get(category, 0) + 1

    return CrosslistHeatmap(
        generated_at=ref.date().isoformat(),
        window_days=window_days,
        categories=sorted(categories),
        matrix=matrix,
    )


@dataclass(frozen=True)
class TopicTimeseries:
    """Content of metrics/topic_timeseries.json."""

    generated_at: str
    weeks: List[str] = field(default_factory=list)
    topics: Dict[str, List[int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "weeks": list(self.weeks),
            "topics": {topic_id: list(counts) for topic_id, counts in self.topics.items()},
        }


def compute_topic_timeseries(
    papers: Sequence[Paper],
    topics: Sequence[Topic],
    reference: Optional[Union[date, datetime]] = None,
    weeks_back: int = TIMESERIES_WEEKS,
) -> TopicTimeseries:
    """Weekly submission counts per topic for the ``weeks_back`` ISO weeks ending at the reference."""
    ref = _reference(reference)

    weeks: List[str] = []
    for offset in range(weeks_back - 1, -1, -1):
        label = iso_week_label(ref - timedelta(days=offset * 7))
        if label not in weeks:
            weeks.append(label)
    position = {label: index for index, label in enumerate(weeks)}

    series = {topic.id: [0] * len(weeks) for topic in topics}
    for paper in papers:
        submitted = parse_datetime(paper.submitted_at)
        if submitted is None:
            continue
        index = position.get(iso_week_label(submitted))
        if index is None:
            continue
        for tag in paper.topic_tags:
            if tag.topic_id in series:
                series[tag.topic_id][index] += 1

    return TopicTimeseries(generated_at=ref.date().isoformat(), weeks=weeks, topics=series)


@dataclass(frozen=True)
class TrendRadar:
    """Content of metrics/trend_radar.json."""

    generated_at: str
    topics: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "topics": {topic_id: dict(axes) for topic_id, axes in self.topics.items()},
        }


def compute_trend_radar(
    papers: Sequence[Paper],
    topics: Sequence[Topic],
    momentum_by_topic: Mapping[str, float],
    reference: Optional[Union[date, datetime]] = None,
    window_days: int = METRICS_WINDOW_DAYS,
) -> TrendRadar:
    """
    Four [0, 1] axes per topic.

    ``momentum`` maps raw momentum like normalize_momentum. The other axes are
    scaled by the largest value across topics, with a floor of 1 so sparse
    taxonomies are not inflated: ``recency_share`` (papers submitted inside
    the window), ``cross_list_breadth`` (mean cross-list count) and
    ``revision_churn`` (mean churn signal).
    """
    ref = _reference(reference)
    window_start = ref - timedelta(days=window_days)

    stats = {topic.id: {"recent": 0, "cross_list": 0.0, "churn": 0.0, "total": 0} for topic in topics}
    for paper in papers:
        submitted = parse_datetime(paper.submitted_at)
        is_recent = submitted is not None and submitted >= window_start
        churn = _revision_churn(paper, ref)
        for tag in paper.topic_tags:
            entry = stats.get(tag.topic_id)
            if entry is None:
                continue
            if is_recent:
                entry["recent"] += 1
            entry["cross_list"] += paper.cross_list_count
            entry["churn"] += churn
            entry["total"] += 1

    def mean(entry: Dict[str, float], key: str) -> float:
        return entry[key] / entry["total"] if entry["total"] else 0.0

    max_recent = max([entry["recent"] for entry in stats.values()] + [1])
    max_cross = max([mean(entry, "cross_list") for entry in stats.values()] + [1.0])
    max_churn = max([mean(entry, "churn") for entry in stats.values()] + [1.0])

    axes = {}
    for topic in topics:
        entry = stats[topic.id]
        axes[topic.id] = {
            "momentum": _clamp((momentum_by_topic.get(topic.id, 0.0) + 1.0) / 2.0),
            "recency_share": _clamp(entry["recent"] / max_recent),
            "cross_list_breadth": _clamp(mean(entry, "cross_list") / max_cross),
            "revision_churn": _clamp(mean(entry, "churn") / max_churn),
        }

    logger.info(f"Trend radar computed for {len(axes)} topics")
    return TrendRadar(generated_at=ref.date().isoformat(), topics=axes)
