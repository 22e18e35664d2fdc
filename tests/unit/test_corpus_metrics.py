"""
Corpus metrics tests: version churn, cross-list heatmap, topic timeseries, trend radar.
"""

from datetime import date, datetime, timezone

import pytest

from paperatlas.application.services.corpus_metrics import (
    compute_crosslist_heatmap,
    compute_topic_timeseries,
    compute_trend_radar,
    compute_version_churn,
    iso_week_label,
)
from paperatlas.domain.paper import Paper, PaperVersion, TopicTag
from paperatlas.domain.topic import Topic

REFERENCE = date(2026, 1, 22)


def versions(count: int):
    return [PaperVersion(f"v{n}") for n in range(1, count + 1)]


def paper(arxiv_id: str, *topic_ids: str, **fields) -> Paper:
    return Paper(arxiv_id=arxiv_id, topic_tags=[TopicTag(topic_id, 0.6) for topic_id in topic_ids], **fields)


class TestVersionChurn:
    def test_ranks_revised_papers_inside_window(self):
        papers = [
            paper("many", updated_at="2026-01-20", versions=versions(3)),
            paper("two-b", updated_at="2026-01-22", versions=versions(2)),
            paper("two-a", updated_at="2026-01-22", versions=versions(2)),
            paper("stale", updated_at="2025-11-01", versions=versions(5)),
            paper("single", updated_at="2026-01-22", versions=versions(1)),
            paper("undated", updated_at="", versions=versions(4)),
        ]

        churn = compute_version_churn(papers, REFERENCE)

        assert [entry["arxiv_id"] for entry in churn.papers] == ["many", "two-a", "two-b"]
        assert churn.to_dict()["window"] == "30d"
        assert churn.papers[1] == {
            "arxiv_id": "two-a",
            "title": "",
            "updated_at": "2026-01-22",
            "version_count": 2,
            "primary_category": "",
            "links": {
                "arxiv_abs": "https://arxiv.org/abs/two-a",
                "arxiv_pdf": "https://arxiv.org/pdf/two-a.pdf",
            },
        }

    def test_limit(self):
        papers = [paper(f"p{i}", updated_at="2026-01-21", versions=versions(2)) for i in range(5)]

        churn = compute_version_churn(papers, REFERENCE, limit=2)

        assert [entry["arxiv_id"] for entry in churn.papers] == ["p0", "p1"]


class TestCrosslistHeatmap:
    def test_counts_secondary_categories_per_primary(self):
        papers = [
            paper("a", submitted_at="2026-01-10", primary_category="cs.LG", categories=["cs.LG", "stat.ML", "cs.AI"]),
            paper("b", submitted_at="", primary_category="cs.LG", categories=["cs.LG", "stat.ML"]),
            paper("single", submitted_at="2026-01-10", primary_category="cs.CV", categories=["cs.CV"]),
            paper("old", submitted_at="2025-10-01", primary_category="math.OC", categories=["math.OC", "cs.LG"]),
            paper("no-primary", submitted_at="2026-01-10", categories=["q-bio.NC", "cs.NE"]),
        ]

        heatmap = compute_crosslist_heatmap(papers, REFERENCE)

        assert heatmap.to_dict() == {
            "generated_at": "2026-01-22",
            "window": "30d",
            "categories": ["cs.AI", "cs.LG", "stat.ML"],
            "matrix": {"cs.LG": {"stat.ML": 2, "cs.AI": 1}},
        }


class TestTopicTimeseries:
    def test_iso_week_labels(self):
        assert iso_week_label(date(2026, 1, 1)) == "2026-W01"
        assert iso_week_label(date(2025, 12, 28)) == "2025-W52"
        assert iso_week_label(datetime(2026, 1, 22, tzinfo=timezone.utc)) == "2026-W04"

    def test_weekly_counts_per_topic(self):
        papers = [
            paper("this-week", "t", submitted_at="2026-01-20"),
            paper("last-week", "t", "unknown", submitted_at="2026-01-18"),
            paper("too-old", "t", submitted_at="2024-06-01"),
            paper("undated", "t", submitted_at=""),
        ]

        series = compute_topic_timeseries(papers, [Topic(id="t"), Topic(id="u")], REFERENCE)

        assert len(series.weeks) == 52
        assert series.weeks[0] == "2025-W05"
        assert series.weeks[-1] == "2026-W04"
        assert series.topics["t"][-2:] == [1, 1]
        assert sum(series.topics["t"]) == 2
        assert series.topics["u"] == [0] * 52
        assert "unknown" not in series.to_dict()["topics"]


class TestTrendRadar:
    def test_axes_scaled_into_unit_interval(self):
        papers = [
            paper(
                "a-recent",
                "a",
                submitted_at="2026-01-20",
                updated_at="2026-01-22",
                categories=["cs.LG", "stat.ML", "cs.AI", "math.OC"],
                versions=versions(4),
            ),
            paper("a-old", "a", submitted_at="2025-11-01", updated_at="2025-11-01", categories=["cs.LG"]),
            paper("b-recent", "b", submitted_at="2026-01-21", categories=["cs.CV", "cs.LG"], versions=versions(1)),
        ]
        topics = [Topic(id="a"), Topic(id="b"), Topic(id="empty")]

        radar = compute_trend_radar(papers, topics, {"a": 1.0, "b": -0.5}, REFERENCE)

        assert radar.generated_at == "2026-01-22"
        assert radar.topics["a"] == {
            "momentum": 1.0,
            "recency_share": 1.0,
            "cross_list_breadth": 1.0,
            "revision_churn": 0.5,
        }
        assert radar.topics["b"]["momentum"] == 0.25
        assert radar.topics["b"]["cross_list_breadth"] == pytest.approx(1 / 1.5)
        assert radar.topics["b"]["revision_churn"] == 0.0
        assert radar.topics["empty"] == {
            "momentum": 0.5,
            "recency_share": 0.0,
            "cross_list_breadth": 0.0,
            "revision_churn": 0.0,
        }

    def test_sparse_taxonomy_not_inflated(self):
        papers = [paper("p", "t", submitted_at="2025-01-01", updated_at="2026-01-22", versions=versions(2))]

        radar = compute_trend_radar(papers, [Topic(id="t")], {}, REFERENCE)

        assert radar.topics["t"]["recency_share"] == 0.0
        assert radar.topics["t"]["revision_churn"] == pytest.approx(1 / 3)
