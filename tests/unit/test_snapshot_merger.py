"""
Snapshot merge tests.
"""

from paperatlas.application.services.snapshot_merger import (
    merge_into,
    merge_paper_records,
    merge_versions,
)
from paperatlas.domain.paper import Paper, PaperVersion, Provenance, TagRationale, TopicTag


def make_paper(**overrides) -> Paper:
    values = dict(
        arxiv_id="2601.01234",
        title="Original Title",
        abstract="Original abstract.",
        authors=["Ada Lovelace"],
        submitted_at="2026-01-10",
        updated_at="2026-01-12",
        primary_category="cs.LG",
        categories=["cs.LG", "stat.ML"],
        versions=[PaperVersion("v1", "2026-01-10"), PaperVersion("v2", "2026-01-12")],
        canonical_url="https://arxiv.org/abs/2601.01234",
        pdf_url="https://arxiv.org/pdf/2601.01234.pdf",
        provenance=Provenance(harvested_at="2026-01-12T00:00:00Z", harvest_run_id="run-1", queries=["q1"]),
    )
    values.update(overrides)
    return Paper(**values)


class TestMergePaperRecords:
    """Tests for merge_paper_records."""

    def test_no_existing_returns_incoming(self):
        incoming = make_paper()
        assert merge_paper_records(None, incoming) is incoming

    def test_merge_is_idempotent(self):
        paper = make_paper(
            topic_tags=[TopicTag("t1", 0.66, TagRationale(["invariant"]))],
            trending_score=0.42,
        )
        assert merge_paper_records(paper, paper) == paper

    def test_strictly_newer_incoming_overrides_descriptive_fields(self):
        existing = make_paper()
        incoming = make_paper(
            title="Revised Title",
            abstract="Revised abstract.",
            authors=["Ada Lovelace", "Alan Turing"],
            updated_at="2026-01-20",
            versions=[PaperVersion("v3", "2026-01-20")],
        )

        merged = merge_paper_records(existing, incoming)

        assert merged.title == "Revised Title"
        assert merged.abstract == "Revised abstract."
        assert merged.authors == ["Ada Lovelace", "Alan Turing"]
        assert merged.updated_at == "2026-01-20"
        assert [v.version for v in merged.versions] == ["v1", "v2", "v3"]

    def test_equal_updated_at_keeps_existing(self):
        existing = make_paper()
        incoming = make_paper(title="Title Correction", updated_at="2026-01-12")

        merged = merge_paper_records(existing, incoming)

        assert merged.title == "Original Title"

    def test_older_incoming_keeps_existing(self):
        merged = merge_paper_records(make_paper(), make_paper(title="Stale", updated_at="2026-01-01"))
        assert merged.title == "Original Title"
        assert merged.updated_at == "2026-01-12"

    def test_unparseable_existing_date_loses(self):
        merged = merge_paper_records(make_paper(updated_at=""), make_paper(title="Dated", updated_at="2026-01-02"))
        assert merged.title == "Dated"

    def test_submitted_at_is_sticky(self):
        merged = merge_paper_records(make_paper(), make_paper(submitted_at="2026-01-15", updated_at="2026-01-20"))
        assert merged.submitted_at == "2026-01-10"

        merged = merge_paper_records(make_paper(submitted_at=""), make_paper(submitted_at="2026-01-15"))
        assert merged.submitted_at == "2026-01-15"

    def test_categories_and_queries_are_unioned(self):
        incoming = make_paper(
            categories=["cs.LG", "cs.AI"],
            provenance=Provenance(harvest_run_id="run-2", queries=["q2", "q1"]),
        )

        merged = merge_paper_records(make_paper(), incoming)

        assert merged.categories == ["cs.LG", "stat.ML", "cs.AI"]
        assert merged.provenance.queries == ["q1", "q2"]
        assert merged.provenance.harvest_run_id == "run-2"

    def test_counts_follow_merged_lists(self):
        incoming = make_paper(
            categories=["math.ST"],
            versions=[PaperVersion("v3", "2026-01-20")],
        )

        merged = merge_paper_records(make_paper(), incoming)

        assert merged.cross_list_count == len(merged.categories) - 1 == 2
        assert merged.version_count == len(merged.versions) == 3

    def test_derived_fields_survive_an_untagged_incoming(self):
        existing = make_paper(topic_tags=[TopicTag("t1", 0.58)], trending_score=0.3)

        merged = merge_paper_records(existing, make_paper())

        assert [t.topic_id for t in merged.topic_tags] == ["t1"]
        assert merged.trending_score == 0.3


class TestMergeVersions:
    """Version-set union behaviour."""

    def test_keeps_later_date_per_label(self):
        merged = merge_versions(
            [PaperVersion("v1", "2026-01-01")],
            [PaperVersion("v1", "2026-01-03")],
            [PaperVersion("v1", "")],
        )
        assert merged == [PaperVersion("v1", "2026-01-03")]

    def test_natural_label_order(self):
        merged = merge_versions([PaperVersion("v10", ""), PaperVersion("v2", ""), PaperVersion("v1", "")])
        assert [v.version for v in merged] == ["v1", "v2", "v10"]

    def test_associative_for_version_sets(self):
        a = make_paper(versions=[PaperVersion("v1", "2026-01-01")])
        b = make_paper(versions=[PaperVersion("v1", "2026-01-02"), PaperVersion("v2", "2026-01-05")])
        c = make_paper(versions=[PaperVersion("v3", "2026-01-09"), PaperVersion("v2", "2026-01-04")])

        sequential = merge_paper_records(merge_paper_records(a, b), c)
        grouped = merge_paper_records(a, merge_paper_records(b, c))

        assert sequential.versions == grouped.versions
        assert [v.version for v in sequential.versions] == ["v1", "v2", "v3"]


class TestMergeInto:
    def test_folds_batch_into_corpus_copy(self):
        corpus = {"2601.01234": make_paper()}
        batch = [
            make_paper(updated_at="2026-01-20", title="Newer"),
            make_paper(arxiv_id="2601.05678", title="Brand New"),
        ]

        merged = merge_into(corpus, batch)

        assert set(merged) == {"2601.01234", "2601.05678"}
        assert merged["2601.01234"].title == "Newer"
        assert corpus["2601.01234"].title == "Original Title"
