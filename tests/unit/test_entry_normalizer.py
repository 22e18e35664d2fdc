"""
Entry normalizer tests.
"""

from paperatlas.application.services.entry_normalizer import normalize_entry
from paperatlas.domain.harvest import AtomEntry, EntryVersion
from paperatlas.infrastructure.harvesters.arxiv_atom import parse_atom_feed
from paperatlas.utils.dates import to_date_string


class TestToDateString:
    def test_iso_timestamps_become_utc_dates(self):
        assert to_date_string("2026-01-20T18:30:00Z") == "2026-01-20"
        assert to_date_string("2026-01-20T23:30:00-05:00") == "2026-01-21"
        assert to_date_string("2026-01-20") == "2026-01-20"

    def test_rfc2822_version_dates(self):
        assert to_date_string("Sat, 10 Jan 2026 00:00:00 GMT") == "2026-01-10"

    def test_invalid_or_missing_is_empty(self):
        assert to_date_string("") == ""
        assert to_date_string(None) == ""
        assert to_date_string("yesterday") == ""


class TestNormalizeEntry:
    """Tests for normalize_entry."""

    def test_normalizes_sample_entry(self, atom_sample):
        entry = parse_atom_feed(atom_sample).entries[0]

        paper = normalize_entry(
            entry,
            query='all:"distribution shift"',
            harvested_at="2026-01-22T10:00:00.000Z",
            harvest_run_id="harvest-20260122-100000-abcdef12",
        )

        assert paper.arxiv_id == "2601.01234"
        assert paper.submitted_at == "2026-01-12"
        assert paper.updated_at == "2026-01-20"
        assert paper.categories == ["cs.LG", "stat.ML", "cs.AI"]
        assert paper.cross_list_count == 2
        assert [v.version for v in paper.versions] == ["v2"]
        assert paper.versions[0].updated_at == "2026-01-20"
        assert paper.version_count == 1
        assert paper.provenance.source == "arxiv_api"
        assert paper.provenance.queries == ['all:"distribution shift"']
        assert paper.provenance.harvest_run_id == "harvest-20260122-100000-abcdef12"

    def test_is_deterministic(self, atom_sample):
        entry = parse_atom_feed(atom_sample).entries[0]
        kwargs = {"query": "q", "harvested_at": "2026-01-22T00:00:00Z", "harvest_run_id": "r1"}

        assert normalize_entry(entry, **kwargs) == normalize_entry(entry, **kwargs)

    def test_empty_entry_still_satisfies_invariants(self):
        paper = normalize_entry(AtomEntry(arxiv_id="2601.00001"))

        assert paper.categories == []
        assert paper.cross_list_count == 0
        assert [v.version for v in paper.versions] == ["v1"]
        assert paper.version_count == len(paper.versions) == 1
        assert paper.submitted_at == ""
        assert paper.updated_at == ""
        assert paper.canonical_url == "https://arxiv.org/abs/2601.00001"
        assert paper.provenance.harvest_run_id == "manual"
        assert paper.provenance.queries == []

    def test_fallbacks(self):
        entry = AtomEntry(
            arxiv_id="2601.00002",
            published="2026-01-05T00:00:00Z",
            updated="garbage",
            primary_category="math.PR",
            versions=[EntryVersion("v10", ""), EntryVersion("v2", ""), EntryVersion("v2", "")],
        )

        paper = normalize_entry(entry)

        # An unparseable update date falls back to the submission date.
        assert paper.updated_at == "2026-01-05"
        assert paper.categories == ["math.PR"]
        assert [v.version for v in paper.versions] == ["v2", "v10"]
        assert paper.version_count == 2

    def test_missing_update_uses_published(self):
        entry = AtomEntry(arxiv_id="2601.00003", published="2026-01-07T08:00:00Z")

        paper = normalize_entry(entry)

        assert paper.updated_at == "2026-01-07"
        assert paper.versions[0].updated_at == "2026-01-07"
