"""
Feed parser tests.
"""

from paperatlas.infrastructure.harvesters.arxiv_atom import (
    build_query_params,
    parse_atom_feed,
)


EMPTY_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"
      xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">
  <title>ArXiv Query</title>
  <opensearch:totalResults>17</opensearch:totalResults>
</feed>
"""

VERSIONED_ENTRY = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <entry>
    <id>http://arxiv.org/abs/2601.09999v3</id>
    <published>2026-01-02T00:00:00Z</published>
    <updated>2026-01-15T00:00:00Z</updated>
    <title>With History</title>
    <arxiv:version version="v1" created="Fri, 2 Jan 2026 00:00:00 GMT"/>
    <arxiv:version version="v2" created="Sat, 10 Jan 2026 00:00:00 GMT"/>
    <arxiv:version version="v3" created="Thu, 15 Jan 2026 00:00:00 GMT"/>
  </entry>
</feed>
"""

ERROR_ENTRY = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/api/errors#incorrect_id_format_for_1234</id>
    <title>Error</title>
    <summary>incorrect id format for 1234</summary>
  </entry>
</feed>
"""


class TestParseAtomFeed:
    """Tests for parse_atom_feed."""

    def test_parses_entries_and_total(self, atom_sample):
        feed = parse_atom_feed(atom_sample)

        assert feed.total_results == 42
        assert [e.arxiv_id for e in feed.entries] == ["2601.01234", "hep-th/9901001"]

    def test_normalizes_title_and_decodes_entities(self, atom_sample):
        entry = parse_atom_feed(atom_sample).entries[0]

        assert entry.title == "Invariant Risk Minimization for Distribution Shift"
        assert entry.summary == "We study invariant predictors & their robustness under distribution shift."
        assert entry.authors == ["Ada Lovelace", "Alan Turing"]

    def test_categories_links_and_synthesized_version(self, atom_sample):
        entry = parse_atom_feed(atom_sample).entries[0]

        assert entry.primary_category == "cs.LG"
        assert entry.categories == ["cs.LG", "stat.ML", "cs.AI"]
        assert entry.abs_url == "http://arxiv.org/abs/2601.01234v2"
        assert entry.pdf_url == "http://arxiv.org/pdf/2601.01234v2"
        assert len(entry.versions) == 1
        assert entry.versions[0].version == "v2"
        assert entry.versions[0].created == "2026-01-20T18:30:00Z"

    def test_fallbacks_for_missing_primary_and_links(self, atom_sample):
        entry = parse_atom_feed(atom_sample).entries[1]

        assert entry.primary_category == "hep-th"
        assert entry.abs_url == "https://arxiv.org/abs/hep-th/9901001"
        assert entry.pdf_url == "https://arxiv.org/pdf/hep-th/9901001.pdf"

    def test_explicit_version_history_wins(self):
        entry = parse_atom_feed(VERSIONED_ENTRY).entries[0]

        assert [v.version for v in entry.versions] == ["v1", "v2", "v3"]
        assert entry.versions[1].created == "Sat, 10 Jan 2026 00:00:00 GMT"

    def test_entry_less_feed_reports_zero_total(self):
        feed = parse_atom_feed(EMPTY_FEED)

        assert feed.entries == []
        assert feed.total_results == 0

    def test_malformed_input_never_raises(self):
        for text in ["", "   ", "<feed><entry>", "not xml at all", "<?xml version='1.0'?><html/>"]:
            feed = parse_atom_feed(text)
            assert feed.entries == []
            assert feed.total_results == 0

    def test_api_error_entries_are_skipped(self):
        assert parse_atom_feed(ERROR_ENTRY).entries == []


class TestQueryParams:
    """Tests for export API query construction."""

    def test_params_use_api_names(self):
        params = build_query_params(search_query="cat:cs.LG", start=100, max_results=50)

        assert params == {
            "search_query": "cat:cs.LG",
            "start": "100",
            "max_results": "50",
            "sortBy": "submittedDate",
            "sortOrder": "descending",
        }

    def test_id_list_is_comma_joined(self):
        params = build_query_params(id_list=["2601.00001", "2601.00002"], max_results=2, sort_by=None, sort_order=None)

        assert params == {"id_list": "2601.00001,2601.00002", "start": "0", "max_results": "2"}
