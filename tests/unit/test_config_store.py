"""
ConfigStore tests.
"""

import json

import pytest

from paperatlas.domain.errors import ConfigurationError
from paperatlas.infrastructure.stores.config_store import ConfigStore


class TestConfigStore:
    """Tests for taxonomy / ranking config loading."""

    def test_loads_topics_and_ranking(self, data_dir):
        store = ConfigStore(data_dir)

        topics = store.load_topics()
        ranking = store.load_ranking_config()

        assert [t.id for t in topics] == ["distribution-shift", "diffusion-models"]
        assert ranking.version == "2026-01"
        assert ranking.weights.recency == 0.6

    def test_missing_taxonomy_is_fatal(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigStore(tmp_path).load_topics()

    def test_missing_ranking_config_is_fatal(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigStore(tmp_path).load_ranking_config()

    def test_invalid_json_is_fatal(self, data_dir):
        (data_dir / "taxonomy" / "topics.json").write_text("[{", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            ConfigStore(data_dir).load_topics()

    def test_taxonomy_must_be_a_list(self, data_dir):
        (data_dir / "taxonomy" / "topics.json").write_text('{"id": "x"}', encoding="utf-8")

        with pytest.raises(ConfigurationError, match="array"):
            ConfigStore(data_dir).load_topics()

    def test_topic_without_id_is_fatal(self, data_dir):
        (data_dir / "taxonomy" / "topics.json").write_text('[{"title": "nameless"}]', encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid topic"):
            ConfigStore(data_dir).load_topics()

    def test_ranking_without_weights_is_fatal(self, data_dir):
        (data_dir / "ranking" / "config.json").write_text('{"version": "v1"}', encoding="utf-8")

        with pytest.raises(ConfigurationError, match="weights"):
            ConfigStore(data_dir).load_ranking_config()

    def test_query_pack_version_is_optional(self, data_dir):
        store = ConfigStore(data_dir)
        assert store.load_query_pack_version() == ""

        (data_dir / "editorial").mkdir()
        store.query_pack_path.write_text(json.dumps({"version": "qp-7"}), encoding="utf-8")
        assert store.load_query_pack_version() == "qp-7"
