"""
Pipeline input configuration under the data dir.

    taxonomy/topics.json                 required, JSON array of topics
    ranking/config.json                  required, weights + windows
    editorial/query-pack-version.json    optional, {"version": "..."}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from paperatlas.domain.errors import ConfigurationError
from paperatlas.domain.ranking import RankingConfig
from paperatlas.domain.topic import Topic
from paperatlas.infrastructure.stores.json_io import read_json

logger = logging.getLogger(__name__)


class ConfigStore:
    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    @property
    def taxonomy_path(self) -> Path:
        return self.data_dir / "taxonomy" / "topics.json"

    @property
    def ranking_path(self) -> Path:
        return self.data_dir / "ranking" / "config.json"

    @property
    def query_pack_path(self) -> Path:
        return self.data_dir / "editorial" / "query-pack-version.json"

    def _load_required(self, path: Path) -> Any:
        try:
            data = read_json(path)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
        if data is None:
            raise ConfigurationError(f"Required config file not found: {path}")
        return data

    def load_topics(self) -> List[Topic]:
        """
        Load the topic taxonomy.

        Raises:
            ConfigurationError: File missing, not a JSON array, or an entry
                without an id.
        """
        data = self._load_required(self.taxonomy_path)
        if not isinstance(data, list):
            raise ConfigurationError(f"{self.taxonomy_path} must contain a JSON array of topics")
        try:
            topics = [Topic.from_dict(item) for item in data]
        except (AttributeError, ValueError) as e:
            raise ConfigurationError(f"Invalid topic in {self.taxonomy_path}: {e}") from e

        logger.info(f"Loaded {len(topics)} topics from {self.taxonomy_path}")
        return topics

    def load_ranking_config(self) -> RankingConfig:
        data = self._load_required(self.ranking_path)
        if not isinstance(data, dict):
            raise ConfigurationError(f"{self.ranking_path} must contain a JSON object")
        try:
            return RankingConfig.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid ranking config in {self.ranking_path}: {e}") from e

    def load_query_pack_version(self) -> str:
        """Version of the editorial query pack, ``""`` when absent or unreadable."""
        try:
            data = read_json(self.query_pack_path, default={})
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable {self.query_pack_path}: {e}")
            return ""
        if not isinstance(data, dict):
            return ""
        return str(data.get("version") or "")
