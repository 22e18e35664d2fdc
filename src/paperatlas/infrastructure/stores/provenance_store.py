# src/paperatlas/infrastructure/stores/provenance_store.py
"""
Build provenance and editorial ledger.

    provenance/build.json            latest build, overwritten each run
    provenance/update-log.ndjson     one line appended per run
    editorial/ledger.ndjson          one line per new ranking config version
    metrics/topic_momentum.json      momentum of the latest run
    metrics/<name>.json              version churn, cross-list heatmap, topic
                                     timeseries and trend radar
    topic_feeds/<topic>.json         per-topic feeds
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from paperatlas.infrastructure.stores.json_io import append_ndjson, write_json

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class BuildInfo:
    harvest_window: str
    records: int
    source: str = "arxiv_api"
    dataset: str = "prod"
    status: str = "ok"
    ranking_config_version: Optional[str] = None
    query_pack_version: Optional[str] = None
    run_id: Optional[str] = None


class ProvenanceStore:
    def __init__(self, data_dir: Path, *, now: Callable[[], datetime] = _utcnow):
        self.data_dir = Path(data_dir)
        self._now = now

    @property
    def build_path(self) -> Path:
        return self.data_dir / "provenance" / "build.json"

    @property
    def update_log_path(self) -> Path:
        return self.data_dir / "provenance" / "update-log.ndjson"

    @property
    def ledger_path(self) -> Path:
        return self.data_dir / "editorial" / "ledger.ndjson"

    @property
    def metrics_dir(self) -> Path:
        return self.data_dir / "metrics"

    @property
    def momentum_path(self) -> Path:
        return self.metrics_dir / "topic_momentum.json"

    @property
    def feeds_dir(self) -> Path:
        return self.data_dir / "topic_feeds"

    def write_provenance(self, info: BuildInfo) -> Dict[str, Any]:
        """Overwrite build.json and append the matching update-log entry."""
        now = self._now()
        snapshot = now.date().isoformat()
        updated_at = _isoformat(now)
        versions = _drop_empty(
            {
                "ranking_config_version": info.ranking_config_version,
                "query_pack_version": info.query_pack_version,
            }
        )

        build = {
            "snapshot": snapshot,
            "harvest_window": info.harvest_window,
            "source": info.source,
            "updated_at": updated_at,
            "dataset": info.dataset,
            "commit": os.environ.get("GITHUB_SHA") or "local",
            **versions,
        }
        update_entry = {
            "snapshot": snapshot,
            "harvest_window": info.harvest_window,
            "records": info.records,
            "status": info.status,
            "updated_at": updated_at,
            **versions,
            **_drop_empty({"run_id": info.run_id}),
        }

        write_json(self.build_path, build)
        append_ndjson(self.update_log_path, update_entry)
        logger.info(f"Provenance written: {info.records} records, window {info.harvest_window}")
        return build

    def record_ranking_version(self, version: Optional[str]) -> bool:
        """Append a ledger entry the first time ``version`` is seen. Returns True if appended."""
        if not version:
            return False
        if version in self._ledger_ranking_versions():
            return False

        append_ndjson(
            self.ledger_path,
            {
                "timestamp": _isoformat(self._now()),
                "type": "ranking-config",
                "ranking_config": version,
                "note": "Ranking config version updated",
            },
        )
        logger.info(f"Editorial ledger: ranking config {version} recorded")
        return True

    def _ledger_ranking_versions(self) -> set:
        versions = set()
        try:
            with open(self.ledger_path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entry = json.loads(line)
                    except json.JSONDecodeError:
                        logger.warning(f"Skipping malformed ledger line in {self.ledger_path}")
                        continue
                    if entry.get("type") == "ranking-config" and entry.get("ranking_config"):
                        versions.add(entry["ranking_config"])
        except FileNotFoundError:
            pass
        return versions

    def write_momentum(self, momentum: Dict[str, Any]) -> Path:
        return write_json(self.momentum_path, momentum)

    def write_metric(self, name: str, payload: Dict[str, Any]) -> Path:
        """Overwrite metrics/<name>.json."""
        return write_json(self.metrics_dir / f"{name}.json", payload)

    def write_topic_feeds(self, feeds: Iterable[Dict[str, Any]]) -> int:
        count = 0
        for feed in feeds:
            write_json(self.feeds_dir / f"{feed['topic']}.json", feed)
            count += 1
        return count


def _drop_empty(values: Dict[str, Optional[str]]) -> Dict[str, str]:
    return {key: value for key, value in values.items() if value}
