# src/paperatlas/infrastructure/harvesters/oai_harvester.py
"""
arXiv OAI-PMH bulk harvester.

Issues one ListRecords request per run (arXivRaw metadata), saves the raw
XML under ``_raw/oai/`` and keeps the incremental state in
``provenance/oai_state.json`` so the next run resumes where this one ended.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Optional

from paperatlas.domain.errors import FetchError
from paperatlas.infrastructure.api_clients.rate_limited_client import RateLimitedClient
from paperatlas.infrastructure.stores.json_io import read_json, write_json
from paperatlas.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)

OAI_BASE_URL = "https://export.arxiv.org/oai2"
OAI_NS = {"oai": "http://www.openarchives.org/OAI/2.0/"}
DEFAULT_LOOKBACK_DAYS = 2


@dataclass
class OaiState:
    last_harvest: Optional[str] = None
    resumption_token: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data: Dict[str, str] = {}
        if self.last_harvest:
            data["last_harvest"] = self.last_harvest
        if self.resumption_token:
            data["resumption_token"] = self.resumption_token
        return data


@dataclass(frozen=True)
class OaiHarvestResult:
    resumption_token: str
    raw_path: Path
    record_count: int


def build_list_records_params(
    *,
    metadata_prefix: str = "arXivRaw",
    from_date: Optional[str] = None,
    resumption_token: Optional[str] = None,
) -> Dict[str, str]:
    """ListRecords parameters; a resumption token replaces every other argument."""
    params = {"verb": "ListRecords"}
    if resumption_token:
        params["resumptionToken"] = resumption_token
        return params
    params["metadataPrefix"] = metadata_prefix
    if from_date:
        params["from"] = from_date
    return params


def parse_list_records(xml_text: str) -> tuple[str, int]:
    """Return ``(resumption_token, record_count)``; malformed XML counts as empty."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.warning(f"Unparseable OAI response: {e}")
        return "", 0

    records = root.findall(".//oai:ListRecords/oai:record", OAI_NS)
    token_node = root.find(".//oai:resumptionToken", OAI_NS)
    token = (token_node.text or "").strip() if token_node is not None else ""
    return token, len(records)


class OaiHarvester:
    """
    Incremental OAI-PMH harvester.

    State layout (data dir relative):
        provenance/oai_state.json   {"last_harvest": "YYYY-MM-DD", "resumption_token": "..."}
        _raw/oai/oai-<timestamp>.xml
    """

    def __init__(
        self,
        client: RateLimitedClient,
        data_dir: Path,
        *,
        base_url: str = OAI_BASE_URL,
        metadata_prefix: str = "arXivRaw",
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.client = client
        self.data_dir = Path(data_dir)
        self.base_url = base_url
        self.metadata_prefix = metadata_prefix
        self._now = now

    @property
    def state_path(self) -> Path:
        return self.data_dir / "provenance" / "oai_state.json"

    @property
    def raw_dir(self) -> Path:
        return self.data_dir / "_raw" / "oai"

    def load_state(self) -> OaiState:
        data = read_json(self.state_path, default={}) or {}
        return OaiState(
            last_harvest=data.get("last_harvest") or None,
            resumption_token=data.get("resumption_token") or None,
        )

    async def harvest(self) -> OaiHarvestResult:
        """Run one ListRecords request and persist the raw page and next state."""
        state = self.load_state()
        now = self._now()
        from_date = state.last_harvest or _format_date(now.date() - timedelta(days=DEFAULT_LOOKBACK_DAYS))

        params = build_list_records_params(
            metadata_prefix=self.metadata_prefix,
            from_date=from_date,
            resumption_token=state.resumption_token,
        )
        response = await self.client.fetch(self.base_url, params=params)
        if not response.ok:
            raise FetchError(
                f"OAI-PMH returned status {response.status}",
                url=response.url,
                status=response.status,
            )

        token, record_count = parse_list_records(response.text)

        self.raw_dir.mkdir(parents=True, exist_ok=True)
        stamp = now.strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        raw_path = self.raw_dir / f"oai-{stamp}.xml"
        raw_path.write_text(response.text, encoding="utf-8")

        next_state = OaiState(last_harvest=_format_date(now.date()), resumption_token=token or None)
        write_json(self.state_path, next_state.to_dict())

        Logger.info(
            f"OAI harvest from={from_date} records={record_count} "
            f"resumption={'yes' if token else 'no'} raw={raw_path.name}",
            file=LogFiles.OAI,
        )
        return OaiHarvestResult(resumption_token=token, raw_path=raw_path, record_count=record_count)


def _format_date(value: date) -> str:
    return value.isoformat()
