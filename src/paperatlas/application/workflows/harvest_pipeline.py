# src/paperatlas/application/workflows/harvest_pipeline.py
"""
Paper Harvest Pipeline.

Orchestrates harvest -> normalize -> merge -> tag -> rank for the arXiv
corpus under one data directory, then writes topic feeds and provenance.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from paperatlas.application.ports.feed_source_port import FeedSourcePort
from paperatlas.application.ports.snapshot_store_port import SnapshotStorePort
from paperatlas.application.services.corpus_metrics import (
    compute_crosslist_heatmap,
    compute_topic_timeseries,
    compute_trend_radar,
    compute_version_churn,
)
from paperatlas.application.services.entry_normalizer import normalize_entry
from paperatlas.application.services.scoring_engine import (
    compute_topic_momentum,
    compute_trending,
    normalize_momentum,
)
from paperatlas.application.services.snapshot_merger import merge_into
from paperatlas.application.services.topic_feeds import build_topic_feeds
from paperatlas.application.services.topic_tagger import count_tags, tag_papers
from paperatlas.domain.harvest import PipelineRunResult
from paperatlas.domain.paper import Paper, unique
from paperatlas.domain.paper_identity import normalize_arxiv_id
from paperatlas.domain.topic import Topic
from paperatlas.infrastructure.api_clients.rate_limited_client import RateLimitedClient
from paperatlas.infrastructure.harvesters.arxiv_harvester import ArxivHarvester
from paperatlas.infrastructure.harvesters.oai_harvester import OaiHarvester
from paperatlas.infrastructure.stores.config_store import ConfigStore
from paperatlas.infrastructure.stores.provenance_store import BuildInfo, ProvenanceStore
from paperatlas.infrastructure.stores.snapshot_store import SnapshotStore
from paperatlas.utils.logging_config import LogFiles, Logger, clear_run_id, set_run_id
from paperatlas.utils.settings import Settings

logger = logging.getLogger(__name__)

ANCHOR_CHUNK_SIZE = 25


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineOptions:
    """Options for one pipeline run."""

    window_days: int = 30
    max_per_topic: int = 200
    dry_run: bool = False
    offline: bool = False
    use_oai: bool = False
    reference_date: Optional[date] = None


class HarvestPipeline:
    """
    arXiv corpus pipeline.

    Orchestrates:
    1. Config loading (ConfigStore)
    2. Optional OAI-PMH bulk harvest (OaiHarvester)
    3. Anchor papers missing from the corpus, fetched by identifier, and
       per-topic export API harvest (ArxivHarvester) + normalization
    4. Merge into the persisted corpus (SnapshotStore)
    5. Tagging, topic momentum, trending scores and corpus metrics
    6. Topic feeds, metrics, editorial ledger and provenance (ProvenanceStore)

    ``dry_run`` computes everything and writes nothing; ``offline`` skips
    every network stage and re-derives tags and scores from the corpus.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        *,
        settings: Optional[Settings] = None,
        client: Optional[RateLimitedClient] = None,
        harvester: Optional[FeedSourcePort] = None,
        snapshot_store: Optional[SnapshotStorePort] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or Settings()
        self.data_dir = Path(data_dir or self.settings.data_dir)
        self._now = now

        # Collaborators (initialized lazily)
        self._client = client
        self._owns_client = client is None
        self._harvester = harvester
        self._snapshot_store = snapshot_store
        self._config_store: Optional[ConfigStore] = None
        self._provenance_store: Optional[ProvenanceStore] = None

    @property
    def client(self) -> RateLimitedClient:
        if self._client is None:
            fetch = self.settings.fetch
            self._client = RateLimitedClient(
                min_interval=fetch.min_interval,
                timeout=fetch.timeout,
                retries=fetch.retries,
                retry_delay=fetch.retry_delay,
                user_agent=fetch.user_agent,
            )
        return self._client

    @property
    def harvester(self) -> FeedSourcePort:
        if self._harvester is None:
            self._harvester = ArxivHarvester(self.client)
        return self._harvester

    @property
    def snapshot_store(self) -> SnapshotStorePort:
        if self._snapshot_store is None:
            self._snapshot_store = SnapshotStore(self.data_dir)
        return self._snapshot_store

    @property
    def config_store(self) -> ConfigStore:
        if self._config_store is None:
            self._config_store = ConfigStore(self.data_dir)
        return self._config_store

    @property
    def provenance_store(self) -> ProvenanceStore:
        if self._provenance_store is None:
            self._provenance_store = ProvenanceStore(self.data_dir, now=self._now)
        return self._provenance_store

    def oai_harvester(self) -> OaiHarvester:
        return OaiHarvester(self.client, self.data_dir, now=self._now)

    @staticmethod
    def new_run_id() -> str:
        """Generate a new harvest run ID."""
        timestamp = _utcnow().strftime("%Y%m%d-%H%M%S")
        suffix = uuid.uuid4().hex[:8]
        return f"harvest-{timestamp}-{suffix}"

    async def run(
        self,
        options: Optional[PipelineOptions] = None,
        *,
        run_id: Optional[str] = None,
    ) -> PipelineRunResult:
        """
        Execute one pipeline run.

        Raises:
            ConfigurationError: Taxonomy or ranking config missing/invalid.
            FetchError: A harvest request failed (after retries for
                transient failures). Nothing harvested in this run is merged.
        """
        options = options or PipelineOptions()
        run_id = run_id or self.new_run_id()
        set_run_id(run_id)
        started_at = self._now()
        reference = options.reference_date or started_at.date()

        try:
            Logger.info(
                f"Pipeline run started: dry_run={options.dry_run} offline={options.offline} "
                f"use_oai={options.use_oai} max_per_topic={options.max_per_topic}",
                file=LogFiles.PIPELINE,
            )

            # Phase 1: Configuration
            topics = self.config_store.load_topics()
            ranking = self.config_store.load_ranking_config()
            query_pack_version = self.config_store.load_query_pack_version()

            # Phase 2: Harvest
            if options.use_oai and not options.offline:
                if options.dry_run:
                    logger.info("Dry run: skipping OAI-PMH harvest")
                else:
                    await self.oai_harvester().harvest()

            corpus = self.snapshot_store.load_all()
            previous_ids = set(corpus)

            harvested: List[Paper] = []
            anchors = await self._harvest_anchors(topics, previous_ids, run_id, offline=options.offline)
            if not options.offline:
                harvested = await self._harvest_topics(topics, options.max_per_topic, run_id)
            harvested = anchors + harvested

            # Phase 3: Merge
            if harvested:
                if options.dry_run:
                    corpus = merge_into(corpus, harvested)
                else:
                    written = self.snapshot_store.write_snapshots(harvested)
                    corpus = {paper.arxiv_id: paper for paper in written.papers}
            papers_new = len(set(corpus) - previous_ids)

            # Phase 4: Tag and rank
            tagged = tag_papers(list(corpus.values()), topics)
            momentum = compute_topic_momentum(
                tagged,
                topics,
                reference,
                window_a=ranking.momentum_window_days,
                window_b=ranking.baseline_window_days,
            )
            scored = compute_trending(tagged, normalize_momentum(momentum.topics), ranking, reference)
            feeds = build_topic_feeds(
                topics,
                scored,
                generated_at=reference.isoformat(),
                limit_latest=self.settings.feeds.limit_latest,
                limit_trending=self.settings.feeds.limit_trending,
            )
            metrics = {
                "version_churn": compute_version_churn(scored, reference),
                "crosslist_heatmap": compute_crosslist_heatmap(scored, reference),
                "topic_timeseries": compute_topic_timeseries(scored, topics, reference),
                "trend_radar": compute_trend_radar(scored, topics, momentum.topics, reference),
            }

            # Phase 5: Persist
            if options.dry_run:
                logger.info(f"Dry run: computed {len(scored)} papers, {len(feeds)} feeds, nothing written")
            else:
                self.provenance_store.write_momentum(momentum.to_dict())
                for name, metric in metrics.items():
                    self.provenance_store.write_metric(name, metric.to_dict())
                self.snapshot_store.replace_all(scored)
                self.provenance_store.write_topic_feeds(feed.to_dict() for feed in feeds)
                self.provenance_store.record_ranking_version(ranking.version)
                self.provenance_store.write_provenance(
                    BuildInfo(
                        harvest_window=self._harvest_window(reference, options.window_days),
                        records=len(scored),
                        dataset="offline" if options.offline else "prod",
                        ranking_config_version=ranking.version,
                        query_pack_version=query_pack_version,
                        run_id=run_id,
                    )
                )

            result = PipelineRunResult(
                run_id=run_id,
                status="dry_run" if options.dry_run else "success",
                papers_harvested=len(harvested),
                anchors_harvested=len(anchors),
                papers_new=papers_new,
                papers_total=len(scored),
                topics_tagged=count_tags(scored),
                started_at=started_at,
                ended_at=self._now(),
                dry_run=options.dry_run,
                offline=options.offline,
                momentum=dict(momentum.topics),
            )
            Logger.info(
                f"Pipeline run finished: harvested={result.papers_harvested} "
                f"new={result.papers_new} total={result.papers_total}",
                file=LogFiles.PIPELINE,
            )
            return result

        except Exception as e:
            Logger.error(f"Pipeline run failed: {e}", file=LogFiles.ERROR)
            raise
        finally:
            clear_run_id()

    async def _harvest_topics(
        self,
        topics: List[Topic],
        max_per_topic: int,
        run_id: str,
    ) -> List[Paper]:
        harvested_at = self._now().isoformat(timespec="milliseconds").replace("+00:00", "Z")
        papers: List[Paper] = []
        per_topic: Dict[str, int] = {}

        for topic in topics:
            if not topic.query:
                continue
            entries = await self.harvester.fetch_all(topic.query, max_results=max_per_topic)
            per_topic[topic.id] = len(entries)
            papers.extend(
                normalize_entry(entry, query=topic.query, harvested_at=harvested_at, harvest_run_id=run_id)
                for entry in entries
            )
            Logger.info(f"Harvested {len(entries)} entries for topic {topic.id}", file=LogFiles.HARVEST)

        logger.info(f"Harvest complete: {len(papers)} entries across {len(per_topic)} topics")
        return papers

    async def _harvest_anchors(
        self,
        topics: List[Topic],
        existing_ids: Iterable[str],
        run_id: str,
        *,
        offline: bool = False,
    ) -> List[Paper]:
        """Fetch topic anchor papers missing from the corpus by explicit identifier."""
        existing = set(existing_ids)
        missing = [
            arxiv_id
            for arxiv_id in unique(normalize_arxiv_id(anchor) for topic in topics for anchor in topic.anchors)
            if arxiv_id not in existing
        ]
        if not missing:
            return []
        if offline:
            Logger.warning(f"Offline run: {len(missing)} anchor papers missing from corpus", file=LogFiles.HARVEST)
            return []

        harvested_at = self._now().isoformat(timespec="milliseconds").replace("+00:00", "Z")
        papers: List[Paper] = []
        for start in range(0, len(missing), ANCHOR_CHUNK_SIZE):
            chunk = missing[start : start + ANCHOR_CHUNK_SIZE]
            query = f"id_list:{','.join(chunk)}"
            feed = await self.harvester.fetch_page(id_list=chunk, max_results=len(chunk))
            papers.extend(
                normalize_entry(entry, query=query, harvested_at=harvested_at, harvest_run_id=run_id)
                for entry in feed.entries
            )
            Logger.debug(f"Fetched {len(feed.entries)} of {len(chunk)} anchor papers", file=LogFiles.HARVEST)

        Logger.info(f"Anchor harvest: {len(papers)} of {len(missing)} missing anchors found", file=LogFiles.HARVEST)
        return papers

    @staticmethod
    def _harvest_window(reference: date, window_days: int) -> str:
        start = reference - timedelta(days=window_days)
        return f"{start.isoformat()} to {reference.isoformat()}"

    async def close(self) -> None:
        """Release the HTTP session if this pipeline created the client."""
        if self._owns_client and self._client is not None:
            await self._client.close()

    async def __aenter__(self) -> "HarvestPipeline":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
