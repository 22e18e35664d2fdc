"""Application ports (interfaces) used by the application layer."""

from .feed_source_port import FeedSourcePort
from .snapshot_store_port import SnapshotStorePort

__all__ = [
    "FeedSourcePort",
    "SnapshotStorePort",
]
