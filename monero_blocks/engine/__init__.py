"""Engine components: block model, stores, merge views, fetching, export."""

from .block import (
    UNKNOWN_POOL,
    ZERO_HASH,
    Block,
    OwnershipShare,
    TimelineEntry,
    hash_from_string,
    normalize_timestamp,
)
from .fetcher import DaemonClient, PoolHttpClient
from .merge import MergeCursor, latest, merge_all, min_known_height, ownership, timeline
from .store import PoolStore, UpsertResult
from .thread_pool import ThreadPoolManager

__all__ = [
    "Block",
    "DaemonClient",
    "MergeCursor",
    "OwnershipShare",
    "PoolHttpClient",
    "PoolStore",
    "ThreadPoolManager",
    "TimelineEntry",
    "UNKNOWN_POOL",
    "UpsertResult",
    "ZERO_HASH",
    "hash_from_string",
    "latest",
    "merge_all",
    "min_known_height",
    "normalize_timestamp",
    "ownership",
    "timeline",
]
