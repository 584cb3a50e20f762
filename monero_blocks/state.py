"""Process-wide block stores behind a single reader/writer lock."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from .engine import merge
from .engine.block import Block, OwnershipShare, TimelineEntry
from .engine.store import PoolStore, UpsertResult
from .infra import ReadWriteLock


class SharedState:
    """All per-pool stores, in pool registration order.

    This is the only way in or out of the stores. Writers hold the write
    lock for one page of upserts at a time, never across a network call.
    Every query holds the read lock for its whole merge, so it sees one
    consistent picture of all stores.
    """

    def __init__(self, pool_names: Sequence[str]) -> None:
        if len(set(pool_names)) != len(pool_names):
            raise ValueError("Pool names must be unique")
        self._names = list(pool_names)
        self._positions = {name: index for index, name in enumerate(self._names)}
        self._stores = [PoolStore(name) for name in self._names]
        self._lock = ReadWriteLock()

    @property
    def pool_names(self) -> list[str]:
        return list(self._names)

    def index_of(self, pool_name: str) -> int:
        return self._positions[pool_name]

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------
    def seed(self, blocks_by_pool: Mapping[str, Iterable[Block]]) -> int:
        """Load persisted blocks; pools that are not tracked are ignored."""

        loaded = 0
        with self._lock.write():
            for name, blocks in blocks_by_pool.items():
                position = self._positions.get(name)
                if position is None:
                    continue
                loaded += self._stores[position].upsert(blocks).inserted
        return loaded

    def apply_page(self, index: int, blocks: Iterable[Block]) -> UpsertResult:
        with self._lock.write():
            return self._stores[index].upsert(blocks)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------
    def top_height(self, index: int) -> int | None:
        with self._lock.read():
            return self._stores[index].top_height

    def sizes(self) -> dict[str, int]:
        with self._lock.read():
            return {store.name: len(store) for store in self._stores}

    def export(self, only_valid: bool = False) -> list[TimelineEntry]:
        with self._lock.read():
            return merge.merge_all(self._stores, only_valid=only_valid)

    def latest(self, limit: int, *, only_valid: bool = False, since: int = 0) -> list[TimelineEntry]:
        with self._lock.read():
            return merge.latest(self._stores, limit, only_valid=only_valid, since=since)

    def ownership(
        self, last_n: int, *, since: int = 0, only_valid: bool = False
    ) -> list[OwnershipShare]:
        with self._lock.read():
            return merge.ownership(self._stores, last_n, since=since, only_valid=only_valid)


__all__ = ["SharedState"]
