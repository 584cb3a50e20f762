"""Merged views across pool stores: full export, latest blocks, ownership."""

from __future__ import annotations

from itertools import islice
from typing import Callable, Iterable, Iterator, Sequence

from .block import UNKNOWN_POOL, Block, OwnershipShare, TimelineEntry
from .store import PoolStore

BlockFilter = Callable[[Block], bool]


def build_filter(only_valid: bool = False, since: int = 0) -> BlockFilter | None:
    """Return the predicate a block must pass to take part in a merge."""

    if not only_valid and not since:
        return None

    def _accept(block: Block) -> bool:
        if only_valid and not block.valid:
            return False
        if since and block.timestamp < since:
            return False
        return True

    return _accept


class MergeCursor:
    """Filtered k-way merge yielding blocks of all stores by descending height.

    Each step picks the highest head among the stores; on equal heights the
    store registered last wins. The tie-break only mirrors the historical
    output order and carries no meaning about the pools themselves.
    Blocks rejected by the filter are stepped over without being emitted.
    """

    def __init__(self, stores: Sequence[PoolStore], accept: BlockFilter | None = None) -> None:
        self._stores = stores
        self._accept = accept
        self._positions = [0] * len(stores)

    def __iter__(self) -> "MergeCursor":
        return self

    def __next__(self) -> TimelineEntry:
        best = -1
        best_height = -1
        for index, store in enumerate(self._stores):
            position = self._skip_rejected(index)
            if position >= len(store):
                continue
            height = store[position].height
            if height >= best_height:
                best, best_height = index, height
        if best < 0:
            raise StopIteration
        store = self._stores[best]
        block = store[self._positions[best]]
        self._positions[best] += 1
        return TimelineEntry(pool=store.name, block=block)

    def _skip_rejected(self, index: int) -> int:
        store = self._stores[index]
        position = self._positions[index]
        if self._accept is not None:
            while position < len(store) and not self._accept(store[position]):
                position += 1
            self._positions[index] = position
        return position


def min_known_height(stores: Iterable[PoolStore]) -> int | None:
    """Lowest height any store still covers; gaps are never filled below it."""

    bottoms = [store.bottom_height for store in stores if len(store)]
    return min(bottoms) if bottoms else None


def merge_all(stores: Sequence[PoolStore], only_valid: bool = False) -> list[TimelineEntry]:
    """Every block of every store, highest first, duplicates across pools kept."""

    return list(MergeCursor(stores, build_filter(only_valid=only_valid)))


def timeline(
    stores: Sequence[PoolStore],
    *,
    only_valid: bool = False,
    since: int = 0,
    fill_gaps: bool = True,
) -> Iterator[TimelineEntry]:
    """Lazily walk the merged chain with one entry per height.

    A height reported by several pools is emitted once (first winner of the
    merge). With ``fill_gaps`` every height skipped between two emitted
    blocks is emitted as an ``Unknown`` placeholder, down to but never below
    the lowest height known to any store.
    """

    floor = min_known_height(stores)
    previous: int | None = None
    for entry in MergeCursor(stores, build_filter(only_valid=only_valid, since=since)):
        height = entry.height
        if previous is not None and height >= previous:
            continue
        if fill_gaps and previous is not None and floor is not None:
            for missing in range(previous - 1, max(height, floor - 1), -1):
                yield TimelineEntry.unknown(missing)
        yield entry
        previous = height


def latest(
    stores: Sequence[PoolStore],
    limit: int,
    *,
    only_valid: bool = False,
    since: int = 0,
) -> list[TimelineEntry]:
    """The ``limit`` most recent heights, placeholders included."""

    return list(islice(timeline(stores, only_valid=only_valid, since=since), max(limit, 0)))


def ownership(
    stores: Sequence[PoolStore],
    last_n: int,
    *,
    since: int = 0,
    only_valid: bool = False,
) -> list[OwnershipShare]:
    """Share of recent heights found by each pool.

    Without ``since`` the window is the last ``last_n`` heights, gaps counted
    as ``Unknown``. With ``since`` the window is every block found at or after
    that time; ``last_n`` is ignored and no gaps are synthesised, as a time
    window says nothing about how many heights it should contain.
    """

    if since:
        entries: Iterable[TimelineEntry] = timeline(
            stores, only_valid=only_valid, since=since, fill_gaps=False
        )
    else:
        entries = islice(timeline(stores, only_valid=only_valid), max(last_n, 0))

    counts: dict[str, int] = {}
    unknown = 0
    for entry in entries:
        if entry.synthetic:
            unknown += 1
        else:
            counts[entry.pool] = counts.get(entry.pool, 0) + 1

    total = max(sum(counts.values()) + unknown, 1)
    shares = [
        OwnershipShare(pool=pool, count=count, percentage=count / total * 100)
        for pool, count in counts.items()
    ]
    if unknown:
        shares.append(OwnershipShare(pool=UNKNOWN_POOL, count=unknown, percentage=unknown / total * 100))
    shares.sort(key=lambda share: share.count, reverse=True)
    return shares


__all__ = [
    "BlockFilter",
    "MergeCursor",
    "build_filter",
    "latest",
    "merge_all",
    "min_known_height",
    "ownership",
    "timeline",
]
