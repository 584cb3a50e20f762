"""Per-pool block store keyed by block id and ordered by height."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .block import Block


@dataclass
class UpsertResult:
    inserted: int = 0
    updated: int = 0

    @property
    def changed(self) -> int:
        return self.inserted + self.updated


class PoolStore:
    """Ordered, id-deduplicated blocks of a single pool.

    Blocks are kept sorted by height, highest first. A block whose id is
    already stored replaces the stored one in place, since pools revise the
    validity and timestamp of a block once it matures. Blocks without an id
    cannot be matched and are always appended.

    The store does no locking of its own; ``SharedState`` serialises access.
    """

    def __init__(self, name: str, blocks: Iterable[Block] = ()) -> None:
        self.name = name
        self._blocks: list[Block] = []
        self._positions: dict[bytes, int] = {}
        self.upsert(blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __getitem__(self, index: int) -> Block:
        return self._blocks[index]

    @property
    def top_height(self) -> int | None:
        return self._blocks[0].height if self._blocks else None

    @property
    def bottom_height(self) -> int | None:
        return self._blocks[-1].height if self._blocks else None

    def get(self, block_id: bytes) -> Block | None:
        position = self._positions.get(block_id)
        return self._blocks[position] if position is not None else None

    def upsert(self, blocks: Iterable[Block]) -> UpsertResult:
        result = UpsertResult()
        for block in blocks:
            position = self._positions.get(block.id) if block.has_id else None
            if position is not None:
                self._blocks[position] = block
                result.updated += 1
                continue
            self._blocks.append(block)
            if block.has_id:
                self._positions[block.id] = len(self._blocks) - 1
            result.inserted += 1
        if result.changed:
            self._reorder()
        return result

    def _reorder(self) -> None:
        # list.sort is stable: equal heights keep their arrival order
        self._blocks.sort(key=lambda block: block.height, reverse=True)
        self._positions = {
            block.id: position
            for position, block in enumerate(self._blocks)
            if block.has_id
        }


__all__ = ["PoolStore", "UpsertResult"]
