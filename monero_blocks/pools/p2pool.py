"""P2Pool observer API; every sidechain (main, mini, nano) has its own observer."""

from __future__ import annotations

from typing import Any

from ..engine.block import Block, hash_from_string
from .base import Page, PoolAdapter, Token, as_list


class P2PoolObserver(PoolAdapter):
    """Latest found blocks in a single unpaged call, with miner addresses."""

    page_size = 1000

    def _fetch_page(self, token: Token | None) -> Page:
        payload = self.client.get_json(
            self._url("/api/found_blocks"), params={"limit": self.page_size}
        )
        blocks = self._decode_all(as_list(payload), self._decode)
        return blocks, None

    @staticmethod
    def _decode(row: Any) -> Block:
        main_block = row["main_block"]
        return Block(
            id=hash_from_string(main_block["id"]),
            height=int(main_block["height"]),
            timestamp=int(main_block["timestamp"]),
            reward=int(main_block["reward"]),
            valid=True,
            miner=str(row.get("miner_address") or ""),
        )


__all__ = ["P2PoolObserver"]
