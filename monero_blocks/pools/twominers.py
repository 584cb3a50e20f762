"""2Miners API: matured blocks only, no paging."""

from __future__ import annotations

from typing import Any

from ..engine.block import Block, hash_from_string
from .base import Page, PoolAdapter, Token, as_list


class TwoMinersPool(PoolAdapter):
    def _fetch_page(self, token: Token | None) -> Page:
        payload = self.client.get_json(self._url("/blocks"))
        return self._decode_all(as_list(payload, "matured"), self._decode), None

    @staticmethod
    def _decode(row: Any) -> Block:
        return Block(
            id=hash_from_string(row["hash"]),
            height=int(row["height"]),
            timestamp=int(row["timestamp"]),
            reward=int(row["reward"]),
            valid=not row.get("orphan", False),
        )


__all__ = ["TwoMinersPool"]
