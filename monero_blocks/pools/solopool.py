"""Solopool API: candidate, immature and matured blocks in one call."""

from __future__ import annotations

from typing import Any

from ..engine.block import Block, hash_from_string
from .base import Page, PoolAdapter, Token

_SECTIONS = ("candidates", "immatured", "matured")


class SoloPool(PoolAdapter):
    def _fetch_page(self, token: Token | None) -> Page:
        payload = self.client.get_json(self._url("/blocks"))
        if not isinstance(payload, dict):
            raise TypeError("Expected an object of block sections")
        rows: list[Any] = []
        for section in _SECTIONS:
            rows.extend(payload.get(section) or [])
        blocks = self._decode_all(rows, self._decode)
        blocks.sort(key=lambda block: block.height, reverse=True)
        return blocks, None

    @staticmethod
    def _decode(row: Any) -> Block:
        return Block(
            id=hash_from_string(row["hash"]),
            height=int(row["height"]),
            timestamp=int(row["timestamp"]),
            # reward is reported with six extra decimals
            reward=int(row["reward"]) // 1_000_000,
            valid=not row.get("orphan", False),
            miner=str(row.get("miner") or ""),
        )


__all__ = ["SoloPool"]
