"""Kryptex pool stats endpoint; only the last found blocks are exposed."""

from __future__ import annotations

from typing import Any

from ..engine.block import Block, hash_from_string
from .base import Page, PoolAdapter, Token, as_list


class KryptexPool(PoolAdapter):
    def _fetch_page(self, token: Token | None) -> Page:
        payload = self.client.get_json(self._url("/pool/stats"))
        return self._decode_all(as_list(payload, "last_blocks_found"), self._decode), None

    @staticmethod
    def _decode(row: Any) -> Block | None:
        if row.get("kind") != "BLOCK":
            return None
        return Block(
            id=hash_from_string(row["hash"]),
            height=int(row["height"]),
            timestamp=int(row["date"]),
            valid=True,
        )


__all__ = ["KryptexPool"]
