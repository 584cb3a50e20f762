"""Nanopool API, paged by offset."""

from __future__ import annotations

from typing import Any

from ..engine.block import Block, hash_from_string
from .base import Page, PageToken, PoolAdapter, Token, as_list, resume_after

_ATOMIC_UNITS = 10**12


class NanopoolPool(PoolAdapter):
    page_size = 500

    def _fetch_page(self, token: Token | None) -> Page:
        cursor = token if isinstance(token, PageToken) else PageToken()
        offset = cursor.page * self.page_size
        payload = self.client.get_json(self._url(f"/pool/blocks/{offset}/{self.page_size}"))
        blocks = resume_after(self._decode_all(as_list(payload, "data"), self._decode), cursor)
        if not blocks:
            return [], None
        tail = blocks[-1]
        return blocks, PageToken(page=cursor.page + 1, last_id=tail.id, last_height=tail.height)

    @staticmethod
    def _decode(row: Any) -> Block:
        return Block(
            id=hash_from_string(row["hash"]),
            height=int(row["block_number"]),
            timestamp=int(row["date"]),
            # value is in XMR
            reward=int(round(float(row["value"]) * _ATOMIC_UNITS)),
            valid=row.get("status") != 1,
            miner=str(row.get("miner") or ""),
        )


__all__ = ["NanopoolPool"]
