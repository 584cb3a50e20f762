"""C3Pool API, paged by page number."""

from __future__ import annotations

from typing import Any

from ..engine.block import Block, hash_from_string
from .base import Page, PageToken, PoolAdapter, Token, as_list, resume_after


class C3Pool(PoolAdapter):
    page_size = 9999

    def _fetch_page(self, token: Token | None) -> Page:
        cursor = token if isinstance(token, PageToken) else PageToken()
        payload = self.client.get_json(
            self._url("/pool/blocks"), params={"page": cursor.page, "limit": self.page_size}
        )
        blocks = resume_after(self._decode_all(as_list(payload), self._decode), cursor)
        if not blocks:
            return [], None
        tail = blocks[-1]
        return blocks, PageToken(page=cursor.page + 1, last_id=tail.id, last_height=tail.height)

    @staticmethod
    def _decode(row: Any) -> Block:
        return Block(
            id=hash_from_string(row["hash"]),
            height=int(row["height"]),
            timestamp=int(row["ts"]),
            reward=int(row["value"]),
            valid=bool(row.get("valid", True)),
        )


__all__ = ["C3Pool"]
