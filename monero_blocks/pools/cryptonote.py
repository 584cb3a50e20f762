"""node-cryptonote-pool API (``/get_blocks``), used by many independent pools."""

from __future__ import annotations

from ..engine.block import Block, hash_from_string
from .base import Page, PageToken, PoolAdapter, Token, as_list, resume_after

_TOP_HEIGHT = 2**31 - 1


class CryptonotePool(PoolAdapter):
    """Blocks come as a flat array alternating an encoded record and its height.

    A record reads ``hash:time:difficulty:shares:orphaned:reward``. The API
    answers with blocks strictly below ``height``, so the previous page's last
    height is the next request's start.
    """

    def _fetch_page(self, token: Token | None) -> Page:
        cursor = token if isinstance(token, PageToken) else PageToken()
        height = cursor.last_height if cursor.last_height else _TOP_HEIGHT
        payload = as_list(self.client.get_json(self._url("/get_blocks"), params={"height": height}))
        if len(payload) % 2:
            raise ValueError("get_blocks returned an odd number of items")

        blocks: list[Block] = []
        for index in range(0, len(payload), 2):
            pieces = str(payload[index]).split(":")
            if len(pieces) < 4:
                raise ValueError(f"Unrecognised block record: {payload[index]!r}")
            if len(pieces) < 6:
                # still pending: no orphan flag or reward yet
                continue
            try:
                blocks.append(
                    Block(
                        id=hash_from_string(pieces[0]),
                        height=int(payload[index + 1]),
                        timestamp=int(pieces[1]),
                        reward=int(pieces[5]),
                        valid=pieces[4] == "0",
                    )
                )
            except ValueError as exc:
                self.logger.debug("record_skipped", error=str(exc))

        if not blocks:
            return [], None
        tail = blocks[-1]
        next_token = PageToken(last_id=tail.id, last_height=tail.height)
        return resume_after(blocks, cursor), next_token


__all__ = ["CryptonotePool"]
