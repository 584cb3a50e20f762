"""rplant.xyz API: colon separated block records, no paging."""

from __future__ import annotations

from typing import Any

from ..engine.block import Block, hash_from_string
from .base import Page, PoolAdapter, Token, as_list


class RplantPool(PoolAdapter):
    """Records read ``hash:?:height:miner:timestamp:status:reward[:...]``."""

    def _fetch_page(self, token: Token | None) -> Page:
        payload = self.client.get_json(self._url())
        return self._decode_all(as_list(payload, "blocks"), self._decode), None

    @staticmethod
    def _decode(row: Any) -> Block | None:
        parts = str(row).split(":")
        if len(parts) < 7:
            return None
        return Block(
            id=hash_from_string(parts[0]),
            height=int(parts[2]),
            timestamp=int(parts[4]),
            reward=int(parts[6]),
            valid="ORPHAN" not in parts[5].upper(),
            miner=parts[3],
        )


__all__ = ["RplantPool"]
