"""Pool adapter contract shared by every API family."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple

import structlog

from ..config import PoolConfig
from ..engine.block import ZERO_HASH, Block
from ..engine.fetcher import PoolHttpClient
from ..errors import FetchError

# Paging state is private to each adapter; callers only test it for None.
Token = object
Page = Tuple[list[Block], Optional[Token]]


@dataclass(frozen=True, slots=True)
class PageToken:
    """Resume point for APIs paged by index or by height."""

    page: int = 0
    last_id: bytes = ZERO_HASH
    last_height: int = 0


class PoolAdapter(ABC):
    """Fetch found blocks from one pool, one page at a time.

    ``fetch_page(None)`` returns the newest page. An empty page with a
    ``None`` token means the pool is exhausted or the call failed; the two
    are deliberately indistinguishable to the caller. A non-empty page with
    a ``None`` token is the last page.
    """

    def __init__(
        self,
        config: PoolConfig,
        client: PoolHttpClient,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.logger = logger or structlog.get_logger("monero_blocks.pools").bind(pool=config.name)

    @property
    def name(self) -> str:
        return self.config.name

    def fetch_page(self, token: Token | None = None) -> Page:
        try:
            return self._fetch_page(token)
        except (FetchError, ValueError, KeyError, TypeError, AttributeError) as exc:
            self.logger.warning("page_failed", error=str(exc), error_type=type(exc).__name__)
            return [], None

    @abstractmethod
    def _fetch_page(self, token: Token | None) -> Page:
        """Fetch and decode one page; any decoding error may propagate."""

    def close(self) -> None:
        self.client.close()

    # ------------------------------------------------------------------
    def _url(self, path: str = "") -> str:
        return self.config.api_url.rstrip("/") + path

    def _decode_all(self, rows: Iterable[Any], decode: Callable[[Any], Block | None]) -> list[Block]:
        """Decode rows, skipping the malformed ones instead of failing the page."""

        blocks: list[Block] = []
        for row in rows:
            try:
                block = decode(row)
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                self.logger.debug("record_skipped", error=str(exc))
                continue
            if block is not None:
                blocks.append(block)
        return blocks


def resume_after(blocks: list[Block], token: PageToken) -> list[Block]:
    """Drop what an overlapping page already returned last time.

    Index-paged APIs shift under us while new blocks get found, so a page can
    repeat the tail of the previous one. Emission resumes after the last id
    seen, or at the first block below the last height seen.
    """

    started = token.last_id == ZERO_HASH
    fresh: list[Block] = []
    for block in blocks:
        if block.height < token.last_height:
            started = True
        if started:
            fresh.append(block)
        if block.id == token.last_id:
            started = True
    return fresh


def as_list(payload: Any, key: str | None = None) -> list[Any]:
    """Extract a JSON array, optionally from a top-level object key."""

    if key is not None:
        if not isinstance(payload, dict):
            raise TypeError(f"Expected an object holding '{key}'")
        payload = payload.get(key) or []
    if not isinstance(payload, list):
        raise TypeError("Expected a JSON array")
    return payload


__all__ = ["Page", "PageToken", "PoolAdapter", "Token", "as_list", "resume_after"]
