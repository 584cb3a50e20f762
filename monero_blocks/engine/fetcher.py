"""HTTP access to pool APIs and the Monero daemon."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ..config import PoolConfig
from ..config.models import DEFAULT_USER_AGENT
from ..errors import FetchError
from ..infra import Throttle


class PoolHttpClient:
    """Throttled JSON client bound to a single pool.

    Every call waits on the pool's own throttle first. Transport errors and
    non-2xx answers are retried up to ``retries`` extra times; after that a
    ``FetchError`` is raised for the adapter to absorb.
    """

    def __init__(
        self,
        pool: PoolConfig,
        user_agent: str = DEFAULT_USER_AGENT,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
        throttle: Throttle | None = None,
    ) -> None:
        self.pool = pool
        self.retries = pool.retries
        self.throttle = throttle or Throttle(pool.interval)
        self.logger = logger or structlog.get_logger("monero_blocks.fetcher").bind(pool=pool.name)
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=pool.timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        attempts = self.retries + 1
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            self.throttle.wait()
            try:
                response = self._client.get(url, params=params)
            except httpx.HTTPError as exc:
                self.logger.warning("fetch_error", url=url, attempt=attempt, error=str(exc))
                last_error = exc
                continue
            if self._is_failure(response):
                self.logger.warning(
                    "fetch_bad_status", url=url, attempt=attempt, status=response.status_code
                )
                last_error = RuntimeError(f"Unexpected status {response.status_code}")
                continue
            try:
                return response.json()
            except ValueError as exc:
                raise FetchError(url, "Malformed JSON payload") from exc
        raise FetchError(url, f"Fetch failed after {attempts} attempts") from last_error

    @staticmethod
    def _is_failure(response: httpx.Response) -> bool:
        return not 200 <= response.status_code < 300


class DaemonClient:
    """Minimal monerod JSON-RPC client used to look up block headers."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url.rstrip("/")
        if not self.rpc_url.endswith("/json_rpc"):
            self.rpc_url += "/json_rpc"
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def block_header(self, height: int) -> dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": "0",
            "method": "get_block_header_by_height",
            "params": {"height": height},
        }
        try:
            response = self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise FetchError(self.rpc_url, f"Daemon request failed ({exc})") from exc
        if not isinstance(body, dict) or "error" in body:
            raise FetchError(self.rpc_url, f"Daemon returned an error for height {height}")
        result = body.get("result") or {}
        header = result.get("block_header") or {}
        return {
            "status": result.get("status", ""),
            "height": header.get("height", height),
            "timestamp": header.get("timestamp", 0),
            "reward": header.get("reward", 0),
            "hash": header.get("hash", ""),
        }


__all__ = ["DaemonClient", "PoolHttpClient"]
