"""Refresh orchestration: drive every pool adapter into the shared state."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from functools import partial
from pathlib import Path
from threading import Lock
from typing import Sequence

import httpx

from .config import GlobalConfig
from .engine import ThreadPoolManager
from .engine.block import OwnershipShare, TimelineEntry, normalize_timestamp
from .engine.exporter import SnapshotExporter, load_snapshot
from .logging_conf import configure_logging, pool_logger
from .pools import PoolAdapter, build_adapter
from .state import SharedState


@dataclass(slots=True)
class RefreshSummary:
    """Outcome of one refresh of one pool."""

    pool: str
    stop_height: int = 0
    pages: int = 0
    fetched: int = 0
    inserted: int = 0
    updated: int = 0
    last_height: int | None = None
    reason: str = "exhausted"
    error: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


class Orchestrator:
    """Central coordinator owning the adapters and the shared block state."""

    def __init__(
        self,
        adapters: Sequence[PoolAdapter],
        floor_height: int,
        thread_pool: ThreadPoolManager | None = None,
    ) -> None:
        self.adapters = list(adapters)
        self.floor_height = floor_height
        self.state = SharedState([adapter.name for adapter in self.adapters])
        self.thread_pool = thread_pool or ThreadPoolManager(max(1, len(self.adapters)))
        self.logger = configure_logging().bind(component="orchestrator")
        self._refresh_lock = Lock()

    @classmethod
    def from_config(
        cls,
        config: GlobalConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> "Orchestrator":
        adapters = [
            build_adapter(pool, user_agent=config.user_agent, transport=transport)
            for pool in config.enabled_pools()
        ]
        workers = max(1, min(config.thread_pool_workers, len(adapters)))
        return cls(adapters, config.floor_height, ThreadPoolManager(workers))

    def pool_names(self) -> list[str]:
        return self.state.pool_names

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def load_snapshot(self, path: Path) -> int:
        blocks = load_snapshot(path, set(self.state.pool_names), logger=self.logger)
        loaded = self.state.seed(blocks)
        self.logger.info("state_seeded", path=str(path), blocks=loaded)
        return loaded

    def export_snapshot(self, path: Path, only_valid: bool = False) -> int:
        """Rewrite the snapshot with the full merged timeline.

        Raises ``SnapshotWriteError`` when the file cannot be written; the
        previous snapshot is then left untouched.
        """

        entries = self.state.export(only_valid=only_valid)
        with SnapshotExporter(path) as exporter:
            written = exporter.export_many(entries)
        self.logger.info("snapshot_written", path=str(path), rows=written, only_valid=only_valid)
        return written

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    def refresh_pool(self, index: int) -> RefreshSummary:
        """Fetch one pool down to the height it is already known at.

        Every block of a page is stored before deciding to stop, so a page
        that mixes heights above and below the stop height loses nothing.
        A failed or exhausted adapter simply ends the run; whatever was
        stored so far is kept and the next refresh picks up from there.
        """

        adapter = self.adapters[index]
        log = pool_logger(adapter.name)
        top = self.state.top_height(index)
        stop_height = top if top is not None else self.floor_height
        summary = RefreshSummary(pool=adapter.name, stop_height=stop_height)

        token = None
        while True:
            page, token = adapter.fetch_page(token)
            summary.pages += 1
            finished = False
            for block in page:
                block.timestamp = normalize_timestamp(block.timestamp)
                summary.last_height = block.height
                if block.height < stop_height:
                    finished = True
            if page:
                result = self.state.apply_page(index, page)
                summary.fetched += len(page)
                summary.inserted += result.inserted
                summary.updated += result.updated
            log.info(
                "page_processed",
                blocks=len(page),
                height=summary.last_height,
                stop_height=stop_height,
            )
            if finished:
                summary.reason = "boundary"
                break
            if token is None:
                summary.reason = "exhausted"
                break

        log.info("refresh_finished", **summary.as_dict())
        return summary

    def refresh_all(self) -> dict[str, RefreshSummary] | None:
        """Refresh every pool in parallel and wait for all of them.

        Returns ``None`` without doing anything when a refresh round is
        already running.
        """

        if not self._refresh_lock.acquire(blocking=False):
            self.logger.warning("refresh_skipped", reason="already_running")
            return None
        try:
            tasks = {
                adapter.name: partial(self.refresh_pool, index)
                for index, adapter in enumerate(self.adapters)
            }
            results = self.thread_pool.run_all(tasks)
            summaries: dict[str, RefreshSummary] = {}
            for name, result in results.items():
                if isinstance(result, BaseException):
                    self.logger.error("refresh_failed", pool=name, error=str(result), exc_info=result)
                    summaries[name] = RefreshSummary(pool=name, reason="error", error=str(result))
                else:
                    summaries[name] = result
            self.logger.info(
                "refresh_round_finished",
                pools=len(summaries),
                inserted=sum(summary.inserted for summary in summaries.values()),
                updated=sum(summary.updated for summary in summaries.values()),
                failed=sum(1 for summary in summaries.values() if summary.reason == "error"),
            )
            return summaries
        finally:
            self._refresh_lock.release()

    def register_refresh(self, scheduler, interval: float, run_immediately: bool = True) -> None:
        scheduler.schedule_refresh(self.refresh_all, interval, run_immediately=run_immediately)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def latest(self, limit: int, *, only_valid: bool = False, since: int = 0) -> list[TimelineEntry]:
        return self.state.latest(limit, only_valid=only_valid, since=since)

    def ownership(
        self, last_n: int, *, since: int = 0, only_valid: bool = False
    ) -> list[OwnershipShare]:
        return self.state.ownership(last_n, since=since, only_valid=only_valid)

    def close(self) -> None:
        self.thread_pool.shutdown()
        for adapter in self.adapters:
            adapter.close()


__all__ = ["Orchestrator", "RefreshSummary"]
