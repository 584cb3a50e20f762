"""Thread pool running one refresh task per pool."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from threading import Lock
from typing import Callable, Mapping, TypeVar

T = TypeVar("T")


class ThreadPoolManager:
    """Own the executor used for per-pool tasks and join task batches."""

    def __init__(self, default_workers: int = 8, thread_name_prefix: str = "pool") -> None:
        self.default_workers = default_workers
        self._prefix = thread_name_prefix
        self._executor: ThreadPoolExecutor | None = None
        self._lock = Lock()

    def get(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.default_workers, thread_name_prefix=self._prefix
                )
            return self._executor

    def run_all(self, tasks: Mapping[str, Callable[[], T]]) -> dict[str, T | BaseException]:
        """Run every task concurrently and wait for all of them.

        A task that raises does not affect the others; its exception is
        returned in place of its result.
        """

        executor = self.get()
        futures: dict[str, Future[T]] = {name: executor.submit(task) for name, task in tasks.items()}
        wait_futures(futures.values())
        results: dict[str, T | BaseException] = {}
        for name, future in futures.items():
            error = future.exception()
            results[name] = error if error is not None else future.result()
        return results

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None


__all__ = ["ThreadPoolManager"]
