"""Exception hierarchy shared across the package."""

from __future__ import annotations


class MoneroBlocksError(Exception):
    """Base class for all package errors."""


class FetchError(MoneroBlocksError):
    """A pool API call failed (network, status code or payload)."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message}: {url}")
        self.url = url


class SnapshotWriteError(MoneroBlocksError):
    """The snapshot file could not be written."""


__all__ = ["FetchError", "MoneroBlocksError", "SnapshotWriteError"]
