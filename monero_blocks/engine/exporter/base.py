"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..block import TimelineEntry


class BaseExporter(ABC):
    """Uniform exporter contract for merged timeline output."""

    @abstractmethod
    def export(self, entry: TimelineEntry) -> None:
        """Persist a single timeline entry."""

    def export_many(self, entries: Iterable[TimelineEntry]) -> int:
        count = 0
        for entry in entries:
            self.export(entry)
            count += 1
        return count

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter"]
