"""Exporter SPI and the CSV snapshot implementation."""

from .base import BaseExporter
from .snapshot import SNAPSHOT_HEADER, SnapshotExporter, load_snapshot

__all__ = ["BaseExporter", "SNAPSHOT_HEADER", "SnapshotExporter", "load_snapshot"]
