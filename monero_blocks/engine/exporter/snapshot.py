"""CSV snapshot of the merged timeline: loading and atomic rewriting."""

from __future__ import annotations

import csv
import os
import tempfile
from pathlib import Path
from typing import Collection

import structlog

from ...errors import SnapshotWriteError
from ..block import Block, TimelineEntry, hash_from_string, normalize_timestamp
from .base import BaseExporter

SNAPSHOT_HEADER = ["Height", "Id", "Timestamp", "Reward", "Pool", "Valid", "Miner"]
_MIN_COLUMNS = 5
_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}


def _parse_valid(value: str) -> bool:
    if not value.strip():
        return True
    return value.strip() in _TRUE_VALUES


def parse_row(row: list[str]) -> tuple[str, Block]:
    """Decode one snapshot row into ``(pool, block)``; raise ValueError if malformed."""

    if len(row) < _MIN_COLUMNS:
        raise ValueError(f"Expected at least {_MIN_COLUMNS} columns, got {len(row)}")
    height = int(row[0])
    timestamp = int(row[2])
    reward = int(row[3])
    if min(height, timestamp, reward) < 0:
        raise ValueError("Negative numeric field")
    block = Block(
        id=hash_from_string(row[1]),
        height=height,
        timestamp=normalize_timestamp(timestamp),
        reward=reward,
        valid=_parse_valid(row[5]) if len(row) > 5 else True,
        miner=row[6] if len(row) > 6 else "",
    )
    return row[4], block


def format_row(entry: TimelineEntry) -> list[str]:
    block = entry.block
    return [
        str(block.height),
        block.id_hex,
        str(block.timestamp),
        str(block.reward),
        entry.pool,
        "true" if block.valid else "false",
        block.miner,
    ]


def load_snapshot(
    path: Path,
    pool_names: Collection[str],
    logger: structlog.BoundLogger | None = None,
) -> dict[str, list[Block]]:
    """Read the blocks of the configured pools from a snapshot file.

    Rows of unknown pools are ignored, malformed rows (the header included)
    are skipped; neither fails the load. A missing or empty file yields
    nothing.
    """

    logger = logger or structlog.get_logger("monero_blocks.snapshot")
    if not path.exists() or path.stat().st_size == 0:
        return {}
    blocks: dict[str, list[Block]] = {}
    loaded = skipped = ignored = 0
    # undecodable bytes become U+FFFD and fail the row, not the file
    with path.open("r", encoding="utf-8", errors="replace", newline="") as stream:
        reader = csv.reader(stream)
        while True:
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as exc:
                logger.debug("snapshot_row_skipped", line=reader.line_num, error=str(exc))
                skipped += 1
                continue
            if len(row) >= _MIN_COLUMNS and row[4] not in pool_names:
                ignored += 1
                continue
            try:
                pool, block = parse_row(row)
            except ValueError as exc:
                if reader.line_num > 1:
                    logger.debug("snapshot_row_skipped", line=reader.line_num, error=str(exc))
                skipped += 1
                continue
            blocks.setdefault(pool, []).append(block)
            loaded += 1
    logger.info("snapshot_loaded", path=str(path), rows=loaded, skipped=skipped, ignored=ignored)
    return blocks


class SnapshotExporter(BaseExporter):
    """Write the timeline to a temporary file, then swap it in place.

    The destination is only replaced on ``close``; ``abort`` (or leaving the
    context manager with an exception) discards the partial output and keeps
    the previous snapshot intact.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            self._temp_path = Path(temp_name)
            self._file = os.fdopen(fd, "w", encoding="utf-8", newline="")
        except OSError as exc:
            raise SnapshotWriteError(f"Cannot create snapshot {self.path}: {exc}") from exc
        self._writer = csv.writer(self._file)
        self._closed = False
        self.count = 0
        self._write(SNAPSHOT_HEADER)

    def __enter__(self) -> "SnapshotExporter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        if exc_type is None:
            self.close()
        else:
            self.abort()

    def export(self, entry: TimelineEntry) -> None:
        self._write(format_row(entry))
        self.count += 1

    def flush(self) -> None:
        try:
            self._file.flush()
        except OSError as exc:
            raise SnapshotWriteError(f"Cannot flush snapshot {self.path}: {exc}") from exc

    def close(self) -> None:
        if self._closed:
            return
        try:
            self._file.flush()
            os.fsync(self._file.fileno())
            self._file.close()
            os.replace(self._temp_path, self.path)
        except OSError as exc:
            self.abort()
            raise SnapshotWriteError(f"Cannot write snapshot {self.path}: {exc}") from exc
        self._closed = True

    def abort(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._file.close()
        self._temp_path.unlink(missing_ok=True)

    def _write(self, row: list[str]) -> None:
        try:
            self._writer.writerow(row)
        except OSError as exc:
            self.abort()
            raise SnapshotWriteError(f"Cannot write snapshot {self.path}: {exc}") from exc


__all__ = ["SNAPSHOT_HEADER", "SnapshotExporter", "format_row", "load_snapshot", "parse_row"]
