"""Canonical block record shared by every pool adapter and view."""

from __future__ import annotations

from dataclasses import dataclass

HASH_SIZE = 32
ZERO_HASH = bytes(HASH_SIZE)
UNKNOWN_POOL = "Unknown"

_MICROSECONDS_ABOVE = 10**15
_MILLISECONDS_ABOVE = 10**12


def hash_from_string(value: str) -> bytes:
    """Decode a 32 byte block id from its hex representation."""

    raw = bytes.fromhex(value.strip())
    if len(raw) != HASH_SIZE:
        raise ValueError(f"Block id must be {HASH_SIZE} bytes, got {len(raw)}")
    return raw


def normalize_timestamp(value: int) -> int:
    """Rescale a unix timestamp given in s, ms or us to seconds.

    Pools report found-block times in whatever unit their backend uses and
    never say which one. Real timestamps of the Monero era sit between 10^9
    and 10^10, so anything past 10^12 can only be milliseconds and anything
    past 10^15 only microseconds.
    """

    if value > _MICROSECONDS_ABOVE:
        return value // 1_000_000
    if value > _MILLISECONDS_ABOVE:
        return value // 1_000
    return value


@dataclass(slots=True)
class Block:
    """A found block as reported by one pool."""

    id: bytes
    height: int
    timestamp: int = 0
    reward: int = 0
    valid: bool = True
    miner: str = ""

    @property
    def id_hex(self) -> str:
        return self.id.hex()

    @property
    def has_id(self) -> bool:
        return self.id != ZERO_HASH


@dataclass(slots=True, frozen=True)
class TimelineEntry:
    """One row of a merged view: a pool's block, or a placeholder for a gap."""

    pool: str
    block: Block
    synthetic: bool = False

    @classmethod
    def unknown(cls, height: int) -> "TimelineEntry":
        return cls(pool=UNKNOWN_POOL, block=Block(id=ZERO_HASH, height=height), synthetic=True)

    @property
    def height(self) -> int:
        return self.block.height

    def as_dict(self) -> dict[str, object]:
        return {
            "height": self.block.height,
            "id": self.block.id_hex,
            "timestamp": self.block.timestamp,
            "reward": self.block.reward,
            "pool": self.pool,
            "valid": self.block.valid,
            "miner": self.block.miner,
        }


@dataclass(slots=True)
class OwnershipShare:
    pool: str
    count: int
    percentage: float

    def as_dict(self) -> dict[str, object]:
        return {"pool": self.pool, "count": self.count, "percentage": self.percentage}


__all__ = [
    "Block",
    "HASH_SIZE",
    "OwnershipShare",
    "TimelineEntry",
    "UNKNOWN_POOL",
    "ZERO_HASH",
    "hash_from_string",
    "normalize_timestamp",
]
