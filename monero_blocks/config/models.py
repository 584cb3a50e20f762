"""Pydantic models describing pools, serving and global run options."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_FLOOR_HEIGHT = 2688888  # v15 network upgrade
DEFAULT_USER_AGENT = "monero-blocks/0.3"


class PoolKind(str, Enum):
    """API families an adapter exists for."""

    CRYPTONOTE = "cryptonote"
    P2POOL = "p2pool"
    NANOPOOL = "nanopool"
    C3POOL = "c3pool"
    TWOMINERS = "2miners"
    SOLOPOOL = "solopool"
    KRYPTEX = "kryptex"
    RPLANT = "rplant"


class PoolConfig(BaseModel):
    """One polled pool API."""

    name: str
    kind: PoolKind
    api_url: str
    interval: float = Field(default=5.0, description="Minimum seconds between two calls.")
    timeout: float = 15.0
    retries: int = 0
    enabled: bool = True

    @model_validator(mode="after")
    def _validate_limits(self) -> "PoolConfig":
        if not self.name.strip():
            raise ValueError("Pool name cannot be empty")
        if not self.api_url.strip():
            raise ValueError("api_url cannot be empty")
        if self.interval < 0:
            raise ValueError("interval must be >= 0")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        return self


class ServeConfig(BaseModel):
    """HTTP serving and background refresh options."""

    host: str = "127.0.0.1"
    port: int = 8080
    tls_cert: Path | None = None
    tls_key: Path | None = None
    refresh_interval: float = 300.0
    latest_default: int = 100
    latest_max: int = 2000
    ownership_default: int = 1000
    ownership_max: int = 100_000
    daemon_rpc_url: str | None = None

    @field_validator("tls_cert", "tls_key", mode="before")
    @classmethod
    def _coerce_tls(cls, value: Any) -> Path | None:
        if value in (None, ""):
            return None
        return Path(value)

    @model_validator(mode="after")
    def _validate_serve(self) -> "ServeConfig":
        if (self.tls_cert is None) != (self.tls_key is None):
            raise ValueError("tls_cert and tls_key must be given together")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")
        if self.refresh_interval <= 0:
            raise ValueError("refresh_interval must be > 0")
        if not 1 <= self.latest_default <= self.latest_max:
            raise ValueError("latest_default must be between 1 and latest_max")
        if not 1 <= self.ownership_default <= self.ownership_max:
            raise ValueError("ownership_default must be between 1 and ownership_max")
        return self

    @property
    def tls_enabled(self) -> bool:
        return self.tls_cert is not None


def _p2pool(url: str) -> PoolConfig:
    return PoolConfig(name=url.split("://", 1)[-1], kind=PoolKind.P2POOL, api_url=url)


def _cryptonote(url: str, name: str) -> PoolConfig:
    return PoolConfig(name=name, kind=PoolKind.CRYPTONOTE, api_url=url)


def default_pools() -> list[PoolConfig]:
    """Pools tracked out of the box."""

    return [
        PoolConfig(name="xmr.nanopool.org", kind=PoolKind.NANOPOOL, api_url="https://xmr.nanopool.org/api/v1"),
        PoolConfig(name="kryptex.com", kind=PoolKind.KRYPTEX, api_url="https://pool.kryptex.com/xmr/api/v1"),
        PoolConfig(name="c3pool.org", kind=PoolKind.C3POOL, api_url="https://api.c3pool.org"),
        _cryptonote("https://web.xmrpool.eu:8119", "xmrpool.eu"),
        _cryptonote("https://monero.herominers.com/api", "monero.herominers.com"),
        _cryptonote("https://monerohash.com/api", "monerohash.com"),
        _cryptonote("https://fastpool.xyz/api-xmr", "fastpool.xyz"),
        _cryptonote("https://xmr.zeropool.io:8119", "xmr.zeropool.io"),
        _cryptonote("https://monero.fairhash.org/api", "monero.fairhash.org"),
        PoolConfig(name="xmr.2miners.com", kind=PoolKind.TWOMINERS, api_url="https://xmr.2miners.com/api"),
        PoolConfig(name="xmr.solopool.org", kind=PoolKind.SOLOPOOL, api_url="https://xmr.solopool.org/api"),
        PoolConfig(
            name="pool.rplant.xyz",
            kind=PoolKind.RPLANT,
            api_url="https://pool.rplant.xyz/api2/poolminer2/monero/0/0",
        ),
        # main
        _p2pool("https://p2pool.observer"),
        _p2pool("https://old.p2pool.observer"),
        _p2pool("https://old-old.p2pool.observer"),
        # mini
        _p2pool("https://mini.p2pool.observer"),
        _p2pool("https://old-mini.p2pool.observer"),
        # nano
        _p2pool("https://nano.p2pool.observer"),
    ]


class GlobalConfig(BaseModel):
    """Run options shared by batch and serving mode."""

    floor_height: int = DEFAULT_FLOOR_HEIGHT
    output: Path = Field(default=Path("blocks.csv"))
    only_valid: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    thread_pool_workers: int = 32
    serve: ServeConfig = Field(default_factory=ServeConfig)
    pools: list[PoolConfig] = Field(default_factory=default_pools)

    @field_validator("output", mode="before")
    @classmethod
    def _coerce_output(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_global(self) -> "GlobalConfig":
        if self.floor_height < 0:
            raise ValueError("floor_height must be >= 0")
        if self.thread_pool_workers < 1:
            raise ValueError("thread_pool_workers must be >= 1")
        seen: set[str] = set()
        for pool in self.pools:
            if pool.name in seen:
                raise ValueError(f"Duplicate pool name: {pool.name}")
            seen.add(pool.name)
        return self

    def enabled_pools(self) -> list[PoolConfig]:
        return [pool for pool in self.pools if pool.enabled]


__all__ = [
    "DEFAULT_FLOOR_HEIGHT",
    "DEFAULT_USER_AGENT",
    "GlobalConfig",
    "PoolConfig",
    "PoolKind",
    "ServeConfig",
    "default_pools",
]
