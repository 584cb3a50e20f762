"""Build pool adapters from configuration."""

from __future__ import annotations

import httpx

from ..config import PoolConfig, PoolKind
from ..config.models import DEFAULT_USER_AGENT
from ..engine.fetcher import PoolHttpClient
from ..logging_conf import pool_logger
from .base import PoolAdapter
from .c3pool import C3Pool
from .cryptonote import CryptonotePool
from .kryptex import KryptexPool
from .nanopool import NanopoolPool
from .p2pool import P2PoolObserver
from .rplant import RplantPool
from .solopool import SoloPool
from .twominers import TwoMinersPool

ADAPTERS: dict[PoolKind, type[PoolAdapter]] = {
    PoolKind.CRYPTONOTE: CryptonotePool,
    PoolKind.P2POOL: P2PoolObserver,
    PoolKind.NANOPOOL: NanopoolPool,
    PoolKind.C3POOL: C3Pool,
    PoolKind.TWOMINERS: TwoMinersPool,
    PoolKind.SOLOPOOL: SoloPool,
    PoolKind.KRYPTEX: KryptexPool,
    PoolKind.RPLANT: RplantPool,
}


def build_adapter(
    config: PoolConfig,
    user_agent: str = DEFAULT_USER_AGENT,
    transport: httpx.BaseTransport | None = None,
) -> PoolAdapter:
    try:
        adapter_cls = ADAPTERS[config.kind]
    except KeyError as exc:
        raise ValueError(f"No adapter for pool kind: {config.kind}") from exc
    logger = pool_logger(config.name)
    client = PoolHttpClient(config, user_agent=user_agent, logger=logger, transport=transport)
    return adapter_cls(config, client, logger=logger)


__all__ = ["ADAPTERS", "build_adapter"]
