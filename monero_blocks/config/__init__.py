"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_FLOOR_HEIGHT,
    GlobalConfig,
    PoolConfig,
    PoolKind,
    ServeConfig,
    default_pools,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_FLOOR_HEIGHT",
    "GlobalConfig",
    "PoolConfig",
    "PoolKind",
    "ServeConfig",
    "default_pools",
]
