"""Pool adapters: one per API family, all behind ``PoolAdapter``."""

from .base import PageToken, PoolAdapter, Token
from .registry import ADAPTERS, build_adapter

__all__ = ["ADAPTERS", "PageToken", "PoolAdapter", "Token", "build_adapter"]
