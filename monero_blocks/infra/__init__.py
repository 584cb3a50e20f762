"""Infra layer utilities (locking, throttling)."""

from .locks import ReadWriteLock
from .throttle import Throttle

__all__ = ["ReadWriteLock", "Throttle"]
