"""Backing stores for catalog data."""

from .exceptions import LoadError, QueryError, StoreError, StoreInitError
from .memory_store import MemoryStore
from .store import Store

__all__ = [
    "Store",
    "MemoryStore",
    "StoreError",
    "StoreInitError",
    "LoadError",
    "QueryError",
]
