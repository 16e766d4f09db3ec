"""Store implementations."""

from .base import Store, StoreError
from .sqlite_store import SQLiteStore

__all__ = ["Store", "StoreError", "SQLiteStore"]
