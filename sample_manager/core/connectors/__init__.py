"""
Connectors - Byte store implementations.

- sqlite_store.py: SQLite-based (persistent, default)
- inmemory_store.py: In-memory (unit tests)
"""

from .sqlite_store import SQLiteByteStore
from .inmemory_store import InMemoryByteStore

__all__ = [
    "SQLiteByteStore",
    "InMemoryByteStore",
]
