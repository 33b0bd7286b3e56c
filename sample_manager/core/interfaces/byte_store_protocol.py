"""
Byte Store Protocol - Interface for raw key/value storage behind SampleCache.

Implementations:
- InMemoryByteStore (sample_manager.core.connectors.inmemory_store)
- SQLiteByteStore (sample_manager.core.connectors.sqlite_store)

Connectors know nothing about entries, ages or budgets. They raise
CacheUnavailable on medium failure and never report a failure as a miss.
"""

from typing import Protocol, Optional, Mapping, Iterable, List, runtime_checkable


@runtime_checkable
class ByteStoreProtocol(Protocol):
    """Protocol for byte store implementations (DI interface)."""

    def read(self, key: str) -> Optional[bytes]:
        """Get value by key, None if absent."""
        ...

    def write_many(self, items: Mapping[str, bytes]) -> None:
        """Write all items atomically where the medium allows it."""
        ...

    def delete_many(self, keys: Iterable[str]) -> None:
        """Delete keys; missing keys are ignored."""
        ...

    def keys(self, prefix: str = "") -> List[str]:
        """List keys starting with prefix, sorted."""
        ...

    def clear(self) -> None:
        """Remove everything."""
        ...
