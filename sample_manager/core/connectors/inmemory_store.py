"""
InMemoryByteStore - In-memory byte store for unit tests and ephemeral use.

Simple dict-based store without persistence.
"""

import threading
from typing import Dict, Iterable, List, Mapping, Optional


class InMemoryByteStore:
    """
    In-memory byte store implementation.

    Implements ByteStoreProtocol.
    No persistence - data lost on restart.
    """

    def __init__(self):
        self._store: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._store.get(key)

    def write_many(self, items: Mapping[str, bytes]) -> None:
        with self._lock:
            for key, value in items.items():
                self._store[key] = bytes(value)

    def delete_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._store.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return sorted(k for k in self._store if k.startswith(prefix))

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._store.clear()
