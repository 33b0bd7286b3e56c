"""
Sample Cache - size- and age-bounded content cache keyed by sample id.

Storage layout in the byte store:
    sample:<id>  raw buffer bytes
    meta:<id>    CacheEntry as JSON

Usage:
    from sample_manager.core.cache import SampleCache
    from sample_manager.core.connectors import InMemoryByteStore

    cache = SampleCache(InMemoryByteStore(), max_size_bytes=15 * 1024 * 1024)
    result = cache.put("kick-01", wav_bytes, "audio/wav")
    data = cache.get("kick-01")       # touches last_accessed_at
    cache.cleanup()                   # expiry, then size budget
    print(cache.stats().utilization_percent)

Invariants (hold whenever no method is executing):
    - sum of size_bytes over live entries <= max_size_bytes
    - an entry older than max_age_seconds is never returned by get()
    - ids are unique; put() on an existing id replaces it

Eviction order: oldest last_accessed_at, then oldest created_at, then
insertion order.

Thread Safety:
    One RLock per instance, held for the whole of every public method.
"""

import json
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Union

from sample_manager.common.logging import get_logger
from sample_manager.core.errors import ValidationError
from sample_manager.core.interfaces import ByteStoreProtocol
from .interfaces import ICacheStatusProvider, CacheStats
from .models import CacheEntry, PutResult, DEFAULT_MIME_TYPE

logger = get_logger(__name__)

DEFAULT_MAX_SIZE_BYTES = 500 * 1024 * 1024
DEFAULT_MAX_AGE_SECONDS = 7 * 24 * 60 * 60

SAMPLE_PREFIX = "sample:"
META_PREFIX = "meta:"

BytesLike = Union[bytes, bytearray, memoryview]


def sample_key(sample_id: str) -> str:
    return f"{SAMPLE_PREFIX}{sample_id}"


def meta_key(sample_id: str) -> str:
    return f"{META_PREFIX}{sample_id}"


class SampleCache(ICacheStatusProvider):
    """
    Content cache with LRU eviction under a byte budget and age expiry.

    Connector failures propagate as CacheUnavailable from every method;
    they are never reported as a miss.
    """

    def __init__(
        self,
        store: ByteStoreProtocol,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cache and rebuild its index from the store.

        Args:
            store: Byte store connector
            max_size_bytes: Byte budget over all live entries (> 0)
            max_age_seconds: Entry lifetime measured from created_at (> 0)
            clock: Returns UNIX seconds; injectable for tests
        """
        if max_size_bytes <= 0:
            raise ValidationError(
                f"max_size_bytes must be > 0, got {max_size_bytes}",
                data={"max_size_bytes": max_size_bytes},
            )
        if max_age_seconds <= 0:
            raise ValidationError(
                f"max_age_seconds must be > 0, got {max_age_seconds}",
                data={"max_age_seconds": max_age_seconds},
            )

        self.store = store
        self.max_size_bytes = int(max_size_bytes)
        self.max_age_seconds = float(max_age_seconds)
        self._clock = clock
        self._lock = threading.RLock()

        self._index: Dict[str, CacheEntry] = {}
        self._total_size = 0
        self._next_seq = 0

        self._load_index()

    # ============== Public API ==============

    def put(
        self,
        sample_id: str,
        buffer: BytesLike,
        mime_type: str = DEFAULT_MIME_TYPE,
        size_bytes: Optional[int] = None,
    ) -> PutResult:
        """
        Create or replace an entry, evicting LRU entries to stay in budget.

        Args:
            sample_id: Non-empty identifier
            buffer: Raw bytes to store
            mime_type: Content type recorded in metadata
            size_bytes: Accounted size (defaults to len(buffer))

        Returns:
            PutResult with the stored entry and ids evicted to make room

        Raises:
            ValidationError: empty id, negative size, or size above the budget
            CacheUnavailable: byte store failure
        """
        self._validate_id(sample_id)
        data = bytes(buffer)
        size = len(data) if size_bytes is None else int(size_bytes)
        if size < 0:
            raise ValidationError(
                f"size_bytes must be >= 0, got {size}",
                data={"sample_id": sample_id, "size_bytes": size},
            )
        if size > self.max_size_bytes:
            raise ValidationError(
                f"Entry of {size} bytes exceeds cache budget of {self.max_size_bytes} bytes",
                data={"sample_id": sample_id, "size_bytes": size, "budget": self.max_size_bytes},
            )

        with self._lock:
            now = self._clock()
            previous = self._index.get(sample_id)
            projected = self._total_size - (previous.size_bytes if previous else 0) + size

            evicted = []
            for candidate in self._lru_order():
                if projected <= self.max_size_bytes:
                    break
                if candidate.id == sample_id:
                    continue
                evicted.append(candidate.id)
                projected -= candidate.size_bytes

            entry = CacheEntry(
                id=sample_id,
                size_bytes=size,
                created_at=now,
                last_accessed_at=now,
                mime_type=mime_type or DEFAULT_MIME_TYPE,
                seq=self._take_seq(),
            )
            self.store.write_many({
                sample_key(sample_id): data,
                meta_key(sample_id): self._encode_meta(entry),
            })
            if previous is not None:
                self._total_size -= previous.size_bytes
            self._index[sample_id] = entry
            self._total_size += size
            # Victims go only once the new entry is stored
            if evicted:
                self._remove(evicted)

            logger.debug("Cache put", data={
                "sample_id": sample_id,
                "size_bytes": size,
                "replaced": previous is not None,
                "evicted": len(evicted),
                "total_size": self._total_size,
            })
            return PutResult(entry=entry, replaced=previous is not None, evicted=evicted)

    def get(self, sample_id: str) -> Optional[bytes]:
        """
        Get cached bytes and touch last_accessed_at.

        Expired entries are evicted here and reported as a miss.
        """
        with self._lock:
            entry = self._index.get(sample_id)
            if entry is None:
                return None

            now = self._clock()
            if entry.age_seconds(now) > self.max_age_seconds:
                self._remove([sample_id])
                logger.debug("Cache entry expired on read", data={"sample_id": sample_id})
                return None

            data = self.store.read(sample_key(sample_id))
            if data is None:
                # Blob vanished underneath us; drop the dangling metadata
                logger.warning("Cache blob missing, dropping entry", data={"sample_id": sample_id})
                self._remove([sample_id])
                return None

            touched = replace(entry, last_accessed_at=now)
            self.store.write_many({meta_key(sample_id): self._encode_meta(touched)})
            self._index[sample_id] = touched
            return data

    def get_metadata(self, sample_id: str) -> Optional[CacheEntry]:
        """Copy of the entry metadata; does not touch it."""
        with self._lock:
            entry = self._index.get(sample_id)
            return CacheEntry.from_dict(entry.to_dict()) if entry else None

    def contains(self, sample_id: str) -> bool:
        with self._lock:
            return sample_id in self._index

    def entries(self) -> List[CacheEntry]:
        with self._lock:
            return [CacheEntry.from_dict(e.to_dict()) for e in self._lru_order()]

    def evict(self, sample_id: str) -> bool:
        """Remove one entry. Returns False if it was not cached."""
        with self._lock:
            if sample_id not in self._index:
                return False
            self._remove([sample_id])
            return True

    def cleanup_expired(self) -> List[str]:
        """Remove every entry older than max_age_seconds. Returns evicted ids."""
        with self._lock:
            now = self._clock()
            expired = [
                e.id for e in self._lru_order()
                if e.age_seconds(now) > self.max_age_seconds
            ]
            if expired:
                self._remove(expired)
                logger.info("Expired cache entries removed", data={
                    "count": len(expired),
                    "total_size": self._total_size,
                })
            return expired

    def enforce_size_budget(self) -> List[str]:
        """Evict least recently used entries until within budget."""
        with self._lock:
            evicted = []
            excess = self._total_size - self.max_size_bytes
            for entry in self._lru_order():
                if excess <= 0:
                    break
                evicted.append(entry.id)
                excess -= entry.size_bytes
            if evicted:
                self._remove(evicted)
                logger.info("Cache over budget, entries evicted", data={
                    "count": len(evicted),
                    "total_size": self._total_size,
                    "budget": self.max_size_bytes,
                })
            return evicted

    def cleanup(self) -> List[str]:
        """Expiry pass followed by size budget pass."""
        with self._lock:
            return self.cleanup_expired() + self.enforce_size_budget()

    def clear(self) -> None:
        """Remove all entries. The cache stays usable."""
        with self._lock:
            keys = self.store.keys(SAMPLE_PREFIX) + self.store.keys(META_PREFIX)
            self.store.delete_many(keys)
            count = len(self._index)
            self._index.clear()
            self._total_size = 0
            logger.info("Cache cleared", data={"entries_removed": count})

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                total_size=self._total_size,
                entry_count=len(self._index),
                budget=self.max_size_bytes,
                utilization_percent=round(self._total_size / self.max_size_bytes * 100, 2),
            )

    # ============== Internals ==============

    def _validate_id(self, sample_id: str) -> None:
        if not isinstance(sample_id, str) or not sample_id:
            raise ValidationError(
                "Sample id must be a non-empty string",
                data={"sample_id": repr(sample_id)},
            )

    def _take_seq(self) -> int:
        seq = self._next_seq
        self._next_seq += 1
        return seq

    def _lru_order(self) -> List[CacheEntry]:
        return sorted(self._index.values(), key=CacheEntry.eviction_key)

    def _remove(self, ids: List[str]) -> None:
        """Delete entries from the store first, then from the index."""
        keys = []
        for sample_id in ids:
            keys.append(sample_key(sample_id))
            keys.append(meta_key(sample_id))
        self.store.delete_many(keys)
        for sample_id in ids:
            entry = self._index.pop(sample_id, None)
            if entry is not None:
                self._total_size -= entry.size_bytes

    @staticmethod
    def _encode_meta(entry: CacheEntry) -> bytes:
        return json.dumps(entry.to_dict(), sort_keys=True).encode("utf-8")

    def _load_index(self) -> None:
        """Rebuild the in-memory index from persisted metadata."""
        with self._lock:
            meta_keys = self.store.keys(META_PREFIX)
            blob_ids = {k[len(SAMPLE_PREFIX):] for k in self.store.keys(SAMPLE_PREFIX)}

            stale_keys = []
            for key in meta_keys:
                sample_id = key[len(META_PREFIX):]
                raw = self.store.read(key)
                try:
                    entry = CacheEntry.from_dict(json.loads(raw.decode("utf-8")))
                except (AttributeError, UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
                    logger.warning("Unreadable cache metadata, dropping", data={
                        "key": key,
                        "error": str(e),
                    })
                    stale_keys.extend([key, sample_key(sample_id)])
                    continue
                if entry.id != sample_id or sample_id not in blob_ids:
                    stale_keys.extend([key, sample_key(sample_id)])
                    continue
                self._index[sample_id] = entry
                self._total_size += entry.size_bytes

            orphans = [sample_key(i) for i in blob_ids if i not in self._index]
            stale_keys.extend(k for k in orphans if k not in stale_keys)
            if stale_keys:
                self.store.delete_many(stale_keys)

            if self._index:
                self._next_seq = max(e.seq for e in self._index.values()) + 1
                logger.info("Cache index loaded", data={
                    "entries": len(self._index),
                    "total_size": self._total_size,
                    "dropped_keys": len(stale_keys),
                })

            # A smaller budget than the persisted data is honoured immediately
            if self._total_size > self.max_size_bytes:
                self.enforce_size_budget()


__all__ = [
    'SampleCache',
    'DEFAULT_MAX_SIZE_BYTES',
    'DEFAULT_MAX_AGE_SECONDS',
    'sample_key',
    'meta_key',
]
