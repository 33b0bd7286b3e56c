"""
Sample Cache System.

Architecture:
    SampleCache (public API, index + eviction policy)
        └── ByteStoreProtocol connector (sqlite / in-memory)

    SampleCache implements ICacheStatusProvider for read-only queries.
"""

from .interfaces import (
    ICacheStatusProvider,
    CacheStats,
)
from .models import (
    CacheEntry,
    PutResult,
    DEFAULT_MIME_TYPE,
)
from .repository import (
    SampleCache,
    DEFAULT_MAX_SIZE_BYTES,
    DEFAULT_MAX_AGE_SECONDS,
)

__all__ = [
    # Interfaces
    'ICacheStatusProvider',
    'CacheStats',
    # Repository
    'SampleCache',
    'DEFAULT_MAX_SIZE_BYTES',
    'DEFAULT_MAX_AGE_SECONDS',
    # Models
    'CacheEntry',
    'PutResult',
    'DEFAULT_MIME_TYPE',
]
