"""
Cache Factory - Create byte stores and sample caches from configuration.

Uses factory pattern for dependency injection.
"""

import time
from typing import Callable, Optional

from sample_manager.core.errors import ConfigurationError
from ..cache import SampleCache
from ..interfaces import ByteStoreProtocol
from .settings import CacheBackend, Settings, get_settings


def create_byte_store(
    backend: Optional[CacheBackend] = None,
    **kwargs
) -> ByteStoreProtocol:
    """
    Factory for byte store connectors.

    Args:
        backend: Store backend (default from settings)
        **kwargs: Backend-specific arguments (db_path for sqlite)

    Returns:
        ByteStoreProtocol implementation

    Example:
        store = create_byte_store()  # Uses settings
        store = create_byte_store(CacheBackend.SQLITE, db_path="/tmp/s.db")
    """
    settings = get_settings()
    backend = backend or settings.cache_backend

    if backend == CacheBackend.SQLITE:
        from ..connectors.sqlite_store import SQLiteByteStore
        db_path = kwargs.get('db_path', settings.cache_db_path)
        return SQLiteByteStore(db_path=db_path)

    elif backend == CacheBackend.MEMORY:
        from ..connectors.inmemory_store import InMemoryByteStore
        return InMemoryByteStore()

    raise ConfigurationError(
        f"Unknown cache backend: {backend}",
        data={"backend": str(backend)},
    )


def create_sample_cache(
    store: Optional[ByteStoreProtocol] = None,
    settings: Optional[Settings] = None,
    clock: Callable[[], float] = time.time,
) -> SampleCache:
    """
    Create a SampleCache with budget and lifetime from settings.

    Args:
        store: Byte store (created from settings if None)
        settings: Settings instance (singleton if None)
        clock: Time source passed to SampleCache
    """
    settings = settings or get_settings()
    if store is None:
        store = create_byte_store(settings.cache_backend, db_path=settings.cache_db_path)
    return SampleCache(
        store,
        max_size_bytes=settings.cache_max_size_bytes,
        max_age_seconds=settings.cache_max_age_seconds,
        clock=clock,
    )
