"""
Config - Application configuration.

- settings.py: dataclass settings from environment
- cache.py: byte store and sample cache factories
"""

from .settings import Settings, CacheBackend, LogLevel, get_settings, reset_settings
from .cache import create_byte_store, create_sample_cache

__all__ = [
    # Settings
    "Settings",
    "CacheBackend",
    "LogLevel",
    "get_settings",
    "reset_settings",
    # Cache
    "create_byte_store",
    "create_sample_cache",
]
