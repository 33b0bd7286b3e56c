"""
Settings - Application configuration using dataclasses.

Environment variables:
- CACHE_BACKEND: sqlite, memory
- CACHE_DB_PATH: SQLite database path
- CACHE_MAX_SIZE_MB: Cache byte budget in MiB (500)
- CACHE_MAX_AGE_DAYS: Entry lifetime in days (7)
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR
- LOG_JSON_FORMAT: true/false
- SAMPLE_RATE: Resample decoded audio to this rate (unset = native rate)
- WAVEFORM_POINTS: Waveform thumbnail resolution (100)
- ANALYSIS_CONFIG: YAML file with an 'analysis' section
- WORKERS: Batch analysis threads (4)
"""

import os
from enum import Enum
from typing import Optional, Type, TypeVar
from dataclasses import dataclass, field

from sample_manager.core.errors import ConfigurationError

E = TypeVar("E", bound=Enum)


class CacheBackend(str, Enum):
    """Cache backend options."""
    SQLITE = "sqlite"
    MEMORY = "memory"


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _env_enum(name: str, enum_cls: Type[E], default: str) -> E:
    raw = os.getenv(name, default)
    try:
        return enum_cls(raw.strip().lower() if enum_cls is CacheBackend else raw.strip().upper())
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(
            f"{name}={raw!r} is not one of: {allowed}",
            data={"variable": name, "value": raw},
            cause=e,
        ) from e


def _env_number(name: str, default: str, cast=int, minimum: float = 0, allow_equal: bool = False):
    raw = os.getenv(name, default)
    try:
        value = cast(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"{name}={raw!r} is not a valid {cast.__name__}",
            data={"variable": name, "value": raw},
            cause=e,
        ) from e
    if value < minimum or (value == minimum and not allow_equal):
        raise ConfigurationError(
            f"{name} must be {'>=' if allow_equal else '>'} {minimum}, got {value}",
            data={"variable": name, "value": raw},
        )
    return value


def _env_optional_int(name: str) -> Optional[int]:
    if not os.getenv(name):
        return None
    return _env_number(name, "0", int)


def _env_bool(name: str, default: str = "false") -> bool:
    raw = os.getenv(name, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(
        f"{name}={raw!r} is not a boolean",
        data={"variable": name, "value": raw},
    )


@dataclass
class Settings:
    """Application settings from environment."""

    # Cache
    cache_backend: CacheBackend = field(
        default_factory=lambda: _env_enum("CACHE_BACKEND", CacheBackend, "sqlite")
    )
    cache_db_path: str = field(
        default_factory=lambda: os.getenv("CACHE_DB_PATH", "cache/samples.db")
    )
    cache_max_size_mb: float = field(
        default_factory=lambda: _env_number("CACHE_MAX_SIZE_MB", "500", float)
    )
    cache_max_age_days: float = field(
        default_factory=lambda: _env_number("CACHE_MAX_AGE_DAYS", "7", float)
    )

    # Logging
    log_level: LogLevel = field(
        default_factory=lambda: _env_enum("LOG_LEVEL", LogLevel, "INFO")
    )
    log_json: bool = field(
        default_factory=lambda: _env_bool("LOG_JSON_FORMAT")
    )

    # Audio
    sample_rate: Optional[int] = field(
        default_factory=lambda: _env_optional_int("SAMPLE_RATE")
    )
    waveform_points: int = field(
        default_factory=lambda: _env_number("WAVEFORM_POINTS", "100", int)
    )
    analysis_config_path: Optional[str] = field(
        default_factory=lambda: os.getenv("ANALYSIS_CONFIG") or None
    )

    # Performance
    workers: int = field(
        default_factory=lambda: _env_number("WORKERS", "4", int)
    )

    @property
    def cache_max_size_bytes(self) -> int:
        return int(self.cache_max_size_mb * 1024 * 1024)

    @property
    def cache_max_age_seconds(self) -> float:
        return self.cache_max_age_days * 24 * 60 * 60


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the singleton so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
