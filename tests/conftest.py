"""
Pytest configuration for sample-manager tests.

Automatically adds project root to sys.path so that 'from sample_manager...'
imports work without installing the package.
Defines markers and shared fixtures.
"""
import io
import sys
from pathlib import Path
from typing import Callable, Tuple

import numpy as np
import pytest
import soundfile as sf

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sample_manager.common.logging import LoggingConfig  # noqa: E402
from sample_manager.core.config import reset_settings  # noqa: E402
from sample_manager.core.connectors import InMemoryByteStore, SQLiteByteStore  # noqa: E402

SR = 44100

SETTINGS_ENV_VARS = (
    "CACHE_BACKEND",
    "CACHE_DB_PATH",
    "CACHE_MAX_SIZE_MB",
    "CACHE_MAX_AGE_DAYS",
    "LOG_LEVEL",
    "LOG_JSON_FORMAT",
    "SAMPLE_RATE",
    "WAVEFORM_POINTS",
    "ANALYSIS_CONFIG",
    "WORKERS",
)


# =============================================================================
# Pytest Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "critical: Critical class tests (100% coverage)")
    config.addinivalue_line("markers", "invariant: Behavioural invariant tests")
    config.addinivalue_line("markers", "slow: Slow tests")
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests through the CLI")


# =============================================================================
# Isolation
# =============================================================================

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Each test starts from default settings."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    LoggingConfig.reset_instance()
    yield
    reset_settings()
    LoggingConfig.reset_instance()


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return project root path."""
    return PROJECT_ROOT


@pytest.fixture
def sine_440() -> Tuple[np.ndarray, int]:
    """1 second of A4 (440 Hz) at amplitude 0.9, whole number of cycles."""
    t = np.arange(SR) / SR
    y = (0.9 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)
    return y, SR


@pytest.fixture
def sine_60_loud() -> Tuple[np.ndarray, int]:
    """1 second of 60 Hz at full scale (RMS ~ 0.707)."""
    t = np.arange(SR) / SR
    y = np.sin(2 * np.pi * 60 * t).astype(np.float32)
    return y, SR


@pytest.fixture
def white_noise() -> Tuple[np.ndarray, int]:
    """1 second of seeded white noise (bright spectrum)."""
    rng = np.random.default_rng(42)
    y = (0.3 * rng.uniform(-1.0, 1.0, SR)).astype(np.float32)
    return y, SR


@pytest.fixture
def impulse_train_240() -> Tuple[np.ndarray, int]:
    """Unit impulses every 0.25 s (240 BPM), starting off the first sample."""
    y = np.zeros(2 * SR, dtype=np.float32)
    y[100::SR // 4] = 1.0
    return y, SR


class FakeClock:
    """Deterministic time source for SampleCache."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> InMemoryByteStore:
    return InMemoryByteStore()


@pytest.fixture
def sqlite_db_path(tmp_path) -> Path:
    return tmp_path / "cache" / "samples.db"


@pytest.fixture
def sqlite_store(sqlite_db_path) -> SQLiteByteStore:
    return SQLiteByteStore(str(sqlite_db_path))


@pytest.fixture
def make_wav() -> Callable[..., bytes]:
    """Encode samples as WAV bytes. Accepts (n,) or (n, channels) arrays."""

    def _make(samples: np.ndarray, sr: int = SR, subtype: str = "FLOAT") -> bytes:
        buf = io.BytesIO()
        sf.write(buf, samples, sr, format="WAV", subtype=subtype)
        return buf.getvalue()

    return _make
