"""
Cache Interfaces - Abstract contracts for cache operations.

Separates read-only status queries from write operations:
- ICacheStatusProvider: Read-only interface (CLI status, dashboards)
- Full cache operations remain in SampleCache

Architecture:
    CLI / reporting  → ICacheStatusProvider (read-only)
    SampleAnalysisService → SampleCache (full access)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import CacheEntry


@dataclass
class CacheStats:
    """Cache usage snapshot."""
    total_size: int
    entry_count: int
    budget: int
    utilization_percent: float

    @property
    def total_size_mb(self) -> float:
        return self.total_size / (1024 * 1024)

    def to_dict(self) -> Dict:
        return {
            'total_size': self.total_size,
            'entry_count': self.entry_count,
            'budget': self.budget,
            'utilization_percent': self.utilization_percent,
        }


class ICacheStatusProvider(ABC):
    """
    Read-only interface for querying cache status.

    None of these methods update access times.
    """

    @abstractmethod
    def contains(self, sample_id: str) -> bool:
        """Check if a sample is cached."""
        pass

    @abstractmethod
    def get_metadata(self, sample_id: str) -> Optional[CacheEntry]:
        """Get entry metadata without touching it."""
        pass

    @abstractmethod
    def entries(self) -> List[CacheEntry]:
        """All live entries, least recently used first."""
        pass

    @abstractmethod
    def stats(self) -> CacheStats:
        """Get overall cache statistics."""
        pass
