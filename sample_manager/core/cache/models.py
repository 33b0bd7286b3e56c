"""
Domain Models for the Sample Cache.

All models have to_dict() and from_dict() for serialization.

- CacheEntry: metadata of one cached sample (persisted as JSON)
- PutResult: outcome of SampleCache.put
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass
class CacheEntry:
    """
    Metadata for one cached sample.

    The buffer itself lives in the byte store under ``sample:<id>``; this
    record lives under ``meta:<id>``.
    """
    id: str
    size_bytes: int
    created_at: float
    last_accessed_at: float
    mime_type: str = DEFAULT_MIME_TYPE
    seq: int = 0  # insertion order, final eviction tie-breaker

    def age_seconds(self, now: float) -> float:
        return now - self.created_at

    def eviction_key(self):
        """Sort key: least recently used first."""
        return (self.last_accessed_at, self.created_at, self.seq)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'size_bytes': self.size_bytes,
            'created_at': self.created_at,
            'last_accessed_at': self.last_accessed_at,
            'mime_type': self.mime_type,
            'seq': self.seq,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'CacheEntry':
        return cls(
            id=d['id'],
            size_bytes=int(d['size_bytes']),
            created_at=float(d['created_at']),
            last_accessed_at=float(d.get('last_accessed_at', d['created_at'])),
            mime_type=d.get('mime_type', DEFAULT_MIME_TYPE),
            seq=int(d.get('seq', 0)),
        )


@dataclass
class PutResult:
    """Outcome of a put: the stored entry plus ids evicted to make room."""
    entry: CacheEntry
    replaced: bool = False
    evicted: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entry': self.entry.to_dict(),
            'replaced': self.replaced,
            'evicted': list(self.evicted),
        }
