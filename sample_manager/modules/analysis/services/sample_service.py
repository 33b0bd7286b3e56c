"""
SampleAnalysisService - cache-aside analysis of samples.

The cache holds two entries per sample:
    <id>                  raw encoded bytes (the MIME type the caller declared)
    <id>::features::<fp>  FeatureDescriptor JSON, fp = AnalysisConfig.fingerprint()

A descriptor hit skips decoding and analysis entirely. On a miss the
bytes are decoded, analysed, and both entries are stored.

Usage:
    service = SampleAnalysisService(create_sample_cache())
    outcome = service.analyze_file("kick.wav")
    print(outcome.descriptor.tempo_bpm, outcome.from_cache)
"""

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sample_manager.common.logging import get_logger
from sample_manager.common.logging.correlation import correlation_scope
from sample_manager.core.adapters import AudioLoader
from sample_manager.core.cache import SampleCache
from ..pipelines import FeatureExtractionPipeline
from ..types import AudioBuffer, FeatureDescriptor

logger = get_logger(__name__)

FEATURES_SUFFIX = "::features"
FEATURES_MIME_TYPE = "application/json"


def features_id(sample_id: str, fingerprint: str) -> str:
    """Descriptor key; the config fingerprint keeps differently configured results apart."""
    return f"{sample_id}{FEATURES_SUFFIX}::{fingerprint}"


def content_id(data: bytes) -> str:
    """Stable sample id derived from content."""
    return hashlib.sha256(data).hexdigest()[:16]


@dataclass
class AnalysisOutcome:
    """Result of one service call."""
    sample_id: str
    descriptor: FeatureDescriptor
    from_cache: bool
    raw_cached: bool = False
    evicted: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sample_id': self.sample_id,
            'from_cache': self.from_cache,
            'raw_cached': self.raw_cached,
            'evicted': list(self.evicted),
            'descriptor': self.descriptor.to_dict(),
        }


class SampleAnalysisService:
    """
    Orchestrates loader, pipeline and cache.

    Errors propagate: DecodeError for bad audio, CacheUnavailable when the
    byte store fails. A corrupt cached descriptor is evicted and recomputed.
    """

    def __init__(
        self,
        cache: SampleCache,
        pipeline: Optional[FeatureExtractionPipeline] = None,
        loader: Optional[AudioLoader] = None,
        cache_raw: bool = True,
    ):
        """
        Args:
            cache: Sample cache for raw bytes and descriptors
            pipeline: Feature extraction pipeline (default config if None)
            loader: Audio decoder (native sample rate if None)
            cache_raw: Also store the encoded bytes on a miss
        """
        self.cache = cache
        self.pipeline = pipeline or FeatureExtractionPipeline()
        self.loader = loader or AudioLoader()
        self.cache_raw = cache_raw

    # ============== Analysis ==============

    def analyze_file(
        self,
        file_path: Union[str, Path],
        sample_id: Optional[str] = None,
        force: bool = False,
    ) -> AnalysisOutcome:
        """Analyse a file; sample_id defaults to a hash of its content."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")
        data = path.read_bytes()
        return self.analyze_bytes(
            sample_id or content_id(data),
            data,
            mime_type=self.loader.mime_type_for(path),
            force=force,
        )

    def analyze_bytes(
        self,
        sample_id: str,
        data: bytes,
        mime_type: str = "application/octet-stream",
        force: bool = False,
    ) -> AnalysisOutcome:
        """
        Cache-aside analysis of encoded audio.

        Args:
            sample_id: Stable identifier for the sample
            data: Encoded audio bytes
            mime_type: Recorded with the raw cache entry
            force: Ignore a cached descriptor and re-analyse
        """
        with correlation_scope(sample_id=sample_id):
            if not force:
                cached = self.get_cached_descriptor(sample_id)
                if cached is not None:
                    logger.info("Descriptor cache hit", data={"sample_id": sample_id})
                    return AnalysisOutcome(sample_id=sample_id, descriptor=cached, from_cache=True)

            buffer = self.loader.decode(data, source=sample_id)
            descriptor = self.pipeline.analyze(buffer)

            evicted: List[str] = []
            raw_cached = False
            if self.cache_raw:
                if len(data) <= self.cache.max_size_bytes:
                    evicted.extend(self.cache.put(sample_id, data, mime_type).evicted)
                    raw_cached = True
                else:
                    logger.warning("Sample larger than cache budget, raw bytes not cached", data={
                        "size_bytes": len(data),
                        "budget": self.cache.max_size_bytes,
                    })
            evicted.extend(self._store_descriptor(sample_id, descriptor))

            logger.info("Sample analyzed", data={
                "category": descriptor.category.value,
                "tempo_bpm": descriptor.tempo_bpm,
                "key": descriptor.key.value,
                "evicted": len(evicted),
            })
            return AnalysisOutcome(
                sample_id=sample_id,
                descriptor=descriptor,
                from_cache=False,
                raw_cached=raw_cached,
                evicted=evicted,
            )

    def analyze_buffer(
        self,
        sample_id: str,
        buffer: AudioBuffer,
        force: bool = False,
    ) -> AnalysisOutcome:
        """Cache-aside analysis of an already decoded buffer (descriptor only)."""
        with correlation_scope(sample_id=sample_id):
            if not force:
                cached = self.get_cached_descriptor(sample_id)
                if cached is not None:
                    return AnalysisOutcome(sample_id=sample_id, descriptor=cached, from_cache=True)

            descriptor = self.pipeline.analyze(buffer)
            evicted = self._store_descriptor(sample_id, descriptor)
            return AnalysisOutcome(
                sample_id=sample_id,
                descriptor=descriptor,
                from_cache=False,
                evicted=evicted,
            )

    # ============== Cache access ==============

    def get_cached_descriptor(self, sample_id: str) -> Optional[FeatureDescriptor]:
        """Cached descriptor or None; a corrupt entry is evicted."""
        key = self.features_key(sample_id)
        raw = self.cache.get(key)
        if raw is None:
            return None
        try:
            return FeatureDescriptor.from_dict(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
            logger.warning("Corrupt cached descriptor, evicting", data={
                "key": key,
                "error": str(e),
            })
            self.cache.evict(key)
            return None

    def get_cached_sample(self, sample_id: str) -> Optional[bytes]:
        """Raw bytes previously stored by analyze_bytes/analyze_file."""
        return self.cache.get(sample_id)

    def is_cached(self, sample_id: str) -> bool:
        return self.cache.contains(self.features_key(sample_id))

    def invalidate(self, sample_id: str) -> bool:
        """Drop the raw entry and descriptors under every config. True if anything was removed."""
        prefix = f"{sample_id}{FEATURES_SUFFIX}::"
        removed = self.cache.evict(sample_id)
        for entry in self.cache.entries():
            if entry.id.startswith(prefix):
                removed = self.cache.evict(entry.id) or removed
        return removed

    def features_key(self, sample_id: str) -> str:
        """Cache id of the descriptor produced by this service's pipeline config."""
        return features_id(sample_id, self.pipeline.config.fingerprint())

    def _store_descriptor(self, sample_id: str, descriptor: FeatureDescriptor) -> List[str]:
        payload = json.dumps(descriptor.to_dict(), sort_keys=True).encode("utf-8")
        return self.cache.put(self.features_key(sample_id), payload, FEATURES_MIME_TYPE).evicted
