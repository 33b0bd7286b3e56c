"""Tests for SampleAnalysisService (cache-aside analysis)."""

import json

import numpy as np
import pytest

from sample_manager.core.cache import SampleCache
from sample_manager.core.errors import DecodeError
from sample_manager.modules.analysis import (
    AnalysisConfig,
    AudioBuffer,
    Category,
    FeatureExtractionPipeline,
)
from sample_manager.modules.analysis.services import (
    AnalysisOutcome,
    SampleAnalysisService,
    content_id,
    features_id,
)


class CountingPipeline(FeatureExtractionPipeline):
    """Pipeline that records how often it ran."""

    def __init__(self, config=None):
        super().__init__(config)
        self.calls = 0

    def analyze(self, buffer):
        self.calls += 1
        return super().analyze(buffer)


@pytest.fixture
def cache(memory_store, fake_clock):
    return SampleCache(memory_store, max_size_bytes=16 * 1024 * 1024, clock=fake_clock)


@pytest.fixture
def pipeline():
    return CountingPipeline()


@pytest.fixture
def service(cache, pipeline):
    return SampleAnalysisService(cache, pipeline=pipeline)


@pytest.fixture
def sine_wav(make_wav, sine_440):
    y, sr = sine_440
    return make_wav(y, sr)


@pytest.mark.unit
class TestAnalyzeBytes:
    """Miss, hit, force."""

    def test_miss_then_hit(self, service, pipeline, sine_wav):
        first = service.analyze_bytes("tone", sine_wav, "audio/wav")
        second = service.analyze_bytes("tone", sine_wav, "audio/wav")

        assert isinstance(first, AnalysisOutcome)
        assert first.from_cache is False
        assert first.raw_cached is True
        assert second.from_cache is True
        assert second.descriptor == first.descriptor
        assert pipeline.calls == 1

    def test_miss_stores_both_entries(self, service, cache, sine_wav):
        service.analyze_bytes("tone", sine_wav, "audio/wav")
        assert cache.get("tone") == sine_wav
        assert cache.get_metadata("tone").mime_type == "audio/wav"
        assert cache.get_metadata(service.features_key("tone")).mime_type == "application/json"
        assert service.is_cached("tone")
        assert service.get_cached_sample("tone") == sine_wav

    def test_force_reanalyses(self, service, pipeline, sine_wav):
        service.analyze_bytes("tone", sine_wav)
        outcome = service.analyze_bytes("tone", sine_wav, force=True)
        assert outcome.from_cache is False
        assert pipeline.calls == 2

    def test_descriptor_content(self, service, sine_wav):
        descriptor = service.analyze_bytes("tone", sine_wav).descriptor
        assert descriptor.key.value == "A"
        assert descriptor.category is Category.SYNTH

    def test_decode_error_caches_nothing(self, service, cache):
        with pytest.raises(DecodeError):
            service.analyze_bytes("junk", b"not audio at all" * 20)
        assert cache.stats().entry_count == 0

    def test_raw_skipped_when_larger_than_budget(self, memory_store, fake_clock, sine_wav):
        small = SampleCache(memory_store, max_size_bytes=len(sine_wav) - 1, clock=fake_clock)
        service = SampleAnalysisService(small)
        outcome = service.analyze_bytes("tone", sine_wav)
        assert outcome.raw_cached is False
        assert not small.contains("tone")
        assert small.contains(service.features_key("tone"))

    def test_cache_raw_disabled(self, cache, sine_wav):
        service = SampleAnalysisService(cache, cache_raw=False)
        outcome = service.analyze_bytes("tone", sine_wav)
        assert outcome.raw_cached is False
        assert not cache.contains("tone")
        assert service.is_cached("tone")

    def test_to_dict(self, service, sine_wav):
        d = service.analyze_bytes("tone", sine_wav).to_dict()
        assert d["sample_id"] == "tone"
        assert d["from_cache"] is False
        assert d["descriptor"]["key"] == "A"
        json.dumps(d)


@pytest.mark.unit
class TestCorruptDescriptor:
    """A corrupt cached descriptor is evicted and recomputed."""

    def test_corrupt_entry_recomputed(self, service, cache, pipeline, sine_wav):
        service.analyze_bytes("tone", sine_wav)
        cache.put(service.features_key("tone"), b"{broken json", "application/json")

        assert service.get_cached_descriptor("tone") is None
        assert not cache.contains(service.features_key("tone"))

        outcome = service.analyze_bytes("tone", sine_wav)
        assert outcome.from_cache is False
        assert pipeline.calls == 2


@pytest.mark.unit
class TestAnalyzeFile:
    """File entry point."""

    def test_default_id_is_content_hash(self, service, tmp_path, sine_wav):
        path = tmp_path / "tone.wav"
        path.write_bytes(sine_wav)

        outcome = service.analyze_file(path)
        assert outcome.sample_id == content_id(sine_wav)
        assert len(outcome.sample_id) == 16
        assert service.cache.get_metadata(outcome.sample_id).mime_type == "audio/wav"

    def test_same_content_same_id(self, service, tmp_path, sine_wav):
        a = tmp_path / "a.wav"
        b = tmp_path / "b.wav"
        a.write_bytes(sine_wav)
        b.write_bytes(sine_wav)
        assert service.analyze_file(a).sample_id == service.analyze_file(b).sample_id
        assert service.analyze_file(b).from_cache is True

    def test_explicit_id(self, service, tmp_path, sine_wav):
        path = tmp_path / "tone.wav"
        path.write_bytes(sine_wav)
        assert service.analyze_file(path, sample_id="my-tone").sample_id == "my-tone"

    def test_missing_file(self, service, tmp_path):
        with pytest.raises(FileNotFoundError):
            service.analyze_file(tmp_path / "missing.wav")


@pytest.mark.unit
class TestAnalyzeBuffer:
    """Decoded input caches the descriptor only."""

    def test_buffer_descriptor_cached(self, service, cache, pipeline, sine_440):
        y, sr = sine_440
        first = service.analyze_buffer("tone", AudioBuffer(y, sr))
        second = service.analyze_buffer("tone", AudioBuffer(y, sr))

        assert first.from_cache is False
        assert second.from_cache is True
        assert pipeline.calls == 1
        assert not cache.contains("tone")

    def test_invalid_buffer(self, service, cache):
        with pytest.raises(DecodeError):
            service.analyze_buffer("empty", AudioBuffer(np.array([], dtype=np.float32), 44100))
        assert cache.stats().entry_count == 0


@pytest.mark.unit
class TestInvalidate:
    """Removing cached state."""

    def test_invalidate(self, service, sine_wav):
        service.analyze_bytes("tone", sine_wav)
        assert service.invalidate("tone") is True
        assert not service.is_cached("tone")
        assert service.get_cached_sample("tone") is None
        assert service.invalidate("tone") is False

    def test_invalidate_drops_every_config(self, cache, sine_wav):
        default = SampleAnalysisService(cache)
        coarse = SampleAnalysisService(cache, pipeline=FeatureExtractionPipeline(AnalysisConfig(waveform_points=16)))
        default.analyze_bytes("tone", sine_wav)
        coarse.analyze_bytes("tone", sine_wav)

        assert default.invalidate("tone") is True
        assert not default.is_cached("tone")
        assert not coarse.is_cached("tone")
        assert cache.stats().entry_count == 0


@pytest.mark.critical
class TestConfigBoundDescriptors:
    """A cached descriptor is only reused by a pipeline with the same config."""

    def test_changed_waveform_points_is_a_miss(self, cache, sine_440):
        """Descriptor cached at 100 points, requested at 64.

        ЧТО ПРОВЕРЯЕМ:
            the second call re-analyses and honours the new resolution
        """
        y, sr = sine_440
        first = SampleAnalysisService(cache).analyze_buffer("s", AudioBuffer(y, sr))
        assert len(first.descriptor.waveform) == 100

        pipeline = CountingPipeline(AnalysisConfig(waveform_points=64))
        second = SampleAnalysisService(cache, pipeline=pipeline).analyze_buffer("s", AudioBuffer(y, sr))

        assert second.from_cache is False
        assert len(second.descriptor.waveform) == 64
        assert pipeline.calls == 1

    def test_each_config_keeps_its_own_entry(self, cache, sine_wav):
        default = SampleAnalysisService(cache)
        folded = SampleAnalysisService(cache, pipeline=FeatureExtractionPipeline(AnalysisConfig(fold_tempo=True)))

        default.analyze_bytes("tone", sine_wav)
        folded.analyze_bytes("tone", sine_wav)

        assert default.features_key("tone") != folded.features_key("tone")
        assert default.analyze_bytes("tone", sine_wav).from_cache is True
        assert folded.analyze_bytes("tone", sine_wav).from_cache is True

    def test_key_format(self, service):
        fingerprint = service.pipeline.config.fingerprint()
        assert service.features_key("kick") == features_id("kick", fingerprint)
        assert service.features_key("kick") == f"kick::features::{fingerprint}"
