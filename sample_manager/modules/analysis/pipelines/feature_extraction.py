"""
Feature Extraction Pipeline - one FeatureDescriptor per AudioBuffer.

Stage order:
    1. Extract the first channel (validates the buffer, raises DecodeError)
    2. Peak/interval analysis -> tempo
    3. Spectral analysis      -> key, spectral centroid
    4. Aggregation            -> loudness, RMS, ZCR, waveform
    5. Category rules
    6. Assemble descriptor

The pipeline holds only its immutable AnalysisConfig. analyze() performs
no I/O and keeps no state between calls, so one instance can serve
concurrent callers with distinct buffers.
"""

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from sample_manager.common.logging import get_logger
from sample_manager.common.primitives import (
    Key,
    find_peaks,
    analyze_intervals,
    tempo_from_intervals,
    fold_tempo,
    transform,
    dominant_frequencies,
    estimate_key,
    spectral_centroid,
    bin_to_hz,
    loudness,
    rms,
    zero_crossing_rate,
    waveform_thumbnail,
)
from sample_manager.core.errors import DecodeError
from ..classification import ClassificationFeatures, RuleBasedClassifier
from ..config import AnalysisConfig
from ..types import AudioBuffer, FeatureDescriptor

logger = get_logger(__name__)


@dataclass(frozen=True)
class RhythmFeatures:
    tempo_bpm: float
    peak_count: int


@dataclass(frozen=True)
class SpectralSummary:
    key: Key
    centroid_hz: float
    dominant_count: int


class FeatureExtractionPipeline:
    """
    Turns decoded audio into a FeatureDescriptor.

    Usage:
        pipeline = FeatureExtractionPipeline(AnalysisConfig(waveform_points=64))
        descriptor = pipeline.analyze(AudioBuffer(samples, sample_rate=44100))
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize pipeline.

        Args:
            config: Analysis thresholds (defaults if None)
        """
        self.config = config or AnalysisConfig()
        self._classifier = RuleBasedClassifier(self.config)

    @property
    def name(self) -> str:
        return "FeatureExtraction"

    def analyze(self, buffer: AudioBuffer) -> FeatureDescriptor:
        """
        Analyze one buffer.

        Raises:
            DecodeError: buffer is empty, non-finite, wrongly shaped, or its
                channel count / sample rate is inconsistent
        """
        start = time.perf_counter()
        signal = self._extract_first_channel(buffer)
        sr = int(buffer.sample_rate)

        rhythm = self._analyze_rhythm(signal, sr)
        spectral = self._analyze_spectrum(signal, sr)

        signal_loudness = loudness(signal)
        signal_rms = rms(signal)
        zcr = zero_crossing_rate(signal)
        waveform = waveform_thumbnail(signal, self.config.waveform_points)

        category = self._classifier.classify(ClassificationFeatures(
            spectral_centroid_hz=spectral.centroid_hz,
            zero_crossing_rate=zcr,
            rms=signal_rms,
        ))

        descriptor = FeatureDescriptor(
            duration_seconds=signal.size / float(sr),
            tempo_bpm=rhythm.tempo_bpm,
            key=spectral.key,
            loudness=signal_loudness,
            rms=signal_rms,
            zero_crossing_rate=zcr,
            spectral_centroid=spectral.centroid_hz,
            category=category,
            waveform=tuple(float(v) for v in waveform),
            sample_rate=sr,
            peak_count=rhythm.peak_count,
        )

        logger.debug("Sample analyzed", data={
            "duration_sec": round(descriptor.duration_seconds, 3),
            "tempo_bpm": descriptor.tempo_bpm,
            "key": descriptor.key.value,
            "category": descriptor.category.value,
            "peaks": rhythm.peak_count,
            "dominant_bins": spectral.dominant_count,
            "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
        })
        return descriptor

    # ============== Stages ==============

    def _extract_first_channel(self, buffer: AudioBuffer) -> np.ndarray:
        """Validate the buffer and return channel 0 as float64."""
        if buffer.sample_rate is None or int(buffer.sample_rate) <= 0:
            raise DecodeError(
                f"Invalid sample rate: {buffer.sample_rate}",
                data={"sample_rate": buffer.sample_rate},
            )
        if buffer.channels is None or int(buffer.channels) < 1:
            raise DecodeError(
                f"Invalid channel count: {buffer.channels}",
                data={"channels": buffer.channels},
            )

        try:
            samples = np.asarray(buffer.samples, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise DecodeError("Samples are not numeric", cause=e) from e

        if samples.ndim == 1:
            if buffer.channels != 1:
                raise DecodeError(
                    "Mono sample array declared with multiple channels",
                    data={"channels": buffer.channels, "shape": samples.shape},
                )
            channel = samples
        elif samples.ndim == 2:
            if samples.shape[0] != buffer.channels:
                raise DecodeError(
                    "Channel count does not match sample layout",
                    data={"channels": buffer.channels, "shape": samples.shape},
                )
            channel = samples[0]
        else:
            raise DecodeError(
                f"Expected 1-D or 2-D samples, got {samples.ndim}-D",
                data={"shape": samples.shape},
            )

        if channel.size == 0:
            raise DecodeError("Audio buffer is empty", data={"shape": samples.shape})
        if not np.all(np.isfinite(channel)):
            raise DecodeError(
                "Audio buffer contains NaN or infinite samples",
                data={"n_bad": int(np.count_nonzero(~np.isfinite(channel)))},
            )

        # Own the data so later caller mutation cannot leak into this call
        return np.array(channel, dtype=np.float64, copy=True)

    def _analyze_rhythm(self, signal: np.ndarray, sr: int) -> RhythmFeatures:
        peaks = find_peaks(signal, self.config.peak_threshold)
        intervals = analyze_intervals(peaks, sr)
        tempo = tempo_from_intervals(intervals)
        if self.config.fold_tempo:
            tempo = fold_tempo(tempo, self.config.min_bpm, self.config.max_bpm)
        return RhythmFeatures(tempo_bpm=tempo, peak_count=int(peaks.size))

    def _analyze_spectrum(self, signal: np.ndarray, sr: int) -> SpectralSummary:
        n_fft = self._fft_size(signal.size)
        magnitudes = transform(signal, n_fft)
        dominant = dominant_frequencies(magnitudes, self.config.dominant_threshold)
        key = estimate_key(dominant, sr, n_fft)
        centroid_hz = bin_to_hz(spectral_centroid(magnitudes), sr, n_fft)
        return SpectralSummary(key=key, centroid_hz=centroid_hz, dominant_count=len(dominant))

    def _fft_size(self, n_samples: int) -> int:
        cap = self.config.max_fft_size
        if cap is not None and n_samples > cap:
            return cap
        return n_samples


def analyze_buffer(buffer: AudioBuffer, config: Optional[AnalysisConfig] = None) -> FeatureDescriptor:
    """Analyze with a fresh pipeline (convenience for one-off calls)."""
    return FeatureExtractionPipeline(config).analyze(buffer)


def summarize(descriptor: FeatureDescriptor) -> Tuple[str, ...]:
    """Human-readable lines for CLI output."""
    return (
        f"duration: {descriptor.duration_seconds:.3f}s",
        f"tempo:    {descriptor.tempo_bpm:.0f} BPM",
        f"key:      {descriptor.key.value}",
        f"category: {descriptor.category.value}",
        f"loudness: {descriptor.loudness:.4f}",
        f"rms:      {descriptor.rms:.4f}",
        f"zcr:      {descriptor.zero_crossing_rate:.4f}",
        f"centroid: {descriptor.spectral_centroid:.1f} Hz",
    )
