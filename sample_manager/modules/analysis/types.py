"""
Analysis types - input buffers and descriptor records.

AudioBuffer is what decoders hand to the pipeline; FeatureDescriptor is
what the pipeline hands back. Both are immutable.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from sample_manager.common.primitives import Key


class Category(str, Enum):
    """Coarse timbral category of a sample."""
    DRUMS = "drums"
    BASS = "bass"
    SYNTH = "synth"
    INSTRUMENT = "instrument"
    OTHER = "other"


@dataclass(frozen=True, eq=False)
class AudioBuffer:
    """
    Decoded audio handed to the pipeline.

    Attributes:
        samples: float samples, 1-D for mono or (channels, n_samples)
        sample_rate: Sample rate in Hz
        channels: Declared channel count; must match the sample layout
    """
    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    @classmethod
    def from_channels(cls, channels: Sequence[Sequence[float]], sample_rate: int) -> 'AudioBuffer':
        """Build a buffer from per-channel sample lists of equal length."""
        data = np.asarray(channels, dtype=np.float32)
        if data.ndim == 1:
            data = data[np.newaxis, :]
        return cls(samples=data, sample_rate=sample_rate, channels=int(data.shape[0]))

    @property
    def n_samples(self) -> int:
        """Samples per channel."""
        return int(self.samples.shape[-1]) if self.samples.ndim > 0 else 0

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.n_samples / float(self.sample_rate)


@dataclass(frozen=True)
class FeatureDescriptor:
    """
    Descriptor produced by FeatureExtractionPipeline.analyze().

    Attributes:
        duration_seconds: Length of the analysed channel
        tempo_bpm: Integer-valued tempo (120.0 when fewer than two peaks)
        key: Pitch class of the strongest spectral peak
        loudness: Mean absolute amplitude
        rms: Root-mean-square amplitude
        zero_crossing_rate: Sign-change fraction in [0, 1]
        spectral_centroid: Spectral centroid in Hz
        category: Rule-based timbral category
        waveform: Fixed-length envelope, each value in [0, 1]
        sample_rate: Sample rate of the input
        peak_count: Number of amplitude peaks used for tempo
    """
    duration_seconds: float
    tempo_bpm: float
    key: Key
    loudness: float
    rms: float
    zero_crossing_rate: float
    spectral_centroid: float
    category: Category
    waveform: Tuple[float, ...] = field(default_factory=tuple)
    sample_rate: int = 0
    peak_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'duration_seconds': float(self.duration_seconds),
            'tempo_bpm': float(self.tempo_bpm),
            'key': self.key.value,
            'loudness': float(self.loudness),
            'rms': float(self.rms),
            'zero_crossing_rate': float(self.zero_crossing_rate),
            'spectral_centroid': float(self.spectral_centroid),
            'category': self.category.value,
            'waveform': [float(v) for v in self.waveform],
            'sample_rate': int(self.sample_rate),
            'peak_count': int(self.peak_count),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'FeatureDescriptor':
        return cls(
            duration_seconds=d['duration_seconds'],
            tempo_bpm=d['tempo_bpm'],
            key=Key(d['key']),
            loudness=d['loudness'],
            rms=d['rms'],
            zero_crossing_rate=d['zero_crossing_rate'],
            spectral_centroid=d['spectral_centroid'],
            category=Category(d['category']),
            waveform=tuple(d.get('waveform', ())),
            sample_rate=d.get('sample_rate', 0),
            peak_count=d.get('peak_count', 0),
        )
