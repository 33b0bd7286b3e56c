"""
Primitives - pure numpy/scipy building blocks for sample analysis.

- rhythm.py: peak picking, intervals, tempo
- spectral.py: magnitude spectrum, dominant bins, key, centroid
- energy.py: loudness, RMS, zero-crossing rate, waveform thumbnail
"""

from .rhythm import (
    DEFAULT_TEMPO_BPM,
    DEFAULT_PEAK_THRESHOLD,
    find_peaks,
    analyze_intervals,
    tempo_from_intervals,
    fold_tempo,
    round_half_up,
)
from .spectral import (
    Key,
    PITCH_CLASSES,
    DEFAULT_KEY,
    DEFAULT_DOMINANT_THRESHOLD,
    DominantFrequency,
    transform,
    dominant_frequencies,
    bin_to_hz,
    bin_pitch_classes,
    estimate_key,
    spectral_centroid,
)
from .energy import (
    DEFAULT_WAVEFORM_POINTS,
    loudness,
    rms,
    zero_crossing_rate,
    waveform_thumbnail,
)

__all__ = [
    # Rhythm
    'DEFAULT_TEMPO_BPM',
    'DEFAULT_PEAK_THRESHOLD',
    'find_peaks',
    'analyze_intervals',
    'tempo_from_intervals',
    'fold_tempo',
    'round_half_up',
    # Spectral
    'Key',
    'PITCH_CLASSES',
    'DEFAULT_KEY',
    'DEFAULT_DOMINANT_THRESHOLD',
    'DominantFrequency',
    'transform',
    'dominant_frequencies',
    'bin_to_hz',
    'bin_pitch_classes',
    'estimate_key',
    'spectral_centroid',
    # Energy
    'DEFAULT_WAVEFORM_POINTS',
    'loudness',
    'rms',
    'zero_crossing_rate',
    'waveform_thumbnail',
]
