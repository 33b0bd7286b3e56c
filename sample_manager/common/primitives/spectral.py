"""
Spectral Primitives - Magnitude spectrum, dominant bins, key, centroid.

Transform policy:
    transform() computes ONE real FFT over the whole signal (no framing).
    n_fft=None uses the signal length as-is, so non-power-of-two inputs
    are supported. An explicit n_fft crops longer signals to their first
    n_fft samples and zero-pads shorter ones. Magnitudes are scaled by
    2 / n_fft so a sinusoid of amplitude A produces a peak of about A,
    which keeps amplitude thresholds independent of signal length.
"""

import numpy as np
import scipy.fft
from enum import Enum
from typing import NamedTuple, Optional, Sequence, Tuple

from sample_manager.core.errors import ValidationError


DEFAULT_DOMINANT_THRESHOLD = 0.5

# Pitch reference for the bin -> semitone lookup
A4_HZ = 440.0
A4_MIDI = 69


class Key(str, Enum):
    """Twelve pitch classes, C = 0."""
    C = "C"
    C_SHARP = "C#"
    D = "D"
    D_SHARP = "D#"
    E = "E"
    F = "F"
    F_SHARP = "F#"
    G = "G"
    G_SHARP = "G#"
    A = "A"
    A_SHARP = "A#"
    B = "B"

    @classmethod
    def from_pitch_class(cls, pitch_class: int) -> 'Key':
        return PITCH_CLASSES[int(pitch_class) % 12]


PITCH_CLASSES: Tuple[Key, ...] = tuple(Key)

# Key reported when no bin exceeds the dominance threshold
DEFAULT_KEY = Key.C


class DominantFrequency(NamedTuple):
    """A spectrum bin whose magnitude exceeded the dominance threshold."""
    bin: int
    magnitude: float


def transform(signal: np.ndarray, n_fft: Optional[int] = None) -> np.ndarray:
    """
    One-sided magnitude spectrum of the whole signal.

    Args:
        signal: Mono signal
        n_fft: Transform length (None = len(signal))

    Returns:
        Magnitudes, length n_fft // 2 + 1
    """
    y = np.ascontiguousarray(signal, dtype=np.float64)
    n = y.size if n_fft is None else int(n_fft)
    if n < 1:
        raise ValidationError(
            f"Transform length must be positive, got {n}",
            data={"n_fft": n},
        )

    spectrum = scipy.fft.rfft(y, n=n)
    return np.abs(spectrum) * (2.0 / n)


def dominant_frequencies(
    magnitudes: np.ndarray,
    threshold: float = DEFAULT_DOMINANT_THRESHOLD,
) -> Tuple[DominantFrequency, ...]:
    """
    Bins whose magnitude exceeds the threshold.

    The DC bin (0) is skipped: it carries offset, not pitch.

    Args:
        magnitudes: Output of transform()
        threshold: Minimum magnitude, must be >= 0

    Returns:
        DominantFrequency tuples ordered by ascending bin
    """
    if threshold < 0:
        raise ValidationError(
            f"Dominant frequency threshold must be non-negative, got {threshold}",
            data={"threshold": threshold},
        )

    m = np.asarray(magnitudes, dtype=np.float64)
    if m.size < 2:
        return ()

    bins = np.flatnonzero(m[1:] > threshold) + 1
    return tuple(DominantFrequency(int(b), float(m[b])) for b in bins)


def bin_to_hz(bin_index: float, sample_rate: int, n_fft: int) -> float:
    """Center frequency of an FFT bin in Hz."""
    return float(bin_index) * sample_rate / n_fft


def bin_pitch_classes(n_bins: int, sample_rate: int, n_fft: int) -> np.ndarray:
    """
    Fixed bin -> pitch class lookup for a transform geometry.

    Each bin's center frequency is mapped to the nearest equal-tempered
    semitone (A4 = 440 Hz) and reduced modulo 12 with C = 0.

    Returns:
        int array of length n_bins; the DC bin maps to -1
    """
    if sample_rate <= 0 or n_fft <= 0:
        raise ValidationError(
            "Sample rate and transform length must be positive",
            data={"sample_rate": sample_rate, "n_fft": n_fft},
        )

    lookup = np.full(n_bins, -1, dtype=np.int64)
    if n_bins <= 1:
        return lookup

    freqs = np.arange(1, n_bins, dtype=np.float64) * sample_rate / n_fft
    midi = A4_MIDI + 12.0 * np.log2(freqs / A4_HZ)
    lookup[1:] = np.mod(np.floor(midi + 0.5).astype(np.int64), 12)
    return lookup


def estimate_key(
    dominant: Sequence[DominantFrequency],
    sample_rate: int,
    n_fft: int,
) -> Key:
    """
    Map the strongest dominant bin to a pitch class.

    Ties on magnitude resolve to the lowest bin. With no dominant bins
    DEFAULT_KEY is returned.

    Args:
        dominant: Output of dominant_frequencies()
        sample_rate: Sample rate of the analysed signal
        n_fft: Transform length used to produce the bins

    Returns:
        Key
    """
    if not dominant:
        return DEFAULT_KEY

    strongest = min(dominant, key=lambda d: (-d.magnitude, d.bin))
    lookup = bin_pitch_classes(strongest.bin + 1, sample_rate, n_fft)
    pitch_class = lookup[strongest.bin]
    if pitch_class < 0:
        return DEFAULT_KEY
    return Key.from_pitch_class(pitch_class)


def spectral_centroid(magnitudes: np.ndarray) -> float:
    """
    Magnitude-weighted mean bin index: sum(i * m[i]) / sum(m[i]).

    Returns 0.0 for an all-zero (or empty) spectrum.
    """
    m = np.asarray(magnitudes, dtype=np.float64)
    total = float(np.sum(m))
    if total <= 0.0:
        return 0.0
    return float(np.dot(np.arange(m.size, dtype=np.float64), m) / total)
