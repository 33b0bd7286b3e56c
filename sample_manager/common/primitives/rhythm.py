"""
Rhythm Primitives - Peak picking, inter-peak intervals, tempo.

All functions are pure mathematical operations on numpy arrays.
Vectorized: no Python loops over samples.
"""

import numpy as np
from typing import Sequence, Union

from sample_manager.core.errors import ValidationError


# Tempo reported when fewer than two peaks are found (no interval to measure)
DEFAULT_TEMPO_BPM = 120.0

DEFAULT_PEAK_THRESHOLD = 0.8

ArrayLike = Union[np.ndarray, Sequence[float]]


def find_peaks(signal: ArrayLike, threshold: float = DEFAULT_PEAK_THRESHOLD) -> np.ndarray:
    """
    Find strict local maxima above a threshold.

    Index i (1 <= i < n-1) is a peak iff signal[i] > threshold and
    signal[i] is greater than both neighbours. The first and last samples
    never qualify.

    Args:
        signal: Mono signal, normalized to roughly [-1, 1]
        threshold: Minimum amplitude (same unit as signal), must be >= 0

    Returns:
        Ascending peak indices (int64)
    """
    if threshold < 0:
        raise ValidationError(
            f"Peak threshold must be non-negative, got {threshold}",
            data={"threshold": threshold},
        )

    x = np.asarray(signal, dtype=np.float64)
    if x.size < 3:
        return np.empty(0, dtype=np.int64)

    center = x[1:-1]
    mask = (center > threshold) & (center > x[:-2]) & (center > x[2:])
    return np.flatnonzero(mask).astype(np.int64) + 1


def analyze_intervals(peaks: ArrayLike, sample_rate: int) -> np.ndarray:
    """
    Convert consecutive peak positions to intervals in seconds.

    Args:
        peaks: Ascending sample indices
        sample_rate: Sample rate in Hz

    Returns:
        Array of len(peaks) - 1 intervals, empty if fewer than 2 peaks
    """
    if sample_rate <= 0:
        raise ValidationError(
            f"Sample rate must be positive, got {sample_rate}",
            data={"sample_rate": sample_rate},
        )

    p = np.asarray(peaks, dtype=np.float64)
    if p.size < 2:
        return np.empty(0, dtype=np.float64)
    return np.diff(p) / float(sample_rate)


def round_half_up(value: float) -> float:
    """Round to nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return float(np.floor(value + 0.5))


def tempo_from_intervals(intervals: ArrayLike) -> float:
    """
    Estimate tempo from inter-peak intervals.

    BPM = round(60 / mean(intervals)).

    An empty sequence has no defined mean; DEFAULT_TEMPO_BPM (120) is
    returned instead of dividing by zero.

    Args:
        intervals: Intervals in seconds, all > 0

    Returns:
        Integer-valued tempo in BPM
    """
    iv = np.asarray(intervals, dtype=np.float64)
    if iv.size == 0:
        return DEFAULT_TEMPO_BPM

    if np.any(~np.isfinite(iv)) or np.any(iv <= 0):
        raise ValidationError(
            "Intervals must be finite and positive",
            data={"min_interval": float(np.nanmin(iv))},
        )

    return round_half_up(60.0 / float(np.mean(iv)))


def fold_tempo(bpm: float, min_bpm: float = 60.0, max_bpm: float = 200.0) -> float:
    """
    Fold a tempo into [min_bpm, max_bpm] by octave doubling/halving.

    Peak spacing often lands on half or double time; folding keeps the
    reported tempo in a musically plausible range.

    Args:
        bpm: Tempo estimate
        min_bpm: Lower bound (> 0)
        max_bpm: Upper bound (>= 2 * min_bpm so every tempo has a fold)

    Returns:
        Folded, integer-valued tempo (0 stays 0)
    """
    if min_bpm <= 0 or max_bpm < 2 * min_bpm:
        raise ValidationError(
            "Tempo range must satisfy 0 < min_bpm and max_bpm >= 2 * min_bpm",
            data={"min_bpm": min_bpm, "max_bpm": max_bpm},
        )
    if bpm <= 0:
        return 0.0

    folded = float(bpm)
    while folded < min_bpm:
        folded *= 2.0
    while folded > max_bpm:
        folded /= 2.0
    return round_half_up(folded)
