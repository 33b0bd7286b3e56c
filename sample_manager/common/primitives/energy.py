"""
Energy Primitives - Loudness, RMS, zero-crossing rate, waveform thumbnail.

Block-wise aggregation over a mono signal. All functions are pure
numpy operations and never mutate their input.
"""

import numpy as np

from sample_manager.core.errors import ValidationError


DEFAULT_WAVEFORM_POINTS = 100


def loudness(signal: np.ndarray) -> float:
    """Mean absolute amplitude. 0.0 for an empty signal."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.mean(np.abs(x)))


def rms(signal: np.ndarray) -> float:
    """Root-mean-square amplitude. 0.0 for an empty signal."""
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


def zero_crossing_rate(signal: np.ndarray) -> float:
    """
    Fraction of adjacent sample pairs whose sign differs.

    Zero counts as non-negative. The denominator is len(signal) - 1,
    so a strictly alternating signal scores exactly 1.0. Signals shorter
    than two samples have no pairs and score 0.0.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 2:
        return 0.0
    negative = x < 0
    crossings = np.count_nonzero(negative[1:] != negative[:-1])
    return crossings / (x.size - 1)


def waveform_thumbnail(signal: np.ndarray, points: int = DEFAULT_WAVEFORM_POINTS) -> np.ndarray:
    """
    Fixed-length visual envelope of a signal.

    The signal is cut into `points` contiguous blocks of floor(n / points)
    samples; each value is the block's mean absolute amplitude. The
    n mod points trailing samples are dropped. Signals shorter than
    `points` cannot fill a block, so each point then takes the absolute
    value of sample floor(i * n / points) instead.

    Args:
        signal: Mono signal
        points: Output length (>= 1)

    Returns:
        float64 array of exactly `points` values clipped to [0, 1]
    """
    if points < 1:
        raise ValidationError(
            f"Waveform resolution must be >= 1, got {points}",
            data={"points": points},
        )

    x = np.abs(np.asarray(signal, dtype=np.float64))
    n = x.size
    if n == 0:
        return np.zeros(points, dtype=np.float64)

    block_size = n // points
    if block_size == 0:
        idx = (np.arange(points) * n) // points
        values = x[idx]
    else:
        blocks = x[:block_size * points].reshape(points, block_size)
        values = blocks.mean(axis=1)

    return np.clip(values, 0.0, 1.0)
