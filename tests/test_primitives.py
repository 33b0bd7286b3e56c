"""Unit tests for analysis primitives.

Covers:
    - rhythm: peaks, intervals, tempo, tempo folding
    - spectral: transform, dominant bins, pitch-class lookup, key, centroid
    - energy: loudness, RMS, zero-crossing rate, waveform thumbnail
"""

import numpy as np
import pytest

from sample_manager.common.primitives import (
    DEFAULT_TEMPO_BPM,
    DEFAULT_KEY,
    DominantFrequency,
    Key,
    PITCH_CLASSES,
    analyze_intervals,
    bin_pitch_classes,
    bin_to_hz,
    dominant_frequencies,
    estimate_key,
    find_peaks,
    fold_tempo,
    loudness,
    rms,
    round_half_up,
    spectral_centroid,
    tempo_from_intervals,
    transform,
    waveform_thumbnail,
    zero_crossing_rate,
)
from sample_manager.core.errors import ValidationError


# =============================================================================
# RHYTHM
# =============================================================================

@pytest.mark.unit
class TestFindPeaks:
    """Tests for find_peaks()."""

    def test_strict_local_maxima_above_threshold(self):
        signal = np.array([0.0, 0.9, 0.0, 0.85, 0.9, 0.1])
        assert find_peaks(signal, 0.8).tolist() == [1, 4]

    def test_endpoints_never_qualify(self):
        signal = np.array([0.95, 0.1, 0.95])
        assert find_peaks(signal, 0.8).size == 0

    def test_plateau_is_not_a_peak(self):
        signal = np.array([0.0, 0.9, 0.9, 0.0])
        assert find_peaks(signal, 0.8).size == 0

    def test_below_threshold_ignored(self):
        signal = np.array([0.0, 0.7, 0.0, 0.81, 0.0])
        assert find_peaks(signal, 0.8).tolist() == [3]

    def test_short_signal_has_no_peaks(self):
        assert find_peaks(np.array([1.0, 2.0]), 0.0).size == 0
        assert find_peaks(np.array([]), 0.0).size == 0

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            find_peaks(np.zeros(10), -0.1)

    def test_impulse_train(self, impulse_train_240):
        y, sr = impulse_train_240
        peaks = find_peaks(y, 0.8)
        assert peaks[0] == 100
        assert np.all(np.diff(peaks) == sr // 4)


@pytest.mark.unit
class TestIntervalsAndTempo:
    """Tests for analyze_intervals(), tempo_from_intervals(), fold_tempo()."""

    def test_intervals_in_seconds(self):
        intervals = analyze_intervals(np.array([100, 22150, 44200]), 44100)
        np.testing.assert_allclose(intervals, [0.5, 0.5])

    def test_fewer_than_two_peaks(self):
        assert analyze_intervals(np.array([5]), 44100).size == 0
        assert analyze_intervals(np.array([], dtype=np.int64), 44100).size == 0

    def test_invalid_sample_rate(self):
        with pytest.raises(ValidationError):
            analyze_intervals(np.array([1, 2]), 0)

    @pytest.mark.critical
    def test_empty_intervals_default_tempo(self):
        """No interval means no measurable tempo.

        ЧТО ПРОВЕРЯЕМ:
            tempo_from_intervals([]) returns exactly 120, no division by zero
        """
        assert tempo_from_intervals([]) == 120.0
        assert DEFAULT_TEMPO_BPM == 120.0

    def test_single_half_second_interval(self):
        assert tempo_from_intervals([0.5]) == 120.0

    def test_tempo_values(self):
        assert tempo_from_intervals([0.4]) == 150.0
        assert tempo_from_intervals([0.3, 0.3]) == 200.0
        assert tempo_from_intervals([0.25, 0.25, 0.25]) == 240.0

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValidationError):
            tempo_from_intervals([0.5, 0.0])
        with pytest.raises(ValidationError):
            tempo_from_intervals([-0.5])

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3.0
        assert round_half_up(120.5) == 121.0
        assert round_half_up(120.49) == 120.0

    def test_fold_tempo(self):
        assert fold_tempo(240.0) == 120.0
        assert fold_tempo(30.0) == 60.0
        assert fold_tempo(400.0) == 200.0
        assert fold_tempo(100.0) == 100.0
        assert fold_tempo(0.0) == 0.0

    def test_fold_tempo_range_must_span_an_octave(self):
        with pytest.raises(ValidationError):
            fold_tempo(100.0, 60.0, 100.0)


# =============================================================================
# SPECTRAL
# =============================================================================

@pytest.mark.unit
class TestTransform:
    """Tests for transform()."""

    def test_sine_peak_matches_amplitude(self, sine_440):
        y, sr = sine_440
        m = transform(y)
        assert m.shape == (sr // 2 + 1,)
        assert int(np.argmax(m)) == 440
        assert m[440] == pytest.approx(0.9, abs=1e-3)

    def test_non_power_of_two_length(self):
        assert transform(np.ones(1001)).shape == (501,)

    def test_explicit_n_fft_pads_and_crops(self):
        assert transform(np.ones(1000), n_fft=2048).shape == (1025,)
        assert transform(np.ones(5000), n_fft=1024).shape == (513,)

    def test_invalid_length(self):
        with pytest.raises(ValidationError):
            transform(np.ones(10), n_fft=0)
        with pytest.raises(ValidationError):
            transform(np.array([]))

    def test_deterministic(self, white_noise):
        y, _ = white_noise
        np.testing.assert_array_equal(transform(y), transform(y))


@pytest.mark.unit
class TestDominantAndKey:
    """Tests for dominant_frequencies(), bin_pitch_classes(), estimate_key()."""

    def test_dominant_skips_dc_and_sorts_by_bin(self):
        m = np.array([1.0, 0.2, 0.7, 0.6, 0.1])
        dominant = dominant_frequencies(m, 0.5)
        assert dominant == (DominantFrequency(2, 0.7), DominantFrequency(3, 0.6))

    def test_dominant_negative_threshold(self):
        with pytest.raises(ValidationError):
            dominant_frequencies(np.ones(4), -1.0)

    def test_pitch_class_lookup(self):
        lookup = bin_pitch_classes(1000, 44100, 44100)
        assert lookup[0] == -1
        assert lookup[440] == 9      # A
        assert lookup[262] == 0      # C4 ~ 261.6 Hz
        assert lookup[880] == 9      # A5

    def test_estimate_key_strongest_bin(self):
        dominant = (DominantFrequency(262, 0.6), DominantFrequency(440, 0.9))
        assert estimate_key(dominant, 44100, 44100) is Key.A

    def test_estimate_key_tie_goes_to_lowest_bin(self):
        dominant = (DominantFrequency(262, 0.8), DominantFrequency(440, 0.8))
        assert estimate_key(dominant, 44100, 44100) is Key.C

    def test_estimate_key_default(self):
        assert estimate_key((), 44100, 44100) is DEFAULT_KEY
        assert DEFAULT_KEY is Key.C

    def test_key_enum(self):
        assert len(PITCH_CLASSES) == 12
        assert Key.from_pitch_class(1).value == "C#"
        assert Key.from_pitch_class(13) is Key.C_SHARP


@pytest.mark.unit
class TestCentroid:
    """Tests for spectral_centroid() and bin_to_hz()."""

    def test_centroid_of_zero_spectrum(self):
        assert spectral_centroid(np.zeros(16)) == 0.0
        assert spectral_centroid(np.array([])) == 0.0

    def test_centroid_weighted_mean(self):
        assert spectral_centroid(np.array([0.0, 1.0, 0.0, 1.0])) == pytest.approx(2.0)

    def test_sine_centroid_in_hz(self, sine_440):
        y, sr = sine_440
        centroid_bin = spectral_centroid(transform(y))
        assert bin_to_hz(centroid_bin, sr, y.size) == pytest.approx(440.0, abs=1.0)


# =============================================================================
# ENERGY
# =============================================================================

@pytest.mark.unit
class TestLoudnessRms:
    """Tests for loudness() and rms()."""

    def test_values(self):
        assert loudness(np.array([-1.0, 1.0, -0.5, 0.5])) == pytest.approx(0.75)
        assert rms(np.array([1.0, -1.0])) == pytest.approx(1.0)

    def test_zero_and_empty(self):
        assert rms(np.zeros(100)) == 0.0
        assert loudness(np.zeros(100)) == 0.0
        assert rms(np.array([])) == 0.0
        assert loudness(np.array([])) == 0.0

    @pytest.mark.invariant
    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_bounded_for_unit_range_input(self, seed):
        """Samples in [-1, 1] keep loudness and RMS in [0, 1]."""
        x = np.random.default_rng(seed).uniform(-1.0, 1.0, 4096)
        assert 0.0 <= loudness(x) <= 1.0
        assert 0.0 <= rms(x) <= 1.0


@pytest.mark.unit
class TestZeroCrossingRate:
    """Tests for zero_crossing_rate()."""

    def test_strict_alternation_is_one(self):
        x = np.array([1.0, -1.0] * 50 + [1.0])
        assert zero_crossing_rate(x) == 1.0

    def test_single_sign_rise_and_fall_is_zero(self):
        assert zero_crossing_rate(np.array([0.1, 0.5, 0.9, 0.5, 0.1])) == 0.0

    def test_zero_counts_as_non_negative(self):
        assert zero_crossing_rate(np.array([0.0, -1.0])) == 1.0
        assert zero_crossing_rate(np.array([0.0, 1.0])) == 0.0

    def test_partial(self):
        assert zero_crossing_rate(np.array([-1.0, -2.0, 0.0, 1.0])) == pytest.approx(1 / 3)

    def test_short_signal(self):
        assert zero_crossing_rate(np.array([0.5])) == 0.0
        assert zero_crossing_rate(np.array([])) == 0.0


@pytest.mark.unit
class TestWaveformThumbnail:
    """Tests for waveform_thumbnail()."""

    def test_block_means(self):
        x = np.concatenate([np.full(500, -0.2), np.full(500, 0.6)])
        wf = waveform_thumbnail(x, 10)
        np.testing.assert_allclose(wf, [0.2] * 5 + [0.6] * 5)

    @pytest.mark.critical
    def test_remainder_dropped(self):
        """Trailing n mod points samples never reach a block."""
        x = np.concatenate([np.full(1000, 0.2), np.full(50, 1.0)])
        wf = waveform_thumbnail(x, 100)
        assert wf.shape == (100,)
        np.testing.assert_allclose(wf, 0.2)

    def test_short_signal_uses_nearest_sample(self):
        x = np.linspace(-1.0, 1.0, 37)
        wf = waveform_thumbnail(x, 100)
        assert wf.shape == (100,)
        expected = np.abs(x[(np.arange(100) * 37) // 100])
        np.testing.assert_allclose(wf, expected)

    def test_clipped_to_unit_range(self):
        wf = waveform_thumbnail(np.full(200, -2.0), 10)
        np.testing.assert_allclose(wf, 1.0)

    def test_empty_signal(self):
        np.testing.assert_array_equal(waveform_thumbnail(np.array([]), 8), np.zeros(8))

    def test_invalid_points(self):
        with pytest.raises(ValidationError):
            waveform_thumbnail(np.ones(10), 0)

    @pytest.mark.invariant
    @pytest.mark.parametrize("n,points", [(1, 100), (99, 100), (100, 100), (44100, 100), (12345, 7)])
    def test_length_invariant(self, n, points):
        x = np.random.default_rng(n).uniform(-1.0, 1.0, n)
        wf = waveform_thumbnail(x, points)
        assert wf.shape == (points,)
        assert np.all((wf >= 0.0) & (wf <= 1.0))

    def test_input_not_mutated(self):
        x = np.linspace(-1.0, 1.0, 300)
        original = x.copy()
        waveform_thumbnail(x, 10)
        zero_crossing_rate(x)
        np.testing.assert_array_equal(x, original)
