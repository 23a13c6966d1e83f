"""
Aggregation Module Tests

Tests for resampling analysis-frame series to the output rate, and for the
boundary-shrinking moving average.
"""

import pytest
import numpy as np

from haptick import aggregation
from haptick.errors import EmptySeries
from haptick.models import FeatureSeries


class TestResampleSeries:
    """Tests for resample_series."""

    def test_endpoints_exact(self):
        rng = np.random.default_rng(1)
        source = rng.uniform(0, 1, 86)
        for target in [2, 7, 60, 86, 200]:
            result = aggregation.resample_series(source, target)
            assert len(result) == target
            assert result[0] == source[0]
            assert result[-1] == source[-1]

    def test_identity_when_lengths_match(self):
        source = np.array([0.3, 0.1, 0.9, 0.4, 0.7])
        np.testing.assert_array_equal(aggregation.resample_series(source, 5), source)

    def test_linear_interpolation(self):
        """Upsampling a ramp keeps it a ramp."""
        source = np.array([0.0, 1.0, 2.0])
        result = aggregation.resample_series(source, 5)
        np.testing.assert_allclose(result, [0.0, 0.5, 1.0, 1.5, 2.0])

    def test_downsample_positions(self):
        """Output i samples source position i * (S - 1) / (T - 1)."""
        source = np.arange(10, dtype=np.float64) ** 2
        result = aggregation.resample_series(source, 4)
        positions = np.arange(4) * 9 / 3
        np.testing.assert_allclose(result, np.interp(positions, np.arange(10), source))

    def test_single_output_is_first_sample(self):
        result = aggregation.resample_series(np.array([4.0, 5.0, 6.0]), 1)
        np.testing.assert_array_equal(result, [4.0])

    def test_single_source_sample_broadcasts(self):
        result = aggregation.resample_series(np.array([0.25]), 6)
        np.testing.assert_array_equal(result, np.full(6, 0.25))

    def test_empty_source_raises(self):
        with pytest.raises(EmptySeries):
            aggregation.resample_series(np.array([]), 10)

    def test_zero_target_raises(self):
        with pytest.raises(EmptySeries):
            aggregation.resample_series(np.array([1.0, 2.0]), 0)


class TestSmoothSeries:
    """Tests for smooth_series."""

    def test_boundary_windows_shrink(self):
        result = aggregation.smooth_series(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), window=3)
        np.testing.assert_allclose(result, [1.5, 2.0, 3.0, 4.0, 4.5])

    def test_constant_series_unchanged(self):
        series = np.full(40, 0.42)
        np.testing.assert_allclose(aggregation.smooth_series(series, 11), series)

    def test_spike_spreads_over_window(self):
        series = np.zeros(30)
        series[15] = 11.0
        result = aggregation.smooth_series(series, 11)

        np.testing.assert_allclose(result[10:21], 1.0)
        assert np.all(result[:10] == 0)
        assert np.all(result[21:] == 0)

    def test_single_pass(self):
        """Smoothing is applied once; applying it again changes the values."""
        series = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        once = aggregation.smooth_series(series, 3)
        twice = aggregation.smooth_series(once, 3)

        assert not np.allclose(once, twice)
        assert twice[0] == pytest.approx(1.75)

    def test_window_larger_than_series(self):
        series = np.array([1.0, 2.0, 3.0])
        result = aggregation.smooth_series(series, 11)
        np.testing.assert_allclose(result, 2.0)

    def test_window_one_is_identity(self):
        series = np.array([3.0, 1.0, 2.0])
        np.testing.assert_array_equal(aggregation.smooth_series(series, 1), series)

    def test_length_preserved(self):
        for n in [1, 2, 11, 60]:
            assert len(aggregation.smooth_series(np.ones(n), 11)) == n


class TestFeatureHelpers:

    def test_resample_features_all_series(self):
        features = FeatureSeries({'rms': np.linspace(0, 1, 86), 'spectral_rolloff': np.ones(86)})
        result = aggregation.resample_features(features, 60)

        assert result.frame_count == 60
        assert set(result.names) == {'rms', 'spectral_rolloff'}

    def test_resample_features_empty_raises(self):
        with pytest.raises(EmptySeries):
            aggregation.resample_features(FeatureSeries({'rms': np.array([])}), 10)

    def test_smooth_features_selected_names(self):
        spike = np.zeros(9)
        spike[4] = 9.0
        features = FeatureSeries({'rms': spike, 'spectral_centroid': spike})
        result = aggregation.smooth_features(features, window=3, names=['rms'])

        assert result['rms'][4] == pytest.approx(3.0)
        np.testing.assert_array_equal(result['spectral_centroid'], spike)

    def test_normalize_to_peak(self):
        np.testing.assert_allclose(aggregation.normalize_to_peak(np.array([1.0, 2.0, 4.0])),
                                   [0.25, 0.5, 1.0])

    def test_normalize_zero_peak(self):
        np.testing.assert_array_equal(aggregation.normalize_to_peak(np.zeros(5)), np.zeros(5))
