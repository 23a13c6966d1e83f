"""
Aggregation Module

Convert analysis-frame feature series to the output event rate.
Handles temporal resampling (linear interpolation) and smoothing.
"""

import numpy as np
from typing import Optional

from haptick.errors import EmptySeries
from haptick.models import FeatureSeries


def resample_series(series: np.ndarray, target_length: int) -> np.ndarray:
    """
    Linearly interpolate a sequence to a new length.

    CONTRACT:
    - Input: series (length S >= 1), target_length (T >= 1)
    - Output: (T,) float64 array
    - Source position of output i: i * (S - 1) / (T - 1); T == 1 maps to 0
    - result[0] == series[0] and result[T - 1] == series[S - 1] exactly
    - T == S returns the input values unchanged

    Parameters:
        series: 1D source sequence
        target_length: Number of output samples

    Returns:
        Resampled sequence

    Raises:
        EmptySeries: If series is empty or target_length < 1
    """
    source = np.asarray(series, dtype=np.float64)
    n_source = len(source)

    if n_source == 0:
        raise EmptySeries("Cannot resample an empty series")
    if target_length < 1:
        raise EmptySeries(f"Target length must be at least 1, got {target_length}")

    if target_length == 1:
        return source[:1].copy()

    # Integer product before the division keeps both endpoints exact
    positions = (np.arange(target_length, dtype=np.float64) * (n_source - 1)) / (target_length - 1)
    lower = positions.astype(np.int64)
    frac = positions - lower

    upper = np.minimum(lower + 1, n_source - 1)
    result = source[lower] * (1.0 - frac) + source[upper] * frac

    # Positions landing on the last sample have no right neighbour
    at_end = lower + 1 >= n_source
    result[at_end] = source[lower[at_end]]

    return result


def smooth_series(series: np.ndarray, window: int = 11) -> np.ndarray:
    """
    Centered moving average with a window that shrinks at the boundaries.

    CONTRACT:
    - Input: series (1D), window (positive odd integer)
    - Output: same length as input, float64
    - out[i] = mean(series[max(0, i - W//2) : min(S - 1, i + W//2) + 1])
    - No wraparound, no padding: edge outputs average fewer samples
    - Single pass; smoothing twice gives a different result

    Parameters:
        series: 1D array to smooth
        window: Window size in samples

    Returns:
        Smoothed series
    """
    values = np.asarray(series, dtype=np.float64)
    n = len(values)
    if n == 0 or window <= 1:
        return values.copy()

    half = window // 2
    smoothed = np.zeros(n, dtype=np.float64)

    for i in range(n):
        start = max(0, i - half)
        end = min(n - 1, i + half)
        smoothed[i] = np.mean(values[start:end + 1])

    return smoothed


def resample_features(features: FeatureSeries, target_length: int) -> FeatureSeries:
    """
    Resample every sequence in a FeatureSeries to target_length.

    Raises:
        EmptySeries: If the series has no frames or target_length < 1
    """
    if features.frame_count == 0:
        raise EmptySeries("Feature series has no frames")
    return FeatureSeries({
        name: resample_series(features[name], target_length) for name in features
    })


def smooth_features(features: FeatureSeries, window: int = 11, names: Optional[list] = None) -> FeatureSeries:
    """
    Smooth sequences in a FeatureSeries.

    Parameters:
        features: Input series
        window: Moving-average window
        names: Sequences to smooth (None = all); others are passed through

    Returns:
        New FeatureSeries
    """
    if names is None:
        names = features.names
    return FeatureSeries({
        name: smooth_series(features[name], window) if name in names else features[name]
        for name in features
    })


def normalize_to_peak(series: np.ndarray) -> np.ndarray:
    """
    Scale a non-negative series by its own maximum and clamp into [0, 1].

    A series whose peak is 0 (or empty) maps to all zeros.
    """
    values = np.asarray(series, dtype=np.float64)
    if len(values) == 0:
        return values.copy()
    peak = float(np.max(values))
    if peak <= 0:
        return np.zeros_like(values)
    return np.clip(values / peak, 0.0, 1.0)
