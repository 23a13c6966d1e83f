"""
Event Synthesis Module

Adaptive thresholding, haptic type classification, and emission of
HapticEvent records from smoothed output-rate feature series.

The synthesizer is stateless across frames: the only values shared between
frames are the normalization peak of the sharpness series and the
calibrated threshold, both computed before the frame loop.
"""

import numpy as np
from typing import Dict, List, Optional

from haptick.aggregation import normalize_to_peak
from haptick.errors import EmptySeries
from haptick.models import FeatureSeries, HapticEvent, HapticType
from haptick.timebase import frame_index_to_time


DEFAULT_CLASSIFICATION_THRESHOLDS: Dict[str, float] = {
    'heavy_rms': 0.7,
    'heavy_secondary': 0.6,
    'medium_rms': 0.4,
    'medium_secondary': 0.5,
    'light_rms': 0.2,
}

# Secondary feature name -> (series name, normalize to peak)
_SECONDARY_SOURCES = {
    'centroid': ('spectral_centroid', True),
    'rolloff': ('spectral_rolloff', False),
    'bandwidth': ('spectral_bandwidth', True),
}

_SHARPNESS_SOURCES = {
    'centroid': 'spectral_centroid',
    'dominant_frequency': 'dominant_frequency',
}


# =============================================================================
# THRESHOLD CALIBRATION
# =============================================================================

def compute_intensity_threshold(series: np.ndarray, k: float = 0.5) -> float:
    """
    Adaptive gate: mean(series) + k * std(series).

    Uses the population standard deviation (divide by N).

    Raises:
        EmptySeries: If series is empty
    """
    values = np.asarray(series, dtype=np.float64)
    if len(values) == 0:
        raise EmptySeries("Cannot calibrate a threshold on an empty series")

    mean = float(np.mean(values))
    std = float(np.sqrt(np.mean((values - mean) ** 2)))
    return mean + k * std


def compute_intensity(rms: np.ndarray, gain: float = 2.0) -> np.ndarray:
    """Intensity per frame: clamp(rms * gain, 0, 1)."""
    return np.clip(np.asarray(rms, dtype=np.float64) * gain, 0.0, 1.0)


def calibrate_threshold(
    rms: np.ndarray,
    k: float = 0.5,
    basis: str = 'rms',
    intensity_gain: float = 2.0
) -> float:
    """
    Compute the emission threshold on the chosen basis.

    Parameters:
        rms: Smoothed RMS at the output rate
        k: Standard deviation multiplier
        basis: 'rms' computes the threshold over smoothed RMS (intensity is
            then compared against an RMS-scale value); 'intensity' computes it
            over the clamped intensity series
        intensity_gain: Gain used when basis == 'intensity'

    Returns:
        Threshold value

    Raises:
        ValueError: If basis is unknown
    """
    if basis == 'rms':
        return compute_intensity_threshold(rms, k)
    elif basis == 'intensity':
        return compute_intensity_threshold(compute_intensity(rms, intensity_gain), k)
    else:
        raise ValueError(f"Unknown threshold basis: {basis}")


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_haptic_type(
    rms: float,
    secondary: float,
    thresholds: Optional[Dict[str, float]] = None,
    medium_secondary: Optional[float] = None
) -> HapticType:
    """
    Priority cascade, first match wins, all comparisons strict:

    1. rms > heavy_rms and secondary > heavy_secondary   -> heavy
    2. rms > medium_rms and secondary > medium_secondary -> medium
    3. rms > light_rms                                   -> light
    4. otherwise                                         -> soft

    Rung 2 reads medium_secondary instead of secondary when one is given,
    so the two rungs can judge different spectral features.
    """
    if thresholds is None:
        thresholds = DEFAULT_CLASSIFICATION_THRESHOLDS
    if medium_secondary is None:
        medium_secondary = secondary

    if rms > thresholds['heavy_rms'] and secondary > thresholds['heavy_secondary']:
        return HapticType.HEAVY
    elif rms > thresholds['medium_rms'] and medium_secondary > thresholds['medium_secondary']:
        return HapticType.MEDIUM
    elif rms > thresholds['light_rms']:
        return HapticType.LIGHT
    else:
        return HapticType.SOFT


def select_secondary_feature(features: FeatureSeries, name: str = 'centroid') -> np.ndarray:
    """
    Secondary classification feature on a [0, 1] scale.

    'centroid' and 'bandwidth' are normalized to their own peak; 'rolloff'
    is already a bin fraction.
    """
    if name not in _SECONDARY_SOURCES:
        raise ValueError(f"Unknown secondary feature: {name}")
    series_name, normalize = _SECONDARY_SOURCES[name]
    values = features[series_name]
    if normalize:
        return normalize_to_peak(values)
    return np.clip(values, 0.0, 1.0)


def select_sharpness(features: FeatureSeries, name: str = 'centroid') -> np.ndarray:
    """Sharpness per frame: chosen frequency feature over its own peak, clamped to [0, 1]."""
    if name not in _SHARPNESS_SOURCES:
        raise ValueError(f"Unknown sharpness feature: {name}")
    return normalize_to_peak(features[_SHARPNESS_SOURCES[name]])


# =============================================================================
# EVENT SYNTHESIS
# =============================================================================

def synthesize_events(
    rms: np.ndarray,
    sharpness: np.ndarray,
    secondary: np.ndarray,
    threshold: float,
    fps: int = 60,
    intensity_gain: float = 2.0,
    intensity_floor: float = 0.0,
    decimate: bool = False,
    thresholds: Optional[Dict[str, float]] = None,
    medium_secondary: Optional[np.ndarray] = None
) -> List[HapticEvent]:
    """
    Walk output frames and emit classified events.

    CONTRACT:
    - Inputs share one length (the output frame count)
    - time[i] = i / fps
    - intensity[i] = clamp(rms[i] * intensity_gain, 0, 1)
    - Emitted iff intensity > threshold and intensity > intensity_floor
      (and i is even, when decimate is set)
    - Output is ordered by time

    Parameters:
        rms: Smoothed RMS per output frame
        sharpness: Sharpness per output frame, in [0, 1]
        secondary: Secondary classification feature per output frame
        threshold: Calibrated emission threshold
        fps: Output event rate
        intensity_gain: RMS -> intensity multiplier
        intensity_floor: Fixed minimum intensity
        decimate: Keep only even-indexed frames
        thresholds: Classification cut points (None = defaults)
        medium_secondary: Feature for the medium rung (None = secondary)

    Returns:
        List of HapticEvent
    """
    rms = np.asarray(rms, dtype=np.float64)
    if medium_secondary is None:
        medium_secondary = secondary
    if not (len(rms) == len(sharpness) == len(secondary) == len(medium_secondary)):
        raise ValueError(
            f"Series lengths differ: rms={len(rms)}, sharpness={len(sharpness)}, "
            f"secondary={len(secondary)}, medium_secondary={len(medium_secondary)}"
        )

    intensity = compute_intensity(rms, intensity_gain)
    sharpness = np.clip(np.asarray(sharpness, dtype=np.float64), 0.0, 1.0)

    events = []
    for i in range(len(rms)):
        if decimate and i % 2 != 0:
            continue
        if not (intensity[i] > threshold and intensity[i] > intensity_floor):
            continue

        events.append(HapticEvent(
            time=frame_index_to_time(i, fps),
            intensity=float(intensity[i]),
            sharpness=float(sharpness[i]),
            type=classify_haptic_type(
                float(rms[i]), float(secondary[i]), thresholds,
                medium_secondary=float(medium_secondary[i])
            ),
        ))

    return events


def count_events_by_type(events: List[HapticEvent]) -> Dict[str, int]:
    """Number of events per haptic type (every type present, zero if unused)."""
    counts = {haptic_type.value: 0 for haptic_type in HapticType}
    for event in events:
        counts[event.type.value] += 1
    return counts
