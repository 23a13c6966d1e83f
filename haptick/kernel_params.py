"""
Kernel Parameters Module - All Tunable Constants

These parameters control pipeline behavior. Every constant that earlier
analyzer variants disagreed on is an explicit field here rather than a
hard-coded reading.

USAGE:
    from haptick.kernel_params import HapticConfig, DEFAULT_CONFIG

    # Use default config
    cfg = DEFAULT_CONFIG

    # Create custom config
    custom = HapticConfig(
        frame=FrameParams(frame_length=2048),
        events=EventParams(fps=30, decimate=True)
    )

    # Or from the flat option names
    custom = HapticConfig.from_options(fps=30, frame_length=2048, decimate=True)
"""

from dataclasses import dataclass, field, fields, replace
from typing import Dict, Optional, Tuple

from haptick.kernel import check_frame_length

THRESHOLD_BASES = ('rms', 'intensity')
SECONDARY_FEATURES = ('centroid', 'rolloff', 'bandwidth')
SHARPNESS_FEATURES = ('centroid', 'dominant_frequency')


@dataclass(frozen=True)
class FrameParams:
    """
    Frame-level analysis parameters.

    Attributes:
        frame_length: Samples per FFT frame, power of two (default 512 = ~23ms at 22050 Hz).
            Frames are consecutive; hop length equals frame length.
    """
    frame_length: int = 512


@dataclass(frozen=True)
class SpectralParams:
    """
    Spectral analysis parameters.

    Attributes:
        rolloff_threshold: Fraction of energy below the rolloff bin (default 0.85 = 85%)
        n_workers: FFT worker threads (default 1, -1 = all cores)
    """
    rolloff_threshold: float = 0.85
    n_workers: int = 1


@dataclass(frozen=True)
class SmoothingParams:
    """
    Attributes:
        window_size: Centered moving-average window in output frames (default 11, odd)
    """
    window_size: int = 11


@dataclass(frozen=True)
class ThresholdParams:
    """
    Adaptive gate parameters.

    Attributes:
        k: Standard deviation multiplier in mean + k * std (default 0.5)
        basis: Series the threshold is computed over, 'rms' or 'intensity' (default 'rms')
        intensity_floor: Fixed minimum intensity for emission (default 0.0 = disabled)
    """
    k: float = 0.5
    basis: str = 'rms'
    intensity_floor: float = 0.0


@dataclass(frozen=True)
class ClassificationParams:
    """
    Haptic type cascade parameters. All comparisons are strict greater-than.

    Attributes:
        heavy_rms: RMS cut for heavy (default 0.7)
        heavy_secondary: Secondary feature cut for heavy (default 0.6)
        medium_rms: RMS cut for medium (default 0.4)
        medium_secondary: Secondary feature cut for medium (default 0.5)
        light_rms: RMS cut for light (default 0.2)
        secondary_feature: 'centroid' (peak-normalized), 'rolloff', or
            'bandwidth' (peak-normalized) (default 'centroid')
        heavy_secondary_feature: Feature for the heavy rung only
            (default None = secondary_feature)
        medium_secondary_feature: Feature for the medium rung only
            (default None = secondary_feature). The shipped analyzer judged
            heavy on bandwidth and medium on rolloff.
    """
    heavy_rms: float = 0.7
    heavy_secondary: float = 0.6
    medium_rms: float = 0.4
    medium_secondary: float = 0.5
    light_rms: float = 0.2
    secondary_feature: str = 'centroid'
    heavy_secondary_feature: Optional[str] = None
    medium_secondary_feature: Optional[str] = None

    def rung_features(self) -> Tuple[str, str]:
        """(heavy rung feature, medium rung feature) with fallbacks resolved."""
        return (
            self.heavy_secondary_feature or self.secondary_feature,
            self.medium_secondary_feature or self.secondary_feature,
        )

    def get_thresholds(self) -> Dict[str, float]:
        """Get cut points as dictionary for kernel functions."""
        return {
            'heavy_rms': self.heavy_rms,
            'heavy_secondary': self.heavy_secondary,
            'medium_rms': self.medium_rms,
            'medium_secondary': self.medium_secondary,
            'light_rms': self.light_rms,
        }


@dataclass(frozen=True)
class EventParams:
    """
    Event synthesis parameters.

    Attributes:
        fps: Output event rate (default 60)
        intensity_gain: Multiplier from smoothed RMS to intensity (default 2.0)
        sharpness_feature: 'centroid' or 'dominant_frequency' (default 'centroid')
        decimate: Keep only even output frames (default False)
    """
    fps: int = 60
    intensity_gain: float = 2.0
    sharpness_feature: str = 'centroid'
    decimate: bool = False


# Flat option name -> (group attribute, field name)
_OPTION_MAP: Dict[str, tuple] = {
    'fps': ('events', 'fps'),
    'frameLength': ('frame', 'frame_length'),
    'frame_length': ('frame', 'frame_length'),
    'windowSize': ('smoothing', 'window_size'),
    'window_size': ('smoothing', 'window_size'),
    'rolloffThreshold': ('spectral', 'rolloff_threshold'),
    'rolloff_threshold': ('spectral', 'rolloff_threshold'),
    'thresholdK': ('threshold', 'k'),
    'threshold_k': ('threshold', 'k'),
    'decimate': ('events', 'decimate'),
    'intensity_gain': ('events', 'intensity_gain'),
    'sharpness_feature': ('events', 'sharpness_feature'),
    'intensity_floor': ('threshold', 'intensity_floor'),
    'threshold_basis': ('threshold', 'basis'),
    'secondary_feature': ('classification', 'secondary_feature'),
    'heavy_secondary_feature': ('classification', 'heavy_secondary_feature'),
    'medium_secondary_feature': ('classification', 'medium_secondary_feature'),
    'n_workers': ('spectral', 'n_workers'),
    'heavy_rms': ('classification', 'heavy_rms'),
    'heavy_secondary': ('classification', 'heavy_secondary'),
    'medium_rms': ('classification', 'medium_rms'),
    'medium_secondary': ('classification', 'medium_secondary'),
    'light_rms': ('classification', 'light_rms'),
}


@dataclass(frozen=True)
class HapticConfig:
    """
    Complete pipeline configuration aggregating all parameter groups.

    Example usage:
        cfg = HapticConfig()  # All defaults
        cfg = HapticConfig(smoothing=SmoothingParams(window_size=5))  # Override specific params
    """
    frame: FrameParams = field(default_factory=FrameParams)
    spectral: SpectralParams = field(default_factory=SpectralParams)
    smoothing: SmoothingParams = field(default_factory=SmoothingParams)
    threshold: ThresholdParams = field(default_factory=ThresholdParams)
    classification: ClassificationParams = field(default_factory=ClassificationParams)
    events: EventParams = field(default_factory=EventParams)

    @classmethod
    def from_options(cls, **options) -> 'HapticConfig':
        """
        Build a config from flat option names.

        Accepts both the camelCase names of the haptic file tooling
        (fps, frameLength, windowSize, rolloffThreshold, thresholdK, decimate)
        and the snake_case field names. None values are ignored so argparse
        results can be passed straight through.

        Raises:
            ValueError: If an option name is unknown
        """
        return cls().with_options(**options)

    def with_options(self, **options) -> 'HapticConfig':
        """Return a copy with the given flat options replaced."""
        groups = {f.name: getattr(self, f.name) for f in fields(self)}
        for name, value in options.items():
            if value is None:
                continue
            if name not in _OPTION_MAP:
                raise ValueError(f"Unknown option: {name}")
            group_name, field_name = _OPTION_MAP[name]
            groups[group_name] = replace(groups[group_name], **{field_name: value})
        return HapticConfig(**groups)

    def to_dict(self) -> Dict:
        """
        Export all parameters as a flat dictionary for JSON serialization.

        Returns:
            Dictionary with all parameter values
        """
        return {
            # Frame params
            'frame_length': self.frame.frame_length,

            # Spectral params
            'rolloff_threshold': self.spectral.rolloff_threshold,
            'n_workers': self.spectral.n_workers,

            # Smoothing params
            'window_size': self.smoothing.window_size,

            # Threshold params
            'threshold_k': self.threshold.k,
            'threshold_basis': self.threshold.basis,
            'intensity_floor': self.threshold.intensity_floor,

            # Classification params
            'classification_thresholds': self.classification.get_thresholds(),
            'secondary_feature': self.classification.secondary_feature,
            'heavy_secondary_feature': self.classification.heavy_secondary_feature,
            'medium_secondary_feature': self.classification.medium_secondary_feature,

            # Event params
            'fps': self.events.fps,
            'intensity_gain': self.events.intensity_gain,
            'sharpness_feature': self.events.sharpness_feature,
            'decimate': self.events.decimate,
        }


# Default configuration instance
DEFAULT_CONFIG = HapticConfig()


def validate_config(config: HapticConfig) -> bool:
    """
    Validate configuration parameters for consistency.

    Parameters:
        config: HapticConfig instance to validate

    Returns:
        True if config is valid

    Raises:
        InvalidFrameSize: If frame_length is not a supported power of two
        ValueError: If any other parameter is invalid
    """
    check_frame_length(config.frame.frame_length)

    if config.events.fps <= 0:
        raise ValueError("fps must be positive")
    if config.events.intensity_gain <= 0:
        raise ValueError("intensity_gain must be positive")
    if config.events.sharpness_feature not in SHARPNESS_FEATURES:
        raise ValueError(f"Unknown sharpness_feature: {config.events.sharpness_feature}")

    if config.smoothing.window_size <= 0 or config.smoothing.window_size % 2 == 0:
        raise ValueError("window_size must be a positive odd integer")

    if not (0.0 < config.spectral.rolloff_threshold <= 1.0):
        raise ValueError("rolloff_threshold must be in (0, 1]")
    if config.spectral.n_workers == 0 or config.spectral.n_workers < -1:
        raise ValueError("n_workers must be a positive integer or -1")

    if config.threshold.k < 0:
        raise ValueError("threshold_k must be non-negative")
    if config.threshold.basis not in THRESHOLD_BASES:
        raise ValueError(f"Unknown threshold_basis: {config.threshold.basis}")
    if not (0.0 <= config.threshold.intensity_floor <= 1.0):
        raise ValueError("intensity_floor must be in [0, 1]")

    if config.classification.secondary_feature not in SECONDARY_FEATURES:
        raise ValueError(f"Unknown secondary_feature: {config.classification.secondary_feature}")
    for rung_feature in (config.classification.heavy_secondary_feature,
                         config.classification.medium_secondary_feature):
        if rung_feature is not None and rung_feature not in SECONDARY_FEATURES:
            raise ValueError(f"Unknown rung secondary feature: {rung_feature}")

    return True


# Validate default config on import
validate_config(DEFAULT_CONFIG)
