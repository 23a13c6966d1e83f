"""
haptick - Configuration

All tunable parameters, thresholds, and constants with documentation.
Every default value includes rationale.
"""

from typing import Dict, List, Optional

# =============================================================================
# FRAME-LEVEL PARAMETERS
# =============================================================================

# Frame length for FFT analysis (samples, must be a power of two)
# Why: 512 samples at 22050 Hz ≈ 23ms, short enough to follow transients
#      that should be felt as separate taps while resolving ~43 Hz bins
FRAME_LENGTH: int = 512

# Frame lengths accepted by the radix-2 transform
# Why: 64..65536 covers every useful haptic analysis resolution; smaller frames
#      give unusable frequency resolution, larger ones blur events together
SUPPORTED_FRAME_LENGTHS: List[int] = [2 ** n for n in range(6, 17)]

# Target sample rate for decoded audio (Hz, None = keep native rate)
# Why: 22050 Hz captures the band haptic actuators can render, but the
#      native rate keeps the frame/time mapping exact, so resampling is opt-in
TARGET_SAMPLE_RATE = None

# =============================================================================
# OUTPUT TIMEBASE
# =============================================================================

# Haptic event rate (frames per second)
# Why: 60 fps lines up with common video frame rates, so every event can be
#      scheduled on a display frame boundary
FPS: int = 60

# =============================================================================
# SPECTRAL PARAMETERS
# =============================================================================

# Spectral rolloff percentage
# Why: 85% is the standard rolloff point, represents the bin below which
#      most of the energy is contained, indicates brightness
ROLLOFF_THRESHOLD: float = 0.85

# =============================================================================
# SMOOTHING PARAMETERS
# =============================================================================

# Centered moving-average window for resampled feature series (output frames)
# Why: 11 frames at 60 fps ≈ 180ms, removes frame-to-frame jitter that would
#      feel like buzzing without smearing beats into each other
SMOOTHING_WINDOW: int = 11

# =============================================================================
# THRESHOLD / GATING PARAMETERS
# =============================================================================

# Multiplier on the standard deviation in the adaptive gate (mean + k * std)
# Why: 0.5 keeps roughly the louder third of a dynamic track, enough to feel
#      the rhythm without the phone vibrating continuously
THRESHOLD_K: float = 0.5

# Which series the adaptive threshold is computed over: 'rms' or 'intensity'
# Why: 'rms' reproduces the shipped analyzer (threshold from smoothed RMS,
#      compared with intensity). 'intensity' compares like with like and
#      suppresses events for constant-loudness material.
THRESHOLD_BASIS: str = 'rms'

# Fixed intensity floor applied in addition to the adaptive threshold
# Why: 0.0 disables it. Earlier variants used 0.1 and 0.3; kept as an
#      explicit knob rather than baked into the gate
INTENSITY_FLOOR: float = 0.0

# Gain applied to smoothed RMS to obtain intensity (before clamping to [0, 1])
# Why: Full-scale program material rarely exceeds 0.5 RMS, x2 maps it onto
#      the whole actuator range
INTENSITY_GAIN: float = 2.0

# Keep only even output frames (halves event density)
# Why: False by default so every output frame is a candidate; enable for
#      actuators that cannot retrigger at the full event rate
DECIMATE: bool = False

# =============================================================================
# CLASSIFICATION PARAMETERS
# =============================================================================

# Secondary feature used by the classification cascade:
# 'centroid' (normalized to its peak), 'rolloff', or 'bandwidth' (normalized)
# Why: The cut points below were tuned against the centroid reading of
#      "bandwidth"; the others are kept for calibration experiments
SECONDARY_FEATURE: str = 'centroid'

# Per-rung overrides of SECONDARY_FEATURE (None = use SECONDARY_FEATURE)
# Why: The shipped analyzer judged heavy on bandwidth and medium on rolloff;
#      set these to 'bandwidth' and 'rolloff' to reproduce that split
HEAVY_SECONDARY_FEATURE: Optional[str] = None
MEDIUM_SECONDARY_FEATURE: Optional[str] = None

# Feature that drives sharpness: 'centroid' or 'dominant_frequency'
# Why: Centroid tracks perceived brightness smoothly; dominant frequency
#      jumps between harmonics and feels erratic
SHARPNESS_FEATURE: str = 'centroid'

# Cascade cut points (strict greater-than comparisons, evaluated top-down)
# Why: heavy needs loud and bright content, medium moderately loud and
#      moderately bright, light is anything audible above 0.2 RMS
CLASSIFICATION_THRESHOLDS: Dict[str, float] = {
    'heavy_rms': 0.7,
    'heavy_secondary': 0.6,
    'medium_rms': 0.4,
    'medium_secondary': 0.5,
    'light_rms': 0.2,
}

# =============================================================================
# AUDIO PREPROCESSING PARAMETERS
# =============================================================================

# Normalization method at load time: 'none' or 'peak'
# Why: 'none' keeps absolute loudness so quiet files stay gentle; 'peak' is
#      available for material mastered very low
NORMALIZATION_METHOD: str = 'none'

# Maximum track duration to process (seconds)
# Why: 3600 seconds covers feature-length video soundtracks while keeping
#      the in-memory buffer bounded
MAX_TRACK_DURATION_SEC: float = 3600.0

# =============================================================================
# PERFORMANCE PARAMETERS
# =============================================================================

# Number of FFT worker threads (1 = single-threaded, -1 = all cores)
# Why: 1 keeps runs reproducible and cheap for short clips; long soundtracks
#      benefit from parallel transforms
N_WORKERS: int = 1

# =============================================================================
# OUTPUT PARAMETERS
# =============================================================================

# JSON key holding the event list
# Why: Matches the playback data model; older files used 'hapticEvents' or
#      'haptic_events' and are still accepted on load
EVENTS_KEY: str = 'events'

# Event list keys accepted when reading haptic files
LEGACY_EVENTS_KEYS: List[str] = ['events', 'hapticEvents', 'haptic_events']

# Audio file extensions picked up in directory mode
AUDIO_EXTENSIONS: List[str] = ['.wav', '.mp3', '.flac', '.ogg', '.m4a', '.mp4', '.mov']

# Plot resolution (dots per inch)
# Why: 150 DPI is good balance of quality and file size for screen viewing
PLOT_DPI: int = 150

# Plot figure size (width, height in inches)
# Why: Wide timeline view, three stacked panels stay readable at 150 DPI
PLOT_FIGSIZE: tuple = (14, 9)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_frame_duration(sample_rate: float, frame_length: int = FRAME_LENGTH) -> float:
    """
    Duration of one analysis frame in seconds.

    Parameters:
        sample_rate: Audio sample rate (Hz)
        frame_length: Frame length in samples

    Returns:
        Frame duration in seconds
    """
    return frame_length / float(sample_rate)


def get_bin_width(sample_rate: float, frame_length: int = FRAME_LENGTH) -> float:
    """
    Frequency resolution of one FFT bin in Hz.

    Parameters:
        sample_rate: Audio sample rate (Hz)
        frame_length: Frame length in samples

    Returns:
        Bin width in Hz
    """
    return float(sample_rate) / frame_length


def validate_config() -> bool:
    """
    Validate configuration parameters for consistency.

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    if FRAME_LENGTH not in SUPPORTED_FRAME_LENGTHS:
        raise ValueError(f"FRAME_LENGTH must be a supported power of two, got {FRAME_LENGTH}")

    if FPS <= 0:
        raise ValueError("FPS must be positive")

    if SMOOTHING_WINDOW <= 0 or SMOOTHING_WINDOW % 2 == 0:
        raise ValueError("SMOOTHING_WINDOW must be a positive odd integer")

    if not (0.0 < ROLLOFF_THRESHOLD <= 1.0):
        raise ValueError("ROLLOFF_THRESHOLD must be in (0, 1]")

    if THRESHOLD_BASIS not in ('rms', 'intensity'):
        raise ValueError(f"Unknown THRESHOLD_BASIS: {THRESHOLD_BASIS}")

    if SECONDARY_FEATURE not in ('centroid', 'rolloff', 'bandwidth'):
        raise ValueError(f"Unknown SECONDARY_FEATURE: {SECONDARY_FEATURE}")
    for rung_feature in (HEAVY_SECONDARY_FEATURE, MEDIUM_SECONDARY_FEATURE):
        if rung_feature is not None and rung_feature not in ('centroid', 'rolloff', 'bandwidth'):
            raise ValueError(f"Unknown rung secondary feature: {rung_feature}")

    if SHARPNESS_FEATURE not in ('centroid', 'dominant_frequency'):
        raise ValueError(f"Unknown SHARPNESS_FEATURE: {SHARPNESS_FEATURE}")

    if not (0.0 <= INTENSITY_FLOOR <= 1.0):
        raise ValueError("INTENSITY_FLOOR must be in [0, 1]")

    if INTENSITY_GAIN <= 0:
        raise ValueError("INTENSITY_GAIN must be positive")

    return True


# Validate on import
validate_config()
