"""
Pipeline Module

End-to-end conversion of a SampleBuffer into a HapticStream:

    frame -> analyze -> resample -> smooth -> calibrate -> synthesize

Each stage is a pure function of its input. The optional progress callback
is invoked between stages with (stage_name, fraction_complete). It is the
only cancellation point: an exception raised from the callback propagates
and no stream is returned.
"""

import warnings
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from haptick import aggregation, events, kernel, timebase
from haptick.errors import EmptySeries
from haptick.kernel_params import DEFAULT_CONFIG, HapticConfig, validate_config
from haptick.models import FeatureSeries, HapticMetadata, HapticStream, SampleBuffer

ProgressCallback = Callable[[str, float], None]

STAGES = ('analysis', 'resample', 'smooth', 'threshold', 'synthesis')

# Supplied and derived durations further apart than this trigger a warning
DURATION_MISMATCH_TOLERANCE_SEC: float = 0.05


@dataclass(frozen=True)
class HapticAnalysis:
    """
    Intermediate results of one pipeline run, for diagnostics and plotting.

    Attributes:
        frame_features: Per-analysis-frame features
        smoothed: Features resampled to the output rate and smoothed
        threshold: Calibrated emission threshold
        duration: Duration used for the output timebase
        output_frame_count: floor(duration * fps)
    """
    frame_features: FeatureSeries
    smoothed: FeatureSeries
    threshold: float
    duration: float
    output_frame_count: int


def _report(progress: Optional[ProgressCallback], stage: str) -> None:
    if progress is not None:
        progress(stage, (STAGES.index(stage) + 1) / len(STAGES))


def analyze_buffer(
    buffer: SampleBuffer,
    cfg: Optional[HapticConfig] = None,
    progress: Optional[ProgressCallback] = None
) -> HapticAnalysis:
    """
    Run every stage up to and including threshold calibration.

    Parameters:
        buffer: Mono input samples
        cfg: Pipeline configuration (None = defaults)
        progress: Optional stage callback

    Returns:
        HapticAnalysis

    Raises:
        EmptySeries: If the buffer is empty or the output frame count is 0
        InvalidFrameSize: If the frame length is invalid or exceeds the buffer
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG
    validate_config(cfg)

    if buffer.sample_count == 0:
        raise EmptySeries("Sample buffer is empty")

    duration = buffer.duration
    if buffer.supplied_duration is not None:
        mismatch = abs(buffer.supplied_duration - buffer.derived_duration)
        if mismatch > DURATION_MISMATCH_TOLERANCE_SEC:
            warnings.warn(
                f"Supplied duration {buffer.supplied_duration:.3f}s differs from "
                f"sample-derived duration {buffer.derived_duration:.3f}s; "
                f"using the supplied value"
            )

    # Stage 1-2: framing and spectral analysis
    raw = kernel.compute_frame_features(
        buffer.samples,
        sr=buffer.sample_rate,
        frame_length=cfg.frame.frame_length,
        rolloff_threshold=cfg.spectral.rolloff_threshold,
        n_workers=cfg.spectral.n_workers
    )
    frame_features = FeatureSeries(raw)
    _report(progress, 'analysis')

    # Stage 3: resample to the output rate
    n_output = timebase.compute_output_frame_count(duration, cfg.events.fps)
    if n_output < 1:
        raise EmptySeries(
            f"Duration {duration:.4f}s yields no output frames at {cfg.events.fps} fps"
        )
    resampled = aggregation.resample_features(frame_features, n_output)
    _report(progress, 'resample')

    # Stage 4: smoothing
    smoothed = aggregation.smooth_features(resampled, cfg.smoothing.window_size)
    _report(progress, 'smooth')

    # Stage 5: threshold
    threshold = events.calibrate_threshold(
        smoothed['rms'],
        k=cfg.threshold.k,
        basis=cfg.threshold.basis,
        intensity_gain=cfg.events.intensity_gain
    )
    _report(progress, 'threshold')

    return HapticAnalysis(
        frame_features=frame_features,
        smoothed=smoothed,
        threshold=threshold,
        duration=duration,
        output_frame_count=n_output,
    )


def synthesize_stream(analysis: HapticAnalysis, cfg: Optional[HapticConfig] = None) -> HapticStream:
    """Emit the HapticStream for a completed analysis."""
    if cfg is None:
        cfg = DEFAULT_CONFIG

    smoothed = analysis.smoothed
    heavy_feature, medium_feature = cfg.classification.rung_features()
    haptic_events = events.synthesize_events(
        rms=smoothed['rms'],
        sharpness=events.select_sharpness(smoothed, cfg.events.sharpness_feature),
        secondary=events.select_secondary_feature(smoothed, heavy_feature),
        medium_secondary=events.select_secondary_feature(smoothed, medium_feature),
        threshold=analysis.threshold,
        fps=cfg.events.fps,
        intensity_gain=cfg.events.intensity_gain,
        intensity_floor=cfg.threshold.intensity_floor,
        decimate=cfg.events.decimate,
        thresholds=cfg.classification.get_thresholds()
    )

    metadata = HapticMetadata(
        fps=cfg.events.fps,
        duration=analysis.duration,
        total_frames=analysis.output_frame_count,
    )
    return HapticStream(metadata=metadata, events=tuple(haptic_events))


def generate_haptic_stream(
    buffer: SampleBuffer,
    cfg: Optional[HapticConfig] = None,
    progress: Optional[ProgressCallback] = None
) -> HapticStream:
    """
    Convert a sample buffer into a haptic event stream.

    Either a complete, invariant-satisfying stream is returned or an
    exception is raised; there is no partial output.

    Parameters:
        buffer: Mono input samples
        cfg: Pipeline configuration (None = defaults)
        progress: Optional callback(stage, fraction) invoked between stages

    Returns:
        HapticStream

    Raises:
        EmptySeries: If the buffer is empty or too short for one output frame
        InvalidFrameSize: If the frame length is invalid or exceeds the buffer
    """
    if cfg is None:
        cfg = DEFAULT_CONFIG

    analysis = analyze_buffer(buffer, cfg, progress)
    stream = synthesize_stream(analysis, cfg)
    _report(progress, 'synthesis')
    return stream


def generate_from_samples(
    samples: np.ndarray,
    sample_rate: float,
    duration: Optional[float] = None,
    progress: Optional[ProgressCallback] = None,
    **options
) -> HapticStream:
    """
    Convenience wrapper taking raw samples and flat option names.

    Example:
        stream = generate_from_samples(audio, 22050, fps=30, decimate=True)
    """
    buffer = SampleBuffer(samples=samples, sample_rate=sample_rate, supplied_duration=duration)
    cfg = HapticConfig.from_options(**options)
    return generate_haptic_stream(buffer, cfg, progress)
