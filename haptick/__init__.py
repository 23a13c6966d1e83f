"""
haptick - Source Modules

This package contains the core modules for audio-to-haptics conversion:
- errors: Typed pipeline failures
- models: Immutable records (sample buffer, feature series, haptic stream)
- kernel_params: Pipeline configuration dataclasses
- kernel: Framing and spectral feature extraction
- aggregation: Resampling to the event rate and smoothing
- timebase: Output frame count and event time axis
- events: Threshold calibration, classification and event synthesis
- pipeline: End-to-end orchestration
- audio_io: File-backed audio source
- export: JSON and plot generation
- playback: Event cursor for haptic sinks
- synthetic: Deterministic test signals
"""

__version__ = "1.0.0"
