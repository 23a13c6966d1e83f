"""
DSP Kernel Module - Framing and Spectral Feature Extraction

This module contains the deterministic DSP kernel for haptic analysis.

DESIGN CONSTRAINTS:
- No I/O operations (no file reading/writing)
- No plotting or visualization
- No event heuristics (see events.py)
- Explicit state management (no hidden globals)
- No config module imports - all parameters are explicit
- Only numpy and scipy dependencies (no librosa)

PROCESSING PIPELINE:
1. Framing (audio -> consecutive, non-overlapping frames)
2. Per-frame RMS on the raw frame samples
3. Hann window + radix-2 real FFT -> squared-magnitude spectrum (L/2 bins)
4. Spectral features from the power spectrum (dominant frequency, rolloff,
   centroid, bandwidth)

SPECTRUM CONVENTION:
- M[k] = |FFT[k]|^2 for k in [0, L/2), Nyquist bin excluded
- Bin k has frequency k * sample_rate / L
- Rolloff and centroid are energy-weighted (squared magnitude)
"""

import numpy as np
from typing import Dict, Optional
from scipy import fft as scipy_fft
from scipy.signal import windows as scipy_windows

from haptick.errors import InvalidFrameSize


# =============================================================================
# DEFAULT PARAMETERS (Explicit - No Config Imports)
# =============================================================================

DEFAULT_FRAME_LENGTH: int = 512
DEFAULT_SAMPLE_RATE: int = 22050
DEFAULT_ROLLOFF_THRESHOLD: float = 0.85

# Smallest and largest supported FFT sizes
MIN_FRAME_LENGTH: int = 64
MAX_FRAME_LENGTH: int = 65536


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def is_power_of_two(n: int) -> bool:
    """True if n is a positive integral power of two."""
    return isinstance(n, (int, np.integer)) and n > 0 and (n & (n - 1)) == 0


def check_frame_length(frame_length: int, n_samples: Optional[int] = None) -> None:
    """
    Verify a frame length is usable for the radix-2 transform.

    Parameters:
        frame_length: Proposed frame length in samples
        n_samples: Buffer length; when given, the frame must fit inside it

    Raises:
        InvalidFrameSize: If frame_length is not a supported power of two,
            or is larger than the buffer
    """
    if not is_power_of_two(frame_length):
        raise InvalidFrameSize(frame_length, "not a power of two")
    if not (MIN_FRAME_LENGTH <= frame_length <= MAX_FRAME_LENGTH):
        raise InvalidFrameSize(
            frame_length,
            f"supported range is {MIN_FRAME_LENGTH}..{MAX_FRAME_LENGTH}"
        )
    if n_samples is not None and frame_length > n_samples:
        raise InvalidFrameSize(frame_length, f"exceeds buffer of {n_samples} samples")


def hann_window(frame_length: int) -> np.ndarray:
    """
    Symmetric Hann window: w[i] = 0.5 - 0.5 * cos(2*pi*i / (L - 1)).

    Both endpoints are exactly zero.
    """
    return scipy_windows.hann(frame_length, sym=True).astype(np.float64)


# =============================================================================
# FRAMING
# =============================================================================

def frame_audio(
    audio: np.ndarray,
    frame_length: int = DEFAULT_FRAME_LENGTH,
    window: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Slice audio into consecutive, non-overlapping frames.

    CONTRACT:
    - Input: audio (1D float array), frame_length (positive int)
    - Output: (n_frames, frame_length) float64 array
    - n_frames = floor(len(audio) / frame_length)
    - Frame i covers samples [i * frame_length, (i + 1) * frame_length)
    - Trailing samples that do not fill a frame are dropped
    - Empty or short input yields a (0, frame_length) array
    - If window is given it is multiplied into every frame

    Parameters:
        audio: Audio array (1D)
        frame_length: Frame size in samples (hop = frame size)
        window: Optional (frame_length,) window to apply

    Returns:
        Frame matrix, one frame per row
    """
    if frame_length <= 0:
        raise InvalidFrameSize(frame_length, "must be positive")

    audio = np.asarray(audio, dtype=np.float64)
    n_frames = len(audio) // frame_length
    frames = audio[:n_frames * frame_length].reshape(n_frames, frame_length)

    if window is not None:
        frames = frames * window[np.newaxis, :]

    return frames


# =============================================================================
# FFT WORKSPACE (SCOPED RESOURCE)
# =============================================================================

class FFTWorkspace:
    """
    Transform setup for one analysis run.

    Holds the Hann window and bin frequencies for a fixed frame length and
    sample rate. Use as a context manager; the workspace is released on
    every exit path, including exceptions raised inside the block.

    CONTRACT:
    - frame_length is validated on construction (InvalidFrameSize)
    - power_spectrum() after release raises RuntimeError
    - Frames are transformed with scipy.fft using n_workers threads;
      row order of the output matches row order of the input
    """

    def __init__(
        self,
        frame_length: int = DEFAULT_FRAME_LENGTH,
        sample_rate: float = DEFAULT_SAMPLE_RATE,
        n_workers: int = 1
    ) -> None:
        check_frame_length(frame_length)
        self.frame_length = frame_length
        self.sample_rate = float(sample_rate)
        self.n_workers = n_workers
        self.n_bins = frame_length // 2
        self.window: Optional[np.ndarray] = hann_window(frame_length)
        self.frequencies: Optional[np.ndarray] = (
            np.arange(self.n_bins, dtype=np.float64) * self.sample_rate / frame_length
        )

    @property
    def is_open(self) -> bool:
        return self.window is not None

    @property
    def bin_width(self) -> float:
        return self.sample_rate / self.frame_length

    def __enter__(self) -> 'FFTWorkspace':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()

    def release(self) -> None:
        """Drop the window and frequency tables."""
        self.window = None
        self.frequencies = None

    def power_spectrum(self, frames: np.ndarray) -> np.ndarray:
        """
        Squared-magnitude spectrum of raw (unwindowed) frames.

        Parameters:
            frames: (n_frames, frame_length) array

        Returns:
            (n_frames, frame_length // 2) float64 array, values >= 0
        """
        if not self.is_open:
            raise RuntimeError("FFTWorkspace has been released")
        if frames.ndim != 2 or frames.shape[1] != self.frame_length:
            raise ValueError(
                f"Expected frames of shape (n, {self.frame_length}), got {frames.shape}"
            )

        windowed = frames * self.window[np.newaxis, :]
        spectrum = scipy_fft.rfft(windowed, n=self.frame_length, axis=1, workers=self.n_workers)
        spectrum = spectrum[:, :self.n_bins]
        return (spectrum.real ** 2 + spectrum.imag ** 2).astype(np.float64)


# =============================================================================
# FRAME-LEVEL FEATURE EXTRACTION
# =============================================================================

def compute_rms_energy(
    audio: np.ndarray,
    frame_length: int = DEFAULT_FRAME_LENGTH
) -> np.ndarray:
    """
    Compute RMS energy per frame.

    CONTRACT:
    - Input: audio (1D float array, normalized to [-1.0, 1.0])
    - Output: (n_frames,) float64 array, values >= 0
    - n_frames = floor(len(audio) / frame_length)
    - Measured on raw samples (no window), rms = sqrt(mean(x^2))
    - Deterministic: same input -> same output

    Parameters:
        audio: Audio array (1D)
        frame_length: Frame size in samples

    Returns:
        Array of RMS values (length n_frames)
    """
    frames = frame_audio(audio, frame_length)
    if frames.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)
    return np.sqrt(np.mean(frames ** 2, axis=1))


def compute_spectral_features(
    power: np.ndarray,
    frequencies: np.ndarray,
    rolloff_threshold: float = DEFAULT_ROLLOFF_THRESHOLD
) -> Dict[str, np.ndarray]:
    """
    Compute spectral features from a squared-magnitude spectrum.

    CONTRACT:
    - Input: power (n_frames, n_bins) values >= 0, frequencies (n_bins,) in Hz
    - Output: dict with 'dominant_frequency', 'spectral_rolloff',
      'spectral_centroid', 'spectral_bandwidth', each (n_frames,) float64
    - dominant_frequency: frequency of argmax bin, Hz in [0, sr/2)
    - spectral_rolloff: j / n_bins for the smallest bin j whose cumulative
      energy reaches rolloff_threshold * total, in [0, 1)
    - spectral_centroid: sum(f * M) / sum(M), Hz
    - spectral_bandwidth: sqrt(sum((f - centroid)^2 * M) / sum(M)), Hz
    - Frames with zero total energy get 0 for every feature

    Parameters:
        power: Power spectrum, one frame per row
        frequencies: Bin center frequencies (Hz)
        rolloff_threshold: Energy fraction for rolloff (0.0 to 1.0]

    Returns:
        Dictionary with spectral features
    """
    n_frames, n_bins = power.shape
    if n_frames == 0:
        empty = np.zeros(0, dtype=np.float64)
        return {
            'dominant_frequency': empty,
            'spectral_rolloff': empty.copy(),
            'spectral_centroid': empty.copy(),
            'spectral_bandwidth': empty.copy(),
        }

    cumulative = np.cumsum(power, axis=1)
    total = cumulative[:, -1]
    has_energy = total > 0

    dominant = frequencies[np.argmax(power, axis=1)]
    dominant = np.where(has_energy, dominant, 0.0)

    # First bin where cumulative energy reaches the threshold
    reached = cumulative >= rolloff_threshold * total[:, np.newaxis]
    rolloff_bin = np.argmax(reached, axis=1)
    rolloff = np.where(has_energy, rolloff_bin / float(n_bins), 0.0)

    safe_total = np.where(has_energy, total, 1.0)
    centroid = np.sum(power * frequencies[np.newaxis, :], axis=1) / safe_total
    centroid = np.where(has_energy, centroid, 0.0)

    spread = (frequencies[np.newaxis, :] - centroid[:, np.newaxis]) ** 2
    bandwidth = np.sqrt(np.sum(power * spread, axis=1) / safe_total)
    bandwidth = np.where(has_energy, bandwidth, 0.0)

    return {
        'dominant_frequency': dominant.astype(np.float64),
        'spectral_rolloff': rolloff.astype(np.float64),
        'spectral_centroid': centroid.astype(np.float64),
        'spectral_bandwidth': bandwidth.astype(np.float64),
    }


def compute_frame_features(
    audio: np.ndarray,
    sr: float = DEFAULT_SAMPLE_RATE,
    frame_length: int = DEFAULT_FRAME_LENGTH,
    rolloff_threshold: float = DEFAULT_ROLLOFF_THRESHOLD,
    n_workers: int = 1
) -> Dict[str, np.ndarray]:
    """
    Run the full per-frame analysis.

    CONTRACT:
    - Input: audio (1D float array), sr (positive), frame_length (power of two)
    - Output: dict with 'rms', 'dominant_frequency', 'spectral_rolloff',
      'spectral_centroid', 'spectral_bandwidth'
    - All outputs have length floor(len(audio) / frame_length)
    - The FFT workspace is acquired and released inside this call
    - Deterministic: same input -> same output (for any n_workers)

    Parameters:
        audio: Audio array (1D)
        sr: Sample rate (Hz)
        frame_length: Frame size in samples
        rolloff_threshold: Energy fraction for rolloff
        n_workers: FFT worker threads

    Returns:
        Dictionary of per-frame features

    Raises:
        InvalidFrameSize: If frame_length is not a supported power of two or
            exceeds the number of samples
    """
    audio = np.asarray(audio, dtype=np.float64)
    check_frame_length(frame_length, n_samples=len(audio))

    frames = frame_audio(audio, frame_length)

    with FFTWorkspace(frame_length, sr, n_workers=n_workers) as workspace:
        power = workspace.power_spectrum(frames)
        spectral = compute_spectral_features(power, workspace.frequencies, rolloff_threshold)

    features = {'rms': compute_rms_energy(audio, frame_length)}
    features.update(spectral)
    return features
