"""
Audio I/O Module

File-backed audio source: decodes an audio file, or the soundtrack of a
video container, into a mono SampleBuffer.

librosa decodes through soundfile (wav, flac, ogg, mp3) and falls back to
audioread for containers such as mp4/mov.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

import librosa
import numpy as np

import config
from haptick.errors import AudioSourceUnavailable
from haptick.models import SampleBuffer

DOWNMIX_METHODS = ('average', 'left', 'right')


def load_audio(
    file_path: Union[str, Path],
    target_sr: Optional[int] = None,
    downmix: str = 'average'
) -> Tuple[np.ndarray, int]:
    """
    Decode a file into mono float32 samples.

    Parameters:
        file_path: Audio or video file
        target_sr: Resample to this rate (None = keep the file's rate)
        downmix: How multi-channel audio becomes mono, see downmix_channels

    Returns:
        (samples, sample_rate), samples nominally in [-1.0, 1.0]

    Raises:
        AudioSourceUnavailable: Missing file, undecodable content, or a
            decoded track with no samples
    """
    path = Path(file_path)
    if not path.is_file():
        raise AudioSourceUnavailable(f"Audio file not found: {path}")

    try:
        decoded, sr = librosa.load(str(path), sr=None, mono=False)
    except Exception as exc:
        raise AudioSourceUnavailable(f"Could not decode audio from {path}: {exc}") from exc

    samples = downmix_channels(np.asarray(decoded, dtype=np.float32), downmix)
    if samples.size == 0:
        raise AudioSourceUnavailable(f"No audio samples in {path}")

    if target_sr:
        samples = resample_audio(samples, sr, target_sr)
        sr = target_sr

    return samples, int(sr)


def downmix_channels(decoded: np.ndarray, method: str = 'average') -> np.ndarray:
    """
    Reduce librosa's (channels, samples) layout to one channel.

    Parameters:
        decoded: 1D mono samples, or 2D channels-first samples
        method: 'average' (mean of all channels), 'left' (first channel) or
            'right' (last channel)

    Raises:
        ValueError: Unknown method, or more than two dimensions
    """
    if method not in DOWNMIX_METHODS:
        raise ValueError(f"Unknown downmix method: {method}")
    if decoded.ndim == 1:
        return decoded
    if decoded.ndim != 2:
        raise ValueError(f"Expected (channels, samples) audio, got shape {decoded.shape}")

    if method == 'left':
        return decoded[0]
    if method == 'right':
        return decoded[-1]
    return decoded.mean(axis=0)


def resample_audio(samples: np.ndarray, orig_sr: int, target_sr: int) -> np.ndarray:
    """Change sample rate with librosa's default high-quality resampler."""
    if orig_sr == target_sr:
        return samples
    return librosa.resample(samples, orig_sr=orig_sr, target_sr=target_sr).astype(np.float32)


def normalize_audio(samples: np.ndarray, method: str = 'none') -> Tuple[np.ndarray, float]:
    """
    Optional per-file gain.

    'none' keeps absolute loudness. 'peak' scales the loudest sample to 1.0;
    a silent file is returned unchanged.

    Returns:
        (samples, applied_gain)

    Raises:
        ValueError: Unknown method
    """
    if method == 'none':
        return samples, 1.0
    if method != 'peak':
        raise ValueError(f"Unknown normalization method: {method}")

    peak = float(np.max(np.abs(samples))) if samples.size else 0.0
    if peak == 0:
        return samples, 1.0
    gain = 1.0 / peak
    return samples * gain, gain


def validate_audio(samples: np.ndarray, sr: int, max_duration: Optional[float] = None) -> None:
    """
    Reject buffers the pipeline cannot sensibly analyze.

    Raises:
        ValueError: Non-positive rate, NaN/inf samples, or a track longer than
            max_duration (default config.MAX_TRACK_DURATION_SEC)
    """
    limit = config.MAX_TRACK_DURATION_SEC if max_duration is None else max_duration

    if sr <= 0:
        raise ValueError(f"Sample rate must be positive, got {sr}")
    if not np.all(np.isfinite(samples)):
        raise ValueError("Decoded audio has NaN or infinite samples")

    track_sec = len(samples) / sr
    if track_sec > limit:
        raise ValueError(f"Track is {track_sec:.1f}s long, limit is {limit:.1f}s")


def load_sample_buffer(
    file_path: Union[str, Path],
    target_sr: Optional[int] = None,
    normalize_method: Optional[str] = None
) -> SampleBuffer:
    """
    Decode a file into a SampleBuffer ready for the pipeline.

    decode -> downmix -> resample (optional) -> normalize (optional) -> validate

    Parameters:
        file_path: Audio or video file
        target_sr: Sample rate override (None = config.TARGET_SAMPLE_RATE)
        normalize_method: 'none' or 'peak' (None = config.NORMALIZATION_METHOD)

    Raises:
        AudioSourceUnavailable: No audio could be read from the file
        ValueError: The decoded audio failed validation
    """
    rate = config.TARGET_SAMPLE_RATE if target_sr is None else target_sr
    method = config.NORMALIZATION_METHOD if normalize_method is None else normalize_method

    samples, sr = load_audio(file_path, target_sr=rate)
    samples, _ = normalize_audio(samples, method=method)
    validate_audio(samples, sr)

    return SampleBuffer(samples=samples, sample_rate=sr)
