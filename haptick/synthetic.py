"""
Synthetic Audio Generators

Deterministic signals with known haptic ground truth, shared by the test
suite and the CLI demo mode. No external audio files required.
"""

import numpy as np
from typing import Optional


def generate_sine(
    duration: float = 1.0,
    sr: int = 44100,
    freq: float = 440.0,
    amplitude: float = 1.0
) -> np.ndarray:
    """Constant-amplitude sine tone."""
    samples = int(duration * sr)
    t = np.arange(samples) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def generate_silence(duration: float = 1.0, sr: int = 44100) -> np.ndarray:
    """All-zero signal."""
    return np.zeros(int(duration * sr), dtype=np.float32)


def generate_impulse(
    duration: float = 1.0,
    sr: int = 44100,
    position: Optional[int] = None,
    amplitude: float = 1.0
) -> np.ndarray:
    """
    Single nonzero sample.

    Parameters:
        duration: Total duration in seconds
        sr: Sample rate
        position: Sample index of the impulse (None = middle of the buffer)
        amplitude: Impulse value
    """
    audio = generate_silence(duration, sr)
    if position is None:
        position = len(audio) // 2
    audio[position] = amplitude
    return audio


def generate_beat_pattern(
    duration: float = 4.0,
    sr: int = 22050,
    bpm: float = 120.0,
    seed: int = 7
) -> np.ndarray:
    """
    Kick-plus-hat pattern over a quiet pad.

    Kicks (60 Hz, exponential decay) land on every beat; bright noise hats
    land halfway between. Loud, distinct transients should produce events
    near the beat times and nothing during the pad-only stretches.

    Parameters:
        duration: Total duration in seconds
        sr: Sample rate
        bpm: Tempo in beats per minute
        seed: Noise seed (deterministic output)
    """
    rng = np.random.default_rng(seed)
    samples = int(duration * sr)
    t = np.arange(samples) / sr
    audio = 0.05 * np.sin(2 * np.pi * 220 * t)

    beat = 60.0 / bpm
    kick_len = int(0.12 * sr)
    hat_len = int(0.04 * sr)
    kick_t = np.arange(kick_len) / sr
    kick = 0.9 * np.exp(-kick_t * 25) * np.sin(2 * np.pi * 60 * kick_t)
    hat = 0.4 * np.exp(-np.arange(hat_len) / sr * 80) * rng.uniform(-1, 1, hat_len)

    for start_time in np.arange(0.0, duration, beat):
        start = int(start_time * sr)
        end = min(start + kick_len, samples)
        audio[start:end] += kick[:end - start]

        hat_start = int((start_time + beat / 2) * sr)
        hat_end = min(hat_start + hat_len, samples)
        if hat_start < samples:
            audio[hat_start:hat_end] += hat[:hat_end - hat_start]

    audio = audio / np.max(np.abs(audio))
    return audio.astype(np.float32)


def generate_crescendo(
    duration: float = 4.0,
    sr: int = 22050,
    freq_start: float = 200.0,
    freq_end: float = 2000.0
) -> np.ndarray:
    """
    Linear amplitude ramp from silence to full scale with a rising sweep.

    Loudness and brightness both increase, so event density, intensity and
    sharpness should all grow towards the end.
    """
    samples = int(duration * sr)
    t = np.arange(samples) / sr
    progress = t / duration
    freq = freq_start + (freq_end - freq_start) * progress
    phase = 2 * np.pi * np.cumsum(freq) / sr
    return (progress * np.sin(phase)).astype(np.float32)
