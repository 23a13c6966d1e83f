"""
Timebase Module - Output Frame Count and Event Time Axis

Provides deterministic output frame count and time axis computation that
guarantees all event timestamps stay within the source duration.

DESIGN CONSTRAINTS:
- duration is the source of truth
- Output frame count: n = floor(duration * fps)
- Output frame time: t[i] = i / fps
- Final frame time (n - 1) / fps < duration (guaranteed by the floor)
- Deterministic: same inputs -> same outputs
- No external config imports
"""

import math

import numpy as np
from typing import List, Tuple

from haptick.models import HapticEvent


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_FPS: int = 60
EPSILON_SEC: float = 1e-6  # Floating point tolerance for comparisons


# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def compute_output_frame_count(duration_sec: float, fps: int = DEFAULT_FPS) -> int:
    """
    Number of output frames for a duration at a given event rate.

    CONTRACT:
    - Output: floor(duration_sec * fps), never negative
    - Returns 0 for non-positive duration or fps

    Parameters:
        duration_sec: Source duration in seconds
        fps: Output event rate

    Returns:
        Output frame count
    """
    if duration_sec <= 0 or fps <= 0:
        return 0
    return int(math.floor(duration_sec * fps))


def compute_time_axis(n_frames: int, fps: int = DEFAULT_FPS) -> np.ndarray:
    """
    Event times for output frames: t[i] = i / fps.

    Parameters:
        n_frames: Number of output frames
        fps: Output event rate

    Returns:
        (n_frames,) float64 array, monotonically increasing
    """
    return np.arange(n_frames, dtype=np.float64) / float(fps)


def frame_index_to_time(frame_idx: int, fps: int = DEFAULT_FPS) -> float:
    """Time of one output frame in seconds."""
    return frame_idx / float(fps)


def time_to_frame_index(time_sec: float, fps: int = DEFAULT_FPS) -> int:
    """Output frame containing time_sec (floor), never negative."""
    return max(0, int(math.floor(time_sec * fps + EPSILON_SEC)))


# =============================================================================
# CLAMPING / VALIDATION HELPERS
# =============================================================================

def clamp_point_event(
    event_time: float,
    duration_sec: float,
    epsilon: float = EPSILON_SEC
) -> Tuple[float, bool]:
    """
    Clamp a point event time to valid range [0, duration_sec].

    Parameters:
        event_time: Event timestamp in seconds
        duration_sec: Source duration in seconds
        epsilon: Tolerance for out-of-bounds detection

    Returns:
        Tuple of (clamped_time, was_clamped)
    """
    if event_time < 0:
        return 0.0, True
    if event_time > duration_sec + epsilon:
        return float(duration_sec), True
    return float(event_time), False


def find_event_violations(
    events: List[HapticEvent],
    duration_sec: float,
    epsilon: float = EPSILON_SEC
) -> List[str]:
    """
    Check stream invariants on a list of events.

    Checks:
    - 0 <= time <= duration
    - intensity and sharpness in [0, 1]
    - times are non-decreasing

    Returns:
        List of human-readable violations (empty if valid)
    """
    violations = []
    previous_time = -np.inf

    for i, event in enumerate(events):
        _, was_clamped = clamp_point_event(event.time, duration_sec, epsilon)
        if was_clamped:
            violations.append(f"event {i}: time {event.time:.6f}s outside [0, {duration_sec:.6f}]")
        if not (0.0 <= event.intensity <= 1.0):
            violations.append(f"event {i}: intensity {event.intensity} outside [0, 1]")
        if not (0.0 <= event.sharpness <= 1.0):
            violations.append(f"event {i}: sharpness {event.sharpness} outside [0, 1]")
        if event.time < previous_time:
            violations.append(f"event {i}: time {event.time:.6f}s before previous {previous_time:.6f}s")
        previous_time = event.time

    return violations
