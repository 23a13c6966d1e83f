"""
Error Types

Every failure the pipeline reports derives from HapticError. The concrete
types also derive from the builtin that describes them best, so callers
catching ValueError / OSError keep working.
"""


class HapticError(Exception):
    """Base class for haptick failures."""


class InvalidFrameSize(HapticError, ValueError):
    """
    Frame length is not a supported power of two, or exceeds the buffer.

    This is a configuration error: retrying with the same input fails again.
    """

    def __init__(self, frame_length: int, reason: str = "") -> None:
        self.frame_length = frame_length
        message = f"Invalid frame length: {frame_length}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class EmptySeries(HapticError, ValueError):
    """A sequence has zero length where a nonzero length is required."""


class AudioSourceUnavailable(HapticError, OSError):
    """The audio source could not produce a sample buffer (missing file, no audio track)."""
