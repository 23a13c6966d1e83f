"""
Playback Module

Hardware-independent half of a haptic sink: releases events from a stream
as a media clock advances. Rendering the released events on an actuator is
the caller's job.
"""

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from haptick.models import HapticEvent, HapticStream

DEFAULT_LOOKAHEAD_SEC: float = 0.02
MULTIPLIER_RANGE: Tuple[float, float] = (0.0, 2.0)


def clamp_multiplier(multiplier: float) -> float:
    """Clamp a user intensity multiplier into the allowed range."""
    low, high = MULTIPLIER_RANGE
    return max(low, min(high, float(multiplier)))


def apply_intensity_multiplier(event: HapticEvent, multiplier: float) -> HapticEvent:
    """Scale an event's intensity, keeping it in [0, 1]."""
    scaled = min(1.0, max(0.0, event.intensity * multiplier))
    return replace(event, intensity=scaled)


class HapticCursor:
    """
    Explicit playback state over an ordered event list.

    CONTRACT:
    - advance(t) returns, in order, every not-yet-released event with
      time <= t + lookahead
    - Each event is released at most once until seek() or reset()
    - Released intensities are scaled by the multiplier and clamped to [0, 1]
    """

    def __init__(
        self,
        events: Sequence[HapticEvent],
        lookahead: float = DEFAULT_LOOKAHEAD_SEC,
        multiplier: float = 1.0
    ) -> None:
        self.events: List[HapticEvent] = list(events)
        self.times = np.array([event.time for event in self.events], dtype=np.float64)
        self.lookahead = lookahead
        self.multiplier = clamp_multiplier(multiplier)
        self.next_index: int = 0

    @classmethod
    def from_stream(cls, stream: HapticStream, lookahead: float = DEFAULT_LOOKAHEAD_SEC,
                    multiplier: float = 1.0) -> 'HapticCursor':
        return cls(stream.events, lookahead=lookahead, multiplier=multiplier)

    @property
    def is_finished(self) -> bool:
        return self.next_index >= len(self.events)

    def reset(self) -> None:
        """Rewind to the first event."""
        self.next_index = 0

    def seek(self, time_sec: float) -> None:
        """Position the cursor at the first event at or after time_sec."""
        self.next_index = int(np.searchsorted(self.times, time_sec, side='left'))

    def set_multiplier(self, multiplier: float) -> float:
        """Set the intensity multiplier (clamped) and return the applied value."""
        self.multiplier = clamp_multiplier(multiplier)
        return self.multiplier

    def advance(self, current_time: float) -> List[HapticEvent]:
        """
        Release every event due at current_time (with lookahead).

        Parameters:
            current_time: Media clock in seconds

        Returns:
            Due events in time order, intensity scaled by the multiplier
        """
        horizon = current_time + self.lookahead
        due = []
        while self.next_index < len(self.events) and self.times[self.next_index] <= horizon:
            due.append(apply_intensity_multiplier(self.events[self.next_index], self.multiplier))
            self.next_index += 1
        return due

    def peek(self) -> Optional[HapticEvent]:
        """Next event to be released, or None when finished."""
        if self.is_finished:
            return None
        return self.events[self.next_index]
