"""
Playback Cursor Tests
"""

import pytest

from haptick import playback
from haptick.models import HapticEvent, HapticMetadata, HapticStream, HapticType


def _events():
    return [
        HapticEvent(time=0.0, intensity=0.8, sharpness=0.2, type=HapticType.MEDIUM),
        HapticEvent(time=0.1, intensity=0.4, sharpness=0.5, type=HapticType.LIGHT),
        HapticEvent(time=0.2, intensity=1.0, sharpness=0.9, type=HapticType.HEAVY),
    ]


class TestHapticCursor:

    def test_releases_due_events_once(self):
        cursor = playback.HapticCursor(_events())

        assert [e.time for e in cursor.advance(0.0)] == [0.0]
        assert cursor.advance(0.0) == []
        assert [e.time for e in cursor.advance(0.085)] == [0.1]  # within lookahead
        assert [e.time for e in cursor.advance(1.0)] == [0.2]
        assert cursor.is_finished
        assert cursor.peek() is None

    def test_large_jump_releases_in_order(self):
        cursor = playback.HapticCursor(_events(), lookahead=0.0)
        assert [e.time for e in cursor.advance(0.5)] == [0.0, 0.1, 0.2]

    def test_seek_and_reset(self):
        cursor = playback.HapticCursor(_events())
        cursor.seek(0.15)
        assert cursor.peek().time == 0.2

        cursor.seek(0.1)
        assert cursor.peek().time == 0.1

        cursor.reset()
        assert cursor.peek().time == 0.0

    def test_multiplier_scales_and_clamps(self):
        cursor = playback.HapticCursor(_events(), multiplier=1.5)
        released = cursor.advance(1.0)
        assert [e.intensity for e in released] == [1.0, pytest.approx(0.6), 1.0]

    def test_multiplier_range(self):
        cursor = playback.HapticCursor(_events())
        assert cursor.set_multiplier(5.0) == 2.0
        assert cursor.set_multiplier(-1.0) == 0.0
        assert all(e.intensity == 0.0 for e in cursor.advance(1.0))

    def test_source_events_untouched(self):
        events = _events()
        cursor = playback.HapticCursor(events, multiplier=0.5)
        cursor.advance(1.0)
        assert events[0].intensity == 0.8

    def test_from_stream(self):
        stream = HapticStream(metadata=HapticMetadata(fps=60, duration=1.0, total_frames=60),
                              events=tuple(_events()))
        cursor = playback.HapticCursor.from_stream(stream)
        assert len(cursor.advance(1.0)) == 3

    def test_empty_cursor(self):
        cursor = playback.HapticCursor([])
        assert cursor.is_finished
        assert cursor.advance(10.0) == []
