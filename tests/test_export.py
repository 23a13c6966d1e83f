"""
Export Module Tests

Tests for haptic JSON writing/reading, summaries and diagnostic plots.
"""

import json

import pytest
import numpy as np

from haptick import export
from haptick.models import HapticEvent, HapticMetadata, HapticStream, HapticType
from haptick.pipeline import analyze_buffer, synthesize_stream
from haptick.models import SampleBuffer
from haptick.synthetic import generate_beat_pattern


@pytest.fixture
def stream():
    metadata = HapticMetadata(fps=60, duration=1.0, total_frames=60)
    haptic_events = (
        HapticEvent(time=0.0, intensity=1.0, sharpness=0.25, type=HapticType.HEAVY),
        HapticEvent(time=0.5, intensity=0.4, sharpness=1.0, type=HapticType.LIGHT),
        HapticEvent(time=59 / 60, intensity=0.1, sharpness=0.0, type=HapticType.SOFT),
    )
    return HapticStream(metadata=metadata, events=haptic_events)


class TestHapticJson:

    def test_document_layout(self, stream, tmp_path):
        path = export.save_haptic_stream(stream, tmp_path / 'track.json')
        data = json.loads(path.read_text())

        assert data['metadata'] == {'version': 3, 'fps': 60, 'duration': 1.0, 'totalFrames': 60}
        assert len(data['events']) == 3
        assert data['events'][1] == {'time': 0.5, 'intensity': 0.4, 'sharpness': 1.0, 'type': 'light'}

    def test_load_restores_stream(self, stream, tmp_path):
        path = export.save_haptic_stream(stream, tmp_path / 'nested' / 'track.json')
        assert export.load_haptic_stream(path) == stream

    @pytest.mark.parametrize('key', ['hapticEvents', 'haptic_events'])
    def test_legacy_event_keys(self, stream, key):
        data = stream.to_dict(events_key=key)
        assert export.parse_haptic_json(data) == stream

    def test_missing_metadata(self):
        with pytest.raises(ValueError):
            export.parse_haptic_json({'events': []})

    def test_missing_event_list(self):
        with pytest.raises(ValueError):
            export.parse_haptic_json({'metadata': {'fps': 60, 'duration': 1.0, 'totalFrames': 60}})

    def test_unknown_event_type(self, stream):
        data = stream.to_dict()
        data['events'][0]['type'] = 'thunder'
        with pytest.raises(ValueError):
            export.parse_haptic_json(data)

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"metadata": ')
        with pytest.raises(ValueError):
            export.load_haptic_stream(path)

    def test_refuses_invalid_stream(self):
        metadata = HapticMetadata(fps=60, duration=1.0, total_frames=60)
        late = HapticEvent(time=2.0, intensity=0.5, sharpness=0.5, type=HapticType.SOFT)
        with pytest.raises(ValueError):
            export.create_haptic_json(HapticStream(metadata=metadata, events=(late,)))

    def test_numpy_values_serialize(self, tmp_path):
        path = tmp_path / 'values.json'
        export.save_json({'a': np.float32(0.5), 'b': np.int64(3), 'c': np.arange(3)}, path)
        assert json.loads(path.read_text()) == {'a': 0.5, 'b': 3, 'c': [0, 1, 2]}


class TestOutputPaths:

    def test_beside_input(self, tmp_path):
        assert export.default_output_path(tmp_path / 'clip.mp4') == tmp_path / 'clip.json'

    def test_in_output_dir(self, tmp_path):
        out = export.default_output_path('/media/song.wav', tmp_path / 'results')
        assert out == tmp_path / 'results' / 'song.json'

    def test_keep_suffix(self, tmp_path):
        assert export.default_output_path(tmp_path / 'a.mp3', keep_suffix=True) == tmp_path / 'a.mp3.json'


class TestSummary:

    def test_summary_fields(self, stream):
        summary = export.create_summary(stream)

        assert summary['num_events'] == 3
        assert summary['total_frames'] == 60
        assert summary['event_density'] == pytest.approx(3 / 60)
        assert summary['mean_intensity'] == pytest.approx(0.5)
        assert summary['peak_intensity'] == 1.0
        assert summary['events_by_type'] == {'heavy': 1, 'medium': 0, 'light': 1, 'soft': 1}

    def test_empty_stream_summary(self):
        empty = HapticStream(metadata=HapticMetadata(fps=60, duration=1.0, total_frames=60))
        summary = export.create_summary(empty)

        assert summary['num_events'] == 0
        assert summary['mean_intensity'] == 0.0
        assert summary['peak_intensity'] == 0.0

    def test_print_summary(self, stream, capsys):
        export.print_stream_summary(export.create_summary(stream), 'demo')
        out = capsys.readouterr().out
        assert 'Haptic Summary: demo' in out
        assert 'heavy: 1' in out


class TestExportAll:

    def test_json_and_plot(self, tmp_path):
        sr = 22050
        buffer = SampleBuffer(samples=generate_beat_pattern(duration=2.0, sr=sr), sample_rate=sr)
        analysis = analyze_buffer(buffer)
        haptic_stream = synthesize_stream(analysis)

        created = export.export_all_outputs(
            haptic_stream, tmp_path / 'beats.json', analysis=analysis, generate_plot=True
        )

        assert created == [tmp_path / 'beats.json', tmp_path / 'beats_haptics.png']
        for path in created:
            assert path.exists()
            assert path.stat().st_size > 0

    def test_json_only(self, stream, tmp_path):
        created = export.export_all_outputs(stream, tmp_path / 'track.json')
        assert created == [tmp_path / 'track.json']
        assert not (tmp_path / 'track_haptics.png').exists()
