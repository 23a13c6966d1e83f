"""
CLI Tests

Drive cli.main end to end on synthetic input written into tmp_path.
"""

import json

import pytest
import numpy as np
from scipy.io import wavfile

import cli
from haptick.synthetic import generate_beat_pattern


def _write_beats(path, sr=22050):
    audio = generate_beat_pattern(duration=2.0, sr=sr)
    wavfile.write(str(path), sr, (audio * 32767).astype(np.int16))
    return path


class TestMain:

    def test_single_file_next_to_input(self, tmp_path):
        wav = _write_beats(tmp_path / 'beats.wav')

        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(wav)])

        assert exc_info.value.code == 0
        data = json.loads((tmp_path / 'beats.json').read_text())
        assert data['metadata']['fps'] == 60
        assert data['metadata']['totalFrames'] == 120
        assert len(data['events']) > 0

    def test_overrides_and_plot(self, tmp_path):
        wav = _write_beats(tmp_path / 'beats.wav')
        out_dir = tmp_path / 'results'

        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(wav), '--output', str(out_dir), '--fps', '30', '--decimate', '--plot'])

        assert exc_info.value.code == 0
        data = json.loads((out_dir / 'beats.json').read_text())
        assert data['metadata']['fps'] == 30
        assert data['metadata']['totalFrames'] == 60
        frames = [round(event['time'] * 30) for event in data['events']]
        assert all(frame % 2 == 0 for frame in frames)
        assert (out_dir / 'beats_haptics.png').exists()

    def test_verbose_reports_stages(self, tmp_path, capsys):
        wav = _write_beats(tmp_path / 'beats.wav')

        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(wav), '--verbose'])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert 'Hz bins' in out
        assert 'threshold' in out
        assert 'Haptic Summary: beats' in out

    def test_directory(self, tmp_path):
        _write_beats(tmp_path / 'a.wav')
        _write_beats(tmp_path / 'b.wav')
        out_dir = tmp_path / 'out'

        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(tmp_path), '-o', str(out_dir)])

        assert exc_info.value.code == 0
        assert sorted(p.name for p in out_dir.glob('*.json')) == ['a.json', 'b.json']

    def test_same_stem_different_extension(self, tmp_path):
        in_dir = tmp_path / 'in'
        in_dir.mkdir()
        _write_beats(in_dir / 'a.wav')
        _write_beats(in_dir / 'a.WAV')
        _write_beats(in_dir / 'b.wav')
        out_dir = tmp_path / 'out'

        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(in_dir), '-o', str(out_dir)])

        assert exc_info.value.code == 0
        assert sorted(p.name for p in out_dir.glob('*.json')) == ['a.WAV.json', 'a.wav.json', 'b.json']

    def test_output_path_is_existing_file(self, tmp_path, capsys):
        in_dir = tmp_path / 'in'
        in_dir.mkdir()
        _write_beats(in_dir / 'a.wav')
        _write_beats(in_dir / 'b.wav')
        blocker = tmp_path / 'out'
        blocker.write_text('x')

        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(in_dir), '--output', str(blocker)])

        assert exc_info.value.code == 1
        assert 'ERROR' in capsys.readouterr().err

    def test_per_rung_features(self, tmp_path):
        wav = _write_beats(tmp_path / 'beats.wav')

        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(wav), '--heavy-feature', 'bandwidth', '--medium-feature', 'rolloff'])

        assert exc_info.value.code == 0
        assert (tmp_path / 'beats.json').exists()

    def test_undecodable_file_fails(self, tmp_path, capsys):
        bad = tmp_path / 'bad.wav'
        bad.write_bytes(b'garbage')

        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(bad)])

        assert exc_info.value.code == 1
        assert 'ERROR' in capsys.readouterr().err

    def test_missing_input(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(tmp_path / 'nope.wav')])
        assert exc_info.value.code == 1

    def test_invalid_frame_length_is_usage_error(self, tmp_path):
        wav = _write_beats(tmp_path / 'beats.wav')
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(wav), '--frame-length', '500'])
        assert exc_info.value.code == 2

    def test_demo_requires_output(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(['--demo'])
        assert exc_info.value.code == 2

    def test_demo(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(['--demo', '--output', str(tmp_path)])

        assert exc_info.value.code == 0
        assert sorted(p.name for p in tmp_path.glob('*.json')) == [
            'demo_beats.json', 'demo_crescendo.json', 'demo_tone.json'
        ]
