"""
Audio I/O Tests

Tests for the file-backed audio source. WAV fixtures are written on the fly
into tmp_path, so no audio files live in the repository.
"""

import pytest
import numpy as np
from scipy.io import wavfile

from haptick import audio_io
from haptick.errors import AudioSourceUnavailable
from haptick.synthetic import generate_sine


def _write_wav(path, audio, sr):
    wavfile.write(str(path), sr, (np.clip(audio, -1, 1) * 32767).astype(np.int16))
    return path


class TestLoadSampleBuffer:

    def test_mono_wav(self, tmp_path):
        sr = 22050
        audio = generate_sine(duration=1.0, sr=sr, amplitude=0.5)
        path = _write_wav(tmp_path / 'tone.wav', audio, sr)

        buffer = audio_io.load_sample_buffer(path)

        assert buffer.sample_rate == sr
        assert buffer.sample_count == len(audio)
        assert buffer.duration == pytest.approx(1.0)
        np.testing.assert_allclose(buffer.samples, audio, atol=1e-3)

    def test_stereo_wav_is_downmixed(self, tmp_path):
        sr = 22050
        left = generate_sine(duration=0.5, sr=sr, amplitude=0.5)
        stereo = np.stack([left, np.zeros_like(left)], axis=1)
        path = _write_wav(tmp_path / 'stereo.wav', stereo, sr)

        buffer = audio_io.load_sample_buffer(path)

        assert buffer.samples.ndim == 1
        assert np.max(np.abs(buffer.samples)) == pytest.approx(0.25, abs=1e-2)

    def test_resample_on_load(self, tmp_path):
        path = _write_wav(tmp_path / 'tone.wav', generate_sine(duration=1.0, sr=22050), 22050)
        buffer = audio_io.load_sample_buffer(path, target_sr=11025)

        assert buffer.sample_rate == 11025
        assert abs(buffer.sample_count - 11025) <= 2

    def test_peak_normalization(self, tmp_path):
        path = _write_wav(tmp_path / 'quiet.wav', generate_sine(duration=0.5, sr=22050, amplitude=0.25), 22050)
        buffer = audio_io.load_sample_buffer(path, normalize_method='peak')
        assert np.max(np.abs(buffer.samples)) == pytest.approx(1.0)

    def test_missing_file(self, tmp_path):
        with pytest.raises(AudioSourceUnavailable):
            audio_io.load_sample_buffer(tmp_path / 'missing.wav')

    def test_missing_file_is_os_error(self, tmp_path):
        with pytest.raises(OSError):
            audio_io.load_audio(tmp_path / 'missing.wav')

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / 'garbage.wav'
        path.write_bytes(b'not audio at all')
        with pytest.raises(AudioSourceUnavailable):
            audio_io.load_audio(path)


class TestHelpers:

    def test_downmix_methods(self):
        channels_first = np.stack([np.ones(100), np.zeros(100)])

        np.testing.assert_allclose(audio_io.downmix_channels(channels_first), 0.5)
        np.testing.assert_allclose(audio_io.downmix_channels(channels_first, 'left'), 1.0)
        np.testing.assert_allclose(audio_io.downmix_channels(channels_first, 'right'), 0.0)

    def test_downmix_mono_passthrough(self):
        mono = np.arange(5, dtype=np.float32)
        assert audio_io.downmix_channels(mono) is mono

    def test_downmix_rejects_method(self):
        with pytest.raises(ValueError):
            audio_io.downmix_channels(np.zeros(10), method='center')

    def test_left_channel_on_load(self, tmp_path):
        sr = 22050
        left = generate_sine(duration=0.5, sr=sr, amplitude=0.5)
        path = _write_wav(tmp_path / 'stereo.wav', np.stack([left, np.zeros_like(left)], axis=1), sr)

        samples, _ = audio_io.load_audio(path, downmix='left')
        assert np.max(np.abs(samples)) == pytest.approx(0.5, abs=1e-2)

    def test_normalize_silence(self):
        audio, factor = audio_io.normalize_audio(np.zeros(10), 'peak')
        assert factor == 1.0
        np.testing.assert_array_equal(audio, 0.0)

    def test_normalize_unknown_method(self):
        with pytest.raises(ValueError):
            audio_io.normalize_audio(np.ones(10), 'loudness')

    def test_validate_rejects_non_finite(self):
        audio = np.ones(100)
        audio[5] = np.nan
        with pytest.raises(ValueError):
            audio_io.validate_audio(audio, 22050)

    def test_validate_rejects_long_audio(self):
        with pytest.raises(ValueError):
            audio_io.validate_audio(np.zeros(22050 * 3), 22050, max_duration=2.0)
