"""
Configuration Tests

Module defaults in config.py and the HapticConfig dataclasses must agree,
and invalid parameter combinations must be rejected up front.
"""

import pytest

import config
from haptick.errors import InvalidFrameSize
from haptick.kernel_params import DEFAULT_CONFIG, HapticConfig, validate_config


class TestDefaults:

    def test_module_config_valid(self):
        assert config.validate_config()

    def test_defaults_agree(self):
        params = DEFAULT_CONFIG.to_dict()
        assert params['fps'] == config.FPS
        assert params['frame_length'] == config.FRAME_LENGTH
        assert params['window_size'] == config.SMOOTHING_WINDOW
        assert params['rolloff_threshold'] == config.ROLLOFF_THRESHOLD
        assert params['threshold_k'] == config.THRESHOLD_K
        assert params['threshold_basis'] == config.THRESHOLD_BASIS
        assert params['intensity_floor'] == config.INTENSITY_FLOOR
        assert params['intensity_gain'] == config.INTENSITY_GAIN
        assert params['decimate'] == config.DECIMATE
        assert params['classification_thresholds'] == config.CLASSIFICATION_THRESHOLDS

    def test_helpers(self):
        assert config.get_frame_duration(44100, 512) == pytest.approx(512 / 44100)
        assert config.get_bin_width(22050, 512) == pytest.approx(22050 / 512)


class TestValidateConfig:

    def test_bad_frame_length(self):
        with pytest.raises(InvalidFrameSize):
            validate_config(HapticConfig.from_options(frame_length=1000))

    @pytest.mark.parametrize('options', [
        {'fps': 0},
        {'window_size': 10},
        {'window_size': 0},
        {'rolloff_threshold': 0.0},
        {'threshold_k': -1.0},
        {'threshold_basis': 'loudness'},
        {'intensity_floor': 1.5},
        {'intensity_gain': 0.0},
        {'secondary_feature': 'flux'},
        {'heavy_secondary_feature': 'flux'},
        {'medium_secondary_feature': 'flux'},
        {'sharpness_feature': 'rolloff'},
        {'n_workers': 0},
    ])
    def test_rejects_invalid_values(self, options):
        with pytest.raises(ValueError):
            validate_config(HapticConfig.from_options(**options))

    def test_cut_points_as_options(self):
        cfg = HapticConfig.from_options(heavy_rms=0.8, light_rms=0.1)
        thresholds = cfg.classification.get_thresholds()
        assert thresholds['heavy_rms'] == 0.8
        assert thresholds['light_rms'] == 0.1
        assert thresholds['medium_rms'] == 0.4

    def test_rung_features_fall_back_to_secondary(self):
        cfg = HapticConfig.from_options(secondary_feature='rolloff')
        assert cfg.classification.rung_features() == ('rolloff', 'rolloff')

        cfg = cfg.with_options(heavy_secondary_feature='bandwidth', medium_secondary_feature='centroid')
        validate_config(cfg)
        assert cfg.classification.rung_features() == ('bandwidth', 'centroid')
        assert cfg.to_dict()['medium_secondary_feature'] == 'centroid'

    def test_config_is_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_CONFIG.events.fps = 30
