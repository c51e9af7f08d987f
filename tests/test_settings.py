from dataclasses import replace

import pytest

from battery.errors import ConfigError
from config.settings import (
    BatteryConfig,
    DigitSpanConfig,
    FlankerConfig,
    InspectionTimeConfig,
    TimingConfig,
    quick,
)


class TestDefaults:
    def test_defaults_are_valid(self):
        cfg = BatteryConfig()
        cfg.timing.validate()
        cfg.inspection_time.validate()
        cfg.digit_span.validate()
        cfg.flanker.validate()

    def test_task_constants(self):
        cfg = BatteryConfig()
        assert (cfg.inspection_time.practice_trials, cfg.inspection_time.test_trials) == (7, 35)
        assert cfg.digit_span.practice_spans == (3, 4, 4)
        assert (cfg.flanker.practice_trials, cfg.flanker.test_trials) == (7, 25)


class TestValidation:
    @pytest.mark.parametrize(
        "cfg",
        [
            InspectionTimeConfig(exposure_min_ms=300, exposure_max_ms=200),
            InspectionTimeConfig(left_key="f", right_key="f"),
            InspectionTimeConfig(step_up_ms=-1),
            InspectionTimeConfig(exposure_start_test_ms=700),
            InspectionTimeConfig(exposure_start_practice_ms=5, exposure_min_ms=10),
            InspectionTimeConfig(mask_phases=0),
            DigitSpanConfig(trials_per_span=0),
            DigitSpanConfig(start_span=5, max_span=4),
            DigitSpanConfig(practice_spans=(3, 0)),
            FlankerConfig(test_trials=-1),
            FlankerConfig(max_rt_ms=0),
            TimingConfig(frame_ms=0),
        ],
    )
    def test_malformed_config_fails_fast(self, cfg):
        with pytest.raises(ConfigError):
            cfg.validate()

    def test_config_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            DigitSpanConfig(trials_per_span=0).validate()


class TestQuick:
    def test_quick_shortens_blocks(self):
        cfg = quick(BatteryConfig())
        assert cfg.inspection_time.test_trials == 4
        assert cfg.digit_span.max_span == 4
        assert cfg.flanker.test_trials == 4

    def test_quick_keeps_other_settings(self):
        base = BatteryConfig()
        base = replace(base, session=replace(base.session, seed=42))
        assert quick(base).session.seed == 42
