from __future__ import annotations
import pytest
from limbuse.config.detection import DetectionConfig


def test_defaults_in_samples():
    cfg = DetectionConfig()
    assert cfg.max_allowed_gap == 6
    assert cfg.too_fast == pytest.approx(3.0)
    assert cfg.too_slow == pytest.approx(90.0)


def test_durations_follow_sampling_rate():
    cfg = DetectionConfig(fs_hz=60.0)
    assert cfg.max_allowed_gap == 12
    assert cfg.too_slow == pytest.approx(180.0)


@pytest.mark.parametrize("kwargs", [
    {"fs_hz": 0.0},
    {"order": 0},
    {"cutoff_hz": 15.0},
    {"threshold_cutoff_hz": 0.0},
    {"shoulder_ratio": 0.0},
    {"shoulder_ratio": 1.2},
    {"max_gap_s": 0.01},
    {"too_fast_s": 3.0, "too_slow_s": 3.0},
])
def test_invalid_values_raise(kwargs):
    with pytest.raises(ValueError):
        DetectionConfig(**kwargs)


def test_from_options_ignores_none_and_unknown_keys():
    cfg = DetectionConfig.from_options({"shoulder_ratio": 0.3, "max_gap_s": None, "colour": "red"})
    assert cfg.shoulder_ratio == pytest.approx(0.3)
    assert cfg.max_gap_s == pytest.approx(0.2)
    assert DetectionConfig.from_options(None).as_dict() == DetectionConfig().as_dict()


def test_settings_overrides_win_over_environment():
    from limbuse.config.settings import Settings
    s = Settings(shoulder_ratio=0.4, max_gap_s=None)
    opts = s.detection_options(shoulder_ratio=0.5, too_fast_s=None)
    assert opts["shoulder_ratio"] == 0.5
    assert opts["too_fast_s"] == s.too_fast_s
    assert Settings(shoulder_ratio=0.4).detection_options()["shoulder_ratio"] == 0.4


def test_settings_carry_filter_overrides():
    from limbuse.config.settings import Settings
    opts = Settings(order=4.0, cutoff_hz=4.0, threshold_cutoff_hz=0.1).detection_options(cutoff_hz=3.0)
    cfg = DetectionConfig.from_options(opts)
    assert cfg.order == 4
    assert cfg.cutoff_hz == pytest.approx(3.0)
    assert cfg.threshold_cutoff_hz == pytest.approx(0.1)
