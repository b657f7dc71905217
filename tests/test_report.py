from __future__ import annotations
import numpy as np
import pytest
from conftest import camera_frame, sanitized
from limbuse.pipeline.pipeline import run_segment
from limbuse.pipeline.report import movement_summary, format_report, local_time, plot_view, plot_fused


def test_summary_rate_per_minute():
    t = np.arange(61.0)
    use = np.zeros(61, dtype=np.uint8)
    use[5:10] = 1
    use[20:30] = 1
    s = movement_summary(t, use)
    assert s["count"] == 2
    assert s["duration_min"] == pytest.approx(1.0)
    assert s["rate_per_min"] == pytest.approx(2.0)


def test_summary_without_duration():
    s = movement_summary(np.array([5.0]), np.array([1]))
    assert s["duration_min"] == 0.0
    assert np.isnan(s["rate_per_min"])


def test_format_report():
    line = format_report("Camera 1 RH", {"count": 12, "duration_min": 0.5, "rate_per_min": 24.0})
    assert line == "Camera 1 RH - Number of movements: 12 in 0.5 minutes (24 moves/min)"


def test_local_time_is_naive_wall_clock():
    idx = local_time(np.array([0.0, 3600.0]), tz="UTC")
    assert idx.tz is None
    assert str(idx[1]) == "1970-01-01 01:00:00"
    assert str(local_time(np.array([0.0]), tz="Australia/Brisbane")[0]) == "1970-01-01 10:00:00"


def test_plots_are_written(tmp_path):
    seg = run_segment([(1, sanitized(camera_frame(duration_s=6.0)))])
    cam = seg.cameras[0]
    p1 = tmp_path / "Camera1_RH.png"
    p2 = tmp_path / "nested" / "Combined_RH.png"
    fig = plot_view(cam.views["RH"], cam.threshold, out_path=p1)
    plot_fused(seg.fused["RH"], out_path=p2)
    assert fig.axes[0].get_title() == "Camera 1 - RH"
    assert p1.stat().st_size > 0
    assert p2.stat().st_size > 0
