from __future__ import annotations
import numpy as np
import pytest
from limbuse.pipeline.movement import (
    velocity_zero_crossings,
    filter_crossings,
    segment_writes,
    build_use_signal,
    detect_movement,
)
from limbuse.pipeline.segments import find_segments

FS = 30.0


def _time(n):
    return np.arange(n) / FS


def _pos_with(n, values: dict):
    p = np.zeros(n)
    for i, v in values.items():
        p[i] = v
    return p


def test_zero_crossings_need_strict_sign_change():
    vel = np.array([0.0, 1.0, 2.0, -1.0, -2.0, 3.0, np.nan, -1.0])
    assert velocity_zero_crossings(vel).tolist() == [2, 4]
    assert velocity_zero_crossings(np.array([1.0])).size == 0


def test_crossings_kept_by_either_neighbour():
    pos = _pos_with(40, {10: 0.0, 20: 10.0, 30: 10.5})
    thr = np.full(40, 100.0)
    kept = filter_crossings(np.array([10, 20, 30]), pos, thr, shoulder_ratio=0.05)
    assert kept.tolist() == [10, 20]


def test_lone_crossing_is_rejected():
    pos = _pos_with(40, {10: 50.0})
    assert filter_crossings(np.array([10]), pos, np.ones(40), 0.1).size == 0


def test_threshold_uses_value_at_the_candidate():
    pos = _pos_with(40, {10: 0.0, 20: 10.0})
    thr = np.full(40, 100.0)
    thr[20] = 1000.0
    # 10 >= 0.1 * 100 keeps the first; 10 < 0.1 * 1000 drops the second
    assert filter_crossings(np.array([10, 20]), pos, thr, 0.1).tolist() == [10]


def test_more_ratio_never_accepts_more_crossings():
    rng = np.random.default_rng(7)
    n = 600
    pos = np.cumsum(rng.normal(0, 3.0, n)) + 200
    vel = np.concatenate(([0.0], np.diff(pos) * FS))
    thr = 100 + 10 * np.sin(np.arange(n) / 50.0)
    cand = velocity_zero_crossings(vel)
    counts = [filter_crossings(cand, pos, thr, r).size for r in (0.01, 0.02, 0.05, 0.1, 0.2, 0.5, 1.0)]
    assert all(a >= b for a, b in zip(counts, counts[1:]))
    assert counts[0] > counts[-1]


def test_confirmed_reversal_splits_movements():
    n = 100
    pos = _pos_with(n, {10: 0.0, 30: 20.0, 60: 0.0})
    thr = np.full(n, 10.0)
    sig = build_use_signal(np.array([10, 30, 60]), pos, thr, 1.0, _time(n))
    assert find_segments(sig) == [(10, 29), (31, 59)]


def test_small_swing_is_absorbed_into_next_interval():
    n = 100
    pos = _pos_with(n, {10: 0.0, 30: 20.0, 40: 22.0, 70: 0.0})
    thr = np.full(n, 10.0)
    cross = np.array([10, 30, 40, 70])
    writes = list(segment_writes(cross, pos, thr, 1.0, _time(n)))
    assert writes == [(10, 30, 1), (30, 40, 0), (40, 70, 1), (40, 41, 0), (41, 70, 1)]
    sig = build_use_signal(cross, pos, thr, 1.0, _time(n))
    assert find_segments(sig) == [(10, 29), (41, 69)]


def test_small_swing_at_last_pair_only_switches_off():
    n = 60
    pos = _pos_with(n, {10: 0.0, 30: 20.0, 40: 22.0})
    sig = build_use_signal(np.array([10, 30, 40]), pos, np.full(n, 10.0), 1.0, _time(n))
    assert find_segments(sig) == [(10, 29)]


def test_fewer_than_two_crossings_means_no_movement():
    n = 30
    assert not build_use_signal(np.array([5]), np.zeros(n), np.ones(n), 0.2, _time(n)).any()
    assert not build_use_signal(np.array([], dtype=int), np.zeros(n), np.ones(n), 0.2, _time(n)).any()


def test_reversal_after_start_gives_single_movement():
    # 3 s at 30 Hz; the trace opens on a reversal and reverses again at sample 40
    n = 90
    idx = np.arange(n)
    pos = np.where(idx <= 40, 1.25 * idx, 50.0 - (idx - 40.0))
    vel = np.ones(n)
    vel[0] = -1.0
    vel[41:] = -1.0
    thr = np.full(n, 100.0)
    res = detect_movement(pos, vel, thr, _time(n), shoulder_ratio=0.2,
                          max_allowed_gap=6, too_fast=3, too_slow=90)
    assert res.crossings.tolist() == [0, 40]
    assert find_segments(res.use_signal) == [(0, 39)]
    assert res.use_signal.dtype == np.uint8
    assert np.allclose(res.t_cross, [0.0, 40 / FS])
    assert np.allclose(res.pos_cross, [0.0, 50.0])


def test_single_reversal_from_rest_is_not_a_movement():
    n = 90
    idx = np.arange(n)
    pos = np.where(idx <= 40, 1.25 * idx, 50.0 - (idx - 40.0))
    vel = np.concatenate(([0.0], np.diff(pos) * FS))
    res = detect_movement(pos, vel, np.full(n, 100.0), _time(n), 0.2, 6, 3, 90)
    assert res.n_candidates == 1
    assert res.crossings.size == 0
    assert not res.use_signal.any()


def test_quality_rules_applied_to_detected_movements():
    n = 200
    t = _time(n)
    pos = 100 + 40 * np.sin(2 * np.pi * 0.5 * t)
    vel = np.concatenate(([0.0], np.diff(pos) / np.diff(t)))
    thr = np.full(n, 100.0)
    res = detect_movement(pos, vel, thr, t, 0.2, 6, 3, 90)
    # extrema of the 0.5 Hz swing every 30 samples, first at 0.5 s
    assert res.crossings.tolist() == [15, 45, 75, 105, 135, 165, 195]
    assert find_segments(res.use_signal)[:2] == [(15, 44), (46, 74)]
    assert np.array_equal(res.raw_signal, res.use_signal)
    gappy = pos.copy()
    gappy[50:60] = np.nan
    res_gap = detect_movement(gappy, vel, thr, t, 0.2, 6, 3, 90)
    assert res_gap.crossings.tolist() == res.crossings.tolist()
    segs = find_segments(res_gap.use_signal)
    assert (46, 74) not in segs
    assert len(segs) == len(find_segments(res.use_signal)) - 1


def test_detect_movement_rejects_mismatched_inputs():
    with pytest.raises(ValueError):
        detect_movement(np.zeros(10), np.zeros(9), np.zeros(10), np.zeros(10), 0.2, 6, 3, 90)
