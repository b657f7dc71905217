import numpy as np
import pandas as pd
import pytest
from limbuse.math.geometry import euclidean, marker_distances, shoulder_distance, backward_velocity


def test_euclidean_propagates_gaps():
    d = euclidean([3.0, np.nan], [4.0, 1.0])
    assert d[0] == pytest.approx(5.0)
    assert np.isnan(d[1])


def test_marker_distances_for_each_limb():
    df = pd.DataFrame({
        "6_x": [0.0], "6_y": [0.0],
        "7_x": [10.0], "7_y": [0.0],
        "10_x": [0.0], "10_y": [4.0],
        "11_x": [13.0], "11_y": [4.0],
    })
    to_origin, to_shoulder = marker_distances(df, "RH")
    assert to_origin[0] == pytest.approx(np.hypot(13.0, 4.0))
    assert to_shoulder[0] == pytest.approx(5.0)
    to_origin, to_shoulder = marker_distances(df, "LH")
    assert to_origin[0] == pytest.approx(4.0)
    assert to_shoulder[0] == pytest.approx(4.0)
    assert shoulder_distance(df)[0] == pytest.approx(10.0)
    with pytest.raises(ValueError):
        marker_distances(df, "RF")
    with pytest.raises(KeyError):
        marker_distances(df.drop(columns=["11_x"]), "RH")


def test_backward_velocity_starts_at_zero():
    t = np.array([0.0, 0.5, 1.0, 2.0])
    p = np.array([1.0, 2.0, np.nan, 6.0])
    v = backward_velocity(p, t)
    assert v[0] == 0.0
    assert v[1] == pytest.approx(2.0)
    assert np.isnan(v[2]) and np.isnan(v[3])
    with pytest.raises(ValueError):
        backward_velocity(p, t[:3])
