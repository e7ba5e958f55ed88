"""
test_search.py — elevation bisection search
"""

import numpy as np
import pytest

from astrosight import ConvergenceError, VisibilityError
from astrosight.errors import ErrorCode
from astrosight.search import find_elevation_time

SAMPLES = np.arange(0.0, 1001.0, 60.0)


def linear_sine(t):
    return t / 1000.0


def test_finds_crossing_within_epsilon():
    target = np.arcsin(0.45)
    t = find_elevation_time(linear_sine, 0.0, SAMPLES, target, epsilon=1.0)
    assert t == pytest.approx(450.0, abs=1.0)


def test_tighter_epsilon():
    target = np.arcsin(0.3)
    t = find_elevation_time(linear_sine, 10.0, SAMPLES, target, epsilon=1e-3)
    assert t == pytest.approx(300.0, abs=1e-3)


def test_bracket_starts_at_rise():
    # samples before the rise are ignored even if they exceed the target
    def dip(t):
        return 1.0 if t < 100.0 else (t - 100.0) / 1000.0

    t = find_elevation_time(dip, 100.0, SAMPLES, np.arcsin(0.2))
    assert t == pytest.approx(300.0, abs=1.0)


def test_target_never_reached():
    with pytest.raises(VisibilityError) as err:
        find_elevation_time(linear_sine, 0.0, SAMPLES, np.deg2rad(80.0))
    assert err.value.code is ErrorCode.LANDMARK_NOT_IN_SIGHT


def test_iteration_cap_is_a_failure():
    with pytest.raises(ConvergenceError) as err:
        find_elevation_time(linear_sine, 0.0, SAMPLES, np.arcsin(0.45),
                            epsilon=1e-9, max_iterations=2)
    assert err.value.code is ErrorCode.NO_CONVERGENCE
