"""Tests for Vector3, Axis and the state dataclasses."""

import math

import numpy as np
import pytest

from arm_elevation import Axis, CalibrationState, FilterState, Vector3


def test_normalized_has_unit_magnitude():
    """Normalizing non-zero vectors gives unit vectors."""
    for v in (Vector3(3.0, 4.0, 0.0), Vector3(-1e-3, 2e-3, 5e-4), Vector3(1e6, -2e6, 3e6)):
        assert v.normalized().magnitude() == pytest.approx(1.0)


def test_normalized_zero_vector_is_zero():
    n = Vector3.zero().normalized()
    assert n == Vector3(0.0, 0.0, 0.0)
    assert n.magnitude() == 0.0


def test_normalized_nan_vector_does_not_raise():
    n = Vector3(math.nan, 0.0, 0.0).normalized()
    assert n == Vector3.zero()


def test_magnitude_and_dot():
    v = Vector3(1.0, 2.0, 2.0)
    assert v.magnitude() == pytest.approx(3.0)
    assert v.dot(Vector3(2.0, 0.0, -1.0)) == pytest.approx(0.0)


def test_component_along_axis():
    v = Vector3(1.5, -2.5, 9.0)
    assert v.component_along(Axis.X) == 1.5
    assert v.component_along(Axis.Y) == -2.5
    assert v.component_along(Axis.Z) == 9.0


def test_addition():
    assert Vector3(1.0, 2.0, 3.0) + Vector3(-1.0, 0.5, 1.0) == Vector3(0.0, 2.5, 4.0)


def test_unit_vectors():
    assert Vector3.unit(Axis.X) == Vector3(1.0, 0.0, 0.0)
    assert Vector3.unit(Axis.Y) == Vector3(0.0, 1.0, 0.0)
    assert Vector3.unit(Axis.Z) == Vector3(0.0, 0.0, 1.0)


def test_numpy_conversion():
    v = Vector3.from_numpy(np.array([1.0, 2.0, 3.0]))
    assert v == Vector3(1.0, 2.0, 3.0)
    np.testing.assert_array_equal(v.to_numpy(), [1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        Vector3.from_numpy(np.array([1.0, 2.0]))


def test_vector_is_immutable():
    v = Vector3(1.0, 2.0, 3.0)
    with pytest.raises(AttributeError):
        v.x = 5.0


def test_axis_parse():
    assert Axis.parse("X") is Axis.X
    assert Axis.parse(" y ") is Axis.Y
    assert Axis.parse(Axis.Z) is Axis.Z
    with pytest.raises(ValueError):
        Axis.parse("w")


def test_calibration_state_reset():
    state = CalibrationState(offset_deg=12.0, scale=0.9, raw_angle_at_zero=12.0, raw_angle_at_ninety=112.0)
    assert not state.is_identity()
    state.reset()
    assert state == CalibrationState()
    assert state.is_identity()


def test_filter_state_reset():
    state = FilterState(previous_smoothed=1.0, previous_fused=2.0, previous_timestamp=3.0)
    assert not state.is_empty()
    state.reset()
    assert state.is_empty()
