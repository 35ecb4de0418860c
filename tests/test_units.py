"""Tests for device unit conversion."""

import math

import pytest

from arm_elevation import AccelUnit, GyroUnit, Vector3, convert_acceleration, convert_angular_rate
from arm_elevation.units import device_timestamp_seconds


def test_milli_g_to_meters_per_second_squared():
    v = convert_acceleration(0.0, -500.0, 1000.0, AccelUnit.MILLI_G)
    assert v.x == 0.0
    assert v.y == pytest.approx(-4.905)
    assert v.z == pytest.approx(9.81)


def test_g_to_meters_per_second_squared():
    v = convert_acceleration(1.0, 0.0, -2.0, AccelUnit.G)
    assert v == Vector3(pytest.approx(9.81), 0.0, pytest.approx(-19.62))


def test_meters_per_second_squared_passes_through():
    assert convert_acceleration(1.0, 2.0, 3.0, AccelUnit.METERS_PER_SECOND_SQUARED) == Vector3(1.0, 2.0, 3.0)


def test_degrees_per_second_to_radians():
    v = convert_angular_rate(180.0, -90.0, 0.0, GyroUnit.DEGREES_PER_SECOND)
    assert v.x == pytest.approx(math.pi)
    assert v.y == pytest.approx(-math.pi / 2)
    assert v.z == 0.0


def test_radians_per_second_passes_through():
    assert convert_angular_rate(0.1, 0.2, 0.3, GyroUnit.RADIANS_PER_SECOND) == Vector3(0.1, 0.2, 0.3)


def test_device_timestamp_seconds():
    assert device_timestamp_seconds(1_500_000_000) == pytest.approx(1.5)
