"""Conversion of device units to the physical units the estimator expects."""

from enum import Enum
import numpy as np

from .data_structures import Vector3

STANDARD_GRAVITY = 9.81  # m/s²


class AccelUnit(Enum):
    """Units an acceleration source may report in."""
    MILLI_G = "milli_g"
    G = "g"
    METERS_PER_SECOND_SQUARED = "m/s2"


class GyroUnit(Enum):
    """Units an angular-rate source may report in."""
    DEGREES_PER_SECOND = "deg/s"
    RADIANS_PER_SECOND = "rad/s"


def convert_acceleration(x: float, y: float, z: float, unit: AccelUnit) -> Vector3:
    """Convert an acceleration reading to m/s²."""
    if unit is AccelUnit.MILLI_G:
        k = STANDARD_GRAVITY / 1000.0
    elif unit is AccelUnit.G:
        k = STANDARD_GRAVITY
    elif unit is AccelUnit.METERS_PER_SECOND_SQUARED:
        k = 1.0
    else:
        raise ValueError(f"Unsupported acceleration unit: {unit}")
    return Vector3(x * k, y * k, z * k)


def convert_angular_rate(x: float, y: float, z: float, unit: GyroUnit) -> Vector3:
    """Convert an angular-rate reading to rad/s."""
    if unit is GyroUnit.DEGREES_PER_SECOND:
        return Vector3.from_numpy(np.radians([x, y, z]))
    elif unit is GyroUnit.RADIANS_PER_SECOND:
        return Vector3(x, y, z)
    raise ValueError(f"Unsupported angular-rate unit: {unit}")


def device_timestamp_seconds(timestamp_ns: int) -> float:
    """Convert a device timestamp in nanoseconds to seconds."""
    return timestamp_ns / 1_000_000_000.0
