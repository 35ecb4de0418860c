"""
Data structures for arm elevation estimation.

This module defines the value types shared by the estimator, the stream
synchronizer and the acquisition layer:
- 3-component vectors for acceleration (m/s²) and angular rate (rad/s)
- Per-session calibration and filter state
- Processed angle samples
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import numpy as np


class Axis(Enum):
    """Sensor axis used for elevation and angular-rate projection."""
    X = "x"
    Y = "y"
    Z = "z"

    @classmethod
    def parse(cls, value) -> 'Axis':
        """Accept an Axis or a case-insensitive axis name."""
        if isinstance(value, Axis):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid axis: {value!r} (expected one of x, y, z)")


@dataclass(frozen=True)
class Vector3:
    """Immutable 3-component vector."""
    x: float
    y: float
    z: float

    @classmethod
    def zero(cls) -> 'Vector3':
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def unit(cls, axis: Axis) -> 'Vector3':
        """Unit vector along the given axis."""
        return cls(
            1.0 if axis is Axis.X else 0.0,
            1.0 if axis is Axis.Y else 0.0,
            1.0 if axis is Axis.Z else 0.0,
        )

    def magnitude(self) -> float:
        return float(np.linalg.norm(self.to_numpy()))

    def normalized(self) -> 'Vector3':
        """Unit vector in the same direction, or the zero vector if magnitude is zero."""
        m = self.magnitude()
        if m > 0:
            return Vector3(self.x / m, self.y / m, self.z / m)
        return Vector3.zero()

    def dot(self, other: 'Vector3') -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def component_along(self, axis: Axis) -> float:
        return getattr(self, axis.value)

    def __add__(self, other: 'Vector3') -> 'Vector3':
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def to_numpy(self) -> np.ndarray:
        """Convert vector to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_numpy(cls, data: np.ndarray) -> 'Vector3':
        """Create Vector3 from a 3-element array."""
        if len(data) != 3:
            raise ValueError("Data array must have 3 elements: [x, y, z]")
        return cls(float(data[0]), float(data[1]), float(data[2]))


@dataclass
class CalibrationState:
    """Two-point linear calibration applied to the raw elevation angle."""

    # Subtracted from the raw angle (degrees)
    offset_deg: float = 0.0

    # Multiplied after the offset is removed
    scale: float = 1.0

    # Raw angles captured at the 0° and 90° reference postures
    raw_angle_at_zero: Optional[float] = None
    raw_angle_at_ninety: Optional[float] = None

    def reset(self) -> None:
        """Return to the identity calibration."""
        self.offset_deg = 0.0
        self.scale = 1.0
        self.raw_angle_at_zero = None
        self.raw_angle_at_ninety = None

    def is_identity(self) -> bool:
        return self.offset_deg == 0.0 and self.scale == 1.0


@dataclass
class FilterState:
    """Running state of both angle filters within one measurement session."""
    previous_smoothed: Optional[float] = None
    previous_fused: Optional[float] = None
    previous_timestamp: Optional[float] = None

    def reset(self) -> None:
        self.previous_smoothed = None
        self.previous_fused = None
        self.previous_timestamp = None

    def is_empty(self) -> bool:
        return (self.previous_smoothed is None and
                self.previous_fused is None and
                self.previous_timestamp is None)


@dataclass(frozen=True)
class ProcessedSample:
    """Angle estimates produced for one fused observation."""

    # round(timestamp * 1000); may collide for samples within the same millisecond
    identity: int

    # Seconds, taken from the acceleration sample
    timestamp: float

    # Exponential smoothing output (degrees)
    angle_algorithm1: float

    # Complementary gyro/accelerometer fusion output (degrees)
    angle_algorithm2: float

    # Uncalibrated and calibrated accelerometer angles (degrees)
    raw_angle: float = 0.0
    calibrated_angle: float = 0.0

    # Position within the session, starting at 0
    sequence: int = 0

    # Whether an angular-rate sample was paired with this observation
    has_angular_rate: bool = False
