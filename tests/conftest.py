"""Shared fixtures for arm elevation tests."""

import os
import sys

import numpy as np
import pytest

# Allow running the tests from a checkout without installing the package
SRC_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from arm_elevation import CalibratedAngleEstimator, StreamSynchronizer, Vector3  # noqa: E402


def accel_at(angle_deg: float, magnitude: float = 9.81) -> Vector3:
    """Acceleration whose angle to the Z axis is `angle_deg`, rotated in the Y-Z plane."""
    theta = np.radians(angle_deg)
    return Vector3(0.0, magnitude * np.sin(theta), magnitude * np.cos(theta))


@pytest.fixture
def estimator():
    return CalibratedAngleEstimator()


@pytest.fixture
def synchronizer(estimator):
    return StreamSynchronizer(estimator)
