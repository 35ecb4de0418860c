"""
Calibrated elevation angle estimation.

This module converts accelerometer (and optional gyroscope) samples into
elevation angles using two independent algorithms:
- Algorithm 1: exponential smoothing of the calibrated accelerometer angle
- Algorithm 2: complementary filter blending integrated angular rate with
  the calibrated accelerometer angle
"""

import logging
import threading
from dataclasses import replace
from typing import Optional
import numpy as np

from .data_structures import Axis, Vector3, CalibrationState, FilterState, ProcessedSample

ZERO_REFERENCE_TOLERANCE_DEG = 1.0
NINETY_REFERENCE_TOLERANCE_DEG = 2.0
MIN_REFERENCE_SPAN_DEG = 1e-6


def _clamp(value: float, low: float, high: float) -> float:
    """Clamp value to [low, high]; NaN is treated as 0."""
    if np.isnan(value):
        value = 0.0
    return float(min(max(value, low), high))


def _unit_interval(value: float) -> float:
    return _clamp(value, 0.0, 1.0)


class CalibratedAngleEstimator:
    """Estimator for the elevation angle of a limb-mounted inertial sensor."""

    def __init__(self,
                 smoothing_alpha: float = 0.2,
                 complementary_beta: float = 0.98,
                 elevation_axis: Axis = Axis.Z,
                 gyro_axis: Axis = Axis.Z,
                 invert_angle: bool = False):
        """
        Initialize the estimator.

        Args:
            smoothing_alpha: Weight of the newest sample in Algorithm 1 (clamped to [0, 1])
            complementary_beta: Weight of the gyro-integrated term in Algorithm 2 (clamped to [0, 1])
            elevation_axis: Accelerometer axis that points along gravity at 0° elevation
            gyro_axis: Gyroscope axis the elevation rotates about
            invert_angle: Report 180° minus the geometric angle
        """
        self.smoothing_alpha = _unit_interval(smoothing_alpha)
        self.complementary_beta = _unit_interval(complementary_beta)
        self.elevation_axis = Axis.parse(elevation_axis)
        self.gyro_axis = Axis.parse(gyro_axis)
        self.invert_angle = invert_angle

        self.calibration = CalibrationState()
        self.filter_state = FilterState()
        self._sequence = 0
        self._elevation_unit = Vector3.unit(self.elevation_axis)

        self.lock = threading.RLock()
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config) -> 'CalibratedAngleEstimator':
        """Create an estimator from a ProcessorConfig."""
        return cls(
            smoothing_alpha=config.smoothing_alpha,
            complementary_beta=config.complementary_beta,
            elevation_axis=config.elevation_axis,
            gyro_axis=config.gyro_axis,
            invert_angle=config.invert_angle
        )

    # ----------------------- Session state -----------------------

    def reset_filters(self) -> None:
        """Clear filter history at the start of a measurement session. Calibration is kept."""
        with self.lock:
            self.filter_state.reset()
            self._sequence = 0
        self.logger.debug("Filter state reset")

    def reset_all(self) -> None:
        """Clear filter history and discard calibration."""
        with self.lock:
            self.filter_state.reset()
            self._sequence = 0
            self.calibration.reset()
        self.logger.debug("Filter state and calibration reset")

    # ----------------------- Calibration -----------------------

    def capture_calibration_point(self, accel: Vector3, expected_angle_deg: float) -> CalibrationState:
        """
        Capture a calibration reference from a static accelerometer reading.

        Readings taken at (or below) 0° set the zero point, readings within 2° of
        90° set the ninety point. With both points the calibration becomes a
        two-point linear map; with only one it is an offset-only correction.

        Args:
            accel: Accelerometer reading while holding the reference posture
            expected_angle_deg: Angle the posture is known to have

        Returns:
            Snapshot of the resulting calibration
        """
        with self.lock:
            raw = self.raw_angle(accel)
            state = self.calibration

            if expected_angle_deg <= ZERO_REFERENCE_TOLERANCE_DEG:
                state.raw_angle_at_zero = raw
            if abs(expected_angle_deg - 90.0) <= NINETY_REFERENCE_TOLERANCE_DEG:
                state.raw_angle_at_ninety = raw

            if state.raw_angle_at_zero is not None:
                state.offset_deg = state.raw_angle_at_zero
            else:
                state.offset_deg = raw - expected_angle_deg

            if state.raw_angle_at_zero is not None and state.raw_angle_at_ninety is not None:
                span = state.raw_angle_at_ninety - state.raw_angle_at_zero
                state.scale = 90.0 / span if abs(span) > MIN_REFERENCE_SPAN_DEG else 1.0
            else:
                state.scale = 1.0

            snapshot = replace(state)

        self.logger.info(f"Calibration point captured at {expected_angle_deg:.1f}° (raw {raw:.2f}°). "
                         f"Offset: {snapshot.offset_deg:.3f}, Scale: {snapshot.scale:.4f}")
        return snapshot

    def set_calibration(self, offset_deg: float, scale: float) -> None:
        """Restore a previously computed calibration, bypassing capture."""
        with self.lock:
            self.calibration.offset_deg = offset_deg
            self.calibration.scale = scale
        self.logger.info(f"Calibration set. Offset: {offset_deg:.3f}, Scale: {scale:.4f}")

    def get_calibration(self) -> CalibrationState:
        """Get a copy of the current calibration."""
        with self.lock:
            return replace(self.calibration)

    # ----------------------- Angle extraction -----------------------

    def raw_angle(self, accel: Vector3) -> float:
        """Geometric angle (degrees) between the acceleration and the elevation axis."""
        cosine = self._elevation_unit.dot(accel.normalized())
        if np.isnan(cosine):
            cosine = 0.0
        cosine = _clamp(cosine, -1.0, 1.0)

        angle = float(np.degrees(np.arccos(cosine)))
        if self.invert_angle:
            angle = 180.0 - angle
        return _clamp(angle, 0.0, 180.0)

    def calibrated_angle(self, raw_angle: float) -> float:
        """Apply the current offset/scale to a raw angle."""
        corrected = (raw_angle - self.calibration.offset_deg) * self.calibration.scale
        return _clamp(corrected, 0.0, 180.0)

    # ----------------------- Processing -----------------------

    def process(self, accel: Vector3, angular_rate: Optional[Vector3], timestamp: float) -> ProcessedSample:
        """
        Process one fused observation.

        Args:
            accel: Linear acceleration (m/s²)
            angular_rate: Angular rate (rad/s) paired with this sample, or None
            timestamp: Sample time (seconds)

        Returns:
            Processed sample with both algorithm outputs
        """
        with self.lock:
            raw = self.raw_angle(accel)
            calibrated = self.calibrated_angle(raw)

            smoothed = self._exponential_smoothing(calibrated)
            fused = self._complementary(calibrated, angular_rate, timestamp)

            sample = ProcessedSample(
                identity=self._identity(timestamp),
                timestamp=timestamp,
                angle_algorithm1=smoothed,
                angle_algorithm2=fused,
                raw_angle=raw,
                calibrated_angle=calibrated,
                sequence=self._sequence,
                has_angular_rate=angular_rate is not None
            )
            self._sequence += 1
            return sample

    def _exponential_smoothing(self, value: float) -> float:
        previous = self.filter_state.previous_smoothed
        if previous is None:
            smoothed = value
        else:
            smoothed = self.smoothing_alpha * value + (1 - self.smoothing_alpha) * previous
        self.filter_state.previous_smoothed = smoothed
        return smoothed

    def _complementary(self, accel_angle: float, angular_rate: Optional[Vector3], timestamp: float) -> float:
        state = self.filter_state

        dt = 0.0
        if state.previous_timestamp is not None:
            dt = timestamp - state.previous_timestamp
            if not dt > 0:
                dt = 0.0
        state.previous_timestamp = timestamp

        previous = state.previous_fused if state.previous_fused is not None else accel_angle

        # Without a paired rate (or elapsed time) the gyro term holds its last value
        gyro_angle = previous
        if angular_rate is not None and dt > 0:
            rate = angular_rate.component_along(self.gyro_axis)
            if np.isnan(rate):
                rate = 0.0
            gyro_angle = previous + float(np.degrees(rate * dt))

        beta = self.complementary_beta
        fused = _clamp(beta * gyro_angle + (1 - beta) * accel_angle, 0.0, 180.0)
        state.previous_fused = fused
        return fused

    @staticmethod
    def _identity(timestamp: float) -> int:
        """Millisecond timestamp used as the sample identifier."""
        millis = timestamp * 1000.0
        if not np.isfinite(millis):
            return 0
        # Halves round away from zero
        return int(np.copysign(np.floor(abs(millis) + 0.5), millis))

    def get_state_info(self):
        """Get estimator state for debugging."""
        with self.lock:
            return {
                'smoothing_alpha': self.smoothing_alpha,
                'complementary_beta': self.complementary_beta,
                'elevation_axis': self.elevation_axis.value,
                'gyro_axis': self.gyro_axis.value,
                'invert_angle': self.invert_angle,
                'offset_deg': self.calibration.offset_deg,
                'scale': self.calibration.scale,
                'previous_smoothed': self.filter_state.previous_smoothed,
                'previous_fused': self.filter_state.previous_fused,
                'previous_timestamp': self.filter_state.previous_timestamp,
                'samples_in_session': self._sequence
            }
