"""
Alignment of the acceleration and angular-rate streams.

Acceleration is the reference clock: every acceleration sample produces exactly
one fused observation. The most recent angular-rate sample is attached when it
lies within the fusion window, otherwise the observation carries no rate and the
complementary filter holds its gyro term.
"""

import logging
import threading
from typing import Callable, List, Optional

from .data_structures import Vector3, ProcessedSample
from .processor import CalibratedAngleEstimator

DEFAULT_FUSION_WINDOW = 0.05  # seconds

SampleObserver = Callable[[ProcessedSample], None]


class StreamSynchronizer:
    """Pairs acceleration samples with contemporaneous angular-rate samples."""

    def __init__(self, estimator: CalibratedAngleEstimator, fusion_window: float = DEFAULT_FUSION_WINDOW):
        """
        Initialize synchronizer.

        Args:
            estimator: Estimator that receives every fused observation
            fusion_window: Maximum |t_accel - t_gyro| (seconds) for pairing
        """
        if not fusion_window >= 0:
            raise ValueError(f"Fusion window must be non-negative, got {fusion_window}")

        self.estimator = estimator
        self.fusion_window = fusion_window

        self.last_angular_rate: Optional[Vector3] = None
        self.last_angular_rate_timestamp: Optional[float] = None

        self.observers: List[SampleObserver] = []
        self.lock = threading.RLock()
        self.logger = logging.getLogger(__name__)

        # Statistics
        self.paired_count = 0
        self.unpaired_count = 0
        self._last_paired: Optional[bool] = None

    @classmethod
    def from_config(cls, config) -> 'StreamSynchronizer':
        """Create a synchronizer and its estimator from a ProcessorConfig."""
        return cls(CalibratedAngleEstimator.from_config(config), fusion_window=config.fusion_window)

    def add_observer(self, observer: SampleObserver) -> None:
        """Register a callback invoked with every ProcessedSample."""
        with self.lock:
            self.observers.append(observer)

    def remove_observer(self, observer: SampleObserver) -> None:
        with self.lock:
            if observer in self.observers:
                self.observers.remove(observer)

    def reset(self) -> None:
        """Forget the cached angular-rate sample (e.g. when streams restart)."""
        with self.lock:
            self.last_angular_rate = None
            self.last_angular_rate_timestamp = None
            self._last_paired = None

    def on_angular_rate(self, angular_rate: Vector3, timestamp: float) -> None:
        """Secondary channel: cache the newest angular-rate sample (rad/s)."""
        with self.lock:
            self.last_angular_rate = angular_rate
            self.last_angular_rate_timestamp = timestamp

    def on_acceleration(self, accel: Vector3, timestamp: float) -> ProcessedSample:
        """
        Primary channel: fuse an acceleration sample (m/s²) and emit the result.

        Pairing, estimation and observer notification run under one lock so
        observations are emitted in arrival order.

        Returns:
            The processed sample that was passed to observers
        """
        with self.lock:
            angular_rate = self._paired_angular_rate(timestamp)
            self._track_pairing(angular_rate is not None, timestamp)

            sample = self.estimator.process(accel, angular_rate, timestamp)

            for observer in list(self.observers):
                observer(sample)
            return sample

    def _paired_angular_rate(self, timestamp: float) -> Optional[Vector3]:
        if self.last_angular_rate_timestamp is None:
            return None
        if abs(timestamp - self.last_angular_rate_timestamp) <= self.fusion_window:
            return self.last_angular_rate
        return None

    def _track_pairing(self, paired: bool, timestamp: float) -> None:
        if paired:
            self.paired_count += 1
        else:
            self.unpaired_count += 1

        if self._last_paired is not None and paired != self._last_paired:
            if paired:
                self.logger.debug(f"Angular rate paired again at t={timestamp:.3f}s")
            else:
                self.logger.debug(f"No angular rate within {self.fusion_window * 1000:.0f} ms "
                                  f"at t={timestamp:.3f}s, holding gyro term")
        self._last_paired = paired

    def get_statistics(self):
        """Get pairing statistics for debugging."""
        with self.lock:
            total = self.paired_count + self.unpaired_count
            return {
                'fusion_window': self.fusion_window,
                'paired_count': self.paired_count,
                'unpaired_count': self.unpaired_count,
                'pairing_ratio': (self.paired_count / total) if total else None,
                'last_angular_rate_timestamp': self.last_angular_rate_timestamp
            }
