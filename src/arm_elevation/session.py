"""
Measurement sessions.

A session resets the estimator's filter history, collects every processed
sample while it is running and stops itself after a maximum duration.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import numpy as np

from .config import SensorSource
from .data_structures import ProcessedSample
from .synchronizer import StreamSynchronizer


@dataclass
class Measurement:
    """Completed measurement."""
    source: SensorSource
    started_at: datetime
    duration_seconds: float
    samples: List[ProcessedSample] = field(default_factory=list)

    def relative_times(self) -> np.ndarray:
        """Sample times in seconds since the first sample."""
        if not self.samples:
            return np.array([])
        times = np.array([s.timestamp for s in self.samples])
        return times - times[0]

    def summary(self) -> Dict[str, Any]:
        """Per-algorithm statistics; None values when the measurement is empty."""
        result: Dict[str, Any] = {
            'source': self.source.title,
            'count': len(self.samples),
            'duration_seconds': self.duration_seconds,
        }
        for name, attr in (('algorithm1', 'angle_algorithm1'), ('algorithm2', 'angle_algorithm2')):
            values = np.array([getattr(s, attr) for s in self.samples])
            has_values = values.size > 0
            result[f'{name}_mean'] = float(np.mean(values)) if has_values else None
            result[f'{name}_min'] = float(np.min(values)) if has_values else None
            result[f'{name}_max'] = float(np.max(values)) if has_values else None
        return result


class MeasurementSession:
    """Collects processed samples from a synchronizer for a bounded time."""

    def __init__(self,
                 synchronizer: StreamSynchronizer,
                 source: SensorSource = SensorSource.EXTERNAL,
                 max_duration_seconds: float = 30.0):
        """
        Initialize measurement session.

        Args:
            synchronizer: Source of processed samples
            source: Sensor the samples come from
            max_duration_seconds: Session stops itself after this long
        """
        self.synchronizer = synchronizer
        self.source = source
        self.max_duration_seconds = max_duration_seconds

        self.is_measuring = False
        self.samples: List[ProcessedSample] = []
        self.latest_angle_algorithm1 = 0.0
        self.latest_angle_algorithm2 = 0.0
        self.started_at: Optional[datetime] = None
        self.last_measurement: Optional[Measurement] = None

        self._stop_timer: Optional[threading.Timer] = None
        self.lock = threading.RLock()
        self.logger = logging.getLogger(__name__)

        synchronizer.add_observer(self._on_sample)

    def start(self) -> None:
        """Start a new session; a running session is left untouched."""
        # Synchronizer first: a sample in flight finishes before filters reset
        with self.synchronizer.lock, self.lock:
            if self.is_measuring:
                return

            self.samples = []
            self.latest_angle_algorithm1 = 0.0
            self.latest_angle_algorithm2 = 0.0
            self.last_measurement = None
            self.synchronizer.estimator.reset_filters()

            self._stop_timer = threading.Timer(self.max_duration_seconds, self._on_timeout)
            self._stop_timer.daemon = True
            self._stop_timer.start()

            self.started_at = datetime.now()
            self.is_measuring = True
        self.logger.info(f"Measurement started ({self.source.title}, max {self.max_duration_seconds:.0f} s)")

    def _on_timeout(self) -> None:
        self.logger.info("Maximum duration reached, stopping measurement")
        self.stop()

    def _on_sample(self, sample: ProcessedSample) -> None:
        with self.lock:
            if not self.is_measuring:
                return
            self.samples.append(sample)
            self.latest_angle_algorithm1 = sample.angle_algorithm1
            self.latest_angle_algorithm2 = sample.angle_algorithm2

    def stop(self) -> Optional[Measurement]:
        """
        Stop the session.

        Returns:
            The completed measurement, or None if not measuring or no samples arrived
        """
        with self.lock:
            if not self.is_measuring:
                return None

            if self._stop_timer:
                self._stop_timer.cancel()
                self._stop_timer = None
            self.is_measuring = False

            if not self.samples:
                self.logger.info("Measurement stopped without samples")
                return None

            duration = max(0.0, self.samples[-1].timestamp - self.samples[0].timestamp)
            measurement = Measurement(
                source=self.source,
                started_at=self.started_at,
                duration_seconds=min(self.max_duration_seconds, duration),
                samples=list(self.samples)
            )
            self.last_measurement = measurement
        self.logger.info(f"Measurement stopped with {len(measurement.samples)} samples "
                         f"over {measurement.duration_seconds:.2f} s")
        return measurement

    def close(self) -> None:
        """Stop and detach from the synchronizer."""
        self.stop()
        self.synchronizer.remove_observer(self._on_sample)
