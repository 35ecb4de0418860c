"""
Sensor acquisition for the arm elevation estimator.

This module provides protocols that deliver acceleration and angular-rate
samples in physical units (serial, simulation) and a stream manager that runs
one reader thread per channel and feeds a StreamSynchronizer.
"""

import time
import threading
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional
import numpy as np
import serial
from scipy.spatial.transform import Rotation

from .data_structures import Axis, Vector3
from .synchronizer import StreamSynchronizer
from .units import (AccelUnit, GyroUnit, STANDARD_GRAVITY, convert_acceleration,
                    convert_angular_rate, device_timestamp_seconds)


class Channel(Enum):
    """Sample stream carried by a protocol."""
    ACCELERATION = "acceleration"
    ANGULAR_RATE = "angular_rate"


@dataclass(frozen=True)
class RawSample:
    """Sample already converted to m/s² (acceleration) or rad/s (angular rate)."""
    channel: Channel
    vector: Vector3
    timestamp: float  # seconds


class SensorProtocol(ABC):
    """Abstract base class for sample sources."""

    channel: Channel

    @abstractmethod
    def read_sample(self) -> Optional[RawSample]:
        """Read the next sample, or None if none is available."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the source is connected and ready."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the connection to the source."""
        pass


class SerialSensorProtocol(SensorProtocol):
    """Serial line protocol: one 'x,y,z,timestamp_ns' line per sample in device units."""

    def __init__(self,
                 port: str,
                 channel: Channel,
                 accel_unit: AccelUnit = AccelUnit.MILLI_G,
                 gyro_unit: GyroUnit = GyroUnit.DEGREES_PER_SECOND,
                 baudrate: int = 115200,
                 timeout: float = 1.0):
        """
        Initialize serial protocol.

        Args:
            port: Serial port (e.g., '/dev/ttyUSB0' or 'COM3')
            channel: Which stream this port carries
            accel_unit: Device unit of acceleration lines
            gyro_unit: Device unit of angular-rate lines
            baudrate: Baud rate for serial communication
            timeout: Timeout for serial reads
        """
        self.port = port
        self.channel = channel
        self.accel_unit = accel_unit
        self.gyro_unit = gyro_unit
        self.baudrate = baudrate
        self.timeout = timeout
        self.serial_conn: Optional[serial.Serial] = None
        self.logger = logging.getLogger(__name__)
        self._connect()

    def _connect(self) -> None:
        """Establish serial connection."""
        try:
            self.serial_conn = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                timeout=self.timeout
            )
            self.logger.info(f"Connected to {self.channel.value} source on {self.port}")
        except serial.SerialException as e:
            self.logger.error(f"Failed to connect to {self.channel.value} source on {self.port}: {e}")
            self.serial_conn = None

    def read_sample(self) -> Optional[RawSample]:
        if not self.is_connected():
            return None

        try:
            line = self.serial_conn.readline().decode('utf-8').strip()
        except (serial.SerialException, UnicodeDecodeError) as e:
            self.logger.error(f"Error reading {self.channel.value} sample: {e}")
            return None
        return self.parse_line(line)

    def parse_line(self, line: str) -> Optional[RawSample]:
        """Parse one 'x,y,z,timestamp_ns' line; malformed lines give None."""
        parts = line.split(',')
        if len(parts) != 4:
            return None
        try:
            x, y, z = (float(p) for p in parts[:3])
            timestamp = device_timestamp_seconds(int(parts[3]))
        except ValueError:
            self.logger.debug(f"Malformed line on {self.port}: {line!r}")
            return None

        if self.channel is Channel.ACCELERATION:
            vector = convert_acceleration(x, y, z, self.accel_unit)
        else:
            vector = convert_angular_rate(x, y, z, self.gyro_unit)
        return RawSample(self.channel, vector, timestamp)

    def is_connected(self) -> bool:
        return self.serial_conn is not None and self.serial_conn.is_open

    def close(self) -> None:
        if self.serial_conn and self.serial_conn.is_open:
            self.serial_conn.close()
            self.logger.info(f"Closed {self.channel.value} source on {self.port}")


class SimulatedArmProtocol(SensorProtocol):
    """Simulated arm raise/lower motion for testing and development."""

    def __init__(self,
                 channel: Channel,
                 rotation_axis: Axis = Axis.X,
                 elevation_axis: Axis = Axis.Z,
                 min_angle_deg: float = 10.0,
                 max_angle_deg: float = 120.0,
                 frequency_hz: float = 0.25,
                 noise_level: float = 0.05,
                 connected: bool = True,
                 clock: Callable[[], float] = time.monotonic,
                 seed: Optional[int] = None):
        """
        Initialize simulated protocol.

        Args:
            channel: Which stream to simulate
            rotation_axis: Axis the arm rotates about
            elevation_axis: Axis aligned with gravity at 0° elevation
            min_angle_deg: Lowest elevation of the motion
            max_angle_deg: Highest elevation of the motion
            frequency_hz: Raise/lower cycles per second
            noise_level: Standard deviation of acceleration noise (m/s²); angular rate uses a tenth
            connected: False simulates a source that never becomes available
            clock: Time source (seconds)
            seed: Seed for the noise generator
        """
        self.channel = channel
        self.rotation_axis = rotation_axis
        self.elevation_axis = elevation_axis
        self.min_angle_deg = min_angle_deg
        self.max_angle_deg = max_angle_deg
        self.frequency_hz = frequency_hz
        self.noise_level = noise_level
        self.connected = connected
        self.clock = clock
        self.rng = np.random.default_rng(seed)
        self.start_time = clock()

    def elevation_at(self, elapsed: float) -> float:
        """True elevation angle (degrees) after `elapsed` seconds."""
        mid = 0.5 * (self.min_angle_deg + self.max_angle_deg)
        amplitude = 0.5 * (self.max_angle_deg - self.min_angle_deg)
        return mid - amplitude * np.cos(2 * np.pi * self.frequency_hz * elapsed)

    def elevation_rate_at(self, elapsed: float) -> float:
        """True elevation rate (rad/s) after `elapsed` seconds."""
        amplitude = 0.5 * (self.max_angle_deg - self.min_angle_deg)
        omega = 2 * np.pi * self.frequency_hz
        return np.radians(amplitude * omega * np.sin(omega * elapsed))

    def read_sample(self) -> Optional[RawSample]:
        if not self.connected:
            return None

        now = self.clock()
        elapsed = now - self.start_time

        if self.channel is Channel.ACCELERATION:
            gravity = Vector3.unit(self.elevation_axis).to_numpy() * STANDARD_GRAVITY
            rotation = Rotation.from_euler(self.rotation_axis.value, self.elevation_at(elapsed), degrees=True)
            accel = rotation.apply(gravity) + self.rng.normal(0, self.noise_level, 3)
            return RawSample(self.channel, Vector3.from_numpy(accel), now)

        rate = Vector3.unit(self.rotation_axis).to_numpy() * self.elevation_rate_at(elapsed)
        rate = rate + self.rng.normal(0, self.noise_level * 0.1, 3)
        return RawSample(self.channel, Vector3.from_numpy(rate), now)

    def is_connected(self) -> bool:
        return self.connected

    def close(self) -> None:
        """No-op for simulated source."""
        pass


class StreamManager:
    """Runs the acceleration and angular-rate readers and feeds the synchronizer."""

    def __init__(self,
                 synchronizer: StreamSynchronizer,
                 primary: SensorProtocol,
                 secondary: Optional[SensorProtocol] = None,
                 sample_rate: Optional[float] = 50.0,
                 secondary_start_delay: float = 0.8):
        """
        Initialize stream manager.

        Args:
            synchronizer: Receives every sample
            primary: Acceleration source (reference clock)
            secondary: Angular-rate source; None runs acceleration only
            sample_rate: Polling rate in Hz, or None for sources that block until data arrives
            secondary_start_delay: Seconds between starting the primary and the secondary stream
        """
        self.synchronizer = synchronizer
        self.primary = primary
        self.secondary = secondary
        self.sample_rate = sample_rate
        self.secondary_start_delay = secondary_start_delay

        self.running = False
        self.secondary_active = False
        self.threads: Dict[Channel, threading.Thread] = {}
        self._secondary_timer: Optional[threading.Timer] = None
        self.lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def start(self) -> None:
        """Start the primary stream now and the secondary stream after the configured delay."""
        with self.lock:
            if self.running:
                return
            if not self.primary.is_connected():
                raise RuntimeError("Acceleration source is not connected")

            self.synchronizer.reset()
            self.running = True
            self._start_reader(self.primary, self.synchronizer.on_acceleration)
            self.logger.info("Started acceleration stream")

        if self.secondary is None:
            self.logger.info("No angular-rate source, running with acceleration only")
        elif self.secondary_start_delay <= 0:
            self._start_secondary()
        else:
            self._secondary_timer = threading.Timer(self.secondary_start_delay, self._start_secondary)
            self._secondary_timer.daemon = True
            self._secondary_timer.start()

    def _start_secondary(self) -> None:
        with self.lock:
            if not self.running:
                return
            if not self.secondary.is_connected():
                self.logger.warning("Angular-rate source not available, continuing with acceleration only")
                return
            self._start_reader(self.secondary, self.synchronizer.on_angular_rate)
            self.secondary_active = True
            self.logger.info("Started angular-rate stream")

    def _start_reader(self, protocol: SensorProtocol, handler: Callable[[Vector3, float], object]) -> None:
        thread = threading.Thread(
            target=self._reading_loop,
            args=(protocol, handler),
            daemon=True
        )
        self.threads[protocol.channel] = thread
        thread.start()

    def _reading_loop(self, protocol: SensorProtocol, handler: Callable[[Vector3, float], object]) -> None:
        """Reader loop for one channel (runs in background thread)."""
        interval = 1.0 / self.sample_rate if self.sample_rate else 0.0

        while self.running:
            start_time = time.monotonic()

            sample = protocol.read_sample()
            if sample is not None:
                handler(sample.vector, sample.timestamp)

            # Maintain sample rate
            if interval:
                sleep_time = interval - (time.monotonic() - start_time)
                if sleep_time > 0:
                    time.sleep(sleep_time)

    def stop(self) -> None:
        """Stop both streams and wait for the reader threads."""
        with self.lock:
            self.running = False
            if self._secondary_timer:
                self._secondary_timer.cancel()
                self._secondary_timer = None
            threads = list(self.threads.values())
            self.threads.clear()
            self.secondary_active = False

        for thread in threads:
            if thread is not threading.current_thread():
                thread.join(timeout=2.0)
        self.logger.info("Stopped streams")

    def close(self) -> None:
        """Stop streaming and close both sources."""
        self.stop()
        self.primary.close()
        if self.secondary:
            self.secondary.close()

    def get_status(self) -> Dict[str, bool]:
        return {
            'running': self.running,
            'acceleration_connected': self.primary.is_connected(),
            'angular_rate_connected': self.secondary is not None and self.secondary.is_connected(),
            'angular_rate_active': self.secondary_active
        }
