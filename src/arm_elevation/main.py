"""
Main script for arm elevation measurement.

This script provides functionality for:
- Live measurement from simulated or serial inertial sensors
- Two-point calibration at 0° and 90° arm elevation
- Printing a summary of both angle algorithms
"""

import argparse
import time
import json
import logging
from typing import Optional

from .acquisition import Channel, SensorProtocol, SerialSensorProtocol, SimulatedArmProtocol, StreamManager
from .config import AppConfig, SensorSource, load_config
from .data_structures import Axis
from .session import Measurement, MeasurementSession
from .synchronizer import StreamSynchronizer


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def simulation_rotation_axis(config: AppConfig) -> Axis:
    """Rotation axis for the simulated arm: the gyro axis unless it coincides with the elevation axis."""
    processor = config.processor
    if processor.gyro_axis is not processor.elevation_axis:
        return processor.gyro_axis
    return next(axis for axis in Axis if axis is not processor.elevation_axis)


def create_protocols(config: AppConfig, mode: str):
    """Create (primary, secondary) protocols for the selected mode."""
    acquisition = config.acquisition
    if mode == "serial":
        if not acquisition.serial_port:
            raise ValueError("--accel-port is required in serial mode")
        primary: SensorProtocol = SerialSensorProtocol(
            acquisition.serial_port, Channel.ACCELERATION,
            accel_unit=acquisition.accel_unit, baudrate=acquisition.baudrate)
        secondary: Optional[SensorProtocol] = None
        if acquisition.gyro_serial_port:
            secondary = SerialSensorProtocol(
                acquisition.gyro_serial_port, Channel.ANGULAR_RATE,
                gyro_unit=acquisition.gyro_unit, baudrate=acquisition.baudrate)
        return primary, secondary

    rotation_axis = simulation_rotation_axis(config)
    elevation_axis = config.processor.elevation_axis
    primary = SimulatedArmProtocol(Channel.ACCELERATION, rotation_axis=rotation_axis, elevation_axis=elevation_axis)
    secondary = SimulatedArmProtocol(Channel.ANGULAR_RATE, rotation_axis=rotation_axis, elevation_axis=elevation_axis)
    return primary, secondary


def print_summary(measurement: Optional[Measurement]) -> None:
    """Print measurement summary in a formatted way."""
    print("\n=== Measurement Summary ===")
    if measurement is None:
        print("No samples recorded")
        return

    summary = measurement.summary()
    print(f"Source:   {summary['source']}")
    print(f"Samples:  {summary['count']}")
    print(f"Duration: {summary['duration_seconds']:.2f} s")
    for name in ("algorithm1", "algorithm2"):
        print(f"{name}: mean {summary[f'{name}_mean']:6.2f}°  "
              f"min {summary[f'{name}_min']:6.2f}°  max {summary[f'{name}_max']:6.2f}°")


def run_measurement_mode(config: AppConfig, mode: str, duration: float) -> Optional[Measurement]:
    """Run a live measurement for `duration` seconds."""
    synchronizer = StreamSynchronizer.from_config(config.processor)
    primary, secondary = create_protocols(config, mode)
    manager = StreamManager(
        synchronizer, primary, secondary,
        sample_rate=config.acquisition.sample_rate if mode == "simulate" else None,
        secondary_start_delay=config.acquisition.secondary_start_delay
    )
    source = SensorSource.INTERNAL if mode == "simulate" else config.session.source
    session = MeasurementSession(synchronizer, source=source,
                                 max_duration_seconds=config.session.max_duration_seconds)

    print(f"\n=== Measurement Mode ({mode}) ===")
    print(f"Duration: {duration} seconds")
    print("Press Ctrl+C to stop early")

    session.start()
    measurement = None
    try:
        manager.start()
        deadline = time.monotonic() + duration
        while time.monotonic() < deadline and session.is_measuring:
            print(f"\rAlgorithm 1: {session.latest_angle_algorithm1:6.1f}°  "
                  f"Algorithm 2: {session.latest_angle_algorithm2:6.1f}°", end="", flush=True)
            time.sleep(0.2)
    except KeyboardInterrupt:
        print("\nMeasurement stopped by user")
    finally:
        measurement = session.stop() or session.last_measurement
        manager.close()
        session.close()

    logging.info(f"Pairing statistics: {synchronizer.get_statistics()}")
    return measurement


def run_calibration_mode(config: AppConfig, mode: str) -> None:
    """Capture 0° and 90° calibration points from the acceleration source."""
    synchronizer = StreamSynchronizer.from_config(config.processor)
    estimator = synchronizer.estimator
    primary, secondary = create_protocols(config, mode)
    if secondary:
        secondary.close()

    print("\n=== Calibration Mode ===")
    try:
        if not primary.is_connected():
            raise RuntimeError("Acceleration source is not connected")
        for expected, posture in ((0.0, "arm hanging at your side"), (90.0, "arm raised to horizontal")):
            input(f"\nHold the {posture} and press Enter...")
            sample = None
            while sample is None:
                sample = primary.read_sample()
            state = estimator.capture_calibration_point(sample.vector, expected)
            print(f"Captured {expected:.0f}° point (raw {estimator.raw_angle(sample.vector):.2f}°)")

        print(f"\n✓ Calibration completed")
        print(json.dumps({'offset_deg': state.offset_deg, 'scale': state.scale}, indent=2))
    finally:
        primary.close()


def main() -> None:
    """Main function for arm elevation measurement."""
    parser = argparse.ArgumentParser(description="Arm elevation measurement from inertial sensors")
    parser.add_argument("--mode", choices=["simulate", "serial", "calibrate"], default="simulate",
                        help="Operation mode")
    parser.add_argument("--config", type=str, help="JSON configuration file")
    parser.add_argument("--duration", type=float, default=10.0,
                        help="Measurement duration (seconds)")
    parser.add_argument("--sample-rate", type=float,
                        help="Polling rate for simulated sensors (Hz)")
    parser.add_argument("--accel-port", type=str, help="Serial port of the acceleration stream")
    parser.add_argument("--gyro-port", type=str, help="Serial port of the angular-rate stream")
    parser.add_argument("--real-hardware", action="store_true",
                        help="Calibrate from serial ports instead of simulation")
    parser.add_argument("--invert-angle", action="store_true",
                        help="Report 180° minus the geometric angle")
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")

    args = parser.parse_args()

    # Set up logging
    setup_logging(args.log_level)

    config = load_config(args.config) if args.config else AppConfig()
    if args.sample_rate:
        config.acquisition.sample_rate = args.sample_rate
    if args.accel_port:
        config.acquisition.serial_port = args.accel_port
    if args.gyro_port:
        config.acquisition.gyro_serial_port = args.gyro_port
    if args.invert_angle:
        config.processor.invert_angle = True

    if args.mode == "calibrate":
        run_calibration_mode(config, "serial" if args.real_hardware else "simulate")
    else:
        print_summary(run_measurement_mode(config, args.mode, args.duration))


if __name__ == "__main__":
    main()
