"""
Arm elevation estimation from inertial sensors.

This package provides functionality for:
- Estimating the elevation angle of a limb from accelerometer samples
- Two-point (0°/90°) calibration of the elevation angle
- Exponential smoothing and complementary gyro/accelerometer fusion
- Pairing independently clocked acceleration and angular-rate streams
- Simulated and serial sensor acquisition, and bounded measurement sessions
"""

from .data_structures import (
    Axis,
    Vector3,
    CalibrationState,
    FilterState,
    ProcessedSample
)

from .processor import CalibratedAngleEstimator

from .synchronizer import StreamSynchronizer

from .units import (
    AccelUnit,
    GyroUnit,
    convert_acceleration,
    convert_angular_rate
)

from .config import (
    SensorSource,
    ProcessorConfig,
    AcquisitionConfig,
    SessionConfig,
    AppConfig,
    load_config
)

from .acquisition import (
    Channel,
    RawSample,
    SensorProtocol,
    SerialSensorProtocol,
    SimulatedArmProtocol,
    StreamManager
)

from .session import (
    Measurement,
    MeasurementSession
)

__all__ = [
    # Data structures
    'Axis',
    'Vector3',
    'CalibrationState',
    'FilterState',
    'ProcessedSample',

    # Estimation and synchronization
    'CalibratedAngleEstimator',
    'StreamSynchronizer',

    # Units
    'AccelUnit',
    'GyroUnit',
    'convert_acceleration',
    'convert_angular_rate',

    # Configuration
    'SensorSource',
    'ProcessorConfig',
    'AcquisitionConfig',
    'SessionConfig',
    'AppConfig',
    'load_config',

    # Acquisition
    'Channel',
    'RawSample',
    'SensorProtocol',
    'SerialSensorProtocol',
    'SimulatedArmProtocol',
    'StreamManager',

    # Sessions
    'Measurement',
    'MeasurementSession',
]
