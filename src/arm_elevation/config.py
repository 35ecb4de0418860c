"""Configuration dataclasses for arm elevation measurement."""

import json
from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .data_structures import Axis
from .units import AccelUnit, GyroUnit


class SensorSource(Enum):
    """Where a measurement's samples come from."""
    INTERNAL = "internal"
    EXTERNAL = "external"

    @property
    def title(self) -> str:
        return "Internal" if self is SensorSource.INTERNAL else "External"


@dataclass
class ProcessorConfig:
    smoothing_alpha: float = 0.2
    complementary_beta: float = 0.98
    elevation_axis: Axis = Axis.Z
    gyro_axis: Axis = Axis.Z
    invert_angle: bool = False
    fusion_window: float = 0.05  # seconds

    def __post_init__(self):
        self.smoothing_alpha = min(max(float(self.smoothing_alpha), 0.0), 1.0)
        self.complementary_beta = min(max(float(self.complementary_beta), 0.0), 1.0)
        self.elevation_axis = Axis.parse(self.elevation_axis)
        self.gyro_axis = Axis.parse(self.gyro_axis)
        if not self.fusion_window >= 0:
            raise ValueError(f"fusion_window must be non-negative, got {self.fusion_window}")


@dataclass
class AcquisitionConfig:
    accel_unit: AccelUnit = AccelUnit.MILLI_G
    gyro_unit: GyroUnit = GyroUnit.DEGREES_PER_SECOND
    sample_rate: float = 50.0  # Hz
    secondary_start_delay: float = 0.8  # gyro starts after the accelerometer
    serial_port: Optional[str] = None
    gyro_serial_port: Optional[str] = None
    baudrate: int = 115200

    def __post_init__(self):
        self.accel_unit = AccelUnit(self.accel_unit)
        self.gyro_unit = GyroUnit(self.gyro_unit)
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")


@dataclass
class SessionConfig:
    max_duration_seconds: float = 30.0
    source: SensorSource = SensorSource.EXTERNAL

    def __post_init__(self):
        self.source = SensorSource(self.source)
        if self.max_duration_seconds <= 0:
            raise ValueError(f"max_duration_seconds must be positive, got {self.max_duration_seconds}")


@dataclass
class AppConfig:
    processor: ProcessorConfig = field(default_factory=ProcessorConfig)
    acquisition: AcquisitionConfig = field(default_factory=AcquisitionConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppConfig':
        sections = {f.name: f for f in fields(cls)}
        unknown = set(data) - set(sections)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        kwargs = {}
        for name, section in data.items():
            section_cls = {'processor': ProcessorConfig,
                           'acquisition': AcquisitionConfig,
                           'session': SessionConfig}[name]
            if not isinstance(section, dict):
                raise ValueError(f"Section '{name}' must be a JSON object")
            allowed = {f.name for f in fields(section_cls)}
            bad_keys = set(section) - allowed
            if bad_keys:
                raise ValueError(f"Unknown keys in '{name}': {sorted(bad_keys)}")
            kwargs[name] = section_cls(**section)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        def encode(value):
            return value.value if isinstance(value, Enum) else value
        return {name: {k: encode(v) for k, v in asdict(getattr(self, name)).items()}
                for name in ('processor', 'acquisition', 'session')}


def load_config(path) -> AppConfig:
    """Load an AppConfig from a JSON file."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a JSON object")
    return AppConfig.from_dict(data)
