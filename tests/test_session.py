"""Tests for measurement sessions."""

import threading
import time

import numpy as np
import pytest

from arm_elevation import Measurement, MeasurementSession, SensorSource
from tests.conftest import accel_at


def feed(synchronizer, angles, start=0.0, dt=0.02):
    for i, angle in enumerate(angles):
        synchronizer.on_acceleration(accel_at(angle), start + i * dt)


def test_samples_collected_only_while_measuring(synchronizer):
    session = MeasurementSession(synchronizer)
    feed(synchronizer, [10.0, 20.0])
    assert session.samples == []

    session.start()
    feed(synchronizer, [30.0, 30.0, 30.0], start=1.0)
    measurement = session.stop()
    feed(synchronizer, [40.0], start=2.0)

    assert len(measurement.samples) == 3
    assert measurement.source is SensorSource.EXTERNAL
    assert measurement.duration_seconds == pytest.approx(0.04)
    assert session.latest_angle_algorithm1 == pytest.approx(30.0)
    assert session.latest_angle_algorithm2 == pytest.approx(30.0)
    session.close()


def test_start_resets_filters_but_not_calibration(synchronizer):
    estimator = synchronizer.estimator
    estimator.set_calibration(offset_deg=5.0, scale=1.0)
    session = MeasurementSession(synchronizer)

    session.start()
    feed(synchronizer, [80.0, 80.0])
    session.stop()

    session.start()
    feed(synchronizer, [20.0], start=5.0)
    first = session.samples[0]
    session.stop()

    assert first.angle_algorithm1 == pytest.approx(15.0)
    assert first.angle_algorithm2 == pytest.approx(15.0)
    assert first.sequence == 0
    assert estimator.get_calibration().offset_deg == 5.0


def test_start_while_measuring_is_noop(synchronizer):
    session = MeasurementSession(synchronizer)
    session.start()
    feed(synchronizer, [30.0, 40.0])
    session.start()
    assert len(session.samples) == 2
    session.stop()


def test_stop_without_samples_returns_none(synchronizer):
    session = MeasurementSession(synchronizer)
    assert session.stop() is None
    session.start()
    assert session.stop() is None
    assert not session.is_measuring


def test_duration_capped_at_maximum(synchronizer):
    session = MeasurementSession(synchronizer, max_duration_seconds=1.0)
    session.start()
    synchronizer.on_acceleration(accel_at(30.0), 0.0)
    synchronizer.on_acceleration(accel_at(30.0), 5.0)
    measurement = session.stop()
    assert measurement.duration_seconds == 1.0


def test_session_stops_after_max_duration(synchronizer):
    session = MeasurementSession(synchronizer, source=SensorSource.INTERNAL, max_duration_seconds=0.2)
    session.start()
    synchronizer.on_acceleration(accel_at(30.0), 0.0)

    deadline = time.monotonic() + 3.0
    while session.is_measuring and time.monotonic() < deadline:
        time.sleep(0.01)

    assert not session.is_measuring
    assert session.last_measurement is not None
    assert session.last_measurement.source is SensorSource.INTERNAL
    assert len(session.last_measurement.samples) == 1


def test_sample_in_flight_during_start_is_not_collected(synchronizer):
    """A sample computed on the previous filter state never enters the new session."""
    entered = threading.Event()
    release = threading.Event()

    def hold(sample):
        entered.set()
        release.wait(timeout=2.0)

    synchronizer.on_acceleration(accel_at(80.0), 0.0)
    synchronizer.add_observer(hold)
    session = MeasurementSession(synchronizer)

    producer = threading.Thread(target=synchronizer.on_acceleration, args=(accel_at(80.0), 0.02))
    producer.start()
    assert entered.wait(timeout=2.0)

    starter = threading.Thread(target=session.start)
    starter.start()
    time.sleep(0.05)
    release.set()
    producer.join(timeout=2.0)
    starter.join(timeout=2.0)

    assert session.is_measuring
    assert session.samples == []
    feed(synchronizer, [20.0], start=1.0)
    assert session.samples[0].sequence == 0
    assert session.samples[0].angle_algorithm1 == pytest.approx(20.0)
    session.close()


def test_observer_can_close_session(synchronizer):
    session = MeasurementSession(synchronizer)
    synchronizer.add_observer(lambda sample: session.close())
    session.start()
    feed(synchronizer, [30.0])

    assert not session.is_measuring
    assert session._on_sample not in synchronizer.observers
    assert len(session.last_measurement.samples) == 1


def test_close_detaches_from_synchronizer(synchronizer):
    session = MeasurementSession(synchronizer)
    session.close()
    assert session._on_sample not in synchronizer.observers


def test_measurement_relative_times_and_summary(synchronizer):
    session = MeasurementSession(synchronizer)
    session.start()
    feed(synchronizer, [10.0, 10.0, 10.0], start=3.0, dt=0.5)
    measurement = session.stop()

    np.testing.assert_allclose(measurement.relative_times(), [0.0, 0.5, 1.0])
    summary = measurement.summary()
    assert summary['count'] == 3
    assert summary['source'] == "External"
    assert summary['algorithm1_mean'] == pytest.approx(10.0)
    assert summary['algorithm2_min'] == pytest.approx(10.0)
    assert summary['algorithm2_max'] == pytest.approx(10.0)


def test_empty_measurement_summary():
    from datetime import datetime
    measurement = Measurement(source=SensorSource.INTERNAL, started_at=datetime.now(), duration_seconds=0.0)
    summary = measurement.summary()
    assert summary['count'] == 0
    assert summary['algorithm1_mean'] is None
    assert summary['algorithm2_max'] is None
    assert measurement.relative_times().size == 0
