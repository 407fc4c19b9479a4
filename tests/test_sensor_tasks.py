import time

import numpy as np
import pytest

from minipilot.logger import CharDevice, LogLevel, get_logger
from minipilot.sensor_tasks import (
    AccelerometerTask,
    GyroscopeTask,
    ThreeAxisSensor,
)
from minipilot.task import TASK_ACCEL_PERIOD, TaskPriority


class FakeSensor(ThreeAxisSensor):
    def __init__(self, reading=(1.0, 2.0, 3.0), noise_density=0.01,
                 working=True):
        self.reading = reading
        self.noise_density = noise_density
        self.working = working
        self.fail = False

    def probe(self):
        return self.working

    def read_all_axes(self):
        if self.fail:
            raise OSError("bus error")
        return self.reading

    def get_noise_density(self):
        return self.noise_density


class CaptureDevice(CharDevice):
    def __init__(self):
        self.chunks = []

    def write(self, data, timeout=0.0):
        self.chunks.append(bytes(data))
        return len(data)

    def read(self, size, timeout=0.0):
        return b""


@pytest.fixture
def captured_log():
    logger = get_logger()
    previous_device = logger.output_device
    previous_level = logger.output_level
    device = CaptureDevice()
    logger.set_output_device(device)
    logger.set_output_level(LogLevel.DEBUG)
    yield device
    logger.set_output_device(previous_device)
    logger.set_output_level(previous_level)


def test_accelerometer_identity_without_bias():
    sensor = FakeSensor(reading=(1.0, 2.0, 3.0))
    task = AccelerometerTask(sensor, np.eye(3))
    task.step()
    np.testing.assert_allclose(task.get_raw(), sensor.reading)
    np.testing.assert_allclose(task.get_corrected(), sensor.reading)
    assert task.name == "Task accelerometer"
    assert task.priority is TaskPriority.REALTIME
    assert task.period == TASK_ACCEL_PERIOD


def test_accelerometer_subtracts_bias():
    bias = np.array([0.5, -0.25, 1.0])
    task = AccelerometerTask(FakeSensor(), np.eye(3), bias)
    task.step()
    np.testing.assert_allclose(task.get_corrected() + bias, task.get_raw())


def test_accelerometer_transform_is_applied_after_bias():
    transform = np.array([[0.0, 1.0, 0.0], [-1.0, 0.0, 0.0], [0.0, 0.0, 2.0]])
    bias = np.array([0.1, 0.2, 0.3])
    task = AccelerometerTask(FakeSensor(reading=(4.0, -5.0, 6.0)), transform, bias)
    task.step()
    recovered = np.linalg.solve(transform, task.get_corrected()) + bias
    np.testing.assert_allclose(recovered, task.get_raw())


def test_gyroscope_permutes_axes():
    sensor = FakeSensor(reading=(7.0, 8.0, 9.0))
    transform = np.eye(3)[[2, 0, 1]]
    task = GyroscopeTask(sensor, transform)
    task.step()
    raw = np.array(sensor.reading)
    np.testing.assert_allclose(task.get_corrected(), raw[[2, 0, 1]])
    assert task.name == "Task gyroscope"


def test_noise_variance_is_diagonal():
    task = AccelerometerTask(FakeSensor(noise_density=0.01), np.eye(3))
    variance = task.get_noise_variance()
    np.testing.assert_allclose(variance, 0.02 * np.eye(3))


def test_noise_variance_scales_with_density_squared():
    low = AccelerometerTask(FakeSensor(noise_density=0.01), np.eye(3))
    high = AccelerometerTask(FakeSensor(noise_density=0.02), np.eye(3))
    ratio = np.diag(high.get_noise_variance()) / np.diag(low.get_noise_variance())
    np.testing.assert_allclose(ratio, [4.0, 4.0, 4.0])


def test_failed_read_keeps_last_values_and_warns(captured_log):
    sensor = FakeSensor(reading=(1.0, 1.0, 1.0))
    task = GyroscopeTask(sensor, np.eye(3))
    task.step()
    before = task.get_raw()
    sensor.fail = True
    task.step()
    np.testing.assert_allclose(task.get_raw(), before)
    assert captured_log.chunks == [b"WARNING: Sensor reading failed\n"]


def test_values_start_at_zero():
    task = GyroscopeTask(FakeSensor(), np.eye(3))
    np.testing.assert_allclose(task.get_raw(), np.zeros(3))
    np.testing.assert_allclose(task.get_corrected(), np.zeros(3))


def test_returned_values_are_copies():
    task = GyroscopeTask(FakeSensor(reading=(1.0, 2.0, 3.0)), np.eye(3))
    task.step()
    raw = task.get_raw()
    raw[:] = 100.0
    np.testing.assert_allclose(task.get_raw(), [1.0, 2.0, 3.0])


def test_run_requires_working_sensor():
    task = GyroscopeTask(FakeSensor(working=False), np.eye(3))
    with pytest.raises(RuntimeError):
        task.run()


def test_bad_transform_shape_rejected():
    with pytest.raises(ValueError):
        GyroscopeTask(FakeSensor(), np.eye(2))


def test_bad_sensor_reading_size_rejected():
    task = GyroscopeTask(FakeSensor(reading=(1.0, 2.0)), np.eye(3))
    with pytest.raises(ValueError):
        task.step()


def test_threaded_sampling_updates_values():
    sensor = FakeSensor(reading=(1.0, 2.0, 3.0))
    task = GyroscopeTask(sensor, np.eye(3))
    task.start()
    try:
        deadline = time.monotonic() + 2.0
        while time.monotonic() < deadline and not task.get_raw().any():
            time.sleep(0.005)
    finally:
        task.stop()
        task.join(2.0)
    np.testing.assert_allclose(task.get_raw(), sensor.reading)
    assert not task.running