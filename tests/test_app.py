import numpy as np
import pytest

from minipilot.app import Devices, SensorDevice, build_tasks, main
from minipilot.ekf_ahrs import EkfAhrs
from minipilot.log_task import LoggerTask
from minipilot.logger import CharDevice, LogLevel, get_logger
from minipilot.receiver_task import ReceiverTask
from minipilot.sensor_tasks import AccelerometerTask, GyroscopeTask, ThreeAxisSensor
from minipilot.state_task import StateEstimatorTask
from minipilot.telemetry_task import TelemetryTask
from minipilot.vehicle import Vehicle
from minipilot.vehicle_task import VehicleTask


class FakeSensor(ThreeAxisSensor):
    def __init__(self, ok=True):
        self.ok = ok

    def probe(self):
        return self.ok

    def read_all_axes(self):
        return [0.0, 0.0, 9.8]

    def get_noise_density(self):
        return 0.01


class FakeCharDevice(CharDevice):
    def __init__(self, ok=True):
        self.ok = ok
        self.written = []

    def probe(self, timeout=0.0):
        return self.ok

    def write(self, data, timeout=0.0):
        self.written.append(bytes(data))
        return len(data)

    def read(self, size, timeout=0.0):
        return b""


class IdleVehicle(Vehicle):
    def init(self):
        return True

    def update(self, state, dt):
        pass

    def handle_command(self, command):
        return False


@pytest.fixture
def log_capture():
    logger = get_logger()
    previous_device, previous_level = logger.output_device, logger.output_level
    device = FakeCharDevice()
    logger.set_output_device(device)
    logger.set_output_level(LogLevel.DEBUG)
    yield device
    logger.set_output_device(previous_device)
    logger.set_output_level(previous_level)


def _devices(accel_ok=True, gyro_ok=True, receiver_ok=True,
             log_device=None, telemetry_device=None, accel_transform=None):
    transform = np.eye(3) if accel_transform is None else accel_transform
    return Devices(
        accelerometer=SensorDevice(FakeSensor(accel_ok), transform),
        gyroscope=SensorDevice(FakeSensor(gyro_ok), np.eye(3)),
        receiver_device=FakeCharDevice(receiver_ok),
        log_device=log_device,
        telemetry_device=telemetry_device,
    )


def test_minimal_devices_build_required_tasks(log_capture):
    tasks = build_tasks(_devices(), EkfAhrs(), IdleVehicle())
    assert [type(t) for t in tasks] == [
        AccelerometerTask, GyroscopeTask, ReceiverTask, StateEstimatorTask, VehicleTask,
    ]
    assert b"WARNING: Telemetry not available!\n" in log_capture.written


def test_telemetry_task_added_when_device_works(log_capture):
    tasks = build_tasks(_devices(telemetry_device=FakeCharDevice()), EkfAhrs(), IdleVehicle())
    assert isinstance(tasks[-1], TelemetryTask)
    assert b"INFO: Telemetry available!\n" in log_capture.written


def test_failing_telemetry_device_is_skipped(log_capture):
    tasks = build_tasks(_devices(telemetry_device=FakeCharDevice(ok=False)),
                        EkfAhrs(), IdleVehicle())
    assert [type(t) for t in tasks] == [
        AccelerometerTask, GyroscopeTask, ReceiverTask, StateEstimatorTask, VehicleTask,
    ]
    assert b"WARNING: Telemetry not available!\n" in log_capture.written


def test_log_device_gets_logger_task(log_capture):
    log_device = FakeCharDevice()
    tasks = build_tasks(_devices(log_device=log_device), EkfAhrs(), IdleVehicle())
    assert isinstance(tasks[0], LoggerTask)
    assert get_logger().output_device is log_device
    assert log_device.written[0] == b"INFO: Logging available!\n"


def test_failing_log_device_is_skipped(log_capture):
    tasks = build_tasks(_devices(log_device=FakeCharDevice(ok=False)),
                        EkfAhrs(), IdleVehicle())
    assert not any(isinstance(t, LoggerTask) for t in tasks)
    assert get_logger().output_device is log_capture


def test_accelerometer_task_uses_transform_and_zero_bias(log_capture):
    transform = np.array([[0, 1, 0], [1, 0, 0], [0, 0, 1]], dtype=float)
    tasks = build_tasks(_devices(accel_transform=transform), EkfAhrs(), IdleVehicle())
    accel = tasks[0]
    assert np.array_equal(accel.transform, transform)
    assert np.array_equal(accel.bias, np.zeros(3))


@pytest.mark.parametrize("failing, message", [
    ("accel_ok", "Accelerometer not available!"),
    ("gyro_ok", "Gyroscope not available!"),
    ("receiver_ok", "Receiver not available!"),
])
def test_missing_required_device(log_capture, failing, message):
    devices = _devices(**{failing: False})
    with pytest.raises(RuntimeError, match=message):
        build_tasks(devices, EkfAhrs(), IdleVehicle())
    assert main(devices, EkfAhrs(), IdleVehicle()) == 1


def test_main_logs_failure_to_log_device(log_capture):
    log_device = FakeCharDevice()
    result = main(_devices(accel_ok=False, log_device=log_device), EkfAhrs(), IdleVehicle())
    assert result == 1
    assert log_device.written[-1] == b"ERROR: Accelerometer not available!\n"