import numpy as np
import pytest

from minipilot.ekf_ahrs import EkfAhrs
from minipilot.mathutil import G, Quaternion
from minipilot.sensor_tasks import AccelerometerTask, GyroscopeTask, ThreeAxisSensor
from minipilot.state import State, StateEstimator
from minipilot.state_task import StateEstimatorTask
from minipilot.task import TASK_STATE_PERIOD, TaskPriority


class FakeSensor(ThreeAxisSensor):
    def __init__(self, reading, noise_density=0.01):
        self.reading = reading
        self.noise_density = noise_density
        self.density_calls = 0

    def probe(self):
        return True

    def read_all_axes(self):
        return self.reading

    def get_noise_density(self):
        self.density_calls += 1
        return self.noise_density


class RecordingEstimator(StateEstimator):
    def __init__(self):
        self.calls = []
        self.state = State()

    def update(self, sensor_data, dt):
        self.calls.append((sensor_data, dt))
        self.state = State(
            acceleration=np.array(sensor_data.accelerometer, dtype=float),
            angular_velocity=np.array(sensor_data.gyroscope, dtype=float),
        )

    def get_state(self):
        return self.state


@pytest.fixture
def sensors():
    accel_sensor = FakeSensor((0.5, -0.5, 9.0), noise_density=0.01)
    gyro_sensor = FakeSensor((0.1, 0.2, 0.3), noise_density=0.02)
    accel = AccelerometerTask(accel_sensor, np.eye(3))
    gyro = GyroscopeTask(gyro_sensor, np.eye(3))
    accel.step()
    gyro.step()
    return accel_sensor, gyro_sensor, accel, gyro


def test_initial_state_is_default(sensors):
    _, _, accel, gyro = sensors
    task = StateEstimatorTask(RecordingEstimator(), accel, gyro)
    state = task.get_state()
    np.testing.assert_allclose(state.position, np.zeros(3))
    np.testing.assert_allclose(state.velocity, np.zeros(3))
    assert state.rotationq == Quaternion()
    assert task.priority is TaskPriority.REALTIME
    assert task.period == TASK_STATE_PERIOD


def test_step_passes_sensor_data_and_period(sensors):
    _, _, accel, gyro = sensors
    estimator = RecordingEstimator()
    task = StateEstimatorTask(estimator, accel, gyro)
    task.step()
    assert len(estimator.calls) == 1
    data, dt = estimator.calls[0]
    assert dt == TASK_STATE_PERIOD
    np.testing.assert_allclose(data.accelerometer, accel.get_corrected())
    np.testing.assert_allclose(data.gyroscope, gyro.get_corrected())
    np.testing.assert_allclose(data.accelerometer_cov, accel.get_noise_variance())
    np.testing.assert_allclose(data.gyroscope_cov, gyro.get_noise_variance())
    assert data.magnetometer is None
    assert data.gnss is None


def test_published_state_follows_estimator(sensors):
    _, _, accel, gyro = sensors
    task = StateEstimatorTask(RecordingEstimator(), accel, gyro)
    task.step()
    state = task.get_state()
    np.testing.assert_allclose(state.acceleration, accel.get_corrected())
    np.testing.assert_allclose(state.angular_velocity, gyro.get_corrected())


def test_covariances_read_once(sensors):
    accel_sensor, gyro_sensor, accel, gyro = sensors
    task = StateEstimatorTask(RecordingEstimator(), accel, gyro)
    for _ in range(3):
        task.step()
    assert accel_sensor.density_calls == 1
    assert gyro_sensor.density_calls == 1


def test_get_state_returns_copy(sensors):
    _, _, accel, gyro = sensors
    task = StateEstimatorTask(RecordingEstimator(), accel, gyro)
    task.step()
    state = task.get_state()
    state.acceleration[:] = 1000.0
    np.testing.assert_allclose(task.get_state().acceleration, accel.get_corrected())


def test_with_ahrs_estimator_keeps_unit_quaternion():
    accel = AccelerometerTask(FakeSensor((0.0, 0.0, G)), np.eye(3))
    gyro = GyroscopeTask(FakeSensor((0.0, 0.0, 0.5)), np.eye(3))
    accel.step()
    gyro.step()
    task = StateEstimatorTask(EkfAhrs(), accel, gyro)
    for _ in range(10):
        task.step()
    state = task.get_state()
    assert state.rotationq.norm() == pytest.approx(1.0, abs=1e-6)