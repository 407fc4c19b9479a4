"""Task that feeds sensor readings to a state estimator."""

from __future__ import annotations

import dataclasses
import threading
from typing import Optional, Tuple

import numpy as np

from .sensor_tasks import AccelerometerTask, GyroscopeTask
from .state import SensorData, State, StateEstimator
from .task import TASK_STATE_PERIOD, TASK_STATE_PRIORITY, Task


def _copy_state(state: State) -> State:
    return dataclasses.replace(
        state,
        position=np.array(state.position, dtype=float),
        velocity=np.array(state.velocity, dtype=float),
        acceleration=np.array(state.acceleration, dtype=float),
        angular_velocity=np.array(state.angular_velocity, dtype=float),
    )


class StateEstimatorTask(Task):
    """Collects sensor data, runs the estimator and publishes the estimated state."""

    def __init__(self, state_estimator: StateEstimator,
                 task_accel: AccelerometerTask,
                 task_gyro: GyroscopeTask) -> None:
        super().__init__("Task state estimator", TASK_STATE_PRIORITY,
                         TASK_STATE_PERIOD)
        self._estimator = state_estimator
        self._task_accel = task_accel
        self._task_gyro = task_gyro
        self._state = State()
        self._lock = threading.Lock()
        self._covariances: Optional[Tuple[np.ndarray, np.ndarray]] = None

    def get_state(self) -> State:
        """Latest published state."""
        with self._lock:
            return _copy_state(self._state)

    def step(self) -> None:
        # Sensor covariances are assumed not to change at runtime
        if self._covariances is None:
            self._covariances = (
                self._task_accel.get_noise_variance(),
                self._task_gyro.get_noise_variance(),
            )
        accel_cov, gyro_cov = self._covariances

        sensor_data = SensorData(
            accelerometer=self._task_accel.get_corrected(),
            accelerometer_cov=accel_cov,
            gyroscope=self._task_gyro.get_corrected(),
            gyroscope_cov=gyro_cov,
        )
        self._estimator.update(sensor_data, TASK_STATE_PERIOD)

        new_state = _copy_state(self._estimator.get_state())
        with self._lock:
            self._state = new_state