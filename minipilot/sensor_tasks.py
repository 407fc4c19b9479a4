"""Tasks that sample three-axis sensors and correct their readings."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from .logger import log_warning
from .mathutil import diagonal
from .task import (
    TASK_ACCEL_PERIOD,
    TASK_ACCEL_PRIORITY,
    TASK_GYRO_PERIOD,
    TASK_GYRO_PRIORITY,
    Task,
    TaskPriority,
)


def _as_matrix3(value) -> np.ndarray:
    matrix = np.array(value, dtype=float)
    if matrix.shape != (3, 3):
        raise ValueError("expected a 3x3 matrix")
    return matrix


def _as_vector3(value) -> np.ndarray:
    vector = np.array(value, dtype=float)
    if vector.shape == ():
        vector = np.full(3, float(vector))
    if vector.shape != (3,):
        raise ValueError("expected a three-element vector")
    return vector


class ThreeAxisSensor(ABC):
    """A sensor that measures a quantity along three axes."""

    @abstractmethod
    def probe(self) -> bool:
        """Return True if the sensor is working."""

    @abstractmethod
    def read_all_axes(self) -> Sequence[float]:
        """Read all three axes; raises OSError if the reading fails."""

    @abstractmethod
    def get_noise_density(self) -> float:
        """Noise density of the sensor, in units per square root of Hz."""


class ThreeAxisSensorTask(Task):
    """Periodically reads a three-axis sensor and keeps raw and corrected values."""

    def __init__(self, sensor: ThreeAxisSensor, name: str,
                 priority: TaskPriority, period: float) -> None:
        super().__init__(name, priority, period)
        self._sensor = sensor
        self._lock = threading.Lock()
        self._last_raw = np.zeros(3)
        self._last_corrected = np.zeros(3)

    @property
    def sensor(self) -> ThreeAxisSensor:
        return self._sensor

    def get_raw(self) -> np.ndarray:
        """Last raw reading."""
        with self._lock:
            return self._last_raw.copy()

    def get_corrected(self) -> np.ndarray:
        """Last corrected reading."""
        with self._lock:
            return self._last_corrected.copy()

    def get_noise_variance(self) -> np.ndarray:
        """Noise covariance from the sensor noise density and the sampling rate."""
        fs = 1.0 / self.period
        noise_density = float(self._sensor.get_noise_density())
        return diagonal(fs * noise_density * noise_density, 3)

    @abstractmethod
    def process(self, raw) -> np.ndarray:
        """Correct a raw reading (filtering, bias removal, frame mapping)."""

    def step(self) -> None:
        try:
            reading = self._sensor.read_all_axes()
        except OSError:
            log_warning("Sensor reading failed")
            return
        raw = _as_vector3(reading)
        corrected = _as_vector3(self.process(raw))
        with self._lock:
            self._last_raw = raw
            self._last_corrected = corrected

    def run(self) -> None:
        if not self._sensor.probe():
            raise RuntimeError(f"{self.name}: sensor is not available")
        super().run()


class AccelerometerTask(ThreeAxisSensorTask):
    """Removes the bias and maps accelerometer readings to the vehicle frame."""

    def __init__(self, sensor: ThreeAxisSensor, transform,
                 bias: Optional[Sequence[float]] = None) -> None:
        super().__init__(sensor, "Task accelerometer", TASK_ACCEL_PRIORITY,
                         TASK_ACCEL_PERIOD)
        self._transform = _as_matrix3(transform)
        self._bias = np.zeros(3) if bias is None else _as_vector3(bias)

    @property
    def bias(self) -> np.ndarray:
        return self._bias.copy()

    @property
    def transform(self) -> np.ndarray:
        return self._transform.copy()

    def process(self, raw) -> np.ndarray:
        return self._transform @ (_as_vector3(raw) - self._bias)


class GyroscopeTask(ThreeAxisSensorTask):
    """Maps gyroscope readings to the vehicle frame."""

    def __init__(self, sensor: ThreeAxisSensor, transform) -> None:
        super().__init__(sensor, "Task gyroscope", TASK_GYRO_PRIORITY,
                         TASK_GYRO_PERIOD)
        self._transform = _as_matrix3(transform)

    @property
    def transform(self) -> np.ndarray:
        return self._transform.copy()

    def process(self, raw) -> np.ndarray:
        return self._transform @ _as_vector3(raw)