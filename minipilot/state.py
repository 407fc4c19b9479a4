"""Vehicle state, sensor input and the state estimator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .mathutil import Quaternion


def _zero3() -> np.ndarray:
    return np.zeros(3)


@dataclass
class State:
    """Estimated state of the vehicle.

    Position, velocity and acceleration are of the centre of mass in the
    global frame; angular velocity is in the local frame; ``rotationq`` maps
    the local frame to the global one.
    """

    position: np.ndarray = field(default_factory=_zero3)
    velocity: np.ndarray = field(default_factory=_zero3)
    acceleration: np.ndarray = field(default_factory=_zero3)
    angular_velocity: np.ndarray = field(default_factory=_zero3)
    rotationq: Quaternion = field(default_factory=Quaternion)


@dataclass
class SensorData:
    """Input for a state estimator; ``None`` marks an unavailable reading."""

    accelerometer: Optional[np.ndarray] = None
    accelerometer_cov: Optional[np.ndarray] = None
    gyroscope: Optional[np.ndarray] = None
    gyroscope_cov: Optional[np.ndarray] = None
    magnetometer: Optional[np.ndarray] = None
    magnetometer_cov: Optional[np.ndarray] = None
    gnss: Optional[np.ndarray] = None
    gnss_cov: Optional[np.ndarray] = None


class StateEstimator(ABC):
    """State estimation algorithm."""

    @abstractmethod
    def update(self, sensor_data: SensorData, dt: float) -> None:
        """Run one iteration of the algorithm."""

    @abstractmethod
    def get_state(self) -> State:
        """Return the current state estimate."""