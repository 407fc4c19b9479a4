"""Vehicle interfaces, commands and the model jacobian used by the EKF."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Union

import numpy as np

from .mathutil import Quaternion
from .state import State


def _as_vec3(value) -> np.ndarray:
    vector = np.asarray(value, dtype=float)
    if vector.shape != (3,):
        raise ValueError("expected a three-element vector")
    return vector.copy()


@dataclass
class SetAngularVelocity:
    """Copter command: target angular velocity (body frame) and thrust."""

    angular_velocity: np.ndarray
    thrust: float

    def __post_init__(self) -> None:
        self.angular_velocity = _as_vec3(self.angular_velocity)
        self.thrust = float(self.thrust)


@dataclass
class SetLinearVelocity:
    """Copter command: target velocity (global frame) and heading in radians."""

    velocity: np.ndarray
    direction: float

    def __post_init__(self) -> None:
        self.velocity = _as_vec3(self.velocity)
        self.direction = float(self.direction)


CopterCommand = Union[SetAngularVelocity, SetLinearVelocity]


@dataclass
class Command:
    """A command received by the vehicle; ``copter_command`` is None for other vehicles."""

    copter_command: Optional[CopterCommand] = None


def _zeros(rows: int, cols: int):
    return lambda: np.zeros((rows, cols))


_JACOBIAN_SHAPES = {
    "da_dv": (3, 3),
    "da_dq": (3, 4),
    "ddw_dv": (3, 3),
    "ddw_dw": (3, 3),
    "ddw_dq": (3, 4),
}


@dataclass
class Jacobian:
    """Derivatives of linear (``a``) and angular (``dw``) acceleration.

    ``dy_dx`` is the derivative of ``y`` with respect to ``x``; ``q`` is the
    rotation quaternion as a ``(w, x, y, z)`` vector.
    """

    da_dv: np.ndarray = field(default_factory=_zeros(3, 3))
    da_dq: np.ndarray = field(default_factory=_zeros(3, 4))
    ddw_dv: np.ndarray = field(default_factory=_zeros(3, 3))
    ddw_dw: np.ndarray = field(default_factory=_zeros(3, 3))
    ddw_dq: np.ndarray = field(default_factory=_zeros(3, 4))

    def __post_init__(self) -> None:
        for name, shape in _JACOBIAN_SHAPES.items():
            matrix = np.array(getattr(self, name), dtype=float)
            if matrix.shape != shape:
                raise ValueError(f"{name} must have shape {shape}, got {matrix.shape}")
            setattr(self, name, matrix)


class Vehicle(ABC):
    """Interface through which the rest of the system talks to a vehicle."""

    @abstractmethod
    def init(self) -> bool:
        """Run once when the vehicle task starts; False on failure."""

    @abstractmethod
    def update(self, state: State, dt: float) -> None:
        """Update the internal state, e.g. run the control algorithm."""

    @abstractmethod
    def handle_command(self, command: Command) -> bool:
        """Execute a command; False if it is not meant for this vehicle."""


class EkfVehicle(Vehicle):
    """A vehicle whose dynamics model can drive an extended Kalman filter."""

    @abstractmethod
    def get_linear_acceleration(self, v, q: Quaternion) -> np.ndarray:
        """Expected acceleration in the global frame in m/s^2."""

    @abstractmethod
    def get_angular_acceleration(self, v, w, q: Quaternion) -> np.ndarray:
        """Expected angular acceleration in rad/s^2 (``w`` in the body frame)."""

    @abstractmethod
    def get_jacobian(self, v, w, qv) -> Jacobian:
        """Jacobian of the acceleration functions at the given state."""