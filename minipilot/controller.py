"""Copter control: target velocities in, thrust and torque out."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .mathutil import GV, UP
from .pid import Pid
from .state import State

# Magnitude of the target angular velocity when tilting by a right angle
_MAX_TILT_RATE = 5.0


@dataclass
class CopterParams:
    """Physical parameters of an abstract copter model."""

    # Mass in kilograms
    mass: float
    # Inertia tensor, usually diagonal
    moment_of_inertia: np.ndarray
    # Linear drag coefficient
    lin_drag_c: float

    def __post_init__(self) -> None:
        self.mass = float(self.mass)
        if self.mass <= 0:
            raise ValueError("mass must be positive")
        inertia = np.array(self.moment_of_inertia, dtype=float)
        if inertia.shape != (3, 3):
            raise ValueError("moment of inertia must be a 3x3 matrix")
        self.moment_of_inertia = inertia
        self.lin_drag_c = float(self.lin_drag_c)


class ControlMode(Enum):
    ANGULAR = "angular"
    LINEAR = "linear"


class CopterController(ABC):
    """Produces thrust and torque from a target linear or angular velocity."""

    @abstractmethod
    def set_target_w(self, target_w, target_thrust: float) -> bool:
        """Target an angular velocity and thrust; True if accepted."""

    @abstractmethod
    def set_target_v(self, target_v, direction: float) -> bool:
        """Target a global-frame velocity and heading (radians, north 0, clockwise)."""

    @abstractmethod
    def update(self, state: State, dt: float) -> None:
        """Advance the control algorithm."""

    @property
    @abstractmethod
    def torque(self) -> np.ndarray:
        """Output torque."""

    @property
    @abstractmethod
    def thrust(self) -> float:
        """Output thrust."""


class CopterControllerPid(CopterController):
    """Cascaded PID control of linear and angular velocity."""

    def __init__(self, copter_params: CopterParams) -> None:
        self._params = copter_params
        self._angular_velocity_pid = Pid(1.0, 0.2, 0.0)
        self._linear_acceleration_pid = Pid(1.0, 2.0, 0.0)
        self._mode = ControlMode.ANGULAR
        self._target_w = np.zeros(3)
        self._target_v = np.zeros(3)
        self._target_dir = 0.0
        self._output_torque = np.zeros(3)
        self._output_thrust = 0.0

    @property
    def mode(self) -> ControlMode:
        return self._mode

    @property
    def target_w(self) -> np.ndarray:
        return self._target_w.copy()

    @property
    def target_v(self) -> np.ndarray:
        return self._target_v.copy()

    @property
    def target_dir(self) -> float:
        return self._target_dir

    @property
    def torque(self) -> np.ndarray:
        return self._output_torque.copy()

    @property
    def thrust(self) -> float:
        return self._output_thrust

    def set_target_w(self, target_w, target_thrust: float) -> bool:
        self._mode = ControlMode.ANGULAR
        self._target_w = np.array(target_w, dtype=float).reshape(3)
        self._output_thrust = float(target_thrust)
        return True

    def set_target_v(self, target_v, direction: float) -> bool:
        self._mode = ControlMode.LINEAR
        self._target_v = np.array(target_v, dtype=float).reshape(3)
        self._target_dir = float(direction)
        return True

    def update(self, state: State, dt: float) -> None:
        params = self._params
        if self._mode is ControlMode.LINEAR:
            v = np.asarray(state.velocity, dtype=float)
            target_a = self._linear_acceleration_pid.update(self._target_v - v, dt)
            # Thrust needed in the global frame, from the copter's acceleration equation
            target_thrust_g = params.mass * (target_a - GV) + params.lin_drag_c * v
            target_thrust_l = state.rotationq.conjugate().rotate_vec(target_thrust_g)
            norm_l = np.linalg.norm(target_thrust_l)
            if norm_l > 0.0:
                target_w_dir = np.cross(UP, target_thrust_l / norm_l)
            else:
                target_w_dir = np.zeros(3)
            # The cross product of unit vectors is at most 1 in magnitude
            self._target_w = target_w_dir * _MAX_TILT_RATE
            self._output_thrust = float(np.linalg.norm(target_thrust_g))

        w = np.asarray(state.angular_velocity, dtype=float)
        target_dw = self._angular_velocity_pid.update(self._target_w - w, dt)
        inertia = params.moment_of_inertia
        self._output_torque = inertia @ target_dw + np.cross(w, inertia @ w)