"""Abstract copter model: single-direction thrust and free torque."""

from __future__ import annotations

from abc import abstractmethod

import numpy as np

from .controller import CopterController, CopterParams
from .logger import log_info
from .mathutil import GV, UP, G, Quaternion
from .state import State
from .vehicle import (
    Command,
    EkfVehicle,
    Jacobian,
    SetAngularVelocity,
    SetLinearVelocity,
)

# Simulates the ground resisting movement while the copter is grounded
COPTER_FRICTION_COEFF = 5.0

# Upward acceleration above which a grounded copter is taken to have lifted off
TAKEOFF_ACCELERATION_THRESHOLD = 0.015


class Copter(EkfVehicle):
    """A vehicle producing thrust along its local ``UP`` axis and torque in any direction.

    Subclasses map thrust and torque to actuators and back.
    """

    def __init__(self, params: CopterParams, controller: CopterController) -> None:
        self._params = params
        self._controller = controller
        self._grounded = True

    @property
    def params(self) -> CopterParams:
        return self._params

    @property
    def controller(self) -> CopterController:
        return self._controller

    @property
    def grounded(self) -> bool:
        """Whether the copter is currently believed to be on the ground."""
        return self._grounded

    def init(self) -> bool:
        return True

    @abstractmethod
    def actuate(self, thrust: float, torque) -> None:
        """Drive the actuators so they produce the given thrust and torque."""

    @abstractmethod
    def get_thrust(self) -> float:
        """Thrust currently produced by the actuators."""

    @abstractmethod
    def get_torque(self) -> np.ndarray:
        """Torque currently produced by the actuators."""

    def update(self, state: State, dt: float) -> None:
        """Refresh the grounded guess, run the controller and actuate its output."""
        self._update_grounded(state)
        self._controller.update(state, dt)
        self.actuate(self._controller.thrust, self._controller.torque)

    def handle_command(self, command: Command) -> bool:
        copter_command = command.copter_command
        if isinstance(copter_command, SetAngularVelocity):
            return self._controller.set_target_w(
                copter_command.angular_velocity, copter_command.thrust
            )
        if isinstance(copter_command, SetLinearVelocity):
            return self._controller.set_target_v(
                copter_command.velocity, copter_command.direction
            )
        return False

    def get_linear_acceleration(self, v, q: Quaternion) -> np.ndarray:
        """Acceleration in the global frame, with thrust along the rotated ``UP``."""
        v = np.asarray(v, dtype=float)
        params = self._params
        if self._grounded:
            return -COPTER_FRICTION_COEFF / params.mass * v

        thrust_force = self.get_thrust() * q.rotate_vec(UP)
        drag_force = -params.lin_drag_c * v
        return GV + (thrust_force + drag_force) / params.mass

    def get_angular_acceleration(self, v, w, q: Quaternion) -> np.ndarray:
        """Angular acceleration from Euler's equations for a rotating body."""
        if self._grounded:
            return np.zeros(3)
        w = np.asarray(w, dtype=float)
        inertia = self._params.moment_of_inertia
        i_w = inertia @ w
        return np.linalg.solve(inertia, np.asarray(self.get_torque(), dtype=float)
                               - np.cross(w, i_w))

    def get_jacobian(self, v, w, qv) -> Jacobian:
        """Jacobian of the acceleration model; only the inertia diagonal is used."""
        params = self._params
        if self._grounded:
            return Jacobian(
                da_dv=np.eye(3) * (-COPTER_FRICTION_COEFF / params.mass),
            )

        cd = params.lin_drag_c
        m = params.mass
        thrust = self.get_thrust()
        inertia = params.moment_of_inertia
        ix, iy, iz = inertia[0, 0], inertia[1, 1], inertia[2, 2]
        qw, qx, qy, qz = (float(c) for c in qv)
        wx, wy, wz = (float(c) for c in w)

        da_dq = (2.0 * thrust / m) * np.array([
            [qy, qz, qw, qx],
            [-qx, -qw, qz, qy],
            [qw, -qx, -qy, qz],
        ])
        ddw_dw = np.array([
            [0.0, (iy - iz) * wz / ix, (iy - iz) * wy / ix],
            [(iz - ix) * wz / iy, 0.0, (iz - ix) * wx / iy],
            [(ix - iy) * wy / iz, (ix - iy) * wx / iz, 0.0],
        ])
        return Jacobian(
            da_dv=np.eye(3) * (-cd / m),
            da_dq=da_dq,
            ddw_dw=ddw_dw,
        )

    def _update_grounded(self, state: State) -> None:
        # Landing detection is not enabled; only takeoff is detected.
        if not self._grounded:
            return
        upward = float(np.dot(np.asarray(state.acceleration, dtype=float), UP))
        if upward > TAKEOFF_ACCELERATION_THRESHOLD:
            self._grounded = False
            log_info("Copter takeoff!")
            mass = self.get_thrust() / G
            log_info("Calculated copter mass: ", mass)