"""Quadcopter: four motors mixed into thrust and torque."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from .controller import CopterController, CopterParams
from .copter import Copter
from .mathutil import FORWARD, LEFT, UP


@dataclass
class QuadcopterParams(CopterParams):
    """Copter parameters plus the quadcopter's geometry and propeller coefficients."""

    # Half the distance between the centres of the left and right motors
    width_half: float
    # Half the distance between the centres of the front and back motors
    length_half: float
    # Thrust at full throttle (thrust = thrust_coeff * throttle^2)
    thrust_coeff: float
    # Torque at full throttle (torque = torque_coeff * throttle^2)
    torque_coeff: float

    def __post_init__(self) -> None:
        super().__post_init__()
        for name in ("width_half", "length_half", "thrust_coeff", "torque_coeff"):
            value = float(getattr(self, name))
            if value <= 0:
                raise ValueError(f"{name} must be positive")
            setattr(self, name, value)


class Motor(ABC):
    """A motor driven by a throttle value."""

    @abstractmethod
    def write_throttle(self, throttle: float) -> None:
        """Set the throttle."""

    @abstractmethod
    def read_throttle(self) -> float:
        """Current throttle."""

    @abstractmethod
    def get_direction(self) -> bool:
        """True if the motor spins counter-clockwise."""


@dataclass
class QuadcopterActuators:
    fl: Motor
    fr: Motor
    bl: Motor
    br: Motor


@dataclass
class MotorSpeeds:
    """One value per motor: front-left, front-right, back-left, back-right."""

    fl: float
    fr: float
    bl: float
    br: float


def _sqrt_or_zero(value: float) -> float:
    return 0.0 if value < 0.0 else math.sqrt(value)


class Quadcopter(Copter):
    """A copter with four fixed motors in a rectangle."""

    def __init__(self, params: QuadcopterParams, controller: CopterController,
                 actuators: QuadcopterActuators) -> None:
        super().__init__(params, controller)
        self._quad_params = params
        self._actuators = actuators

    @property
    def actuators(self) -> QuadcopterActuators:
        return self._actuators

    def actuate(self, thrust: float, torque) -> None:
        """Compute motor speeds with ``inverse_mma`` and write them to the motors."""
        speeds = self.inverse_mma(thrust, torque)
        self._actuators.fl.write_throttle(speeds.fl)
        self._actuators.fr.write_throttle(speeds.fr)
        self._actuators.bl.write_throttle(speeds.bl)
        self._actuators.br.write_throttle(speeds.br)

    def read_motor_speeds(self, square: bool = False) -> MotorSpeeds:
        """Current motor throttles, squared if ``square`` is set."""
        act = self._actuators
        speeds = MotorSpeeds(
            act.fl.read_throttle(),
            act.fr.read_throttle(),
            act.bl.read_throttle(),
            act.br.read_throttle(),
        )
        if square:
            speeds = MotorSpeeds(speeds.fl ** 2, speeds.fr ** 2,
                                 speeds.bl ** 2, speeds.br ** 2)
        return speeds

    def get_motor_directions(self) -> MotorSpeeds:
        """1 for each counter-clockwise motor, -1 otherwise."""
        act = self._actuators

        def sign(motor: Motor) -> float:
            return 1.0 if motor.get_direction() else -1.0

        return MotorSpeeds(sign(act.fl), sign(act.fr), sign(act.bl), sign(act.br))

    def get_thrust(self) -> float:
        sq = self.read_motor_speeds(square=True)
        return self._quad_params.thrust_coeff * (sq.fl + sq.fr + sq.bl + sq.br)

    def get_torque(self) -> np.ndarray:
        p = self._quad_params
        sq = self.read_motor_speeds(square=True)
        d = self.get_motor_directions()

        torque_up = p.torque_coeff * (d.fl * sq.fl + d.fr * sq.fr + d.bl * sq.bl + d.br * sq.br)
        torque_fwd = p.width_half * p.thrust_coeff * (sq.fl + sq.bl - sq.fr - sq.br)
        torque_left = p.length_half * p.thrust_coeff * (sq.bl + sq.br - sq.fl - sq.fr)
        return UP * torque_up + FORWARD * torque_fwd + LEFT * torque_left

    def inverse_mma(self, thrust: float, torque) -> MotorSpeeds:
        """Motor speeds producing the given thrust and torque; negatives clamp to zero."""
        p = self._quad_params
        d = self.get_motor_directions()
        torque = np.asarray(torque, dtype=float)

        spin_balance = d.bl - d.br - d.fl + d.fr
        if spin_balance == 0.0:
            raise ValueError("motor spin directions cannot produce yaw torque")

        c_dim = p.width_half * p.length_half
        c_den = 2.0 * p.thrust_coeff * p.torque_coeff * c_dim * spin_balance
        c_thrust = thrust * p.torque_coeff * c_dim
        c_up = 2.0 * p.thrust_coeff * c_dim * float(np.dot(torque, UP))
        c_fwd = p.torque_coeff * p.length_half * float(np.dot(torque, FORWARD))
        c_left = p.torque_coeff * p.width_half * float(np.dot(torque, LEFT))

        bl_sq = -(c_thrust * (d.br + d.fl) - c_up + c_fwd * (d.fl - d.fr)
                  + c_left * (d.br - d.fr)) / c_den
        br_sq = (c_thrust * (d.bl + d.fr) - c_up + c_fwd * (d.fl - d.fr)
                 + c_left * (d.bl - d.fl)) / c_den
        fl_sq = (c_thrust * (d.bl + d.fr) - c_up + c_fwd * (d.bl - d.br)
                 + c_left * (d.br - d.fr)) / c_den
        fr_sq = -(c_thrust * (d.br + d.fl) - c_up + c_fwd * (d.bl - d.br)
                  + c_left * (d.bl - d.fl)) / c_den

        return MotorSpeeds(
            fl=_sqrt_or_zero(fl_sq),
            fr=_sqrt_or_zero(fr_sq),
            bl=_sqrt_or_zero(bl_sq),
            br=_sqrt_or_zero(br_sq),
        )