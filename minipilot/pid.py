"""PID controller for scalar or vector errors."""

from __future__ import annotations

import numpy as np


def _as_value(value):
    if isinstance(value, (list, tuple, np.ndarray)):
        return np.array(value, dtype=float)
    return float(value)


class Pid:
    """Proportional-integral-derivative controller.

    The error may be a scalar or a numpy vector; the output has the same form.
    """

    def __init__(self, kp: float, ki: float, kd: float) -> None:
        self.kp = float(kp)
        self.ki = float(ki)
        self.kd = float(kd)
        self.reset()

    @property
    def output(self):
        return self._output

    def reset(self) -> None:
        """Clear the integral, the previous error and the output."""
        self._integral = 0.0
        self._prev_error = None
        self._output = 0.0

    def update(self, error, dt: float):
        """Advance the controller by ``dt`` seconds and return the new output."""
        if dt <= 0:
            raise ValueError("dt must be positive")
        error = _as_value(error)
        self._integral = self._integral + error * dt
        if self._prev_error is None:
            derivative = error * 0.0
        else:
            derivative = (error - self._prev_error) / dt
        self._prev_error = error
        self._output = self.kp * error + self.ki * self._integral + self.kd * derivative
        return self._output