"""Vector, matrix and quaternion helpers plus frame constants."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def vec3(x: float, y: float, z: float) -> np.ndarray:
    """Build a three-element float vector."""
    return np.array([x, y, z], dtype=float)


def diagonal(value, size: int) -> np.ndarray:
    """Square matrix of the given size with ``value`` on the diagonal.

    ``value`` may be a scalar or a sequence of ``size`` diagonal entries.
    """
    if size <= 0:
        raise ValueError("matrix size must be positive")
    values = np.broadcast_to(np.asarray(value, dtype=float), (size,))
    return np.diag(values)


@dataclass(frozen=True)
class Quaternion:
    """Quaternion ``w + xi + yj + zk``; used to map the local frame to the global one."""

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_vector(cls, values) -> "Quaternion":
        w, x, y, z = (float(v) for v in values)
        return cls(w, x, y, z)

    def as_vector(self) -> np.ndarray:
        return np.array([self.w, self.x, self.y, self.z], dtype=float)

    def conjugate(self) -> "Quaternion":
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def norm(self) -> float:
        return float(np.linalg.norm(self.as_vector()))

    def normalized(self) -> "Quaternion":
        n = self.norm()
        if n == 0.0:
            raise ValueError("cannot normalize a zero quaternion")
        return Quaternion.from_vector(self.as_vector() / n)

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        if not isinstance(other, Quaternion):
            return NotImplemented
        w1, x1, y1, z1 = self.w, self.x, self.y, self.z
        w2, x2, y2, z2 = other.w, other.x, other.y, other.z
        return Quaternion(
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        )

    def rotate_vec(self, v) -> np.ndarray:
        """Rotate a 3-vector by computing ``q * v * conj(q)``."""
        vx, vy, vz = (float(c) for c in v)
        rotated = self * Quaternion(0.0, vx, vy, vz) * self.conjugate()
        return vec3(rotated.x, rotated.y, rotated.z)


# Model direction definitions
FORWARD = vec3(1, 0, 0)
LEFT = vec3(0, 1, 0)
UP = vec3(0, 0, 1)
BACKWARD = -FORWARD
RIGHT = -LEFT
DOWN = -UP

# Standard gravity in m/s^2
G = 9.80665
# Gravity vector, pointing down
GV = DOWN * G