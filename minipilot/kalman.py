"""Extended Kalman filter."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

Vector = np.ndarray
Matrix = np.ndarray


class ExtendedKalmanFilter:
    """Extended Kalman filter over a fixed-size state vector."""

    def __init__(self, initial_state, covariance: Optional[Matrix] = None) -> None:
        self._x = np.array(initial_state, dtype=float).reshape(-1)
        n = self._x.size
        if covariance is None:
            self._p = np.eye(n)
        else:
            self._p = np.array(covariance, dtype=float)
            if self._p.shape != (n, n):
                raise ValueError("covariance shape does not match state size")

    @property
    def dim(self) -> int:
        return self._x.size

    @property
    def state(self) -> Vector:
        return self._x.copy()

    @property
    def covariance(self) -> Matrix:
        return self._p.copy()

    def update(
        self,
        f: Callable[[Vector], Vector],
        f_jacob: Callable[[Vector], Matrix],
        h: Callable[[Vector], Vector],
        h_jacob: Callable[[Vector], Matrix],
        q,
        r,
        observation,
    ) -> None:
        """Predict with ``f`` and correct with the observation through ``h``."""
        n = self.dim
        q = np.asarray(q, dtype=float)
        r = np.asarray(r, dtype=float)
        z = np.asarray(observation, dtype=float).reshape(-1)
        m = z.size
        if q.shape != (n, n):
            raise ValueError("process noise shape does not match state size")
        if r.shape != (m, m):
            raise ValueError("measurement noise shape does not match observation size")

        # Prediction
        jf = np.asarray(f_jacob(self._x), dtype=float)
        if jf.shape != (n, n):
            raise ValueError("state transition jacobian has the wrong shape")
        x_pred = np.asarray(f(self._x), dtype=float).reshape(-1)
        if x_pred.size != n:
            raise ValueError("state transition returned the wrong size")
        p_pred = jf @ self._p @ jf.T + q

        # Correction
        jh = np.asarray(h_jacob(x_pred), dtype=float)
        if jh.shape != (m, n):
            raise ValueError("observation jacobian has the wrong shape")
        z_pred = np.asarray(h(x_pred), dtype=float).reshape(-1)
        if z_pred.size != m:
            raise ValueError("observation function returned the wrong size")
        innovation = z - z_pred
        s = jh @ p_pred @ jh.T + r
        gain = np.linalg.solve(s.T, (p_pred @ jh.T).T).T

        self._x = x_pred + gain @ innovation
        p_new = (np.eye(n) - gain @ jh) @ p_pred
        self._p = (p_new + p_new.T) / 2.0