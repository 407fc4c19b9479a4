"""Inertial navigation with an extended Kalman filter driven by a vehicle model."""

from __future__ import annotations

import numpy as np

from .kalman import ExtendedKalmanFilter
from .mathutil import GV, G, Quaternion, diagonal
from .state import SensorData, State, StateEstimator
from .vehicle import EkfVehicle

# State: velocity (3), acceleration (3), rotation quaternion (4),
# angular velocity (3), gyro drift (3)
KALMAN_DIM = 16
# Observation: accelerometer (3), gyroscope (3)
OBS_DIM = 6

_V_NOISE = 1.0
_A_NOISE = 5e-1
_Q_NOISE = 1e-1
_W_NOISE = 5e-1
_WD_NOISE = 1e-1


def _linear_velocity(state) -> np.ndarray:
    return np.asarray(state[0:3], dtype=float)


def _linear_acceleration(state) -> np.ndarray:
    return np.asarray(state[3:6], dtype=float)


def _rotation_q(state) -> Quaternion:
    return Quaternion.from_vector(state[6:10])


def _angular_velocity(state) -> np.ndarray:
    return np.asarray(state[10:13], dtype=float)


def _gyro_drift(state) -> np.ndarray:
    return np.asarray(state[13:16], dtype=float)


def _quaternion_rate_matrix(w) -> np.ndarray:
    w1, w2, w3 = w
    return np.array([
        [0.0, -w1, -w2, -w3],
        [w1, 0.0, w3, -w2],
        [w2, -w3, 0.0, w1],
        [w3, w2, -w1, 0.0],
    ])


class EkfInertial(StateEstimator):
    """EKF inertial navigation; position is the integral of the velocity."""

    def __init__(self, vehicle: EkfVehicle) -> None:
        self._vehicle = vehicle
        initial = np.zeros(KALMAN_DIM)
        initial[6] = 1.0
        self._kalman = ExtendedKalmanFilter(initial)
        # Kept outside the filter state
        self._position = np.zeros(3)

    @property
    def filter_state(self) -> np.ndarray:
        """Copy of the full Kalman state vector."""
        return self._kalman.state

    def update(self, sensor_data: SensorData, dt: float) -> None:
        if sensor_data.accelerometer is None or sensor_data.gyroscope is None:
            raise ValueError("accelerometer and gyroscope readings are required")
        if sensor_data.accelerometer_cov is None or sensor_data.gyroscope_cov is None:
            raise ValueError("accelerometer and gyroscope covariances are required")

        observation = np.concatenate([
            np.asarray(sensor_data.accelerometer, dtype=float).reshape(3),
            np.asarray(sensor_data.gyroscope, dtype=float).reshape(3),
        ])

        r = np.zeros((OBS_DIM, OBS_DIM))
        r[0:3, 0:3] = sensor_data.accelerometer_cov
        r[3:6, 3:6] = sensor_data.gyroscope_cov

        q = diagonal(
            [_V_NOISE] * 3 + [_A_NOISE] * 3 + [_Q_NOISE] * 4
            + [_W_NOISE] * 3 + [_WD_NOISE] * 3,
            KALMAN_DIM,
        )

        self._kalman.update(
            lambda s: self.state_transition(s, dt),
            lambda s: self.state_transition_jacob(s, dt),
            lambda s: self.state_to_obs(s, dt),
            lambda s: self.state_to_obs_jacob(s, dt),
            q,
            r,
            observation,
        )

        x = self._kalman.state
        v = _linear_velocity(x)
        a = _linear_acceleration(x)
        self._position = self._position + v * dt + a * (dt * dt / 2.0)

    def get_state(self) -> State:
        x = self._kalman.state
        return State(
            position=self._position.copy(),
            velocity=_linear_velocity(x),
            acceleration=_linear_acceleration(x),
            angular_velocity=_angular_velocity(x),
            rotationq=_rotation_q(x),
        )

    def state_transition(self, state, dt: float) -> np.ndarray:
        """State transition ``f`` using the vehicle's dynamics model."""
        state = np.asarray(state, dtype=float)
        v = _linear_velocity(state)
        a = _linear_acceleration(state)
        q = _rotation_q(state)
        w = _angular_velocity(state)
        wd = _gyro_drift(state)

        v_next = v + dt * a
        a_next = np.asarray(self._vehicle.get_linear_acceleration(v, q), dtype=float)

        qv = q.as_vector()
        qv_next = qv + (dt / 2.0) * (_quaternion_rate_matrix(w) @ qv)
        # Normalize to counter numerical drift
        qv_next /= np.linalg.norm(qv_next)

        dw = np.asarray(self._vehicle.get_angular_acceleration(v, w, q), dtype=float)
        w_next = w + dt * dw

        return np.concatenate([v_next, a_next, qv_next, w_next, wd])

    def state_transition_jacob(self, state, dt: float) -> np.ndarray:
        """Jacobian ``F`` of the state transition with respect to the state."""
        state = np.asarray(state, dtype=float)
        result = np.zeros((KALMAN_DIM, KALMAN_DIM))
        v = _linear_velocity(state)
        w = _angular_velocity(state)
        qv = _rotation_q(state).as_vector()

        jacobian = self._vehicle.get_jacobian(v, w, qv)

        # v_next = v + dt * a
        result[0:3, 0:3] = np.eye(3)
        result[0:3, 3:6] = dt * np.eye(3)

        # a_next = f(v, q)
        result[3:6, 0:3] = jacobian.da_dv
        result[3:6, 6:10] = jacobian.da_dq

        wx, wy, wz = w
        qw, qx, qy, qz = qv
        h = dt / 2.0
        dq_dq = np.array([
            [1.0, -h * wx, -h * wy, -h * wz],
            [h * wx, 1.0, h * wz, -h * wy],
            [h * wy, -h * wz, 1.0, h * wx],
            [h * wz, h * wy, -h * wx, 1.0],
        ])
        dq_dw = np.array([
            [-qx, -qy, -qz],
            [qw, -qz, qy],
            [qz, qw, -qx],
            [-qy, qx, qw],
        ]) * h
        result[6:10, 6:10] = dq_dq
        result[6:10, 10:13] = dq_dw

        # w_next = w + dt * dw(v, q, w)
        result[10:13, 0:3] = dt * jacobian.ddw_dv
        result[10:13, 6:10] = dt * jacobian.ddw_dq
        result[10:13, 10:13] = dt * jacobian.ddw_dw + np.eye(3)

        result[13:16, 13:16] = np.eye(3)
        return result

    def state_to_obs(self, state, dt: float) -> np.ndarray:
        """Observation model ``h``: expected accelerometer and gyroscope readings."""
        state = np.asarray(state, dtype=float)
        a = _linear_acceleration(state)
        q = _rotation_q(state)
        w = _angular_velocity(state)
        wd = _gyro_drift(state)

        a_exp = q.conjugate().rotate_vec(a - GV)
        w_exp = w + wd
        return np.concatenate([a_exp, w_exp])

    def state_to_obs_jacob(self, state, dt: float) -> np.ndarray:
        """Jacobian ``H`` of the observation model with respect to the state."""
        state = np.asarray(state, dtype=float)
        result = np.zeros((OBS_DIM, KALMAN_DIM))
        ax, ay, az = _linear_acceleration(state)
        qw, qx, qy, qz = _rotation_q(state).as_vector()
        azg = az + G

        da_da = np.array([
            [qw*qw + qx*qx - qy*qy - qz*qz, 2*(qw*qz + qx*qy), 2*(-qw*qy + qx*qz)],
            [2*(-qw*qz + qx*qy), qw*qw - qx*qx + qy*qy - qz*qz, 2*(qw*qx + qy*qz)],
            [2*(qw*qy + qx*qz), 2*(-qw*qx + qy*qz), qw*qw - qx*qx - qy*qy + qz*qz],
        ])
        da_dq = np.array([
            [2*(ax*qw + ay*qz - qy*azg), 2*(ax*qx + ay*qy + qz*azg),
             2*(-ax*qy + ay*qx - qw*azg), 2*(-ax*qz + ay*qw + qx*azg)],
            [2*(-ax*qz + ay*qw + qx*azg), 2*(ax*qy - ay*qx + qw*azg),
             2*(ax*qx + ay*qy + qz*azg), 2*(-ax*qw - ay*qz + qy*azg)],
            [2*(ax*qy - ay*qx + qw*azg), 2*(ax*qz - ay*qw - qx*azg),
             2*(ax*qw + ay*qz - qy*azg), 2*(ax*qx + ay*qy + qz*azg)],
        ])
        result[0:3, 3:6] = da_da
        result[0:3, 6:10] = da_dq

        result[3:6, 10:13] = np.eye(3)
        result[3:6, 13:16] = np.eye(3)
        return result