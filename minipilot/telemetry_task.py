"""Task that periodically sends state and sensor telemetry."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .logger import CharDevice, log_error
from .sensor_tasks import AccelerometerTask, GyroscopeTask
from .state_task import StateEstimatorTask
from .task import TASK_TELEMETRY_PERIOD, TASK_TELEMETRY_PRIORITY, Task

_VECTOR_FIELDS = (
    "position", "velocity", "acceleration", "angular_velocity",
    "acc_raw", "acc_corrected", "gyro_raw", "gyro_corrected",
)


def _vec3_dict(v) -> dict:
    x, y, z = (float(c) for c in v)
    return {"x": x, "y": y, "z": z}


def _vec4_dict(v) -> dict:
    w, x, y, z = (float(c) for c in v)
    return {"w": w, "x": x, "y": y, "z": z}


@dataclass
class TelemetryMessage:
    """Snapshot of the estimated state and the latest sensor readings."""

    position: np.ndarray
    velocity: np.ndarray
    acceleration: np.ndarray
    angular_velocity: np.ndarray
    # Rotation quaternion as (w, x, y, z)
    rotation: np.ndarray
    acc_raw: np.ndarray
    acc_corrected: np.ndarray
    gyro_raw: np.ndarray
    gyro_corrected: np.ndarray

    def __post_init__(self) -> None:
        for name in _VECTOR_FIELDS:
            vector = np.array(getattr(self, name), dtype=float)
            if vector.shape != (3,):
                raise ValueError(f"{name} must be a three-element vector")
            setattr(self, name, vector)
        rotation = np.array(self.rotation, dtype=float)
        if rotation.shape != (4,):
            raise ValueError("rotation must be a four-element vector")
        self.rotation = rotation

    def to_dict(self) -> dict:
        return {
            "state": {
                "position": _vec3_dict(self.position),
                "velocity": _vec3_dict(self.velocity),
                "acceleration": _vec3_dict(self.acceleration),
                "angular_velocity": _vec3_dict(self.angular_velocity),
                "rotation": _vec4_dict(self.rotation),
            },
            "sensor_data": {
                "acc_raw": _vec3_dict(self.acc_raw),
                "acc_corrected": _vec3_dict(self.acc_corrected),
                "gyro_raw": _vec3_dict(self.gyro_raw),
                "gyro_corrected": _vec3_dict(self.gyro_corrected),
            },
        }


TelemetryEncoder = Callable[[TelemetryMessage], bytes]


def _encode_json(message: TelemetryMessage) -> bytes:
    return json.dumps(message.to_dict()).encode("utf-8")


class TelemetryTask(Task):
    """Collects telemetry and writes each message whole to the telemetry device."""

    def __init__(self, telemetry_device: CharDevice,
                 task_accelerometer: AccelerometerTask,
                 task_gyroscope: GyroscopeTask,
                 task_state_estimator: StateEstimatorTask,
                 encode: Optional[TelemetryEncoder] = None) -> None:
        super().__init__("Task telemetry", TASK_TELEMETRY_PRIORITY, TASK_TELEMETRY_PERIOD)
        self._device = telemetry_device
        self._task_accel = task_accelerometer
        self._task_gyro = task_gyroscope
        self._task_state = task_state_estimator
        self._encode = encode if encode is not None else _encode_json

    def build_message(self) -> TelemetryMessage:
        state = self._task_state.get_state()
        return TelemetryMessage(
            position=state.position,
            velocity=state.velocity,
            acceleration=state.acceleration,
            angular_velocity=state.angular_velocity,
            rotation=state.rotationq.as_vector(),
            acc_raw=self._task_accel.get_raw(),
            acc_corrected=self._task_accel.get_corrected(),
            gyro_raw=self._task_gyro.get_raw(),
            gyro_corrected=self._task_gyro.get_corrected(),
        )

    def step(self) -> None:
        """Encode the current telemetry and write it in one piece."""
        try:
            data = self._encode(self.build_message())
        except (ValueError, TypeError):
            log_error("Failed to encode telemetry!")
            return
        try:
            self._device.write(bytes(data), 0.0)
        except OSError:
            # A lost telemetry frame is replaced by the next one
            pass

    def run(self) -> None:
        if not self._device.probe(0.0):
            raise RuntimeError("telemetry device is not available")
        super().run()