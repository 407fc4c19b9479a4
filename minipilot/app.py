"""Wiring of devices, estimator and vehicle into running tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .log_task import LoggerTask
from .logger import CharDevice, get_logger, log_error, log_info, log_warning
from .receiver_task import ReceiverTask
from .sensor_tasks import AccelerometerTask, GyroscopeTask, ThreeAxisSensor
from .state import StateEstimator
from .state_task import StateEstimatorTask
from .task import Task, start_tasks
from .telemetry_task import TelemetryTask
from .vehicle import Vehicle
from .vehicle_task import VehicleTask

# Timeout for checking whether a device works, in seconds
DEVICE_PROBE_TIMEOUT = 0.01


@dataclass
class SensorDevice:
    """A three-axis sensor and the matrix mapping its readings to the vehicle frame."""

    sensor: ThreeAxisSensor
    transform: np.ndarray


@dataclass
class Devices:
    """Devices the autopilot uses; the log and telemetry devices are optional."""

    accelerometer: SensorDevice
    gyroscope: SensorDevice
    receiver_device: CharDevice
    log_device: Optional[CharDevice] = None
    telemetry_device: Optional[CharDevice] = None


def _unavailable(message: str) -> RuntimeError:
    log_error(message)
    return RuntimeError(message)


def build_tasks(devices: Devices, state_estimator: StateEstimator,
                vehicle: Vehicle) -> List[Task]:
    """Probe the devices and create every task; raises RuntimeError if a required one fails."""
    tasks: List[Task] = []

    log_device = devices.log_device
    if log_device is not None and log_device.probe(DEVICE_PROBE_TIMEOUT):
        tasks.append(LoggerTask(log_device))
        # The device is written directly until the tasks start
        get_logger().set_output_device(log_device)
        log_info("Logging available!")

    if not devices.accelerometer.sensor.probe():
        raise _unavailable("Accelerometer not available!")
    task_accel = AccelerometerTask(devices.accelerometer.sensor,
                                   devices.accelerometer.transform, np.zeros(3))
    tasks.append(task_accel)

    if not devices.gyroscope.sensor.probe():
        raise _unavailable("Gyroscope not available!")
    task_gyro = GyroscopeTask(devices.gyroscope.sensor, devices.gyroscope.transform)
    tasks.append(task_gyro)

    if not devices.receiver_device.probe(DEVICE_PROBE_TIMEOUT):
        raise _unavailable("Receiver not available!")
    task_receiver = ReceiverTask(devices.receiver_device)
    tasks.append(task_receiver)

    task_state = StateEstimatorTask(state_estimator, task_accel, task_gyro)
    tasks.append(task_state)
    tasks.append(VehicleTask(vehicle, task_receiver, task_state))

    telemetry_device = devices.telemetry_device
    if telemetry_device is not None and telemetry_device.probe(DEVICE_PROBE_TIMEOUT):
        tasks.append(TelemetryTask(telemetry_device, task_accel, task_gyro, task_state))
        log_info("Telemetry available!")
    else:
        log_warning("Telemetry not available!")

    return tasks


def main(devices: Devices, state_estimator: StateEstimator, vehicle: Vehicle) -> int:
    """Build and start all tasks, then wait on them; returns 1 on failure or exit."""
    try:
        tasks = build_tasks(devices, state_estimator, vehicle)
    except RuntimeError:
        return 1

    log_info("Starting the scheduler...")

    logger_task = next((t for t in tasks if isinstance(t, LoggerTask)), None)
    if logger_task is not None:
        get_logger().set_output_device(logger_task)

    for task in start_tasks(tasks):
        task.join()
    return 1