"""Periodic tasks running on threads, with priorities and notifications."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Iterable, List, Optional


class TaskPriority(IntEnum):
    VERY_LOW = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    REALTIME = 5


# Periods are in seconds.
TASK_LOGGER_QUEUE_SIZE = 8
TASK_LOGGER_PRIORITY = TaskPriority.VERY_LOW

TASK_TELEMETRY_PRIORITY = TaskPriority.LOW
TASK_TELEMETRY_PERIOD = 0.2  # 5 Hz

TASK_ACCEL_PRIORITY = TaskPriority.REALTIME
TASK_ACCEL_PERIOD = 0.005  # 200 Hz

TASK_GYRO_PRIORITY = TaskPriority.REALTIME
TASK_GYRO_PERIOD = 0.005  # 200 Hz

TASK_STATE_PRIORITY = TaskPriority.REALTIME
TASK_STATE_PERIOD = 0.02  # 50 Hz

TASK_RECEIVER_QUEUE_SIZE = 4
TASK_RECEIVER_PRIORITY = TaskPriority.HIGH

TASK_VEHICLE_PRIORITY = TaskPriority.HIGH
TASK_VEHICLE_PERIOD = 0.05  # 20 Hz


class Task(ABC):
    """A named task that repeatedly runs ``step``, optionally at a fixed period."""

    def __init__(self, name: str, priority: TaskPriority,
                 period: Optional[float] = None) -> None:
        if period is not None and period <= 0:
            raise ValueError("task period must be positive")
        self.name = name
        self.priority = TaskPriority(priority)
        self.period = period
        self._stop_event = threading.Event()
        self._notification = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @abstractmethod
    def step(self) -> None:
        """One iteration of the task's loop."""

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        """Run ``step`` until stopped, keeping a steady period if one is set."""
        next_wake = time.monotonic()
        while not self._stop_event.is_set():
            self.step()
            if self.period is None or self._stop_event.is_set():
                continue
            next_wake += self.period
            delay = next_wake - time.monotonic()
            if delay > 0:
                self._stop_event.wait(delay)

    def sleep(self, seconds: float) -> bool:
        """Sleep, waking early if the task is stopped. Returns True if stopped."""
        return self._stop_event.wait(seconds)

    def start(self) -> None:
        if self.running:
            raise RuntimeError(f"task {self.name!r} is already running")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        self._notification.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def notify(self) -> None:
        self._notification.set()

    def wait_notification(self, timeout: Optional[float] = None) -> bool:
        """Block until notified; returns False on timeout."""
        notified = self._notification.wait(timeout)
        if notified:
            self._notification.clear()
        return notified


def start_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Start every task, highest priority first, and return them in that order."""
    ordered = sorted(tasks, key=lambda t: t.priority, reverse=True)
    for task in ordered:
        task.start()
    return ordered