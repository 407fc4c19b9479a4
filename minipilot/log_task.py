"""Task that queues log messages and writes them to the log device."""

from __future__ import annotations

import io
import queue

from .logger import LOGGER_MAX_TOTAL_SIZE, CharDevice
from .task import TASK_LOGGER_PRIORITY, TASK_LOGGER_QUEUE_SIZE, Task

# How long one step waits for a message before returning
_POLL_INTERVAL = 0.1


class LoggerTask(Task, CharDevice):
    """A write-only character device that buffers messages for a logging device."""

    def __init__(self, log_device: CharDevice) -> None:
        Task.__init__(self, "Task logger", TASK_LOGGER_PRIORITY)
        self._log_device = log_device
        self._queue: "queue.Queue[bytes]" = queue.Queue(maxsize=TASK_LOGGER_QUEUE_SIZE)

    @property
    def pending(self) -> int:
        """Number of messages waiting to be written."""
        return self._queue.qsize()

    def probe(self, timeout: float = 0.0) -> bool:
        return self._log_device.probe(timeout)

    def write(self, data: bytes, timeout: float = 0.0) -> int:
        """Queue a message; returns its length, or 0 if the queue is full."""
        message = bytes(data)
        if len(message) > LOGGER_MAX_TOTAL_SIZE:
            raise ValueError(
                f"log message longer than {LOGGER_MAX_TOTAL_SIZE} bytes"
            )
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            return 0
        return len(message)

    def read(self, size: int, timeout: float = 0.0) -> bytes:
        raise io.UnsupportedOperation("the log task cannot be read from")

    def step(self) -> None:
        """Write the next queued message to the log device, if one arrives."""
        try:
            message = self._queue.get(timeout=_POLL_INTERVAL)
        except queue.Empty:
            return
        self._log_device.write(message, 0.0)

    def run(self) -> None:
        if not self._log_device.probe(0.0):
            raise RuntimeError("log device is not available")
        super().run()