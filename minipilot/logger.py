"""Level-filtered logging of short text messages to a character device."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Optional

# Maximum message size in characters
LOGGER_MAX_INPUT_SIZE = 110
# Message size together with prefix and suffix
LOGGER_MAX_TOTAL_SIZE = LOGGER_MAX_INPUT_SIZE + 16


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


class CharDevice(ABC):
    """A byte-oriented device that can be written to and read from."""

    def probe(self, timeout: float = 0.0) -> bool:
        """Return True if the device is working."""
        return True

    @abstractmethod
    def write(self, data: bytes, timeout: float = 0.0) -> int:
        """Write ``data`` and return the number of bytes written."""

    @abstractmethod
    def read(self, size: int, timeout: float = 0.0) -> bytes:
        """Read up to ``size`` bytes."""


class Logger:
    """Formats messages as ``LEVEL: text`` lines and writes them to a device."""

    def __init__(self, device: Optional[CharDevice] = None,
                 level: LogLevel = LogLevel.DEBUG) -> None:
        self._device = device
        self._level = LogLevel(level)
        self._lock = threading.Lock()

    @property
    def output_device(self) -> Optional[CharDevice]:
        return self._device

    @property
    def output_level(self) -> LogLevel:
        return self._level

    def set_output_device(self, device: Optional[CharDevice]) -> None:
        with self._lock:
            self._device = device

    def set_output_level(self, level: LogLevel) -> None:
        with self._lock:
            self._level = LogLevel(level)

    def format_message(self, level: LogLevel, text: str) -> str:
        message = f"{LogLevel(level).name}: {text[:LOGGER_MAX_INPUT_SIZE]}\n"
        return message[:LOGGER_MAX_TOTAL_SIZE]

    def log(self, level: LogLevel, *args) -> None:
        """Join ``args`` into one message and write it if the level passes."""
        level = LogLevel(level)
        with self._lock:
            device = self._device
            if device is None or level < self._level:
                return
            text = "".join(str(item) for item in args)
            message = self.format_message(level, text)
            device.write(message.encode("utf-8"), 0.0)


_instance = Logger()


def get_logger() -> Logger:
    """The process-wide logger."""
    return _instance


def log_set_level(level: LogLevel) -> None:
    _instance.set_output_level(level)


def log_debug(*args) -> None:
    _instance.log(LogLevel.DEBUG, *args)


def log_info(*args) -> None:
    _instance.log(LogLevel.INFO, *args)


def log_warning(*args) -> None:
    _instance.log(LogLevel.WARNING, *args)


def log_error(*args) -> None:
    _instance.log(LogLevel.ERROR, *args)