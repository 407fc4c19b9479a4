"""Task that receives commands from a character device and queues them."""

from __future__ import annotations

import json
import queue
from typing import Callable, Optional

from .logger import CharDevice, log_error, log_warning
from .task import TASK_RECEIVER_PRIORITY, TASK_RECEIVER_QUEUE_SIZE, Task
from .vehicle import Command, SetAngularVelocity, SetLinearVelocity

# Largest encoded command read from the device in one go, in bytes
MAX_COMMAND_SIZE = 256

# Pause after a failed read, giving the receiver time to recover
_RETRY_DELAY = 0.1
# How long one wait on the device or the queue lasts
_POLL_INTERVAL = 0.1

CommandDecoder = Callable[[bytes], Command]


def _vector(obj) -> list:
    return [float(obj["x"]), float(obj["y"]), float(obj["z"])]


def _decode_command(data: bytes) -> Command:
    """Decode a JSON command; raises ValueError if it is malformed."""
    try:
        document = json.loads(data.decode("utf-8"))
        if not isinstance(document, dict):
            raise ValueError("command must be a JSON object")
        if "set_angular_velocity" in document:
            body = document["set_angular_velocity"]
            return Command(SetAngularVelocity(_vector(body["angular_velocity"]),
                                              float(body["thrust"])))
        if "set_linear_velocity" in document:
            body = document["set_linear_velocity"]
            return Command(SetLinearVelocity(_vector(body["velocity"]),
                                             float(body["direction"])))
        # A command meant for some other kind of vehicle
        return Command()
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed command: {exc}") from exc


class ReceiverTask(Task):
    """Reads encoded commands from the receiver device and queues the decoded ones."""

    def __init__(self, receiver_device: CharDevice,
                 decode: Optional[CommandDecoder] = None,
                 max_message_size: int = MAX_COMMAND_SIZE) -> None:
        super().__init__("Task Receiver", TASK_RECEIVER_PRIORITY)
        if max_message_size <= 0:
            raise ValueError("maximum message size must be positive")
        self._device = receiver_device
        self._decode = decode if decode is not None else _decode_command
        self._max_message_size = max_message_size
        self._queue: "queue.Queue[Command]" = queue.Queue(maxsize=TASK_RECEIVER_QUEUE_SIZE)

    @property
    def pending(self) -> int:
        """Number of commands waiting to be taken."""
        return self._queue.qsize()

    def get_command(self) -> Optional[Command]:
        """Take the oldest received command without waiting; None if there is none."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def step(self) -> None:
        """Read one message from the device and queue the command it holds."""
        try:
            data = self._device.read(self._max_message_size, _POLL_INTERVAL)
        except OSError:
            log_warning("Receiver read start fail!")
            self.sleep(_RETRY_DELAY)
            return
        if not data:
            log_error("Receiver read error!")
            return
        try:
            command = self._decode(bytes(data))
        except ValueError:
            return
        self._enqueue(command)

    def _enqueue(self, command: Command) -> bool:
        # Wait for room in the queue for as long as the task keeps running
        while not self.stopped:
            try:
                self._queue.put(command, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False