"""Task that runs the vehicle's update loop and passes it received commands."""

from __future__ import annotations

from .logger import log_error
from .receiver_task import ReceiverTask
from .state_task import StateEstimatorTask
from .task import TASK_VEHICLE_PERIOD, TASK_VEHICLE_PRIORITY, Task
from .vehicle import Vehicle


class VehicleTask(Task):
    """Executes pending commands, then updates the vehicle with the latest state."""

    def __init__(self, vehicle: Vehicle, task_receiver: ReceiverTask,
                 task_state_estimator: StateEstimatorTask) -> None:
        super().__init__("Task vehicle", TASK_VEHICLE_PRIORITY, TASK_VEHICLE_PERIOD)
        self._vehicle = vehicle
        self._task_receiver = task_receiver
        self._task_state = task_state_estimator

    def initialize(self) -> None:
        """Initialise the vehicle; raises RuntimeError if it fails."""
        if not self._vehicle.init():
            log_error("Vehicle init failed!")
            raise RuntimeError("vehicle initialisation failed")

    def step(self) -> None:
        while True:
            command = self._task_receiver.get_command()
            if command is None:
                break
            self._vehicle.handle_command(command)

        state = self._task_state.get_state()
        self._vehicle.update(state, TASK_VEHICLE_PERIOD)

    def run(self) -> None:
        self.initialize()
        super().run()