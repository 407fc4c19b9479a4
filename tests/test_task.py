import threading

import pytest

from minipilot.task import (
    TASK_STATE_PERIOD,
    TASK_STATE_PRIORITY,
    Task,
    TaskPriority,
    start_tasks,
)


class CountingTask(Task):
    def __init__(self, limit=None, priority=TaskPriority.LOW, period=None):
        super().__init__("counting", priority, period)
        self.count = 0
        self.limit = limit
        self.ran = threading.Event()

    def step(self):
        self.count += 1
        self.ran.set()
        if self.limit is not None and self.count >= self.limit:
            Task.stop(self)


def test_run_loops_until_stopped():
    task = CountingTask(limit=3)
    Task.run(task)
    assert task.count == 3
    assert task.stopped


def test_periodic_run_counts_steps():
    task = CountingTask(limit=2, period=0.001)
    Task.run(task)
    assert task.count == 2


def test_start_stop_join():
    task = CountingTask(period=0.001)
    Task.start(task)
    assert task.ran.wait(2.0)
    Task.stop(task)
    Task.join(task, 2.0)
    assert not task.running
    assert task.count >= 1


def test_start_twice_raises():
    task = CountingTask(period=0.01)
    Task.start(task)
    try:
        with pytest.raises(RuntimeError):
            Task.start(task)
    finally:
        Task.stop(task)
        Task.join(task, 2.0)


def test_notification_is_consumed():
    task = CountingTask()
    Task.notify(task)
    assert Task.wait_notification(task, 0.0) is True
    assert Task.wait_notification(task, 0.01) is False


def test_invalid_period_rejected():
    task = CountingTask()
    with pytest.raises(ValueError):
        Task.__init__(task, "counting", TaskPriority.LOW, 0)


def test_start_tasks_orders_by_priority():
    low = CountingTask(priority=TaskPriority.LOW, period=0.001)
    high = CountingTask(priority=TASK_STATE_PRIORITY, period=TASK_STATE_PERIOD)
    started = start_tasks([low, high])
    try:
        assert started == [high, low]
        assert low.ran.wait(2.0) and high.ran.wait(2.0)
    finally:
        for t in started:
            t.stop()
            t.join(2.0)
    assert not any(t.running for t in started)