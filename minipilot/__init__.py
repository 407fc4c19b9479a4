"""State estimation, copter dynamics, control and threaded task scheduling for a small flight controller."""

__version__ = "1.0.0"