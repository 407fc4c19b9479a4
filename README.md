# minipilot

`minipilot` is the core of a small flight controller. It estimates the
state of a vehicle from accelerometer and gyroscope readings, models the
dynamics of a copter, turns target velocities into thrust and torque, and
runs all of this as a set of periodic tasks on threads.

## What is inside

- **Math and constants** (`minipilot.mathutil`): a frozen `Quaternion`
  type (`as_vector`, `conjugate`, `normalized`, `rotate_vec`,
  multiplication), helpers `vec3` and `diagonal`, the frame directions
  `FORWARD`, `LEFT`, `UP`, `BACKWARD`, `RIGHT`, `DOWN`, the gravity
  constant `G` and the gravity vector `GV`.
- **State estimation** (`minipilot.state`, `minipilot.kalman`,
  `minipilot.ekf_ahrs`, `minipilot.ekf_inertial`): the `State` and
  `SensorData` records, the `StateEstimator` interface, a generic
  `ExtendedKalmanFilter`, and two estimators:
  - `EkfAhrs` – attitude and heading from accelerometer and gyroscope,
    with no assumption about vehicle physics.
  - `EkfInertial` – inertial navigation that uses a vehicle model
    (`EkfVehicle`) in its prediction step and integrates position from
    the estimated velocity and acceleration.

  Both require accelerometer and gyroscope readings and their
  covariances in `SensorData` and raise `ValueError` without them.
- **Vehicles** (`minipilot.vehicle`, `minipilot.copter`,
  `minipilot.quadcopter`): the `Vehicle` and `EkfVehicle` interfaces,
  the `Jacobian` record, commands (`Command`, `SetAngularVelocity`,
  `SetLinearVelocity`), an abstract `Copter` model that starts grounded
  and detects takeoff from upward acceleration, and a `Quadcopter` that
  maps thrust and torque onto four `Motor`s (`QuadcopterActuators`,
  `QuadcopterParams`, `MotorSpeeds`).
- **Control** (`minipilot.pid`, `minipilot.controller`): a `Pid` for
  scalar or vector errors, `CopterParams`, the `CopterController`
  interface and `CopterControllerPid`, which works in angular-velocity
  or linear-velocity mode (`ControlMode`).
- **Logging** (`minipilot.logger`, `minipilot.log_task`): a leveled
  `Logger` that writes lines such as `INFO: Logging available!` to any
  `CharDevice`, the module functions `get_logger`, `log_set_level`,
  `log_debug`, `log_info`, `log_warning`, `log_error`, and a
  `LoggerTask` that queues messages for a device.
- **Tasks** (`minipilot.task` and the task modules): the `Task` base
  class with `TaskPriority`, `start_tasks`, and tasks for sensors
  (`AccelerometerTask`, `GyroscopeTask` in `minipilot.sensor_tasks`),
  state estimation (`StateEstimatorTask`), command reception
  (`ReceiverTask`), telemetry (`TelemetryTask`, `TelemetryMessage`) and
  the vehicle loop (`VehicleTask`).
- **Wiring** (`minipilot.app`): `Devices` and `SensorDevice` records,
  `build_tasks` and `main`, which probe the devices, create every task
  and start them.

## Estimating attitude

```python
from minipilot.ekf_ahrs import EkfAhrs
from minipilot.mathutil import diagonal, vec3
from minipilot.state import SensorData

ahrs = EkfAhrs()

accel_cov = diagonal(0.01, 3)
gyro_cov = diagonal(0.001, 3)

for _ in range(100):
    reading = SensorData(
        accelerometer=vec3(0.0, 0.0, 9.80665),
        accelerometer_cov=accel_cov,
        gyroscope=vec3(0.0, 0.0, 0.0),
        gyroscope_cov=gyro_cov,
    )
    ahrs.update(reading, 0.02)

state = ahrs.get_state()
print(state.rotationq.as_vector())
print(state.angular_velocity)
```

## Logging

```python
from minipilot.logger import LogLevel, get_logger, log_info, log_set_level

get_logger().set_output_device(my_device)  # any CharDevice
log_set_level(LogLevel.INFO)
log_info("Calculated copter mass: ", 1.2)
```

Until an output device is set, log calls are dropped. Messages below the
output level are dropped too. Each message is written as
`LEVEL: text\n`, with the text cut to 110 characters.

## Commands and telemetry

By default `ReceiverTask` decodes each message read from its device as a
JSON object, for example:

```json
{"set_angular_velocity": {"angular_velocity": {"x": 0, "y": 0, "z": 0.1}, "thrust": 9.8}}
{"set_linear_velocity": {"velocity": {"x": 1, "y": 0, "z": 0}, "direction": 0}}
```

Any other object becomes an empty `Command`, which a `Copter` rejects.
Malformed messages are discarded. A different decoder can be passed as
`decode`.

`TelemetryTask` writes each `TelemetryMessage` as the JSON form of
`TelemetryMessage.to_dict()` unless another `encode` function is given.

## Running the whole system

Provide your own sensor (`ThreeAxisSensor`), character device
(`CharDevice`) and motor (`Motor`) implementations, collect them in a
`minipilot.app.Devices` record, pick a state estimator and a vehicle, and
hand them to `minipilot.app.main`. It returns 1 if a required device
(accelerometer, gyroscope or receiver) does not respond; the logging and
telemetry devices are optional. Otherwise it starts all tasks, highest
priority first, and waits on them.

## What it does not do

- There are no hardware drivers: sensors, motors and serial links must be
  supplied by you through the interfaces above.
- There is no command-line program; the package is used as a library.
- A `Copter` detects takeoff but not landing.
- Commands and telemetry use JSON unless you provide your own codec; no
  binary wire format is included.

## Testing

The test suite uses pytest; install the `test` extra to get it.