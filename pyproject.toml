[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minipilot"
version = "1.0.0"
description = "Flight controller core: state estimation, copter dynamics, control and periodic tasks"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "autopilot",
    "flight-controller",
    "quadcopter",
    "kalman-filter",
    "ekf",
    "ahrs",
    "pid",
    "state-estimation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["minipilot"]

[tool.hatch.build.targets.sdist]
include = [
    "minipilot",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
