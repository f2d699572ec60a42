[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "heimdall"
version = "0.1.0"
description = "Single-pulse search tooling for radio astronomy: pipeline parameters, SIGPROC filterbank I/O, PGM rendering and synthetic data generation"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "astronomy",
    "radio-astronomy",
    "pulsar",
    "fast-radio-burst",
    "single-pulse",
    "sigproc",
    "filterbank",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Astronomy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
heimdall-fil2pgm = "heimdall.fil2pgm:main"
heimdall-giant-maker = "heimdall.giant_maker:main"

[tool.hatch.build.targets.wheel]
packages = ["heimdall"]

[tool.hatch.build.targets.sdist]
include = [
    "heimdall",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
