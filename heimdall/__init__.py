"""Single-pulse search tooling: search parameters, SIGPROC I/O, PGM rendering and synthetic data."""

__version__ = "0.1.0"