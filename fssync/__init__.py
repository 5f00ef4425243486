"""Directory mirroring: a manager that watches directories, workers that copy changes, and a FIFO console."""

__version__ = "0.1.0"