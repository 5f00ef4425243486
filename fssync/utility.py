"""Shared helpers: paths, named pipes, timestamps, logging and worker spawning."""

from __future__ import annotations

import os
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import TextIO

MAX_WORKERS = 5
FIFO_IN = "fss_in"
FIFO_OUT = "fss_out"
BUFFER_SIZE = 4096
BUFFER_SIZE_SMALL = 1024
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class Paths:
    """Locations of the log and configuration files."""

    manager_log: str = "./logs/manager-log"
    console_log: str = "./logs/console-log"
    config: str = "./config.txt"


def create_named_pipe(name: str) -> None:
    """Create a FIFO; an existing one is left alone."""
    try:
        os.mkfifo(name, 0o777)
    except FileExistsError:
        pass


def delete_named_pipe(name: str) -> None:
    """Remove a FIFO; raises OSError if it cannot be removed."""
    os.unlink(name)


def check_dir(path: str) -> bool:
    """Return True if the path exists."""
    try:
        os.stat(path)
    except OSError:
        return False
    return True


def get_time() -> str:
    """Current local time as 'YYYY-MM-DD HH:MM:SS'."""
    return time.strftime(TIME_FORMAT, time.localtime())


def tee(stream: TextIO, message: str) -> None:
    """Write a message to standard output and to the given stream."""
    sys.stdout.write(message)
    stream.write(message)


def format_sync_report(
    source: str,
    target: str,
    worker_pid: int,
    operation: str,
    result: str,
    details: str,
) -> str:
    """One line of a sync report."""
    return (
        f"[{get_time()}] [{source}] [{target}] [{worker_pid}] "
        f"[{operation}] [{result}] [{details}]\n"
    )


def worker_command(source: str, target: str, event_name: str, operation: str) -> list[str]:
    """Command line that runs a worker for one job."""
    return [sys.executable, "-m", "fssync.worker", source, target, event_name, operation]


def spawn_worker(
    source: str,
    target: str,
    event_name: str,
    operation: str,
    log: TextIO | None = None,
) -> subprocess.Popen:
    """Start a worker process; log the start to stdout and `log` when given."""
    process = subprocess.Popen(worker_command(source, target, event_name, operation))
    if log is not None:
        tee(log, f"[{get_time()}] Added directory: {source} -> {target}\n")
        tee(log, f"[{get_time()}] Monitoring started for {source}\n")
    return process