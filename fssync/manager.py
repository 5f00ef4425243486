"""Manager daemon: watches configured directories and serves console commands over FIFOs."""

from __future__ import annotations

import os
import select
import sys
import time
from dataclasses import dataclass
from typing import TextIO

from fssync.commands import Manager
from fssync.jobqueue import Job
from fssync.store import WatchDir
from fssync.utility import (
    BUFFER_SIZE,
    FIFO_IN,
    FIFO_OUT,
    MAX_WORKERS,
    Paths,
    check_dir,
    create_named_pipe,
    delete_named_pipe,
    get_time,
)
from fssync.watcher import DirectoryWatcher, WatchEvent
from fssync.worker import Operation

USAGE = "Usage: fss_manager -l <manager_logfile> -c <config_file> -n <worker_count>"

_POLL_INTERVAL = 0.1

_EVENT_LABELS = {
    Operation.ADDED: "IN_CREATE",
    Operation.MODIFIED: "IN_MODIFY",
    Operation.DELETED: "IN_DELETE",
}


@dataclass(frozen=True)
class _Options:
    manager_log: str
    config: str
    worker_count: int


def parse_args(argv: list[str]) -> _Options:
    """Parse -l, -c and -n; raises ValueError with the usage text when they are unusable."""
    manager_log = None
    config = None
    worker_count = MAX_WORKERS
    args = iter(argv)
    for flag in args:
        if flag == "-l":
            manager_log = next(args, None)
        elif flag == "-c":
            config = next(args, None)
        elif flag == "-n":
            value = next(args, None)
            try:
                worker_count = int(value) if value is not None else 0
            except ValueError:
                worker_count = 0
    if manager_log is None or config is None or worker_count < MAX_WORKERS:
        raise ValueError(USAGE)
    return _Options(manager_log, config, worker_count)


def load_config(path: str) -> list[tuple[str, str]]:
    """Read '<source> <target>' pairs, one per line; the target is the rest of the line."""
    pairs = []
    with open(path) as config:
        for raw in config:
            line = raw.rstrip("\n").lstrip(" ")
            if not line:
                continue
            source, _, target = line.partition(" ")
            if not target:
                print("Error with <source> <target> in Config file.", file=sys.stderr)
                continue
            pairs.append((source, target))
    return pairs


def handle_event(manager: Manager, event: WatchEvent) -> Job | None:
    """Start or queue the job for one watch event; returns the job, or None if the watch is unknown."""
    entry = manager.store.find_by_watch(event.watchdesc)
    if entry is None:
        return None
    operation = Operation(event.operation)
    print(f"{_EVENT_LABELS[operation]}: {event.name}")
    job = Job(entry.source_dir, entry.target_dir, event.name, operation.value)
    try:
        manager.submit(job.source_dir, job.target_dir, job.filename, job.operation, None)
    except OSError as exc:
        print(f"Error spawning worker: {exc}", file=sys.stderr)
        entry.error_count += 1
    return job


def _run_command(manager: Manager, line: str) -> str:
    try:
        return manager.dispatch(line)
    except (ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return f"[{get_time()}] Error: {exc}\n"


def _send(fd: int, text: str) -> None:
    data = text.encode()
    while data:
        try:
            written = os.write(fd, data)
        except BlockingIOError:
            return
        data = data[written:]


def serve(manager: Manager, fifo_in: str, fifo_out: str) -> None:
    """Handle watch events, finished workers and console commands until shutdown."""
    in_fd = os.open(fifo_in, os.O_RDONLY | os.O_NONBLOCK)
    try:
        out_fd = os.open(fifo_out, os.O_RDWR | os.O_NONBLOCK)
    except OSError:
        os.close(in_fd)
        raise
    try:
        while manager.running:
            for event in manager.watcher.get_events(0):
                handle_event(manager, event)
            manager.reap_workers()

            ready, _, _ = select.select([in_fd], [], [], _POLL_INTERVAL)
            if not ready:
                continue
            try:
                data = os.read(in_fd, BUFFER_SIZE)
            except BlockingIOError:
                continue
            if not data:
                os.close(in_fd)
                in_fd = os.open(fifo_in, os.O_RDONLY | os.O_NONBLOCK)
                continue
            for line in data.decode(errors="replace").split("\0"):
                if not line.strip():
                    continue
                reply = _run_command(manager, line)
                if reply:
                    _send(out_fd, reply)
                if not manager.running:
                    break
    finally:
        os.close(in_fd)
        os.close(out_fd)


def _watch_configured(manager: Manager, pairs: list[tuple[str, str]], log: TextIO) -> None:
    for source, target in pairs:
        if not (check_dir(source) and check_dir(target)) or source in manager.store:
            continue
        entry = WatchDir(source, target)
        manager.store.insert(entry)
        entry.active = True
        try:
            entry.watchdesc = manager.watcher.add_watch(source)
        except OSError as exc:
            print(f"Error adding watch: {exc}", file=sys.stderr)
            entry.watchdesc = -1
        entry.last_sync_time = time.time()
        try:
            manager.submit(source, target, "ALL", "FULL", log)
        except OSError as exc:
            print(f"Error spawning worker: {exc}", file=sys.stderr)
            entry.error_count += 1


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        options = parse_args(args)
    except ValueError as exc:
        print(exc)
        return 1
    paths = Paths(manager_log=options.manager_log, config=options.config)

    try:
        create_named_pipe(FIFO_IN)
        create_named_pipe(FIFO_OUT)
    except OSError as exc:
        print(f"Could not create fifo: {exc}")
        return 1

    try:
        try:
            pairs = load_config(paths.config)
        except OSError as exc:
            print(f"Error opening file: {exc}", file=sys.stderr)
            return 1
        try:
            log = open(paths.manager_log, "w")
        except OSError as exc:
            print(f"Error opening file: {exc}", file=sys.stderr)
            return 1
        with DirectoryWatcher() as watcher:
            manager = Manager(watcher, paths.manager_log, options.worker_count)
            with log:
                _watch_configured(manager, pairs, log)
            serve(manager, FIFO_IN, FIFO_OUT)
    finally:
        for name in (FIFO_IN, FIFO_OUT):
            try:
                delete_named_pipe(name)
            except OSError:
                print("Could not delete fifo")
    return 0


if __name__ == "__main__":
    sys.exit(main())