"""Manager state and the commands it accepts: add, cancel, status, sync and shutdown."""

from __future__ import annotations

import sys
import time
from collections.abc import Callable
from typing import TextIO

from fssync.jobqueue import Job, JobQueue
from fssync.store import SyncInfoStore, WatchDir
from fssync.utility import MAX_WORKERS, TIME_FORMAT, Paths, get_time, spawn_worker, tee


def _say(message: str) -> str:
    sys.stdout.write(message)
    return message


class Manager:
    """Tracks watched directories, running workers and queued jobs.

    Each command prints to the terminal and returns the text that is sent back
    to the console.
    """

    def __init__(
        self,
        watcher,
        log_path: str | None = None,
        worker_count: int = MAX_WORKERS,
        spawn: Callable = spawn_worker,
        store: SyncInfoStore | None = None,
        queue: JobQueue | None = None,
    ) -> None:
        self.watcher = watcher
        self.log_path = Paths().manager_log if log_path is None else log_path
        self.worker_count = worker_count
        self.store = SyncInfoStore() if store is None else store
        self.queue = JobQueue() if queue is None else queue
        self.workers: list = []
        self.running = True
        self._spawn = spawn

    @property
    def active_workers(self) -> int:
        return len(self.workers)

    def _open_log(self, entry: WatchDir) -> TextIO:
        try:
            return open(self.log_path, "a")
        except OSError:
            entry.error_count += 1
            raise

    @staticmethod
    def _not_monitored(source: str | None) -> str:
        return _say(f"[{get_time()}] Directory not monitored: {source}\n")

    def submit(
        self,
        source: str,
        target: str,
        filename: str,
        operation: str,
        log: TextIO | None = None,
    ):
        """Start a worker if one is free, otherwise queue the job.

        Returns the started process, or None when the job was queued.
        """
        if self.active_workers < self.worker_count:
            process = self._spawn(source, target, filename, operation, log)
            self.workers.append(process)
            return process
        self.queue.enqueue(Job(source, target, filename, operation))
        return None

    def reap_workers(self) -> int:
        """Collect finished workers, starting a queued job for each; return how many finished."""
        finished = [p for p in self.workers if p.poll() is not None]
        for process in finished:
            self.workers.remove(process)
            job = self.queue.dequeue()
            if job is None:
                continue
            try:
                started = self._spawn(job.source_dir, job.target_dir, job.filename, job.operation, None)
            except OSError as exc:
                print(f"Error spawning worker: {exc}", file=sys.stderr)
                continue
            self.workers.append(started)
            message = (
                f"[{get_time()}] Added directory: {job.source_dir} -> {job.target_dir}\n"
                f"[{get_time()}] Monitoring started for {job.source_dir}\n"
            )
            sys.stdout.write(message)
            try:
                with open(self.log_path, "a") as log:
                    log.write(message)
            except OSError:
                pass
            entry = self.store.find(job.source_dir)
            if entry is not None:
                entry.last_sync_time = time.time()
        return len(finished)

    def add(self, source: str | None, target: str | None) -> str:
        """Start monitoring `source` and run a full sync into `target`."""
        if source is None or target is None:
            raise ValueError("usage: add <source> <target>")
        if source in self.store:
            return _say(f"[{get_time()}] Already in queue: {source}\n")

        entry = WatchDir(source, target)
        self.store.insert(entry)
        try:
            entry.watchdesc = self.watcher.add_watch(source)
        except OSError as exc:
            print(f"Error adding watch: {exc}", file=sys.stderr)
            entry.error_count += 1
            self.store.remove(source)
            raise
        entry.active = True

        with self._open_log(entry) as log:
            if self.active_workers >= self.worker_count:
                self.submit(source, target, "ALL", "FULL", log)
                return ""
            try:
                self.submit(source, target, "ALL", "FULL", log)
            except OSError as exc:
                print(f"Error spawning worker: {exc}", file=sys.stderr)
                entry.error_count += 1
        return (
            f"[{get_time()}] Added directory: {source} -> {target}\n"
            f"[{get_time()}] Monitoring started for {source}\n"
        )

    def cancel(self, source: str | None) -> str:
        """Stop monitoring `source`."""
        entry = self.store.find(source)
        if entry is None or not entry.active:
            return self._not_monitored(source)
        try:
            self.watcher.remove_watch(entry.watchdesc)
        except OSError as exc:
            print(f"Error removing watch: {exc}", file=sys.stderr)
            entry.error_count += 1
            raise
        with self._open_log(entry) as log:
            entry.active = False
            message = f"[{get_time()}] Monitoring stopped for {source}\n"
            tee(log, message)
        return message

    def status(self, source: str | None) -> str:
        """Describe the sync state of `source`."""
        entry = self.store.find(source)
        if entry is None:
            return self._not_monitored(source)
        if entry.last_sync_time == 0:
            last_sync = "---"
        else:
            last_sync = time.strftime(TIME_FORMAT, time.localtime(entry.last_sync_time))
        return _say(
            f"[{get_time()}] Status requested for {entry.source_dir}\n"
            f"Directory: {entry.source_dir}\n"
            f"Target: {entry.target_dir}\n"
            f"Last Sync: {last_sync}\n"
            f"Errors: {entry.error_count}\n"
            f"Status: {'Active' if entry.active else 'Inactive'}\n"
        )

    def sync(self, source: str | None) -> str:
        """Run a full sync of `source` now and resume monitoring it."""
        entry = self.store.find(source)
        if entry is None:
            return self._not_monitored(source)
        target = entry.target_dir

        with self._open_log(entry) as log:
            if self.active_workers >= self.worker_count:
                self.submit(source, target, "ALL", "FULL")
                return ""
            try:
                self.submit(source, target, "ALL", "FULL")
            except OSError:
                entry.error_count += 1
                raise
            message = f"[{get_time()}] Syncing directory: {source} -> {target}\n"
            tee(log, message)

        entry.active = True
        entry.last_sync_time = time.time()
        try:
            entry.watchdesc = self.watcher.add_watch(source)
        except OSError:
            entry.watchdesc = -1
        return message

    def shutdown(self) -> str:
        """Stop monitoring, let running and queued work finish, and stop the manager."""
        for entry in self.store:
            if entry.active and entry.watchdesc >= 0:
                try:
                    self.watcher.remove_watch(entry.watchdesc)
                except OSError:
                    pass
                entry.active = False

        reply = _say(
            f"[{get_time()}] Shutting down manager...\n"
            f"[{get_time()}] Waiting for all active workers to finish.\n"
            f"[{get_time()}] Processing remaining queued tasks.\n"
        )
        while self.workers:
            self.workers[0].wait()
            self.reap_workers()
        reply += _say(f"[{get_time()}] Manager shutdown complete.\n")
        self.running = False
        return reply

    def dispatch(self, line: str) -> str:
        """Run one console command line; anything unrecognised shuts the manager down."""
        tokens = line.replace("\0", " ").split()
        command = tokens[0] if tokens else ""
        source = tokens[1] if len(tokens) > 1 else None
        target = tokens[2] if len(tokens) > 2 else None

        if command == "add":
            return self.add(source, target)
        single = {"cancel": self.cancel, "status": self.status, "sync": self.sync}
        if command in single:
            if source is None:
                raise ValueError(f"usage: {command} <source dir>")
            return single[command](source)
        return self.shutdown()