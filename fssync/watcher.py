"""Non-recursive directory monitoring that reports created, modified and deleted entries."""

from __future__ import annotations

import errno
import os
import queue
import threading
from dataclasses import dataclass

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from fssync.worker import Operation

_OPERATIONS = {
    EVENT_TYPE_CREATED: Operation.ADDED,
    EVENT_TYPE_MODIFIED: Operation.MODIFIED,
    EVENT_TYPE_DELETED: Operation.DELETED,
}


@dataclass(frozen=True)
class WatchEvent:
    """A change to an entry directly inside a watched directory."""

    watchdesc: int
    name: str
    operation: Operation


class _Handler(FileSystemEventHandler):
    def __init__(self, watchdesc: int, directory: str, sink: queue.Queue) -> None:
        super().__init__()
        self._watchdesc = watchdesc
        self._directory = directory
        self._sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        operation = _OPERATIONS.get(event.event_type)
        if operation is None:
            return
        if operation is Operation.MODIFIED and event.is_directory:
            return
        parent, name = os.path.split(os.fsdecode(event.src_path))
        if not name or os.path.normpath(parent) != self._directory:
            return
        self._sink.put(WatchEvent(self._watchdesc, name, operation))


class DirectoryWatcher:
    """Watches directories and hands out their events, one watch descriptor per directory."""

    def __init__(self) -> None:
        self._events: queue.Queue[WatchEvent] = queue.Queue()
        self._lock = threading.Lock()
        self._watches: dict[int, tuple[str, object]] = {}
        self._by_path: dict[str, int] = {}
        self._next_watchdesc = 1
        self._closed = False
        self._observer = Observer()
        self._observer.daemon = True
        self._observer.start()

    def add_watch(self, path: str) -> int:
        """Start watching a directory and return its watch descriptor.

        Watching a directory that is already watched returns its existing descriptor.
        """
        if self._closed:
            raise ValueError("watcher is closed")
        real = os.path.realpath(path)
        if not os.path.exists(real):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        if not os.path.isdir(real):
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), path)
        with self._lock:
            existing = self._by_path.get(real)
            if existing is not None:
                return existing
            watchdesc = self._next_watchdesc
            handler = _Handler(watchdesc, real, self._events)
            watch = self._observer.schedule(handler, real, recursive=False)
            self._next_watchdesc += 1
            self._watches[watchdesc] = (real, watch)
            self._by_path[real] = watchdesc
            return watchdesc

    def remove_watch(self, watchdesc: int) -> None:
        """Stop watching; raises OSError (EINVAL) for an unknown descriptor."""
        with self._lock:
            try:
                real, watch = self._watches.pop(watchdesc)
            except KeyError:
                raise OSError(errno.EINVAL, os.strerror(errno.EINVAL)) from None
            self._by_path.pop(real, None)
        self._observer.unschedule(watch)

    def get_events(self, timeout: float | None = None) -> list[WatchEvent]:
        """Wait up to `timeout` seconds (forever if None) and return the pending events."""
        try:
            first = self._events.get(timeout=timeout)
        except queue.Empty:
            return []
        events = [first]
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    def close(self) -> None:
        """Stop all watches and the background observer."""
        if self._closed:
            return
        self._closed = True
        with self._lock:
            self._watches.clear()
            self._by_path.clear()
        self._observer.unschedule_all()
        self._observer.stop()
        self._observer.join()

    def __enter__(self) -> DirectoryWatcher:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()