"""FIFO queue of sync jobs waiting for a free worker."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass
class Job:
    """A unit of sync work handed to a worker."""

    source_dir: str
    target_dir: str
    filename: str
    operation: str


class JobQueue:
    """First-in, first-out queue of pending jobs."""

    def __init__(self) -> None:
        self._jobs: deque[Job] = deque()

    def enqueue(self, job: Job) -> None:
        """Append a job to the tail of the queue."""
        if job is None:
            raise TypeError("cannot enqueue None")
        self._jobs.append(job)

    def dequeue(self) -> Job | None:
        """Remove and return the job at the head, or None when empty."""
        if not self._jobs:
            return None
        return self._jobs.popleft()

    def is_empty(self) -> bool:
        return not self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        """Iterate over pending jobs from head to tail without removing them."""
        return iter(list(self._jobs))