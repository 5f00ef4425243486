"""In-memory store of watched directories and their sync state."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator
from dataclasses import dataclass

HASH_TABLE_SIZE = 1572869
_MASK64 = (1 << 64) - 1


def _bucket(source_dir: str) -> int:
    """djb2 hash of the path, reduced to a bucket index."""
    value = 5381
    for byte in source_dir.encode("utf-8", "surrogateescape"):
        c = byte - 256 if byte > 127 else byte
        value = (((value << 5) + value) + c) & _MASK64
    return value % HASH_TABLE_SIZE


@dataclass
class WatchDir:
    """A monitored source directory paired with its target."""

    source_dir: str
    target_dir: str
    last_sync_time: float = 0
    active: bool = False
    error_count: int = 0
    watchdesc: int = 0


class SyncInfoStore:
    """Watched directories keyed by source path."""

    def __init__(self) -> None:
        self._entries: dict[str, WatchDir] = {}

    def insert(self, entry: WatchDir) -> None:
        """Add an entry; an existing entry with the same source is kept."""
        self._entries.setdefault(entry.source_dir, entry)

    def find(self, source_dir: str | None) -> WatchDir | None:
        if source_dir is None:
            return None
        return self._entries.get(source_dir)

    def find_by_watch(self, watchdesc: int) -> WatchDir | None:
        """Return the first entry holding the given watch descriptor."""
        return next((e for e in self._entries.values() if e.watchdesc == watchdesc), None)

    def remove(self, source_dir: str) -> WatchDir:
        """Remove and return the entry for source_dir; KeyError if absent."""
        try:
            return self._entries.pop(source_dir)
        except KeyError:
            raise KeyError(source_dir) from None

    def dump(self) -> str:
        """Render the store bucket by bucket, as a human-readable listing."""
        buckets: dict[int, list[WatchDir]] = defaultdict(list)
        for entry in self._entries.values():
            buckets[_bucket(entry.source_dir)].insert(0, entry)
        lines = []
        for index in sorted(buckets):
            lines.append(f"Bucket {index}:\n")
            lines.extend(
                f" Source {e.source_dir} - Target {e.target_dir} - Active {int(e.active)}\n"
                for e in buckets[index]
            )
        return "".join(lines)

    def __iter__(self) -> Iterator[WatchDir]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, source_dir: object) -> bool:
        return source_dir in self._entries