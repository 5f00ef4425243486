"""Worker that applies one sync operation from a source to a target directory."""

from __future__ import annotations

import enum
import os
import shutil
import sys

from fssync.utility import BUFFER_SIZE


class Operation(str, enum.Enum):
    FULL = "FULL"
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class SyncError(Exception):
    """A file could not be synced."""


def _describe(path: str, exc: OSError) -> str:
    return f"File {path}: {exc.strerror or exc}"


def _copy(src: str, dst: str, truncate: bool) -> None:
    try:
        src_file = open(src, "rb")
    except OSError as exc:
        raise SyncError(_describe(src, exc)) from exc
    with src_file:
        flags = os.O_WRONLY | os.O_CREAT | (os.O_TRUNC if truncate else 0)
        try:
            fd = os.open(dst, flags, 0o777)
        except OSError as exc:
            raise SyncError(_describe(dst, exc)) from exc
        with open(fd, "wb") as dst_file:
            try:
                shutil.copyfileobj(src_file, dst_file, BUFFER_SIZE)
            except OSError as exc:
                raise SyncError(_describe(dst, exc)) from exc


def full_sync(source: str, target: str) -> None:
    """Copy every file in source into target, overwriting existing files."""
    try:
        with os.scandir(source) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        raise SyncError(_describe(source, exc)) from exc
    for entry in entries:
        if entry.is_dir():
            continue
        _copy(entry.path, os.path.join(target, entry.name), truncate=True)


def add_file(source: str, target: str, filename: str) -> None:
    """Copy a newly created file into target, writing over any existing bytes."""
    _copy(os.path.join(source, filename), os.path.join(target, filename), truncate=False)


def modify_file(source: str, target: str, filename: str) -> None:
    """Replace the target copy of a file with the source contents."""
    _copy(os.path.join(source, filename), os.path.join(target, filename), truncate=True)


def delete_file(source: str, target: str, filename: str) -> None:
    """Remove the target copy of a file."""
    path = os.path.join(target, filename)
    try:
        os.unlink(path)
    except OSError as exc:
        raise SyncError(_describe(path, exc)) from exc


def run(source: str, target: str, filename: str, operation: str | Operation) -> None:
    """Carry out one job; raises ValueError for an unknown operation."""
    op = Operation(operation)
    if op is Operation.FULL:
        full_sync(source, target)
    elif op is Operation.ADDED:
        add_file(source, target, filename)
    elif op is Operation.MODIFIED:
        modify_file(source, target, filename)
    else:
        delete_file(source, target, filename)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 4:
        print("Usage: worker <source> <target> <filename> <operation>", file=sys.stderr)
        return 2
    try:
        run(*args)
    except (SyncError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())