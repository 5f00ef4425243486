"""Interactive console that sends commands to the manager and logs its replies."""

from __future__ import annotations

import os
import sys
from typing import TextIO

from fssync.utility import BUFFER_SIZE, FIFO_IN, FIFO_OUT, Paths, get_time

USAGE = "Usage: fss_console -l <console-logfile>"

_SINGLE_SOURCE = ("cancel", "status", "sync")


class UsageError(Exception):
    """A command line or console command was not well formed."""


def parse_args(argv: list[str]) -> str:
    """Return the console log path given with -l."""
    console_log = None
    args = iter(argv)
    for flag in args:
        if flag == "-l":
            console_log = next(args, None)
    if console_log is None:
        raise UsageError(USAGE)
    return console_log


def parse_command(line: str) -> tuple[str, str | None, str | None]:
    """Split a console line into (command, source, target) and check its shape."""
    tokens = [token for token in line.split(" ") if token]
    if not tokens:
        raise UsageError("Unrecognized command")
    command = tokens[0]
    source = tokens[1] if len(tokens) > 1 else None
    target = tokens[2] if len(tokens) > 2 else None

    if command == "add":
        if source is None or target is None:
            raise UsageError("Usage: add <source> <target>")
    elif command in _SINGLE_SOURCE:
        if source is None or target is not None:
            raise UsageError(f"Usage: {command} <source dir>")
    elif command == "shutdown":
        if source is not None:
            raise UsageError("Usage: shutdown")
    else:
        raise UsageError("Unrecognized command")
    return command, source, target


def _describe(command: str, source: str | None, target: str | None) -> str:
    if command == "add":
        return f"Command add {source} -> {target}."
    if command == "shutdown":
        return "Command shutdown."
    return f"Command {command} {source}."


def _relay(data: bytes, log: TextIO) -> None:
    text = data.decode(errors="replace")
    sys.stdout.write(text)
    sys.stdout.flush()
    log.write(text)
    log.flush()


def _session(fss_in: int, fss_out: int, log: TextIO) -> None:
    while True:
        sys.stdout.write("\n$ ")
        sys.stdout.flush()
        raw = sys.stdin.readline()
        if not raw:
            return
        line = raw.rstrip("\n")
        try:
            command, source, target = parse_command(line)
        except UsageError as exc:
            print(exc, file=sys.stderr)
            continue

        os.write(fss_in, line.encode() + b"\0")
        log.write(f"[{get_time()}] {_describe(command, source, target)}\n")

        if command == "shutdown":
            while chunk := os.read(fss_out, BUFFER_SIZE):
                _relay(chunk, log)
            return
        reply = os.read(fss_out, BUFFER_SIZE)
        if reply:
            _relay(reply, log)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        console_log = parse_args(args)
    except UsageError as exc:
        print(exc)
        return 1
    paths = Paths(console_log=console_log)

    try:
        fss_in = os.open(FIFO_IN, os.O_WRONLY)
    except OSError:
        return 1
    try:
        fss_out = os.open(FIFO_OUT, os.O_RDONLY)
    except OSError:
        os.close(fss_in)
        return 1

    try:
        with open(paths.console_log, "w") as log:
            _session(fss_in, fss_out, log)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        os.close(fss_in)
        os.close(fss_out)
    return 0


if __name__ == "__main__":
    sys.exit(main())