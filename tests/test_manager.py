import os
import select
import threading
import time

import pytest

from fssync.commands import Manager
from fssync.manager import handle_event, load_config, main, parse_args, serve
from fssync.store import WatchDir
from fssync.watcher import WatchEvent
from fssync.worker import Operation


class _FakeProcess:
    def __init__(self):
        self.returncode = None

    def poll(self):
        return self.returncode

    def wait(self):
        self.returncode = 0
        return 0


class _Spawner:
    def __init__(self):
        self.calls = []

    def __call__(self, source, target, event_name, operation, log=None):
        self.calls.append((source, target, event_name, operation))
        return _FakeProcess()


class _FakeWatcher:
    def __init__(self):
        self.watched = {}
        self._next = 1

    def add_watch(self, path):
        wd = self._next
        self._next += 1
        self.watched[wd] = path
        return wd

    def remove_watch(self, watchdesc):
        if watchdesc not in self.watched:
            raise OSError("unknown watch")
        del self.watched[watchdesc]

    def get_events(self, timeout=None):
        return []


def _manager(tmp_path, worker_count=5):
    spawner = _Spawner()
    manager = Manager(
        _FakeWatcher(), str(tmp_path / "manager.log"), worker_count=worker_count, spawn=spawner
    )
    return manager, spawner


def _read_until(fd, marker, timeout=5.0):
    data = b""
    deadline = time.monotonic() + timeout
    while marker not in data:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise AssertionError(f"timed out waiting for {marker!r}; got {data!r}")
        ready, _, _ = select.select([fd], [], [], remaining)
        if ready:
            chunk = os.read(fd, 4096)
            if not chunk:
                break
            data += chunk
    return data


def test_parse_args_reads_all_flags():
    options = parse_args(["-l", "m.log", "-c", "cfg.txt", "-n", "7"])
    assert options.manager_log == "m.log"
    assert options.config == "cfg.txt"
    assert options.worker_count == 7


def test_parse_args_default_worker_count():
    options = parse_args(["-c", "cfg.txt", "-l", "m.log"])
    assert options.worker_count == 5


@pytest.mark.parametrize(
    "argv",
    [
        ["-l", "m.log"],
        ["-c", "cfg.txt"],
        ["-l", "m.log", "-c", "cfg.txt", "-n", "4"],
        ["-l", "m.log", "-c", "cfg.txt", "-n", "many"],
        ["-l", "m.log", "-c"],
    ],
)
def test_parse_args_rejects_bad_arguments(argv):
    with pytest.raises(ValueError, match="Usage"):
        parse_args(argv)


def test_load_config_splits_source_and_rest_of_line(tmp_path, capsys):
    config = tmp_path / "config.txt"
    config.write_text("src1 tgt1\n\n  src2 tgt two\nlonely\n")
    assert load_config(str(config)) == [("src1", "tgt1"), ("src2", "tgt two")]
    assert "Config file" in capsys.readouterr().err


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.txt"))


def test_handle_event_spawns_worker_for_known_watch(tmp_path, capsys):
    manager, spawner = _manager(tmp_path)
    entry = WatchDir("/src", "/dst", watchdesc=3, active=True)
    manager.store.insert(entry)

    job = handle_event(manager, WatchEvent(3, "f.txt", Operation.ADDED))

    assert spawner.calls == [("/src", "/dst", "f.txt", "ADDED")]
    assert (job.source_dir, job.target_dir, job.filename, job.operation) == (
        "/src",
        "/dst",
        "f.txt",
        "ADDED",
    )
    assert "IN_CREATE: f.txt" in capsys.readouterr().out
    assert manager.active_workers == 1


def test_handle_event_ignores_unknown_watch(tmp_path):
    manager, spawner = _manager(tmp_path)
    assert handle_event(manager, WatchEvent(9, "f.txt", Operation.MODIFIED)) is None
    assert spawner.calls == []


def test_handle_event_queues_when_no_worker_free(tmp_path, capsys):
    manager, spawner = _manager(tmp_path, worker_count=0)
    manager.store.insert(WatchDir("/src", "/dst", watchdesc=2, active=True))

    handle_event(manager, WatchEvent(2, "gone.txt", Operation.DELETED))

    assert spawner.calls == []
    assert len(manager.queue) == 1
    queued = manager.queue.dequeue()
    assert (queued.filename, queued.operation) == ("gone.txt", "DELETED")
    assert "IN_DELETE: gone.txt" in capsys.readouterr().out


def test_serve_answers_commands_over_fifos(tmp_path):
    fifo_in = str(tmp_path / "in")
    fifo_out = str(tmp_path / "out")
    os.mkfifo(fifo_in)
    os.mkfifo(fifo_out)
    source = tmp_path / "source"
    target = tmp_path / "target"
    source.mkdir()
    target.mkdir()
    manager, spawner = _manager(tmp_path)

    thread = threading.Thread(target=serve, args=(manager, fifo_in, fifo_out), daemon=True)
    thread.start()
    writer = os.open(fifo_in, os.O_WRONLY)
    reader = os.open(fifo_out, os.O_RDONLY)
    try:
        os.write(writer, b"status /nowhere\0")
        reply = _read_until(reader, b"/nowhere\n")
        assert b"Directory not monitored: /nowhere" in reply

        os.write(writer, f"add {source} {target}\0".encode())
        reply = _read_until(reader, b"Monitoring started")
        assert f"Added directory: {source} -> {target}".encode() in reply
        assert spawner.calls == [(str(source), str(target), "ALL", "FULL")]

        os.write(writer, b"shutdown\0")
        reply = _read_until(reader, b"Manager shutdown complete.")
        assert b"Shutting down manager..." in reply
    finally:
        os.close(writer)
        os.close(reader)
    thread.join(5)
    assert not thread.is_alive()
    assert manager.running is False
    assert manager.active_workers == 0
    assert manager.store.find(str(source)).active is False


def test_main_usage_error(capsys):
    assert main(["-l", "only.log"]) == 1
    assert "Usage:" in capsys.readouterr().out


def test_main_missing_config_cleans_up_pipes(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = main(["-l", str(tmp_path / "m.log"), "-c", str(tmp_path / "none.txt"), "-n", "5"])
    assert result == 1
    assert not os.path.exists(tmp_path / "fss_in")
    assert not os.path.exists(tmp_path / "fss_out")