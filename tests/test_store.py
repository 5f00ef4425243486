import pytest

from fssync.store import SyncInfoStore, WatchDir


def _dir(source, target):
    return WatchDir(source, target, active=True)


def test_insert_find():
    store = SyncInfoStore()
    store.insert(_dir("./dummy/docs", "./dummy/backup"))
    found = store.find("./dummy/docs")
    assert found is not None
    assert found.target_dir == "./dummy/backup"


def test_remove():
    store = SyncInfoStore()
    store.insert(_dir("./dummy/docs", "./dummy/backup"))
    store.insert(_dir("./test/docs", "./test/backup"))
    removed = store.remove("./dummy/docs")
    assert removed.source_dir == "./dummy/docs"
    assert store.find("./dummy/docs") is None
    assert store.find("./test/docs").target_dir == "./test/backup"
    assert len(store) == 1


def test_remove_missing_raises():
    with pytest.raises(KeyError):
        SyncInfoStore().remove("./nowhere")


def test_find_missing_and_none():
    store = SyncInfoStore()
    store.insert(_dir("./dummy/docs", "./dummy/backup"))
    assert store.find("./other") is None
    assert store.find(None) is None


def test_duplicate_insert_keeps_original():
    store = SyncInfoStore()
    store.insert(_dir("./dummy/docs", "./dummy/backup"))
    store.insert(_dir("./dummy/docs", "./elsewhere"))
    assert len(store) == 1
    assert store.find("./dummy/docs").target_dir == "./dummy/backup"


def test_find_by_watch():
    store = SyncInfoStore()
    a = _dir("./a", "./ta")
    a.watchdesc = 3
    b = _dir("./b", "./tb")
    b.watchdesc = 7
    store.insert(a)
    store.insert(b)
    assert store.find_by_watch(7) is b
    assert store.find_by_watch(3) is a
    assert store.find_by_watch(99) is None


def test_contains_and_iter():
    store = SyncInfoStore()
    store.insert(_dir("./a", "./ta"))
    store.insert(_dir("./b", "./tb"))
    assert "./a" in store
    assert "./c" not in store
    assert sorted(e.source_dir for e in store) == ["./a", "./b"]


def test_new_entry_defaults():
    entry = WatchDir("./src", "./dst")
    assert entry.last_sync_time == 0
    assert entry.error_count == 0
    assert entry.active is False


def test_dump_lists_every_entry():
    store = SyncInfoStore()
    store.insert(_dir("./dummy/docs", "./dummy/backup"))
    store.insert(_dir("./test/docs", "./test/backup"))
    text = store.dump()
    assert " Source ./dummy/docs - Target ./dummy/backup - Active 1\n" in text
    assert " Source ./test/docs - Target ./test/backup - Active 1\n" in text
    assert text.count("Bucket ") == 2


def test_dump_empty():
    assert SyncInfoStore().dump() == ""