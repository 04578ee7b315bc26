"""Tests for the entry store."""

import asyncio

import pytest

from fetchcache.cache.store import Entry, EntryStore


@pytest.fixture
def loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


def _entry(loop, key: str, created_at: float = 0.0) -> Entry:
    return Entry(key=key, future=loop.create_future(), created_at=created_at)


class TestEntryStore:
    """Tests for EntryStore ordering and mutation."""

    def test_empty_store(self):
        store = EntryStore()
        assert store.size() == 0
        assert store.oldest_key() is None
        assert store.get("/users") is None

    def test_set_and_get(self, loop):
        store = EntryStore()
        entry = _entry(loop, "/users")
        store.set("/users", entry)

        assert store.get("/users") is entry
        assert "/users" in store
        assert len(store) == 1

    def test_insertion_order_drives_oldest_key(self, loop):
        store = EntryStore()
        for key in ("/a", "/b", "/c"):
            store.set(key, _entry(loop, key))

        assert store.oldest_key() == "/a"
        assert list(store) == ["/a", "/b", "/c"]

    def test_replacing_key_moves_it_to_end(self, loop):
        """Re-inserting behaves like delete-then-insert."""
        store = EntryStore()
        for key in ("/a", "/b", "/c"):
            store.set(key, _entry(loop, key))

        replacement = _entry(loop, "/a", created_at=5.0)
        store.set("/a", replacement)

        assert list(store) == ["/b", "/c", "/a"]
        assert store.get("/a") is replacement
        assert store.size() == 3

    def test_reads_do_not_promote(self, loop):
        store = EntryStore()
        store.set("/a", _entry(loop, "/a"))
        store.set("/b", _entry(loop, "/b"))

        store.get("/a")

        assert store.oldest_key() == "/a"

    def test_delete_is_idempotent(self, loop):
        store = EntryStore()
        store.set("/a", _entry(loop, "/a"))

        assert store.delete("/a") is True
        assert store.delete("/a") is False
        assert store.size() == 0

    def test_clear_leaves_handed_out_entries_intact(self, loop):
        store = EntryStore()
        entry = _entry(loop, "/a")
        store.set("/a", entry)

        dropped = store.clear()

        assert dropped == 1
        assert store.size() == 0
        assert not entry.future.done()

    def test_snapshot_is_read_only_copy(self, loop):
        store = EntryStore()
        store.set("/a", _entry(loop, "/a"))
        snapshot = store.snapshot()

        with pytest.raises(TypeError):
            snapshot["/b"] = _entry(loop, "/b")  # type: ignore[index]

        store.set("/b", _entry(loop, "/b"))
        assert list(snapshot) == ["/a"]


class TestEntry:
    """Tests for entry state reporting."""

    def test_state_transitions(self, loop):
        pending = _entry(loop, "/a")
        assert pending.state == "pending"

        pending.future.set_result({"ok": True})
        assert pending.state == "resolved"

        failed = _entry(loop, "/b")
        failed.future.set_exception(RuntimeError("boom"))
        assert failed.state == "failed"

    def test_age(self, loop):
        entry = _entry(loop, "/a", created_at=10.0)
        assert entry.age(12.5) == pytest.approx(2.5)
