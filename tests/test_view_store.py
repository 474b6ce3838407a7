"""Tests for the server-side dashboard view store."""

import threading

from src.core.view_store import ViewStore


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _fresh():
    return {"frames": {}, "hits": 0}


class TestViewStore:
    def test_edit_creates_then_reuses(self):
        store = ViewStore()
        with store.edit("v1", _fresh) as view:
            view["hits"] += 1
        with store.edit("v1", _fresh) as view:
            view["hits"] += 1
        assert store.get("v1")["hits"] == 2

    def test_unknown_id(self):
        assert ViewStore().get("missing") is None

    def test_expired_view_is_rebuilt(self):
        clock = Clock()
        store = ViewStore(ttl_seconds=60, clock=clock)
        store.put("v1", {"frames": {}, "hits": 5})
        clock.now += 61
        assert store.get("v1") is None
        with store.edit("v1", _fresh) as view:
            assert view["hits"] == 0

    def test_use_keeps_view_alive(self):
        clock = Clock()
        store = ViewStore(ttl_seconds=60, clock=clock)
        store.put("v1", _fresh())
        clock.now += 40
        with store.edit("v1", _fresh):
            pass
        clock.now += 40
        assert store.get("v1") is not None

    def test_oldest_evicted(self):
        store = ViewStore(max_views=2)
        for view_id in ("a", "b", "c"):
            store.put(view_id, _fresh())
        assert store.get("a") is None
        assert len(store) == 2

    def test_discard(self):
        store = ViewStore()
        store.put("v1", _fresh())
        store.discard("v1")
        store.discard(None)
        assert store.get("v1") is None

    def test_new_ids_differ(self):
        assert ViewStore.new_id() != ViewStore.new_id()

    def test_concurrent_edits_are_serialized(self):
        store = ViewStore()
        store.put("v1", _fresh())

        def bump():
            for _ in range(200):
                with store.edit("v1", _fresh) as view:
                    hits = view["hits"]
                    view["hits"] = hits + 1

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.get("v1")["hits"] == 800
