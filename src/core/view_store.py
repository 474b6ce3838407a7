"""
view_store.py — Server-side dashboard view state

Each dashboard view (tab switchers + iframe loaders) lives here, keyed by a
random view id. The cookie session carries only that id. Every
read-modify-write of a view runs under one lock, so frame events posted at
the same time apply one after the other instead of overwriting each other.

Views expire after `ttl_seconds` without use; the oldest are evicted once
more than `max_views` are held. Gunicorn must run a single worker process
(threads are fine) for views to survive between requests.
"""

import logging
import threading
import time
import uuid
from collections import OrderedDict
from contextlib import contextmanager

log = logging.getLogger("portal.views")


class ViewStore:
    def __init__(self, ttl_seconds=24 * 3600, max_views=5000, clock=time.time):
        self.ttl_seconds = ttl_seconds
        self.max_views = max_views
        self._clock = clock
        self._lock = threading.Lock()
        self._views = OrderedDict()  # view id → (last used, view dict)

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def _expired(self, used_at) -> bool:
        return (self._clock() - used_at) >= self.ttl_seconds

    def _touch(self, view_id, view):
        self._views[view_id] = (self._clock(), view)
        self._views.move_to_end(view_id)
        while len(self._views) > self.max_views:
            old_id, _ = self._views.popitem(last=False)
            log.info("Evicted view %s", old_id[:8])

    def put(self, view_id, view):
        with self._lock:
            self._touch(view_id, view)

    def get(self, view_id):
        """The stored view, or None when unknown or expired."""
        with self._lock:
            entry = self._views.get(view_id)
            if entry is None or self._expired(entry[0]):
                return None
            return entry[1]

    @contextmanager
    def edit(self, view_id, factory):
        """Hold the lock while the caller changes one view in place.

        Unknown or expired ids get a fresh view from factory().
        """
        with self._lock:
            entry = self._views.get(view_id)
            if entry is None or self._expired(entry[0]):
                view = factory()
            else:
                view = entry[1]
            self._touch(view_id, view)
            yield view

    def discard(self, view_id):
        with self._lock:
            self._views.pop(view_id, None)

    def __len__(self):
        with self._lock:
            return len(self._views)
