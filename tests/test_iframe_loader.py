"""Tests for the iframe loader state machine."""

import threading

import pytest

from src.core.iframe_loader import (FAILED, IDLE, LOADED, LOADING, RETRY, TIMEOUT,
                                    CrossOriginError, DeferredScheduler, IframeLoader,
                                    LoaderError, RetryPolicy, ThreadingScheduler)

URL = "https://zyqsemod.gensparkspace.com/"


@pytest.fixture
def scheduler():
    return DeferredScheduler()


@pytest.fixture
def loader(scheduler):
    return IframeLoader("tiktok", URL, scheduler, title="TikTok Cuan")


def _blocked():
    raise CrossOriginError("tiktok")


# ─── Start / load ───────────────────────────────────────────────────────────

class TestLoading:
    def test_start_arms_first_timeout(self, loader, scheduler):
        assert loader.state == IDLE
        assert loader.start()
        assert loader.state == LOADING
        assert loader.src == URL
        assert loader.timer["delayMs"] == 15000
        assert loader.timer["kind"] == TIMEOUT
        assert len(scheduler.pending) == 1

    def test_start_twice_is_noop(self, loader, scheduler):
        loader.start()
        token = loader.timer["token"]
        assert not loader.start()
        assert loader.timer["token"] == token
        assert len(scheduler.pending) == 1

    def test_cross_origin_counts_as_loaded(self, loader, scheduler):
        loader.start()
        assert loader.on_load(_blocked)
        assert loader.state == LOADED
        assert loader.has_loaded
        assert loader.timer is None
        assert scheduler.pending == {}

    def test_blank_document_keeps_waiting(self, loader):
        loader.start()
        assert not loader.on_load(lambda: False)
        assert loader.state == LOADING
        assert loader.timer is not None

    def test_load_without_document_check(self, loader):
        loader.start()
        assert loader.on_load()
        assert loader.snapshot()["message"] == "TikTok Cuan loaded successfully"

    def test_load_ignored_when_idle(self, loader):
        assert not loader.on_load()
        assert loader.state == IDLE

    def test_offline_fails_immediately(self, loader, scheduler):
        loader.start(online=False)
        snap = loader.snapshot()
        assert snap["state"] == FAILED
        assert snap["canRetry"]
        assert snap["message"] == "No internet connection detected"
        assert scheduler.pending == {}


# ─── Timeouts & retries ─────────────────────────────────────────────────────

class TestRetries:
    def test_timeouts_grow_by_five_seconds(self, loader, scheduler):
        loader.start()
        delays = [loader.timer["delayMs"]]
        for _ in range(3):
            assert scheduler.fire_next()
            delays.append(loader.timer["delayMs"])
        assert delays == [15000, 20000, 25000, 30000]
        assert loader.loads == 4

    def test_gives_up_after_max_retries_plus_one(self, loader, scheduler):
        loader.start()
        for _ in range(4):
            assert scheduler.fire_next()
        assert loader.state == FAILED
        assert loader.exhausted
        assert loader.timer is None
        assert scheduler.pending == {}
        assert loader.message == "Connection timeout after multiple attempts"
        assert not scheduler.fire_next()

    def test_first_timeout_starts_attempt_two(self, loader, scheduler):
        loader.start()
        scheduler.fire(loader.timer["token"])
        assert loader.state == LOADING
        assert loader.attempt == 1
        assert loader.timer["delayMs"] == 20000

    def test_error_waits_before_reload(self, loader, scheduler):
        loader.start()
        loader.on_error("net::ERR_BLOCKED")
        assert loader.state == FAILED
        assert loader.timer["kind"] == RETRY
        assert loader.timer["delayMs"] == 2000
        scheduler.fire_next()
        assert loader.state == LOADING
        assert loader.timer["delayMs"] == 20000

    def test_errors_exhaust_budget(self, loader, scheduler):
        loader.start()
        for _ in range(3):
            loader.on_error()
            scheduler.fire_next()
        loader.on_error()
        assert loader.exhausted
        assert loader.message == "Failed to load after multiple attempts"
        assert scheduler.pending == {}

    def test_never_more_than_one_timer(self, loader, scheduler):
        loader.start()
        loader.on_error()
        loader.retry()
        loader.on_error()
        assert len(scheduler.pending) == 1
        assert loader.pending_timers == 1

    def test_success_resets_attempt(self, loader, scheduler):
        loader.start()
        scheduler.fire_next()
        scheduler.fire_next()
        loader.on_load(_blocked)
        assert loader.attempt == 0
        assert not loader.exhausted

    def test_manual_retry_restarts_at_zero(self, loader, scheduler):
        loader.start()
        for _ in range(4):
            scheduler.fire_next()
        loader.retry()
        assert loader.state == LOADING
        assert loader.attempt == 0
        assert loader.timer["delayMs"] == 15000

    def test_stale_token_ignored(self, loader, scheduler):
        loader.start()
        old = loader.timer["token"]
        loader.on_error()
        assert not loader.expire(old)
        assert loader.timer["kind"] == RETRY

    def test_zero_retries_policy(self, scheduler):
        loader = IframeLoader("x", URL, scheduler, policy=RetryPolicy(max_retries=0))
        loader.start()
        scheduler.fire_next()
        assert loader.exhausted

    def test_negative_retries_rejected(self):
        with pytest.raises(LoaderError):
            RetryPolicy(max_retries=-1)


# ─── Serialization ──────────────────────────────────────────────────────────

class TestRoundTrip:
    def test_restored_loader_honours_saved_token(self, loader):
        loader.start()
        data = loader.to_dict()
        token = data["timer"]["token"]

        sched = DeferredScheduler()
        restored = IframeLoader.from_dict(data, sched)
        assert restored.state == LOADING
        assert restored.timer["token"] == token
        assert restored.expire(token)
        assert restored.attempt == 1
        assert restored.timer["delayMs"] == 20000
        assert restored.timer["token"] != token

    def test_restored_loader_rejects_old_token(self, loader):
        loader.start()
        old = loader.timer["token"]
        loader.on_error()
        restored = IframeLoader.from_dict(loader.to_dict(), DeferredScheduler())
        assert not restored.expire(old)

    def test_unknown_state_rejected(self, loader):
        data = loader.to_dict()
        data["state"] = "exploded"
        with pytest.raises(LoaderError):
            IframeLoader.from_dict(data, DeferredScheduler())


class TestThreadingScheduler:
    def test_timer_fires(self):
        done = threading.Event()
        ThreadingScheduler().schedule(10, done.set)
        assert done.wait(2)

    def test_cancel(self):
        fired = threading.Event()
        sched = ThreadingScheduler()
        handle = sched.schedule(200, fired.set)
        sched.cancel(handle)
        assert not fired.wait(0.4)
