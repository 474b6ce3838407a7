"""
iframe_loader.py — Load lifecycle of one embedded frame

States:
    idle → loading → loaded
                   ↘ failed (terminal once the retry budget is spent)

  start()       idle → loading: assign src, arm a timeout of
                15000 + attempt*5000 ms (15s, 20s, 25s, 30s with 3 retries)
  on_load()     check the frame document; reachable or cross-origin → loaded,
                timer cleared, attempt counter reset
  on_error()    browser error → next attempt after retry_delay_ms
  timeout       no load/error in time → next attempt at once
  retry()       manual retry from the error panel, restarts at attempt 0

Timer discipline: at most one timer per frame. Every transition clears the
previous timer before arming the next, and every timer carries a sequence
number so a late callback from a replaced timer is ignored.

Timers come from a scheduler:
  ThreadingScheduler  in-process threading.Timer
  DeferredScheduler   the timer is handed out as {token, delayMs}; whoever
                      holds it (the dashboard page) reports expiry by token
"""

import logging
import threading
import uuid

log = logging.getLogger("portal.iframe_loader")

IDLE = "idle"
LOADING = "loading"
LOADED = "loaded"
FAILED = "failed"
STATES = (IDLE, LOADING, LOADED, FAILED)

TIMEOUT = "timeout"
RETRY = "retry"


class CrossOriginError(Exception):
    """Raised by a document check when the frame document belongs to another origin."""


class LoaderError(ValueError):
    pass


class RetryPolicy:
    def __init__(self, max_retries=3, base_timeout_ms=15000, step_ms=5000, retry_delay_ms=2000):
        if max_retries < 0:
            raise LoaderError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_timeout_ms = base_timeout_ms
        self.step_ms = step_ms
        self.retry_delay_ms = retry_delay_ms

    def timeout_for(self, attempt: int) -> int:
        return self.base_timeout_ms + attempt * self.step_ms

    def to_dict(self) -> dict:
        return {"maxRetries": self.max_retries, "baseTimeoutMs": self.base_timeout_ms,
                "stepMs": self.step_ms, "retryDelayMs": self.retry_delay_ms}


# ═══════════════════════════════════════════════════════════════════════
# Schedulers
# ═══════════════════════════════════════════════════════════════════════

class ThreadingScheduler:
    def schedule(self, delay_ms, callback, token=None):
        t = threading.Timer(delay_ms / 1000.0, callback)
        t.daemon = True
        t.start()
        return t

    def cancel(self, handle):
        handle.cancel()


class DeferredScheduler:
    """Records timers instead of running them; fire(token) runs one."""

    def __init__(self):
        self.pending = {}

    def schedule(self, delay_ms, callback, token=None):
        token = token or uuid.uuid4().hex[:12]
        self.pending[token] = (delay_ms, callback)
        return token

    def cancel(self, handle):
        self.pending.pop(handle, None)

    def fire(self, token) -> bool:
        entry = self.pending.pop(token, None)
        if entry is None:
            return False
        entry[1]()
        return True

    def fire_next(self) -> bool:
        if not self.pending:
            return False
        return self.fire(next(iter(self.pending)))


# ═══════════════════════════════════════════════════════════════════════
# Loader
# ═══════════════════════════════════════════════════════════════════════

class IframeLoader:
    def __init__(self, name, url, scheduler, policy=None, title=None):
        self.name = name
        self.url = url
        self.title = title or name
        self.scheduler = scheduler
        self.policy = policy or RetryPolicy()
        self.state = IDLE
        self.attempt = 0
        self.has_loaded = False
        self.exhausted = False
        self.src = ""
        self.loads = 0
        self.message = ""
        self._timer = None
        self._seq = 0
        self._lock = threading.RLock()

    # ── Timer discipline ────────────────────────────────────────────────

    def _arm(self, delay_ms: int, kind: str):
        self._disarm()
        self._seq += 1
        seq = self._seq
        token = f"{self.name}:{seq}"
        handle = self.scheduler.schedule(delay_ms, lambda: self._expire(seq), token=token)
        self._timer = {"seq": seq, "token": token, "delay_ms": delay_ms,
                       "kind": kind, "handle": handle}

    def _disarm(self):
        if self._timer is not None:
            self.scheduler.cancel(self._timer["handle"])
            self._timer = None

    @property
    def pending_timers(self) -> int:
        return 0 if self._timer is None else 1

    @property
    def timer(self):
        if self._timer is None:
            return None
        return {"token": self._timer["token"], "delayMs": self._timer["delay_ms"],
                "kind": self._timer["kind"]}

    # ── Transitions ─────────────────────────────────────────────────────

    def start(self, online: bool = True):
        """idle → loading. A no-op while loading, loaded or failed (use retry())."""
        with self._lock:
            if self.state != IDLE:
                return False
            if not online:
                self._disarm()
                self.state = FAILED
                self.exhausted = True
                self.message = "No internet connection detected"
                log.warning("⚠️ %s not started: offline", self.title, extra={"frame": self.name})
                return True
            self._begin_attempt()
            return True

    def _begin_attempt(self):
        self.has_loaded = False
        self.state = LOADING
        self.src = self.url
        self.loads += 1
        total = self.policy.max_retries + 1
        self.message = f"Loading {self.title}... (attempt {self.attempt + 1}/{total})"
        log.info("🔄 Loading %s (attempt %d/%d)", self.title, self.attempt + 1, total,
                 extra={"frame": self.name, "attempt": self.attempt})
        self._arm(self.policy.timeout_for(self.attempt), TIMEOUT)

    def on_load(self, check_document=None) -> bool:
        """Browser load event. check_document() confirms the frame document is reachable;
        CrossOriginError from the check is expected and counts as loaded."""
        with self._lock:
            if self.state != LOADING:
                log.debug("Ignoring load for %s in state %s", self.name, self.state)
                return False
            if check_document is not None:
                try:
                    reachable = check_document()
                except CrossOriginError:
                    reachable = True
                if not reachable:
                    log.info("%s fired load but the document is blank; waiting", self.title)
                    return False
            self._disarm()
            self.has_loaded = True
            self.state = LOADED
            self.attempt = 0
            self.exhausted = False
            self.message = f"{self.title} loaded successfully"
            log.info("✅ %s loaded", self.title, extra={"frame": self.name})
            return True

    def on_error(self, reason: str = "") -> bool:
        with self._lock:
            if self.state != LOADING:
                return False
            self._fail_attempt(reason or "Failed to load", self.policy.retry_delay_ms)
            return True

    def _expire(self, seq: int) -> bool:
        with self._lock:
            if self._timer is None or self._timer["seq"] != seq:
                return False
            kind = self._timer["kind"]
            self._timer = None
            if kind == TIMEOUT:
                self._fail_attempt("Connection timeout", 0)
            else:
                self._begin_attempt()
            return True

    def expire(self, token: str) -> bool:
        """Timer expiry reported from outside. Tokens of replaced timers are ignored."""
        with self._lock:
            if self._timer is None or self._timer["token"] != token:
                log.debug("Stale timer token %s for %s", token, self.name)
                return False
            seq = self._timer["seq"]
            self.scheduler.cancel(self._timer["handle"])
            return self._expire(seq)

    def _fail_attempt(self, reason: str, retry_delay_ms: int):
        self._disarm()
        self.has_loaded = False
        self.state = FAILED
        if self.attempt < self.policy.max_retries:
            self.attempt += 1
            log.info("⏰ %s: %s, retrying (%d/%d)", self.title, reason, self.attempt,
                     self.policy.max_retries, extra={"frame": self.name, "attempt": self.attempt})
            if retry_delay_ms > 0:
                self.message = f"{reason}, retrying ({self.attempt}/{self.policy.max_retries})"
                self._arm(retry_delay_ms, RETRY)
            else:
                self._begin_attempt()
            return
        self.exhausted = True
        self.message = f"{reason} after multiple attempts"
        log.warning("⚠️ %s gave up: %s", self.title, self.message, extra={"frame": self.name})

    def retry(self):
        """Manual retry: drop any timer and restart at attempt 0."""
        with self._lock:
            self._disarm()
            self.attempt = 0
            self.exhausted = False
            self.src = ""
            log.info("🔄 Manual retry of %s", self.title, extra={"frame": self.name})
            self._begin_attempt()

    # ── Views ───────────────────────────────────────────────────────────

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "name": self.name,
                "title": self.title,
                "url": self.url,
                "src": self.src,
                "state": self.state,
                "attempt": self.attempt,
                "maxRetries": self.policy.max_retries,
                "hasLoaded": self.has_loaded,
                "loads": self.loads,
                "exhausted": self.exhausted,
                "canRetry": self.state == FAILED and self.exhausted,
                "message": self.message,
                "timer": self.timer,
            }

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "name": self.name, "url": self.url, "title": self.title,
                "state": self.state, "attempt": self.attempt,
                "has_loaded": self.has_loaded, "exhausted": self.exhausted,
                "src": self.src, "loads": self.loads, "message": self.message,
                "seq": self._seq, "timer": self.timer,
            }

    @classmethod
    def from_dict(cls, data, scheduler, policy=None):
        """Rebuild a loader (e.g. from the view store) and re-adopt its pending timer."""
        state = data.get("state", IDLE)
        if state not in STATES:
            raise LoaderError(f"Unknown loader state: {state}")
        loader = cls(data["name"], data["url"], scheduler, policy=policy,
                     title=data.get("title"))
        loader.state = state
        loader.attempt = int(data.get("attempt", 0))
        loader.has_loaded = bool(data.get("has_loaded"))
        loader.exhausted = bool(data.get("exhausted"))
        loader.src = data.get("src", "")
        loader.loads = int(data.get("loads", 0))
        loader.message = data.get("message", "")
        loader._seq = int(data.get("seq", 0))
        timer = data.get("timer")
        if timer:
            seq = loader._seq
            handle = scheduler.schedule(timer["delayMs"], lambda: loader._expire(seq),
                                        token=timer["token"])
            loader._timer = {"seq": seq, "token": timer["token"], "delay_ms": timer["delayMs"],
                             "kind": timer["kind"], "handle": handle}
        return loader
