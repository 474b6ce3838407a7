#!/usr/bin/env python3
"""
Apotek Alpro BPT Portal — routes
Login (outlet / HQ) → dashboard with tabbed embeds, iframe loading with
retries, WhatsApp hand-off for the TikTok Cuan micro-app.

Per-view state (tab switchers + iframe loaders) lives in the server-side
ViewStore; the cookie session only holds its id under "view_id". The view is
rebuilt on every dashboard page load. The page keeps no state of its own: it
posts events here and renders what comes back.
"""
import logging
import time
from datetime import date
from urllib.parse import urlparse

from flask import Blueprint, current_app, g, jsonify, request, session

from src.core import whatsapp
from src.core.auth import (authenticate, current_user, login_required,
                           login_user, logout_user)
from src.core.campaign_calendar import CalendarError, month_grid
from src.core.iframe_loader import (CrossOriginError, DeferredScheduler,
                                    IframeLoader, LoaderError, RetryPolicy)
from src.core.messages import MessageRejected, parse_frame_message, respond
from src.core.security import same_origin
from src.core.tabs import (CAMPAIGN_TABS, MAIN_TABS, MONITORING_TABS, TAB_GROUPS,
                           TabSwitcher, UnknownTabError)
from src.api.templates import render_calendar, render_dashboard_page, render_login_page

log = logging.getLogger("portal.dashboard")

bp = Blueprint("portal", __name__)

VIEW_ID_KEY = "view_id"
LOADER_EVENTS = ("start", "load", "error", "timer", "retry")


# ── Request-level structured logging ────────────────────────────────────────
@bp.before_app_request
def _log_request_start():
    g.start_time = time.time()


@bp.after_app_request
def _log_request_end(response):
    start = g.get("start_time")
    if start is not None:
        duration_ms = round((time.time() - start) * 1000, 1)
        # Skip health/favicon spam
        if request.path not in ("/api/health", "/favicon.ico"):
            log.info("%s %s → %d (%.0fms)",
                     request.method, request.path, response.status_code, duration_ms,
                     extra={"route": request.path, "method": request.method,
                            "status": response.status_code, "duration_ms": duration_ms})
    return response


def _settings():
    return current_app.config["PORTAL_SETTINGS"]


def _directory():
    return current_app.extensions["portal_directory"]


def _policy():
    return RetryPolicy(max_retries=_settings().max_retries)


def _error(message, status=400):
    return jsonify({"success": False, "message": message}), status


# ═══════════════════════════════════════════════════════════════════════
# View state (tabs + loaders) in the view store
# ═══════════════════════════════════════════════════════════════════════

def _fresh_view() -> dict:
    frames = {}
    for name, frame in _settings().frames().items():
        loader = IframeLoader(name, frame["url"], DeferredScheduler(), policy=_policy(),
                              title=frame["title"])
        frames[name] = loader.to_dict()
    return {
        "main": TabSwitcher(MAIN_TABS).to_dict(),
        "campaign": TabSwitcher(CAMPAIGN_TABS).to_dict(),
        "monitoring": TabSwitcher(MONITORING_TABS).to_dict(),
        "frames": frames,
    }


def _views():
    return current_app.extensions["portal_views"]


def _view_id() -> str:
    view_id = session.get(VIEW_ID_KEY)
    if not view_id:
        view_id = _views().new_id()
        session[VIEW_ID_KEY] = view_id
    return view_id


def _editing_view():
    """Lock this session's view for an in-place change (context manager)."""
    return _views().edit(_view_id(), _fresh_view)


def _load_loader(view, name):
    data = view["frames"].get(name)
    if data is None:
        return None
    return IframeLoader.from_dict(data, DeferredScheduler(), policy=_policy())


def _save_loader(view, loader):
    view["frames"][loader.name] = loader.to_dict()


def _pane_initializers(view, tabs, online):
    """tab id → callable starting the loader of the frame shown in that pane."""
    inits = {}
    for name, frame in _settings().frames().items():
        if frame["tab"] not in tabs or name not in view["frames"]:
            continue

        def start(name=name):
            loader = _load_loader(view, name)
            loader.start(online=online)
            _save_loader(view, loader)
            return loader.snapshot()

        inits[frame["tab"]] = start
    return inits


# ═══════════════════════════════════════════════════════════════════════
# Pages
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/favicon.ico")
def favicon():
    return "", 204


@bp.route("/")
def index():
    user = current_user()
    if user is None:
        return render_login_page()
    return _dashboard_for(user)


@bp.route("/login")
def login_page():
    return render_login_page()


@bp.route("/dashboard")
@login_required
def dashboard():
    return _dashboard_for(current_user())


def _dashboard_for(user):
    # A page load starts the view over: homepage, no frames loaded.
    view = _fresh_view()
    _views().put(_view_id(), view)
    return render_dashboard_page(user, _settings(), view)


# ═══════════════════════════════════════════════════════════════════════
# Auth API
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/login", methods=["POST"])
@same_origin
def api_login():
    data = request.get_json(silent=True) or request.form.to_dict() or {}
    try:
        result = authenticate(data.get("username"), data.get("password"),
                              data.get("loginType"), _directory())
    except Exception as e:
        log.error("Login error: %s", e, exc_info=True)
        return jsonify({"success": False, "message": "Server error"})
    if result.success:
        _views().discard(session.get(VIEW_ID_KEY))
        login_user(result.user)
    return jsonify(result.to_dict())


@bp.route("/api/user")
def api_user():
    user = current_user()
    return jsonify({"user": user.to_dict() if user else None})


@bp.route("/api/logout", methods=["POST"])
@same_origin
def api_logout():
    user = current_user()
    _views().discard(session.get(VIEW_ID_KEY))
    logout_user()
    if user:
        log.info("👋 Logged out: %s", user.display_name, extra={"user": user.display_name})
    return jsonify({"success": True})


# ═══════════════════════════════════════════════════════════════════════
# Dashboard API
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/tabs", methods=["POST"])
@login_required
@same_origin
def api_tabs():
    data = request.get_json(silent=True) or {}
    group = data.get("group") or "main"
    tabs = TAB_GROUPS.get(group)
    if tabs is None:
        return _error(f"Unknown tab group: {group}")
    with _editing_view() as view:
        switcher = TabSwitcher.from_dict(
            tabs, view.get(group),
            initializers=_pane_initializers(view, tabs, bool(data.get("online", True))))
        try:
            outcome = switcher.switch(data.get("tab") or "")
        except UnknownTabError as e:
            return _error(f"Unknown tab: {e}")
        view[group] = switcher.to_dict()
    if outcome.changed:
        log.info("Tab %s → %s", outcome.previous, outcome.tab,
                 extra={"tab": outcome.tab})
    return jsonify({"success": True, "group": group, "switch": outcome.to_dict(),
                    "frame": outcome.result})


@bp.route("/api/embeds/<frame>/events", methods=["POST"])
@login_required
@same_origin
def api_embed_event(frame):
    data = request.get_json(silent=True) or {}
    event = data.get("event")
    if event not in LOADER_EVENTS:
        return _error(f"Unknown event: {event}")
    check_document = None
    if data.get("crossOrigin"):
        def check_document():
            raise CrossOriginError(frame)
    elif "reachable" in data:
        reachable = bool(data.get("reachable"))

        def check_document():
            return reachable

    with _editing_view() as view:
        try:
            loader = _load_loader(view, frame)
        except LoaderError as e:
            return _error(str(e))
        if loader is None:
            return _error(f"Unknown frame: {frame}", 404)

        changed = True
        if event == "start":
            changed = loader.start(online=bool(data.get("online", True)))
        elif event == "load":
            changed = loader.on_load(check_document)
        elif event == "error":
            changed = loader.on_error(data.get("reason") or "")
        elif event == "timer":
            changed = loader.expire(data.get("token") or "")
        elif event == "retry":
            loader.retry()
        _save_loader(view, loader)
    return jsonify({"success": True, "changed": changed, "frame": loader.snapshot()})


@bp.route("/api/calendar")
@login_required
def api_calendar():
    """Campaign calendar for ?year=&month= (default: this month)."""
    today = date.today()
    try:
        year = int(request.args.get("year", today.year))
        month = int(request.args.get("month", today.month))
        grid = month_grid(year, month, today, _settings().calendar_event_days)
    except CalendarError as e:
        return _error(str(e))
    except ValueError:
        return _error("year and month must be numbers")
    return jsonify({"success": True, "calendar": grid, "html": render_calendar(grid)})


@bp.route("/api/whatsapp/plan", methods=["POST"])
@login_required
@same_origin
def api_whatsapp_plan():
    data = request.get_json(silent=True) or {}
    settings = _settings()
    phone = data.get("phone")
    if phone:
        message = data.get("message") or whatsapp.CONTACT_MESSAGE
        urls = whatsapp.contact_urls(phone, message)
    elif data.get("url"):
        urls = [whatsapp.rewrite_whatsapp_url(data["url"], settings.whatsapp_group_url)]
    else:
        urls = [settings.whatsapp_group_url]
    plan = whatsapp.launch_plan(urls[0], settings.whatsapp_phone, alternates=urls[1:])
    return jsonify({"success": True, "plan": plan})


@bp.route("/api/frame-messages", methods=["POST"])
@login_required
@same_origin
def api_frame_messages():
    data = request.get_json(silent=True) or {}
    settings = _settings()
    try:
        msg = parse_frame_message(data.get("origin") or "", data.get("data"),
                                  settings.allowed_origins)
    except MessageRejected as e:
        log.info("Frame message rejected: %s", e)
        return _error(str(e))
    action = respond(msg, settings.whatsapp_group_url, settings.whatsapp_phone,
                     frame_host=urlparse(settings.tiktok_url).netloc)
    return jsonify({"success": True, "message": msg.to_dict(), "response": action})


@bp.route("/api/health")
def api_health():
    """Sheet cache status + startup check summary (no credentials)."""
    checks = current_app.config.get("PORTAL_STARTUP_CHECKS") or {}
    status = "ok" if not checks.get("failed") else "degraded"
    return jsonify({
        "status": status,
        "sheets": _directory().status(),
        "checks": {k: checks.get(k, 0) for k in ("passed", "failed", "warnings")},
        "frames": sorted(_settings().frames()),
    })
