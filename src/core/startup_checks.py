"""
src/core/startup_checks.py — Runtime Self-Test on App Boot

Runs when the app starts:

  1. Path resolution — DATA_DIR exists and is writable
  2. Route integrity — every portal route is registered, no duplicates
  3. Settings — embed URLs look like URLs, which env vars are set
  4. Credential sheet — configured (not fetched; boot must not block on it)

Never fatal. Results are logged and returned for /api/health.
"""

import logging

log = logging.getLogger("portal.startup")

REQUIRED_ROUTES = (
    "/", "/login", "/dashboard", "/favicon.ico",
    "/api/login", "/api/user", "/api/logout",
    "/api/tabs", "/api/embeds/<frame>/events", "/api/whatsapp/plan",
    "/api/frame-messages", "/api/calendar", "/api/health",
)


def run_startup_checks(app=None, settings=None, data_dir=None) -> dict:
    """Run all startup validation checks. Call from create_app() after blueprint registration.

    Returns:
        {"passed": int, "failed": int, "warnings": int, "details": [...]}
    """
    results = {"passed": 0, "failed": 0, "warnings": 0, "details": []}

    def _pass(msg):
        results["passed"] += 1
        results["details"].append(("PASS", msg))
        log.info("✅ %s", msg)

    def _fail(msg):
        results["failed"] += 1
        results["details"].append(("FAIL", msg))
        log.error("❌ STARTUP CHECK FAILED: %s", msg)

    def _warn(msg):
        results["warnings"] += 1
        results["details"].append(("WARN", msg))
        log.warning("⚠️  %s", msg)

    # ── 1. Path Validation ────────────────────────────────────────────────────
    try:
        from src.core.paths import validate_paths
        path_result = validate_paths(data_dir)
        if path_result["ok"]:
            _pass(f"All paths valid (DATA_DIR={path_result['resolved']['DATA_DIR']})")
        else:
            for err in path_result["errors"]:
                _fail(err)
        for warn in path_result.get("warnings", []):
            _warn(warn)
    except Exception as e:
        _fail(f"Path validation error: {e}")

    # ── 2. Route Integrity (if app provided) ──────────────────────────────────
    if app is not None:
        rules = [r for r in app.url_map.iter_rules()
                 if r.endpoint and not r.endpoint.startswith("static")]
        registered = {r.rule for r in rules}
        missing = [r for r in REQUIRED_ROUTES if r not in registered]
        if missing:
            _fail(f"Routes not registered: {', '.join(missing)}")
        else:
            _pass(f"Flask routes registered: {len(rules)}")
        endpoints = [r.endpoint for r in rules]
        dupes = {e for e in endpoints if endpoints.count(e) > 1}
        if dupes:
            _warn(f"Endpoints with several rules: {sorted(dupes)}")

    # ── 3. Settings ───────────────────────────────────────────────────────────
    if settings is not None:
        bad = [name for name, f in settings.frames().items()
               if not f["url"].startswith(("http://", "https://"))]
        if bad:
            _fail(f"Embed URLs must be http(s): {', '.join(bad)}")
        else:
            _pass(f"{len(settings.frames())} embeds configured")
        if not settings.health_news_url:
            _warn("PORTAL_HEALTH_NEWS_URL not set (Health News shows a placeholder)")
        if settings.secret_key == "apotek-alpro-secret-key":
            _warn("SECRET_KEY is the built-in default; set it in production")
        from src.core.settings import describe
        registry = describe()
        from_env = [e["env"] for e in registry if e["set"]]
        _pass(f"Settings: {len(from_env)}/{len(registry)} from environment"
              + (f" ({', '.join(from_env)})" if from_env else ""))

        # ── 4. Credential sheet ──────────────────────────────────────────────
        if settings.sheet_id:
            _pass(f"Credential sheet configured ({settings.outlet_sheet} / {settings.hq_sheet})")
        else:
            _warn("No credential sheet configured; only built-in accounts can log in")

    # ── Summary ──────────────────────────────────────────────────────────────
    total = results["passed"] + results["failed"] + results["warnings"]
    if results["failed"] > 0:
        log.error("STARTUP: %d/%d checks FAILED — app may not work correctly",
                  results["failed"], total)
    else:
        log.info("STARTUP: All %d checks passed (%d warnings)",
                 results["passed"], results["warnings"])

    return results
