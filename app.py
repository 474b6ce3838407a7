#!/usr/bin/env python3
"""
Apotek Alpro BPT Portal — Application Entry Point
Creates the Flask app and registers the portal Blueprint.
"""

import os
import logging
from datetime import timedelta

from flask import Flask

log = logging.getLogger("portal")


def create_app(settings=None, directory=None):
    """Application factory.

    settings: src.core.settings.Settings (default: read from the environment)
    directory: credential directory (default: Google Sheets with static fallback)
    """
    from src.core.settings import Settings
    from src.agents.sheets_client import SheetDirectory
    from src.core.view_store import ViewStore

    settings = settings or Settings()

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=settings.session_hours)
    app.config["PORTAL_SETTINGS"] = settings
    app.extensions["portal_directory"] = directory or SheetDirectory.from_settings(settings)
    app.extensions["portal_views"] = ViewStore(ttl_seconds=settings.session_hours * 3600)

    # Register the portal blueprint (all routes)
    from src.api.dashboard import bp
    app.register_blueprint(bp)

    # ── Security middleware (headers, CSP, cookie flags) ────────────
    from src.core.security import init_security
    init_security(app, settings)

    # ── Runtime self-test — catches path/route/config issues at boot ──────
    try:
        from src.core.startup_checks import run_startup_checks
        with app.app_context():
            checks = run_startup_checks(app, settings)
            app.config["PORTAL_STARTUP_CHECKS"] = checks
            if checks["failed"] > 0:
                log.error("STARTUP: %d checks FAILED — review logs", checks["failed"])
    except Exception as e:
        log.warning("Startup checks skipped: %s", e)

    return app


if os.environ.get("PORTAL_SKIP_LOGGING_SETUP", "").lower() != "true":
    from logging_config import setup_logging
    setup_logging()

# For gunicorn: gunicorn app:app
app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 3000))
    app.run(host="0.0.0.0", port=port, debug=False)
