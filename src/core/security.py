"""
Security Middleware — Response Headers + Same-Origin API Writes
================================================================
Hardening for the portal's cookie-session API.

Headers:
- nosniff, referrer policy, no-store on JSON
- Content-Security-Policy frame-src limited to the configured embeds

Same-origin writes:
- POST to /api/* with a foreign Origin header is refused (403)
- Requests without an Origin header (curl, tests, the CLI) pass
"""

import functools
import logging

from flask import current_app, jsonify, request

log = logging.getLogger("portal.security")


# ═══════════════════════════════════════════════════════════════════════════════
# Same-origin API writes
# ═══════════════════════════════════════════════════════════════════════════════

def _foreign_origin() -> str:
    origin = request.headers.get("Origin", "")
    host = request.host_url.rstrip("/")
    if origin and origin != host:
        return origin
    return ""


def same_origin(f):
    """Decorator: refuse state-changing requests sent from another site."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in ("POST", "PUT", "DELETE"):
            origin = _foreign_origin()
            if origin:
                log.warning("Cross-site %s %s refused (Origin %s)",
                            request.method, request.path, origin)
                return jsonify({"success": False, "message": "Cross-site request refused"}), 403
        return f(*args, **kwargs)
    return wrapper


# ═══════════════════════════════════════════════════════════════════════════════
# Security Headers Middleware
# ═══════════════════════════════════════════════════════════════════════════════

def content_security_policy(frame_origins) -> str:
    frame_src = " ".join(["'self'"] + list(frame_origins))
    return f"frame-src {frame_src}; frame-ancestors 'self'"


def add_security_headers(response):
    """Add security headers to every response."""
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    csp = current_app.config.get("PORTAL_CSP")
    if csp:
        response.headers["Content-Security-Policy"] = csp
    if response.mimetype == "application/json" and not response.headers.get("Cache-Control"):
        response.headers["Cache-Control"] = "no-store"
    return response


def init_security(app, settings):
    """Initialize security middleware on the Flask app."""
    app.config["PORTAL_CSP"] = content_security_policy(settings.frame_origins())
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.after_request(add_security_headers)
    log.info("Security middleware initialized: headers, CSP frame-src (%d origins)",
             len(settings.frame_origins()))
