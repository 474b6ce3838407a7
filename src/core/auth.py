"""
auth.py — Outlet / HQ login against the credential directory

Two credential schemes:
  outlet — store code + password (store code matched case-insensitively)
  hq     — email + password (email matched case-insensitively)

Passwords are compared in plaintext exactly as the sheet stores them.
Every miss returns the same generic message so callers cannot tell an
unknown user from a wrong password.
"""

import functools
import logging

from flask import jsonify, redirect, request, session, url_for

from src.agents.sheets_client import HQ, OUTLET

log = logging.getLogger("portal.auth")

LOGIN_TYPES = (OUTLET, HQ)
INVALID_CREDENTIALS = "Invalid credentials"
MISSING_FIELDS = "Please fill in all fields"
SESSION_USER_KEY = "user"


class UserProfile:
    """Display profile established at login."""

    def __init__(self, type, display_name, full_store_name="", am="", email="",
                 role="", source="static"):
        self.type = type
        self.display_name = display_name
        self.full_store_name = full_store_name
        self.am = am
        self.email = email
        self.role = role
        self.source = source

    @classmethod
    def from_row(cls, row, login_type: str, source: str):
        meta = row.metadata
        if login_type == OUTLET:
            return cls(OUTLET, row.display_name,
                       full_store_name=meta.get("store_name", row.display_name),
                       am=meta.get("am", ""), source=source)
        role = meta.get("role", "")
        return cls(HQ, row.display_name, full_store_name=row.display_name,
                   am=role, email=meta.get("email", row.key), role=role, source=source)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "displayName": self.display_name,
            "fullStoreName": self.full_store_name or self.display_name,
            "am": self.am,
            "email": self.email,
            "role": self.role,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict):
        if not isinstance(data, dict) or data.get("type") not in LOGIN_TYPES:
            return None
        return cls(data["type"], data.get("displayName", ""),
                   full_store_name=data.get("fullStoreName", ""),
                   am=data.get("am", ""), email=data.get("email", ""),
                   role=data.get("role", ""), source=data.get("source", "static"))

    def __eq__(self, other):
        return isinstance(other, UserProfile) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"UserProfile({self.type!r}, {self.display_name!r})"


class AuthResult:
    def __init__(self, success: bool, user: UserProfile = None, message: str = ""):
        self.success = success
        self.user = user
        self.message = message

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "user": self.user.to_dict()}
        return {"success": False, "message": self.message}


def authenticate(username, password, login_type, directory) -> AuthResult:
    """Look up a matching credential row; first match wins (sheet, then static)."""
    username = (username or "").strip()
    password = (password or "").strip()
    if not username or not password:
        return AuthResult(False, message=MISSING_FIELDS)
    if login_type not in LOGIN_TYPES:
        log.info("Login rejected: unknown login type %r", login_type)
        return AuthResult(False, message=INVALID_CREDENTIALS)

    for row, source in directory.candidates(login_type):
        if row.matches(username, password):
            user = UserProfile.from_row(row, login_type, source)
            log.info("✅ %s user authenticated (%s): %s", login_type, source, user.display_name,
                     extra={"login_type": login_type, "user": user.display_name})
            return AuthResult(True, user=user)

    log.info("❌ Authentication failed for %s login: %s", login_type, username,
             extra={"login_type": login_type})
    return AuthResult(False, message=INVALID_CREDENTIALS)


# ═══════════════════════════════════════════════════════════════════════
# Cookie session helpers (server variant)
# ═══════════════════════════════════════════════════════════════════════

def login_user(user: UserProfile):
    session.clear()
    session.permanent = True
    session[SESSION_USER_KEY] = user.to_dict()


def current_user():
    return UserProfile.from_dict(session.get(SESSION_USER_KEY))


def logout_user():
    session.clear()


def login_required(f):
    """Pages redirect to /login; API routes answer 401 JSON."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if current_user() is None:
            if request.path.startswith("/api/"):
                return jsonify({"success": False, "message": "Not authenticated"}), 401
            return redirect(url_for("portal.login_page"))
        return f(*args, **kwargs)
    return decorated
