"""
settings.py — Centralized configuration for the BPT portal

Single source of truth for every tunable the portal reads from the
environment. Each entry documents its env var and default; values are read
once into a Settings object which the Flask app keeps in
app.config["PORTAL_SETTINGS"].

Env vars:
  SECRET_KEY                   — Flask session signing key
  PORTAL_SHEET_ID              — Google spreadsheet holding both login tabs
  PORTAL_OUTLET_SHEET          — Outlet Login tab name
  PORTAL_HQ_SHEET              — HQ Login tab name
  PORTAL_SHEET_CACHE_SECONDS   — credential cache staleness window
  PORTAL_SHEET_TIMEOUT         — CSV fetch timeout (seconds)
  PORTAL_SESSION_HOURS         — cookie session lifetime
  PORTAL_MAX_RETRIES           — iframe loader retry budget
  PORTAL_TIKTOK_URL            — TikTok Cuan micro-app
  PORTAL_HEALTH_NEWS_URL       — Health News embed (blank = placeholder pane)
  PORTAL_WHATSAPP_GROUP_URL    — group invite opened from TikTok Cuan
  PORTAL_WHATSAPP_PHONE        — fallback contact number (panel + tel: link)
  PORTAL_CONTACT_PHONE         — marketing team number on the homepage
  PORTAL_ALLOWED_ORIGINS       — comma list of origins allowed to post messages
  PORTAL_CALENDAR_EVENT_DAYS   — comma list of event days on the campaign calendar
  PORTAL_REFRESH_MINUTES       — homepage auto-refresh interval

Numeric entries may carry a "min"; a value below it, like one that does not
parse, is logged and replaced by the default.
"""

import os
import logging

log = logging.getLogger("portal.settings")

# ─── Setting Definitions ────────────────────────────────────────────────────

_REGISTRY = {
    "secret_key": {
        "env": "SECRET_KEY", "default": "apotek-alpro-secret-key", "cast": str,
        "desc": "Flask session signing key",
    },
    "sheet_id": {
        "env": "PORTAL_SHEET_ID", "default": "1wCvZ1WAlHAn-B8UPP5AUEPzQ5Auf84BJFeG48Hlo9wE",
        "cast": str, "desc": "Credential spreadsheet id",
    },
    "outlet_sheet": {
        "env": "PORTAL_OUTLET_SHEET", "default": "Outlet Login", "cast": str,
        "desc": "Outlet Login tab name",
    },
    "hq_sheet": {
        "env": "PORTAL_HQ_SHEET", "default": "HQ Login", "cast": str,
        "desc": "HQ Login tab name",
    },
    "sheet_cache_seconds": {
        "env": "PORTAL_SHEET_CACHE_SECONDS", "default": 300, "cast": int, "min": 0,
        "desc": "Seconds a fetched credential sheet stays fresh",
    },
    "sheet_timeout": {
        "env": "PORTAL_SHEET_TIMEOUT", "default": 10.0, "cast": float, "min": 0.5,
        "desc": "HTTP timeout for the CSV export",
    },
    "session_hours": {
        "env": "PORTAL_SESSION_HOURS", "default": 24, "cast": int, "min": 1,
        "desc": "Cookie session lifetime in hours",
    },
    "max_retries": {
        "env": "PORTAL_MAX_RETRIES", "default": 3, "cast": int, "min": 0,
        "desc": "Iframe loader retries after the first attempt",
    },
    "tiktok_url": {
        "env": "PORTAL_TIKTOK_URL", "default": "https://zyqsemod.gensparkspace.com/",
        "cast": str, "desc": "TikTok Cuan micro-app",
    },
    "health_news_url": {
        "env": "PORTAL_HEALTH_NEWS_URL", "default": "", "cast": str,
        "desc": "Health News embed",
    },
    "whatsapp_group_url": {
        "env": "PORTAL_WHATSAPP_GROUP_URL",
        "default": "https://chat.whatsapp.com/HukQMDMTtJjFi12x1lAty3",
        "cast": str, "desc": "WhatsApp group invite",
    },
    "whatsapp_phone": {
        "env": "PORTAL_WHATSAPP_PHONE", "default": "6285890874888", "cast": str,
        "desc": "Fallback WhatsApp / phone contact",
    },
    "contact_phone": {
        "env": "PORTAL_CONTACT_PHONE", "default": "+6287785731144", "cast": str,
        "desc": "Marketing team contact on the homepage",
    },
    "allowed_origins": {
        "env": "PORTAL_ALLOWED_ORIGINS",
        "default": "https://zyqsemod.gensparkspace.com,http://localhost,https://localhost",
        "cast": "list", "desc": "Origins allowed to post frame messages",
    },
    "calendar_event_days": {
        "env": "PORTAL_CALENDAR_EVENT_DAYS", "default": "5,15,22,30", "cast": "days",
        "desc": "Days of every month marked as campaign events",
    },
    "refresh_minutes": {
        "env": "PORTAL_REFRESH_MINUTES", "default": 5, "cast": int, "min": 1,
        "desc": "Homepage auto-refresh interval",
    },
}

# Campaign embeds shown under the Campaign tab: sub-tab id → (title, url).
CAMPAIGN_EMBEDS = {
    "oct-kenali-gula": ("Oct · Kenali Gula", "https://qqssaxti.gensparkspace.com"),
    "sept-women-health": ("Sept · Women Health", "https://apotekalpro-womanhealth.pages.dev/#metrics"),
    "dec-anniversary-sales": ("Dec · Anniversary Sales", "https://eruyktmb.gensparkspace.com/"),
    "new-year-new-me": ("New Year New Me", "https://gdmmhrhz.gensparkspace.com/"),
}


def _cast(raw, cast):
    if cast == "days":
        days = sorted({int(d) for d in _cast(raw, "list")})
        if any(d < 1 or d > 31 for d in days):
            raise ValueError("day of month out of range")
        return days
    if cast == "list":
        if isinstance(raw, (list, tuple)):
            return [str(x).strip() for x in raw if str(x).strip()]
        return [x.strip() for x in str(raw).split(",") if x.strip()]
    return cast(raw)


class Settings:
    """Resolved configuration. Keyword overrides win over the environment."""

    def __init__(self, env=None, **overrides):
        env = os.environ if env is None else env
        unknown = set(overrides) - set(_REGISTRY)
        if unknown:
            raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
        for name, entry in _REGISTRY.items():
            if name in overrides:
                value = overrides[name]
            else:
                value = env.get(entry["env"], entry["default"])
            try:
                value = _cast(value, entry["cast"])
                if "min" in entry and value < entry["min"]:
                    raise ValueError(f"below minimum {entry['min']}")
            except (TypeError, ValueError):
                log.warning("Bad value for %s=%r, using default %r",
                            entry["env"], value, entry["default"])
                value = _cast(entry["default"], entry["cast"])
            setattr(self, name, value)

    def frames(self) -> dict:
        """Every embeddable frame: name → {"url", "tab", "title"}.

        Frames with a blank URL are left out; their pane renders a placeholder.
        """
        frames = {}
        if self.tiktok_url:
            frames["tiktok"] = {"url": self.tiktok_url, "tab": "tiktok-cuan",
                                "title": "TikTok Cuan"}
        if self.health_news_url:
            frames["health-news"] = {"url": self.health_news_url, "tab": "health-news",
                                     "title": "Health News"}
        for sub_tab, (title, url) in CAMPAIGN_EMBEDS.items():
            frames[sub_tab] = {"url": url, "tab": sub_tab, "title": title}
        return frames

    def frame_origins(self) -> list:
        """Scheme+host of every configured frame, for CSP frame-src."""
        origins = []
        for frame in self.frames().values():
            url = frame["url"]
            parts = url.split("/")
            if len(parts) >= 3 and parts[0] in ("http:", "https:"):
                origin = "/".join(parts[:3])
                if origin not in origins:
                    origins.append(origin)
        return origins

    def as_dict(self) -> dict:
        """Public view of the settings (secret key masked)."""
        out = {name: getattr(self, name) for name in _REGISTRY}
        out["secret_key"] = "****" if self.secret_key else "(not set)"
        return out


def describe() -> list:
    """Registry listing for the startup log: which env vars are set."""
    return [{"name": name, "env": e["env"], "desc": e["desc"],
             "set": e["env"] in os.environ} for name, e in _REGISTRY.items()]
