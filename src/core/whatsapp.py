"""
whatsapp.py — WhatsApp deep links and the multi-strategy opener

Deep links:
  web       https://web.whatsapp.com/send?phone=<62...>&text=<msg>
  app       https://wa.me/<62...>?text=<msg>
  api       https://api.whatsapp.com/send?phone=<62...>&text=<msg>
  protocol  whatsapp://send?phone=<62...>&text=<msg>

Opener: try each strategy in order (popup, anchor, form, location), wait a
fixed delay after each, then check the returned handle exists and is not
closed. Nothing can really introspect a cross-origin window, so "success" is
a best guess. The whole cascade runs on the primary URL, then on each
alternate (wa.me, api.whatsapp.com, the group). When everything misses, the
caller gets a fallback panel with direct links, a tel: link and text to
copy. launch() never raises.
"""

import logging
import re
import time
import webbrowser
from urllib.parse import parse_qs, quote, urlparse

log = logging.getLogger("portal.whatsapp")

COUNTRY_CODE = "62"  # Indonesia
DEFAULT_MESSAGE = "Hello from Apotek Alpro"
CONTACT_MESSAGE = ("Hello from Apotek Alpro BPT Portal! "
                   "I would like to get in touch with the marketing team.")

STRATEGY_ORDER = ("popup", "anchor", "form", "location")
STRATEGY_DELAY_SECONDS = 1.5


# ═══════════════════════════════════════════════════════════════
# Phone numbers & URLs
# ═══════════════════════════════════════════════════════════════

def normalize_phone(raw: str) -> str:
    """Digits only, Indonesian country code: '0812-3456' → '628123456'."""
    digits = re.sub(r"\D", "", raw or "")
    if not digits:
        return ""
    if digits.startswith("0"):
        digits = COUNTRY_CODE + digits[1:]
    if not digits.startswith(COUNTRY_CODE):
        digits = COUNTRY_CODE + digits
    return digits


def format_phone_display(phone: str) -> str:
    """'6285890874888' → '+62 858-9087-4888'."""
    digits = normalize_phone(phone)
    rest = digits[len(COUNTRY_CODE):]
    if len(rest) < 8:
        return f"+{digits}"
    return f"+{COUNTRY_CODE} {rest[:3]}-{rest[3:7]}-{rest[7:]}"


def web_url(phone, message=""):
    return f"https://web.whatsapp.com/send?phone={normalize_phone(phone)}&text={quote(message)}"


def app_url(phone, message=""):
    return f"https://wa.me/{normalize_phone(phone)}?text={quote(message)}"


def api_url(phone, message=DEFAULT_MESSAGE):
    return f"https://api.whatsapp.com/send?phone={normalize_phone(phone)}&text={quote(message)}"


def protocol_url(phone, message=DEFAULT_MESSAGE):
    return f"whatsapp://send?phone={normalize_phone(phone)}&text={quote(message)}"


def contact_urls(phone, message) -> list:
    """Ordered candidates for messaging one contact: web, wa.me, then the API link."""
    return [web_url(phone, message), app_url(phone, message), api_url(phone, message)]


def rewrite_whatsapp_url(url: str, group_url: str) -> str:
    """Canonicalize a wa.me / whatsapp.com/send link to WhatsApp Web.

    Links without a phone number (or that do not parse) fall back to the group.
    """
    try:
        parsed = urlparse(url or "")
    except ValueError:
        return group_url
    query = parse_qs(parsed.query)
    phone, message = "", ""
    if "wa.me" in parsed.netloc:
        phone = parsed.path.rstrip("/").split("/")[-1]
        message = query.get("text", [""])[0]
    elif "whatsapp.com" in parsed.netloc and parsed.path.startswith("/send"):
        phone = query.get("phone", [""])[0]
        message = query.get("text", [""])[0]
    if not normalize_phone(phone):
        return group_url
    return web_url(phone, message)


# ═══════════════════════════════════════════════════════════════
# Fallback panel
# ═══════════════════════════════════════════════════════════════

class FallbackPanel:
    """Manual-action overlay shown when no strategy seemed to work."""

    def __init__(self, url, phone):
        self.url = url
        self.phone = normalize_phone(phone)
        self.tel_link = f"tel:+{self.phone}"
        self.copy_text = url
        self.links = [
            {"title": "Direct Link", "url": url,
             "description": "Open the link directly"},
            {"title": "WhatsApp Web", "url": "https://web.whatsapp.com/",
             "description": "Open WhatsApp Web and search for our contact"},
            {"title": "Direct Phone Contact", "url": self.tel_link,
             "description": "Call us directly"},
            {"title": "WhatsApp Mobile App", "url": protocol_url(self.phone),
             "description": "Open in WhatsApp mobile app"},
        ]

    def copy(self, writer) -> bool:
        """Copy-to-clipboard action; writer is any callable taking the text."""
        try:
            writer(self.copy_text)
        except Exception as e:
            log.warning("Clipboard write failed: %s", e)
            return False
        return True

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "links": self.links,
            "telLink": self.tel_link,
            "copyText": self.copy_text,
            "phoneDisplay": format_phone_display(self.phone),
        }


# ═══════════════════════════════════════════════════════════════
# Launcher
# ═══════════════════════════════════════════════════════════════

def _handle_ok(handle) -> bool:
    if handle is None or handle is False:
        return False
    return not getattr(handle, "closed", False)


class LaunchResult:
    def __init__(self, url, success, strategy=None, attempts=None, fallback=None):
        self.url = url
        self.success = success
        self.strategy = strategy
        self.attempts = attempts or []
        self.fallback = fallback

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "success": self.success,
            "strategy": self.strategy,
            "attempts": self.attempts,
            "fallback": self.fallback.to_dict() if self.fallback else None,
        }


class WhatsAppLauncher:
    """Runs (name, open_fn) strategies in order until one yields a live handle."""

    def __init__(self, strategies, fallback_phone, delay=STRATEGY_DELAY_SECONDS, sleep=time.sleep):
        self.strategies = list(strategies)
        self.fallback_phone = fallback_phone
        self.delay = delay
        self.sleep = sleep

    def launch(self, url, alternates=()) -> LaunchResult:
        """Every strategy on url, then on each alternate URL in turn.

        The fallback panel always points at the primary url.
        """
        attempts = []
        for target in [url, *alternates]:
            for name, open_fn in self.strategies:
                handle, error = None, ""
                try:
                    handle = open_fn(target)
                except Exception as e:
                    error = str(e) or e.__class__.__name__
                    log.warning("WhatsApp strategy %s raised: %s", name, error,
                                extra={"strategy": name})
                self.sleep(self.delay)
                ok = not error and _handle_ok(handle)
                attempts.append({"strategy": name, "url": target, "ok": ok, "error": error})
                if ok:
                    log.info("📱 WhatsApp opened via %s", name, extra={"strategy": name})
                    return LaunchResult(target, True, strategy=name, attempts=attempts)
        log.warning("⚠️ All %d WhatsApp attempts failed for %s", len(attempts), url)
        return LaunchResult(url, False, attempts=attempts,
                            fallback=FallbackPanel(url, self.fallback_phone))


def browser_strategies(browser=webbrowser):
    """Local analogues of the page strategies, via the webbrowser module."""
    return [
        ("popup", lambda url: browser.open(url, new=1)),
        ("anchor", lambda url: browser.open(url, new=2)),
        ("form", lambda url: browser.get().open(url)),
        ("location", lambda url: browser.open(url, new=0)),
    ]


def launch_plan(url, fallback_phone, alternates=(), delay=STRATEGY_DELAY_SECONDS) -> dict:
    """What the dashboard page runs: URLs to try in order, strategy order,
    delay and the fallback panel."""
    return {
        "url": url,
        "alternates": list(alternates),
        "strategies": list(STRATEGY_ORDER),
        "delayMs": int(delay * 1000),
        "fallback": FallbackPanel(url, fallback_phone).to_dict(),
    }
