"""
messages.py — Messages posted by embedded frames

The TikTok Cuan frame talks to the dashboard with window.postMessage. The
page forwards each message (origin + data) to /api/frame-messages; this
module checks the origin, decides what kind of message it is and builds the
reply the page posts back into the frame.

Accepted shapes:
  {type: whatsapp_request, action, payload, requestId}   → WhatsAppRequest
  {type: whatsapp_click}                                  → WhatsAppRequest
  {type: navigation_event, url, shouldOpenExternally}     → NavigationEvent
  {type: iframe_error, error}                             → IframeErrorReport
  "...whatsapp..." (plain string)                         → WhatsAppRequest(whatsapp_click)
"""

import logging
from urllib.parse import urlparse

from src.core import whatsapp

log = logging.getLogger("portal.messages")

SEND_MESSAGE = "send_message"
OPEN_WHATSAPP = "open_whatsapp"
WHATSAPP_CLICK = "whatsapp_click"
WHATSAPP_ACTIONS = (SEND_MESSAGE, OPEN_WHATSAPP, WHATSAPP_CLICK)

_WHATSAPP_MARKERS = ("whatsapp", "wa.me", "chat.whatsapp")


class MessageRejected(ValueError):
    """Origin not allowed, or a payload we do not understand."""


class WhatsAppRequest:
    kind = "whatsapp_request"

    def __init__(self, action, payload=None, request_id=None):
        self.action = action
        self.payload = payload or {}
        self.request_id = request_id

    def to_dict(self):
        return {"kind": self.kind, "action": self.action,
                "payload": self.payload, "requestId": self.request_id}


class NavigationEvent:
    kind = "navigation_event"

    def __init__(self, url, should_open_externally=False):
        self.url = url
        self.should_open_externally = should_open_externally

    def to_dict(self):
        return {"kind": self.kind, "url": self.url,
                "shouldOpenExternally": self.should_open_externally}


class IframeErrorReport:
    kind = "iframe_error"

    def __init__(self, error):
        self.error = error

    def to_dict(self):
        return {"kind": self.kind, "error": self.error}


def _origin_parts(origin):
    try:
        parsed = urlparse(origin or "")
        port = parsed.port
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return parsed.scheme, parsed.hostname, port


def origin_allowed(origin: str, allowed_origins) -> bool:
    """Same scheme and host as an allowed origin. An allowed origin without a
    port accepts any port (http://localhost covers the dev servers)."""
    got = _origin_parts(origin)
    if got is None:
        return False
    for allowed in allowed_origins:
        want = _origin_parts(allowed)
        if want is None or want[:2] != got[:2]:
            continue
        if want[2] is None or want[2] == got[2]:
            return True
    return False


def parse_frame_message(origin, data, allowed_origins):
    """Validate one posted message. Raises MessageRejected."""
    if not origin_allowed(origin, allowed_origins):
        raise MessageRejected(f"Message from unauthorized origin: {origin}")

    if isinstance(data, str):
        lowered = data.lower()
        if any(m in lowered for m in _WHATSAPP_MARKERS):
            return WhatsAppRequest(WHATSAPP_CLICK)
        raise MessageRejected("Unrecognized text message")

    if not isinstance(data, dict):
        raise MessageRejected("Message must be an object or a string")

    mtype = data.get("type")
    if mtype == "whatsapp_request":
        action = data.get("action")
        if not isinstance(action, str) or not action:
            raise MessageRejected("whatsapp_request without an action")
        payload = data.get("payload") or {}
        if not isinstance(payload, dict):
            raise MessageRejected("whatsapp_request payload must be an object")
        return WhatsAppRequest(action, payload, data.get("requestId"))
    if mtype == WHATSAPP_CLICK:
        return WhatsAppRequest(WHATSAPP_CLICK, request_id=data.get("requestId"))
    if mtype == "navigation_event":
        url = data.get("url")
        if not isinstance(url, str) or not url:
            raise MessageRejected("navigation_event without a url")
        return NavigationEvent(url, bool(data.get("shouldOpenExternally")))
    if mtype == "iframe_error":
        return IframeErrorReport(str(data.get("error") or "An error occurred"))
    raise MessageRejected(f"Unknown message type: {mtype!r}")


def _reply(request_id, success, message):
    return {"type": "whatsapp_response", "success": success,
            "message": message, "requestId": request_id}


def respond(msg, group_url, fallback_phone, frame_host=""):
    """What the page should do for a parsed message.

    Returns {"reply": <dict to post back into the frame or None>,
             "open": <launch plan or None>, "showPanel": bool,
             "notify": <notification text or None>}.
    """
    out = {"reply": None, "open": None, "showPanel": False, "notify": None}

    if isinstance(msg, IframeErrorReport):
        log.warning("Frame reported an error: %s", msg.error)
        out["notify"] = f"TikTok Cuan: {msg.error}"
        return out

    if isinstance(msg, NavigationEvent):
        external = not frame_host or frame_host not in msg.url
        if external and msg.should_open_externally:
            out["open"] = {"url": msg.url, "alternates": [], "strategies": ["popup"],
                           "delayMs": 0, "fallback": None}
        return out

    if msg.action == SEND_MESSAGE:
        phone = msg.payload.get("phoneNumber") or ""
        text = msg.payload.get("message") or ""
        if not phone or not text:
            out["reply"] = _reply(msg.request_id, False, "Missing phone number or message")
            return out
        urls = whatsapp.contact_urls(phone, text) + [group_url]
        out["open"] = whatsapp.launch_plan(urls[0], fallback_phone, alternates=urls[1:])
        out["notify"] = f"Opening WhatsApp for {phone}..."
        out["reply"] = _reply(msg.request_id, True, "WhatsApp opened successfully")
        log.info("📱 WhatsApp message request for %s", whatsapp.normalize_phone(phone))
    elif msg.action == OPEN_WHATSAPP:
        out["open"] = whatsapp.launch_plan(group_url, fallback_phone)
        out["notify"] = "Opening WhatsApp Group..."
        out["reply"] = _reply(msg.request_id, True, "WhatsApp Group opened")
    elif msg.action == WHATSAPP_CLICK:
        out["showPanel"] = True
    else:
        log.warning("Unknown WhatsApp action: %s", msg.action)
        out["reply"] = _reply(msg.request_id, False, "Unknown action")
    return out
